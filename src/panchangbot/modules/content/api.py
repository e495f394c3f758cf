"""Client for the table image backend."""

from __future__ import annotations

import asyncio
import logging
from typing import Any

import aiohttp

from panchangbot.exceptions import ContentHandlerError
from panchangbot.modules.preferences.models import SubscriptionType

LOGGER = logging.getLogger(__name__)

_IMAGE_HEADERS = {"Content-Type": "application/json", "Accept": "image/*"}


def to_drik_date(value: str) -> str:
    """Convert ``YYYY-MM-DD`` to the ``DD/MM/YYYY`` form the Drik endpoints take."""
    year, month, day = value.split("-")
    return f"{day}/{month}/{year}"


class ContentClient:
    """Fetch rendered tables (PNG bytes) for a city and date."""

    def __init__(
        self,
        session: aiohttp.ClientSession,
        *,
        base_url: str,
        timeout: float = 30.0,
    ) -> None:
        self._session = session
        self._base_url = base_url.rstrip("/")
        self._timeout = aiohttp.ClientTimeout(total=timeout)

    def _url(self, path: str) -> str:
        return f"{self._base_url}{path}"

    async def _post_image(self, path: str, payload: dict[str, Any]) -> bytes:
        async with self._session.post(
            self._url(path),
            json=payload,
            headers=_IMAGE_HEADERS,
            timeout=self._timeout,
        ) as resp:
            resp.raise_for_status()
            return await resp.read()

    async def _get_json(self, path: str, params: dict[str, str]) -> Any:
        async with self._session.get(
            self._url(path), params=params, timeout=self._timeout
        ) as resp:
            resp.raise_for_status()
            return await resp.json(content_type=None)

    async def fetch_good_times(self, city: str, date: str) -> bytes:
        return await self._post_image(
            "/api/getBharagvTable-image",
            {"city": city, "date": date, "showNonBlue": False, "is12HourFormat": True},
        )

    async def fetch_drik_table(self, city: str, date: str) -> bytes:
        return await self._post_image(
            "/api/getDrikTable-image",
            {"city": city, "date": to_drik_date(date), "goodTimingsOnly": False},
        )

    async def fetch_combined(self, city: str, date: str) -> bytes:
        muhurat_data = await self._get_json(
            "/api/getDrikTable",
            {"city": city, "date": to_drik_date(date), "goodTimingsOnly": "true"},
        )
        panchangam_data = await self._get_json(
            "/api/getBharagvTable",
            {"city": city, "date": date, "showNonBlue": "true", "is12HourFormat": "true"},
        )
        return await self._post_image(
            "/api/combine-image",
            {
                "muhuratData": muhurat_data,
                "panchangamData": panchangam_data,
                "city": city,
                "date": date,
            },
        )

    async def fetch(self, kind: SubscriptionType, city: str, date: str) -> bytes:
        """Fetch the table for ``kind``; backend failures raise ``ContentHandlerError``."""
        fetchers = {
            SubscriptionType.GT: self.fetch_good_times,
            SubscriptionType.DGT: self.fetch_drik_table,
            SubscriptionType.CGT: self.fetch_combined,
        }
        try:
            data = await fetchers[kind](city, date)
        except aiohttp.ClientResponseError as exc:
            raise ContentHandlerError(kind.value, f"backend returned {exc.status}") from exc
        except (aiohttp.ClientError, asyncio.TimeoutError) as exc:
            raise ContentHandlerError(kind.value, f"backend unreachable: {exc}") from exc

        if not data:
            raise ContentHandlerError(kind.value, "backend returned an empty image")
        LOGGER.info(
            "Fetched %s table for %s on %s (%d bytes)",
            kind.value,
            city,
            date,
            len(data),
            extra={"kind": kind.value},
        )
        return data
