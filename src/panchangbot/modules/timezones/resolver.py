"""City name -> IANA timezone lookup via the GeoNames search API."""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Protocol
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

import aiohttp

from panchangbot.exceptions import CityNotFoundError, ResolverUnavailableError

LOGGER = logging.getLogger(__name__)


class TimezoneResolver(Protocol):
    async def resolve_timezone(self, city: str) -> str:
        """Return the IANA timezone id for ``city`` or raise ``CityNotFoundError``."""
        ...


def _cache_key(city: str) -> str:
    return " ".join(city.split()).casefold()


class GeoNamesTimezoneResolver:
    """Resolve cities with GeoNames ``searchJSON`` (``style=FULL`` carries the timezone).

    Results are cached per normalized city name for the life of the process.
    """

    def __init__(
        self,
        session: aiohttp.ClientSession,
        *,
        base_url: str,
        username: str,
        timeout: float = 10.0,
    ) -> None:
        self._session = session
        self._base_url = base_url.rstrip("/")
        self._username = username
        self._timeout = aiohttp.ClientTimeout(total=timeout)
        self._cache: dict[str, str] = {}

    async def _search(self, city: str) -> dict[str, Any]:
        url = f"{self._base_url}/searchJSON"
        params = {
            "q": city,
            "maxRows": "1",
            "style": "FULL",
            "username": self._username,
        }
        try:
            async with self._session.get(url, params=params, timeout=self._timeout) as resp:
                resp.raise_for_status()
                payload: dict[str, Any] = await resp.json(content_type=None)
        except (aiohttp.ClientError, asyncio.TimeoutError) as exc:
            raise ResolverUnavailableError(f"GeoNames lookup failed: {exc}") from exc

        # GeoNames reports quota and auth problems in the body with HTTP 200
        status = payload.get("status")
        if status:
            raise ResolverUnavailableError(
                f"GeoNames error {status.get('value')}: {status.get('message')}"
            )
        return payload

    async def resolve_timezone(self, city: str) -> str:
        key = _cache_key(city)
        if not key:
            raise CityNotFoundError(city)

        cached = self._cache.get(key)
        if cached is not None:
            return cached

        payload = await self._search(city.strip())
        LOGGER.info(
            "GeoNames results for %r: %s",
            city,
            payload.get("totalResultsCount"),
            extra={"action": "GEO_NAME_FETCH"},
        )

        rows = payload.get("geonames") or []
        if not rows:
            raise CityNotFoundError(city)

        tz_id = (rows[0].get("timezone") or {}).get("timeZoneId")
        if not tz_id:
            raise CityNotFoundError(city)

        try:
            ZoneInfo(tz_id)
        except (ZoneInfoNotFoundError, ValueError) as exc:
            LOGGER.warning("GeoNames returned unknown timezone %r for %r", tz_id, city)
            raise CityNotFoundError(city) from exc

        self._cache[key] = tz_id
        return tz_id
