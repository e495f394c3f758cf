"""Preference store used by the dialogue and the scheduler.

``FirestorePreferenceStore`` is the production backend. ``InMemoryPreferenceStore``
keeps records in the process and backs local runs with Firebase switched off.
"""

from __future__ import annotations

import asyncio
import copy
import logging
from collections.abc import Callable, Mapping
from datetime import datetime, timezone
from typing import TYPE_CHECKING, Any, Protocol, TypeVar

from google.api_core import exceptions as gexc

from panchangbot.exceptions import StoreUnavailableError
from panchangbot.modules.preferences import repo
from panchangbot.modules.preferences.models import UserPreferences, check_update_fields

if TYPE_CHECKING:
    from google.cloud.firestore import Client as FirestoreClient

LOGGER = logging.getLogger(__name__)

T = TypeVar("T")


class PreferenceStore(Protocol):
    async def save_preferences(self, user_id: int, update: Mapping[str, Any]) -> None:
        """Upsert: merge ``update`` into the record and stamp ``last_updated``."""
        ...

    async def get_preferences(self, user_id: int) -> UserPreferences | None:
        """Return the record, or ``None`` when the user has none."""
        ...

    async def get_all_subscribed(self) -> list[UserPreferences]:
        ...


class InMemoryPreferenceStore:
    def __init__(self) -> None:
        self._records: dict[int, dict[str, Any]] = {}

    async def save_preferences(self, user_id: int, update: Mapping[str, Any]) -> None:
        check_update_fields(update)
        record = self._records.setdefault(user_id, {"user_id": user_id})
        record.update(copy.deepcopy(dict(update)))
        record["last_updated"] = datetime.now(timezone.utc)

    async def get_preferences(self, user_id: int) -> UserPreferences | None:
        record = self._records.get(user_id)
        if record is None:
            return None
        return UserPreferences.from_firestore(copy.deepcopy(record))

    async def get_all_subscribed(self) -> list[UserPreferences]:
        return [
            UserPreferences.from_firestore(copy.deepcopy(record))
            for record in self._records.values()
            if record.get("is_subscribed")
        ]


class FirestorePreferenceStore:
    """Async facade over the blocking Firestore repo functions.

    Each call runs in a worker thread and is bounded by ``timeout`` seconds.
    Timeouts and Google API errors surface as ``StoreUnavailableError``.
    """

    def __init__(self, firestore: FirestoreClient, *, timeout: float = 10.0) -> None:
        self._firestore = firestore
        self._timeout = timeout

    async def _call(self, fn: Callable[..., T], *args: Any) -> T:
        try:
            return await asyncio.wait_for(
                asyncio.to_thread(fn, self._firestore, *args),
                timeout=self._timeout,
            )
        except asyncio.TimeoutError as exc:
            LOGGER.warning("Firestore call %s timed out after %.1fs", fn.__name__, self._timeout)
            raise StoreUnavailableError(f"{fn.__name__} timed out") from exc
        except gexc.GoogleAPIError as exc:
            LOGGER.warning("Firestore call %s failed: %s", fn.__name__, exc)
            raise StoreUnavailableError(f"{fn.__name__} failed: {exc}") from exc

    async def save_preferences(self, user_id: int, update: Mapping[str, Any]) -> None:
        check_update_fields(update)
        await self._call(repo.save_preferences, user_id, dict(update))
        LOGGER.debug("Preferences saved for user %s", user_id, extra={"user_id": user_id})

    async def get_preferences(self, user_id: int) -> UserPreferences | None:
        return await self._call(repo.get_preferences, user_id)

    async def get_all_subscribed(self) -> list[UserPreferences]:
        return await self._call(repo.get_all_subscribed)
