"""Test doubles shared by the test modules."""

from __future__ import annotations

import asyncio
import contextlib
from typing import Any
from unittest.mock import MagicMock

import aiohttp

from panchangbot.exceptions import CityNotFoundError, ContentHandlerError, StoreUnavailableError
from panchangbot.modules.preferences.models import SubscriptionType
from panchangbot.modules.preferences.store import InMemoryPreferenceStore

USER_ID = 1001


class RecordingTarget:
    """Reply target that remembers everything sent to it."""

    def __init__(self) -> None:
        self.messages: list[tuple[str, bool]] = []
        self.files: list[tuple[bytes, str, str]] = []
        self.typing_sessions = 0
        self.typing_active = False
        self.files_while_typing: list[str] = []

    async def send(self, text: str, *, rich: bool = False) -> None:
        self.messages.append((text, rich))

    async def send_file(self, data: bytes, *, filename: str, caption: str) -> None:
        self.files.append((data, filename, caption))
        if self.typing_active:
            self.files_while_typing.append(filename)

    @contextlib.asynccontextmanager
    async def typing(self):
        self.typing_sessions += 1
        self.typing_active = True
        try:
            yield
        finally:
            self.typing_active = False

    @property
    def texts(self) -> list[str]:
        return [text for text, _ in self.messages]

    @property
    def last(self) -> str:
        return self.messages[-1][0]


class FakeResolver:
    def __init__(self) -> None:
        self.zones = {
            "vijayawada": "Asia/Kolkata",
            "london": "Europe/London",
            "new york": "America/New_York",
        }
        self.calls: list[str] = []
        self.error: Exception | None = None
        self.delay = 0.0

    async def resolve_timezone(self, city: str) -> str:
        self.calls.append(city)
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.error is not None:
            raise self.error
        try:
            return self.zones[city.strip().casefold()]
        except KeyError:
            raise CityNotFoundError(city) from None


class RecordingDelivery:
    def __init__(self) -> None:
        self.calls: list[tuple[SubscriptionType, object, str, str]] = []
        self.fail_kinds: set[SubscriptionType] = set()
        self.delay = 0.0

    async def deliver(self, kind: SubscriptionType, target, city: str, date: str) -> None:
        self.calls.append((kind, target, city, date))
        if self.delay:
            await asyncio.sleep(self.delay)
        if kind in self.fail_kinds:
            raise ContentHandlerError(kind.value, "backend returned 500")
        await target.send_file(b"\x89PNG", filename=f"{kind.value}-{date}.png", caption=city)


class FlakyStore(InMemoryPreferenceStore):
    """In-memory store that can be told to fail, or to be slow, on writes."""

    def __init__(self) -> None:
        super().__init__()
        self.fail_saves = False
        self.fail_reads = False
        self.save_delay = 0.0
        self.saves: list[dict] = []

    async def save_preferences(self, user_id, update):
        if self.save_delay:
            await asyncio.sleep(self.save_delay)
        if self.fail_saves:
            raise StoreUnavailableError("save_preferences timed out")
        self.saves.append(dict(update))
        await super().save_preferences(user_id, update)

    async def get_preferences(self, user_id):
        if self.fail_reads:
            raise StoreUnavailableError("get_preferences timed out")
        return await super().get_preferences(user_id)

    async def get_all_subscribed(self):
        if self.fail_reads:
            raise StoreUnavailableError("get_all_subscribed timed out")
        return await super().get_all_subscribed()



class FakeResponse:
    def __init__(self, payload: Any = None, *, status: int = 200, body: bytes = b"") -> None:
        self.payload = payload
        self.status = status
        self.body = body

    async def __aenter__(self) -> FakeResponse:
        return self

    async def __aexit__(self, *exc_info) -> bool:
        return False

    def raise_for_status(self) -> None:
        if self.status >= 400:
            raise aiohttp.ClientResponseError(
                request_info=MagicMock(), history=(), status=self.status, message="error"
            )

    async def json(self, content_type: str | None = None) -> Any:
        return self.payload

    async def read(self) -> bytes:
        return self.body


class FakeSession:
    """Stands in for ``aiohttp.ClientSession``; replays queued responses in order."""

    def __init__(self, *responses: FakeResponse | Exception) -> None:
        self.responses = list(responses)
        self.calls: list[tuple[str, str, dict[str, Any]]] = []

    def _next(self) -> FakeResponse:
        response = self.responses.pop(0)
        if isinstance(response, Exception):
            raise response
        return response

    def get(self, url: str, **kwargs: Any) -> FakeResponse:
        self.calls.append(("GET", url, kwargs))
        return self._next()

    def post(self, url: str, **kwargs: Any) -> FakeResponse:
        self.calls.append(("POST", url, kwargs))
        return self._next()
