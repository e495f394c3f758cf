from __future__ import annotations

from unittest.mock import AsyncMock, MagicMock

import aiohttp
import discord
import pytest
from fakes import FakeResponse, FakeSession, RecordingTarget

from panchangbot.exceptions import ContentHandlerError
from panchangbot.modules.content.api import ContentClient, to_drik_date
from panchangbot.modules.content.delivery import ContentDelivery
from panchangbot.modules.preferences.models import SubscriptionType

PNG = b"\x89PNG\r\n\x1a\n"


def _client(session: FakeSession) -> ContentClient:
    return ContentClient(session, base_url="http://tables.test/", timeout=5.0)


def test_to_drik_date():
    assert to_drik_date("2024-01-25") == "25/01/2024"


class TestContentClient:
    @pytest.mark.asyncio
    async def test_good_times(self):
        session = FakeSession(FakeResponse(body=PNG))

        data = await _client(session).fetch(SubscriptionType.GT, "Vijayawada", "2024-01-25")

        assert data == PNG
        method, url, kwargs = session.calls[0]
        assert (method, url) == ("POST", "http://tables.test/api/getBharagvTable-image")
        assert kwargs["json"] == {
            "city": "Vijayawada",
            "date": "2024-01-25",
            "showNonBlue": False,
            "is12HourFormat": True,
        }

    @pytest.mark.asyncio
    async def test_drik_table_uses_day_first_date(self):
        session = FakeSession(FakeResponse(body=PNG))

        await _client(session).fetch(SubscriptionType.DGT, "Vijayawada", "2024-01-25")

        method, url, kwargs = session.calls[0]
        assert url == "http://tables.test/api/getDrikTable-image"
        assert kwargs["json"]["date"] == "25/01/2024"
        assert kwargs["json"]["goodTimingsOnly"] is False

    @pytest.mark.asyncio
    async def test_combined_fetches_both_tables_then_combines(self):
        muhurat = {"goodTimes": [{"start": "06:00"}]}
        panchangam = {"rows": [1, 2, 3]}
        session = FakeSession(
            FakeResponse(muhurat),
            FakeResponse(panchangam),
            FakeResponse(body=PNG),
        )

        data = await _client(session).fetch(SubscriptionType.CGT, "Vijayawada", "2024-01-25")

        assert data == PNG
        assert [(m, u) for m, u, _ in session.calls] == [
            ("GET", "http://tables.test/api/getDrikTable"),
            ("GET", "http://tables.test/api/getBharagvTable"),
            ("POST", "http://tables.test/api/combine-image"),
        ]
        combine_payload = session.calls[2][2]["json"]
        assert combine_payload["muhuratData"] == muhurat
        assert combine_payload["panchangamData"] == panchangam

    @pytest.mark.asyncio
    async def test_backend_error_status(self):
        session = FakeSession(FakeResponse(status=500))

        with pytest.raises(ContentHandlerError) as exc_info:
            await _client(session).fetch(SubscriptionType.GT, "Vijayawada", "2024-01-25")
        assert exc_info.value.kind == "gt"
        assert "500" in str(exc_info.value)

    @pytest.mark.asyncio
    async def test_backend_unreachable(self):
        session = FakeSession(aiohttp.ClientConnectionError("refused"))

        with pytest.raises(ContentHandlerError):
            await _client(session).fetch(SubscriptionType.DGT, "Vijayawada", "2024-01-25")

    @pytest.mark.asyncio
    async def test_empty_image(self):
        session = FakeSession(FakeResponse(body=b""))

        with pytest.raises(ContentHandlerError):
            await _client(session).fetch(SubscriptionType.GT, "Vijayawada", "2024-01-25")


class TestContentDelivery:
    @pytest.mark.asyncio
    async def test_sends_file_with_caption(self):
        client = MagicMock()
        client.fetch = AsyncMock(return_value=PNG)
        target = RecordingTarget()

        await ContentDelivery(client).deliver(SubscriptionType.DGT, target, "Pune", "2024-01-25")

        client.fetch.assert_awaited_once_with(SubscriptionType.DGT, "Pune", "2024-01-25")
        data, filename, caption = target.files[0]
        assert data == PNG
        assert filename == "dgt-2024-01-25.png"
        assert "Pune" in caption and "2024-01-25" in caption

    @pytest.mark.asyncio
    async def test_typing_indicator_covers_generation_and_upload(self):
        target = RecordingTarget()
        typing_during_fetch = []

        async def fetch(kind, city, date):
            typing_during_fetch.append(target.typing_active)
            return PNG

        client = MagicMock()
        client.fetch = fetch

        await ContentDelivery(client).deliver(SubscriptionType.GT, target, "Pune", "2024-01-25")

        assert typing_during_fetch == [True]
        assert target.files_while_typing == ["gt-2024-01-25.png"]
        assert target.typing_sessions == 1
        assert target.typing_active is False

    @pytest.mark.asyncio
    async def test_fetch_failure_propagates(self):
        client = MagicMock()
        client.fetch = AsyncMock(side_effect=ContentHandlerError("gt", "backend returned 502"))
        target = RecordingTarget()

        with pytest.raises(ContentHandlerError):
            await ContentDelivery(client).deliver(SubscriptionType.GT, target, "Pune", "2024-01-25")
        assert target.files == []

    @pytest.mark.asyncio
    async def test_send_failure_is_wrapped(self):
        client = MagicMock()
        client.fetch = AsyncMock(return_value=PNG)
        target = MagicMock()
        response = MagicMock(status=403, reason="Forbidden")
        target.send_file = AsyncMock(side_effect=discord.Forbidden(response, "Cannot send messages to this user"))

        with pytest.raises(ContentHandlerError) as exc_info:
            await ContentDelivery(client).deliver(SubscriptionType.CGT, target, "Pune", "2024-01-25")
        assert exc_info.value.kind == "cgt"

    @pytest.mark.asyncio
    async def test_typing_failure_is_wrapped(self):
        client = MagicMock()
        client.fetch = AsyncMock(return_value=PNG)
        target = MagicMock()
        target.send_file = AsyncMock()
        response = MagicMock(status=403, reason="Forbidden")
        target.typing.return_value.__aenter__.side_effect = discord.Forbidden(response, "Missing Access")

        with pytest.raises(ContentHandlerError):
            await ContentDelivery(client).deliver(SubscriptionType.GT, target, "Pune", "2024-01-25")
        target.send_file.assert_not_awaited()
