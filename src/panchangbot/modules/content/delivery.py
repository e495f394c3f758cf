from __future__ import annotations

import logging
from typing import Protocol

import discord

from panchangbot.exceptions import ContentHandlerError
from panchangbot.messaging import ReplyTarget
from panchangbot.modules.content.api import ContentClient
from panchangbot.modules.preferences.models import SubscriptionType

LOGGER = logging.getLogger(__name__)

_CAPTIONS = {
    SubscriptionType.GT: "🗓️ Good Times Table\n📍 {city}\n📅 {date}\n\n💫 Choose your time wisely!",
    SubscriptionType.DGT: "✨ Drik Panchang Timings\n📍 {city}\n📅 {date}\n\n💫 Plan your activities accordingly!",
    SubscriptionType.CGT: "🎯 Combined Times Table\n📍 {city}\n📅 {date}\n\n💫 Plan your activities wisely!",
}


class ContentHandler(Protocol):
    async def deliver(
        self, kind: SubscriptionType, target: ReplyTarget, city: str, date: str
    ) -> None:
        ...


class ContentDelivery:
    """Fetch a table from the backend and hand it to a reply target."""

    def __init__(self, client: ContentClient) -> None:
        self._client = client

    async def deliver(
        self, kind: SubscriptionType, target: ReplyTarget, city: str, date: str
    ) -> None:
        caption = _CAPTIONS[kind].format(city=city, date=date)
        # Typing indicator stays up while the table renders and uploads
        try:
            async with target.typing():
                data = await self._client.fetch(kind, city, date)
                await target.send_file(data, filename=f"{kind.value}-{date}.png", caption=caption)
        except discord.HTTPException as exc:
            raise ContentHandlerError(kind.value, f"could not send table: {exc}") from exc
