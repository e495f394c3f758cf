"""Where replies go.

The dialogue and the scheduler only ever talk to a ``ReplyTarget``. A live
message gets a ``MessageReplyTarget``; a scheduler tick, which has no message
to answer, gets a ``DirectMessageTarget`` addressed by user id.
"""

from __future__ import annotations

import contextlib
import io
from collections.abc import AsyncIterator
from contextlib import AbstractAsyncContextManager
from typing import Protocol

import discord
from discord.ext import commands


class ReplyTarget(Protocol):
    async def send(self, text: str, *, rich: bool = False) -> None:
        """Send text. ``rich`` keeps markdown; otherwise it is escaped."""
        ...

    async def send_file(self, data: bytes, *, filename: str, caption: str) -> None:
        ...

    def typing(self) -> AbstractAsyncContextManager[None]:
        """Show the user a reply is being prepared while the context is open."""
        ...


def _prepare(text: str, rich: bool) -> str:
    return text if rich else discord.utils.escape_markdown(text)


def _as_file(data: bytes, filename: str) -> discord.File:
    return discord.File(io.BytesIO(data), filename=filename)


class MessageReplyTarget:
    """Reply in the conversation the user wrote in."""

    def __init__(self, message: discord.Message) -> None:
        self._message = message

    async def send(self, text: str, *, rich: bool = False) -> None:
        await self._message.reply(_prepare(text, rich), mention_author=False)

    async def send_file(self, data: bytes, *, filename: str, caption: str) -> None:
        await self._message.reply(
            content=_prepare(caption, False),
            file=_as_file(data, filename),
            mention_author=False,
        )

    def typing(self) -> AbstractAsyncContextManager[None]:
        return self._message.channel.typing()


class DirectMessageTarget:
    """Send to a user's DMs by id, for pushes nobody asked for just now."""

    def __init__(self, bot: commands.Bot, user_id: int) -> None:
        self._bot = bot
        self.user_id = user_id

    async def _resolve_user(self) -> discord.User:
        user = self._bot.get_user(self.user_id)
        if user is None:
            user = await self._bot.fetch_user(self.user_id)
        return user

    async def send(self, text: str, *, rich: bool = False) -> None:
        user = await self._resolve_user()
        await user.send(_prepare(text, rich))

    async def send_file(self, data: bytes, *, filename: str, caption: str) -> None:
        user = await self._resolve_user()
        await user.send(content=_prepare(caption, False), file=_as_file(data, filename))

    @contextlib.asynccontextmanager
    async def typing(self) -> AsyncIterator[None]:
        user = await self._resolve_user()
        async with user.typing():
            yield
