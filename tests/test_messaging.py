from __future__ import annotations

from unittest.mock import AsyncMock, MagicMock

import discord
import pytest

from panchangbot.messaging import DirectMessageTarget, MessageReplyTarget


class TestMessageReplyTarget:
    @pytest.mark.asyncio
    async def test_plain_text_is_escaped(self):
        message = MagicMock()
        message.reply = AsyncMock()

        await MessageReplyTarget(message).send("*not bold*")

        sent = message.reply.await_args.args[0]
        assert sent == discord.utils.escape_markdown("*not bold*")
        assert sent != "*not bold*"

    @pytest.mark.asyncio
    async def test_rich_text_is_untouched(self):
        message = MagicMock()
        message.reply = AsyncMock()

        await MessageReplyTarget(message).send("**Current Settings**", rich=True)

        message.reply.assert_awaited_once_with("**Current Settings**", mention_author=False)

    @pytest.mark.asyncio
    async def test_send_file(self):
        message = MagicMock()
        message.reply = AsyncMock()

        await MessageReplyTarget(message).send_file(b"png", filename="gt-2024-01-25.png", caption="Pune")

        kwargs = message.reply.await_args.kwargs
        assert kwargs["content"] == "Pune"
        assert isinstance(kwargs["file"], discord.File)
        assert kwargs["file"].filename == "gt-2024-01-25.png"

    @pytest.mark.asyncio
    async def test_typing_uses_the_message_channel(self):
        message = MagicMock()

        async with MessageReplyTarget(message).typing():
            message.channel.typing.return_value.__aenter__.assert_awaited_once()

        message.channel.typing.assert_called_once_with()
        message.channel.typing.return_value.__aexit__.assert_awaited_once()


class TestDirectMessageTarget:
    @pytest.mark.asyncio
    async def test_uses_cached_user(self):
        user = MagicMock()
        user.send = AsyncMock()
        bot = MagicMock()
        bot.get_user.return_value = user
        bot.fetch_user = AsyncMock()

        await DirectMessageTarget(bot, 42).send("hello")

        bot.get_user.assert_called_once_with(42)
        bot.fetch_user.assert_not_awaited()
        user.send.assert_awaited_once_with("hello")

    @pytest.mark.asyncio
    async def test_fetches_uncached_user(self):
        user = MagicMock()
        user.send = AsyncMock()
        bot = MagicMock()
        bot.get_user.return_value = None
        bot.fetch_user = AsyncMock(return_value=user)

        await DirectMessageTarget(bot, 42).send_file(b"png", filename="dgt.png", caption="Daily")

        bot.fetch_user.assert_awaited_once_with(42)
        kwargs = user.send.await_args.kwargs
        assert kwargs["content"] == "Daily"
        assert isinstance(kwargs["file"], discord.File)

    @pytest.mark.asyncio
    async def test_typing_in_the_users_dms(self):
        user = MagicMock()
        bot = MagicMock()
        bot.get_user.return_value = None
        bot.fetch_user = AsyncMock(return_value=user)

        async with DirectMessageTarget(bot, 42).typing():
            user.typing.return_value.__aenter__.assert_awaited_once()
            user.typing.return_value.__aexit__.assert_not_awaited()

        bot.fetch_user.assert_awaited_once_with(42)
        user.typing.return_value.__aexit__.assert_awaited_once()
