from __future__ import annotations

import logging

import discord
from discord.ext import commands

from panchangbot.messaging import MessageReplyTarget
from panchangbot.modules.dialogue import messages
from panchangbot.modules.dialogue.commands import Command, dispatch
from panchangbot.modules.dialogue.machine import DialogueStateMachine

LOGGER = logging.getLogger(__name__)


class DialogueCog(commands.Cog):
    """Prefix commands and free-text input for the preference dialogue."""

    def __init__(self, bot: commands.Bot, machine: DialogueStateMachine) -> None:
        self.bot = bot
        self.machine = machine

    async def cog_load(self) -> None:
        LOGGER.info("Dialogue cog loaded")

    async def _dispatch(self, ctx: commands.Context, command: Command) -> None:
        LOGGER.debug(
            "Command %s from user %s",
            command.value,
            ctx.author.id,
            extra={"action": "COMMAND", "user_id": ctx.author.id},
        )
        await dispatch(self.machine, command, ctx.author.id, MessageReplyTarget(ctx.message))

    # --- Setup ---

    @commands.command(name="start")
    async def start_command(self, ctx: commands.Context) -> None:
        await self._dispatch(ctx, Command.START)

    @commands.command(name="subscribe")
    async def subscribe_command(self, ctx: commands.Context) -> None:
        await self._dispatch(ctx, Command.SUBSCRIBE)

    @commands.command(name="stop")
    async def stop_command(self, ctx: commands.Context) -> None:
        await self._dispatch(ctx, Command.STOP)

    # --- Preferences ---

    @commands.command(name="change_time")
    async def change_time_command(self, ctx: commands.Context) -> None:
        await self._dispatch(ctx, Command.CHANGE_TIME)

    @commands.command(name="change_city")
    async def change_city_command(self, ctx: commands.Context) -> None:
        await self._dispatch(ctx, Command.CHANGE_CITY)

    @commands.command(name="change_date")
    async def change_date_command(self, ctx: commands.Context) -> None:
        await self._dispatch(ctx, Command.CHANGE_DATE)

    @commands.command(name="update_all")
    async def update_all_command(self, ctx: commands.Context) -> None:
        await self._dispatch(ctx, Command.UPDATE_ALL)

    @commands.command(name="status")
    async def status_command(self, ctx: commands.Context) -> None:
        await self._dispatch(ctx, Command.STATUS)

    @commands.command(name="cancel")
    async def cancel_command(self, ctx: commands.Context) -> None:
        await self._dispatch(ctx, Command.CANCEL)

    # --- On-demand tables ---

    @commands.command(name="gt")
    async def gt_command(self, ctx: commands.Context) -> None:
        await self._dispatch(ctx, Command.GT)

    @commands.command(name="dgt")
    async def dgt_command(self, ctx: commands.Context) -> None:
        await self._dispatch(ctx, Command.DGT)

    @commands.command(name="cgt")
    async def cgt_command(self, ctx: commands.Context) -> None:
        await self._dispatch(ctx, Command.CGT)

    @commands.command(name="help")
    async def help_command(self, ctx: commands.Context) -> None:
        await self._dispatch(ctx, Command.HELP)

    # --- Free text ---

    @commands.Cog.listener()
    async def on_message(self, message: discord.Message) -> None:
        if message.author.bot or not message.content:
            return
        try:
            await self.machine.handle_text(
                message.author.id, message.content, MessageReplyTarget(message)
            )
        except Exception:
            LOGGER.exception("Unhandled error in dialogue for user %s", message.author.id)
            self.machine.states.delete(message.author.id)
            await message.reply(messages.GENERIC_ERROR, mention_author=False)

    async def cog_command_error(
        self, ctx: commands.Context, error: commands.CommandError
    ) -> None:
        original = getattr(error, "original", error)
        LOGGER.error(
            "Command %s failed for user %s",
            ctx.command.qualified_name if ctx.command else "?",
            ctx.author.id,
            exc_info=original,
        )
        await ctx.reply(messages.GENERIC_ERROR, mention_author=False)
