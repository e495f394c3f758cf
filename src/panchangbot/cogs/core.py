from __future__ import annotations

import discord
from discord import app_commands
from discord.ext import commands

from panchangbot.modules.notifications.scheduler import NotificationScheduler


class CoreCog(commands.Cog):
    """Core bot commands."""

    def __init__(self, bot: commands.Bot, scheduler: NotificationScheduler) -> None:
        self.bot = bot
        self.scheduler = scheduler

    def _health_line(self) -> str:
        return f"pong ({self.scheduler.job_count} daily schedules active)"

    @commands.command(name="ping")
    async def ping_prefix(self, ctx: commands.Context) -> None:
        await ctx.reply(self._health_line())

    @app_commands.command(name="ping", description="Health check")
    async def ping_slash(self, interaction: discord.Interaction) -> None:
        await interaction.response.send_message(self._health_line(), ephemeral=True)
