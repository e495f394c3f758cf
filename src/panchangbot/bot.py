from __future__ import annotations

import inspect
import logging
from typing import TYPE_CHECKING

import discord
from discord.ext import commands

from panchangbot import __version__
from panchangbot.config import Config
from panchangbot.messaging import DirectMessageTarget

if TYPE_CHECKING:
    import aiohttp

    from panchangbot.modules.dialogue.machine import DialogueStateMachine
    from panchangbot.modules.notifications.scheduler import NotificationScheduler
    from panchangbot.modules.preferences.store import PreferenceStore

LOGGER = logging.getLogger(__name__)


async def _sync_commands(bot: commands.Bot) -> None:
    synced = await bot.tree.sync()
    LOGGER.info("Synced %d global app commands", len(synced))


async def _open_preference_store(config: Config) -> tuple[PreferenceStore, object | None]:
    """Return the store and, when Firestore backs it, the client to close on exit."""
    from panchangbot.firestore_client import RetryPolicy, connect_with_retry, open_firestore
    from panchangbot.modules.preferences.store import (
        FirestorePreferenceStore,
        InMemoryPreferenceStore,
    )

    if not config.firebase_enabled:
        LOGGER.warning("Firebase disabled; preferences are kept in memory only")
        return InMemoryPreferenceStore(), None

    firestore_client = await connect_with_retry(
        lambda: open_firestore(config), RetryPolicy.from_config(config)
    )
    LOGGER.info("Connected to Firestore", extra={"action": "DB_CONNECTED"})
    store = FirestorePreferenceStore(firestore_client, timeout=config.store_timeout_seconds)
    return store, firestore_client


def create_bot(config: Config) -> commands.Bot:
    intents = discord.Intents.default()
    intents.message_content = True

    bot = commands.Bot(
        command_prefix=config.command_prefix,
        intents=intents,
        help_command=None,
    )
    bot._commands_synced = False  # type: ignore[attr-defined]

    @bot.event
    async def on_ready() -> None:
        env_label = "TEST" if config.is_test else "PRODUCTION"
        LOGGER.info(
            "[%s] Logged in as %s (%s), version=%s",
            env_label,
            bot.user,
            bot.user.id if bot.user else "?",
            __version__,
        )

        if bot._commands_synced:  # type: ignore[attr-defined]
            return

        try:
            await _sync_commands(bot)
            bot._commands_synced = True  # type: ignore[attr-defined]
        except Exception:
            LOGGER.exception("Failed to sync app commands")

    @bot.event
    async def setup_hook() -> None:
        import aiohttp

        from panchangbot.modules.content.api import ContentClient
        from panchangbot.modules.content.delivery import ContentDelivery
        from panchangbot.modules.notifications.scheduler import NotificationScheduler
        from panchangbot.modules.timezones.resolver import GeoNamesTimezoneResolver

        session = aiohttp.ClientSession(headers={"Accept-Encoding": "gzip"})
        bot.panchang_http_session = session  # type: ignore[attr-defined]

        store, firestore_client = await _open_preference_store(config)
        bot.panchang_firestore = firestore_client  # type: ignore[attr-defined]

        resolver = GeoNamesTimezoneResolver(
            session,
            base_url=config.geonames_base,
            username=config.geonames_username,
            timeout=config.request_timeout_seconds,
        )
        delivery = ContentDelivery(
            ContentClient(
                session,
                base_url=config.content_api_base,
                timeout=config.request_timeout_seconds,
            )
        )
        scheduler = NotificationScheduler(
            store,
            resolver,
            delivery,
            lambda user_id: DirectMessageTarget(bot, user_id),
            misfire_grace_time=config.misfire_grace_seconds,
        )
        scheduler.start()
        bot.panchang_scheduler = scheduler  # type: ignore[attr-defined]

        machine = _build_state_machine(config, store, scheduler, delivery, resolver)

        await bot.add_cog(_load_core_cog(bot, scheduler))
        await bot.add_cog(_load_dialogue_cog(bot, machine))

        await scheduler.initialize_all()

    original_close = bot.close

    @bot.event
    async def close() -> None:
        scheduler = getattr(bot, "panchang_scheduler", None)
        if scheduler is not None:
            scheduler.shutdown()

        session = getattr(bot, "panchang_http_session", None)
        if session is not None:
            await session.close()

        firestore_client = getattr(bot, "panchang_firestore", None)
        if firestore_client is not None:
            close_fn = getattr(firestore_client, "close", None)
            if callable(close_fn):
                result = close_fn()
                if inspect.isawaitable(result):
                    await result

        await original_close()

    return bot


def _build_state_machine(
    config: Config,
    store: PreferenceStore,
    scheduler: NotificationScheduler,
    delivery,
    resolver,
) -> DialogueStateMachine:
    from panchangbot.modules.dialogue.machine import DialogueStateMachine

    return DialogueStateMachine(
        store,
        scheduler,
        delivery,
        resolver,
        command_prefix=config.command_prefix,
    )


def _load_core_cog(bot: commands.Bot, scheduler: NotificationScheduler) -> commands.Cog:
    from panchangbot.cogs.core import CoreCog

    return CoreCog(bot, scheduler)


def _load_dialogue_cog(bot: commands.Bot, machine: DialogueStateMachine) -> commands.Cog:
    from panchangbot.modules.dialogue.cog import DialogueCog

    return DialogueCog(bot, machine)
