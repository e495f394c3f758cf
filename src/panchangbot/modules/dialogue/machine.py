"""Per-user conversation driver.

Each user is in at most one ``DialogueState``. Free text from a user with a
state is routed to that state's step handler; commands set the state and
prompt. All work for one user runs under that user's lock, so two quick
messages are applied in the order they arrived.
"""

from __future__ import annotations

import asyncio
import dataclasses
import functools
import logging
from collections.abc import Awaitable, Callable

from panchangbot.exceptions import (
    CityNotFoundError,
    NotFoundError,
    TransientInfraError,
    ValidationError,
)
from panchangbot.messaging import ReplyTarget
from panchangbot.modules.content.delivery import ContentHandler
from panchangbot.modules.dialogue import messages
from panchangbot.modules.dialogue.states import (
    ONE_SHOT_STATES,
    ConversationStates,
    DialogueState,
)
from panchangbot.modules.notifications.scheduler import NotificationScheduler
from panchangbot.modules.preferences.models import (
    SUBSCRIPTION_MENU,
    SubscriptionType,
    UserPreferences,
)
from panchangbot.modules.preferences.store import PreferenceStore
from panchangbot.modules.preferences.validators import (
    is_valid_city,
    is_valid_date,
    is_valid_time,
    parse_city_date,
)
from panchangbot.modules.timezones.resolver import TimezoneResolver

LOGGER = logging.getLogger(__name__)

StepHandler = Callable[["DialogueStateMachine", int, str, ReplyTarget], Awaitable[None]]


class DialogueStateMachine:
    def __init__(
        self,
        store: PreferenceStore,
        scheduler: NotificationScheduler,
        delivery: ContentHandler,
        resolver: TimezoneResolver,
        *,
        states: ConversationStates | None = None,
        command_prefix: str = "!",
        delivery_timeout: float = 120.0,
    ) -> None:
        self._store = store
        self._scheduler = scheduler
        self._delivery = delivery
        self._resolver = resolver
        self.states = states if states is not None else ConversationStates()
        self.prefix = command_prefix
        self._delivery_timeout = delivery_timeout

    # --- Free text ---

    async def handle_text(self, user_id: int, text: str, target: ReplyTarget) -> bool:
        """Run the step for the user's current state. Returns whether it was handled."""
        text = text.strip()
        if not text or text.startswith(self.prefix):
            return False
        if user_id not in self.states:
            return False

        async with self.states.lock(user_id):
            raw_state = self.states.get(user_id)
            if raw_state is None:
                # Cancelled while this message was waiting for the lock
                return False
            await self._run_step(user_id, raw_state, text, target)
        return True

    async def _run_step(
        self, user_id: int, raw_state: str, text: str, target: ReplyTarget
    ) -> None:
        try:
            state = DialogueState(raw_state)
        except ValueError:
            LOGGER.warning("Unknown dialogue state %r for user %s; resetting", raw_state, user_id)
            self.states.delete(user_id)
            await target.send(messages.unknown_state(self.prefix))
            return

        handler = _STEP_HANDLERS[state]
        try:
            await handler(self, user_id, text, target)
        except ValidationError as exc:
            await target.send(messages.invalid_input(exc.field))
        except CityNotFoundError as exc:
            self.states.delete(user_id)
            await target.send(messages.city_not_found(exc.city))
        except NotFoundError:
            LOGGER.warning("Missing data in state %s for user %s", state.value, user_id)
            self.states.delete(user_id)
            await target.send(messages.TRY_AGAIN)
        except TransientInfraError:
            LOGGER.exception(
                "Dialogue step %s failed for user %s",
                state.value,
                user_id,
                extra={"action": "DIALOGUE_ERROR", "user_id": user_id},
            )
            self.states.delete(user_id)
            await target.send(
                messages.SUBSCRIPTION_FAILED
                if state is DialogueState.AWAITING_SUBSCRIBE_TYPE
                else messages.TRY_AGAIN
            )

    # --- Step handlers ---

    async def _step_time(self, user_id: int, text: str, target: ReplyTarget) -> None:
        if not is_valid_time(text):
            raise ValidationError("time", text)
        await self._store.save_preferences(user_id, {"notification_time": text})
        self.states.set(user_id, DialogueState.AWAITING_CITY)
        await target.send(messages.TIME_SAVED)
        await self._reschedule_if_subscribed(user_id, target)

    async def _step_city(self, user_id: int, text: str, target: ReplyTarget) -> None:
        if not is_valid_city(text):
            raise ValidationError("city", text)
        await self._store.save_preferences(user_id, {"city": text})
        self.states.set(user_id, DialogueState.AWAITING_DATE)
        await target.send(messages.CITY_SAVED)
        await self._reschedule_if_subscribed(user_id, target)

    async def _step_date(self, user_id: int, text: str, target: ReplyTarget) -> None:
        if not is_valid_date(text):
            raise ValidationError("date", text)
        await self._store.save_preferences(user_id, {"start_date": text})
        self.states.set(user_id, DialogueState.AWAITING_SUBSCRIBE_TYPE)
        await target.send(messages.SUBSCRIPTION_MENU_TEXT)

    async def _step_subscribe_type(self, user_id: int, text: str, target: ReplyTarget) -> None:
        kinds = SUBSCRIPTION_MENU.get(text)
        if kinds is None:
            raise ValidationError("menu", text)

        current = await self._store.get_preferences(user_id)
        if current is None or not current.city or not current.notification_time:
            self.states.delete(user_id)
            await target.send(messages.incomplete_preferences(self.prefix))
            return

        types = [kind.value for kind in kinds]
        merged = dataclasses.replace(current, subscription_types=types, is_subscribed=True)

        # Resolve and install first: an unknown city must not leave a
        # subscribed record behind.
        await self._scheduler.schedule(user_id, merged)
        try:
            await self._store.save_preferences(
                user_id, {"subscription_types": types, "is_subscribed": True}
            )
        except TransientInfraError:
            await self._restore_schedule(user_id, current)
            raise

        self.states.delete(user_id)
        LOGGER.info(
            "User %s subscribed to %s",
            user_id,
            ",".join(types),
            extra={"action": "SUBSCRIBED", "user_id": user_id},
        )
        await target.send(messages.subscription_confirmed(merged))

    async def _step_one_shot(
        self, user_id: int, text: str, target: ReplyTarget, *, kind: SubscriptionType
    ) -> None:
        city, date = parse_city_date(text)
        try:
            await asyncio.wait_for(
                self._delivery.deliver(kind, target, city, date),
                timeout=self._delivery_timeout,
            )
        except (TransientInfraError, asyncio.TimeoutError):
            LOGGER.exception(
                "On-demand %s failed for user %s",
                kind.value,
                user_id,
                extra={"action": "CONTENT_ERROR", "user_id": user_id, "kind": kind.value},
            )
            await target.send(messages.content_failed(kind))
        finally:
            self.states.delete(user_id)

    async def _restore_schedule(self, user_id: int, previous: UserPreferences) -> None:
        """Put back the job that matches ``previous``, the record still stored."""
        if not previous.is_schedulable:
            self._scheduler.cancel(user_id)
            return
        try:
            await self._scheduler.schedule(user_id, previous)
        except (NotFoundError, TransientInfraError):
            LOGGER.exception(
                "Could not restore the previous schedule for user %s",
                user_id,
                extra={"action": "RESCHEDULE_ERROR", "user_id": user_id},
            )

    async def _reschedule_if_subscribed(self, user_id: int, target: ReplyTarget) -> None:
        try:
            prefs = await self._store.get_preferences(user_id)
            if prefs is None or not prefs.is_schedulable:
                return
            await self._scheduler.schedule(user_id, prefs)
        except (NotFoundError, TransientInfraError):
            LOGGER.exception(
                "Could not reschedule user %s after a preference change",
                user_id,
                extra={"action": "RESCHEDULE_ERROR", "user_id": user_id},
            )
            await target.send(messages.RESCHEDULE_FAILED)

    # --- Command entry points ---

    async def _enter(
        self,
        user_id: int,
        state: DialogueState,
        target: ReplyTarget,
        prompt: str,
        *,
        rich: bool = False,
    ) -> None:
        async with self.states.lock(user_id):
            self.states.set(user_id, state)
        await target.send(prompt, rich=rich)

    async def on_start(self, user_id: int, target: ReplyTarget) -> None:
        await self._enter(
            user_id, DialogueState.AWAITING_TIME, target, messages.welcome(self.prefix), rich=True
        )

    async def on_subscribe(self, user_id: int, target: ReplyTarget) -> None:
        await self._enter(user_id, DialogueState.AWAITING_TIME, target, messages.SUBSCRIBE_PROMPT)

    async def on_change_time(self, user_id: int, target: ReplyTarget) -> None:
        await self._enter(user_id, DialogueState.AWAITING_TIME, target, messages.TIME_PROMPT)

    async def on_change_city(self, user_id: int, target: ReplyTarget) -> None:
        await self._enter(user_id, DialogueState.AWAITING_CITY, target, messages.CITY_PROMPT)

    async def on_change_date(self, user_id: int, target: ReplyTarget) -> None:
        await self._enter(user_id, DialogueState.AWAITING_DATE, target, messages.DATE_PROMPT)

    async def on_update_all(self, user_id: int, target: ReplyTarget) -> None:
        await self._enter(user_id, DialogueState.UPDATE_ALL, target, messages.UPDATE_ALL_PROMPT)

    async def on_gt(self, user_id: int, target: ReplyTarget) -> None:
        await self._enter(
            user_id, DialogueState.AWAITING_GT_INPUT, target, messages.CITY_DATE_PROMPT
        )

    async def on_dgt(self, user_id: int, target: ReplyTarget) -> None:
        await self._enter(
            user_id, DialogueState.AWAITING_DGT_INPUT, target, messages.CITY_DATE_PROMPT
        )

    async def on_cgt(self, user_id: int, target: ReplyTarget) -> None:
        await self._enter(
            user_id, DialogueState.AWAITING_CGT_INPUT, target, messages.CITY_DATE_PROMPT
        )

    async def on_help(self, user_id: int, target: ReplyTarget) -> None:
        await target.send(messages.help_text(self.prefix), rich=True)

    async def on_cancel(self, user_id: int, target: ReplyTarget) -> None:
        async with self.states.lock(user_id):
            had_state = self.states.delete(user_id)
        if had_state:
            await target.send(messages.cancelled(self.prefix))
        else:
            await target.send(messages.nothing_to_cancel(self.prefix))

    async def on_stop(self, user_id: int, target: ReplyTarget) -> None:
        """Unsubscribe, keeping city and start date for a later re-subscribe."""
        async with self.states.lock(user_id):
            try:
                prefs = await self._store.get_preferences(user_id)
                if prefs is None or not prefs.is_subscribed:
                    await target.send(messages.not_subscribed())
                    return
                await self._store.save_preferences(
                    user_id,
                    {
                        "is_subscribed": False,
                        "subscription_types": [],
                        "notification_time": None,
                    },
                )
            except TransientInfraError:
                LOGGER.exception(
                    "Stop failed for user %s",
                    user_id,
                    extra={"action": "STOP_ERROR", "user_id": user_id},
                )
                await target.send(messages.STOP_FAILED)
                return

            self._scheduler.cancel(user_id)

        LOGGER.info("User %s unsubscribed", user_id, extra={"action": "UNSUBSCRIBED", "user_id": user_id})
        await target.send(messages.unsubscribed(self.prefix))

    async def on_status(self, user_id: int, target: ReplyTarget) -> None:
        try:
            prefs = await self._store.get_preferences(user_id)
        except TransientInfraError:
            LOGGER.exception("Status lookup failed for user %s", user_id)
            await target.send(messages.STATUS_FAILED)
            return

        if prefs is None:
            await target.send(messages.no_preferences(self.prefix))
            return

        timezone = await self._status_timezone(user_id, prefs.city)
        await target.send(messages.status(prefs, timezone, self.prefix), rich=True)

    async def _status_timezone(self, user_id: int, city: str | None) -> str | None:
        rule = self._scheduler.get_rule(user_id)
        if rule is not None:
            return rule.timezone
        if not city:
            return None
        try:
            return await self._resolver.resolve_timezone(city)
        except (NotFoundError, TransientInfraError) as exc:
            LOGGER.info("No timezone for status of user %s: %s", user_id, exc)
            return None


_STEP_HANDLERS: dict[DialogueState, StepHandler] = {
    DialogueState.AWAITING_TIME: DialogueStateMachine._step_time,
    DialogueState.UPDATE_ALL: DialogueStateMachine._step_time,
    DialogueState.AWAITING_CITY: DialogueStateMachine._step_city,
    DialogueState.AWAITING_DATE: DialogueStateMachine._step_date,
    DialogueState.AWAITING_SUBSCRIBE_TYPE: DialogueStateMachine._step_subscribe_type,
    **{
        state: functools.partial(DialogueStateMachine._step_one_shot, kind=kind)
        for state, kind in ONE_SHOT_STATES.items()
    },
}
