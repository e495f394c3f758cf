from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable
from datetime import datetime

from apscheduler.job import Job
from apscheduler.jobstores.base import JobLookupError
from apscheduler.schedulers.asyncio import AsyncIOScheduler

from panchangbot.exceptions import TransientInfraError, ValidationError
from panchangbot.messaging import ReplyTarget
from panchangbot.modules.content.delivery import ContentHandler
from panchangbot.modules.notifications.models import RecurrenceRule, local_date
from panchangbot.modules.preferences.models import SubscriptionType, UserPreferences
from panchangbot.modules.preferences.store import PreferenceStore
from panchangbot.modules.timezones.resolver import TimezoneResolver
from panchangbot.utils import KeyedLocks

LOGGER = logging.getLogger(__name__)

TargetFactory = Callable[[int], ReplyTarget]


def _job_id(user_id: int) -> str:
    return f"notify:{user_id}"


class ScheduledJob:
    """Handle for one user's daily job."""

    def __init__(self, user_id: int, rule: RecurrenceRule, job: Job) -> None:
        self.user_id = user_id
        self.rule = rule
        self._job = job
        self.cancelled = False

    def cancel(self) -> None:
        if self.cancelled:
            return
        self.cancelled = True
        try:
            self._job.remove()
        except JobLookupError:
            pass


class NotificationScheduler:
    """Owns at most one recurring delivery job per subscribed user."""

    def __init__(
        self,
        store: PreferenceStore,
        resolver: TimezoneResolver,
        delivery: ContentHandler,
        target_factory: TargetFactory,
        *,
        misfire_grace_time: int = 300,
        resolve_timeout: float = 15.0,
        delivery_timeout: float = 120.0,
        scheduler: AsyncIOScheduler | None = None,
    ) -> None:
        self._store = store
        self._resolver = resolver
        self._delivery = delivery
        self._target_factory = target_factory
        self._misfire_grace_time = misfire_grace_time
        self._resolve_timeout = resolve_timeout
        self._delivery_timeout = delivery_timeout
        self._scheduler = scheduler or AsyncIOScheduler()
        self._jobs: dict[int, ScheduledJob] = {}
        self._locks = KeyedLocks()

    def start(self) -> None:
        if not self._scheduler.running:
            self._scheduler.start()

    @property
    def job_count(self) -> int:
        return len(self._jobs)

    def has_job(self, user_id: int) -> bool:
        return user_id in self._jobs

    def get_rule(self, user_id: int) -> RecurrenceRule | None:
        job = self._jobs.get(user_id)
        return job.rule if job else None

    def live_job_ids(self) -> list[str]:
        """Job ids registered with APScheduler right now."""
        return [job.id for job in self._scheduler.get_jobs()]

    async def _resolve(self, city: str) -> str:
        try:
            return await asyncio.wait_for(
                self._resolver.resolve_timezone(city), timeout=self._resolve_timeout
            )
        except asyncio.TimeoutError as exc:
            raise TransientInfraError(f"Timezone lookup for {city!r} timed out") from exc

    async def schedule(self, user_id: int, preferences: UserPreferences) -> ScheduledJob:
        """(Re)install the daily job for ``user_id``.

        Any existing job is cancelled first. Resolution errors propagate and
        leave the user with no job.
        """
        async with self._locks(user_id):
            self.cancel(user_id)

            if not preferences.city:
                raise ValidationError("city", preferences.city)
            if not preferences.notification_time:
                raise ValidationError("time", preferences.notification_time)

            timezone = await self._resolve(preferences.city)
            rule = RecurrenceRule.from_time(preferences.notification_time, timezone)

            job = self._scheduler.add_job(
                self.run_tick,
                trigger=rule.to_trigger(),
                args=[user_id, rule.timezone],
                id=_job_id(user_id),
                name=f"daily updates for {user_id}",
                replace_existing=True,
                coalesce=True,
                misfire_grace_time=self._misfire_grace_time,
            )
            handle = ScheduledJob(user_id, rule, job)
            self._jobs[user_id] = handle

        LOGGER.info(
            "Scheduled daily updates for user %s at %s",
            user_id,
            rule.describe(),
            extra={"action": "SCHEDULE_SET", "user_id": user_id, "timezone": timezone},
        )
        return handle

    def cancel(self, user_id: int) -> bool:
        """Cancel the user's job. Returns whether there was one."""
        handle = self._jobs.pop(user_id, None)
        if handle is None:
            return False
        handle.cancel()
        LOGGER.info(
            "Cancelled daily updates for user %s",
            user_id,
            extra={"action": "SCHEDULE_CANCEL", "user_id": user_id},
        )
        return True

    async def run_tick(
        self, user_id: int, timezone: str, *, now: datetime | None = None
    ) -> list[SubscriptionType]:
        """Deliver today's tables to one user. Returns the kinds delivered.

        Preferences are re-read here, so a user who unsubscribed after the job
        was installed gets nothing.
        """
        try:
            prefs = await self._store.get_preferences(user_id)
        except TransientInfraError:
            LOGGER.exception("Could not load preferences for user %s", user_id)
            return []

        if prefs is None or not prefs.is_subscribed or not prefs.city:
            LOGGER.info("Skipping delivery for unsubscribed user %s", user_id)
            return []

        today = local_date(timezone, now)
        target = self._target_factory(user_id)
        delivered: list[SubscriptionType] = []
        for kind in prefs.subscription_kinds:
            try:
                await asyncio.wait_for(
                    self._delivery.deliver(kind, target, prefs.city, today),
                    timeout=self._delivery_timeout,
                )
            except Exception:
                LOGGER.exception(
                    "Failed to deliver %s to user %s",
                    kind.value,
                    user_id,
                    extra={"action": "NOTIFICATION_ERROR", "user_id": user_id, "kind": kind.value},
                )
                continue
            delivered.append(kind)

        LOGGER.info(
            "Sent daily updates to user %s for %s (%s)",
            user_id,
            today,
            timezone,
            extra={"action": "NOTIFICATION_SENT", "user_id": user_id},
        )
        return delivered

    async def initialize_all(self) -> int:
        """Install jobs for every subscribed user. Returns how many were installed."""
        try:
            subscribers = await self._store.get_all_subscribed()
        except TransientInfraError:
            LOGGER.exception("Failed to load subscribers; no schedules installed")
            return 0

        installed = 0
        for prefs in subscribers:
            if not prefs.is_schedulable:
                LOGGER.warning("Subscriber %s has incomplete preferences; skipped", prefs.user_id)
                continue
            try:
                await self.schedule(prefs.user_id, prefs)
            except Exception:
                LOGGER.exception("Failed to schedule updates for user %s", prefs.user_id)
                continue
            installed += 1

        LOGGER.info(
            "Initialized %d of %d notification schedules",
            installed,
            len(subscribers),
            extra={"action": "SCHEDULES_INITIALIZED"},
        )
        return installed

    def shutdown(self) -> None:
        """Cancel every job and stop the timer loop. Safe to call repeatedly."""
        for user_id in list(self._jobs):
            self.cancel(user_id)
        if self._scheduler.running:
            self._scheduler.shutdown(wait=False)
