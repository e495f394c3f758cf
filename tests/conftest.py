"""Shared fixtures: in-memory store, fake collaborators and a live scheduler."""

from __future__ import annotations

from collections import defaultdict

import pytest
import pytest_asyncio
from fakes import FakeResolver, FlakyStore, RecordingDelivery, RecordingTarget

from panchangbot.modules.dialogue.machine import DialogueStateMachine
from panchangbot.modules.notifications.scheduler import NotificationScheduler


@pytest.fixture
def store() -> FlakyStore:
    return FlakyStore()


@pytest.fixture
def resolver() -> FakeResolver:
    return FakeResolver()


@pytest.fixture
def delivery() -> RecordingDelivery:
    return RecordingDelivery()


@pytest.fixture
def targets() -> defaultdict[int, RecordingTarget]:
    """Addressed-send targets, one per user id, as the scheduler sees them."""
    return defaultdict(RecordingTarget)


@pytest.fixture
def target() -> RecordingTarget:
    return RecordingTarget()


@pytest_asyncio.fixture
async def scheduler(store, resolver, delivery, targets):
    sched = NotificationScheduler(
        store,
        resolver,
        delivery,
        targets.__getitem__,
        misfire_grace_time=60,
        resolve_timeout=0.5,
    )
    sched.start()
    yield sched
    sched.shutdown()


@pytest_asyncio.fixture
async def machine(store, scheduler, delivery, resolver) -> DialogueStateMachine:
    return DialogueStateMachine(store, scheduler, delivery, resolver, command_prefix="/")
