"""Shared utilities for Panchang Bot modules."""

from __future__ import annotations

import asyncio
import weakref
from collections.abc import Hashable


class KeyedLocks:
    """One ``asyncio.Lock`` per key.

    Serializes work for a single key (a user) without making unrelated keys
    wait on each other. A lock lives only while someone holds or awaits it,
    so keys that go quiet do not pile up.
    """

    def __init__(self) -> None:
        self._locks: weakref.WeakValueDictionary[Hashable, asyncio.Lock] = (
            weakref.WeakValueDictionary()
        )

    def __call__(self, key: Hashable) -> asyncio.Lock:
        lock = self._locks.get(key)
        if lock is None:
            lock = asyncio.Lock()
            self._locks[key] = lock
        return lock

    def __len__(self) -> int:
        return len(self._locks)
