from __future__ import annotations

from unittest.mock import MagicMock

import pytest
from google.api_core import exceptions as gexc

from panchangbot.exceptions import StoreUnavailableError
from panchangbot.firestore_client import RetryPolicy, connect_with_retry


class _Sleeps:
    def __init__(self) -> None:
        self.delays: list[float] = []

    async def __call__(self, delay: float) -> None:
        self.delays.append(delay)


class TestRetryPolicy:
    def test_fixed_delay_by_default(self):
        policy = RetryPolicy(max_attempts=3, delay_seconds=5.0)
        assert [policy.delay_for(n) for n in (1, 2, 3)] == [5.0, 5.0, 5.0]

    def test_backoff(self):
        policy = RetryPolicy(max_attempts=3, delay_seconds=1.0, backoff=2.0)
        assert [policy.delay_for(n) for n in (1, 2, 3)] == [1.0, 2.0, 4.0]


class TestConnectWithRetry:
    @pytest.mark.asyncio
    async def test_succeeds_after_failures(self):
        client = object()
        connect = MagicMock(side_effect=[gexc.ServiceUnavailable("down"), OSError("dns"), client])
        sleeps = _Sleeps()

        result = await connect_with_retry(connect, RetryPolicy(max_attempts=5, delay_seconds=5.0), sleep=sleeps)

        assert result is client
        assert connect.call_count == 3
        assert sleeps.delays == [5.0, 5.0]

    @pytest.mark.asyncio
    async def test_gives_up_after_max_attempts(self):
        connect = MagicMock(side_effect=gexc.ServiceUnavailable("down"))
        sleeps = _Sleeps()

        with pytest.raises(StoreUnavailableError):
            await connect_with_retry(connect, RetryPolicy(max_attempts=5, delay_seconds=5.0), sleep=sleeps)

        assert connect.call_count == 5
        assert len(sleeps.delays) == 4

    @pytest.mark.asyncio
    async def test_config_errors_are_not_retried(self):
        connect = MagicMock(side_effect=ValueError("FIREBASE_CREDENTIALS_PATH does not exist"))
        sleeps = _Sleeps()

        with pytest.raises(ValueError):
            await connect_with_retry(connect, RetryPolicy(), sleep=sleeps)

        assert connect.call_count == 1
        assert sleeps.delays == []
