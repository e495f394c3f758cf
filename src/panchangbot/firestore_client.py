from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from pathlib import Path
from typing import Any, TypeVar

from google.api_core import exceptions as gexc

from panchangbot.config import Config
from panchangbot.exceptions import StoreUnavailableError
from panchangbot.modules.preferences import repo

LOGGER = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass(frozen=True)
class RetryPolicy:
    """How often to retry the initial Firestore connection."""

    max_attempts: int = 5
    delay_seconds: float = 5.0
    backoff: float = 1.0

    def delay_for(self, attempt: int) -> float:
        """Delay after failed attempt number ``attempt`` (1-based)."""
        return self.delay_seconds * (self.backoff ** (attempt - 1))

    @classmethod
    def from_config(cls, config: Config) -> RetryPolicy:
        return cls(
            max_attempts=config.store_connect_attempts,
            delay_seconds=config.store_connect_delay_seconds,
        )


def init_firestore(config: Config):
    """Initialize Firebase Admin SDK and return a Firestore client.

    Returns None when Firebase is disabled.

    Notes:
    - Uses a service-account JSON when FIREBASE_CREDENTIALS_PATH is provided.
    - Otherwise relies on Application Default Credentials (ADC).
    """

    if not config.firebase_enabled:
        return None

    import firebase_admin
    from firebase_admin import credentials, firestore

    options: dict[str, Any] = {}
    if config.firebase_project_id:
        options["projectId"] = config.firebase_project_id

    try:
        app = firebase_admin.get_app()
    except ValueError:
        cred = None
        if config.firebase_credentials_path:
            cred_path = Path(config.firebase_credentials_path)
            if not cred_path.exists():
                raise ValueError(
                    f"FIREBASE_CREDENTIALS_PATH does not exist: {cred_path}"
                )
            cred = credentials.Certificate(str(cred_path))

        app = firebase_admin.initialize_app(cred, options or None)

    return firestore.client(app=app)


def open_firestore(config: Config):
    """Create the client and prove it can reach the database."""
    client = init_firestore(config)
    if client is not None:
        repo.check_connection(client)
    return client


async def connect_with_retry(
    connect: Callable[[], T],
    policy: RetryPolicy,
    *,
    sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
) -> T:
    """Run the blocking ``connect`` callable until it succeeds or attempts run out.

    Only connectivity failures are retried; configuration mistakes (bad
    credentials path) propagate immediately.
    """
    for attempt in range(1, policy.max_attempts + 1):
        try:
            return await asyncio.to_thread(connect)
        except (gexc.GoogleAPIError, OSError) as exc:
            LOGGER.warning(
                "Firestore connection attempt %d/%d failed: %s",
                attempt,
                policy.max_attempts,
                exc,
                extra={"action": "DB_RETRY"},
            )
            if attempt == policy.max_attempts:
                raise StoreUnavailableError(
                    f"Could not connect to Firestore after {attempt} attempts"
                ) from exc
            await sleep(policy.delay_for(attempt))
    raise StoreUnavailableError("No connection attempts configured")
