"""Firestore repository for user preferences."""

from __future__ import annotations

from collections.abc import Mapping
from datetime import datetime, timezone
from typing import TYPE_CHECKING, Any

from panchangbot.modules.preferences.models import UserPreferences

if TYPE_CHECKING:
    from google.cloud.firestore import Client as FirestoreClient


PREFERENCES_COLLECTION = "user_preferences"


def _user_doc_id(user_id: int) -> str:
    """Generate document ID for user preference documents."""
    return str(user_id)


def get_preferences(firestore: FirestoreClient, user_id: int) -> UserPreferences | None:
    """Get a user's stored preferences."""
    doc = (
        firestore.collection(PREFERENCES_COLLECTION)
        .document(_user_doc_id(user_id))
        .get()
    )
    if not doc.exists:
        return None
    return UserPreferences.from_firestore(doc.to_dict())


def save_preferences(
    firestore: FirestoreClient, user_id: int, update: Mapping[str, Any]
) -> None:
    """Merge ``update`` into the user's document, creating it if needed."""
    payload = {
        **update,
        "user_id": user_id,
        "last_updated": datetime.now(timezone.utc),
    }
    firestore.collection(PREFERENCES_COLLECTION).document(_user_doc_id(user_id)).set(
        payload, merge=True
    )


def get_all_subscribed(firestore: FirestoreClient) -> list[UserPreferences]:
    """Get every user with daily updates switched on."""
    docs = (
        firestore.collection(PREFERENCES_COLLECTION)
        .where("is_subscribed", "==", True)
        .stream()
    )
    return [UserPreferences.from_firestore(doc.to_dict()) for doc in docs]


def check_connection(firestore: FirestoreClient) -> None:
    """Issue a cheap read so connection problems surface at startup."""
    firestore.collection(PREFERENCES_COLLECTION).limit(1).get()
