from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any


class SubscriptionType(str, Enum):
    """Content kinds a user can have delivered."""

    GT = "gt"
    DGT = "dgt"
    CGT = "cgt"

    @property
    def display_name(self) -> str:
        return TYPE_NAMES[self]


TYPE_NAMES: dict[SubscriptionType, str] = {
    SubscriptionType.GT: "Good Times Table",
    SubscriptionType.DGT: "Drik Panchang Table",
    SubscriptionType.CGT: "Combined Table",
}

# Menu selector -> subscription types
SUBSCRIPTION_MENU: dict[str, tuple[SubscriptionType, ...]] = {
    "1": (SubscriptionType.GT,),
    "2": (SubscriptionType.DGT,),
    "3": (SubscriptionType.CGT,),
    "4": (SubscriptionType.GT, SubscriptionType.DGT),
    "5": (SubscriptionType.GT, SubscriptionType.CGT),
    "6": (SubscriptionType.GT, SubscriptionType.DGT, SubscriptionType.CGT),
}

# Fields a caller may write; user_id and last_updated are owned by the store.
WRITABLE_FIELDS = frozenset(
    {
        "city",
        "notification_time",
        "start_date",
        "subscription_types",
        "is_subscribed",
    }
)


def check_update_fields(update: Mapping[str, Any]) -> None:
    """Reject partial updates that name unknown or store-owned fields."""
    unknown = set(update) - WRITABLE_FIELDS
    if unknown:
        raise ValueError(f"Unknown preference fields: {', '.join(sorted(unknown))}")


@dataclass
class UserPreferences:
    """A user's stored schedule settings."""

    user_id: int
    city: str | None = None
    notification_time: str | None = None  # HH:MM in the user's timezone
    start_date: str | None = None  # YYYY-MM-DD
    subscription_types: list[str] = field(default_factory=list)
    is_subscribed: bool = False
    last_updated: datetime | None = None

    @property
    def subscription_kinds(self) -> list[SubscriptionType]:
        """Known subscription types, skipping tags this version does not handle."""
        kinds: list[SubscriptionType] = []
        for tag in self.subscription_types:
            try:
                kind = SubscriptionType(tag)
            except ValueError:
                continue
            if kind not in kinds:
                kinds.append(kind)
        return kinds

    @property
    def is_schedulable(self) -> bool:
        """Whether the record carries everything a daily job needs."""
        return bool(
            self.is_subscribed
            and self.city
            and self.notification_time
            and self.subscription_kinds
        )

    def to_firestore(self) -> dict:
        return {
            "user_id": self.user_id,
            "city": self.city,
            "notification_time": self.notification_time,
            "start_date": self.start_date,
            "subscription_types": list(self.subscription_types),
            "is_subscribed": self.is_subscribed,
            "last_updated": self.last_updated,
        }

    @classmethod
    def from_firestore(cls, data: dict) -> UserPreferences:
        last_updated = data.get("last_updated")
        if last_updated is not None and not isinstance(last_updated, datetime):
            last_updated = last_updated.to_datetime()  # Firestore Timestamp

        return cls(
            user_id=int(data["user_id"]),
            city=data.get("city"),
            notification_time=data.get("notification_time"),
            start_date=data.get("start_date"),
            subscription_types=list(data.get("subscription_types") or []),
            is_subscribed=bool(data.get("is_subscribed", False)),
            last_updated=last_updated,
        )
