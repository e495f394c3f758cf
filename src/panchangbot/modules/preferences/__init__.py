# Preferences Module
# Per-user schedule settings, input validation and the persistence layer

from panchangbot.modules.preferences.models import (
    SUBSCRIPTION_MENU,
    SubscriptionType,
    UserPreferences,
)
from panchangbot.modules.preferences.store import (
    FirestorePreferenceStore,
    InMemoryPreferenceStore,
    PreferenceStore,
)

__all__ = [
    "SUBSCRIPTION_MENU",
    "SubscriptionType",
    "UserPreferences",
    "PreferenceStore",
    "FirestorePreferenceStore",
    "InMemoryPreferenceStore",
]
