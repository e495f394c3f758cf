# Notifications Module
# Daily, timezone-aware delivery jobs for subscribed users

from panchangbot.modules.notifications.models import RecurrenceRule
from panchangbot.modules.notifications.scheduler import NotificationScheduler, ScheduledJob

__all__ = [
    "NotificationScheduler",
    "RecurrenceRule",
    "ScheduledJob",
]
