# Timezones Module
# Maps a user's city to the timezone their daily updates run in

from panchangbot.modules.timezones.resolver import (
    GeoNamesTimezoneResolver,
    TimezoneResolver,
)

__all__ = [
    "GeoNamesTimezoneResolver",
    "TimezoneResolver",
]
