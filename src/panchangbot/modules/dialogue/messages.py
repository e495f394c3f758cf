"""Reply texts for the dialogue.

Texts that name commands take the active command prefix. Rich texts (welcome,
help, status) are sent with markdown intact; user-supplied values inside them
are escaped here.
"""

from __future__ import annotations

import discord

from panchangbot.modules.preferences.models import SubscriptionType, UserPreferences

TIME_FORMAT_HINT = "⚠️ Invalid time format. Please use HH:MM (e.g., 08:00)"
CITY_HINT = "⚠️ City name is too short. Please enter at least 3 characters."
DATE_FORMAT_HINT = "⚠️ Invalid date format. Please use YYYY-MM-DD"
MENU_HINT = "⚠️ Invalid option. Please select a number between 1-6"
CITY_DATE_HINT = "⚠️ Invalid format. Please use: City, YYYY-MM-DD"

TIME_SAVED = "✅ Notification time saved! Now please enter your city:"
CITY_SAVED = "✅ City saved! Now enter start date (YYYY-MM-DD):"

SUBSCRIBE_PROMPT = (
    "Please enter the time you want to receive daily updates (24-hour format).\n\n"
    "Format: HH:MM (e.g., 08:00)"
)
TIME_PROMPT = "Please enter your notification time (24-hour format, e.g., 08:00):"
CITY_PROMPT = "Please enter your city name:"
DATE_PROMPT = "Please enter start date (YYYY-MM-DD):"
UPDATE_ALL_PROMPT = (
    "Let's update all your preferences.\n"
    "First, enter your preferred time (24-hour format, e.g., 08:00):"
)
CITY_DATE_PROMPT = "Please enter the city and date in the format: City, YYYY-MM-DD"

SUBSCRIPTION_MENU_TEXT = (
    "Please select the type of updates you want to receive.\n\n"
    "Available options:\n"
    "1️⃣ GT - Good Times Table\n"
    "2️⃣ DGT - Drik Panchang Table\n"
    "3️⃣ CGT - Combined Table\n"
    "4️⃣ GT+DGT\n"
    "5️⃣ GT+CGT\n"
    "6️⃣ ALL\n\n"
    "Reply with the number (1-6):"
)

TRY_AGAIN = "❌ Something went wrong on our side. Please try again later."
SUBSCRIPTION_FAILED = "❌ Error saving subscription. Please try again."
STOP_FAILED = "❌ Error processing your request. Please try again."
STATUS_FAILED = "❌ Error retrieving your preferences. Please try again."
RESCHEDULE_FAILED = (
    "⚠️ Your preferences were saved, but your daily schedule could not be updated right now. "
    "It will be restored the next time the bot restarts."
)
GENERIC_ERROR = "⚠️ An error occurred. Please try again later."

_FIELD_HINTS = {
    "time": TIME_FORMAT_HINT,
    "city": CITY_HINT,
    "date": DATE_FORMAT_HINT,
    "menu": MENU_HINT,
    "city_date": CITY_DATE_HINT,
}

_CONTENT_LABELS = {
    SubscriptionType.GT: "time table",
    SubscriptionType.DGT: "Drik Panchang table",
    SubscriptionType.CGT: "combined table",
}


def invalid_input(field: str) -> str:
    return _FIELD_HINTS.get(field, GENERIC_ERROR)


def city_not_found(city: str) -> str:
    return f"❌ Could not find a timezone for '{city}'. Please check the city name and try again."


def content_failed(kind: SubscriptionType) -> str:
    return f"⚠️ Error generating {_CONTENT_LABELS[kind]}. Please try again."


def unknown_state(prefix: str) -> str:
    return f"⚠️ Something went wrong with that conversation. Use {prefix}help to see available commands."


def incomplete_preferences(prefix: str) -> str:
    return (
        "❌ Your time and city must be set before subscribing. "
        f"Use {prefix}subscribe to set them up."
    )


def not_subscribed() -> str:
    return "❌ You are not currently subscribed to any updates."


def unsubscribed(prefix: str) -> str:
    return (
        "✅ Successfully unsubscribed from daily updates. Your other preferences have been kept.\n\n"
        f"Use {prefix}subscribe to subscribe again."
    )


def no_preferences(prefix: str) -> str:
    return f"No preferences set. Use {prefix}subscribe to set up your preferences."


def cancelled(prefix: str) -> str:
    return f"✅ Command cancelled. You can start a new command with {prefix}gt or {prefix}dgt"


def nothing_to_cancel(prefix: str) -> str:
    return f"No active command to cancel. Use {prefix}help to see available commands."


def _type_list(kinds: list[SubscriptionType]) -> str:
    return ", ".join(kind.display_name for kind in kinds)


def subscription_confirmed(prefs: UserPreferences) -> str:
    return (
        "✅ Subscription successful!\n\n"
        f"📍 City: {prefs.city}\n"
        f"⏰ Daily Updates Time: {prefs.notification_time}\n"
        f"📅 Start Date: {prefs.start_date or 'Not set'}\n"
        f"📊 Selected Updates: {_type_list(prefs.subscription_kinds)}\n\n"
        f"You will receive your selected updates daily at {prefs.notification_time}."
    )


def welcome(prefix: str) -> str:
    return (
        "🙏 **Welcome to Panchang Bot!** 🙏\n\n"
        "Let's set up your daily updates:\n"
        "1️⃣ First, enter your preferred time (24-hour format, e.g., 08:00)\n"
        "2️⃣ Then your city\n"
        "3️⃣ Finally, the start date\n\n"
        "You can also use:\n"
        f"`{prefix}gt` - Get good time intervals\n"
        f"`{prefix}dgt` - Get Drik Panchang timings\n"
        f"`{prefix}cgt` - Get combined good times\n\n"
        f"Use `{prefix}help` to see all commands."
    )


def help_text(prefix: str) -> str:
    p = prefix
    return (
        "✨ **Panchang Bot Commands** ✨\n"
        "━━━━━━━━━━━━━━━━━━━━━━━━━\n"
        "🔸 **Daily Updates**\n"
        f"`{p}start` - Set up preferences\n"
        f"`{p}subscribe` - Enable daily updates\n"
        f"`{p}stop` - Disable updates\n\n"
        "🔸 **Manage Preferences**\n"
        f"`{p}change_time` - Update time\n"
        f"`{p}change_city` - Change city\n"
        f"`{p}change_date` - Modify start date\n"
        f"`{p}update_all` - Update all settings\n"
        f"`{p}status` - View current settings\n\n"
        "🔸 **Panchang Commands**\n"
        f"`{p}gt` - Get good times\n"
        f"`{p}dgt` - Get Drik times\n"
        f"`{p}cgt` - Get combined times\n"
        f"`{p}cancel` - Cancel current command\n\n"
        "📝 **Format Examples:**\n"
        "• Time: 08:00\n"
        "• City: Vijayawada\n"
        "• Date: 2024-01-25\n"
        "━━━━━━━━━━━━━━━━━━━━━━━━━"
    )


def _escape(value: str | None) -> str:
    if not value:
        return "Not set"
    return discord.utils.escape_markdown(value)


def status(prefs: UserPreferences, timezone: str | None, prefix: str) -> str:
    tz = _escape(timezone or "Unknown")
    last_updated = (
        prefs.last_updated.strftime("%Y-%m-%d %H:%M UTC") if prefs.last_updated else "Never"
    )
    lines = [
        "**Current Settings**",
        "",
        f"🌆 City: {_escape(prefs.city)}",
        f"🌍 Timezone: {tz}",
        f"📅 Start Date: {_escape(prefs.start_date)}",
        f"⏰ Notification Time: {_escape(prefs.notification_time)} ({tz})",
        f"📱 Subscription Status: {'✅ Active' if prefs.is_subscribed else '❌ Inactive'}",
    ]
    kinds = prefs.subscription_kinds
    if prefs.is_subscribed and kinds:
        lines.append(f"📬 Subscribed Updates: {_escape(_type_list(kinds))}")
    lines.append(f"🔄 Last Updated: {last_updated}")
    lines += [
        "",
        "**Available Commands:**",
        f"• `{prefix}subscribe` - Enable daily updates",
        f"• `{prefix}stop` - Disable updates",
        f"• `{prefix}change_time` - Update notification time",
        f"• `{prefix}change_city` - Change city",
        f"• `{prefix}change_date` - Modify start date",
    ]
    return "\n".join(lines)
