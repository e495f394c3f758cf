from __future__ import annotations

import asyncio
from enum import Enum

from panchangbot.modules.preferences.models import SubscriptionType
from panchangbot.utils import KeyedLocks


class DialogueState(str, Enum):
    AWAITING_TIME = "awaiting_time"
    AWAITING_CITY = "awaiting_city"
    AWAITING_DATE = "awaiting_date"
    AWAITING_SUBSCRIBE_TYPE = "awaiting_subscribe_type"
    AWAITING_GT_INPUT = "awaiting_gt_input"
    AWAITING_DGT_INPUT = "awaiting_dgt_input"
    AWAITING_CGT_INPUT = "awaiting_cgt_input"
    UPDATE_ALL = "update_all"


# One-shot state -> the table it fetches
ONE_SHOT_STATES: dict[DialogueState, SubscriptionType] = {
    DialogueState.AWAITING_GT_INPUT: SubscriptionType.GT,
    DialogueState.AWAITING_DGT_INPUT: SubscriptionType.DGT,
    DialogueState.AWAITING_CGT_INPUT: SubscriptionType.CGT,
}


class ConversationStates:
    """In-memory map of user id -> dialogue state, plus a lock per user.

    Values are kept as raw strings so a value this version does not recognize
    (left behind by a newer build sharing the map, say) is detected at lookup
    time instead of failing on write.
    """

    def __init__(self) -> None:
        self._states: dict[int, str] = {}
        self._locks = KeyedLocks()

    def get(self, user_id: int) -> str | None:
        return self._states.get(user_id)

    def set(self, user_id: int, state: DialogueState | str) -> None:
        self._states[user_id] = state.value if isinstance(state, DialogueState) else state

    def delete(self, user_id: int) -> bool:
        return self._states.pop(user_id, None) is not None

    def lock(self, user_id: int) -> asyncio.Lock:
        return self._locks(user_id)

    def __contains__(self, user_id: object) -> bool:
        return user_id in self._states

    def __len__(self) -> int:
        return len(self._states)
