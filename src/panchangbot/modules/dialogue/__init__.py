# Dialogue Module
# Multi-step preference conversation and the command router that feeds it

from panchangbot.modules.dialogue.commands import COMMAND_HANDLERS, Command, dispatch
from panchangbot.modules.dialogue.machine import DialogueStateMachine
from panchangbot.modules.dialogue.states import ConversationStates, DialogueState

__all__ = [
    "COMMAND_HANDLERS",
    "Command",
    "ConversationStates",
    "DialogueState",
    "DialogueStateMachine",
    "dispatch",
]
