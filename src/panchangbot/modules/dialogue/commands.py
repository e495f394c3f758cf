from __future__ import annotations

from collections.abc import Awaitable, Callable, Mapping
from enum import Enum
from types import MappingProxyType

from panchangbot.messaging import ReplyTarget
from panchangbot.modules.dialogue.machine import DialogueStateMachine


class Command(str, Enum):
    START = "start"
    SUBSCRIBE = "subscribe"
    CHANGE_TIME = "change_time"
    CHANGE_CITY = "change_city"
    CHANGE_DATE = "change_date"
    UPDATE_ALL = "update_all"
    STOP = "stop"
    STATUS = "status"
    CANCEL = "cancel"
    GT = "gt"
    DGT = "dgt"
    CGT = "cgt"
    HELP = "help"


EntryPoint = Callable[[DialogueStateMachine, int, ReplyTarget], Awaitable[None]]

COMMAND_HANDLERS: Mapping[Command, EntryPoint] = MappingProxyType(
    {
        Command.START: DialogueStateMachine.on_start,
        Command.SUBSCRIBE: DialogueStateMachine.on_subscribe,
        Command.CHANGE_TIME: DialogueStateMachine.on_change_time,
        Command.CHANGE_CITY: DialogueStateMachine.on_change_city,
        Command.CHANGE_DATE: DialogueStateMachine.on_change_date,
        Command.UPDATE_ALL: DialogueStateMachine.on_update_all,
        Command.STOP: DialogueStateMachine.on_stop,
        Command.STATUS: DialogueStateMachine.on_status,
        Command.CANCEL: DialogueStateMachine.on_cancel,
        Command.GT: DialogueStateMachine.on_gt,
        Command.DGT: DialogueStateMachine.on_dgt,
        Command.CGT: DialogueStateMachine.on_cgt,
        Command.HELP: DialogueStateMachine.on_help,
    }
)


async def dispatch(
    machine: DialogueStateMachine,
    command: Command | str,
    user_id: int,
    target: ReplyTarget,
) -> None:
    """Run the entry point for ``command``. Unknown names raise ``ValueError``."""
    handler = COMMAND_HANDLERS[Command(command)]
    await handler(machine, user_id, target)
