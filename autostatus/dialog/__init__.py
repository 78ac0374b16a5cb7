"""Slot-filling dialog for the auto build status check."""

from autostatus.dialog.events import DialogEvent, TextReply, TurnFinished
from autostatus.dialog.machine import DialogStateMachine
from autostatus.dialog.session import DialogSession, DialogSessionStore, DialogState

__all__ = [
    "DialogEvent",
    "DialogSession",
    "DialogSessionStore",
    "DialogState",
    "DialogStateMachine",
    "TextReply",
    "TurnFinished",
]
