from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum

import structlog

logger = structlog.get_logger()


class DialogState(StrEnum):
    idle = "idle"
    awaiting_confirmation = "awaiting_confirmation"


@dataclass
class DialogSession:
    """Mutable slot state for one dialog_id.

    pending_* hold memory-sourced values until the user re-affirms them.
    """

    dialog_id: str
    state: DialogState = DialogState.idle
    repo_url: str | None = None
    tag: str | None = None
    pending_repo_url: str | None = None
    pending_tag: str | None = None

    @property
    def complete(self) -> bool:
        return bool(self.repo_url and self.tag)

    def stage(self, repo_url: str, tag: str) -> None:
        self.pending_repo_url = repo_url
        self.pending_tag = tag
        self.state = DialogState.awaiting_confirmation

    def take_pending(self) -> tuple[str | None, str | None]:
        """Return and clear the staged values; always leaves the session idle."""
        staged = (self.pending_repo_url, self.pending_tag)
        self.pending_repo_url = None
        self.pending_tag = None
        self.state = DialogState.idle
        return staged

    def clear_slots(self) -> None:
        self.repo_url = None
        self.tag = None

    def reset(self) -> None:
        self.take_pending()
        self.clear_slots()


class DialogSessionStore:
    """Per-channel session records keyed by dialog_id (in-memory only)."""

    def __init__(self) -> None:
        self._sessions: dict[str, DialogSession] = {}

    def get_or_create(self, dialog_id: str) -> DialogSession:
        if dialog_id not in self._sessions:
            logger.info("dialog_session_created", dialog_id=dialog_id)
            self._sessions[dialog_id] = DialogSession(dialog_id=dialog_id)
        return self._sessions[dialog_id]

    def get(self, dialog_id: str) -> DialogSession | None:
        return self._sessions.get(dialog_id)

    def __len__(self) -> int:
        return len(self._sessions)
