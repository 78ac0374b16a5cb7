from __future__ import annotations

import uuid
from typing import Any, Literal

from pydantic import BaseModel, Field, ValidationError

from autostatus.constants import INTENTION, EventType, MemoryAction
from autostatus.infra.errors import BodyParseError


class Attachment(BaseModel):
    type: str
    name: str | None = None
    file_id: str | None = None
    option: Any = None


class MessageContent(BaseModel):
    content: str
    attachments: list[Attachment] = Field(default_factory=list)


class UserTurn(BaseModel):
    """Inbound 1001 body: one free-text turn from the user."""

    event_type: int = int(EventType.USER_MESSAGE)
    dialog_id: str
    user_id: str = ""
    message_id: str | None = None
    messages: MessageContent

    @property
    def content(self) -> str:
        return self.messages.content


class AgentReply(BaseModel):
    """Outbound 2001 body. end is only serialized on the final reply of a turn."""

    event_type: int = int(EventType.AGENT_REPLY)
    dialog_id: str
    user_id: str
    end: bool | None = None
    intention: str = INTENTION
    message_id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    messages: MessageContent


class TurnFinishedMessage(BaseModel):
    """Outbound 2002 body: end-of-turn signal, optionally with a closing text."""

    event_type: int = int(EventType.TURN_FINISHED)
    dialog_id: str
    user_id: str
    intention: str = INTENTION
    message_id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    messages: MessageContent


class MemoryInstruction(BaseModel):
    """3000 body, posted to the memory store. dialog_id carries the lookup scope."""

    event_type: int = int(EventType.MEMORY_ACTION)
    action: Literal["query_tool_memory", "save_tool_memory"] = MemoryAction.QUERY
    key: str
    value: Any = None
    dialog_id: str


def parse_user_turn(body: Any) -> UserTurn:
    """Validate a decoded 1001 body.

    Raises BodyParseError(code="INVALID_USER_TURN") on schema mismatch.
    """
    try:
        return UserTurn.model_validate(body)
    except ValidationError as e:
        raise BodyParseError(f"Invalid user turn: {e}", code="INVALID_USER_TURN") from e


def dump_body(message: BaseModel) -> dict[str, Any]:
    """Frame body dict, with unset optional fields omitted."""
    return message.model_dump(mode="json", exclude_none=True)
