from __future__ import annotations

from dataclasses import dataclass


@dataclass
class TextReply:
    """A reply to show the user (sent as 2001). end marks the turn's last reply."""

    content: str
    end: bool = False


@dataclass
class TurnFinished:
    """End-of-turn signal (sent as 2002), optionally carrying a closing text."""

    content: str = ""


DialogEvent = TextReply | TurnFinished
