"""Frame codec: 16-byte big-endian header followed by a UTF-8 JSON body.

Header layout: magic (u32) | version (u16) | event type (u16) |
body length (u32) | reserved (u32, always 0).
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Any

from autostatus.constants import FRAME_MAGIC, HEADER_SIZE, HEADER_STRUCT, PROTOCOL_VERSION


@dataclass(frozen=True)
class FrameHeader:
    magic: int
    version: int
    event_type: int
    body_length: int

    @property
    def valid(self) -> bool:
        return self.magic == FRAME_MAGIC


def encode(event_type: int, payload: Any) -> bytes:
    """Serialize payload to JSON and prepend the protocol header.

    payload must be JSON-serializable; non-ASCII text is written as raw UTF-8.
    """
    body = json.dumps(payload, ensure_ascii=False).encode("utf-8")
    header = HEADER_STRUCT.pack(FRAME_MAGIC, PROTOCOL_VERSION, int(event_type), len(body), 0)
    return header + body


def decode_header(data: bytes) -> FrameHeader:
    """Decode exactly HEADER_SIZE bytes. Does not validate the magic."""
    if len(data) != HEADER_SIZE:
        raise ValueError(f"header must be {HEADER_SIZE} bytes (got {len(data)})")
    magic, version, event_type, body_length, _reserved = HEADER_STRUCT.unpack(data)
    return FrameHeader(
        magic=magic,
        version=version,
        event_type=event_type,
        body_length=body_length,
    )
