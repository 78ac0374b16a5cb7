from __future__ import annotations

import struct
from enum import IntEnum

# Wire header: magic, version, event type, body length, reserved (big-endian).
FRAME_MAGIC = 0xDEADBEEF
PROTOCOL_VERSION = 1
HEADER_STRUCT = struct.Struct(">IHHII")
HEADER_SIZE = HEADER_STRUCT.size  # 16

INTENTION = "checkAutoStatus"


class EventType(IntEnum):
    USER_MESSAGE = 1001
    CLIENT_TERMINATE = 1002
    AGENT_REPLY = 2001
    TURN_FINISHED = 2002
    TOOL_NOT_SUPPORTED = 2003  # protocol table only, never emitted here
    MEMORY_ACTION = 3000


class MemoryAction:
    QUERY = "query_tool_memory"
    SAVE = "save_tool_memory"
