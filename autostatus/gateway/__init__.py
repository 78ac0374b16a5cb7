"""Host channel: binary framing, frame bodies, connection handling."""

from autostatus.gateway.codec import FrameHeader, decode_header, encode
from autostatus.gateway.reassembler import Frame, StreamReassembler

__all__ = [
    "Frame",
    "FrameHeader",
    "StreamReassembler",
    "decode_header",
    "encode",
]
