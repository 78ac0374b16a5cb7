"""Rebuild complete frames from an arbitrarily chunked byte stream.

Two failure modes, deliberately asymmetric:
- bad magic: byte alignment is lost, FramingError is raised and the
  reassembler refuses all further input;
- bad JSON body: the frame is self-delimited, so it is logged and skipped.
"""

from __future__ import annotations

import json
from collections.abc import Iterator
from dataclasses import dataclass
from typing import Any

import structlog

from autostatus.constants import HEADER_SIZE
from autostatus.gateway.codec import FrameHeader, decode_header
from autostatus.infra.errors import BodyParseError, FramingError

logger = structlog.get_logger()


@dataclass(frozen=True)
class Frame:
    header: FrameHeader
    body: Any

    @property
    def event_type(self) -> int:
        return self.header.event_type


def _parse_body(raw: bytes) -> Any:
    try:
        return json.loads(raw.decode("utf-8"))
    except (UnicodeDecodeError, json.JSONDecodeError) as e:
        raise BodyParseError(f"Invalid frame body: {e}") from e


class StreamReassembler:
    """Single growing accumulator per channel.

    Usage: call feed() with each chunk read from the socket, then iterate
    drain() to receive every frame that is now complete, in arrival order.
    """

    def __init__(self) -> None:
        self._buffer = bytearray()
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def buffered(self) -> int:
        return len(self._buffer)

    def feed(self, data: bytes) -> None:
        if self._closed:
            return
        self._buffer.extend(data)

    def drain(self) -> Iterator[Frame]:
        """Yield complete frames until the buffer holds only a partial one.

        Raises FramingError on a magic mismatch; the buffer is discarded and
        the reassembler stays closed.
        """
        while not self._closed and len(self._buffer) >= HEADER_SIZE:
            header = decode_header(bytes(self._buffer[:HEADER_SIZE]))
            if not header.valid:
                self._closed = True
                self._buffer.clear()
                logger.error("framing_error", magic=f"{header.magic:#010x}")
                raise FramingError(header.magic)

            total = HEADER_SIZE + header.body_length
            if len(self._buffer) < total:
                return  # wait for more data

            raw = bytes(self._buffer[HEADER_SIZE:total])
            del self._buffer[:total]

            try:
                body = _parse_body(raw)
            except BodyParseError as e:
                logger.warning(
                    "frame_dropped",
                    event_type=header.event_type,
                    body_length=header.body_length,
                    error=str(e),
                )
                continue

            yield Frame(header=header, body=body)
