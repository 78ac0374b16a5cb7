"""Connection handler for one host socket.

Reading and dialog processing run as two tasks joined by a queue, so bytes
keep being buffered while a turn awaits its HTTP calls, yet turns are
handled strictly one at a time in arrival order.

Every stop condition (EOF, 1002 termination, bad magic) ends reading at
once and is queued behind the frames decoded before it. Those turns still
run to completion in order, then the channel closes. Nothing after the
stop condition is handled.
"""

from __future__ import annotations

import asyncio
from typing import Any

import structlog

from autostatus.constants import HEADER_SIZE, EventType
from autostatus.dialog.events import DialogEvent, TextReply
from autostatus.dialog.machine import DialogStateMachine
from autostatus.dialog.session import DialogSessionStore
from autostatus.gateway.codec import encode
from autostatus.gateway.protocol import (
    AgentReply,
    MessageContent,
    TurnFinishedMessage,
    UserTurn,
    dump_body,
    parse_user_turn,
)
from autostatus.gateway.reassembler import Frame, StreamReassembler
from autostatus.infra.errors import BodyParseError, FramingError

logger = structlog.get_logger()


class SkillChannel:
    def __init__(
        self,
        reader: asyncio.StreamReader,
        writer: asyncio.StreamWriter,
        machine: DialogStateMachine,
        *,
        read_chunk_size: int = 65536,
    ) -> None:
        self._reader = reader
        self._writer = writer
        self._machine = machine
        self._read_chunk_size = read_chunk_size
        self._reassembler = StreamReassembler()
        self._sessions = DialogSessionStore()
        self._queue: asyncio.Queue[Frame | None] = asyncio.Queue()
        self._worker: asyncio.Task[None] | None = None
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def sessions(self) -> DialogSessionStore:
        return self._sessions

    async def serve(self) -> None:
        """Run until EOF, a termination frame, or a framing error."""
        self._worker = asyncio.create_task(self._process_frames(), name="dialog_worker")
        try:
            await self._read_frames()
            await self._queue.put(None)
            await asyncio.wait([self._worker])
        finally:
            await self._shutdown()

    async def send(self, event_type: int, payload: dict[str, Any]) -> None:
        if self._closed:
            logger.debug("frame_not_sent_channel_closed", event_type=int(event_type))
            return
        data = encode(event_type, payload)
        self._writer.write(data)
        await self._writer.drain()
        logger.debug("frame_sent", event_type=int(event_type), body_length=len(data) - HEADER_SIZE)

    async def _read_frames(self) -> None:
        """Feed socket bytes to the reassembler until a stop condition."""
        while True:
            data = await self._reader.read(self._read_chunk_size)
            if not data:
                logger.info("channel_eof")
                return

            self._reassembler.feed(data)
            try:
                for frame in self._reassembler.drain():
                    if frame.event_type == EventType.CLIENT_TERMINATE:
                        logger.info("termination_received")
                        return
                    self._queue.put_nowait(frame)
            except FramingError as e:
                logger.error("channel_closing_bad_frame", code=e.code, error=str(e))
                return

    async def _process_frames(self) -> None:
        while True:
            frame = await self._queue.get()
            if frame is None:
                return
            if frame.event_type == EventType.USER_MESSAGE:
                await self._handle_user_turn(frame.body)
            else:
                logger.warning("unsupported_event_type", event_type=frame.event_type)

    async def _handle_user_turn(self, body: Any) -> None:
        try:
            turn = parse_user_turn(body)
        except BodyParseError as e:
            logger.warning("frame_dropped", code=e.code, error=str(e))
            return

        session = self._sessions.get_or_create(turn.dialog_id)
        with structlog.contextvars.bound_contextvars(
            dialog_id=turn.dialog_id, user_id=turn.user_id,
        ):
            logger.info("dialog_turn_received", state=str(session.state))
            try:
                async for event in self._machine.handle_turn(session, turn):
                    await self._send_event(turn, event)
            except Exception:
                logger.exception("dialog_turn_failed")

    async def _send_event(self, turn: UserTurn, event: DialogEvent) -> None:
        if isinstance(event, TextReply):
            reply = AgentReply(
                dialog_id=turn.dialog_id,
                user_id=turn.user_id,
                end=True if event.end else None,
                messages=MessageContent(content=event.content),
            )
            await self.send(EventType.AGENT_REPLY, dump_body(reply))
        else:
            finished = TurnFinishedMessage(
                dialog_id=turn.dialog_id,
                user_id=turn.user_id,
                messages=MessageContent(content=event.content),
            )
            await self.send(EventType.TURN_FINISHED, dump_body(finished))

    async def _shutdown(self) -> None:
        self._closed = True
        worker = self._worker
        if worker is not None:
            # Only reached unfinished when serve() itself failed or was cancelled.
            if not worker.done():
                worker.cancel()
            try:
                await worker
            except asyncio.CancelledError:
                pass
            except Exception:
                logger.exception("dialog_worker_failed")

        self._writer.close()
        try:
            await self._writer.wait_closed()
        except (ConnectionError, OSError):
            logger.debug("channel_close_error")
        logger.info("channel_closed", sessions=len(self._sessions))
