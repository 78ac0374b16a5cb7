"""Tests for SkillChannel: routing, ordering, termination, framing errors."""

from __future__ import annotations

import asyncio
from unittest.mock import AsyncMock, MagicMock

import pytest

from autostatus.clients.status_query import StatusOutcome, StatusResult
from autostatus.constants import EventType
from autostatus.dialog import prompts
from autostatus.dialog.machine import DialogStateMachine
from autostatus.dialog.session import DialogState
from autostatus.gateway.channel import SkillChannel
from autostatus.gateway.codec import encode
from autostatus.gateway.reassembler import StreamReassembler

REPO = "https://git.ipanel.cn/git/playcube/playcube.release.git"
TAG = "develop-v1.0"

# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _user_frame(content: str, dialog_id: str = "d1", user_id: str = "u1") -> bytes:
    return encode(
        EventType.USER_MESSAGE,
        {
            "event_type": 1001,
            "dialog_id": dialog_id,
            "user_id": user_id,
            "message_id": "m1",
            "messages": {"content": content, "attachments": []},
        },
    )


def _terminate_frame() -> bytes:
    return encode(EventType.CLIENT_TERMINATE, {"event_type": 1002, "dialog_id": "d1"})


def _make_writer() -> MagicMock:
    writer = MagicMock()
    writer.drain = AsyncMock()
    writer.wait_closed = AsyncMock()
    return writer


def _make_machine(memory_values: dict[str, str] | None = None):
    values = memory_values or {}
    memory = MagicMock()
    memory.query = AsyncMock(side_effect=lambda key, scope: values.get(key))
    memory.save = AsyncMock(return_value=True)
    status = MagicMock()
    status.check = AsyncMock(
        return_value=StatusResult(outcome=StatusOutcome.failure, message="some error")
    )
    return DialogStateMachine(memory, status), status


def _make_channel(*chunks: bytes, eof: bool = True, memory_values=None):
    reader = asyncio.StreamReader()
    for chunk in chunks:
        reader.feed_data(chunk)
    if eof:
        reader.feed_eof()
    writer = _make_writer()
    machine, status = _make_machine(memory_values)
    return SkillChannel(reader, writer, machine), reader, writer, status


def _written_frames(writer: MagicMock) -> list:
    r = StreamReassembler()
    for c in writer.write.call_args_list:
        r.feed(c.args[0])
    return list(r.drain())


# ---------------------------------------------------------------------------
# Routing
# ---------------------------------------------------------------------------


class TestUserTurns:
    @pytest.mark.asyncio
    async def test_reply_envelope(self):
        channel, _, writer, _ = _make_channel(_user_frame("你好"))

        await channel.serve()

        frames = _written_frames(writer)
        assert len(frames) == 1
        assert frames[0].event_type == EventType.AGENT_REPLY
        body = frames[0].body
        assert body["event_type"] == 2001
        assert body["dialog_id"] == "d1"
        assert body["user_id"] == "u1"
        assert body["intention"] == "checkAutoStatus"
        assert body["message_id"]
        assert body["messages"] == {"content": prompts.ASK_BOTH, "attachments": []}
        assert "end" not in body

    @pytest.mark.asyncio
    async def test_query_sends_interim_then_final_reply(self):
        channel, _, writer, status = _make_channel(_user_frame(f"{REPO} {TAG}"))

        await channel.serve()

        frames = _written_frames(writer)
        assert [f.body["messages"]["content"] for f in frames] == [
            prompts.QUERY_STARTED,
            f"查询 {REPO} {TAG} 的自动构建状态完成: some error",
        ]
        assert "end" not in frames[0].body
        assert frames[1].body["end"] is True
        status.check.assert_awaited_once_with(REPO, TAG)
        assert frames[0].body["message_id"] != frames[1].body["message_id"]

    @pytest.mark.asyncio
    async def test_exit_sends_end_of_turn_frame(self):
        channel, _, writer, _ = _make_channel(_user_frame("退出当前流程"))

        await channel.serve()

        frames = _written_frames(writer)
        assert frames[0].event_type == EventType.TURN_FINISHED
        assert frames[0].body["event_type"] == 2002
        assert frames[0].body["messages"]["content"] == prompts.EXITED

    @pytest.mark.asyncio
    async def test_byte_by_byte_delivery(self):
        data = _user_frame("你好") + _user_frame(REPO)
        channel, _, writer, _ = _make_channel(*[data[i : i + 1] for i in range(len(data))])

        await channel.serve()

        contents = [f.body["messages"]["content"] for f in _written_frames(writer)]
        assert contents == [prompts.ASK_BOTH, prompts.ASK_TAG]

    @pytest.mark.asyncio
    async def test_sessions_are_keyed_by_dialog_id(self):
        channel, _, writer, status = _make_channel(
            _user_frame("用上次的", dialog_id="d1"),
            _user_frame("是", dialog_id="d2"),
            _user_frame("是", dialog_id="d1"),
            memory_values={"repoUrl": REPO, "tag": TAG},
        )

        await channel.serve()

        frames = _written_frames(writer)
        by_dialog = [(f.body["dialog_id"], f.body["messages"]["content"]) for f in frames]
        assert by_dialog[0] == ("d1", prompts.confirm_previous(REPO, TAG))
        assert by_dialog[1] == ("d2", prompts.ASK_BOTH)
        assert by_dialog[2] == ("d1", prompts.QUERY_STARTED)
        status.check.assert_awaited_once_with(REPO, TAG)
        assert channel.sessions.get("d1").state is DialogState.idle
        assert len(channel.sessions) == 2


# ---------------------------------------------------------------------------
# Dropped frames
# ---------------------------------------------------------------------------


class TestDroppedFrames:
    @pytest.mark.asyncio
    async def test_malformed_body_skipped(self):
        bad = bytearray(encode(EventType.USER_MESSAGE, {"x": 1}))
        bad[16] = ord("#")
        channel, _, writer, _ = _make_channel(bytes(bad) + _user_frame("你好"))

        await channel.serve()

        frames = _written_frames(writer)
        assert len(frames) == 1
        assert frames[0].body["messages"]["content"] == prompts.ASK_BOTH

    @pytest.mark.asyncio
    async def test_invalid_user_turn_skipped(self):
        invalid = encode(EventType.USER_MESSAGE, {"dialog_id": "d1"})
        channel, _, writer, _ = _make_channel(invalid + _user_frame("你好"))

        await channel.serve()

        assert len(_written_frames(writer)) == 1

    @pytest.mark.asyncio
    async def test_unknown_event_type_ignored(self):
        channel, _, writer, _ = _make_channel(encode(4242, {"a": 1}) + _user_frame("你好"))

        await channel.serve()

        assert len(_written_frames(writer)) == 1


# ---------------------------------------------------------------------------
# Channel close
# ---------------------------------------------------------------------------


class TestClose:
    @pytest.mark.asyncio
    async def test_eof_closes_writer(self):
        channel, _, writer, _ = _make_channel()

        await channel.serve()

        assert channel.closed
        writer.close.assert_called_once()
        writer.write.assert_not_called()

    @pytest.mark.asyncio
    async def test_termination_stops_without_reading_further(self):
        channel, _, writer, _ = _make_channel(
            _terminate_frame() + _user_frame("你好"), eof=False
        )

        await asyncio.wait_for(channel.serve(), timeout=1)

        assert channel.closed
        writer.write.assert_not_called()
        writer.close.assert_called_once()

    @pytest.mark.asyncio
    async def test_bad_magic_closes_channel(self):
        bad = bytearray(_user_frame("你好"))
        bad[1] = 0x00
        channel, _, writer, _ = _make_channel(bytes(bad) + _user_frame("你好"), eof=False)

        await asyncio.wait_for(channel.serve(), timeout=1)

        assert channel.closed
        writer.write.assert_not_called()
        writer.close.assert_called_once()

    @pytest.mark.asyncio
    async def test_turn_before_termination_in_same_chunk_is_handled(self):
        channel, _, writer, _ = _make_channel(
            _user_frame("你好") + _terminate_frame() + _user_frame(REPO), eof=False
        )

        await asyncio.wait_for(channel.serve(), timeout=1)

        contents = [f.body["messages"]["content"] for f in _written_frames(writer)]
        assert contents == [prompts.ASK_BOTH]
        assert channel.closed

    @pytest.mark.asyncio
    async def test_turn_before_bad_header_in_same_chunk_is_handled(self):
        channel, _, writer, _ = _make_channel(
            _user_frame("你好") + b"\x00" * 16 + _user_frame(REPO), eof=False
        )

        await asyncio.wait_for(channel.serve(), timeout=1)

        contents = [f.body["messages"]["content"] for f in _written_frames(writer)]
        assert contents == [prompts.ASK_BOTH]
        assert channel.closed

    @pytest.mark.asyncio
    async def test_in_flight_turn_finishes_after_termination(self):
        channel, reader, writer, status = _make_channel(_user_frame(f"{REPO} {TAG}"), eof=False)
        started = asyncio.Event()
        release = asyncio.Event()

        async def _slow_check(repo_url, tag):
            started.set()
            await release.wait()
            return StatusResult(outcome=StatusOutcome.failure, message="some error")

        status.check.side_effect = _slow_check
        serving = asyncio.create_task(channel.serve())
        await asyncio.wait_for(started.wait(), timeout=1)

        reader.feed_data(_terminate_frame() + _user_frame("你好"))
        await asyncio.sleep(0.05)
        assert not serving.done()

        release.set()
        await asyncio.wait_for(serving, timeout=1)

        contents = [f.body["messages"]["content"] for f in _written_frames(writer)]
        assert contents == [
            prompts.QUERY_STARTED,
            f"查询 {REPO} {TAG} 的自动构建状态完成: some error",
        ]
        status.check.assert_awaited_once()
        assert channel.closed

    @pytest.mark.asyncio
    async def test_send_after_close_is_dropped(self):
        channel, _, writer, _ = _make_channel()
        await channel.serve()

        await channel.send(EventType.AGENT_REPLY, {"a": 1})

        writer.write.assert_not_called()
