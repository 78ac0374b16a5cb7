"""Dialog state machine: turns free text into a status check.

One call to handle_turn() processes one user turn to completion and
yields the replies for it in order. Rules, highest priority first:

1. exit phrase: drop everything, acknowledge, idle.
2. awaiting confirmation: confirm runs the staged query, anything else
   discards it and asks for both values again.
3. extract repo URL and tag from this turn's text.
4. "the one from before": fill missing slots from memory and stage them
   for confirmation (remembered values are never used silently).
5. prompt for whatever is still missing.
6. both present: query right away.
"""

from __future__ import annotations

from collections.abc import AsyncIterator

import structlog

from autostatus.clients.memory_store import MemoryStoreClient
from autostatus.clients.status_query import StatusOutcome, StatusQueryClient
from autostatus.dialog import prompts
from autostatus.dialog.events import DialogEvent, TextReply, TurnFinished
from autostatus.dialog.session import DialogSession, DialogState
from autostatus.dialog.slots import (
    extract_repo_url,
    extract_tag,
    is_confirmed,
    is_exit_request,
    refers_to_previous,
)
from autostatus.gateway.protocol import UserTurn

logger = structlog.get_logger()

MEMORY_KEY_REPO_URL = "repoUrl"
MEMORY_KEY_TAG = "tag"


class DialogStateMachine:
    def __init__(
        self,
        memory: MemoryStoreClient,
        status: StatusQueryClient,
        *,
        save_after_query: bool = False,
        send_end_of_turn: bool = False,
    ) -> None:
        self._memory = memory
        self._status = status
        self._save_after_query = save_after_query
        self._send_end_of_turn = send_end_of_turn

    async def handle_turn(
        self, session: DialogSession, turn: UserTurn
    ) -> AsyncIterator[DialogEvent]:
        content = turn.content

        if is_exit_request(content):
            session.reset()
            logger.info("dialog_exit", dialog_id=session.dialog_id)
            yield TurnFinished(content=prompts.EXITED)
            return

        if session.state is DialogState.awaiting_confirmation:
            async for event in self._handle_confirmation(session, turn):
                yield event
            return

        # Active slots are rebuilt from this turn's text only.
        session.clear_slots()
        repo_url = extract_repo_url(content)
        tag = extract_tag(content)
        if repo_url:
            session.repo_url = repo_url
        if tag:
            session.tag = tag
        logger.debug("slots_extracted", repo_url=session.repo_url, tag=session.tag)

        if refers_to_previous(content):
            await self._recall(session, turn.user_id)
            if not session.complete:
                session.clear_slots()
                yield TextReply(content=prompts.NO_HISTORY)
                return
            session.stage(session.repo_url, session.tag)
            session.clear_slots()
            logger.info(
                "dialog_awaiting_confirmation",
                pending_repo_url=session.pending_repo_url,
                pending_tag=session.pending_tag,
            )
            yield TextReply(
                content=prompts.confirm_previous(session.pending_repo_url, session.pending_tag)
            )
            return

        if not session.repo_url and not session.tag:
            yield TextReply(content=prompts.ASK_BOTH)
            return
        if not session.repo_url:
            yield TextReply(content=prompts.ASK_REPO_URL)
            return
        if not session.tag:
            yield TextReply(content=prompts.ASK_TAG)
            return

        async for event in self._run_query(session, turn.user_id):
            yield event

    async def _handle_confirmation(
        self, session: DialogSession, turn: UserTurn
    ) -> AsyncIterator[DialogEvent]:
        repo_url, tag = session.take_pending()
        if repo_url and tag and is_confirmed(turn.content):
            logger.info("dialog_confirmed", repo_url=repo_url, tag=tag)
            session.repo_url = repo_url
            session.tag = tag
            async for event in self._run_query(session, turn.user_id):
                yield event
            return

        logger.info("dialog_not_confirmed")
        session.clear_slots()
        yield TextReply(content=prompts.ASK_RESUPPLY)

    async def _recall(self, session: DialogSession, user_id: str) -> None:
        """Fill missing slots from memory, scoped by user. Absent stays absent."""
        if not session.repo_url:
            value = await self._memory.query(MEMORY_KEY_REPO_URL, user_id)
            if value:
                session.repo_url = str(value)
        if not session.tag:
            value = await self._memory.query(MEMORY_KEY_TAG, user_id)
            if value:
                session.tag = str(value)

    async def _run_query(
        self, session: DialogSession, user_id: str
    ) -> AsyncIterator[DialogEvent]:
        repo_url = session.repo_url or ""
        tag = session.tag or ""
        yield TextReply(content=prompts.QUERY_STARTED)

        try:
            result = await self._status.check(repo_url, tag)
        finally:
            # Terminal for the turn whatever the outcome.
            session.clear_slots()

        if result.outcome is StatusOutcome.success:
            reply = prompts.status_summary(repo_url, tag, result.info)
        elif result.outcome is StatusOutcome.failure:
            reply = prompts.status_failed(repo_url, tag, result.message)
        else:
            reply = prompts.status_error(repo_url, tag, result.message)
        logger.info("status_query_done", outcome=str(result.outcome))
        yield TextReply(content=reply, end=True)

        if self._save_after_query and result.outcome is StatusOutcome.success:
            await self._memory.save(MEMORY_KEY_REPO_URL, repo_url, user_id)
            await self._memory.save(MEMORY_KEY_TAG, tag, user_id)

        if self._send_end_of_turn:
            yield TurnFinished()
