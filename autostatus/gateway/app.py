"""Process wiring: settings → clients → dialog machine → socket channel."""

from __future__ import annotations

import asyncio

import structlog

from autostatus.clients.memory_store import MemoryStoreClient
from autostatus.clients.status_query import StatusQueryClient
from autostatus.config.settings import Settings
from autostatus.dialog.machine import DialogStateMachine
from autostatus.gateway.channel import SkillChannel
from autostatus.infra.errors import ConfigurationError

logger = structlog.get_logger()


def build_machine(
    settings: Settings,
    memory: MemoryStoreClient,
    status: StatusQueryClient,
) -> DialogStateMachine:
    return DialogStateMachine(
        memory,
        status,
        save_after_query=settings.memory.save_after_query,
        send_end_of_turn=settings.status.send_end_of_turn,
    )


async def connect_and_serve(settings: Settings) -> None:
    """Connect to the host's Unix socket and serve until the channel closes.

    Raises ConfigurationError if no socket path is set; connection errors
    (OSError) propagate to the caller.
    """
    socket_path = settings.channel.socket_path
    if not socket_path:
        raise ConfigurationError(
            "Socket path not provided. Use --socket=/path/to/socket or CHANNEL_SOCKET_PATH"
        )

    memory = MemoryStoreClient(settings.memory)
    status = StatusQueryClient(settings.status)
    if not memory.configured:
        logger.warning("memory_store_not_configured")

    try:
        logger.info("channel_connecting", socket_path=socket_path)
        reader, writer = await asyncio.open_unix_connection(socket_path)
        logger.info("channel_connected", socket_path=socket_path)

        channel = SkillChannel(
            reader,
            writer,
            build_machine(settings, memory, status),
            read_chunk_size=settings.channel.read_chunk_size,
        )
        await channel.serve()
    finally:
        await memory.aclose()
        await status.aclose()
