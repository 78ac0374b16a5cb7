"""HTTP collaborators: memory store and build status backend."""

from autostatus.clients.memory_store import MemoryStoreClient
from autostatus.clients.status_query import StatusOutcome, StatusQueryClient, StatusResult

__all__ = [
    "MemoryStoreClient",
    "StatusOutcome",
    "StatusQueryClient",
    "StatusResult",
]
