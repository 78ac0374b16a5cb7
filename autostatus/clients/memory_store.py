"""Memory store client: key/value lookups against the host's memory HTTP service.

Every failure degrades at this boundary: query() answers None, save()
answers False. Nothing raised here reaches the dialog.
"""

from __future__ import annotations

from typing import Any

import httpx
import structlog

from autostatus.config.settings import MemorySettings
from autostatus.constants import MemoryAction
from autostatus.gateway.protocol import MemoryInstruction, dump_body
from autostatus.infra.errors import MemoryStoreError

logger = structlog.get_logger()


class MemoryStoreClient:
    def __init__(
        self,
        settings: MemorySettings,
        *,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self._settings = settings
        self._client = client or httpx.AsyncClient(timeout=settings.timeout_s)
        self._owns_client = client is None

    @property
    def configured(self) -> bool:
        return self._settings.base_url is not None

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    async def query(self, key: str, scope: str) -> Any | None:
        """Look up key under scope. Returns None when absent or on any failure."""
        try:
            body = await self._post(
                MemoryInstruction(action=MemoryAction.QUERY, key=key, dialog_id=scope)
            )
        except MemoryStoreError as e:
            logger.warning("memory_query_failed", key=key, scope=scope, code=e.code, error=str(e))
            return None
        if not isinstance(body, dict):
            logger.warning(
                "memory_query_failed", key=key, scope=scope, error="response is not an object"
            )
            return None
        value = body.get("value")
        logger.debug("memory_query_done", key=key, scope=scope, found=bool(value))
        return value or None

    async def save(self, key: str, value: Any, scope: str) -> bool:
        try:
            await self._post(
                MemoryInstruction(action=MemoryAction.SAVE, key=key, value=value, dialog_id=scope),
                expect_body=False,
            )
        except MemoryStoreError as e:
            logger.warning("memory_save_failed", key=key, scope=scope, code=e.code, error=str(e))
            return False
        logger.info("memory_saved", key=key, scope=scope)
        return True

    async def _post(self, instruction: MemoryInstruction, *, expect_body: bool = True) -> Any:
        base_url = self._settings.base_url
        if base_url is None:
            raise MemoryStoreError(
                "Memory store port is not configured", code="MEMORY_NOT_CONFIGURED"
            )

        try:
            response = await self._client.post(
                f"{base_url}{self._settings.path}", json=dump_body(instruction)
            )
        except httpx.HTTPError as e:
            raise MemoryStoreError(f"Memory request failed: {e}") from e

        if expect_body:
            if response.status_code != 200:
                raise MemoryStoreError(
                    f"Memory API request failed with status code {response.status_code}: {response.text}",
                    code="MEMORY_BAD_STATUS",
                )
            try:
                return response.json()
            except ValueError as e:
                raise MemoryStoreError("Failed to parse JSON response from memory API") from e

        if not response.is_success:
            raise MemoryStoreError(
                f"Save memory request failed with status code {response.status_code}",
                code="MEMORY_BAD_STATUS",
            )
        return None
