"""Build status client: one GET per check, classified into three outcomes."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import StrEnum
from typing import Any

import httpx
import structlog

from autostatus.config.settings import StatusSettings
from autostatus.infra.errors import StatusQueryError

logger = structlog.get_logger()


class StatusOutcome(StrEnum):
    success = "success"  # error_code == 0
    failure = "failure"  # backend answered with a non-zero error_code
    error = "error"  # transport, HTTP status or body parse failure


@dataclass(frozen=True)
class StatusResult:
    outcome: StatusOutcome
    info: dict[str, Any] = field(default_factory=dict)
    message: str = ""  # backend result text, or the error message


class StatusQueryClient:
    def __init__(
        self,
        settings: StatusSettings,
        *,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self._settings = settings
        self._client = client or httpx.AsyncClient(timeout=settings.timeout_s)
        self._owns_client = client is None

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    def build_url(self, repo_url: str, tag: str) -> str:
        return repo_url + self._settings.path_template.format(tag=tag)

    async def check(self, repo_url: str, tag: str) -> StatusResult:
        """Never raises; failures come back as StatusOutcome.error."""
        url = self.build_url(repo_url, tag)
        logger.info("status_query_started", url=url)
        try:
            payload = await self._fetch(url)
        except StatusQueryError as e:
            logger.warning("status_query_failed", url=url, code=e.code, error=str(e))
            return StatusResult(outcome=StatusOutcome.error, message=str(e))

        if payload.get("error_code") == 0:
            info = payload.get("data")
            return StatusResult(
                outcome=StatusOutcome.success,
                info=info if isinstance(info, dict) else {},
            )

        logger.info("status_query_rejected", url=url, error_code=payload.get("error_code"))
        return StatusResult(outcome=StatusOutcome.failure, message=str(payload.get("result", "")))

    async def _fetch(self, url: str) -> dict[str, Any]:
        try:
            response = await self._client.get(
                url, headers={"Authorization": self._settings.authorization}
            )
            response.raise_for_status()
        except httpx.HTTPError as e:
            raise StatusQueryError(str(e) or type(e).__name__) from e

        try:
            payload = response.json()
        except ValueError as e:
            raise StatusQueryError(f"Invalid JSON response: {e}", code="STATUS_BAD_BODY") from e
        if not isinstance(payload, dict):
            raise StatusQueryError("Response body is not a JSON object", code="STATUS_BAD_BODY")
        return payload
