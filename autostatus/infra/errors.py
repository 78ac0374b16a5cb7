"""Custom exception hierarchy for the auto status skill.

All application-specific exceptions inherit from AutoStatusError,
which carries an error code used in log lines.
"""

from __future__ import annotations


class AutoStatusError(Exception):
    """Base exception for all skill errors."""

    def __init__(self, message: str, *, code: str = "INTERNAL_ERROR") -> None:
        super().__init__(message)
        self.code = code


class FramingError(AutoStatusError):
    """Header magic mismatch. Byte alignment is lost; the channel must close."""

    def __init__(self, magic: int) -> None:
        super().__init__(f"Invalid magic number: {magic:#010x}", code="BAD_MAGIC")
        self.magic = magic


class BodyParseError(AutoStatusError):
    """A single frame body could not be decoded. The frame is dropped."""

    def __init__(self, message: str, *, code: str = "BODY_PARSE_ERROR") -> None:
        super().__init__(message, code=code)


class ConfigurationError(AutoStatusError):
    """Missing or inconsistent runtime configuration."""

    def __init__(self, message: str, *, code: str = "CONFIG_ERROR") -> None:
        super().__init__(message, code=code)


class CollaboratorError(AutoStatusError):
    """Errors from external services (memory store, status backend)."""

    def __init__(self, message: str, *, code: str = "COLLABORATOR_ERROR") -> None:
        super().__init__(message, code=code)


class MemoryStoreError(CollaboratorError):
    """Memory store request failed. Callers degrade to 'no remembered value'."""

    def __init__(self, message: str, *, code: str = "MEMORY_STORE_ERROR") -> None:
        super().__init__(message, code=code)


class StatusQueryError(CollaboratorError):
    """Build status backend call failed at the transport or parse level."""

    def __init__(self, message: str, *, code: str = "STATUS_QUERY_ERROR") -> None:
        super().__init__(message, code=code)
