from __future__ import annotations

from dotenv import load_dotenv
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

# Load .env once at module import; every BaseSettings subclass sees the env vars
load_dotenv()

_LOG_LEVELS = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}


class ChannelSettings(BaseSettings):
    """Host socket settings. Env vars prefixed with CHANNEL_."""

    model_config = SettingsConfigDict(env_prefix="CHANNEL_")

    socket_path: str = ""  # empty = not configured, startup fails
    read_chunk_size: int = Field(65536, gt=0)


class MemorySettings(BaseSettings):
    """Memory store HTTP collaborator. Env vars prefixed with MEMORY_."""

    model_config = SettingsConfigDict(env_prefix="MEMORY_")

    host: str = "localhost"
    port: int | None = None  # None = memory disabled, queries resolve to absent
    path: str = "/"
    timeout_s: float = Field(5.0, gt=0)
    save_after_query: bool = False  # write both slots back after a successful query

    @property
    def base_url(self) -> str | None:
        if self.port is None:
            return None
        return f"http://{self.host}:{self.port}"


class StatusSettings(BaseSettings):
    """Build status backend settings. Env vars prefixed with STATUS_."""

    model_config = SettingsConfigDict(env_prefix="STATUS_")

    authorization: str = "Basic xxxxx"
    path_template: str = "/build/get_auto_info/{tag}"
    timeout_s: float = Field(10.0, gt=0)
    send_end_of_turn: bool = False  # follow the final query reply with a 2002 frame

    @field_validator("path_template")
    @classmethod
    def _validate_path_template(cls, v: str) -> str:
        if "{tag}" not in v:
            raise ValueError(f"STATUS_PATH_TEMPLATE must contain '{{tag}}' (got '{v}')")
        return v


class LoggingSettings(BaseSettings):
    """Logging settings. Env vars prefixed with LOG_."""

    model_config = SettingsConfigDict(env_prefix="LOG_")

    level: str = "INFO"
    json_output: bool = False

    @field_validator("level")
    @classmethod
    def _validate_level(cls, v: str) -> str:
        v = v.strip().upper()
        if v not in _LOG_LEVELS:
            msg = f"LOG_LEVEL must be one of {sorted(_LOG_LEVELS)} (got '{v}')"
            raise ValueError(msg)
        return v


class Settings(BaseSettings):
    """Root settings composing all sub-configurations."""

    model_config = SettingsConfigDict(extra="ignore")

    channel: ChannelSettings = Field(default_factory=ChannelSettings)
    memory: MemorySettings = Field(default_factory=MemorySettings)
    status: StatusSettings = Field(default_factory=StatusSettings)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)


def get_settings() -> Settings:
    """Load and validate settings. Raises ValidationError on invalid values."""
    return Settings()
