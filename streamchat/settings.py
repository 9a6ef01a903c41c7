"""Settings for every StreamChat process, read from the environment.

``.env`` is loaded on import. Each settings class reads its own variables
when instantiated, so tests can patch ``os.environ`` and build a fresh one.

    AgentConfig    LLM_API_KEY / OPENAI_API_KEY, LLM_BASE_URL, LLM_MODEL,
                   LLM_TEMPERATURE, LLM_MAX_TOKENS, LLM_DESCRIPTION, LLM_MARKDOWN
    ServerConfig   DATABASE_URL, STREAM_IDLE_TIMEOUT, CORS_ORIGINS
    RunnerConfig   RUN_MODE, HOST, PORT, UI_PORT, API_BASE_URL, LOG_LEVEL
"""

import os
from collections.abc import Callable
from enum import Enum

from dotenv import load_dotenv
from pydantic import BaseModel, ConfigDict, Field, field_validator

load_dotenv()

DEFAULT_DATABASE_URL = "sqlite+aiosqlite:///data/chats.db"


def _env(name: str, default: str | None = None) -> Callable[[], str | None]:
    """Build a default factory reading ``name`` at instantiation time."""
    return lambda: os.getenv(name) or default


def _split_origins(raw: str) -> list[str]:
    return [origin.strip() for origin in raw.split(",") if origin.strip()]


class Settings(BaseModel):
    """Base for settings models. Defaults read from the environment are validated too."""

    model_config = ConfigDict(validate_default=True)


class AgentConfig(Settings):
    """Model access and persona of the completion agent.

    Attributes:
        api_key: Key for the OpenAI-compatible endpoint.
        base_url: Endpoint override; None targets OpenAI.
        model_name: Model identifier sent upstream.
        temperature: Sampling temperature.
        max_tokens: Upper bound on one reply.
        description: Persona text given to the agent.
        markdown: Ask the model for markdown output (the UI renders it).
    """

    # keys from the environment are not validated; a missing one fails the turn upstream
    api_key: str = Field(
        default_factory=lambda: os.getenv("LLM_API_KEY") or os.getenv("OPENAI_API_KEY", ""),
        validate_default=False,
    )
    base_url: str | None = Field(default_factory=_env("LLM_BASE_URL"))
    model_name: str = Field(default_factory=_env("LLM_MODEL", "gpt-4o-mini"))
    temperature: float = Field(default_factory=_env("LLM_TEMPERATURE", "0.7"), ge=0.0, le=2.0)
    max_tokens: int = Field(default_factory=_env("LLM_MAX_TOKENS", "1024"), ge=1, le=128000)
    description: str = Field(default_factory=_env("LLM_DESCRIPTION", "A helpful AI assistant."))
    markdown: bool = Field(default_factory=_env("LLM_MARKDOWN", "true"))

    @field_validator("api_key")
    @classmethod
    def validate_api_key(cls, v: str) -> str:
        """Require a non-blank key."""
        if not v or not v.strip():
            raise ValueError("API key required. Set LLM_API_KEY or OPENAI_API_KEY in .env")
        return v.strip()


class ServerConfig(Settings):
    """Settings of the chat API process.

    Attributes:
        database_url: Async SQLAlchemy URL, or ``memory://`` for the in-memory store.
        stream_idle_timeout: Seconds to wait for the next upstream delta.
        cors_origins: Allowed CORS origins.
    """

    database_url: str = Field(default_factory=_env("DATABASE_URL", DEFAULT_DATABASE_URL))
    stream_idle_timeout: float | None = Field(default_factory=_env("STREAM_IDLE_TIMEOUT", "60"), gt=0)
    cors_origins: list[str] = Field(default_factory=lambda: _split_origins(os.getenv("CORS_ORIGINS", "*")))

    @field_validator("database_url")
    @classmethod
    def validate_database_url(cls, v: str) -> str:
        """Reject blank database URLs."""
        if not v or not v.strip():
            raise ValueError("DATABASE_URL must not be empty")
        return v.strip()

    def to_env(self) -> dict[str, str]:
        """Environment variables that reproduce this config in a child process."""
        env = {
            "DATABASE_URL": self.database_url,
            "CORS_ORIGINS": ",".join(self.cors_origins),
        }
        if self.stream_idle_timeout is not None:
            env["STREAM_IDLE_TIMEOUT"] = str(self.stream_idle_timeout)
        return env


class RunMode(str, Enum):
    """How the API and the UI are served."""

    INTEGRATED = "integrated"
    SEPARATE = "separate"


class RunnerConfig(Settings):
    """Process layout for ``streamchat`` (see ``streamchat.main``).

    Attributes:
        mode: One server for API and UI, or one process each.
        host: Bind address.
        port: API port (also the UI port in integrated mode).
        ui_port: UI port in separate mode.
        api_base_url: Where the UI reaches the API.
        log_level: Root log level name.
    """

    mode: RunMode = Field(default_factory=_env("RUN_MODE", RunMode.INTEGRATED.value))
    host: str = Field(default_factory=_env("HOST", "0.0.0.0"))
    port: int = Field(default_factory=_env("PORT", "8000"), ge=1, le=65535)
    ui_port: int = Field(default_factory=_env("UI_PORT", "8080"), ge=1, le=65535)
    api_base_url: str | None = Field(default_factory=_env("API_BASE_URL"))
    log_level: str = Field(default_factory=_env("LOG_LEVEL", "INFO"))

    @field_validator("mode", mode="before")
    @classmethod
    def normalize_mode(cls, v: object) -> object:
        return v.lower() if isinstance(v, str) else v

    @field_validator("log_level")
    @classmethod
    def normalize_log_level(cls, v: str) -> str:
        return v.upper()

    @property
    def resolved_api_base_url(self) -> str:
        """The API URL the UI should call, defaulting to this runner's API."""
        if self.api_base_url:
            return self.api_base_url
        host = "localhost" if self.host in ("0.0.0.0", "::") else self.host
        return f"http://{host}:{self.port}"


def get_agent_config() -> AgentConfig:
    """Create agent configuration from environment."""
    return AgentConfig()


def get_server_config() -> ServerConfig:
    """Create server configuration from environment."""
    return ServerConfig()


def get_runner_config() -> RunnerConfig:
    """Create runner configuration from environment."""
    return RunnerConfig()
