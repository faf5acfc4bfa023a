"""Configuration for the issue query assistant.

Configuration is loaded from:
- environment variables
- and a local `.env` file (if present)

Tracker credentials use dedicated `KEN_*` variables so they don't collide with
`GITLAB_TOKEN`/`GITHUB_TOKEN` that other tools may read.
"""

from __future__ import annotations

from datetime import timedelta
from pathlib import Path
from typing import Literal

from pydantic import Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_TRACKER_URLS: dict[str, str] = {
    "gitlab": "https://gitlab.com",
    "github": "https://api.github.com",
}


class LLMConfig(BaseSettings):
    """Configuration for the LLM used to phrase answers."""

    provider: Literal["openai"] = Field(
        default="openai",
        description="LLM provider to use",
    )
    openai_api_key: str | None = Field(
        default=None,
        description="API key for the OpenAI-compatible endpoint",
    )
    openai_base_url: str | None = Field(
        default=None,
        description="Base URL for an OpenAI-compatible endpoint (None = api.openai.com)",
    )
    openai_model: str = Field(
        default="gpt-4o-mini",
        description="Model used to compose answers",
    )
    openai_temperature: float = Field(
        default=0.3,
        ge=0.0,
        le=2.0,
        description="Sampling temperature",
    )
    max_tokens: int = Field(
        default=4000,
        gt=0,
        description="Upper bound on generated tokens per answer",
    )

    model_config = SettingsConfigDict(
        env_prefix="KEN_LLM_",
        env_file=".env",
        extra="ignore",
    )


class AssistantSettings(BaseSettings):
    """Settings for the assistant.

    Environment variables:
    - KEN_TRACKER_TOKEN   (required)
    - KEN_TRACKER         (optional, `gitlab` or `github`)
    - KEN_TRACKER_URL     (optional)
    - KEN_DEFAULT_PROJECT (optional)
    - LOG_LEVEL           (optional)
    - KEN_STATE_PATH      (optional)

    Notes:
        Pydantic-settings supports overriding the env file in tests via:
        `AssistantSettings(_env_file=path_to_env)`.
    """

    tracker: Literal["gitlab", "github"] = Field(
        default="gitlab",
        validation_alias="KEN_TRACKER",
        description="Which issue tracker backend to talk to",
    )
    tracker_url: str = Field(
        default="",
        validation_alias="KEN_TRACKER_URL",
        description="Tracker base URL (defaults per tracker when empty)",
    )
    tracker_token: str = Field(
        default="",
        validation_alias="KEN_TRACKER_TOKEN",
        description="Personal access token for the tracker API",
    )
    default_project_id: str | None = Field(
        default=None,
        validation_alias="KEN_DEFAULT_PROJECT",
        description="Project used when a command doesn't name one ('group/project' or 'owner/repo')",
    )

    log_level: str = Field(
        default="INFO",
        validation_alias="LOG_LEVEL",
        description="Root logging level",
    )

    state_path: Path = Field(
        default=Path("agent_state"),
        validation_alias="KEN_STATE_PATH",
        description="Directory where cached project contexts are persisted",
    )

    context_max_age_seconds: int = Field(
        default=3 * 60 * 60,
        gt=0,
        validation_alias="KEN_CONTEXT_MAX_AGE_SECONDS",
        description="Age after which a cached project context is refreshed before planning",
    )
    allow_stale_context: bool = Field(
        default=True,
        validation_alias="KEN_ALLOW_STALE_CONTEXT",
        description=(
            "If a refresh of a stale context fails, plan against the stale snapshot and "
            "flag the response instead of failing the query"
        ),
    )

    max_strategy_dimensions: int = Field(
        default=3,
        ge=1,
        le=3,
        validation_alias="KEN_MAX_STRATEGY_DIMENSIONS",
        description="Maximum non-state filter dimensions per search strategy",
    )
    max_strategies: int = Field(
        default=8,
        ge=1,
        validation_alias="KEN_MAX_STRATEGIES",
        description="Maximum number of candidate strategies per query",
    )
    result_limit: int = Field(
        default=20,
        ge=1,
        le=50,
        validation_alias="KEN_RESULT_LIMIT",
        description="Maximum issues requested per strategy",
    )
    request_timeout_seconds: float = Field(
        default=30.0,
        gt=0,
        validation_alias="KEN_REQUEST_TIMEOUT_SECONDS",
        description="Timeout applied to each tracker HTTP request",
    )

    llm: LLMConfig = Field(
        default_factory=LLMConfig,
        description="LLM configuration",
    )

    model_config = SettingsConfigDict(
        env_prefix="",
        env_file=".env",
        extra="ignore",
    )

    @model_validator(mode="after")
    def _require_tracker_auth(self) -> AssistantSettings:
        if not self.tracker_token.strip():
            raise ValueError("KEN_TRACKER_TOKEN is required")
        return self

    @property
    def tracker_base_url(self) -> str:
        """Configured tracker URL, or the public default for the tracker kind."""

        return (self.tracker_url.strip() or DEFAULT_TRACKER_URLS[self.tracker]).rstrip("/")

    @property
    def contexts_dir(self) -> Path:
        """Directory where project context snapshots are persisted."""

        return self.state_path / "contexts"

    @property
    def context_max_age(self) -> timedelta:
        return timedelta(seconds=self.context_max_age_seconds)

    def resolve_project(self, project_id: str | None) -> str:
        """Return the explicit project, falling back to the configured default."""

        resolved = (project_id or self.default_project_id or "").strip()
        if not resolved:
            raise ValueError("No project given and KEN_DEFAULT_PROJECT is not set")
        return resolved
