"""Chat settings loaded from the environment.

Environment variables:
    LLM_PROVIDER: ollama, openai, deepseek or anthropic (default: ollama)
    PALAVER_MODEL: Model name (default: the provider's default model)
    PALAVER_TEMPERATURE: Sampling temperature (default: 0.7)
    PALAVER_MAX_TOKENS: Maximum tokens per response (default: 2048)
    PALAVER_RETRIEVAL: service, memory or off (default: service)
    PALAVER_RETRIEVAL_LIMIT: Snippets per retrieval query (default: 3)
    PALAVER_APPROVAL: local or service (default: local)
    PALAVER_APPROVAL_INTERVAL: Seconds between approval polls (default: 3.0)
    PALAVER_APPROVAL_DEADLINE: Seconds before a proposal times out (default: 300.0)
    PALAVER_MAX_TOOL_ROUNDS: Approved tool executions per turn (default: 5)
    PALAVER_API_BASE: Chat service API base URL
    PALAVER_WORKSPACE: Root directory for the file tools (default: cwd)
"""

import os
from collections.abc import Mapping
from pathlib import Path
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

from .approval import DEFAULT_APPROVAL_DEADLINE, DEFAULT_POLL_INTERVAL
from .service import DEFAULT_API_BASE


class ChatSettings(BaseModel):
    """Runtime configuration for a chat client."""

    model_config = ConfigDict(frozen=True)

    llm_provider: str = Field(default="ollama", description="LLM provider name")
    model: str | None = Field(default=None, description="Model override")
    temperature: float = Field(default=0.7, ge=0.0, le=2.0)
    max_tokens: int = Field(default=2048, gt=0)
    retrieval: Literal["service", "memory", "off"] = "service"
    retrieval_limit: int = Field(default=3, ge=1)
    approval: Literal["local", "service"] = "local"
    approval_interval: float = Field(default=DEFAULT_POLL_INTERVAL, gt=0)
    approval_deadline: float = Field(default=DEFAULT_APPROVAL_DEADLINE, gt=0)
    max_tool_rounds: int = Field(default=5, ge=0)
    api_base: str = DEFAULT_API_BASE
    workspace: Path = Field(default_factory=Path.cwd)

    @property
    def retrieval_enabled(self) -> bool:
        return self.retrieval != "off"

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> "ChatSettings":
        """Build settings from environment variables.

        Unset variables fall back to the field defaults.

        Raises:
            pydantic.ValidationError: If a variable has an invalid value
        """
        env = os.environ if environ is None else environ
        names = {
            "llm_provider": "LLM_PROVIDER",
            "model": "PALAVER_MODEL",
            "temperature": "PALAVER_TEMPERATURE",
            "max_tokens": "PALAVER_MAX_TOKENS",
            "retrieval": "PALAVER_RETRIEVAL",
            "retrieval_limit": "PALAVER_RETRIEVAL_LIMIT",
            "approval": "PALAVER_APPROVAL",
            "approval_interval": "PALAVER_APPROVAL_INTERVAL",
            "approval_deadline": "PALAVER_APPROVAL_DEADLINE",
            "max_tool_rounds": "PALAVER_MAX_TOOL_ROUNDS",
            "api_base": "PALAVER_API_BASE",
            "workspace": "PALAVER_WORKSPACE",
        }
        values = {field: env[var] for field, var in names.items() if env.get(var)}
        if "llm_provider" in values:
            values["llm_provider"] = values["llm_provider"].lower()
        return cls.model_validate(values)
