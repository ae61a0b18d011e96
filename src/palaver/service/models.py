"""Response models for the chat service API."""

from typing import Any

from pydantic import BaseModel, Field


class DatabaseHealth(BaseModel):
    status: str = "unknown"
    documents: int = 0


class Health(BaseModel):
    """Service health as reported by ``/health``."""

    status: str = "ok"
    version: str = "unknown"
    ollama: str = "unknown"
    mcp: str = "online"
    database: DatabaseHealth = Field(default_factory=DatabaseHealth)
    models: dict[str, Any] = Field(default_factory=dict)

    @classmethod
    def from_raw(cls, raw: dict[str, Any]) -> "Health":
        """Build from a raw payload, ignoring nulls and unknown keys."""
        return cls.model_validate({k: v for k, v in raw.items() if v is not None and k in cls.model_fields})


class ModelsStatus(BaseModel):
    """Model availability as reported by ``/models/status``."""

    status: str = "unknown"
    available_models: list[str] = Field(default_factory=list)
    configured_models: list[str] = Field(default_factory=list)
    missing_models: list[str] = Field(default_factory=list)

    @classmethod
    def from_raw(cls, raw: dict[str, Any]) -> "ModelsStatus":
        return cls.model_validate({k: v for k, v in raw.items() if v is not None and k in cls.model_fields})
