from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class Snippet(BaseModel):
    """A ranked text snippet returned by a retrieval query."""

    model_config = ConfigDict(frozen=True)

    content: str = Field(description="Snippet text")
    source_id: str = Field(description="Identifier of the source document")
    score: float | None = Field(default=None, description="Relevance score, if reported")


class RetrievalScope(BaseModel):
    """Scope metadata narrowing a retrieval query (e.g. to one project)."""

    model_config = ConfigDict(frozen=True)

    project_id: str | None = None
    extra: dict[str, Any] = Field(default_factory=dict)

    def to_metadata(self) -> dict[str, Any]:
        metadata = dict(self.extra)
        if self.project_id is not None:
            metadata["project_id"] = self.project_id
        return metadata


class IngestAck(BaseModel):
    """Acknowledgement of a document ingest."""

    source_id: str
    accepted: bool = True
    detail: str | None = None
