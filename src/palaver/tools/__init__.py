"""Tools the model may propose, executed only after approval."""

from pathlib import Path

from ..retrieval import RetrievalGateway
from .base import BaseTool
from .builtin import DeleteFileTool, ReadFileTool, SearchDocumentsTool, WriteFileTool
from .data_structures import ToolCall, ToolCallResult
from .registry import ToolRegistry


def default_registry(
    workspace: Path,
    retrieval: RetrievalGateway | None = None
) -> ToolRegistry:
    """Registry with the built-in file tools and, if given, document search."""
    registry = ToolRegistry([
        ReadFileTool(workspace),
        WriteFileTool(workspace),
        DeleteFileTool(workspace),
    ])
    if retrieval is not None:
        registry.register(SearchDocumentsTool(retrieval))
    return registry


__all__ = [
    "BaseTool",
    "DeleteFileTool",
    "ReadFileTool",
    "SearchDocumentsTool",
    "ToolCall",
    "ToolCallResult",
    "ToolRegistry",
    "WriteFileTool",
    "default_registry",
]
