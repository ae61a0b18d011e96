"""Built-in tools.

File tools operate inside a workspace directory and refuse any path that
resolves outside it.
"""

import json
from pathlib import Path

from pydantic import BaseModel, Field

from ..retrieval import RetrievalGateway, RetrievalScope
from .base import BaseTool


def _resolve_in_workspace(workspace: Path, file_path: str) -> Path:
    root = workspace.resolve()
    path = (root / file_path).resolve()
    if path != root and root not in path.parents:
        raise PermissionError(f"Path escapes workspace: {file_path}")
    return path


class ReadFileTool(BaseTool):
    """Read a file, optionally a line range of it."""

    name = "read_file"
    description = (
        "Read the contents of a file in the workspace. "
        "Use this when you need to examine a specific file."
    )

    class Arguments(BaseModel):
        path: str = Field(description="Path to the file, relative to the workspace")
        start_line: int = Field(default=1, ge=1, description="Starting line number (1-indexed)")
        end_line: int = Field(default=-1, description="Ending line number, -1 for end of file")

    def __init__(self, workspace: Path | None = None):
        super().__init__()
        self._workspace = workspace or Path.cwd()

    async def run(self, args: Arguments) -> str:
        path = _resolve_in_workspace(self._workspace, args.path)
        if not path.is_file():
            raise FileNotFoundError(f"File not found: {args.path}")

        lines = path.read_text(encoding="utf-8").splitlines(keepends=True)
        end_line = len(lines) if args.end_line == -1 else args.end_line
        content = "".join(lines[args.start_line - 1:end_line])
        return f"File: {args.path}\nLines {args.start_line}-{end_line}:\n\n{content}"


class WriteFileTool(BaseTool):
    """Create or overwrite a file."""

    name = "write_file"
    description = "Write text to a file in the workspace, creating or replacing it."

    class Arguments(BaseModel):
        path: str = Field(description="Path to the file, relative to the workspace")
        content: str = Field(description="Full text to write")

    def __init__(self, workspace: Path | None = None):
        super().__init__()
        self._workspace = workspace or Path.cwd()

    async def run(self, args: Arguments) -> str:
        path = _resolve_in_workspace(self._workspace, args.path)
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(args.content, encoding="utf-8")
        self._debug("info", self.name, f"Wrote {len(args.content)} chars to {args.path}")
        return f"Wrote {len(args.content)} characters to {args.path}"


class DeleteFileTool(BaseTool):
    """Delete a single file."""

    name = "delete_file"
    description = "Delete a file from the workspace. Directories are not deleted."

    class Arguments(BaseModel):
        path: str = Field(description="Path to the file, relative to the workspace")

    def __init__(self, workspace: Path | None = None):
        super().__init__()
        self._workspace = workspace or Path.cwd()

    async def run(self, args: Arguments) -> str:
        path = _resolve_in_workspace(self._workspace, args.path)
        if not path.is_file():
            raise FileNotFoundError(f"File not found: {args.path}")
        path.unlink()
        self._debug("info", self.name, f"Deleted {args.path}")
        return f"Deleted {args.path}"


class SearchDocumentsTool(BaseTool):
    """Search ingested documents through the retrieval gateway."""

    name = "search_documents"
    description = (
        "Search the ingested documents for passages relevant to a query. "
        "Use this to look up information beyond what was provided as context."
    )

    class Arguments(BaseModel):
        query: str = Field(min_length=1, description="The search query")
        limit: int = Field(default=5, ge=1, le=20, description="Maximum number of results")
        project_id: str | None = Field(default=None, description="Restrict to one project")

    def __init__(self, retrieval: RetrievalGateway):
        super().__init__()
        self._retrieval = retrieval

    async def run(self, args: Arguments) -> str:
        scope = RetrievalScope(project_id=args.project_id) if args.project_id else None
        snippets = await self._retrieval.query(args.query, scope=scope, limit=args.limit)
        if not snippets:
            return f"No results found for query: {args.query}"

        results = [
            {"rank": i, "source": s.source_id, "content": s.content}
            for i, s in enumerate(snippets, 1)
        ]
        return f"Found {len(results)} results:\n" + json.dumps(results, indent=2)
