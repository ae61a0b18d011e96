"""Prompt text used by the model gateway.

Prompts live in ``.txt`` files next to this module. A directory named by
``PALAVER_PROMPTS_DIR``, or ``./prompts`` in the working directory, can
override any of them file by file.
"""

import os
from functools import lru_cache
from pathlib import Path

_PROMPTS_DIR = Path(__file__).parent


def _search_path() -> list[Path]:
    dirs = []
    if os.getenv("PALAVER_PROMPTS_DIR"):
        dirs.append(Path(os.environ["PALAVER_PROMPTS_DIR"]))
    dirs.append(Path.cwd() / "prompts")
    dirs.append(_PROMPTS_DIR)
    return dirs


@lru_cache(maxsize=16)
def load_prompt(name: str) -> str:
    """Return the text of prompt ``name`` from the first directory that has it.

    Raises:
        FileNotFoundError: If no directory has ``{name}.txt``
    """
    candidates = [d / f"{name}.txt" for d in _search_path()]
    for path in candidates:
        if path.is_file():
            return path.read_text(encoding="utf-8")

    searched = "\n".join(f"  - {p}" for p in candidates)
    raise FileNotFoundError(f"Prompt '{name}' not found. Searched:\n{searched}")


def get_system_prompt() -> str:
    return load_prompt("system")


def get_grounding_prompt(documents: str) -> str:
    """Wrap formatted documents in the grounding instructions."""
    return load_prompt("grounding").format(documents=documents)


def clear_cache() -> None:
    """Forget loaded prompts so edited files are read again."""
    load_prompt.cache_clear()


__all__ = [
    "clear_cache",
    "get_grounding_prompt",
    "get_system_prompt",
    "load_prompt",
]
