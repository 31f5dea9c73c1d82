"""
Project root + `.env` handling.

The static layers are configured as repo-relative paths (`data/skog.geojson`). uvicorn,
the CLI and pytest may all start from different directories, so relative paths are
resolved against the project root, never the CWD.

Root lookup order:
1. `AGDERMAP_PROJECT_ROOT`
2. the directory holding `AGDERMAP_ENV_FILE`
3. the first parent of the CWD, then of this module, that looks like the repo
4. the CWD
"""

from __future__ import annotations

import os
from functools import lru_cache
from pathlib import Path

from dotenv import load_dotenv

_ROOT_MARKERS = (".env", ".git", "pyproject.toml")


def _env_path(name: str) -> Path | None:
    value = os.getenv(name)
    return Path(value).expanduser().resolve() if value else None


def _is_project_root(path: Path) -> bool:
    if any((path / marker).exists() for marker in _ROOT_MARKERS):
        return True
    return (path / "src" / "agdermap").is_dir()


@lru_cache
def get_project_root() -> Path:
    """Return the repository root (cached)."""
    root = _env_path("AGDERMAP_PROJECT_ROOT")
    if root is not None:
        return root

    env_file = _env_path("AGDERMAP_ENV_FILE")
    if env_file is not None:
        return env_file.parent

    for start in (Path.cwd(), Path(__file__).parent):
        start = start.resolve()
        for candidate in (start, *start.parents):
            if _is_project_root(candidate):
                return candidate

    return Path.cwd().resolve()


@lru_cache
def load_dotenv_if_present() -> Path | None:
    """Load `.env` once, without overriding variables already set; returns its path."""
    env_path = _env_path("AGDERMAP_ENV_FILE") or get_project_root() / ".env"
    if not env_path.is_file():
        return None
    load_dotenv(dotenv_path=env_path, override=False)
    return env_path


def resolve_project_path(path: str | Path) -> Path:
    """Resolve a possibly-relative path against the project root."""
    p = Path(path).expanduser()
    return p if p.is_absolute() else (get_project_root() / p).resolve()
