# pkgsettings/root.py
from __future__ import annotations

import re
from pathlib import Path
from typing import Iterable, Sequence

__all__ = ["ProjectRootNotFoundError", "find_project_root"]


class ProjectRootNotFoundError(RuntimeError):
    """Raised when no project root can be located."""


# Tier 0 – explicit sentinel (owner intent beats all)
_SENTINEL_FILE = ".pkgsettings-root"

# Tier 1 – an existing settings tree, Python packaging + VCS
_TIER1_FILES: tuple[str, ...] = ("pyproject.toml", "setup.cfg", "setup.py")
_TIER1_DIRS: tuple[str, ...] = ("ProjectSettings", ".git", ".hg", ".svn")

# Tier 2 – Python tools
_TIER2_FILES: tuple[str, ...] = ("tox.ini", "poetry.lock", "pdm.lock")
_TIER2_DIRS: tuple[str, ...] = (".dvc",)

_GITDIR_RE = re.compile(r"^\s*gitdir:\s*(.+)\s*$", re.IGNORECASE)


def _has_git_marker(d: Path) -> bool:
    g = d / ".git"
    if g.is_dir():
        return True
    if g.is_file():
        try:
            return bool(_GITDIR_RE.search(g.read_text(errors="ignore")))
        except OSError:
            return False
    return False


def _walk_up(start: Path) -> Iterable[Path]:
    cur = start
    while True:
        yield cur
        if cur.parent == cur:
            break
        cur = cur.parent


def _match_here(cur: Path, *, files: Sequence[str], dirs: Sequence[str]) -> str | None:
    for f in files:
        if (cur / f).is_file():
            return f
    for d in dirs:
        if d == ".git":
            if _has_git_marker(cur):
                return ".git"
        elif (cur / d).is_dir():
            return d
    return None


def find_project_root(
    start: str | Path | None = None,
    *,
    strict: bool = True,
) -> Path:
    """
    Find the nearest project root above `start`.

    Priority (nearest directory wins within each tier):
      .pkgsettings-root  →  ProjectSettings/, packaging files, VCS  →  Python tool files

    If nothing matches and `strict=True`, raises ProjectRootNotFoundError.
    If `strict=False`, returns the resolved starting directory.
    """
    start_path = (Path.cwd() if start is None else Path(start)).resolve(strict=False)

    for cur in _walk_up(start_path):
        if (cur / _SENTINEL_FILE).is_file():
            return cur
        if _match_here(cur, files=_TIER1_FILES, dirs=_TIER1_DIRS):
            return cur

    for cur in _walk_up(start_path):
        if _match_here(cur, files=_TIER2_FILES, dirs=_TIER2_DIRS):
            return cur

    if strict:
        raise ProjectRootNotFoundError(f"No project root found from {start_path}")
    return start_path
