"""Concise, human-readable rendering of paths for CLI output."""

from __future__ import annotations

from pathlib import Path
from typing import Optional


def shorten_path_for_display(
    path: Path, git_root: Optional[Path] = None, home: Optional[Path] = None
) -> str:
    """Render ``path`` as briefly as is unambiguous.

    In order of precedence: relative to ``git_root`` when inside it, ``~/``
    relative when inside the home directory, otherwise absolute.
    """
    if git_root is not None:
        try:
            return str(path.relative_to(git_root))
        except ValueError:
            pass

    if home is None:
        try:
            home = Path.home()
        except (RuntimeError, KeyError):
            home = None
    if home is not None:
        try:
            rel = path.relative_to(home)
        except ValueError:
            pass
        else:
            return "~" if rel == Path(".") else f"~/{rel}"

    return str(path)


__all__ = ["shorten_path_for_display"]
