from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Optional, Tuple


class DirKind(str, Enum):
    """Logical directory kinds a caller can ask for."""

    CONFIG = "config"
    DATA = "data"
    CACHE = "cache"
    STATE = "state"


@dataclass(frozen=True, slots=True)
class RawHint:
    """Unvalidated text read from one environment variable.

    ``text`` is None when the variable is absent, which is distinct from "".
    """

    source: str
    text: Optional[str]


@dataclass(frozen=True, slots=True)
class PathCandidate:
    """A parsed, not-yet-validated path. Produced only by hint_parser."""

    source: str
    raw: str
    segments: Tuple[str, ...]
    is_absolute: bool
    anchor: str = ""

    def as_path(self) -> Path:
        return Path(self.anchor, *self.segments)


@dataclass(frozen=True, slots=True)
class CanonicalPath:
    """
    Opaque handle for paths that have been through the Canonicalizer.
    Do not construct directly outside dirguard.security / the fallback provider.
    """

    _p: Path
    exists: bool = True
    symlinks: Tuple[Tuple[str, str], ...] = ()

    def as_path(self) -> Path:
        """Return the underlying Path."""
        return self._p

    def __fspath__(self) -> str:
        # Allows os.fspath(cp) and low-level APIs to consume it safely.
        return str(self._p)

    def __str__(self) -> str:  # pragma: no cover - trivial
        return str(self._p)

    def __repr__(self) -> str:  # pragma: no cover - trivial
        return f"CanonicalPath({self._p!s})"

    def __hash__(self) -> int:  # explicit for frozen dataclass clarity
        return hash(self._p)
