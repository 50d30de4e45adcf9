"""Error taxonomy for directory-hint resolution.

The hint errors (MalformedHint, TraversalAttempt, PathNotResolvable,
RejectedOutsideAllowlist) are recovered by the resolver, which logs the failure
and substitutes the platform default. ``FallbackUnavailable`` is the only error
a caller of :mod:`dirguard.resolver` ever sees. The last two classes belong to
the file lookups in :mod:`dirguard.dirs`.
"""

from __future__ import annotations

from typing import List, Optional


class DirGuardError(Exception):
    """Base class for all dirguard errors."""


class NoHintProvided(DirGuardError):
    """The hint variable is absent or empty. Not an attack; triggers fallback."""

    def __init__(self, source: str) -> None:
        super().__init__(f"{source} is not set")
        self.source = source


class MalformedHint(DirGuardError, ValueError):
    """Raised when hint text cannot name a path at all (NUL, bad encoding, relative)."""


class TraversalAttempt(DirGuardError, ValueError):
    """Raised when a segment smuggles a parent-directory reference or separator.

    Args:
        message: Human-readable reason
        index: Position of the offending segment, or None when the whole path
            (rather than a single segment) is at fault
        segment: The offending segment text
    """

    def __init__(self, message: str, *, index: Optional[int] = None, segment: str = "") -> None:
        super().__init__(message)
        self.index = index
        self.segment = segment


class PathNotResolvable(DirGuardError):
    """Raised when neither the target nor its parent can be located on disk."""


class RejectedOutsideAllowlist(DirGuardError, ValueError):
    """Raised when a canonical path lies outside every allowed root."""


class FallbackUnavailable(DirGuardError, RuntimeError):
    """Raised when even the platform default directory cannot be determined."""


class NotInGitRepository(DirGuardError):
    """Raised when no enclosing git working tree exists."""


class ConfigFileNotFound(DirGuardError):
    """Raised when a config file is found in none of the searched locations.

    Args:
        name: File or toolset name that was looked up
        searched: Every candidate path, in search order
    """

    def __init__(self, name: str, searched: List[str]) -> None:
        listing = "\n  ".join(searched) or "<nowhere>"
        super().__init__(f"'{name}' not found. Searched:\n  {listing}")
        self.name = name
        self.searched = list(searched)


__all__ = [
    "DirGuardError",
    "NoHintProvided",
    "MalformedHint",
    "TraversalAttempt",
    "PathNotResolvable",
    "RejectedOutsideAllowlist",
    "FallbackUnavailable",
    "NotInGitRepository",
    "ConfigFileNotFound",
]
