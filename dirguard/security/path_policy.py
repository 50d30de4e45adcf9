"""Containment policy for canonical directory candidates.

This module decides whether a CanonicalPath is an acceptable location under
the active TrustMode. It performs no filesystem I/O of its own: roots are
canonicalized once when an AllowedRoots value is built and candidates arrive
already canonical.

Key classes:
- AllowedRoots: Immutable, ordered set of canonical base directories
- TrustMode: Default vs. explicit override, read from its own toggle variable
- PolicyVerdict: Immutable decision plus reason string
- ContainmentPolicy: The decision engine
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Iterable, Mapping, Optional, Tuple, Union

from ._types import CanonicalPath
from .errors import RejectedOutsideAllowlist

logger = logging.getLogger(__name__)

OVERRIDE_ENV = "DIRGUARD_ALLOW_CUSTOM_PATHS"

_TRUE_SET = {"1", "true", "yes", "on"}


def is_truthy(value: Optional[str]) -> bool:
    if value is None:
        return False
    return value.strip().lower() in _TRUE_SET


class TrustMode(str, Enum):
    """How much a resolution run trusts its hints."""

    DEFAULT = "default"
    EXPLICIT_OVERRIDE = "explicit_override"


def trust_mode_from_env(environ: Optional[Mapping[str, str]] = None) -> TrustMode:
    """Read the override toggle. Hint variables are never consulted here."""
    env = os.environ if environ is None else environ
    if is_truthy(env.get(OVERRIDE_ENV)):
        return TrustMode.EXPLICIT_OVERRIDE
    return TrustMode.DEFAULT


class VerdictKind(str, Enum):
    """Outcome categories carried by diagnostics and resolutions."""

    ACCEPTED = "accepted"
    ACCEPTED_UNSAFE_OVERRIDE = "accepted_unsafe_override"
    REJECTED_TRAVERSAL = "rejected_traversal"
    REJECTED_OUTSIDE_ALLOWLIST = "rejected_outside_allowlist"
    MALFORMED_HINT = "malformed_hint"
    PATH_NOT_RESOLVABLE = "path_not_resolvable"
    NO_HINT_PROVIDED = "no_hint_provided"

    @property
    def is_accepted(self) -> bool:
        return self in (VerdictKind.ACCEPTED, VerdictKind.ACCEPTED_UNSAFE_OVERRIDE)


@dataclass(frozen=True)
class PolicyVerdict:
    kind: VerdictKind
    reason: str

    @property
    def unvalidated(self) -> bool:
        return self.kind is VerdictKind.ACCEPTED_UNSAFE_OVERRIDE


def _is_anchor(p: Path) -> bool:
    return p == Path(p.anchor)


@dataclass(frozen=True)
class AllowedRoots:
    """Canonical base directories considered safe in default mode.

    Args:
        roots: Tuple of absolute, canonical Path objects. Order is preserved.
    """

    roots: Tuple[Path, ...] = ()

    def __post_init__(self) -> None:
        for root in self.roots:
            if not root.is_absolute():
                raise ValueError(f"allowed root must be absolute: {root}")
            if _is_anchor(root):
                raise ValueError(f"filesystem root cannot be an allowed root: {root}")

    @classmethod
    def from_paths(cls, paths: Iterable[Union[str, Path]]) -> "AllowedRoots":
        """Canonicalize ``paths``, drop relative paths and anchors, dedupe in order."""
        seen: list[Path] = []
        for raw in paths:
            p = Path(raw)
            if not p.is_absolute():
                logger.debug("ignoring relative allowed root %s", p)
                continue
            canonical = Path(os.path.realpath(p))
            if _is_anchor(canonical):
                logger.warning("refusing filesystem root %s as an allowed root", canonical)
                continue
            if canonical not in seen:
                seen.append(canonical)
        return cls(roots=tuple(seen))

    def containing(self, path: Path) -> Optional[Path]:
        """Return the first root equal to or strictly above ``path``."""
        for root in self.roots:
            if path == root or root in path.parents:
                return root
        return None

    def __contains__(self, path: object) -> bool:
        return isinstance(path, Path) and self.containing(path) is not None

    def __iter__(self):
        return iter(self.roots)

    def __len__(self) -> int:
        return len(self.roots)


class ContainmentPolicy:
    """Decide containment of canonical paths against AllowedRoots.

    Args:
        roots: AllowedRoots computed once at process start
    """

    def __init__(self, roots: AllowedRoots) -> None:
        self.roots = roots

    def decide(self, candidate: CanonicalPath, mode: TrustMode) -> PolicyVerdict:
        """Return the verdict for ``candidate`` under ``mode``.

        A candidate equal to a root is accepted. A candidate that is an
        ancestor of a root (``/`` against ``/home/user``) is not.
        """
        path = candidate.as_path()

        if mode is TrustMode.EXPLICIT_OVERRIDE:
            return PolicyVerdict(
                VerdictKind.ACCEPTED_UNSAFE_OVERRIDE,
                f"{OVERRIDE_ENV} is set; containment not checked, {path} is UNVALIDATED",
            )

        root = self.roots.containing(path)
        if root is None:
            allowed = ", ".join(str(r) for r in self.roots) or "<none>"
            return PolicyVerdict(
                VerdictKind.REJECTED_OUTSIDE_ALLOWLIST,
                f"{path} is outside allowed roots ({allowed})",
            )
        return PolicyVerdict(VerdictKind.ACCEPTED, f"{path} is within {root}")

    def enforce(self, candidate: CanonicalPath, mode: TrustMode) -> PolicyVerdict:
        """Like decide(), but raise RejectedOutsideAllowlist instead of returning a rejection."""
        verdict = self.decide(candidate, mode)
        if not verdict.kind.is_accepted:
            raise RejectedOutsideAllowlist(verdict.reason)
        return verdict


__all__ = [
    "OVERRIDE_ENV",
    "is_truthy",
    "TrustMode",
    "trust_mode_from_env",
    "VerdictKind",
    "PolicyVerdict",
    "AllowedRoots",
    "ContainmentPolicy",
]
