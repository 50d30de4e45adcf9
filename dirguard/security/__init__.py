"""Security-related building blocks for dirguard."""

from ._types import CanonicalPath, DirKind, PathCandidate, RawHint
from .canonicalize import canonicalize
from .errors import (
    DirGuardError,
    FallbackUnavailable,
    MalformedHint,
    NoHintProvided,
    PathNotResolvable,
    RejectedOutsideAllowlist,
    TraversalAttempt,
)
from .hint_parser import parse_hint, read_hint
from .path_policy import (
    AllowedRoots,
    ContainmentPolicy,
    PolicyVerdict,
    TrustMode,
    VerdictKind,
    trust_mode_from_env,
)
from .path_sanitizer import sanitize_candidate

__all__ = [
    "CanonicalPath",
    "DirKind",
    "PathCandidate",
    "RawHint",
    "canonicalize",
    "DirGuardError",
    "FallbackUnavailable",
    "MalformedHint",
    "NoHintProvided",
    "PathNotResolvable",
    "RejectedOutsideAllowlist",
    "TraversalAttempt",
    "parse_hint",
    "read_hint",
    "AllowedRoots",
    "ContainmentPolicy",
    "PolicyVerdict",
    "TrustMode",
    "VerdictKind",
    "trust_mode_from_env",
    "sanitize_candidate",
]
