"""dirguard: resolve configuration/data directories from untrusted hints.

Example:
    >>> from dirguard import DirKind, resolve_dir
    >>> resolve_dir(DirKind.CONFIG)  # doctest: +SKIP
    PosixPath('/home/user/.config')
"""

from dirguard.diagnostics import CollectingSink, DiagnosticRecord, LoggingSink, Stage
from dirguard.resolver import Resolution, Resolver, default_resolver, resolve_dir
from dirguard.security import (
    AllowedRoots,
    DirKind,
    FallbackUnavailable,
    TrustMode,
    VerdictKind,
)

__version__ = "0.1.0"

__all__ = [
    "AllowedRoots",
    "CollectingSink",
    "DiagnosticRecord",
    "DirKind",
    "FallbackUnavailable",
    "LoggingSink",
    "Resolution",
    "Resolver",
    "Stage",
    "TrustMode",
    "VerdictKind",
    "default_resolver",
    "resolve_dir",
]
