"""Resolution orchestrator: untrusted directory hint in, trustworthy directory out.

A resolution walks ``Start -> Parsed -> Sanitized -> Canonicalized -> Decided ->
Resolved``. Any recoverable failure jumps straight to ``Decided`` with a
rejection verdict and is then resolved to the platform default. The resolver
is the only component that substitutes the default; each transition emits
exactly one DiagnosticRecord to the injected sink.

Only ``FallbackUnavailable`` escapes ``Resolver.resolve``.
"""

from __future__ import annotations

import logging
import os
import uuid
from functools import lru_cache
from pathlib import Path
from typing import Dict, Iterable, List, Mapping, Optional, Tuple

from pydantic import BaseModel, Field

from dirguard.config import settings
from dirguard.config.fallback import default_dir, discover_allowed_roots, hint_variable
from dirguard.diagnostics import (
    DiagnosticRecord,
    DiagnosticSink,
    FanOutSink,
    LoggingSink,
    Stage,
    StructuredSink,
)
from dirguard.logging import create_logger
from dirguard.security._types import CanonicalPath, DirKind, RawHint
from dirguard.security.canonicalize import canonicalize
from dirguard.security.errors import (
    MalformedHint,
    NoHintProvided,
    PathNotResolvable,
    RejectedOutsideAllowlist,
    TraversalAttempt,
)
from dirguard.security.hint_parser import parse_hint, read_hint
from dirguard.security.path_policy import (
    OVERRIDE_ENV,
    AllowedRoots,
    ContainmentPolicy,
    PolicyVerdict,
    TrustMode,
    VerdictKind,
    trust_mode_from_env,
)
from dirguard.security.path_sanitizer import sanitize_candidate

logger = logging.getLogger(__name__)


class Resolution(BaseModel):
    """Outcome of resolving one directory kind."""

    requested_kind: DirKind
    source: str
    raw_hint: Optional[str] = None
    verdict: VerdictKind
    reason: str
    resolved_path: Path
    unvalidated: bool = False
    fell_back: bool = False
    override_refused: bool = False
    symlinks: List[Tuple[str, str]] = Field(default_factory=list)
    trail: List[DiagnosticRecord] = Field(default_factory=list, repr=False)

    def record(self) -> Dict[str, object]:
        """The caller-facing summary without the trail."""
        return self.model_dump(
            mode="json",
            include={"requested_kind", "raw_hint", "verdict", "reason", "resolved_path", "unvalidated"},
        )


class _Trail:
    """Collects the records of one run and forwards each to the sink."""

    def __init__(self, kind: DirKind, hint: RawHint, sink: Optional[DiagnosticSink]) -> None:
        self.kind = kind
        self.hint = hint
        self.sink = sink
        self.run_id = uuid.uuid4().hex[:8]
        self.records: List[DiagnosticRecord] = []

    def emit(self, stage: Stage, **fields: object) -> None:
        record = DiagnosticRecord(
            run_id=self.run_id,
            requested_kind=self.kind.value,
            source=self.hint.source,
            raw_hint=self.hint.text,
            stage=stage,
            **fields,
        )
        self.records.append(record)
        if self.sink is not None:
            self.sink(record)


class Resolver:
    """Resolve directory kinds from environment hints.

    Args:
        roots: Allow-list computed once at start-up; discovered from system
            facts when omitted
        sink: Callable receiving every DiagnosticRecord (default: LoggingSink)
        environ: Mapping to read hints and the override toggle from; read
            fresh from ``os.environ`` on every run when omitted
        platform: ``sys.platform`` style name used for hint names and defaults
        home: Home directory override for the fallback provider
        allow_override: When False the override toggle is ignored, so an
            embedding program can refuse unsafe mode regardless of the
            environment; a refused toggle is flagged ``override_refused`` on
            the Decided record and the Resolution
    """

    def __init__(
        self,
        roots: Optional[AllowedRoots] = None,
        sink: Optional[DiagnosticSink] = None,
        *,
        environ: Optional[Mapping[str, str]] = None,
        platform: Optional[str] = None,
        home: Optional[Path] = None,
        allow_override: bool = True,
    ) -> None:
        self.platform = platform
        self.home = home
        self.roots = roots if roots is not None else discover_allowed_roots(platform, home)
        self.policy = ContainmentPolicy(self.roots)
        self.sink: DiagnosticSink = sink if sink is not None else LoggingSink()
        self.environ = environ
        self.allow_override = allow_override

    def _trust_mode(self, env: Mapping[str, str]) -> Tuple[TrustMode, bool]:
        """Return the effective mode and whether a requested override was refused."""
        mode = trust_mode_from_env(env)
        if mode is TrustMode.EXPLICIT_OVERRIDE and not self.allow_override:
            logger.warning("%s is set but this program does not permit overrides; ignoring", OVERRIDE_ENV)
            return TrustMode.DEFAULT, True
        return mode, False

    def resolve(self, kind: DirKind) -> Resolution:
        """Resolve ``kind`` to a directory.

        Raises:
            FallbackUnavailable: If the hint is rejected (or absent) and the
                platform default cannot be established either
        """
        kind = DirKind(kind)
        # One snapshot per run so the hint and the toggle cannot disagree.
        env: Mapping[str, str] = dict(os.environ) if self.environ is None else self.environ
        mode, override_refused = self._trust_mode(env)
        hint = read_hint(hint_variable(kind, self.platform), env)
        trail = _Trail(kind, hint, self.sink)

        verdict, canonical, extra = self._decide(hint, mode, trail)

        trail.emit(
            Stage.DECIDED,
            verdict=verdict.kind,
            reason=verdict.reason,
            unvalidated=verdict.unvalidated,
            override_refused=override_refused,
            **extra,
        )

        fell_back = canonical is None
        if canonical is None:
            canonical = default_dir(kind, self.platform, self.home)

        trail.emit(
            Stage.RESOLVED,
            verdict=verdict.kind,
            reason="fell back to platform default" if fell_back else "using validated hint",
            path=str(canonical),
            unvalidated=verdict.unvalidated,
        )

        return Resolution(
            requested_kind=kind,
            source=hint.source,
            raw_hint=hint.text,
            verdict=verdict.kind,
            reason=verdict.reason,
            resolved_path=canonical.as_path(),
            unvalidated=verdict.unvalidated,
            fell_back=fell_back,
            override_refused=override_refused,
            symlinks=list(canonical.symlinks),
            trail=trail.records,
        )

    def _decide(
        self, hint: RawHint, mode: TrustMode, trail: _Trail
    ) -> Tuple[PolicyVerdict, Optional[CanonicalPath], Dict[str, object]]:
        """Run parse, sanitize, canonicalize and policy; map failures to verdicts."""
        try:
            candidate = parse_hint(hint)
            trail.emit(Stage.PARSED, reason=f"{len(candidate.segments)} segments", path=candidate.raw)

            candidate = sanitize_candidate(candidate)
            trail.emit(Stage.SANITIZED, reason="no traversal segments", path=str(candidate.as_path()))

            canonical = canonicalize(candidate)
            hops = ", ".join(f"{link} -> {target}" for link, target in canonical.symlinks)
            trail.emit(
                Stage.CANONICALIZED,
                reason=f"followed symlinks: {hops}" if hops else "no symlinks",
                path=str(canonical),
            )

            verdict = self.policy.enforce(canonical, mode)
            return verdict, canonical, {"path": str(canonical)}
        except NoHintProvided as exc:
            return PolicyVerdict(VerdictKind.NO_HINT_PROVIDED, str(exc)), None, {}
        except MalformedHint as exc:
            return PolicyVerdict(VerdictKind.MALFORMED_HINT, str(exc)), None, {}
        except TraversalAttempt as exc:
            return PolicyVerdict(VerdictKind.REJECTED_TRAVERSAL, str(exc)), None, {
                "segment": exc.segment,
                "segment_index": exc.index,
            }
        except PathNotResolvable as exc:
            return PolicyVerdict(VerdictKind.PATH_NOT_RESOLVABLE, str(exc)), None, {}
        except RejectedOutsideAllowlist as exc:
            return PolicyVerdict(VerdictKind.REJECTED_OUTSIDE_ALLOWLIST, str(exc)), None, {
                "path": str(canonical)
            }

    def resolve_all(self, kinds: Optional[Iterable[DirKind]] = None) -> Dict[DirKind, Resolution]:
        """Resolve each kind independently, in order."""
        return {DirKind(k): self.resolve(k) for k in (list(DirKind) if kinds is None else kinds)}


@lru_cache(maxsize=1)
def default_resolver() -> Resolver:
    """Process-wide resolver; allowed roots are discovered once, on first use."""
    sink: DiagnosticSink = LoggingSink()
    jsonl = create_logger("resolver", log_dir=settings.log_dir)
    if jsonl is not None:
        sink = FanOutSink(sink, StructuredSink(jsonl))
    return Resolver(sink=sink)


def resolve_dir(kind: DirKind) -> Path:
    """Resolve ``kind`` with the process-wide resolver and return the path."""
    return default_resolver().resolve(kind).resolved_path


__all__ = ["Resolution", "Resolver", "default_resolver", "resolve_dir"]
