"""Diagnostic records emitted by the resolver and the sinks that consume them.

Every state transition of a resolution produces one DiagnosticRecord. A sink is
any callable accepting a record; the resolver never decides where records go.
"""

from __future__ import annotations

import logging
from enum import Enum
from typing import Callable, List, Optional

from pydantic import BaseModel, ConfigDict, Field

from dirguard.logging import JsonlLogger, LogLevel
from dirguard.security.path_policy import VerdictKind

logger = logging.getLogger("dirguard.diagnostics")


class Stage(str, Enum):
    """Resolver states; a record is tagged with the state it entered."""

    PARSED = "parsed"
    SANITIZED = "sanitized"
    CANONICALIZED = "canonicalized"
    DECIDED = "decided"
    RESOLVED = "resolved"


class DiagnosticRecord(BaseModel):
    """One transition of one resolution."""

    model_config = ConfigDict(frozen=True)

    run_id: str = Field(default="", description="Shared by every record of one resolution")
    requested_kind: str = Field(description="Directory kind being resolved")
    source: str = Field(description="Environment variable the hint came from")
    raw_hint: Optional[str] = Field(default=None, description="Hint text, None if absent")
    stage: Stage = Field(description="State entered by this transition")
    verdict: Optional[VerdictKind] = Field(
        default=None, description="Set from the Decided state onwards"
    )
    reason: str = Field(default="", description="Human-readable explanation")
    path: Optional[str] = Field(default=None, description="Path contributing to this step")
    segment: Optional[str] = Field(default=None, description="Offending segment, if any")
    segment_index: Optional[int] = Field(default=None)
    unvalidated: bool = Field(default=False, description="True for unsafe override acceptance")
    override_refused: bool = Field(
        default=False, description="Override toggle was set but the resolver does not permit it"
    )

    @property
    def is_warning(self) -> bool:
        """True for the one record per run that deserves a warning line."""
        return (
            self.stage is Stage.DECIDED
            and self.verdict is not None
            and self.verdict not in (VerdictKind.ACCEPTED, VerdictKind.NO_HINT_PROVIDED)
        )

    def describe(self) -> str:
        offending = self.path or self.raw_hint or ""
        if self.segment is not None:
            offending = f"{offending} (segment {self.segment_index}: {self.segment!r})"
        verdict = self.verdict.value if self.verdict else self.stage.value
        line = f"{self.source}={self.raw_hint!r} [{self.requested_kind}] {verdict}: {self.reason}"
        if offending:
            line += f" -> {offending}"
        if self.override_refused:
            line += " (override refused)"
        return line


DiagnosticSink = Callable[[DiagnosticRecord], None]


class LoggingSink:
    """Forward records to stdlib logging.

    Rejections log at WARNING ("falling back"); unsafe override acceptance logs
    at ERROR tagged UNSAFE so the two can be told apart by level alone. All
    other transitions log at DEBUG.
    """

    def __init__(self, log: Optional[logging.Logger] = None) -> None:
        self.log = log or logger

    def __call__(self, record: DiagnosticRecord) -> None:
        if not record.is_warning:
            self.log.debug("%s", record.describe())
            return
        if record.verdict is VerdictKind.ACCEPTED_UNSAFE_OVERRIDE:
            self.log.error("UNSAFE: %s; proceed at caller's risk", record.describe())
        else:
            self.log.warning("Rejecting %s; falling back to default", record.describe())


class StructuredSink:
    """Persist records as JSONL lines, one per record."""

    def __init__(self, jsonl: JsonlLogger) -> None:
        self.jsonl = jsonl

    def __call__(self, record: DiagnosticRecord) -> None:
        if record.verdict is VerdictKind.ACCEPTED_UNSAFE_OVERRIDE and record.is_warning:
            level = LogLevel.ERROR
        elif record.is_warning:
            level = LogLevel.WARNING
        else:
            level = LogLevel.DEBUG
        self.jsonl.log(level, record.stage.value, **record.model_dump(mode="json"))


class CollectingSink:
    """Keep records in memory, in emission order."""

    def __init__(self) -> None:
        self.records: List[DiagnosticRecord] = []

    def __call__(self, record: DiagnosticRecord) -> None:
        self.records.append(record)

    def warnings(self) -> List[DiagnosticRecord]:
        return [r for r in self.records if r.is_warning]


class FanOutSink:
    """Deliver each record to several sinks in order."""

    def __init__(self, *sinks: DiagnosticSink) -> None:
        self.sinks = sinks

    def __call__(self, record: DiagnosticRecord) -> None:
        for sink in self.sinks:
            sink(record)


__all__ = [
    "Stage",
    "DiagnosticRecord",
    "DiagnosticSink",
    "LoggingSink",
    "StructuredSink",
    "CollectingSink",
    "FanOutSink",
]
