"""Tests for diagnostic records and the sinks that consume them."""

import json
import logging
import sys

import pytest
from pydantic import ValidationError

from dirguard.diagnostics import (
    CollectingSink,
    DiagnosticRecord,
    FanOutSink,
    LoggingSink,
    Stage,
    StructuredSink,
)
from dirguard.logging import JsonlLogger
from dirguard.security._types import DirKind
from dirguard.security.path_policy import OVERRIDE_ENV, VerdictKind


def _record(stage=Stage.DECIDED, verdict=VerdictKind.REJECTED_TRAVERSAL, **kwargs):
    return DiagnosticRecord(
        requested_kind="config",
        source="XDG_CONFIG_HOME",
        raw_hint="/tmp/../etc",
        stage=stage,
        verdict=verdict,
        reason="dot segment '..' not permitted",
        **kwargs,
    )


class TestDiagnosticRecord:
    def test_rejection_at_decided_is_warning(self):
        assert _record().is_warning

    def test_unsafe_override_is_warning(self):
        assert _record(verdict=VerdictKind.ACCEPTED_UNSAFE_OVERRIDE).is_warning

    @pytest.mark.parametrize("verdict", [VerdictKind.ACCEPTED, VerdictKind.NO_HINT_PROVIDED])
    def test_quiet_verdicts(self, verdict):
        assert not _record(verdict=verdict).is_warning

    def test_only_decided_stage_warns(self):
        assert not _record(stage=Stage.RESOLVED).is_warning
        assert not _record(stage=Stage.PARSED, verdict=None).is_warning

    def test_describe_names_source_hint_and_segment(self):
        line = _record(segment="..", segment_index=1).describe()
        assert "XDG_CONFIG_HOME='/tmp/../etc'" in line
        assert "[config]" in line
        assert "rejected_traversal" in line
        assert "segment 1: '..'" in line

    def test_describe_flags_refused_override(self):
        assert "(override refused)" in _record(override_refused=True).describe()
        assert "override refused" not in _record().describe()

    def test_records_are_immutable(self):
        record = _record()
        with pytest.raises(ValidationError):
            record.reason = "changed"

    def test_json_dump(self):
        dumped = _record(path="/tmp/../etc").model_dump(mode="json")
        assert dumped["stage"] == "decided"
        assert dumped["verdict"] == "rejected_traversal"
        assert dumped["path"] == "/tmp/../etc"


class TestSinks:
    def test_collecting_sink_keeps_order(self):
        sink = CollectingSink()
        sink(_record(stage=Stage.PARSED, verdict=None))
        sink(_record())
        assert [r.stage for r in sink.records] == [Stage.PARSED, Stage.DECIDED]
        assert len(sink.warnings()) == 1

    def test_fan_out(self):
        a, b = CollectingSink(), CollectingSink()
        FanOutSink(a, b)(_record())
        assert len(a.records) == len(b.records) == 1

    def test_logging_sink_levels(self, caplog):
        log = logging.getLogger("dirguard.test.diagnostics")
        sink = LoggingSink(log)
        with caplog.at_level(logging.DEBUG, logger="dirguard.test.diagnostics"):
            sink(_record(stage=Stage.PARSED, verdict=None))
            sink(_record())
            sink(_record(verdict=VerdictKind.ACCEPTED_UNSAFE_OVERRIDE))

        levels = [r.levelno for r in caplog.records]
        assert levels == [logging.DEBUG, logging.WARNING, logging.ERROR]
        assert "falling back to default" in caplog.records[1].getMessage()
        assert caplog.records[2].getMessage().startswith("UNSAFE:")

    def test_structured_sink_writes_jsonl(self, tmp_path):
        log_file = tmp_path / "diag.jsonl"
        structured = JsonlLogger(log_file, "resolver")
        sink = StructuredSink(structured)
        sink(_record(stage=Stage.PARSED, verdict=None, run_id="ab12cd34"))
        sink(_record(segment="..", segment_index=1, run_id="ab12cd34"))
        structured.close()

        lines = [json.loads(line) for line in log_file.read_text().splitlines()]
        assert [entry["level"] for entry in lines] == ["debug", "warning"]
        assert lines[1]["message"] == "decided"
        assert lines[1]["component"] == "resolver"
        assert lines[1]["verdict"] == "rejected_traversal"
        assert lines[1]["segment"] == ".."
        assert lines[1]["source"] == "XDG_CONFIG_HOME"
        assert lines[1]["requested_kind"] == "config"
        assert {entry["run_id"] for entry in lines} == {"ab12cd34"}
        assert lines[1]["override_refused"] is False


@pytest.mark.skipif(sys.platform.startswith("win"), reason="POSIX hints")
class TestResolverLogging:
    """The default sink produces one warning per rejected run and none otherwise."""

    def test_rejection_logged_once(self, sandbox, caplog):
        sandbox.env["XDG_CONFIG_HOME"] = "/tmp/../../etc"
        with caplog.at_level(logging.DEBUG, logger="dirguard.diagnostics"):
            sandbox.resolver(sink=LoggingSink()).resolve(DirKind.CONFIG)

        warnings = [r for r in caplog.records if r.levelno >= logging.WARNING]
        assert len(warnings) == 1
        assert warnings[0].levelno == logging.WARNING
        assert "/tmp/../../etc" in warnings[0].getMessage()
        assert "XDG_CONFIG_HOME" in warnings[0].getMessage()

    def test_unsafe_override_logged_as_error(self, sandbox, caplog):
        sandbox.env["XDG_CONFIG_HOME"] = str(sandbox.outside)
        sandbox.env[OVERRIDE_ENV] = "1"
        with caplog.at_level(logging.DEBUG, logger="dirguard.diagnostics"):
            sandbox.resolver(sink=LoggingSink()).resolve(DirKind.CONFIG)

        errors = [r for r in caplog.records if r.levelno >= logging.WARNING]
        assert [r.levelno for r in errors] == [logging.ERROR]
        assert "UNSAFE" in errors[0].getMessage()

    def test_missing_hint_not_warned(self, sandbox, caplog):
        with caplog.at_level(logging.DEBUG, logger="dirguard.diagnostics"):
            sandbox.resolver(sink=LoggingSink()).resolve(DirKind.CONFIG)

        assert not [r for r in caplog.records if r.levelno >= logging.WARNING]
        assert any("no_hint_provided" in r.getMessage() for r in caplog.records)
