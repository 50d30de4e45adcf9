"""Tests for the dirguard command line entry point."""

import json
import sys
from pathlib import Path

import pytest

from dirguard.cli import show_dirs
from dirguard.resolver import Resolver
from dirguard.security.path_policy import OVERRIDE_ENV

pytestmark = pytest.mark.skipif(sys.platform.startswith("win"), reason="POSIX hints")


@pytest.fixture()
def use_resolver(monkeypatch):
    def _install(resolver: Resolver) -> None:
        monkeypatch.setattr(show_dirs, "default_resolver", lambda: resolver)

    return _install


def test_json_single_kind(sandbox, use_resolver, capsys):
    sandbox.env["XDG_CONFIG_HOME"] = str(sandbox.allowed)
    use_resolver(sandbox.resolver())

    assert show_dirs.main(["--json", "--kind", "config"]) == 0

    lines = capsys.readouterr().out.strip().splitlines()
    assert len(lines) == 1
    record = json.loads(lines[0])
    assert record["requested_kind"] == "config"
    assert record["verdict"] == "accepted"
    assert record["resolved_path"] == str(sandbox.allowed)
    assert record["fell_back"] is False
    assert "trail" not in record


def test_json_with_trail(sandbox, use_resolver, capsys):
    sandbox.env["XDG_CONFIG_HOME"] = "/tmp/../../etc"
    use_resolver(sandbox.resolver())

    assert show_dirs.main(["--json", "--trail", "--kind", "config"]) == 0

    record = json.loads(capsys.readouterr().out)
    assert record["verdict"] == "rejected_traversal"
    assert record["fell_back"] is True
    assert [r["stage"] for r in record["trail"]] == ["parsed", "decided", "resolved"]


def test_text_output_all_kinds(sandbox, use_resolver, capsys):
    use_resolver(sandbox.resolver())

    assert show_dirs.main([]) == 0

    lines = capsys.readouterr().out.strip().splitlines()
    assert [line.split(":", 1)[0] for line in lines] == [
        "config_dir",
        "data_dir",
        "cache_dir",
        "state_dir",
    ]
    assert lines[0] == f"config_dir: {sandbox.default_config}"


def test_text_output_flags_unvalidated(sandbox, use_resolver, capsys):
    sandbox.env["XDG_CONFIG_HOME"] = str(sandbox.outside)
    sandbox.env[OVERRIDE_ENV] = "1"
    use_resolver(sandbox.resolver())

    assert show_dirs.main(["--kind", "config", "--trail"]) == 0

    out = capsys.readouterr().out
    assert out.splitlines()[0] == f"config_dir: {sandbox.outside} (UNVALIDATED)"
    assert "accepted_unsafe_override" in out


def test_short_paths(sandbox, use_resolver, capsys, monkeypatch):
    monkeypatch.setenv("HOME", str(sandbox.home))
    use_resolver(sandbox.resolver())

    assert show_dirs.main(["--short", "--kind", "cache"]) == 0
    assert capsys.readouterr().out.strip() == "cache_dir: ~/.cache"


def test_fallback_unavailable_exit_code(sandbox, use_resolver):
    use_resolver(
        Resolver(sandbox.roots, sandbox.sink, environ={}, platform="linux", home=Path("/"))
    )
    assert show_dirs.main(["--kind", "config"]) == 2


def test_unknown_kind_rejected(capsys):
    with pytest.raises(SystemExit) as exc_info:
        show_dirs.main(["--kind", "music"])
    assert exc_info.value.code == 2
