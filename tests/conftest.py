# tests/conftest.py
# Scrub directory hints from the environment and provide an isolated sandbox.

from __future__ import annotations

import os
from pathlib import Path
from typing import Dict, List

import pytest

from dirguard.diagnostics import CollectingSink
from dirguard.dirs import clear_git_root_cache
from dirguard.resolver import Resolver
from dirguard.security.path_policy import AllowedRoots

_HINT_VARS = (
    "XDG_CONFIG_HOME",
    "XDG_DATA_HOME",
    "XDG_CACHE_HOME",
    "XDG_STATE_HOME",
    "APPDATA",
    "LOCALAPPDATA",
)


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Tests must never see the developer's own hints or DIRGUARD_* settings."""
    for name in _HINT_VARS:
        monkeypatch.delenv(name, raising=False)
    for name in list(os.environ):
        if name.startswith("DIRGUARD_"):
            monkeypatch.delenv(name, raising=False)
    clear_git_root_cache()


class Sandbox:
    """A throwaway home directory, one extra allowed root and one directory outside."""

    def __init__(self, base: Path) -> None:
        self.base = base
        self.home = base / "home"
        self.allowed = base / "allowed"
        self.outside = base / "outside"
        for d in (self.home, self.allowed, self.outside):
            d.mkdir()
        self.roots = AllowedRoots.from_paths([self.home, self.allowed])
        self.sink = CollectingSink()
        self.env: Dict[str, str] = {}

    @property
    def default_config(self) -> Path:
        return self.home / ".config"

    def resolver(self, **kwargs) -> Resolver:
        kwargs.setdefault("sink", self.sink)
        kwargs.setdefault("environ", self.env)
        return Resolver(self.roots, platform="linux", home=self.home, **kwargs)

    def stages(self) -> List[str]:
        return [r.stage.value for r in self.sink.records]


@pytest.fixture()
def sandbox(tmp_path: Path) -> Sandbox:
    # tmp_path may itself sit behind a symlink (macOS /var -> /private/var).
    return Sandbox(Path(os.path.realpath(tmp_path)))
