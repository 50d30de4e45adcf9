"""Platform-conventional default directories and the default allow-list.

Nothing here reads a hint variable. On Linux and other XDG platforms the
defaults are derived from the home directory directly, because
``platformdirs`` itself honours ``XDG_*_HOME`` there and would hand the
untrusted hint straight back. macOS and Windows defaults come from
``platformdirs``, which uses OS conventions and folder APIs on those systems.
"""

from __future__ import annotations

import logging
import os
import sys
from pathlib import Path
from typing import Dict, Iterable, List, Optional

import platformdirs

from dirguard.security._types import CanonicalPath, DirKind
from dirguard.security.errors import FallbackUnavailable
from dirguard.security.path_policy import AllowedRoots

logger = logging.getLogger(__name__)

_XDG_DEFAULTS: Dict[DirKind, str] = {
    DirKind.CONFIG: ".config",
    DirKind.DATA: ".local/share",
    DirKind.CACHE: ".cache",
    DirKind.STATE: ".local/state",
}

_XDG_HINTS: Dict[DirKind, str] = {
    DirKind.CONFIG: "XDG_CONFIG_HOME",
    DirKind.DATA: "XDG_DATA_HOME",
    DirKind.CACHE: "XDG_CACHE_HOME",
    DirKind.STATE: "XDG_STATE_HOME",
}

_WINDOWS_HINTS: Dict[DirKind, str] = {
    DirKind.CONFIG: "APPDATA",
    DirKind.DATA: "APPDATA",
    DirKind.CACHE: "LOCALAPPDATA",
    DirKind.STATE: "LOCALAPPDATA",
}

_POSIX_TEMP_ROOTS = ("/tmp", "/var/tmp")


def _platform(platform: Optional[str]) -> str:
    return platform or sys.platform


def hint_variable(kind: DirKind, platform: Optional[str] = None) -> str:
    """Name of the environment variable that may hint at ``kind`` on ``platform``."""
    if _platform(platform).startswith("win"):
        return _WINDOWS_HINTS[kind]
    return _XDG_HINTS[kind]


def _home(home: Optional[Path]) -> Path:
    if home is None:
        try:
            home = Path.home()
        except (RuntimeError, KeyError) as exc:
            raise FallbackUnavailable(f"cannot determine home directory: {exc}") from exc
    if not home.is_absolute() or home == Path(home.anchor):
        raise FallbackUnavailable(f"home directory {str(home)!r} is not usable")
    return home


def _platformdirs_path(kind: DirKind) -> Path:
    if kind is DirKind.CONFIG:
        return platformdirs.user_config_path(roaming=True)
    if kind is DirKind.DATA:
        return platformdirs.user_data_path(roaming=True)
    if kind is DirKind.CACHE:
        return platformdirs.user_cache_path()
    return platformdirs.user_state_path()


def _conventional_path(kind: DirKind, platform: str, home: Path) -> Path:
    if platform == "darwin" or platform.startswith("win"):
        return _platformdirs_path(kind)
    return home / _XDG_DEFAULTS[kind]


def default_dir(
    kind: DirKind, platform: Optional[str] = None, home: Optional[Path] = None
) -> CanonicalPath:
    """Return the platform-conventional directory for ``kind``.

    Args:
        kind: Requested directory kind
        platform: ``sys.platform`` style name (defaults to the running platform)
        home: Home directory override (defaults to ``Path.home()``)

    Returns:
        CanonicalPath of the conventional directory; ``exists`` reports whether
        it is already present

    Raises:
        FallbackUnavailable: If no home directory can be established or the
            conventional path cannot be made absolute
    """
    plat = _platform(platform)
    home_dir = _home(home)
    try:
        candidate = _conventional_path(kind, plat, home_dir)
    except OSError as exc:
        raise FallbackUnavailable(f"cannot determine default {kind.value} directory: {exc}") from exc

    if not candidate.is_absolute():
        raise FallbackUnavailable(f"default {kind.value} directory {candidate} is not absolute")

    canonical = Path(os.path.realpath(candidate))
    return CanonicalPath(canonical, exists=canonical.is_dir())


def discover_allowed_roots(
    platform: Optional[str] = None,
    home: Optional[Path] = None,
    extra: Iterable[Path] = (),
) -> AllowedRoots:
    """Build the default allow-list from system facts.

    Order: home directory, temp roots (POSIX), the default directory of every
    kind, then ``extra``. Computed once at start-up and treated as read-only.
    """
    plat = _platform(platform)
    home_dir = _home(home)
    paths: List[Path] = [home_dir]
    if not plat.startswith("win"):
        paths.extend(Path(p) for p in _POSIX_TEMP_ROOTS)
    for kind in DirKind:
        try:
            paths.append(default_dir(kind, plat, home_dir).as_path())
        except FallbackUnavailable as exc:
            logger.warning("default %s directory left out of allowed roots: %s", kind.value, exc)
    paths.extend(extra)
    roots = AllowedRoots.from_paths(paths)
    logger.debug("allowed roots: %s", ", ".join(str(r) for r in roots))
    return roots


__all__ = ["hint_variable", "default_dir", "discover_allowed_roots"]
