"""Application directories and config-file lookup built on the resolver.

User-global layout (``<config base>`` is the resolved config directory)::

    <config base>/<app>/{config,toolset,state,logs,data,bin,cache}

A git working tree may carry a local ``.<app>/`` directory whose files take
precedence over the user-global ones in ``resolve_config_file`` and
``resolve_toolset``.
"""

from __future__ import annotations

import logging
from functools import lru_cache
from pathlib import Path
from typing import List, Optional

from dirguard.config import settings
from dirguard.resolver import Resolver, default_resolver
from dirguard.security._types import DirKind
from dirguard.security.errors import ConfigFileNotFound, NotInGitRepository
from dirguard.security.path_sanitizer import check_segment

logger = logging.getLogger(__name__)


def _leaf(name: str) -> str:
    """Validate a single path component supplied by code or a caller."""
    if not name:
        raise ValueError("empty name")
    if name.startswith("."):
        raise ValueError(f"hidden or dot-prefixed name not allowed: {name!r}")
    # check_segment rejects dot segments, separators and their encoded forms.
    return check_segment(name)


def app_name() -> str:
    return _leaf(settings.app_name)


def user_config_dir(resolver: Optional[Resolver] = None) -> Path:
    """``<resolved config base>/<app>``. Never the local ``.<app>`` directory."""
    base = (resolver or default_resolver()).resolve(DirKind.CONFIG).resolved_path
    return base / app_name()


def _subdir(name: str, resolver: Optional[Resolver]) -> Path:
    return user_config_dir(resolver) / name


def config_dir(resolver: Optional[Resolver] = None) -> Path:
    return _subdir("config", resolver)


def toolset_dir(resolver: Optional[Resolver] = None) -> Path:
    return _subdir("toolset", resolver)


def state_dir(resolver: Optional[Resolver] = None) -> Path:
    return _subdir("state", resolver)


def log_dir(resolver: Optional[Resolver] = None) -> Path:
    return _subdir("logs", resolver)


def data_dir(resolver: Optional[Resolver] = None) -> Path:
    return _subdir("data", resolver)


def bin_dir(resolver: Optional[Resolver] = None) -> Path:
    return _subdir("bin", resolver)


def cache_dir(resolver: Optional[Resolver] = None) -> Path:
    return _subdir("cache", resolver)


@lru_cache(maxsize=64)
def _discover_git_root(start: Path) -> Optional[Path]:
    for path in [start, *start.parents]:
        if (path / ".git").exists():
            return path
    return None


def find_git_root(start: Optional[Path] = None) -> Path:
    """Return the nearest enclosing directory containing ``.git``.

    Results are cached per starting directory; call ``clear_git_root_cache``
    after changing directories or creating a repository.

    Raises:
        NotInGitRepository: If no ancestor of ``start`` (default: cwd) has ``.git``
    """
    origin = (start or Path.cwd()).resolve()
    root = _discover_git_root(origin)
    if root is None:
        raise NotInGitRepository(f"Not in a git repository (searched from: {origin})")
    return root


def clear_git_root_cache() -> None:
    _discover_git_root.cache_clear()


def local_config_dir(start: Optional[Path] = None) -> Path:
    """``<git root>/.<app>``; raises NotInGitRepository outside a working tree."""
    return find_git_root(start) / f".{app_name()}"


def resolve_in_dir(base_dir: Path, subdir: str, filename: str) -> Optional[Path]:
    """Return the canonical path of ``base_dir/subdir/filename`` if it stays inside.

    Both the file and the directory are canonicalized (which also checks that
    they exist) and the file must end up strictly below the directory. A
    symlink that leads out of the directory yields None, as does a missing file.
    """
    filename = _leaf(filename)
    base_path = base_dir / _leaf(subdir) if subdir else base_dir
    search_path = base_path / filename

    try:
        canonical_file = search_path.resolve(strict=True)
        canonical_base = base_path.resolve(strict=True)
    except (OSError, RuntimeError):
        return None

    if canonical_base in canonical_file.parents:
        return canonical_file
    logger.warning("%s resolves outside %s (to %s); ignoring", search_path, canonical_base, canonical_file)
    return None


def _resolve_with_precedence(
    display_name: str,
    subdir: str,
    filename: str,
    start: Optional[Path],
    resolver: Optional[Resolver],
) -> Path:
    searched: List[str] = []

    try:
        local = local_config_dir(start)
    except NotInGitRepository:
        local = None
    if local is not None:
        searched.append(str(local / subdir / filename if subdir else local / filename))
        found = resolve_in_dir(local, subdir, filename)
        if found is not None:
            return found

    user = user_config_dir(resolver)
    searched.append(str(user / subdir / filename if subdir else user / filename))
    found = resolve_in_dir(user, subdir, filename)
    if found is not None:
        return found

    raise ConfigFileNotFound(display_name, searched)


def resolve_config_file(
    filename: str, start: Optional[Path] = None, resolver: Optional[Resolver] = None
) -> Path:
    """Find ``filename`` in ``<git root>/.<app>/`` first, then the user config dir.

    Raises:
        ConfigFileNotFound: Listing every path that was searched
    """
    return _resolve_with_precedence(filename, "", filename, start, resolver)


def resolve_toolset(
    name: str, start: Optional[Path] = None, resolver: Optional[Resolver] = None
) -> Path:
    """Find ``toolset/<name>.json`` locally first, then in the user config dir.

    Raises:
        ConfigFileNotFound: Listing every path that was searched
    """
    return _resolve_with_precedence(name, "toolset", f"{_leaf(name)}.json", start, resolver)


__all__ = [
    "app_name",
    "user_config_dir",
    "config_dir",
    "toolset_dir",
    "state_dir",
    "log_dir",
    "data_dir",
    "bin_dir",
    "cache_dir",
    "find_git_root",
    "clear_git_root_cache",
    "local_config_dir",
    "resolve_in_dir",
    "resolve_config_file",
    "resolve_toolset",
]
