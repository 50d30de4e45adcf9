"""Resolve a sanitized PathCandidate against the real filesystem.

The walk is done one segment at a time with ``lstat``/``readlink`` rather than
``Path.resolve``: each symlink hop is recorded and its target re-screened for
traversal segments before it is followed. Only read-only calls are made.
"""

from __future__ import annotations

import logging
import os
import stat as _stat
from pathlib import Path, PurePath
from typing import List, Tuple

from ._types import CanonicalPath, PathCandidate
from .errors import PathNotResolvable, TraversalAttempt
from .path_sanitizer import check_segment

logger = logging.getLogger(__name__)

# Same bound the kernel applies (ELOOP).
MAX_SYMLINK_HOPS = 40


def _split_link_target(target: str) -> Tuple[str, List[str]]:
    pure = PurePath(target)
    anchor = pure.anchor
    parts = list(pure.parts[1:] if anchor else pure.parts)
    return anchor, parts


def _screen_link_target(link: Path, target: str) -> List[str]:
    """Re-run the segment checks on a symlink target before following it."""
    anchor, parts = _split_link_target(target)
    screened: List[str] = []
    for idx, part in enumerate(parts):
        if part == ".":
            continue
        try:
            screened.append(check_segment(part, idx))
        except TraversalAttempt as exc:
            raise TraversalAttempt(
                f"symlink {link} points through '{part}': {exc}",
                index=idx,
                segment=part,
            ) from exc
    return screened


def canonicalize(candidate: PathCandidate) -> CanonicalPath:
    """Resolve every segment of ``candidate``, following and recording symlinks.

    Args:
        candidate: Absolute, sanitized PathCandidate

    Returns:
        CanonicalPath of an existing directory, or of a missing leaf whose
        parent directory exists (``exists`` is False in that case)

    Raises:
        PathNotResolvable: If an intermediate component is missing or not a
            directory, a symlink dangles, permission is denied, or links loop
        TraversalAttempt: If a symlink target carries a ``..`` segment or the
            final path still contains dot segments
    """
    if not candidate.is_absolute or not candidate.anchor:
        raise PathNotResolvable("candidate is not absolute")

    resolved = Path(candidate.anchor)
    # (segment, came_from_symlink_target)
    pending: List[Tuple[str, bool]] = [(seg, False) for seg in candidate.segments]
    hops: List[Tuple[str, str]] = []

    while pending:
        seg, from_link = pending.pop(0)
        nxt = resolved / seg
        try:
            st = os.lstat(os.fspath(nxt))
        except FileNotFoundError:
            if pending or from_link:
                raise PathNotResolvable(f"{nxt} does not exist") from None
            logger.debug("leaf %s does not exist yet; parent %s resolved", nxt, resolved)
            return _finish(nxt, exists=False, hops=hops)
        except NotADirectoryError:
            raise PathNotResolvable(f"{resolved} is not a directory") from None
        except OSError as exc:
            raise PathNotResolvable(f"cannot stat {nxt}: {exc.strerror or exc}") from exc

        if _stat.S_ISLNK(st.st_mode):
            if len(hops) >= MAX_SYMLINK_HOPS:
                raise PathNotResolvable(f"too many levels of symbolic links at {nxt}")
            try:
                target = os.readlink(os.fspath(nxt))
            except OSError as exc:
                raise PathNotResolvable(f"cannot read link {nxt}: {exc.strerror or exc}") from exc
            parts = _screen_link_target(nxt, target)
            hops.append((str(nxt), target))
            anchor, _ = _split_link_target(target)
            if anchor:
                resolved = Path(anchor)
            pending = [(p, True) for p in parts] + pending
        elif _stat.S_ISDIR(st.st_mode):
            resolved = nxt
        else:
            raise PathNotResolvable(f"{nxt} is not a directory")

    return _finish(resolved, exists=True, hops=hops)


def _finish(path: Path, *, exists: bool, hops: List[Tuple[str, str]]) -> CanonicalPath:
    for idx, part in enumerate(path.parts):
        if part in (".", ".."):
            raise TraversalAttempt(
                f"dot segment survived canonicalization: {path}", index=idx, segment=part
            )
    return CanonicalPath(path, exists=exists, symlinks=tuple(hops))


__all__ = ["MAX_SYMLINK_HOPS", "canonicalize"]
