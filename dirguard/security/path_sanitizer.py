"""Static traversal screening for parsed path candidates.

This module inspects path segments before any filesystem access. Dot
segments are rejected in literal, percent-encoded and look-alike form.

Key functions:
- check_segment: Validate one segment, raising TraversalAttempt on escape forms
- sanitize_candidate: Validate every segment of a PathCandidate

All functions are side-effect free and deterministic.
"""

from __future__ import annotations

import os
import re
import unicodedata
from typing import Optional
from urllib.parse import unquote

from ._types import PathCandidate
from .errors import MalformedHint, TraversalAttempt

MAX_SEGMENT_LENGTH = 255
MAX_TOTAL_LENGTH = 4096
MAX_SEGMENTS = 128

_WINDOWS = os.name == "nt"

# Characters that render as, or normalize toward, a dot or a path separator.
_LOOKALIKES = {
    "․": ".",  # ONE DOT LEADER
    "‥": "..",  # TWO DOT LEADER
    "…": "...",  # HORIZONTAL ELLIPSIS
    "．": ".",  # FULLWIDTH FULL STOP
    "﹒": ".",  # SMALL FULL STOP
    "。": ".",  # IDEOGRAPHIC FULL STOP
    "｡": ".",  # HALFWIDTH IDEOGRAPHIC FULL STOP
    "∕": "/",  # DIVISION SLASH
    "⁄": "/",  # FRACTION SLASH
    "／": "/",  # FULLWIDTH SOLIDUS
    "⧸": "/",  # BIG SOLIDUS
    "＼": "\\",  # FULLWIDTH REVERSE SOLIDUS
    "⧹": "\\",  # BIG REVERSE SOLIDUS
}

_ENCODED_RE = re.compile(r"%(25)*(2e|2f|5c|c0%ae|c0%af|c1%9c)", re.IGNORECASE)
_CONTROL_RE = re.compile(r"[\x00-\x1F\x7F]")


def _fold(segment: str) -> str:
    """Return the segment with compatibility forms and look-alikes folded to ASCII."""
    folded = unicodedata.normalize("NFKC", segment)
    return "".join(_LOOKALIKES.get(ch, ch) for ch in folded)


def _decode(segment: str) -> str:
    # Repeated unquoting defeats double and triple encoding.
    previous = segment
    for _ in range(4):
        current = unquote(previous)
        if current == previous:
            break
        previous = current
    return previous


def _is_dot_segment(segment: str) -> bool:
    if segment in (".", ".."):
        return True
    # Win32 drops trailing dots and spaces, so "... " and ". ." name "." or "..".
    return _WINDOWS and "." in segment and not segment.strip(" .")


def check_segment(segment: str, index: Optional[int] = None) -> str:
    """Validate a single path segment.

    The segment is judged on its NFC, decoded and NFKC-folded forms. The text
    returned is the input unchanged.

    Args:
        segment: One component of a candidate path
        index: Position of the segment, carried into the raised error

    Returns:
        ``segment``, unmodified

    Raises:
        TraversalAttempt: If the segment is, or decodes to, a dot segment or
            contains a separator in any encoded or look-alike form
        MalformedHint: If the segment has control characters or is too long
    """
    normalized = unicodedata.normalize("NFC", segment)

    if _CONTROL_RE.search(segment):
        raise MalformedHint(f"control characters not permitted in segment {index}")
    if len(segment.encode("utf-8", "surrogateescape")) > MAX_SEGMENT_LENGTH:
        raise MalformedHint(f"segment {index} too long")

    if _is_dot_segment(normalized):
        raise TraversalAttempt(
            f"dot segment '{segment}' not permitted", index=index, segment=segment
        )
    if _ENCODED_RE.search(normalized):
        raise TraversalAttempt(
            "percent-encoded dot or separator", index=index, segment=segment
        )
    if "\\" in normalized or "/" in normalized:
        raise TraversalAttempt("mixed path separators", index=index, segment=segment)
    if "...." in normalized:
        raise TraversalAttempt("excessive dot run", index=index, segment=segment)

    folded = _fold(_decode(normalized))
    if folded != normalized:
        if (
            _is_dot_segment(folded.strip())
            or "...." in folded
            or "/" in folded
            or "\\" in folded
        ):
            raise TraversalAttempt(
                "look-alike dot or separator characters", index=index, segment=segment
            )

    return segment


def sanitize_candidate(candidate: PathCandidate) -> PathCandidate:
    """Validate every segment of ``candidate``.

    Args:
        candidate: PathCandidate from hint_parser

    Returns:
        ``candidate`` itself; segments are never rewritten

    Raises:
        TraversalAttempt: On the first segment that carries an escape form
        MalformedHint: If limits on segment count or total length are exceeded
    """
    if len(candidate.raw) > MAX_TOTAL_LENGTH:
        raise MalformedHint(f"path too long: {len(candidate.raw)} > {MAX_TOTAL_LENGTH}")
    if len(candidate.segments) > MAX_SEGMENTS:
        raise MalformedHint(
            f"too many path components: {len(candidate.segments)} > {MAX_SEGMENTS}"
        )

    for idx, seg in enumerate(candidate.segments):
        check_segment(seg, idx)
    return candidate


__all__ = [
    "MAX_SEGMENT_LENGTH",
    "MAX_TOTAL_LENGTH",
    "MAX_SEGMENTS",
    "check_segment",
    "sanitize_candidate",
]
