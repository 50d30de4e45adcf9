"""Turn a raw environment hint into a structured PathCandidate.

Purely syntactic: nothing in this module touches the filesystem.
"""

from __future__ import annotations

import os
import re
import sys
from typing import List, Mapping, Optional

from ._types import PathCandidate, RawHint
from .errors import MalformedHint, NoHintProvided

_DRIVE_RE = re.compile(r"^[A-Za-z]:$")


def read_hint(source: str, environ: Optional[Mapping[str, str]] = None) -> RawHint:
    """Capture a variable from ``environ`` (default ``os.environ``) without interpreting it."""
    env = os.environ if environ is None else environ
    return RawHint(source=source, text=env.get(source))


def _check_encodable(text: str) -> None:
    try:
        text.encode(sys.getfilesystemencoding(), "strict")
    except UnicodeEncodeError as exc:
        raise MalformedHint(
            f"hint is not representable in the filesystem encoding at offset {exc.start}"
        ) from exc


def _separators() -> str:
    return os.sep + (os.altsep or "")


def parse_hint(hint: RawHint) -> PathCandidate:
    """Parse ``hint`` into a PathCandidate.

    Args:
        hint: Raw text captured from the environment

    Returns:
        PathCandidate with the absolute flag set and empty segments dropped

    Raises:
        NoHintProvided: If the variable is absent or empty
        MalformedHint: If the text contains a NUL byte, cannot be encoded for
            the filesystem, or is not an absolute path
    """
    if hint.text is None or hint.text == "":
        raise NoHintProvided(hint.source)

    raw = hint.text
    if "\x00" in raw:
        raise MalformedHint("NUL byte in hint")
    _check_encodable(raw)

    seps = _separators()
    anchor = ""
    rest = raw
    if os.name == "nt":
        head, _, tail = raw.partition(":")
        if _DRIVE_RE.match(head + ":") and tail[:1] in ("/", "\\"):
            anchor, rest = head + ":\\", tail
        elif raw.startswith(("\\\\", "//")):
            # UNC and device paths are never accepted as configuration roots.
            raise MalformedHint("UNC and device paths are not permitted")
    elif raw[:1] in seps:
        anchor = os.sep

    if not anchor:
        raise MalformedHint("hint is not an absolute path")

    pattern = "[" + re.escape(seps) + "]+"
    segments: List[str] = [s for s in re.split(pattern, rest) if s]
    return PathCandidate(
        source=hint.source,
        raw=raw,
        segments=tuple(segments),
        is_absolute=True,
        anchor=anchor,
    )


__all__ = ["read_hint", "parse_hint"]
