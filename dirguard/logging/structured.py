"""JSONL persistence for resolution diagnostics.

Each line is one diagnostic record: a timestamp, the level, the component, the
stage name as ``message``, then the record's own fields (``run_id``,
``requested_kind``, ``verdict``, ``path`` ...). Files rotate by size to
``<name>.1.jsonl``, ``<name>.2.jsonl`` and so on.
"""

from __future__ import annotations

import json
import logging
from datetime import datetime, timezone
from enum import Enum
from pathlib import Path
from typing import IO, Any, Optional, Union

logger = logging.getLogger(__name__)


class LogLevel(Enum):
    DEBUG = "debug"
    WARNING = "warning"
    ERROR = "error"


class JsonlLogger:
    """Append-only JSONL file with size-based rotation.

    Args:
        path: Log file; parent directories are created
        component: Written into every entry
        max_bytes: Rotate before a write would grow the file past this size
            (None = never rotate)
        keep: Number of rotated files to keep
    """

    def __init__(
        self,
        path: Union[str, Path],
        component: str,
        max_bytes: Optional[int] = None,
        keep: int = 5,
    ) -> None:
        self.path = Path(path)
        self.component = component
        self.max_bytes = max_bytes
        self.keep = keep
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self._fh: Optional[IO[str]] = None
        self._size = 0
        self._open()

    def _open(self) -> None:
        self._fh = open(self.path, "a", encoding="utf-8")
        self._size = self.path.stat().st_size

    def backup_path(self, n: int) -> Path:
        return self.path.with_name(f"{self.path.stem}.{n}{self.path.suffix}")

    def _rotate(self) -> None:
        if self._fh is not None:
            self._fh.close()
        try:
            if self.keep > 0:
                for n in range(self.keep - 1, 0, -1):
                    if self.backup_path(n).exists():
                        self.backup_path(n).replace(self.backup_path(n + 1))
                self.path.replace(self.backup_path(1))
            else:
                self.path.unlink()
        except OSError as exc:
            logger.warning("could not rotate %s: %s; appending instead", self.path, exc)
        self._open()

    def log(self, level: LogLevel, message: str, **fields: Any) -> None:
        """Append one entry; ``fields`` must not reuse the envelope keys."""
        entry = {
            "ts": datetime.now(timezone.utc).isoformat(timespec="milliseconds"),
            "level": level.value,
            "component": self.component,
            "message": message,
            **fields,
        }
        line = json.dumps(entry, default=str, separators=(",", ":")) + "\n"
        size = len(line.encode("utf-8"))
        if self.max_bytes and self._size and self._size + size > self.max_bytes:
            self._rotate()
        if self._fh is None:
            raise ValueError(f"{self.path} is closed")
        self._fh.write(line)
        self._fh.flush()
        self._size += size

    def close(self) -> None:
        if self._fh is not None:
            self._fh.close()
            self._fh = None


def create_logger(
    component: str, log_dir: Optional[Union[str, Path]] = None
) -> Optional[JsonlLogger]:
    """Open ``<log_dir>/<component>.jsonl`` with retention from DIRGUARD_LOG_*.

    ``log_dir`` defaults to DIRGUARD_LOG_DIR. Returns None when neither is set.
    """
    from dirguard.config import Settings

    current = Settings.from_env()
    log_dir = log_dir or current.log_dir
    if not log_dir:
        return None
    max_bytes = current.log_max_size_mb * 1024 * 1024 if current.log_max_size_mb else None
    return JsonlLogger(
        Path(log_dir) / f"{component}.jsonl",
        component,
        max_bytes=max_bytes,
        keep=current.log_max_files,
    )
