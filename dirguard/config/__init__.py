"""dirguard centralized configuration for runtime settings.

All settings are backed by environment variables following the DIRGUARD_*
naming convention. The override toggle (DIRGUARD_ALLOW_CUSTOM_PATHS) is read
per resolution by ``dirguard.security.trust_mode_from_env`` and is
intentionally not part of Settings.

Example:
    >>> from dirguard.config import settings
    >>> settings.app_name
    'dirguard'

Environment Variables:
    DIRGUARD_APP_NAME: Application subdirectory name (default: dirguard)
    DIRGUARD_LOG_DIR: Directory for JSONL diagnostic logs (default: unset)
    DIRGUARD_LOG_LEVEL: Console log level for the CLI (default: WARNING)
    DIRGUARD_LOG_MAX_SIZE_MB: Rotate diagnostic logs above this size (default: unset)
    DIRGUARD_LOG_MAX_FILES: Rotated diagnostic logs to keep (default: 5)
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Optional

_PREFIX = "DIRGUARD_"


def _env(name: str, default: str) -> str:
    """Get environment variable with DIRGUARD_* prefix validation."""
    if not name.startswith(_PREFIX):
        raise ValueError(f"Only {_PREFIX}* env vars are allowed, got: {name}")
    return os.getenv(name, default)


def _env_int(name: str, default: int) -> int:
    raw = _env(name, str(default))
    try:
        return int(raw)
    except ValueError:
        return default


def _env_optional(name: str) -> Optional[str]:
    raw = _env(name, "").strip()
    return raw or None


def _env_optional_int(name: str) -> Optional[int]:
    raw = _env_optional(name)
    if raw is None:
        return None
    try:
        return int(raw)
    except ValueError:
        return None


@dataclass(frozen=True)
class Settings:
    """Centralized runtime settings for dirguard.

    Frozen to prevent mutation at runtime. Use ``Settings.from_env()`` to
    re-read the environment (tests do this after monkeypatching).
    """

    app_name: str = "dirguard"
    log_dir: Optional[str] = None
    log_level: str = "WARNING"
    log_max_size_mb: Optional[int] = None
    log_max_files: int = 5

    @classmethod
    def from_env(cls) -> "Settings":
        return cls(
            app_name=_env("DIRGUARD_APP_NAME", "dirguard").strip() or "dirguard",
            log_dir=_env_optional("DIRGUARD_LOG_DIR"),
            log_level=_env("DIRGUARD_LOG_LEVEL", "WARNING").upper(),
            log_max_size_mb=_env_optional_int("DIRGUARD_LOG_MAX_SIZE_MB"),
            log_max_files=_env_int("DIRGUARD_LOG_MAX_FILES", 5),
        )


# Module-level instance for convenient access
settings = Settings.from_env()

__all__ = ["settings", "Settings"]
