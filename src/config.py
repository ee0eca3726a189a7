"""Configuration and environment helpers for the project.

Provides small helpers to read typed environment variables and exposes
project-level configuration constants used across the codebase (e.g.
PROJECT_ROOT, BACKEND_TIMEOUT, OPERATION_CONCURRENCY, PROFILES_PATH).
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Optional


def _env_bool(name: str, default: bool) -> bool:
    raw = os.environ.get(name)
    if raw is None:
        return default
    return raw.strip().lower() in {"1", "true", "yes", "y", "on"}


def _env_int(name: str, default: int) -> int:
    raw = os.environ.get(name)
    if raw is None:
        return default
    try:
        return int(raw.strip())
    except ValueError:
        return default


def _env_float(name: str, default: float) -> float:
    raw = os.environ.get(name)
    if raw is None:
        return default
    try:
        return float(raw.strip())
    except ValueError:
        return default


def _env_str(name: str, default: Optional[str] = None) -> Optional[str]:
    raw = os.environ.get(name)
    if raw is None or not raw.strip():
        return default
    return raw.strip()


# Default root for the built-in local profile
PROJECT_ROOT = Path(os.environ.get("PROJECT_ROOT", ".")).resolve()

# Network / HTTP gateway backend
HTTP_VERIFY = _env_bool("HTTP_VERIFY", False)
HTTP_TIMEOUT = _env_float("HTTP_TIMEOUT", 20.0)

# Per backend call deadline in seconds; 0 disables it
BACKEND_TIMEOUT = _env_float("BACKEND_TIMEOUT", 30.0)

# Item-by-item fan-out bound for copy/move/delete batches
OPERATION_CONCURRENCY = max(1, _env_int("OPERATION_CONCURRENCY", 4))

# Limits / output
COMMAND_LOG_LIMIT = max(1, _env_int("COMMAND_LOG_LIMIT", 200))
MAX_READ_CHARS = _env_int("MAX_READ_CHARS", 200_000)

# Profiles
PROFILES_PATH = _env_str("PROFILES_PATH")
LEFT_PROFILE = _env_str("LEFT_PROFILE", "L")
RIGHT_PROFILE = _env_str("RIGHT_PROFILE", "S")

LOG_LEVEL = _env_str("LOG_LEVEL", "INFO")
