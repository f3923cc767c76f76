from __future__ import annotations

"""Library-level configuration helpers (env → constants).

Only generic settings that may be imported *anywhere* in the code-base
should live in this module.  Avoid importing heavy libraries so the import
cost stays near-zero for callers that only need the message models.
"""

# Standard library
import os

from dotenv import load_dotenv

load_dotenv()

__all__ = [
    "API_HOST",
    "APP_ENV",
    "HTTP_TIMEOUT",
    "LOG_LEVEL",
    "MAX_BATCH_BYTES",
    "MAX_MESSAGE_BYTES",
]


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        return int(raw)
    except ValueError as exc:
        raise RuntimeError(f"{name} must be an integer, got {raw!r}") from exc


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        return float(raw)
    except ValueError as exc:
        raise RuntimeError(f"{name} must be a number, got {raw!r}") from exc


# Tracking API base URL; destination paths (/v1/track, …) are appended to it.
API_HOST: str = os.getenv("TRACKWIRE_API_HOST", "https://api.segment.io").rstrip("/")

HTTP_TIMEOUT: float = _env_float("TRACKWIRE_HTTP_TIMEOUT", 10.0)

# Size caps enforced by the tracking API (32 KiB per message, 500 KiB per batch)
MAX_MESSAGE_BYTES: int = _env_int("TRACKWIRE_MAX_MESSAGE_BYTES", 32 * 1024)
MAX_BATCH_BYTES: int = _env_int("TRACKWIRE_MAX_BATCH_BYTES", 500 * 1024)

LOG_LEVEL: str = os.getenv("TRACKWIRE_LOG_LEVEL", "INFO").upper()

APP_ENV: str = os.getenv("APP_ENV", "production")
