"""
Environment-driven settings.

All settings come from environment variables so the same code runs against
the paper and the live API without changes:

``APCA_API_KEY_ID`` / ``APCA_API_SECRET_KEY``
    API credentials.  The secret may instead be mounted as a file named by
    ``APCA_API_SECRET_KEY_FILE`` (Docker/Kubernetes secrets); the direct
    variable wins when both are set.
``APCA_API_BASE_URL``
    API root.  When unset, ``APCA_PAPER`` (default ``true``) picks the paper
    or the live URL.
``APCA_TIMEOUT_SECONDS`` (30), ``APCA_MAX_RETRIES`` (3),
``APCA_MAX_REQUESTS_PER_MINUTE`` (0, unlimited)
    Transport tuning.
``LOG_LEVEL`` (``INFO``)
    Used by :func:`configure_logging`.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from typing import Mapping, Optional

logger = logging.getLogger(__name__)

PAPER_URL = "https://paper-api.alpaca.markets"
LIVE_URL = "https://api.alpaca.markets"

_TRUE_VALUES = {"1", "true", "yes", "on"}


def _env_bool(value: Optional[str], default: bool) -> bool:
    if value is None or value == "":
        return default
    return value.strip().lower() in _TRUE_VALUES


def _read_secret_file(path: Optional[str]) -> str:
    if not path or not os.path.exists(path):
        return ""
    try:
        with open(path, "r", encoding="utf-8") as f:
            secret = f.read().strip()
            logger.debug("Loaded API secret from %s", path)
            return secret
    except OSError as exc:
        logger.warning("Failed to load API secret file %s: %s", path, exc)
        return ""


@dataclass(frozen=True)
class Settings:
    key_id: str = ""
    secret_key: str = ""
    base_url: str = PAPER_URL
    paper: bool = True
    timeout_seconds: float = 30.0
    max_retries: int = 3
    max_requests_per_minute: int = 0
    log_level: str = "INFO"

    def __repr__(self) -> str:
        return (
            f"Settings(key_id={self.key_id!r}, secret_key=***, base_url={self.base_url!r}, "
            f"paper={self.paper}, timeout_seconds={self.timeout_seconds}, "
            f"max_retries={self.max_retries}, max_requests_per_minute={self.max_requests_per_minute})"
        )

    @property
    def has_credentials(self) -> bool:
        return bool(self.key_id and self.secret_key)

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "Settings":
        """Build settings from ``environ`` (``os.environ`` by default).

        :raises ValueError: if a numeric variable does not parse.
        """
        env = os.environ if environ is None else environ
        paper = _env_bool(env.get("APCA_PAPER"), True)
        secret = env.get("APCA_API_SECRET_KEY") or _read_secret_file(env.get("APCA_API_SECRET_KEY_FILE"))
        return cls(
            key_id=env.get("APCA_API_KEY_ID", ""),
            secret_key=secret,
            base_url=env.get("APCA_API_BASE_URL") or (PAPER_URL if paper else LIVE_URL),
            paper=paper,
            timeout_seconds=float(env.get("APCA_TIMEOUT_SECONDS", "30")),
            max_retries=int(env.get("APCA_MAX_RETRIES", "3")),
            max_requests_per_minute=int(env.get("APCA_MAX_REQUESTS_PER_MINUTE", "0")),
            log_level=env.get("LOG_LEVEL", "INFO"),
        )


def configure_logging(level: Optional[str] = None) -> None:
    """Configure root logging for scripts; library code never calls this."""
    logging.basicConfig(level=(level or os.environ.get("LOG_LEVEL", "INFO")).upper())
