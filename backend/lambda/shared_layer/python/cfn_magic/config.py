"""cfn_magic.config - Environment configuration and logging.

Environment variables:
    RESPONSE_MAX_ATTEMPTS      default: 5
    RESPONSE_TIMEOUT_SECONDS   default: 10
    AWS_CLIENT_MAX_ATTEMPTS    default: 3
    DEFAULT_REGION             default: $AWS_REGION, then us-east-1
    LOG_LEVEL                  default: INFO
"""
from __future__ import annotations

import logging
import os

__all__ = [
    "AWS_CLIENT_MAX_ATTEMPTS",
    "DEFAULT_REGION",
    "LOG_LEVEL",
    "RESPONSE_MAX_ATTEMPTS",
    "RESPONSE_TIMEOUT_SECONDS",
    "configure_logging",
]


def _env_int(name: str, default: int, minimum: int = 1) -> int:
    raw = os.environ.get(name, "")
    try:
        value = int(raw) if raw.strip() else default
    except ValueError:
        value = default
    return max(minimum, value)


# ---------------------------------------------------------------------------
# Configuration
# ---------------------------------------------------------------------------

RESPONSE_MAX_ATTEMPTS: int = _env_int("RESPONSE_MAX_ATTEMPTS", 5)
RESPONSE_TIMEOUT_SECONDS: int = _env_int("RESPONSE_TIMEOUT_SECONDS", 10)
AWS_CLIENT_MAX_ATTEMPTS: int = _env_int("AWS_CLIENT_MAX_ATTEMPTS", 3)
DEFAULT_REGION: str = os.environ.get(
    "DEFAULT_REGION", os.environ.get("AWS_REGION", "us-east-1")
)
LOG_LEVEL: str = os.environ.get("LOG_LEVEL", "INFO").upper()


# ---------------------------------------------------------------------------
# Logging
# ---------------------------------------------------------------------------


def configure_logging(level: str = LOG_LEVEL) -> logging.Logger:
    """Set the root logger level; Lambda installs its own handler."""
    logger = logging.getLogger()
    logger.setLevel(getattr(logging, level, logging.INFO))
    if not logger.handlers:
        logging.basicConfig(format="%(asctime)s %(levelname)s %(name)s %(message)s")
    return logger
