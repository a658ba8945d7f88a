"""cfn_magic.errors - Error taxonomy for custom-resource handling.

Only the status and the reason string reach CloudFormation; the classes here
decide whether a report is sent at all and how the reason is worded.
"""
from __future__ import annotations

from typing import Any

from botocore.exceptions import ClientError

__all__ = [
    "DeliveryError",
    "DependencyError",
    "MagicResourceError",
    "ProtocolError",
    "ValidationError",
    "error_code",
]


class MagicResourceError(Exception):
    """Base class for errors raised by cfn_magic."""


class ProtocolError(MagicResourceError):
    """The invocation is not a CloudFormation custom-resource event."""


class ValidationError(MagicResourceError, ValueError):
    """A resource was constructed from an incomplete property bag."""


class DependencyError(MagicResourceError):
    """An AWS dependency rejected the operation or returned unusable data."""


class DeliveryError(MagicResourceError):
    """The result envelope could not be delivered to the ResponseURL."""

    def __init__(self, message: str, attempts: int = 0) -> None:
        super().__init__(message)
        self.attempts = attempts


def error_code(exc: Any) -> str:
    """Return the AWS error code of a ClientError, or an empty string."""
    if isinstance(exc, ClientError):
        return str(exc.response.get("Error", {}).get("Code", "") or "")
    return ""
