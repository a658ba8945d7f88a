"""cfn_magic.response - Result envelope and delivery to CloudFormation.

CloudFormation waits on a pre-signed S3 URL for a JSON document describing
the outcome of the custom resource. The document is PUT with an empty
Content-Type; the signature covers the headers, so any other value is
rejected.
"""
from __future__ import annotations

import datetime as dt
import http.client
import json
import logging
import urllib.error
import urllib.parse
import urllib.request
from dataclasses import dataclass
from decimal import Decimal
from typing import Any, Callable, Dict, Optional

from .config import RESPONSE_MAX_ATTEMPTS, RESPONSE_TIMEOUT_SECONDS
from .errors import DeliveryError

logger = logging.getLogger(__name__)

__all__ = [
    "FAILED",
    "SUCCESS",
    "DeliveryReceipt",
    "ResponseTransmitter",
    "ResultEnvelope",
]

SUCCESS = "SUCCESS"
FAILED = "FAILED"

UNSPECIFIED_FAILURE = "Unspecified failure"


def _json_default(obj: Any) -> Any:
    if isinstance(obj, Decimal):
        if obj % 1 == 0:
            return int(obj)
        return float(obj)
    if isinstance(obj, (dt.datetime, dt.date)):
        return obj.isoformat()
    raise TypeError(f"Object of type {type(obj).__name__} is not JSON serializable")


@dataclass(frozen=True)
class ResultEnvelope:
    """The response document for one CloudFormation request."""

    status: str
    physical_resource_id: str
    stack_id: str
    request_id: str
    logical_resource_id: str
    reason: str = ""
    data: Optional[Dict[str, Any]] = None

    @classmethod
    def success(
        cls,
        correlation: Dict[str, str],
        physical_resource_id: str,
        data: Optional[Dict[str, Any]] = None,
    ) -> "ResultEnvelope":
        return cls(
            status=SUCCESS,
            physical_resource_id=physical_resource_id,
            stack_id=correlation["StackId"],
            request_id=correlation["RequestId"],
            logical_resource_id=correlation["LogicalResourceId"],
            reason="",
            data=data,
        )

    @classmethod
    def failure(
        cls,
        correlation: Dict[str, str],
        physical_resource_id: str,
        reason: Any,
    ) -> "ResultEnvelope":
        return cls(
            status=FAILED,
            physical_resource_id=physical_resource_id,
            stack_id=correlation["StackId"],
            request_id=correlation["RequestId"],
            logical_resource_id=correlation["LogicalResourceId"],
            reason=str(reason or "").strip() or UNSPECIFIED_FAILURE,
            data=None,
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "Status": self.status,
            "Reason": self.reason if self.status == FAILED else "",
            "PhysicalResourceId": self.physical_resource_id,
            "StackId": self.stack_id,
            "RequestId": self.request_id,
            "LogicalResourceId": self.logical_resource_id,
            "Data": self.data,
        }

    def serialize(self) -> bytes:
        return json.dumps(self.to_dict(), default=_json_default).encode("utf-8")


@dataclass(frozen=True)
class DeliveryReceipt:
    attempts: int
    status_code: Optional[int] = None


def _safe_url(url: str) -> str:
    """Strip the query string so pre-signed credentials stay out of the logs."""
    parts = urllib.parse.urlsplit(url)
    return urllib.parse.urlunsplit((parts.scheme, parts.netloc, parts.path, "", ""))


class ResponseTransmitter:
    """PUT a ResultEnvelope to the ResponseURL, retrying transport failures.

    Attempts are immediate and bounded by ``max_attempts``. Exhausting them
    raises DeliveryError; there is nobody left to tell, so the Lambda
    invocation itself must fail.
    """

    def __init__(
        self,
        max_attempts: int = RESPONSE_MAX_ATTEMPTS,
        timeout: float = RESPONSE_TIMEOUT_SECONDS,
        opener: Optional[Callable[..., Any]] = None,
    ) -> None:
        self.max_attempts = max(1, int(max_attempts))
        self.timeout = timeout
        self._opener = opener or urllib.request.urlopen

    def _request(self, url: str, body: bytes) -> urllib.request.Request:
        return urllib.request.Request(
            url,
            data=body,
            method="PUT",
            headers={"Content-Type": "", "Content-Length": str(len(body))},
        )

    def send(self, envelope: ResultEnvelope, url: str) -> DeliveryReceipt:
        body = envelope.serialize()
        target = _safe_url(url)
        last_error: Optional[BaseException] = None

        for attempt in range(1, self.max_attempts + 1):
            logger.info(
                "[INFO] Response attempt %d/%d to %s: %s",
                attempt,
                self.max_attempts,
                target,
                body.decode("utf-8"),
            )
            try:
                with self._opener(self._request(url, body), timeout=self.timeout) as resp:
                    status_code = getattr(resp, "status", None)
                    resp.read()
            except urllib.error.HTTPError as exc:
                if exc.code < 500:
                    logger.error("[ERROR] ResponseURL rejected response: HTTP %s", exc.code)
                    raise DeliveryError(
                        f"ResponseURL rejected response with HTTP {exc.code}",
                        attempts=attempt,
                    ) from exc
                last_error = exc
            except (urllib.error.URLError, OSError, http.client.HTTPException) as exc:
                last_error = exc
            else:
                logger.info("[DONE] Response delivered after %d attempt(s)", attempt)
                return DeliveryReceipt(attempts=attempt, status_code=status_code)

            logger.warning("Response attempt %d failed: %s", attempt, last_error)

        raise DeliveryError(
            f"Failed to respond to CloudFormation after {self.max_attempts} attempts: {last_error}",
            attempts=self.max_attempts,
        )
