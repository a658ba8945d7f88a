"""SpotFleet - a spot fleet request whose instances outlive the request.

    {
      "Type": "Custom::SpotFleet",
      "Properties": {
        "SpotFleetRequestConfigData": {...},
        "Region": "us-east-1",
        "OverrideTargetCapacity": "false"
      }
    }

Updates never shrink a running fleet unless OverrideTargetCapacity is set:
the new request asks for at least the capacity of the one it replaces. The
replacement request is created before the old one is cancelled, and
cancelling leaves already-running instances alone.
"""
from __future__ import annotations

import logging
import math
import re
from typing import Any, Dict, Optional

from botocore.exceptions import ClientError

from ..errors import DependencyError, ValidationError, error_code
from ..resource import ResourceRequest, ResourceResult, as_bool, require

logger = logging.getLogger(__name__)

NOT_FOUND = "InvalidSpotFleetRequestId.NotFound"
REQUEST_ID_RE = re.compile(r"^sfr-[a-z0-9-]{36}$")
_NUMERIC_RE = re.compile(r"^\s*[-+]?(\d+(\.\d*)?|\.\d+)([eE][-+]?\d+)?\s*$")


def _coerce_scalar(key: Optional[str], value: Any) -> Any:
    if key == "SpotPrice":
        return value
    if isinstance(value, bool) or value is None or value == "":
        return value
    if key == "WeightedCapacity":
        return float(value)
    if key == "TargetCapacity":
        return int(math.ceil(float(value)))
    if isinstance(value, str):
        if value == "true":
            return True
        if value == "false":
            return False
        if _NUMERIC_RE.match(value):
            return int(float(value))
        return value
    return value


def coerce_config(value: Any, key: Optional[str] = None) -> Any:
    """Undo CloudFormation's stringification of nested custom-resource properties."""
    if isinstance(value, dict):
        return {k: coerce_config(v, k) for k, v in value.items()}
    if isinstance(value, list):
        return [coerce_config(item, key) for item in value]
    try:
        return _coerce_scalar(key, value)
    except (TypeError, ValueError) as exc:
        raise ValidationError(f"Invalid value for {key}: {value!r}") from exc


class SpotFleet:
    def __init__(self, request: ResourceRequest) -> None:
        props = request.properties
        config = require(props, "SpotFleetRequestConfigData")
        if not isinstance(config, dict):
            raise ValidationError("SpotFleetRequestConfigData must be an object")
        self.region = require(props, "Region")
        self.override_target_capacity = as_bool(props.get("OverrideTargetCapacity"))
        self.config: Dict[str, Any] = coerce_config(config)
        self.request_id: Optional[str] = request.physical_id
        self.ec2 = request.clients("ec2", self.region)

    def _describe(self, request_id: str) -> Optional[Dict[str, Any]]:
        """The existing request config, or None when EC2 no longer knows it."""
        try:
            resp = self.ec2.describe_spot_fleet_requests(SpotFleetRequestIds=[request_id])
        except ClientError as exc:
            if error_code(exc) == NOT_FOUND:
                return None
            raise
        configs = resp.get("SpotFleetRequestConfigs") or []
        if not configs:
            return None
        return configs[0].get("SpotFleetRequestConfig") or {}

    def reconciled_capacity(self, existing: Optional[Dict[str, Any]]) -> int:
        desired = int(self.config.get("TargetCapacity") or 0)
        if self.override_target_capacity or not existing:
            return desired
        return max(desired, int(existing.get("TargetCapacity") or 0))

    def create(self) -> Optional[ResourceResult]:
        resp = self.ec2.request_spot_fleet(SpotFleetRequestConfig=self.config, DryRun=False)
        request_id = resp.get("SpotFleetRequestId")
        if not request_id:
            raise DependencyError("EC2 did not return a SpotFleetRequestId")
        logger.info("[INFO] Created request %s", request_id)
        return ResourceResult(request_id)

    def modify(self) -> Optional[ResourceResult]:
        existing = None
        if self.request_id and REQUEST_ID_RE.match(self.request_id):
            existing = self._describe(self.request_id)
        capacity = self.reconciled_capacity(existing)
        if capacity != self.config.get("TargetCapacity"):
            logger.info(
                "[INFO] Keeping TargetCapacity at %s instead of %s",
                capacity,
                self.config.get("TargetCapacity"),
            )
        self.config["TargetCapacity"] = capacity

        result = self.create()
        self.remove()
        return result

    def remove(self) -> Optional[ResourceResult]:
        request_id = self.request_id
        if not request_id or not REQUEST_ID_RE.match(request_id):
            return None

        try:
            self.ec2.describe_spot_fleet_requests(SpotFleetRequestIds=[request_id])
        except ClientError as exc:
            if error_code(exc) == NOT_FOUND:
                return None
            raise

        logger.info("[INFO] Cancel fleet request %s", request_id)
        self.ec2.cancel_spot_fleet_requests(
            SpotFleetRequestIds=[request_id],
            TerminateInstances=False,
            DryRun=False,
        )
        return None
