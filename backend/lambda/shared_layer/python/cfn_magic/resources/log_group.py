"""LogGroup - create a CloudWatch Logs group, optionally tolerating conflicts.

Deleting the resource leaves the group and its log data in place.
"""
from __future__ import annotations

import logging
from typing import Optional

from botocore.exceptions import ClientError

from ..errors import error_code
from ..resource import ResourceRequest, ResourceResult, as_bool, region_from_stack_id, require

logger = logging.getLogger(__name__)


class LogGroup:
    def __init__(self, request: ResourceRequest) -> None:
        props = request.properties
        self.log_group_name = require(props, "LogGroupName")
        self.ignore_conflicts = as_bool(props.get("IgnoreConflicts"))
        stack_region = region_from_stack_id(request.stack_id)
        self.region = props.get("Region") or stack_region
        self.logs = request.clients("logs", self.region)

        old = request.old_properties or {}
        # The group this resource already owns; finding it on update is not a conflict.
        self.owns_existing = (
            old.get("LogGroupName") == self.log_group_name
            and (old.get("Region") or stack_region) == self.region
        )

    def _result(self) -> ResourceResult:
        return ResourceResult(self.log_group_name, {"LogGroupName": self.log_group_name})

    def _create(self, adopt_existing: bool) -> ResourceResult:
        try:
            self.logs.create_log_group(logGroupName=self.log_group_name)
        except ClientError as exc:
            if error_code(exc) == "ResourceAlreadyExistsException" and adopt_existing:
                logger.info("[INFO] Log group %s already exists; ignoring", self.log_group_name)
                return self._result()
            raise
        logger.info("[INFO] Created log group %s", self.log_group_name)
        return self._result()

    def create(self) -> Optional[ResourceResult]:
        return self._create(adopt_existing=self.ignore_conflicts)

    def modify(self) -> Optional[ResourceResult]:
        return self._create(adopt_existing=self.ignore_conflicts or self.owns_existing)

    def remove(self) -> Optional[ResourceResult]:
        return None
