"""S3Inventory - manage one inventory configuration on a bucket.

The configuration Id is the physical id. Changing the Id or the Bucket
writes the new configuration before deleting the old one, so there is never
a moment without an inventory.
"""
from __future__ import annotations

import logging
from typing import Any, Optional

from botocore.exceptions import ClientError

from ..errors import error_code
from ..resource import ResourceRequest, ResourceResult, require

logger = logging.getLogger(__name__)

_ABSENT_CODES = {"NoSuchConfiguration", "NoSuchBucket"}


class S3Inventory:
    def __init__(self, request: ResourceRequest) -> None:
        props = request.properties
        self.bucket = require(props, "Bucket")
        self.bucket_region = require(props, "BucketRegion")
        self.inventory_id = require(props, "Id")
        self.inventory_configuration = dict(require(props, "InventoryConfiguration"))
        self.s3 = request.clients("s3", self.bucket_region)

        old = request.old_properties or {}
        self.old_id: str = old.get("Id") or self.inventory_id
        self.old_bucket: str = old.get("Bucket") or self.bucket
        if self.old_bucket == self.bucket:
            self.old_s3 = self.s3
        else:
            self.old_s3 = request.clients("s3", old.get("BucketRegion") or self.bucket_region)

    def create(self) -> Optional[ResourceResult]:
        config = dict(self.inventory_configuration)
        config["Id"] = self.inventory_id
        self.s3.put_bucket_inventory_configuration(
            Bucket=self.bucket,
            Id=self.inventory_id,
            InventoryConfiguration=config,
        )
        logger.info("[INFO] Put inventory configuration %s on %s", self.inventory_id, self.bucket)
        return ResourceResult(self.inventory_id)

    def modify(self) -> Optional[ResourceResult]:
        result = self.create()
        if (self.old_bucket, self.old_id) != (self.bucket, self.inventory_id):
            self._delete(self.old_s3, self.old_bucket, self.old_id)
        return result

    def _delete(self, s3: Any, bucket: str, inventory_id: str) -> None:
        try:
            s3.delete_bucket_inventory_configuration(Bucket=bucket, Id=inventory_id)
        except ClientError as exc:
            if error_code(exc) in _ABSENT_CODES:
                logger.info("[INFO] Inventory configuration %s already absent from %s", inventory_id, bucket)
                return
            raise
        logger.info("[INFO] Deleted inventory configuration %s from %s", inventory_id, bucket)

    def remove(self) -> Optional[ResourceResult]:
        self._delete(self.s3, self.bucket, self.inventory_id)
        return None
