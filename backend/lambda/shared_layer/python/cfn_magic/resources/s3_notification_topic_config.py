"""S3NotificationTopicConfig - own one named entry in a bucket's topic notifications.

    {
      "Type": "Custom::S3NotificationTopicConfig",
      "Properties": {
        "Id": "name-of-this-configuration",
        "SnsTopicArn": "arn:aws:sns:us-east-1:123456789012:my-topic",
        "Bucket": "bucket",
        "BucketRegion": "us-east-1",
        "EventTypes": ["s3:ObjectCreated:*"],
        "PrefixFilter": "prefix",
        "SuffixFilter": "jpg"
      }
    }

Entries are matched by their ``Id``. Creating twice replaces the entry in
place; renaming the Id moves it in a single write. Moving the entry to
another bucket writes it there first, then removes it from the old bucket.
"""
from __future__ import annotations

from typing import Any, Dict, List, Optional

from ..errors import ValidationError
from ..reconcile import (
    ReconciliationContext,
    by_field,
    reconcile_create,
    reconcile_delete,
    reconcile_modify,
)
from ..resource import ResourceRequest, ResourceResult, require
from .bucket_notifications import BucketTopicConfigurations


class S3NotificationTopicConfig:
    def __init__(self, request: ResourceRequest) -> None:
        props = request.properties
        self.id = require(props, "Id")
        self.topic_arn = require(props, "SnsTopicArn")
        self.bucket = require(props, "Bucket")
        self.bucket_region = require(props, "BucketRegion")
        self.events = require(props, "EventTypes")
        if not isinstance(self.events, list):
            raise ValidationError("EventTypes must be an Array")
        self.prefix_filter: Optional[str] = props.get("PrefixFilter") or None
        self.suffix_filter: Optional[str] = props.get("SuffixFilter") or None
        self.s3 = request.clients("s3", self.bucket_region)

        old = request.old_properties or {}
        self.old_id: Optional[str] = old.get("Id") or None
        self.old_bucket: str = old.get("Bucket") or self.bucket
        if self.old_bucket == self.bucket:
            self.old_s3 = self.s3
        else:
            self.old_s3 = request.clients("s3", old.get("BucketRegion") or self.bucket_region)

    def build_entry(self) -> Dict[str, Any]:
        entry: Dict[str, Any] = {
            "Id": self.id,
            "TopicArn": self.topic_arn,
            "Events": list(self.events),
        }
        rules: List[Dict[str, str]] = []
        if self.prefix_filter:
            rules.append({"Name": "Prefix", "Value": self.prefix_filter})
        if self.suffix_filter:
            rules.append({"Name": "Suffix", "Value": self.suffix_filter})
        if rules:
            entry["Filter"] = {"Key": {"FilterRules": rules}}
        return entry

    def _context(self, tolerate_missing_bucket: bool = False) -> ReconciliationContext:
        collection = BucketTopicConfigurations(self.s3, self.bucket, tolerate_missing_bucket)
        return collection.context(self.id, self.build_entry, by_field("Id"))

    def _prior_context(self) -> ReconciliationContext:
        collection = BucketTopicConfigurations(self.old_s3, self.old_bucket, tolerate_missing_bucket=True)
        return collection.context(self.old_id or self.id, self.build_entry, by_field("Id"))

    def create(self) -> Optional[ResourceResult]:
        reconcile_create(self._context())
        return ResourceResult(self.id)

    def modify(self) -> Optional[ResourceResult]:
        if self.old_bucket == self.bucket:
            reconcile_modify(self._context(), self.old_id)
        else:
            # Moved to another bucket: write the new entry, then drop the old one.
            reconcile_create(self._context())
            reconcile_delete(self._prior_context())
        return ResourceResult(self.id)

    def remove(self) -> Optional[ResourceResult]:
        reconcile_delete(self._context(tolerate_missing_bucket=True), self.old_id or self.id)
        return None
