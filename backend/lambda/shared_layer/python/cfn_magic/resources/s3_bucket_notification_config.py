"""S3BucketNotificationConfig - one prefix-filtered topic notification on a bucket.

    {
      "Type": "Custom::S3BucketNotificationConfig",
      "Properties": {
        "SnsTopicArn": "arn:aws:sns:us-east-1:123456789012:my-topic",
        "Bucket": "bucket",
        "BucketRegion": "us-east-1",
        "Filters": [{"Name": "Prefix", "Value": "prefix"}, {"Name": "Suffix", "Value": "jpg"}]
      }
    }

The entry carries no Id of its own; it is recognised by the value of its
Prefix filter rule, which therefore must be present. Updates remove the
entry for the old prefix and write the new one; when the bucket changes the
new entry is written first and the old bucket is cleaned up afterwards.
"""
from __future__ import annotations

from typing import Any, Dict, List, Optional

from ..errors import ValidationError
from ..reconcile import ReconciliationContext, reconcile_create, reconcile_delete, reconcile_modify
from ..resource import ResourceRequest, ResourceResult, require
from .bucket_notifications import BucketTopicConfigurations

DEFAULT_EVENTS = ["s3:ObjectCreated:*"]


def prefix_of(rules: Any) -> Optional[str]:
    for rule in rules or []:
        if isinstance(rule, dict) and str(rule.get("Name", "")).lower() == "prefix":
            return rule.get("Value")
    return None


def entry_prefix(entry: Any) -> Optional[str]:
    """Identity of a topic configuration: its Prefix filter value."""
    if not isinstance(entry, dict):
        return None
    rules = ((entry.get("Filter") or {}).get("Key") or {}).get("FilterRules")
    return prefix_of(rules)


def _validate_filters(filters: Any) -> List[Dict[str, Any]]:
    if not isinstance(filters, list):
        raise ValidationError("Filters must be an Array")
    if prefix_of(filters) is None:
        raise ValidationError("Filters must include a Prefix rule")
    return filters


class S3BucketNotificationConfig:
    def __init__(self, request: ResourceRequest) -> None:
        props = request.properties
        self.topic_arn = require(props, "SnsTopicArn")
        self.bucket = require(props, "Bucket")
        self.bucket_region = require(props, "BucketRegion")
        self.filters = _validate_filters(require(props, "Filters"))
        self.events = props.get("EventTypes") or list(DEFAULT_EVENTS)
        self.prefix = prefix_of(self.filters)
        self.s3 = request.clients("s3", self.bucket_region)

        old = request.old_properties or {}
        old_filters = old.get("Filters")
        self.old_prefix: Optional[str] = prefix_of(old_filters) if isinstance(old_filters, list) else None
        self.old_bucket: str = old.get("Bucket") or self.bucket
        if self.old_bucket == self.bucket:
            self.old_s3 = self.s3
        else:
            self.old_s3 = request.clients("s3", old.get("BucketRegion") or self.bucket_region)

    def build_entry(self) -> Dict[str, Any]:
        return {
            "TopicArn": self.topic_arn,
            "Events": list(self.events),
            "Filter": {"Key": {"FilterRules": list(self.filters)}},
        }

    def _context(self, tolerate_missing_bucket: bool = False) -> ReconciliationContext:
        collection = BucketTopicConfigurations(self.s3, self.bucket, tolerate_missing_bucket)
        return collection.context(self.prefix, self.build_entry, entry_prefix)

    def _prior_context(self) -> ReconciliationContext:
        collection = BucketTopicConfigurations(self.old_s3, self.old_bucket, tolerate_missing_bucket=True)
        key = self.old_prefix if self.old_prefix is not None else self.prefix
        return collection.context(key, self.build_entry, entry_prefix)

    def create(self) -> Optional[ResourceResult]:
        reconcile_create(self._context())
        return None

    def modify(self) -> Optional[ResourceResult]:
        if self.old_bucket == self.bucket:
            reconcile_modify(self._context(), self.old_prefix)
        else:
            reconcile_create(self._context())
            reconcile_delete(self._prior_context())
        return None

    def remove(self) -> Optional[ResourceResult]:
        reconcile_delete(self._context(tolerate_missing_bucket=True), self.old_prefix or self.prefix)
        return None
