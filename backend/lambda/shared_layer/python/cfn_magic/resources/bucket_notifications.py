"""Read-modify-write access to a bucket's TopicConfigurations list.

The bucket notification document also carries queue, Lambda and
EventBridge configurations owned by other stacks; they are written back
exactly as they were read.
"""
from __future__ import annotations

import logging
from typing import Any, Callable, Dict, List, Optional

from botocore.exceptions import ClientError

from ..errors import error_code
from ..reconcile import Identity, ReconciliationContext

logger = logging.getLogger(__name__)

TOPIC_CONFIGURATIONS = "TopicConfigurations"
_NOTIFICATION_KEYS = (
    "TopicConfigurations",
    "QueueConfigurations",
    "LambdaFunctionConfigurations",
    "EventBridgeConfiguration",
)


class BucketTopicConfigurations:
    """Fetch/write pair over one bucket's notification configuration."""

    def __init__(self, s3: Any, bucket: str, tolerate_missing_bucket: bool = False) -> None:
        self.s3 = s3
        self.bucket = bucket
        self.tolerate_missing_bucket = tolerate_missing_bucket
        self._document: Dict[str, Any] = {}

    def fetch(self) -> Optional[List[Dict[str, Any]]]:
        try:
            resp = self.s3.get_bucket_notification_configuration(Bucket=self.bucket)
        except ClientError as exc:
            if self.tolerate_missing_bucket and error_code(exc) == "NoSuchBucket":
                logger.info("[INFO] Bucket %s no longer exists", self.bucket)
                self._document = {}
                return None
            raise
        self._document = {k: v for k, v in resp.items() if k in _NOTIFICATION_KEYS}
        if not self._document:
            return None
        return list(self._document.get(TOPIC_CONFIGURATIONS) or [])

    def write(self, entries: List[Dict[str, Any]]) -> Any:
        document = dict(self._document)
        document[TOPIC_CONFIGURATIONS] = entries
        logger.info(
            "[INFO] Writing %d topic configuration(s) to %s", len(entries), self.bucket
        )
        return self.s3.put_bucket_notification_configuration(
            Bucket=self.bucket,
            NotificationConfiguration=document,
        )

    def context(self, key: Any, build_entry: Callable[[], Any], identity: Identity) -> ReconciliationContext:
        return ReconciliationContext(
            fetch=self.fetch,
            write=self.write,
            key=key,
            build_entry=build_entry,
            identity=identity,
        )
