"""Resource kinds, keyed by the name used in ``Custom::<Name>``."""
from __future__ import annotations

from typing import Dict

from ..resource import ResourceFactory
from .default_vpc import DefaultVpc
from .dynamodb_stream_label import DynamoDBStreamLabel
from .log_group import LogGroup
from .s3_bucket_notification_config import S3BucketNotificationConfig
from .s3_inventory import S3Inventory
from .s3_notification_topic_config import S3NotificationTopicConfig
from .sns_message import SnsMessage
from .sns_subscription import SnsSubscription
from .spot_fleet import SpotFleet
from .stack_outputs import StackOutputs

__all__ = ["REGISTRY"]

REGISTRY: Dict[str, ResourceFactory] = {
    "DefaultVpc": DefaultVpc,
    "DynamoDBStreamLabel": DynamoDBStreamLabel,
    "LogGroup": LogGroup,
    "S3BucketNotificationConfig": S3BucketNotificationConfig,
    "S3Inventory": S3Inventory,
    "S3NotificationTopicConfig": S3NotificationTopicConfig,
    "SnsMessage": SnsMessage,
    "SnsSubscription": SnsSubscription,
    "SpotFleet": SpotFleet,
    "StackOutputs": StackOutputs,
}
