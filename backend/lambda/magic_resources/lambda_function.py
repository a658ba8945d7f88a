"""magic_resources/lambda_function.py

CloudFormation custom-resource Lambda. One deployment package serves every
kind in cfn_magic.resources.REGISTRY:

  - lambda_handler resolves the kind from the event's ResourceType
    (Custom::SnsSubscription -> SnsSubscription)
  - the per-kind handlers below pin the kind, for functions that back a
    single resource type regardless of what ResourceType says

Environment variables:
    RESPONSE_MAX_ATTEMPTS      default: 5
    RESPONSE_TIMEOUT_SECONDS   default: 10
    AWS_CLIENT_MAX_ATTEMPTS    default: 3
    LOG_LEVEL                  default: INFO
"""

from __future__ import annotations

from typing import Any, Dict, Optional

from cfn_magic.aws_clients import ClientFactory
from cfn_magic.config import configure_logging
from cfn_magic.dispatcher import LifecycleDispatcher
from cfn_magic.resources import REGISTRY
from cfn_magic.response import ResponseTransmitter

# ---------------------------------------------------------------------------
# Logging
# ---------------------------------------------------------------------------

logger = configure_logging()

# ---------------------------------------------------------------------------
# Dispatcher (built on first invocation)
# ---------------------------------------------------------------------------

_dispatcher: Optional[LifecycleDispatcher] = None


def _get_dispatcher() -> LifecycleDispatcher:
    global _dispatcher
    if _dispatcher is None:
        _dispatcher = LifecycleDispatcher(
            REGISTRY,
            transmitter=ResponseTransmitter(),
            clients=ClientFactory(),
        )
    return _dispatcher


def _handle(event: Any, kind: Optional[str] = None) -> Dict[str, Any]:
    request_type = event.get("RequestType") if isinstance(event, dict) else None
    logger.info("[START] %s %s", request_type, kind or "(from ResourceType)")
    return _get_dispatcher().handle(event, kind)


def lambda_handler(event, _context):
    return _handle(event)


def sns_subscription_handler(event, _context):
    return _handle(event, "SnsSubscription")


def sns_message_handler(event, _context):
    return _handle(event, "SnsMessage")


def log_group_handler(event, _context):
    return _handle(event, "LogGroup")


def dynamodb_stream_label_handler(event, _context):
    return _handle(event, "DynamoDBStreamLabel")


def stack_outputs_handler(event, _context):
    return _handle(event, "StackOutputs")


def spot_fleet_handler(event, _context):
    return _handle(event, "SpotFleet")


def default_vpc_handler(event, _context):
    return _handle(event, "DefaultVpc")


def s3_notification_topic_config_handler(event, _context):
    return _handle(event, "S3NotificationTopicConfig")


def s3_bucket_notification_config_handler(event, _context):
    return _handle(event, "S3BucketNotificationConfig")


def s3_inventory_handler(event, _context):
    return _handle(event, "S3Inventory")
