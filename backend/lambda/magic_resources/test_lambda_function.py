"""magic_resources entrypoint tests.

Validates kind resolution from ResourceType, pinned per-kind handlers and
that malformed invocations are ignored without a CloudFormation report.
"""

from __future__ import annotations

import importlib.util
import os
import sys
import unittest
from unittest.mock import MagicMock, patch

sys.path.insert(0, os.path.join(os.path.dirname(__file__), "..", "shared_layer", "python"))

from cfn_magic.dispatcher import IGNORED_RESULT, LifecycleDispatcher
from cfn_magic.resources import REGISTRY
from cfn_magic.response import DeliveryReceipt

_SPEC = importlib.util.spec_from_file_location(
    "magic_resources",
    os.path.join(os.path.dirname(__file__), "lambda_function.py"),
)
magic_resources = importlib.util.module_from_spec(_SPEC)
_SPEC.loader.exec_module(magic_resources)

TOPIC_ARN = "arn:aws:sns:us-east-1:123456789012:alerts"


def _event(resource_type: str = "Custom::SnsMessage", **extra) -> dict:
    event = {
        "RequestType": "Create",
        "ResponseURL": "https://cfn-response.s3.amazonaws.com/path?sig=1",
        "StackId": "arn:aws:cloudformation:us-east-1:123456789012:stack/demo/abc",
        "RequestId": "req-1",
        "ResourceType": resource_type,
        "LogicalResourceId": "Hello",
        "ResourceProperties": {
            "ServiceToken": "arn:aws:lambda:us-east-1:123456789012:function:magic",
            "SnsTopicArn": TOPIC_ARN,
            "Subject": "Hi",
            "Message": "Stack created",
        },
    }
    event.update(extra)
    return event


class MagicResourcesHandlerTests(unittest.TestCase):
    def setUp(self) -> None:
        self.sns = MagicMock()
        self.sns.publish.return_value = {"MessageId": "m-1"}
        self.clients = MagicMock(return_value=self.sns)
        self.transmitter = MagicMock()
        self.transmitter.send.return_value = DeliveryReceipt(attempts=1, status_code=200)
        dispatcher = LifecycleDispatcher(REGISTRY, transmitter=self.transmitter, clients=self.clients)
        patcher = patch.object(magic_resources, "_dispatcher", dispatcher)
        patcher.start()
        self.addCleanup(patcher.stop)

    def test_kind_resolved_from_resource_type(self):
        result = magic_resources.lambda_handler(_event(), None)

        self.assertEqual(result["status"], "SUCCESS")
        self.sns.publish.assert_called_once_with(TopicArn=TOPIC_ARN, Subject="Hi", Message="Stack created")
        self.clients.assert_called_once_with("sns", "us-east-1")

    def test_pinned_handler_ignores_resource_type(self):
        result = magic_resources.sns_message_handler(_event("Custom::Anything"), None)
        self.assertEqual(result["status"], "SUCCESS")
        self.sns.publish.assert_called_once()

    def test_unknown_resource_type_reports_failure(self):
        result = magic_resources.lambda_handler(_event("Custom::Nope"), None)
        self.assertEqual(result["status"], "FAILED")
        self.assertEqual(result["response"]["Reason"], "Nope is not an available custom resource")
        self.transmitter.send.assert_called_once()

    def test_malformed_event_is_ignored(self):
        result = magic_resources.lambda_handler({"RequestType": "Create"}, None)
        self.assertEqual(result, IGNORED_RESULT)
        self.transmitter.send.assert_not_called()

    def test_every_kind_has_a_pinned_handler(self):
        handlers = {
            "SnsSubscription": magic_resources.sns_subscription_handler,
            "SnsMessage": magic_resources.sns_message_handler,
            "LogGroup": magic_resources.log_group_handler,
            "DynamoDBStreamLabel": magic_resources.dynamodb_stream_label_handler,
            "StackOutputs": magic_resources.stack_outputs_handler,
            "SpotFleet": magic_resources.spot_fleet_handler,
            "DefaultVpc": magic_resources.default_vpc_handler,
            "S3NotificationTopicConfig": magic_resources.s3_notification_topic_config_handler,
            "S3BucketNotificationConfig": magic_resources.s3_bucket_notification_config_handler,
            "S3Inventory": magic_resources.s3_inventory_handler,
        }
        self.assertEqual(set(handlers), set(REGISTRY))
        self.assertTrue(all(callable(handler) for handler in handlers.values()))


if __name__ == "__main__":
    unittest.main()
