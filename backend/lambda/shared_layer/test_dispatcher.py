"""test_dispatcher.py - Lifecycle dispatcher tests.

Run from shared_layer directory:
    PYTHONPATH=python python3 -m pytest test_dispatcher.py -v
"""

from __future__ import annotations

import os
import sys
import unittest
from unittest.mock import MagicMock

sys.path.insert(0, os.path.join(os.path.dirname(__file__), "python"))

from botocore.exceptions import ClientError

from cfn_magic.dispatcher import IGNORED_RESULT, LifecycleDispatcher, generate_physical_id
from cfn_magic.errors import DeliveryError, DependencyError
from cfn_magic.events import parse_event
from cfn_magic.resource import ResourceResult, generic_resource, require
from cfn_magic.resources import REGISTRY
from cfn_magic.response import DeliveryReceipt

STACK_ID = "arn:aws:cloudformation:us-east-1:123456789012:stack/demo/abc-123"
RESPONSE_URL = "https://cfn-response.s3.amazonaws.com/path?X-Amz-Signature=secret"


def _event(request_type: str = "Create", resource_type: str = "Custom::Recorder", **extra) -> dict:
    event = {
        "RequestType": request_type,
        "ResponseURL": RESPONSE_URL,
        "StackId": STACK_ID,
        "RequestId": "req-1",
        "ResourceType": resource_type,
        "LogicalResourceId": "Thing",
        "ResourceProperties": {"ServiceToken": "arn:aws:lambda:us-east-1:1:function:f", "Name": "thing"},
    }
    event.update(extra)
    return event


class _Recorder:
    """Records which operations the dispatcher invoked."""

    def __init__(self) -> None:
        self.calls = []
        self.results = {}
        self.errors = {}

    def _run(self, name, request):
        self.calls.append((name, request.physical_id))
        if name in self.errors:
            raise self.errors[name]
        return self.results.get(name)

    def factory(self):
        return generic_resource(
            create=lambda request: self._run("create", request),
            modify=lambda request: self._run("modify", request),
            remove=lambda request: self._run("remove", request),
            validate=lambda request: require(request.properties, "Name"),
        )


class LifecycleDispatcherTests(unittest.TestCase):
    def setUp(self) -> None:
        self.recorder = _Recorder()
        self.transmitter = MagicMock()
        self.transmitter.send.return_value = DeliveryReceipt(attempts=1, status_code=200)
        self.clients = MagicMock()
        self.dispatcher = LifecycleDispatcher(
            {"Recorder": self.recorder.factory(), **REGISTRY},
            transmitter=self.transmitter,
            clients=self.clients,
        )

    def _sent(self) -> dict:
        self.assertEqual(self.transmitter.send.call_count, 1)
        envelope, url = self.transmitter.send.call_args[0]
        self.assertEqual(url, RESPONSE_URL)
        return envelope.to_dict()

    def test_invalid_event_is_ignored_without_report(self):
        event = _event()
        del event["ResponseURL"]
        result = self.dispatcher.handle(event)
        self.assertEqual(result, IGNORED_RESULT)
        self.transmitter.send.assert_not_called()
        self.assertEqual(self.recorder.calls, [])

    def test_create_reports_success_with_data(self):
        self.recorder.results["create"] = ResourceResult("pid-1", {"Arn": "arn:x"})
        result = self.dispatcher.handle(_event())

        body = self._sent()
        self.assertEqual(body["Status"], "SUCCESS")
        self.assertEqual(body["Reason"], "")
        self.assertEqual(body["PhysicalResourceId"], "pid-1")
        self.assertEqual(body["Data"], {"Arn": "arn:x"})
        self.assertEqual(body["RequestId"], "req-1")
        self.assertEqual(result["status"], "SUCCESS")
        self.assertEqual(result["attempts"], 1)
        self.assertEqual(self.recorder.calls, [("create", None)])

    def test_create_without_id_uses_deterministic_id(self):
        self.dispatcher.handle(_event())
        first = self._sent()["PhysicalResourceId"]
        self.assertEqual(first, generate_physical_id(parse_event(_event())))
        self.assertEqual(len(first), 32)

        self.transmitter.send.reset_mock()
        self.dispatcher.handle(_event())
        self.assertEqual(self._sent()["PhysicalResourceId"], first)

    def test_update_and_delete_route_to_modify_and_remove(self):
        self.dispatcher.handle(_event("Update", PhysicalResourceId="pid-1"))
        self.assertEqual(self._sent()["PhysicalResourceId"], "pid-1")
        self.transmitter.send.reset_mock()
        self.dispatcher.handle(_event("Delete", PhysicalResourceId="pid-1"))
        self.assertEqual(self._sent()["Status"], "SUCCESS")
        self.assertEqual(self.recorder.calls, [("modify", "pid-1"), ("remove", "pid-1")])

    def test_update_without_physical_id_fails(self):
        self.dispatcher.handle(_event("Update"))
        body = self._sent()
        self.assertEqual(body["Status"], "FAILED")
        self.assertIn("PhysicalResourceId", body["Reason"])
        self.assertEqual(self.recorder.calls, [])

    def test_unknown_request_type_fails(self):
        self.dispatcher.handle(_event("Upsert"))
        body = self._sent()
        self.assertEqual(body["Status"], "FAILED")
        self.assertIn("Upsert", body["Reason"])

    def test_unknown_kind_fails(self):
        self.dispatcher.handle(_event(resource_type="Custom::Nope"))
        body = self._sent()
        self.assertEqual(body["Status"], "FAILED")
        self.assertEqual(body["Reason"], "Nope is not an available custom resource")

    def test_validation_error_fails_before_any_aws_call(self):
        event = _event(
            resource_type="Custom::SnsSubscription",
            ResourceProperties={"SnsTopicArn": "arn:aws:sns:us-east-1:1:t", "Protocol": "email"},
        )
        self.dispatcher.handle(event)
        body = self._sent()
        self.assertEqual(body["Status"], "FAILED")
        self.assertEqual(body["Reason"], "Missing Parameter Endpoint")
        self.clients.assert_not_called()

    def test_aws_error_is_reported(self):
        self.recorder.errors["create"] = ClientError(
            {"Error": {"Code": "AccessDenied", "Message": "not allowed"}}, "Subscribe"
        )
        self.dispatcher.handle(_event())
        body = self._sent()
        self.assertEqual(body["Status"], "FAILED")
        self.assertIn("not allowed", body["Reason"])

    def test_dependency_and_unexpected_errors_are_reported(self):
        self.recorder.errors["create"] = DependencyError("Table is not stream enabled")
        self.dispatcher.handle(_event())
        self.assertEqual(self._sent()["Reason"], "Table is not stream enabled")

        self.transmitter.send.reset_mock()
        self.recorder.errors["create"] = RuntimeError("unexpected")
        self.dispatcher.handle(_event())
        body = self._sent()
        self.assertEqual(body["Status"], "FAILED")
        self.assertEqual(body["Reason"], "unexpected")

    def test_failed_delete_keeps_physical_id(self):
        self.recorder.errors["remove"] = DependencyError("busy")
        self.dispatcher.handle(_event("Delete", PhysicalResourceId="pid-1"))
        body = self._sent()
        self.assertEqual(body["Status"], "FAILED")
        self.assertEqual(body["PhysicalResourceId"], "pid-1")

    def test_delivery_error_propagates(self):
        self.transmitter.send.side_effect = DeliveryError("unreachable", attempts=5)
        with self.assertRaises(DeliveryError):
            self.dispatcher.handle(_event())
        self.assertEqual(self.recorder.calls, [("create", None)])

    def test_manage_pins_kind(self):
        handler = self.dispatcher.manage("Recorder")
        handler(_event(resource_type="Custom::SomethingElse"), None)
        self.assertEqual(self._sent()["Status"], "SUCCESS")
        self.assertEqual(self.recorder.calls, [("create", None)])

        with self.assertRaises(KeyError):
            self.dispatcher.manage("Nope")


if __name__ == "__main__":
    unittest.main()
