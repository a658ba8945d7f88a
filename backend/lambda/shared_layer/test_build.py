"""test_build.py - Template builder tests.

Run from shared_layer directory:
    PYTHONPATH=python python3 -m pytest test_build.py -v
"""

from __future__ import annotations

import os
import sys
import unittest

sys.path.insert(0, os.path.join(os.path.dirname(__file__), "python"))

from cfn_magic.build import AVAILABLE, LAMBDA_RUNTIME, build
from cfn_magic.errors import ValidationError
from cfn_magic.resources import REGISTRY


def _params(name: str = "SnsSubscription", **overrides) -> dict:
    params = {
        "CustomResourceName": name,
        "LogicalName": "Alarm",
        "S3Bucket": "code-bucket",
        "S3Key": "magic/package.zip",
        "Handler": "lambda_function.lambda_handler",
        "Properties": {
            "SnsTopicArn": "arn:aws:sns:us-east-1:123456789012:alerts",
            "Protocol": "email",
            "Endpoint": "ops@example.com",
        },
    }
    params.update(overrides)
    return params


def _spot_properties() -> dict:
    return {
        "Region": "us-east-1",
        "SpotFleetRequestConfigData": {
            "IamFleetRole": "arn:aws:iam::123456789012:role/fleet",
            "TargetCapacity": 2,
            "LaunchSpecifications": [
                {"IamInstanceProfile": {"Arn": "arn:aws:iam::123456789012:instance-profile/worker"}}
            ],
        },
    }


class BuildTests(unittest.TestCase):
    def test_every_registered_kind_can_be_built(self):
        self.assertEqual(set(AVAILABLE), set(REGISTRY))

    def test_role_function_and_custom_resource(self):
        resources = build(_params())["Resources"]
        self.assertEqual(list(resources), ["AlarmRole", "AlarmFunction", "Alarm"])

        function = resources["AlarmFunction"]["Properties"]
        self.assertEqual(function["Code"], {"S3Bucket": "code-bucket", "S3Key": "magic/package.zip"})
        self.assertEqual(function["Role"], {"Fn::GetAtt": ["AlarmRole", "Arn"]})
        self.assertEqual(function["Runtime"], LAMBDA_RUNTIME)
        self.assertEqual(function["Handler"], "lambda_function.lambda_handler")

        custom = resources["Alarm"]
        self.assertEqual(custom["Type"], "Custom::SnsSubscription")
        self.assertEqual(custom["Properties"]["ServiceToken"], {"Fn::GetAtt": ["AlarmFunction", "Arn"]})
        self.assertEqual(custom["Properties"]["Endpoint"], "ops@example.com")

        statements = resources["AlarmRole"]["Properties"]["Policies"][0]["PolicyDocument"]["Statement"]
        actions = [action for statement in statements for action in statement["Action"]]
        self.assertIn("logs:*", actions)
        self.assertIn("sns:Subscribe", actions)

    def test_condition_applies_to_every_resource(self):
        resources = build(_params(Condition="CreateAlarm"))["Resources"]
        self.assertTrue(all(r["Condition"] == "CreateAlarm" for r in resources.values()))

    def test_topic_config_adds_topic_policy(self):
        params = _params(
            "S3NotificationTopicConfig",
            Properties={"SnsTopicArn": "arn:aws:sns:us-east-1:1:t", "Bucket": "data"},
        )
        resources = build(params)["Resources"]
        self.assertEqual(list(resources), ["AlarmRole", "AlarmSnsPolicy", "AlarmFunction", "Alarm"])
        policy = resources["AlarmSnsPolicy"]["Properties"]
        self.assertEqual(policy["Topics"], ["arn:aws:sns:us-east-1:1:t"])

    def test_spot_fleet_grants_pass_role(self):
        resources = build(_params("SpotFleet", Properties=_spot_properties()))["Resources"]
        statements = resources["AlarmRole"]["Properties"]["Policies"][0]["PolicyDocument"]["Statement"]
        resources_granted = [statement["Resource"] for statement in statements]
        self.assertIn("arn:aws:iam::123456789012:role/fleet", resources_granted)
        self.assertIn("arn:aws:iam::123456789012:instance-profile/worker", resources_granted)

    def test_validation_messages(self):
        cases = [
            ({"CustomResourceName": ""}, "Missing CustomResourceName"),
            ({"CustomResourceName": "Nope"}, "Nope is not an available custom resource"),
            ({"LogicalName": ""}, "Missing LogicalName"),
            ({"S3Bucket": None}, "Missing S3Bucket"),
            ({"S3Key": ""}, "Missing S3Key"),
            ({"Handler": ""}, "Missing Handler"),
            ({"Properties": {}}, "Missing Properties"),
        ]
        for overrides, message in cases:
            with self.assertRaises(ValidationError) as ctx:
                build(_params(**overrides))
            self.assertEqual(str(ctx.exception), message)

    def test_spot_fleet_validation(self):
        props = _spot_properties()
        del props["SpotFleetRequestConfigData"]["IamFleetRole"]
        with self.assertRaises(ValidationError) as ctx:
            build(_params("SpotFleet", Properties=props))
        self.assertEqual(str(ctx.exception), "Missing IamFleetRole in SpotFleetRequestConfigData")

        props = _spot_properties()
        props["SpotFleetRequestConfigData"]["LaunchSpecifications"] = [{}]
        with self.assertRaises(ValidationError) as ctx:
            build(_params("SpotFleet", Properties=props))
        self.assertIn("LaunchSpecifications[0]", str(ctx.exception))

    def test_spot_fleet_malformed_shapes_are_validation_errors(self):
        shapes = [
            ("SpotFleetRequestConfigData", "not-a-mapping"),
            ("LaunchSpecifications", "m5.large"),
            ("LaunchSpecifications", ["m5.large"]),
        ]
        for key, value in shapes:
            props = _spot_properties()
            if key == "SpotFleetRequestConfigData":
                props[key] = value
            else:
                props["SpotFleetRequestConfigData"][key] = value
            with self.assertRaises(ValidationError):
                build(_params("SpotFleet", Properties=props))


if __name__ == "__main__":
    unittest.main()
