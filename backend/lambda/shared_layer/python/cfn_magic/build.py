"""cfn_magic.build - CloudFormation snippets that wire a custom resource to its Lambda.

``build(params)`` returns ``{"Resources": {...}}`` with three resources
(plus an SNS topic policy for S3NotificationTopicConfig):

    <LogicalName>Role       IAM role the function runs as
    <LogicalName>Function   the Lambda function, code from S3
    <LogicalName>           the Custom::<Kind> resource itself

Required params: CustomResourceName, LogicalName, S3Bucket, S3Key, Handler,
Properties. Optional: Condition, applied to every generated resource.
"""
from __future__ import annotations

from typing import Any, Callable, Dict, List, Optional

from .errors import ValidationError

__all__ = ["AVAILABLE", "LAMBDA_RUNTIME", "build"]

LAMBDA_RUNTIME = "python3.12"
LAMBDA_MEMORY_SIZE = 128
LAMBDA_TIMEOUT = 30


def _get_att(logical_id: str, attribute: str) -> Dict[str, Any]:
    return {"Fn::GetAtt": [logical_id, attribute]}


def _sub(template: str, variables: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
    if variables:
        return {"Fn::Sub": [template, variables]}
    return {"Fn::Sub": template}


def _allow(actions: List[str], resource: Any = "*") -> Dict[str, Any]:
    return {"Effect": "Allow", "Action": actions, "Resource": resource}


# ---------------------------------------------------------------------------
# Per-kind runtime permissions
# ---------------------------------------------------------------------------


def _spot_fleet_statements(props: Dict[str, Any]) -> List[Dict[str, Any]]:
    config = props["SpotFleetRequestConfigData"]
    return [
        _allow(["ec2:*"]),
        _allow(["iam:ListRoles", "iam:PassRole"], config["IamFleetRole"]),
        _allow(
            ["iam:ListInstanceProfiles"],
            config["LaunchSpecifications"][0]["IamInstanceProfile"]["Arn"],
        ),
    ]


_STATEMENTS: Dict[str, Callable[[Dict[str, Any]], List[Dict[str, Any]]]] = {
    "SnsSubscription": lambda props: [
        _allow(["sns:Subscribe", "sns:Unsubscribe", "sns:ListSubscriptionsByTopic"]),
    ],
    "SnsMessage": lambda props: [_allow(["sns:Publish"], props.get("SnsTopicArn") or "*")],
    "LogGroup": lambda props: [],
    "DynamoDBStreamLabel": lambda props: [_allow(["dynamodb:DescribeTable"])],
    "StackOutputs": lambda props: [_allow(["cloudformation:DescribeStacks"])],
    "SpotFleet": _spot_fleet_statements,
    "DefaultVpc": lambda props: [
        _allow(["ec2:DescribeVpcs", "ec2:DescribeSubnets", "ec2:DescribeRouteTables"]),
    ],
    "S3NotificationTopicConfig": lambda props: [
        _allow(
            ["s3:GetBucketNotification", "s3:PutBucketNotification"],
            props.get("BucketNotificationResources") or "*",
        ),
    ],
    "S3BucketNotificationConfig": lambda props: [
        _allow(
            ["s3:GetBucketNotification", "s3:PutBucketNotification"],
            props.get("BucketNotificationResources") or "*",
        ),
    ],
    "S3Inventory": lambda props: [
        _allow(["s3:PutInventoryConfiguration", "s3:GetInventoryConfiguration"]),
    ],
}

AVAILABLE = frozenset(_STATEMENTS)


def _validate(params: Dict[str, Any]) -> None:
    name = params.get("CustomResourceName")
    if not name:
        raise ValidationError("Missing CustomResourceName")
    if name not in AVAILABLE:
        raise ValidationError(f"{name} is not an available custom resource")
    for key in ("LogicalName", "S3Bucket", "S3Key", "Handler", "Properties"):
        if not params.get(key):
            raise ValidationError(f"Missing {key}")

    if name == "SpotFleet":
        config = params["Properties"].get("SpotFleetRequestConfigData")
        if not config:
            raise ValidationError("Missing SpotFleetRequestConfigData")
        if not isinstance(config, dict):
            raise ValidationError("SpotFleetRequestConfigData must be an object")
        specs = config.get("LaunchSpecifications")
        if not specs:
            raise ValidationError("Missing LaunchSpecifications in SpotFleetRequestConfigData")
        if not isinstance(specs, list):
            raise ValidationError("LaunchSpecifications in SpotFleetRequestConfigData must be an Array")
        if not specs[0]:
            raise ValidationError("Missing LaunchSpecifications[0] in SpotFleetRequestConfigData")
        if not isinstance(specs[0], dict):
            raise ValidationError("LaunchSpecifications[0] in SpotFleetRequestConfigData must be an object")
        if not specs[0].get("IamInstanceProfile"):
            raise ValidationError(
                "Missing IamInstanceProfile in SpotFleetRequestConfigData.LaunchSpecifications[0]"
            )
        if not config.get("IamFleetRole"):
            raise ValidationError("Missing IamFleetRole in SpotFleetRequestConfigData")


def _role(name: str, props: Dict[str, Any]) -> Dict[str, Any]:
    statements = [_allow(["logs:*"], _sub("arn:${AWS::Partition}:logs:*:*:*"))]
    statements.extend(_STATEMENTS[name](props))
    return {
        "Type": "AWS::IAM::Role",
        "Properties": {
            "AssumeRolePolicyDocument": {
                "Statement": [
                    {
                        "Effect": "Allow",
                        "Principal": {"Service": "lambda.amazonaws.com"},
                        "Action": "sts:AssumeRole",
                    }
                ]
            },
            "Policies": [
                {
                    "PolicyName": f"{name}Policy",
                    "PolicyDocument": {"Statement": statements},
                }
            ],
        },
    }


def _topic_policy(logical: str, props: Dict[str, Any]) -> Dict[str, Any]:
    return {
        "Type": "AWS::SNS::TopicPolicy",
        "Properties": {
            "PolicyDocument": {
                "Id": f"{logical}SnsPolicy",
                "Version": "2012-10-17",
                "Statement": [
                    {
                        "Effect": "Allow",
                        "Principal": {"Service": "s3.amazonaws.com"},
                        "Action": "SNS:Publish",
                        "Resource": props.get("SnsTopicArn"),
                        "Condition": {
                            "ArnLike": {
                                "aws:SourceArn": _sub(
                                    "arn:${AWS::Partition}:s3:::${bucket}",
                                    {"bucket": props.get("Bucket")},
                                )
                            }
                        },
                    }
                ],
            },
            "Topics": [props.get("SnsTopicArn")],
        },
    }


def build(params: Dict[str, Any]) -> Dict[str, Any]:
    _validate(params)
    name = params["CustomResourceName"]
    logical = params["LogicalName"]
    props = params["Properties"]

    resources: Dict[str, Any] = {f"{logical}Role": _role(name, props)}

    if name == "S3NotificationTopicConfig":
        resources[f"{logical}SnsPolicy"] = _topic_policy(logical, props)

    resources[f"{logical}Function"] = {
        "Type": "AWS::Lambda::Function",
        "Properties": {
            "Code": {"S3Bucket": params["S3Bucket"], "S3Key": params["S3Key"]},
            "Role": _get_att(f"{logical}Role", "Arn"),
            "Description": f"Manages {name}",
            "Handler": params["Handler"],
            "MemorySize": LAMBDA_MEMORY_SIZE,
            "Runtime": LAMBDA_RUNTIME,
            "Timeout": LAMBDA_TIMEOUT,
        },
    }
    resources[logical] = {
        "Type": f"Custom::{name}",
        "Properties": {"ServiceToken": _get_att(f"{logical}Function", "Arn"), **props},
    }

    condition = params.get("Condition")
    if condition:
        for resource in resources.values():
            resource["Condition"] = condition

    return {"Resources": resources}
