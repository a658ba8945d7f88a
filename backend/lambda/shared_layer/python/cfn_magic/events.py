"""cfn_magic.events - CloudFormation custom-resource event validation and parsing.

A CloudFormation invocation looks like:

    {
      "RequestType": "Create" | "Update" | "Delete",
      "ResponseURL": "https://cloudformation-custom-resource-response-...",
      "StackId": "arn:aws:cloudformation:us-east-1:123456789012:stack/name/guid",
      "RequestId": "unique id for this request",
      "ResourceType": "Custom::SnsSubscription",
      "LogicalResourceId": "MySubscription",
      "PhysicalResourceId": "present on Update / Delete",
      "ResourceProperties": {...},
      "OldResourceProperties": {...}   # Update only
    }
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Mapping, Optional

from .errors import ProtocolError

__all__ = [
    "ACTIONS",
    "REQUIRED_FIELDS",
    "InvocationEvent",
    "parse_event",
    "validate_event",
]

REQUIRED_FIELDS = (
    "RequestType",
    "ResourceProperties",
    "StackId",
    "LogicalResourceId",
    "RequestId",
    "ResponseURL",
)

ACTIONS = ("create", "update", "delete")

_CUSTOM_PREFIX = "Custom::"


def validate_event(event: Any) -> bool:
    """Return True when every field needed to act and to respond is present."""
    if not isinstance(event, Mapping):
        return False
    return all(key in event for key in REQUIRED_FIELDS)


def _properties(raw: Any) -> Dict[str, Any]:
    if not isinstance(raw, Mapping):
        return {}
    return {k: v for k, v in raw.items() if k != "ServiceToken"}


@dataclass(frozen=True)
class InvocationEvent:
    """A validated CloudFormation request, consumed exactly once."""

    action: str
    request_type: str
    resource_type: str
    properties: Dict[str, Any]
    old_properties: Optional[Dict[str, Any]]
    response_url: str
    stack_id: str
    logical_resource_id: str
    request_id: str
    physical_resource_id: Optional[str] = None
    raw: Dict[str, Any] = field(default_factory=dict, repr=False, compare=False)

    @property
    def kind(self) -> str:
        """Resource kind with the ``Custom::`` prefix removed."""
        if self.resource_type.startswith(_CUSTOM_PREFIX):
            return self.resource_type[len(_CUSTOM_PREFIX):]
        return self.resource_type

    @property
    def correlation(self) -> Dict[str, str]:
        return {
            "StackId": self.stack_id,
            "RequestId": self.request_id,
            "LogicalResourceId": self.logical_resource_id,
        }

    @classmethod
    def from_event(cls, event: Mapping[str, Any]) -> "InvocationEvent":
        if not validate_event(event):
            missing = [k for k in REQUIRED_FIELDS if not isinstance(event, Mapping) or k not in event]
            raise ProtocolError(f"Invalid CloudFormation event; missing {', '.join(missing)}")

        request_type = str(event["RequestType"] or "")
        old = event.get("OldResourceProperties")
        return cls(
            action=request_type.strip().lower(),
            request_type=request_type,
            resource_type=str(event.get("ResourceType") or ""),
            properties=_properties(event["ResourceProperties"]),
            old_properties=_properties(old) if old is not None else None,
            response_url=str(event["ResponseURL"]),
            stack_id=str(event["StackId"]),
            logical_resource_id=str(event["LogicalResourceId"]),
            request_id=str(event["RequestId"]),
            physical_resource_id=event.get("PhysicalResourceId") or None,
            raw=dict(event),
        )


def parse_event(event: Mapping[str, Any]) -> InvocationEvent:
    """Parse a raw Lambda event; raises ProtocolError when it is not conformant."""
    return InvocationEvent.from_event(event)
