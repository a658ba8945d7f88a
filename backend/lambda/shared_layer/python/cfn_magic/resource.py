"""cfn_magic.resource - The contract every resource kind implements.

A kind is any callable that takes a ResourceRequest and returns an object
with ``create()``, ``modify()`` and ``remove()``. Construction validates the
property bag and must not touch AWS. Each operation returns a
ResourceResult (or None when it has nothing to report).
"""
from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, NamedTuple, Optional, Protocol

from .aws_clients import ClientProvider
from .errors import ValidationError

__all__ = [
    "Resource",
    "ResourceFactory",
    "ResourceRequest",
    "ResourceResult",
    "as_bool",
    "generic_resource",
    "region_from_arn",
    "region_from_stack_id",
    "replace",
    "require",
]


class ResourceResult(NamedTuple):
    physical_id: Optional[str] = None
    data: Optional[Dict[str, Any]] = None


@dataclass(frozen=True)
class ResourceRequest:
    """Everything a resource kind may look at while it is being built."""

    properties: Dict[str, Any]
    clients: ClientProvider
    old_properties: Optional[Dict[str, Any]] = None
    physical_id: Optional[str] = None
    stack_id: str = ""
    logical_resource_id: str = ""
    extra: Dict[str, Any] = field(default_factory=dict)


class Resource(Protocol):
    def create(self) -> Optional[ResourceResult]: ...

    def modify(self) -> Optional[ResourceResult]: ...

    def remove(self) -> Optional[ResourceResult]: ...


ResourceFactory = Callable[[ResourceRequest], Resource]


# ---------------------------------------------------------------------------
# Property helpers
# ---------------------------------------------------------------------------


def require(properties: Optional[Dict[str, Any]], name: str) -> Any:
    """Return ``properties[name]`` or raise ValidationError when it is empty."""
    value = (properties or {}).get(name)
    if value is None or value == "" or value == [] or value == {}:
        raise ValidationError(f"Missing Parameter {name}")
    return value


def as_bool(value: Any) -> bool:
    """CloudFormation passes booleans as strings."""
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        return value.strip().lower() == "true"
    return False


_ARN_RE = re.compile(r"^arn:[^:]+:[^:]+:([^:]*):")


def region_from_arn(arn: str) -> str:
    match = _ARN_RE.match(str(arn or ""))
    if not match or not match.group(1):
        raise ValidationError(f"Cannot determine region from ARN {arn!r}")
    return match.group(1)


def region_from_stack_id(stack_id: str) -> Optional[str]:
    match = _ARN_RE.match(str(stack_id or ""))
    return match.group(1) if match and match.group(1) else None


def replace(resource: Resource) -> Optional[ResourceResult]:
    """Default modify: delete the prior object, then create the desired one.

    Leaves a gap with no object if create fails after remove succeeded; kinds
    with an in-place update path should not use this.
    """
    resource.remove()
    return resource.create()


# ---------------------------------------------------------------------------
# Generic resources built from plain functions
# ---------------------------------------------------------------------------


Operation = Callable[[ResourceRequest], Optional[ResourceResult]]


class GenericResource:
    def __init__(
        self,
        request: ResourceRequest,
        create: Operation,
        modify: Operation,
        remove: Operation,
        validate: Optional[Callable[[ResourceRequest], Any]] = None,
    ) -> None:
        if validate is not None:
            validate(request)
        self.request = request
        self._create = create
        self._modify = modify
        self._remove = remove

    def create(self) -> Optional[ResourceResult]:
        return self._create(self.request)

    def modify(self) -> Optional[ResourceResult]:
        return self._modify(self.request)

    def remove(self) -> Optional[ResourceResult]:
        return self._remove(self.request)


def generic_resource(
    create: Operation,
    modify: Operation,
    remove: Operation,
    validate: Optional[Callable[[ResourceRequest], Any]] = None,
) -> ResourceFactory:
    """Build a resource kind out of four functions.

    Each function receives the ResourceRequest. ``validate`` runs when the
    resource is constructed and should raise ValidationError on bad input.
    """
    if not (callable(create) and callable(modify) and callable(remove)):
        raise TypeError("Must provide create, modify, and remove functions")
    if validate is not None and not callable(validate):
        raise TypeError("Optional validate argument must be a function")

    def factory(request: ResourceRequest) -> GenericResource:
        return GenericResource(request, create, modify, remove, validate)

    return factory
