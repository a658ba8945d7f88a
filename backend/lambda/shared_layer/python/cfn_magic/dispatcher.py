"""cfn_magic.dispatcher - Lifecycle dispatch for CloudFormation custom resources.

Every invocation runs through the same phases:

    VALIDATING -> CONSTRUCTING -> EXECUTING -> REPORTING -> DONE

An event that fails validation goes straight to DONE without a report,
since it has no trustworthy ResponseURL. Every other event produces exactly
one result envelope, whether the resource succeeded or not. Partial work
done before a failure is left in place for the next Update or Delete to
converge.
"""
from __future__ import annotations

import enum
import hashlib
import json
import logging
from typing import Any, Callable, Dict, Mapping, Optional

from botocore.exceptions import BotoCoreError, ClientError

from .aws_clients import ClientFactory, ClientProvider
from .errors import DependencyError, ValidationError
from .events import ACTIONS, InvocationEvent, validate_event
from .resource import Resource, ResourceFactory, ResourceRequest, ResourceResult
from .response import DeliveryReceipt, ResponseTransmitter, ResultEnvelope

logger = logging.getLogger(__name__)

__all__ = [
    "IGNORED_RESULT",
    "LifecycleDispatcher",
    "Phase",
    "generate_physical_id",
]

IGNORED_RESULT = {"status": "ignored", "reason": "invalid_cloudformation_event"}

_OPERATIONS = {"create": "create", "update": "modify", "delete": "remove"}


class Phase(str, enum.Enum):
    VALIDATING = "Validating"
    CONSTRUCTING = "Constructing"
    EXECUTING = "Executing"
    REPORTING = "Reporting"
    DONE = "Done"


def generate_physical_id(event: InvocationEvent) -> str:
    """Deterministic id for kinds that do not name their own objects."""
    seed = json.dumps(
        [event.stack_id, event.logical_resource_id, event.properties],
        sort_keys=True,
        default=str,
    )
    return hashlib.sha256(seed.encode("utf-8")).hexdigest()[:32]


class _Failure(Exception):
    """Short-circuit to REPORTING with a FAILED status."""


class LifecycleDispatcher:
    """Validate, construct, execute and report one CloudFormation request."""

    def __init__(
        self,
        registry: Mapping[str, ResourceFactory],
        transmitter: Optional[ResponseTransmitter] = None,
        clients: Optional[ClientProvider] = None,
    ) -> None:
        self.registry = dict(registry)
        self.transmitter = transmitter or ResponseTransmitter()
        self.clients = clients or ClientFactory()

    # -- phases -------------------------------------------------------------

    def _enter(self, phase: Phase, event: Optional[InvocationEvent] = None) -> Phase:
        if event is None:
            logger.info("[%s]", phase.value)
        else:
            logger.info(
                "[%s] %s %s (%s)",
                phase.value,
                event.request_type,
                event.logical_resource_id,
                event.kind or "unknown kind",
            )
        return phase

    def _construct(self, event: InvocationEvent, kind: Optional[str]) -> Resource:
        if event.action not in ACTIONS:
            raise _Failure(f"Unsupported RequestType {event.request_type!r}")
        if event.action in ("update", "delete") and not event.physical_resource_id:
            raise _Failure(f"Missing PhysicalResourceId for {event.request_type} request")

        name = kind or event.kind
        factory = self.registry.get(name)
        if factory is None:
            raise _Failure(f"{name or 'Unknown'} is not an available custom resource")

        request = ResourceRequest(
            properties=dict(event.properties),
            old_properties=dict(event.old_properties) if event.old_properties is not None else None,
            physical_id=event.physical_resource_id,
            stack_id=event.stack_id,
            logical_resource_id=event.logical_resource_id,
            clients=self.clients,
        )
        return factory(request)

    def _execute(self, resource: Resource, event: InvocationEvent) -> ResourceResult:
        operation: Callable[[], Optional[ResourceResult]] = getattr(resource, _OPERATIONS[event.action])
        result = operation()
        if result is None:
            return ResourceResult()
        return ResourceResult(*result)

    def _success(self, event: InvocationEvent, result: ResourceResult) -> ResultEnvelope:
        physical_id = result.physical_id or event.physical_resource_id or generate_physical_id(event)
        return ResultEnvelope.success(event.correlation, str(physical_id), result.data)

    def _failure(self, event: InvocationEvent, reason: Any) -> ResultEnvelope:
        physical_id = event.physical_resource_id or generate_physical_id(event)
        return ResultEnvelope.failure(event.correlation, physical_id, reason)

    # -- entrypoint ---------------------------------------------------------

    def run(self, event: InvocationEvent, kind: Optional[str] = None) -> ResultEnvelope:
        """Construct and execute the resource; never raises for resource errors."""
        self._enter(Phase.CONSTRUCTING, event)
        try:
            resource = self._construct(event, kind)
        except (_Failure, ValidationError) as exc:
            logger.error("[ERROR] Construction failed: %s", exc)
            return self._failure(event, exc)
        except Exception as exc:
            logger.exception("[ERROR] Unexpected construction failure")
            return self._failure(event, exc)

        self._enter(Phase.EXECUTING, event)
        try:
            result = self._execute(resource, event)
        except (DependencyError, ClientError, BotoCoreError) as exc:
            logger.error("[ERROR] %s failed: %s", event.request_type, exc)
            return self._failure(event, exc)
        except Exception as exc:
            logger.exception("[ERROR] %s raised unexpectedly", event.request_type)
            return self._failure(event, exc)

        return self._success(event, result)

    def handle(self, raw_event: Any, kind: Optional[str] = None) -> Dict[str, Any]:
        """Process one Lambda event and deliver its result.

        Raises DeliveryError when the ResponseURL cannot be reached.
        """
        self._enter(Phase.VALIDATING)
        if not validate_event(raw_event):
            logger.warning("Ignoring invalid CloudFormation event")
            self._enter(Phase.DONE)
            return dict(IGNORED_RESULT)

        event = InvocationEvent.from_event(raw_event)
        envelope = self.run(event, kind)

        self._enter(Phase.REPORTING, event)
        receipt: DeliveryReceipt = self.transmitter.send(envelope, event.response_url)

        self._enter(Phase.DONE, event)
        return {
            "status": envelope.status,
            "attempts": receipt.attempts,
            "response": envelope.to_dict(),
        }

    def manage(self, kind: str) -> Callable[[Any, Any], Dict[str, Any]]:
        """Lambda handler bound to a single resource kind."""
        if kind not in self.registry:
            raise KeyError(f"{kind} is not a registered custom resource")

        def handler(event: Any, _context: Any = None) -> Dict[str, Any]:
            return self.handle(event, kind)

        handler.__name__ = f"manage_{kind}"
        return handler
