"""Typed adapter over the boto3 CloudFormation client."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Callable, Dict, List, Optional, Union

import structlog
from botocore.exceptions import ClientError

from convoy.aws import errors
from convoy.aws.cloudformation.template import StackDescriptor

logger = structlog.get_logger()


@dataclass(frozen=True)
class StackDescription:
    stack_id: str
    status: Optional[str]
    outputs: Dict[str, str] = field(default_factory=dict)


@dataclass(frozen=True)
class StackEvent:
    """One entry of the stack's event history."""

    timestamp: Optional[datetime]
    resource_type: Optional[str]
    resource_status: Optional[str]
    status_reason: Optional[str] = None
    logical_resource_id: Optional[str] = None

    @classmethod
    def from_response(cls, event: Dict[str, Any]) -> "StackEvent":
        return cls(
            timestamp=event.get("Timestamp"),
            resource_type=event.get("ResourceType"),
            resource_status=event.get("ResourceStatus"),
            status_reason=event.get("ResourceStatusReason"),
            logical_resource_id=event.get("LogicalResourceId"),
        )


@dataclass(frozen=True)
class StackUpdated:
    stack_id: str


@dataclass(frozen=True)
class NoUpdatesRequired:
    stack_id: str


@dataclass(frozen=True)
class UpdateFailed:
    error: ClientError

    @property
    def reason(self) -> str:
        return errors.error_message(self.error)


UpdateOutcome = Union[StackUpdated, NoUpdatesRequired, UpdateFailed]


class StackClient:
    """Calls CloudFormation for a single named stack.

    Provider errors are raised unchanged except from ``update_stack``, which
    folds them into an ``UpdateOutcome`` so the empty-change-set case is
    decided here and nowhere else.
    """

    def __init__(self, client: Any, stack_name: str):
        self.client = client
        self.stack_name = stack_name

    def describe_stack(self) -> Optional[StackDescription]:
        response = self.client.describe_stacks(StackName=self.stack_name)
        stacks = response.get("Stacks") or []
        if not stacks:
            return None
        stack = stacks[0]
        outputs = {
            output["OutputKey"]: output.get("OutputValue", "")
            for output in stack.get("Outputs") or []
            if "OutputKey" in output
        }
        return StackDescription(
            stack_id=stack.get("StackId", ""),
            status=stack.get("StackStatus"),
            outputs=outputs,
        )

    def latest_event(self, predicate: Optional[Callable[[StackEvent], bool]] = None) -> Optional[StackEvent]:
        """Most recent event, optionally the most recent one matching ``predicate``."""
        response = self.client.describe_stack_events(StackName=self.stack_name)
        events: List[StackEvent] = [StackEvent.from_response(e) for e in response.get("StackEvents") or []]
        events.sort(key=lambda e: e.timestamp.timestamp() if e.timestamp else float("-inf"), reverse=True)
        for event in events:
            if predicate is None or predicate(event):
                return event
        return None

    def create_stack(self, descriptor: StackDescriptor) -> str:
        response = self.client.create_stack(
            StackName=descriptor.name,
            TemplateBody=descriptor.template_body,
            Parameters=descriptor.provider_parameters(),
            Capabilities=list(descriptor.capabilities),
            DisableRollback=descriptor.disable_rollback,
        )
        return response["StackId"]

    def update_stack(self, descriptor: StackDescriptor) -> UpdateOutcome:
        try:
            response = self.client.update_stack(
                StackName=descriptor.name,
                TemplateBody=descriptor.template_body,
                Parameters=descriptor.provider_parameters(),
                Capabilities=list(descriptor.capabilities),
            )
        except ClientError as e:
            if errors.is_no_updates(e):
                logger.info("No updates are to be performed", stack=self.stack_name)
                existing = self.describe_stack()
                return NoUpdatesRequired(existing.stack_id if existing else "")
            return UpdateFailed(e)
        return StackUpdated(response["StackId"])

    def delete_stack(self) -> None:
        self.client.delete_stack(StackName=self.stack_name)
