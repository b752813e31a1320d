"""Stack status vocabulary.

Every status string CloudFormation reports is mapped to one of three
outcomes. Unknown strings fall back to suffix matching so a status added
by AWS later still terminates polling.
"""

from __future__ import annotations

from enum import Enum
from typing import Dict, Optional

STACK_RESOURCE_TYPE = "AWS::CloudFormation::Stack"


class StackStatus(str, Enum):
    """Pipeline-visible state of the named stack."""

    DOES_NOT_EXIST = "does_not_exist"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"


class StatusOutcome(str, Enum):
    IN_PROGRESS = "in_progress"
    SUCCESS = "success"
    FAILURE = "failure"


STATUS_OUTCOMES: Dict[str, StatusOutcome] = {
    "CREATE_IN_PROGRESS": StatusOutcome.IN_PROGRESS,
    "CREATE_COMPLETE": StatusOutcome.SUCCESS,
    "CREATE_FAILED": StatusOutcome.FAILURE,
    "CREATE_ROLLBACK_COMPLETE": StatusOutcome.FAILURE,
    "CREATE_ROLLBACK_FAILED": StatusOutcome.FAILURE,
    "ROLLBACK_IN_PROGRESS": StatusOutcome.IN_PROGRESS,
    "ROLLBACK_COMPLETE": StatusOutcome.FAILURE,
    "ROLLBACK_FAILED": StatusOutcome.FAILURE,
    "DELETE_IN_PROGRESS": StatusOutcome.IN_PROGRESS,
    "DELETE_COMPLETE": StatusOutcome.SUCCESS,
    "DELETE_FAILED": StatusOutcome.FAILURE,
    "UPDATE_IN_PROGRESS": StatusOutcome.IN_PROGRESS,
    "UPDATE_COMPLETE_CLEANUP_IN_PROGRESS": StatusOutcome.IN_PROGRESS,
    "UPDATE_COMPLETE": StatusOutcome.SUCCESS,
    "UPDATE_FAILED": StatusOutcome.FAILURE,
    "UPDATE_ROLLBACK_IN_PROGRESS": StatusOutcome.IN_PROGRESS,
    "UPDATE_ROLLBACK_COMPLETE_CLEANUP_IN_PROGRESS": StatusOutcome.IN_PROGRESS,
    "UPDATE_ROLLBACK_COMPLETE": StatusOutcome.FAILURE,
    "UPDATE_ROLLBACK_FAILED": StatusOutcome.FAILURE,
    "REVIEW_IN_PROGRESS": StatusOutcome.IN_PROGRESS,
    "IMPORT_IN_PROGRESS": StatusOutcome.IN_PROGRESS,
    "IMPORT_COMPLETE": StatusOutcome.SUCCESS,
    "IMPORT_ROLLBACK_IN_PROGRESS": StatusOutcome.IN_PROGRESS,
    "IMPORT_ROLLBACK_COMPLETE": StatusOutcome.FAILURE,
    "IMPORT_ROLLBACK_FAILED": StatusOutcome.FAILURE,
}

# A stack that failed its first creation can only be deleted, never updated.
MUST_DELETE_STATUSES = frozenset(
    {
        "CREATE_FAILED",
        "ROLLBACK_COMPLETE",
        "ROLLBACK_FAILED",
        "DELETE_FAILED",
        "UPDATE_ROLLBACK_FAILED",
    }
)

# Statuses that mean the last create or update did not succeed.
UNSUCCESSFUL_STATUSES = frozenset(
    {
        "CREATE_ROLLBACK_COMPLETE",
        "CREATE_ROLLBACK_FAILED",
        "UPDATE_ROLLBACK_COMPLETE",
        "UPDATE_ROLLBACK_FAILED",
        "ROLLBACK_COMPLETE",
        "ROLLBACK_FAILED",
        "DELETE_FAILED",
        "CREATE_FAILED",
    }
)


def _normalise(status: Optional[str]) -> str:
    return (status or "").strip().upper()


def outcome(status: Optional[str]) -> StatusOutcome:
    """Map a raw status string to its outcome, case-insensitively."""
    key = _normalise(status)
    if key in STATUS_OUTCOMES:
        return STATUS_OUTCOMES[key]
    if key.endswith("_FAILED"):
        return StatusOutcome.FAILURE
    if key.endswith("_COMPLETE"):
        return StatusOutcome.SUCCESS
    return StatusOutcome.IN_PROGRESS


def is_terminal(status: Optional[str]) -> bool:
    """True when the last operation finished, successfully or not.

    A missing status is treated as terminal: there is nothing left to wait for.
    """
    if status is None:
        return True
    return outcome(status) is not StatusOutcome.IN_PROGRESS


def must_be_deleted(status: Optional[str]) -> bool:
    return _normalise(status) in MUST_DELETE_STATUSES


def is_unsuccessful(status: Optional[str]) -> bool:
    return _normalise(status) in UNSUCCESSFUL_STATUSES


def is_stack_resource(resource_type: Optional[str]) -> bool:
    return resource_type == STACK_RESOURCE_TYPE


def stack_status(raw_status: Optional[str]) -> StackStatus:
    """Collapse a describe-stacks status into the pipeline-visible state."""
    return StackStatus.COMPLETED if is_terminal(raw_status) else StackStatus.IN_PROGRESS
