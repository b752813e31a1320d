"""CloudFormation stack lifecycle."""

from .client import NoUpdatesRequired, StackClient, StackUpdated, UpdateFailed
from .reconciler import StackReconciler
from .status import StackStatus, StatusOutcome
from .template import CloudFormationTemplate, StackDescriptor

__all__ = [
    "CloudFormationTemplate",
    "NoUpdatesRequired",
    "StackClient",
    "StackDescriptor",
    "StackReconciler",
    "StackStatus",
    "StackUpdated",
    "StatusOutcome",
    "UpdateFailed",
]
