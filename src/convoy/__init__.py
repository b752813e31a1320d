"""Convoy - Convention-driven deployment engine for AWS targets."""

__version__ = "0.1.0"
__author__ = "Convoy Core Team"

from convoy.core.config import Settings
from convoy.deployment.context import RunningDeployment
from convoy.deployment.processor import ConventionProcessor
from convoy.variables import VariableDictionary

__all__ = [
    "Settings",
    "RunningDeployment",
    "ConventionProcessor",
    "VariableDictionary",
    "__version__",
]
