"""Deployment pipeline primitives."""

from .context import RunningDeployment
from .processor import ConventionProcessor
from .conventions.base import Convention

__all__ = ["RunningDeployment", "ConventionProcessor", "Convention"]
