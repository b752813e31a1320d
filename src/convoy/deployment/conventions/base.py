"""Base class for conventions."""

from abc import ABC, abstractmethod

from convoy.deployment.context import RunningDeployment


class Convention(ABC):
    """A single step of the deployment pipeline.

    Conventions hold no state between deployments beyond the dependencies
    handed to their constructor. Failures are raised, never returned.
    """

    @property
    def name(self) -> str:
        return type(self).__name__

    @abstractmethod
    def install(self, deployment: RunningDeployment) -> None:
        ...
