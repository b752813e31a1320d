"""Straight-line convention runner."""

from __future__ import annotations

import time
from typing import List, Sequence

import structlog

from convoy.deployment.context import RunningDeployment
from convoy.deployment.conventions.base import Convention
from convoy.utils.metrics import CONVENTION_DURATION

logger = structlog.get_logger()


class ConventionProcessor:
    """Runs conventions strictly in order against one deployment.

    The first exception aborts the run and propagates to the caller.
    Nothing is retried and completed conventions are not rolled back.
    """

    def __init__(self, deployment: RunningDeployment, conventions: Sequence[Convention]):
        self.deployment = deployment
        self.conventions: List[Convention] = list(conventions)

    def run_conventions(self) -> None:
        total = len(self.conventions)
        for index, convention in enumerate(self.conventions, start=1):
            logger.debug("Running convention", convention=convention.name, step=index, total=total)
            start = time.perf_counter()
            try:
                convention.install(self.deployment)
            except Exception as exc:
                logger.error(
                    "Convention failed",
                    convention=convention.name,
                    step=index,
                    error=str(exc),
                )
                raise
            finally:
                CONVENTION_DURATION.labels(convention=convention.name).observe(time.perf_counter() - start)
