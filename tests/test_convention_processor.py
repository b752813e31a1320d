"""Tests for the convention pipeline."""

import pytest
from structlog.testing import capture_logs

from convoy.core.exceptions import CommandError
from convoy.deployment.conventions.base import Convention
from convoy.deployment.processor import ConventionProcessor


class Recording(Convention):
    def __init__(self, label, calls, fail=False):
        self.label = label
        self.calls = calls
        self.fail = fail

    def install(self, deployment):
        self.calls.append(self.label)
        deployment.variables.set(f"Ran.{self.label}", "true")
        if self.fail:
            raise CommandError(f"{self.label} failed")


def test_conventions_run_in_order(deployment):
    calls = []

    ConventionProcessor(deployment, [Recording("extract", calls), Recording("deploy", calls)]).run_conventions()

    assert calls == ["extract", "deploy"]


def test_first_failure_stops_the_run(deployment):
    calls = []
    conventions = [Recording("extract", calls), Recording("substitute", calls, fail=True), Recording("deploy", calls)]

    with capture_logs() as logs:
        with pytest.raises(CommandError, match="substitute failed"):
            ConventionProcessor(deployment, conventions).run_conventions()

    assert calls == ["extract", "substitute"]
    # effects of completed conventions stay in place
    assert deployment.variables.get("Ran.extract") == "true"
    errors = [log for log in logs if log["log_level"] == "error"]
    assert errors[0]["convention"] == "Recording"
    assert errors[0]["step"] == 2


def test_empty_pipeline_is_a_no_op(deployment):
    ConventionProcessor(deployment, []).run_conventions()
