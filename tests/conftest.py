"""
Pytest configuration and fixtures for convoy tests.
"""

import os
from pathlib import Path

import pytest
import structlog
from botocore.exceptions import ClientError
from structlog.contextvars import clear_contextvars

from convoy.deployment.context import RunningDeployment
from convoy.variables import VariableDictionary


@pytest.fixture(autouse=True)
def reset_structlog():
    """
    Restore the default structlog configuration after every test so that
    level filtering configured by one test never hides logs from another.
    """
    yield
    structlog.reset_defaults()
    clear_contextvars()


@pytest.fixture(autouse=True)
def clear_convoy_env(monkeypatch):
    """Keep CONVOY_* variables from the developer's shell out of the tests."""
    for key in list(os.environ):
        if key.startswith("CONVOY_"):
            monkeypatch.delenv(key)


@pytest.fixture
def make_client_error():
    """Build a botocore ClientError with the given code and message."""

    def _make(code: str, message: str = "", operation: str = "Operation") -> ClientError:
        return ClientError({"Error": {"Code": code, "Message": message}}, operation)

    return _make


@pytest.fixture
def variables() -> VariableDictionary:
    return VariableDictionary({"Convoy.Action.Name": "Deploy web app", "Env": "prod"})


@pytest.fixture
def deployment(tmp_path: Path, variables: VariableDictionary) -> RunningDeployment:
    staging = tmp_path / "staging"
    staging.mkdir()
    package = tmp_path / "web-app.1.0.0.zip"
    package.write_bytes(b"PK-package-bytes")
    return RunningDeployment(
        package_file_path=package,
        variables=variables,
        staging_directory=staging,
        working_directory=tmp_path,
    )
