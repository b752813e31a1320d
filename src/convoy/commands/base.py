"""Shared plumbing for commands."""

from __future__ import annotations

import argparse
import json
import tempfile
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any, List, Optional

import structlog

from convoy.aws.clients import AwsClientFactory
from convoy.core.config import Settings
from convoy.core.exceptions import CommandError
from convoy.deployment.context import RunningDeployment
from convoy.deployment.conventions.base import Convention
from convoy.deployment.processor import ConventionProcessor
from convoy.utils.logging import bind_deployment_context
from convoy.variables import VariableDictionary

logger = structlog.get_logger()


class Command(ABC):
    """Loads a deployment, builds its conventions and runs them in order."""

    name: str = ""
    help: str = ""

    def __init__(self, settings: Settings, client_factory: Optional[Any] = None):
        self.settings = settings
        self.client_factory = client_factory or AwsClientFactory(settings)

    @classmethod
    def add_arguments(cls, parser: argparse.ArgumentParser) -> None:
        parser.add_argument("--package", help="Path to the package to deploy")
        parser.add_argument("--variables", help="Path to a JSON file containing variables")
        parser.add_argument("--output", help="Write published output variables to this JSON file")

    @abstractmethod
    def conventions(
        self,
        args: argparse.Namespace,
        deployment: RunningDeployment,
        staging_root: Path,
    ) -> List[Convention]:
        ...

    def load_deployment(self, args: argparse.Namespace) -> RunningDeployment:
        package = Path(args.package).resolve() if args.package else None
        if package is not None and not package.is_file():
            raise CommandError(f"Could not find package file: {package}")

        variables = VariableDictionary.from_file(Path(args.variables)) if args.variables else VariableDictionary()
        return RunningDeployment(package_file_path=package, variables=variables)

    def execute(self, args: argparse.Namespace) -> int:
        deployment = self.load_deployment(args)
        bind_deployment_context(
            deployment.action_name or None,
            str(deployment.package_file_path) if deployment.package_file_path else None,
        )
        if deployment.package_file_path:
            logger.info(f"Deploying package: {deployment.package_file_path}")

        if self.settings.staging_root:
            self.run(args, deployment, Path(self.settings.staging_root))
        else:
            with tempfile.TemporaryDirectory(prefix="convoy-") as staging_root:
                self.run(args, deployment, Path(staging_root))

        if args.output:
            write_output_variables(deployment.variables, Path(args.output))
        return 0

    def run(self, args: argparse.Namespace, deployment: RunningDeployment, staging_root: Path) -> None:
        conventions = self.conventions(args, deployment, staging_root)
        ConventionProcessor(deployment, conventions).run_conventions()


def write_output_variables(variables: VariableDictionary, path: Path) -> None:
    outputs = {name: variables.get_raw(name) for name in variables if name.startswith("Output.")}
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(outputs, indent=2, sort_keys=True), encoding="utf-8")
    logger.info("Wrote output variables", path=str(path), count=len(outputs))


def require(value: Optional[str], message: str) -> str:
    if not value or not value.strip():
        raise CommandError(message)
    return value.strip()
