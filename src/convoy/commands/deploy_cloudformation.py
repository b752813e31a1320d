"""deploy-aws-cloudformation command."""

from __future__ import annotations

import argparse
from pathlib import Path
from typing import List

from convoy.commands.base import Command, require
from convoy.deployment.context import RunningDeployment
from convoy.deployment.conventions.base import Convention
from convoy.deployment.conventions.cloudformation import DeployCloudFormationConvention
from convoy.deployment.conventions.extract import ExtractPackageToStagingDirectoryConvention, PackageExtractor
from convoy.deployment.conventions.substitute import FileSubstituter, SubstituteInFilesConvention
from convoy.special_variables import Aws


class DeployCloudFormationCommand(Command):
    name = "deploy-aws-cloudformation"
    help = "Creates or updates a CloudFormation stack"

    @classmethod
    def add_arguments(cls, parser: argparse.ArgumentParser) -> None:
        super().add_arguments(parser)
        parser.add_argument("--template", help="Path to the CloudFormation template")
        parser.add_argument("--template-parameters", help="Path to the template parameters file (JSON or YAML)")
        parser.add_argument("--stack-name", help="Name of the stack to deploy")
        parser.add_argument("--iam-capabilities", help="CAPABILITY_IAM or CAPABILITY_NAMED_IAM")
        parser.add_argument(
            "--wait-for-completion",
            choices=["true", "false"],
            help="Wait until the stack reaches a completed state",
        )
        parser.add_argument(
            "--disable-rollback",
            choices=["true", "false"],
            help="Keep resources if the stack fails to create",
        )

    def conventions(
        self,
        args: argparse.Namespace,
        deployment: RunningDeployment,
        staging_root: Path,
    ) -> List[Convention]:
        variables = deployment.variables
        template = require(
            args.template or variables.get(Aws.TEMPLATE_FILE),
            "No template was specified. Please pass --template template.json",
        )
        stack_name = require(
            args.stack_name or variables.get(Aws.STACK_NAME),
            "No stack name was specified. Please pass --stack-name",
        )
        parameters = args.template_parameters or variables.get(Aws.TEMPLATE_PARAMETERS_FILE)

        if args.wait_for_completion is not None:
            wait = args.wait_for_completion == "true"
        else:
            wait = variables.get_flag(Aws.WAIT_FOR_COMPLETION, True)
        if args.disable_rollback is not None:
            disable_rollback = args.disable_rollback == "true"
        else:
            disable_rollback = variables.get_flag(Aws.DISABLE_ROLLBACK, False)

        substituter = FileSubstituter()
        return [
            ExtractPackageToStagingDirectoryConvention(PackageExtractor(), staging_root),
            SubstituteInFilesConvention(substituter),
            DeployCloudFormationConvention(
                self.client_factory,
                stack_name,
                Path(template),
                Path(parameters) if parameters else None,
                wait_for_complete=wait,
                iam_capabilities=args.iam_capabilities or variables.get(Aws.IAM_CAPABILITIES),
                disable_rollback=disable_rollback,
                wait_period=self.settings.status_wait_period,
                timeout=self.settings.stack_timeout,
            ),
        ]
