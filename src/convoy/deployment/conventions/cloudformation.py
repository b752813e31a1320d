"""Convention that deploys a CloudFormation stack."""

from __future__ import annotations

from pathlib import Path
from typing import Any, Optional

import structlog

from convoy.aws.cloudformation.reconciler import StackReconciler
from convoy.aws.cloudformation.template import CloudFormationTemplate
from convoy.deployment.context import RunningDeployment
from convoy.deployment.conventions.base import Convention

logger = structlog.get_logger()

STACK_ID_OUTPUT = "AwsOutputs[StackId]"


class DeployCloudFormationConvention(Convention):
    """Creates or updates a stack and publishes its id and outputs."""

    def __init__(
        self,
        client_factory: Any,
        stack_name: str,
        template_file: Path,
        parameters_file: Optional[Path] = None,
        *,
        wait_for_complete: bool = True,
        iam_capabilities: Optional[str] = None,
        disable_rollback: bool = False,
        wait_period: float = 5.0,
        timeout: Optional[float] = None,
    ):
        self.client_factory = client_factory
        self.stack_name = stack_name
        self.template_file = template_file
        self.parameters_file = parameters_file
        self.wait_for_complete = wait_for_complete
        self.iam_capabilities = iam_capabilities
        self.disable_rollback = disable_rollback
        self.wait_period = wait_period
        self.timeout = timeout

    def install(self, deployment: RunningDeployment) -> None:
        template = CloudFormationTemplate.from_files(
            self.template_file,
            self.parameters_file,
            root=deployment.current_directory,
        )
        descriptor = template.to_descriptor(
            self.stack_name,
            deployment.variables,
            iam_capabilities=self.iam_capabilities,
            disable_rollback=self.disable_rollback,
        )

        reconciler = StackReconciler(
            self.client_factory,
            descriptor.name,
            wait_period=self.wait_period,
            timeout=self.timeout,
        )
        stack_id = reconciler.reconcile(descriptor, self.wait_for_complete)

        deployment.variables.set_output_variable(STACK_ID_OUTPUT, stack_id or "")

        # Outputs are only final once the stack has settled
        if self.wait_for_complete:
            for key, value in reconciler.stack_outputs().items():
                deployment.variables.set_output_variable(f"AwsOutputs[{key}]", value)
