"""Tests for the CloudFormation deployment convention."""

import json
from unittest.mock import MagicMock

import pytest

from convoy.core.exceptions import FileNotFoundInPackageError
from convoy.deployment.conventions.cloudformation import STACK_ID_OUTPUT, DeployCloudFormationConvention

STACK_ID = "arn:aws:cloudformation:us-east-1:123456789012:stack/web-app/1"


def _stack(status, outputs=None):
    return {
        "Stacks": [
            {
                "StackId": STACK_ID,
                "StackName": "web-app",
                "StackStatus": status,
                "Outputs": outputs or [],
            }
        ]
    }


@pytest.fixture
def cloudformation(make_client_error):
    client = MagicMock()
    missing = make_client_error("ValidationError", "Stack with id web-app does not exist")
    outputs = [{"OutputKey": "BucketName", "OutputValue": "assets-prod"}]
    client.describe_stacks.side_effect = [
        missing,
        missing,
        _stack("CREATE_COMPLETE", outputs),
        _stack("CREATE_COMPLETE", outputs),
    ]
    client.create_stack.return_value = {"StackId": STACK_ID}
    return client


@pytest.fixture
def factory(cloudformation):
    factory = MagicMock()
    factory.region = "us-east-1"
    factory.cloudformation.return_value = cloudformation
    return factory


@pytest.fixture
def package_files(deployment):
    template = {"Parameters": {"Env": {"Type": "String"}}, "Description": "web app for #{Env}"}
    (deployment.staging_directory / "template.json").write_text(json.dumps(template))
    (deployment.staging_directory / "parameters.json").write_text(
        json.dumps([{"ParameterKey": "Env", "ParameterValue": "#{Env}"}])
    )
    return deployment


def test_creates_stack_and_publishes_id(factory, cloudformation, package_files):
    convention = DeployCloudFormationConvention(
        factory,
        "web-app",
        "template.json",
        "parameters.json",
        iam_capabilities="CAPABILITY_NAMED_IAM",
        wait_period=0,
    )

    convention.install(package_files)

    kwargs = cloudformation.create_stack.call_args.kwargs
    assert kwargs["StackName"] == "web-app"
    assert kwargs["Parameters"] == [{"ParameterKey": "Env", "ParameterValue": "prod"}]
    assert kwargs["Capabilities"] == ["CAPABILITY_NAMED_IAM"]
    assert kwargs["DisableRollback"] is False
    assert "web app for prod" in kwargs["TemplateBody"]
    cloudformation.update_stack.assert_not_called()

    variables = package_files.variables
    assert variables.get(f"Output.{STACK_ID_OUTPUT}") == STACK_ID
    assert variables.get(f"Convoy.Action[Deploy web app].Output.{STACK_ID_OUTPUT}") == STACK_ID
    assert variables.get("Output.AwsOutputs[BucketName]") == "assets-prod"


def test_outputs_are_not_published_without_waiting(factory, cloudformation, package_files):
    convention = DeployCloudFormationConvention(
        factory,
        "web-app",
        "template.json",
        wait_for_complete=False,
        wait_period=0,
    )

    convention.install(package_files)

    assert package_files.variables.get(f"Output.{STACK_ID_OUTPUT}") == STACK_ID
    assert "Output.AwsOutputs[BucketName]" not in package_files.variables
    assert cloudformation.create_stack.call_args.kwargs["Parameters"] == []


def test_unrecognised_capability_is_dropped(factory, cloudformation, package_files):
    convention = DeployCloudFormationConvention(
        factory,
        "web-app",
        "template.json",
        iam_capabilities="CAPABILITY_AUTO_EXPAND",
        wait_for_complete=False,
        wait_period=0,
    )

    convention.install(package_files)

    assert cloudformation.create_stack.call_args.kwargs["Capabilities"] == []


def test_missing_template_fails_before_calling_aws(factory, cloudformation, deployment):
    convention = DeployCloudFormationConvention(factory, "web-app", "missing.json", wait_period=0)

    with pytest.raises(FileNotFoundInPackageError):
        convention.install(deployment)

    cloudformation.describe_stacks.assert_not_called()
