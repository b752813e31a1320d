"""End-to-end tests for the convoy command line."""

import json
import tempfile
import zipfile
from unittest.mock import MagicMock

import pytest

from convoy.__main__ import main

STACK_ID = "arn:aws:cloudformation:us-east-1:123456789012:stack/web-app/1"


@pytest.fixture
def package(tmp_path):
    path = tmp_path / "web-app.1.0.0.zip"
    with zipfile.ZipFile(path, "w") as archive:
        archive.writestr("template.json", '{"Description": "web app for #{Env}"}')
        archive.writestr("site/index.html", "<h1>#{Env}</h1>")
    return path


@pytest.fixture
def variables_file(tmp_path):
    path = tmp_path / "variables.json"
    path.write_text(json.dumps({"Convoy.Action.Name": "Deploy web app", "Env": "prod"}))
    return path


@pytest.fixture
def aws(monkeypatch, make_client_error, tmp_path):
    clients = {"cloudformation": MagicMock(), "s3": MagicMock()}
    missing = make_client_error("ValidationError", "Stack with id web-app does not exist")
    stack = {"Stacks": [{"StackId": STACK_ID, "StackStatus": "CREATE_COMPLETE"}]}
    clients["cloudformation"].describe_stacks.side_effect = [missing, missing, stack, stack]
    clients["cloudformation"].create_stack.return_value = {"StackId": STACK_ID}
    clients["s3"].put_object.return_value = {"VersionId": "v7"}
    monkeypatch.setattr("convoy.aws.clients.boto3.client", lambda service, **kwargs: clients[service])
    monkeypatch.setenv("CONVOY_STATUS_WAIT_PERIOD", "0")
    # keep Settings away from any .env file in the developer checkout
    monkeypatch.chdir(tmp_path)
    return clients


def test_deploy_cloudformation_writes_outputs(aws, package, variables_file, tmp_path):
    output = tmp_path / "out" / "outputs.json"

    exit_code = main(
        [
            "deploy-aws-cloudformation",
            "--package", str(package),
            "--variables", str(variables_file),
            "--template", "template.json",
            "--stack-name", "web-app",
            "--output", str(output),
        ]
    )

    assert exit_code == 0
    outputs = json.loads(output.read_text())
    assert outputs["Output.AwsOutputs[StackId]"] == STACK_ID
    assert "web app for prod" in aws["cloudformation"].create_stack.call_args.kwargs["TemplateBody"]


def test_empty_template_fails(aws, tmp_path, variables_file):
    package = tmp_path / "empty-template.zip"
    with zipfile.ZipFile(package, "w") as archive:
        archive.writestr("template.json", "   ")

    exit_code = main(
        [
            "deploy-aws-cloudformation",
            "--package", str(package),
            "--variables", str(variables_file),
            "--template", "template.json",
            "--stack-name", "web-app",
        ]
    )

    assert exit_code == 1
    aws["cloudformation"].describe_stacks.assert_not_called()


def test_malformed_upload_targets_fail(aws, package, variables_file):
    variables = json.loads(variables_file.read_text())
    variables.update(
        {
            "Convoy.Action.Aws.S3.TargetMode": "FileSelections",
            "Convoy.Action.Aws.S3.FileSelections": json.dumps([{"kind": "multiple_files", "pattern": ""}]),
        }
    )
    variables_file.write_text(json.dumps(variables))

    exit_code = main(
        ["upload-aws-s3", "--package", str(package), "--variables", str(variables_file), "--bucket", "b"]
    )

    assert exit_code == 1
    aws["s3"].put_object.assert_not_called()


def test_temporary_staging_directory_is_removed(aws, package, variables_file, tmp_path, monkeypatch):
    scratch = tmp_path / "scratch"
    scratch.mkdir()
    monkeypatch.setattr(tempfile, "tempdir", str(scratch))

    exit_code = main(
        [
            "deploy-aws-cloudformation",
            "--package", str(package),
            "--variables", str(variables_file),
            "--template", "template.json",
            "--stack-name", "web-app",
        ]
    )

    assert exit_code == 0
    assert list(scratch.iterdir()) == []


def test_configured_staging_root_is_kept(aws, package, variables_file, tmp_path, monkeypatch):
    monkeypatch.setenv("CONVOY_STAGING_ROOT", str(tmp_path / "work"))

    exit_code = main(
        [
            "deploy-aws-cloudformation",
            "--package", str(package),
            "--variables", str(variables_file),
            "--template", "template.json",
            "--stack-name", "web-app",
        ]
    )

    assert exit_code == 0
    assert (tmp_path / "work" / "web-app.1.0.0" / "template.json").is_file()


def test_upload_s3_single_file(aws, package, variables_file, tmp_path):
    variables = json.loads(variables_file.read_text())
    variables.update(
        {
            "Convoy.Action.Aws.S3.TargetMode": "FileSelections",
            "Convoy.Action.Aws.S3.FileSelections": json.dumps(
                [
                    {
                        "kind": "single_file",
                        "path": "site/index.html",
                        "bucketKey": "index.html",
                        "performVariableSubstitution": True,
                        "metadata": {"Content-Type": "text/html"},
                    }
                ]
            ),
        }
    )
    variables_file.write_text(json.dumps(variables))
    output = tmp_path / "outputs.json"

    exit_code = main(
        [
            "upload-aws-s3",
            "--package", str(package),
            "--variables", str(variables_file),
            "--bucket", "assets-bucket",
            "--output", str(output),
        ]
    )

    assert exit_code == 0
    kwargs = aws["s3"].put_object.call_args.kwargs
    assert kwargs["Bucket"] == "assets-bucket"
    assert kwargs["ContentType"] == "text/html"
    assert json.loads(output.read_text())["Output.Files[index.html]"] == "v7"


def test_missing_package_fails(aws, tmp_path, variables_file):
    exit_code = main(
        [
            "deploy-aws-cloudformation",
            "--package", str(tmp_path / "missing.zip"),
            "--variables", str(variables_file),
            "--template", "template.json",
            "--stack-name", "web-app",
        ]
    )

    assert exit_code == 1
    aws["cloudformation"].create_stack.assert_not_called()


def test_missing_stack_name_fails(aws, package, tmp_path):
    exit_code = main(["deploy-aws-cloudformation", "--package", str(package), "--template", "template.json"])

    assert exit_code == 1


def test_aws_failure_exits_non_zero(aws, package, variables_file, make_client_error):
    aws["cloudformation"].create_stack.side_effect = make_client_error("AccessDenied", "not allowed")

    exit_code = main(
        [
            "deploy-aws-cloudformation",
            "--package", str(package),
            "--variables", str(variables_file),
            "--template", "template.json",
            "--stack-name", "web-app",
        ]
    )

    assert exit_code == 1


def test_no_command_prints_help(capsys):
    assert main([]) == 1
    assert "deploy-aws-cloudformation" in capsys.readouterr().out


def test_invalid_settings(monkeypatch, capsys):
    monkeypatch.setenv("CONVOY_LOG_LEVEL", "LOUD")

    assert main(["upload-aws-s3", "--bucket", "b"]) == 1
    assert "invalid configuration" in capsys.readouterr().err
