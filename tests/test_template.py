"""Tests for template loading and stack descriptors."""

import json

import pytest
from pydantic import ValidationError

from convoy.aws.cloudformation.template import (
    CloudFormationTemplate,
    StackDescriptor,
    recognised_capabilities,
)
from convoy.core.exceptions import ConfigurationError, FileNotFoundInPackageError
from convoy.variables import VariableDictionary


def test_parameters_file_in_cloudformation_list_form(tmp_path):
    (tmp_path / "template.yaml").write_text("Resources: {}\n")
    (tmp_path / "params.json").write_text(
        json.dumps(
            [
                {"ParameterKey": "Env", "ParameterValue": "prod"},
                {"ParameterKey": "Size", "ParameterValue": 3},
            ]
        )
    )

    template = CloudFormationTemplate.from_files("template.yaml", "params.json", root=tmp_path)

    assert template.inputs == {"Env": "prod", "Size": "3"}


def test_parameters_file_as_yaml_mapping(tmp_path):
    (tmp_path / "template.yaml").write_text("Resources: {}\n")
    (tmp_path / "params.yml").write_text("Env: prod\nDomain: example.com\n")

    template = CloudFormationTemplate.from_files("template.yaml", "params.yml", root=tmp_path)

    assert template.inputs == {"Env": "prod", "Domain": "example.com"}


def test_invalid_parameters_file(tmp_path):
    (tmp_path / "template.yaml").write_text("Resources: {}\n")
    (tmp_path / "params.json").write_text("{not json")

    with pytest.raises(ConfigurationError):
        CloudFormationTemplate.from_files("template.yaml", "params.json", root=tmp_path)


def test_missing_files(tmp_path):
    with pytest.raises(FileNotFoundInPackageError):
        CloudFormationTemplate.from_files("template.yaml", root=tmp_path)

    (tmp_path / "template.yaml").write_text("Resources: {}\n")
    with pytest.raises(FileNotFoundInPackageError):
        CloudFormationTemplate.from_files("template.yaml", "params.json", root=tmp_path)


def test_descriptor_substitutes_variables():
    template = CloudFormationTemplate("Description: #{App} in #{Env}", {"Env": "#{Env}", "Raw": "#{Unknown}"})
    variables = VariableDictionary({"App": "web", "Env": "prod"})

    descriptor = template.to_descriptor("web-app", variables, iam_capabilities="capability_iam")

    assert descriptor.template_body == "Description: web in prod"
    assert descriptor.parameters == {"Env": "prod", "Raw": "#{Unknown}"}
    assert descriptor.capabilities == ("CAPABILITY_IAM",)
    assert descriptor.provider_parameters() == [
        {"ParameterKey": "Env", "ParameterValue": "prod"},
        {"ParameterKey": "Raw", "ParameterValue": "#{Unknown}"},
    ]


@pytest.mark.parametrize("content", ["", "  \n", "#{Blank}"])
def test_empty_template_is_a_configuration_error(content):
    template = CloudFormationTemplate(content)

    with pytest.raises(ConfigurationError):
        template.to_descriptor("web-app", VariableDictionary({"Blank": " "}))


def test_descriptor_is_immutable_and_validated():
    descriptor = StackDescriptor(name=" web-app ", template_body="{}")
    assert descriptor.name == "web-app"

    with pytest.raises(ValidationError):
        descriptor.name = "other"
    with pytest.raises(ValidationError):
        StackDescriptor(name="", template_body="{}")
    with pytest.raises(ValidationError):
        StackDescriptor(name="web-app", template_body="  ")


@pytest.mark.parametrize(
    "value,expected",
    [
        (None, ()),
        ("", ()),
        ("CAPABILITY_NAMED_IAM", ("CAPABILITY_NAMED_IAM",)),
        ("CAPABILITY_AUTO_EXPAND", ()),
    ],
)
def test_recognised_capabilities(value, expected):
    assert recognised_capabilities(value) == expected
