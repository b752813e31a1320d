"""CloudFormation templates, parameter files and stack descriptors."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

import structlog
import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from convoy.core.exceptions import ConfigurationError, FileNotFoundInPackageError
from convoy.variables import VariableDictionary

logger = structlog.get_logger()

# https://docs.aws.amazon.com/AWSCloudFormation/latest/UserGuide/using-iam-template.html#capabilities
RECOGNISED_CAPABILITIES = ("CAPABILITY_IAM", "CAPABILITY_NAMED_IAM")


class StackDescriptor(BaseModel):
    """Everything needed to create or update one stack. Immutable."""

    model_config = ConfigDict(frozen=True)

    name: str = Field(..., description="Stack name, unique per account and region")
    template_body: str = Field(..., description="Template after variable substitution")
    parameters: Dict[str, str] = Field(default_factory=dict, description="Template input parameters")
    capabilities: Tuple[str, ...] = Field(default=(), description="Acknowledged IAM capabilities")
    disable_rollback: bool = Field(False, description="Keep resources of a failed creation")

    @field_validator("name")
    @classmethod
    def validate_name(cls, v: str) -> str:
        if not v or not v.strip():
            raise ValueError("Stack name cannot be empty")
        return v.strip()

    @field_validator("template_body")
    @classmethod
    def validate_template_body(cls, v: str) -> str:
        if not v or not v.strip():
            raise ValueError("Template body cannot be empty")
        return v

    def provider_parameters(self) -> List[Dict[str, str]]:
        return [{"ParameterKey": key, "ParameterValue": value} for key, value in self.parameters.items()]


def recognised_capabilities(iam_capabilities: Optional[str]) -> Tuple[str, ...]:
    """Keep only the capability acknowledgements CloudFormation understands."""
    if not iam_capabilities:
        return ()
    capability = iam_capabilities.strip().upper()
    if capability in RECOGNISED_CAPABILITIES:
        return (capability,)
    logger.debug("Ignoring unrecognised IAM capability", capability=iam_capabilities)
    return ()


def _parse_parameters(raw: Any, source: str) -> Dict[str, str]:
    if raw is None:
        return {}
    if isinstance(raw, dict):
        return {str(k): "" if v is None else str(v) for k, v in raw.items()}
    if isinstance(raw, list):
        parameters: Dict[str, str] = {}
        for entry in raw:
            if not isinstance(entry, dict) or "ParameterKey" not in entry:
                raise ConfigurationError(f"Invalid parameter entry in {source}: {entry!r}")
            value = entry.get("ParameterValue")
            parameters[str(entry["ParameterKey"])] = "" if value is None else str(value)
        return parameters
    raise ConfigurationError(f"Parameters file {source} must contain a list or a mapping")


def _load_structured(path: Path) -> Any:
    text = path.read_text(encoding="utf-8")
    if path.suffix.lower() in (".yaml", ".yml"):
        try:
            return yaml.safe_load(text)
        except yaml.YAMLError as e:
            raise ConfigurationError(f"Parameters file {path} is not valid YAML: {e}")
    try:
        return json.loads(text)
    except json.JSONDecodeError as e:
        raise ConfigurationError(f"Parameters file {path} is not valid JSON: {e}")


class CloudFormationTemplate:
    """A template body with its input parameters."""

    def __init__(self, content: str, inputs: Optional[Dict[str, str]] = None):
        self.content = content
        self.inputs = dict(inputs or {})

    @classmethod
    def from_files(
        cls,
        template_path: Path,
        parameters_path: Optional[Path] = None,
        root: Optional[Path] = None,
    ) -> "CloudFormationTemplate":
        """Read a template and optional parameters file, relative to ``root``."""
        template_file = _resolve(template_path, root)
        if not template_file.is_file():
            raise FileNotFoundInPackageError(f"The template file {template_path} could not be found.")
        content = template_file.read_text(encoding="utf-8")

        inputs: Dict[str, str] = {}
        if parameters_path:
            parameters_file = _resolve(parameters_path, root)
            if not parameters_file.is_file():
                raise FileNotFoundInPackageError(
                    f"The template parameters file {parameters_path} could not be found."
                )
            inputs = _parse_parameters(_load_structured(parameters_file), str(parameters_file))

        return cls(content, inputs)

    def apply_variable_substitution(self, variables: VariableDictionary) -> "CloudFormationTemplate":
        return CloudFormationTemplate(
            variables.evaluate(self.content),
            {key: variables.evaluate(value) for key, value in self.inputs.items()},
        )

    def to_descriptor(
        self,
        stack_name: str,
        variables: VariableDictionary,
        iam_capabilities: Optional[str] = None,
        disable_rollback: bool = False,
    ) -> StackDescriptor:
        substituted = self.apply_variable_substitution(variables)
        try:
            return StackDescriptor(
                name=stack_name,
                template_body=substituted.content,
                parameters=substituted.inputs,
                capabilities=recognised_capabilities(iam_capabilities),
                disable_rollback=disable_rollback,
            )
        except ValidationError as e:
            raise ConfigurationError(f"Invalid stack definition for {stack_name}: {e}")


def _resolve(path: Path, root: Optional[Path]) -> Path:
    path = Path(path)
    if path.is_absolute() or root is None:
        return path
    return root / path
