"""What to upload: the whole package, one file, or a glob-matched set."""

from __future__ import annotations

import json
from pathlib import PurePath
from typing import Annotated, Any, Dict, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, ValidationError, field_validator
from pydantic.alias_generators import to_camel

from convoy.core.exceptions import ConfigurationError
from convoy.special_variables import Aws
from convoy.variables import VariableDictionary


class S3TargetProperties(BaseModel):
    """Object settings shared by every kind of upload target."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)

    storage_class: str = Field("STANDARD", description="S3 storage class")
    canned_acl: str = Field("private", description="Canned ACL applied to the object")
    metadata: Dict[str, str] = Field(default_factory=dict, description="Object metadata and HTTP headers")
    tags: Dict[str, str] = Field(default_factory=dict, description="Object tags")

    @field_validator("metadata", "tags", mode="before")
    @classmethod
    def parse_key_values(cls, v: Any) -> Any:
        """Accept ``[{"Key": k, "Value": v}]`` as well as a plain mapping."""
        if isinstance(v, list):
            pairs = {}
            for entry in v:
                if not isinstance(entry, dict):
                    raise ValueError(f"Expected a Key/Value object, got {entry!r}")
                key = entry.get("Key", entry.get("key"))
                if key is None:
                    raise ValueError(f"Missing key in {entry!r}")
                value = entry.get("Value", entry.get("value"))
                pairs[str(key)] = "" if value is None else str(value)
            return pairs
        return v or {}


class PackageTarget(S3TargetProperties):
    kind: Literal["package"] = "package"
    bucket_key: str


class SingleFileTarget(S3TargetProperties):
    kind: Literal["single_file"] = "single_file"
    path: str
    bucket_key: str
    perform_variable_substitution: bool = False


class MultiFileTarget(S3TargetProperties):
    kind: Literal["multiple_files"] = "multiple_files"
    pattern: str
    bucket_key_prefix: str = ""
    # newline-delimited globs of files to run substitution on
    variable_substitution_patterns: Optional[str] = None

    @field_validator("pattern")
    @classmethod
    def validate_pattern(cls, v: str) -> str:
        pattern = v.strip()
        if not pattern:
            raise ValueError("Glob pattern cannot be empty")
        if PurePath(pattern).is_absolute():
            raise ValueError(f"Glob pattern must be relative to the package: {v}")
        return pattern


UploadTarget = Annotated[
    Union[PackageTarget, SingleFileTarget, MultiFileTarget],
    Field(discriminator="kind"),
]

_TARGET_LIST = TypeAdapter(List[UploadTarget])

ENTIRE_PACKAGE = "EntirePackage"
FILE_SELECTIONS = "FileSelections"


def parse_targets(data: Any) -> List[Union[PackageTarget, SingleFileTarget, MultiFileTarget]]:
    try:
        return _TARGET_LIST.validate_python(data)
    except ValidationError as e:
        raise ConfigurationError(f"Invalid S3 upload targets: {e}")


def _load_json(variables: VariableDictionary, name: str) -> Any:
    raw = variables.get(name)
    if not raw:
        raise ConfigurationError(f"The variable {name} is required")
    try:
        return json.loads(raw)
    except json.JSONDecodeError as e:
        raise ConfigurationError(f"The variable {name} is not valid JSON: {e}")


def targets_from_variables(
    variables: VariableDictionary,
) -> List[Union[PackageTarget, SingleFileTarget, MultiFileTarget]]:
    """Build the upload targets selected by the S3 target mode variables."""
    mode = (variables.get(Aws.S3_TARGET_MODE) or "").strip()
    if mode == ENTIRE_PACKAGE:
        options = _load_json(variables, Aws.S3_PACKAGE_OPTIONS)
        if not isinstance(options, dict):
            raise ConfigurationError(f"The variable {Aws.S3_PACKAGE_OPTIONS} must be a JSON object")
        return parse_targets([{**options, "kind": "package"}])
    if mode == FILE_SELECTIONS:
        selections = _load_json(variables, Aws.S3_FILE_SELECTIONS)
        if not isinstance(selections, list):
            raise ConfigurationError(f"The variable {Aws.S3_FILE_SELECTIONS} must be a JSON array")
        return parse_targets(selections)
    raise ConfigurationError(
        f"Unknown S3 target mode '{mode}'. Expected {ENTIRE_PACKAGE} or {FILE_SELECTIONS}"
    )
