"""Variable dictionary shared by all conventions of a deployment."""

from __future__ import annotations

import json
import re
from pathlib import Path
from typing import Dict, Iterator, Mapping, Optional

import structlog

from convoy import special_variables
from convoy.core.exceptions import ConfigurationError

logger = structlog.get_logger()

_TOKEN = re.compile(r"#\{([^{}]+)\}")
_TRUE_VALUES = {"true", "1", "yes", "on"}
_MAX_DEPTH = 10


class VariableDictionary:
    """String-to-string variable store with ``#{Name}`` evaluation.

    Variables are the only channel conventions use to talk to each other,
    and the orchestrator reads output variables back after the run.
    """

    def __init__(self, values: Optional[Mapping[str, str]] = None):
        self._values: Dict[str, str] = {}
        for key, value in (values or {}).items():
            self.set(key, value)

    @classmethod
    def from_file(cls, path: Path) -> "VariableDictionary":
        """Load variables from a flat JSON object."""
        try:
            data = json.loads(Path(path).read_text(encoding="utf-8"))
        except FileNotFoundError:
            raise ConfigurationError(f"Could not find variables file: {path}")
        except json.JSONDecodeError as e:
            raise ConfigurationError(f"Variables file {path} is not valid JSON: {e}")
        if not isinstance(data, dict):
            raise ConfigurationError(f"Variables file {path} must contain a JSON object")
        return cls({str(k): "" if v is None else str(v) for k, v in data.items()})

    def __contains__(self, name: str) -> bool:
        return name in self._values

    def __getitem__(self, name: str) -> Optional[str]:
        return self.get(name)

    def __iter__(self) -> Iterator[str]:
        return iter(self._values)

    def __len__(self) -> int:
        return len(self._values)

    def get(self, name: str, default: Optional[str] = None) -> Optional[str]:
        value = self._values.get(name)
        if value is None:
            return default
        return self.evaluate(value)

    def get_raw(self, name: str) -> Optional[str]:
        return self._values.get(name)

    def set(self, name: str, value: Optional[str]) -> None:
        if not name:
            raise ValueError("Variable name cannot be empty")
        self._values[name] = "" if value is None else str(value)

    def get_flag(self, name: str, default: bool = False) -> bool:
        value = self.get(name)
        if value is None or not value.strip():
            return default
        return value.strip().lower() in _TRUE_VALUES

    def evaluate(self, template: Optional[str]) -> Optional[str]:
        """Replace ``#{Name}`` tokens with variable values.

        Unknown tokens are left untouched. Nested references are resolved
        up to a fixed depth so self-referencing values cannot loop forever.
        """
        if not template:
            return template

        def _replace(match: re.Match, depth: int) -> str:
            name = match.group(1).strip()
            value = self._values.get(name)
            if value is None:
                return match.group(0)
            if depth >= _MAX_DEPTH:
                return value
            return _TOKEN.sub(lambda m: _replace(m, depth + 1), value)

        return _TOKEN.sub(lambda m: _replace(m, 0), template)

    def set_output_variable(self, name: str, value: Optional[str]) -> str:
        """Publish an output variable for the current action.

        Returns the fully scoped variable name.
        """
        action_name = self.get(special_variables.ACTION_NAME) or ""
        scoped = special_variables.output_variable(action_name, name)
        self.set(scoped, value)
        self.set(f"Output.{name}", value)
        logger.info("Saving variable", variable=scoped)
        return scoped

    def to_dict(self) -> Dict[str, str]:
        return dict(self._values)
