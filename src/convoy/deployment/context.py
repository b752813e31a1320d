"""The mutable record shared by every convention of one deployment."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

from convoy import special_variables
from convoy.variables import VariableDictionary


@dataclass
class RunningDeployment:
    """A deployment in flight.

    Passed by reference through the pipeline; conventions communicate only
    through ``variables`` and the staging directory.
    """

    package_file_path: Optional[Path]
    variables: VariableDictionary = field(default_factory=VariableDictionary)
    staging_directory: Optional[Path] = None
    working_directory: Path = field(default_factory=lambda: Path(os.getcwd()))

    @property
    def current_directory(self) -> Path:
        """Directory file paths are resolved against: staging once extracted."""
        return self.staging_directory or self.working_directory

    @property
    def action_name(self) -> str:
        return self.variables.get(special_variables.ACTION_NAME) or ""
