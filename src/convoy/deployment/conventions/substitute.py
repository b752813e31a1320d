"""Variable substitution in package files."""

from __future__ import annotations

from pathlib import Path
from typing import Callable, List, Optional, Sequence

import structlog

from convoy import special_variables
from convoy.deployment.context import RunningDeployment
from convoy.deployment.conventions.base import Convention
from convoy.variables import VariableDictionary

logger = structlog.get_logger()


class FileSubstituter:
    """Replaces ``#{Name}`` tokens in a text file, in place."""

    def __init__(self, encoding: str = "utf-8"):
        self.encoding = encoding

    def perform_substitution(self, path: Path, variables: VariableDictionary) -> bool:
        """Substitute variables into ``path``. Returns True if the file changed."""
        try:
            source = path.read_text(encoding=self.encoding)
        except UnicodeDecodeError:
            logger.warning("Skipping substitution in binary file", file=str(path))
            return False

        result = variables.evaluate(source)
        if result == source:
            logger.debug("No variables substituted", file=str(path))
            return False

        path.write_text(result, encoding=self.encoding)
        logger.info("Substituted variables", file=str(path))
        return True


def split_patterns(value: Optional[str]) -> List[str]:
    """Split a newline-delimited pattern list, dropping blank lines."""
    if not value:
        return []
    return [line.strip() for line in value.splitlines() if line.strip()]


def resolve_patterns(root: Path, patterns: Sequence[str]) -> List[Path]:
    """Resolve absolute paths and globs relative to ``root`` into existing files."""
    files: List[Path] = []
    for pattern in patterns:
        candidate = Path(pattern)
        if candidate.is_absolute():
            matches = [candidate] if candidate.is_file() else []
        else:
            matches = sorted(p for p in root.glob(pattern) if p.is_file())
        if not matches:
            logger.warning("No files were found matching the substitution target pattern", pattern=pattern)
        for match in matches:
            if match not in files:
                files.append(match)
    return files


class SubstituteInFilesConvention(Convention):
    """Runs variable substitution over the files selected by ``file_patterns``.

    Both callables receive the deployment. Without overrides the convention
    is driven by the substitute-in-files variables.
    """

    def __init__(
        self,
        substituter: FileSubstituter,
        predicate: Optional[Callable[[RunningDeployment], bool]] = None,
        file_patterns: Optional[Callable[[RunningDeployment], Sequence[str]]] = None,
    ):
        self.substituter = substituter
        self.predicate = predicate or _enabled_by_variables
        self.file_patterns = file_patterns or _targets_from_variables

    def install(self, deployment: RunningDeployment) -> None:
        if not self.predicate(deployment):
            return

        patterns = list(self.file_patterns(deployment))
        for path in resolve_patterns(deployment.current_directory, patterns):
            self.substituter.perform_substitution(path, deployment.variables)


def _enabled_by_variables(deployment: RunningDeployment) -> bool:
    return deployment.variables.get_flag(special_variables.SUBSTITUTE_IN_FILES_ENABLED)


def _targets_from_variables(deployment: RunningDeployment) -> List[str]:
    return split_patterns(deployment.variables.get(special_variables.SUBSTITUTE_IN_FILES_TARGETS))
