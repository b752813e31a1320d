"""Package extraction into the staging directory."""

from __future__ import annotations

import shutil
import zipfile
from pathlib import Path

import structlog

from convoy.core.exceptions import CommandError
from convoy.deployment.context import RunningDeployment
from convoy.deployment.conventions.base import Convention

logger = structlog.get_logger()


class PackageExtractor:
    """Unpacks zip and tar archives with ``shutil.unpack_archive``."""

    def extract(self, package_path: Path, destination: Path) -> None:
        archive_format = "zip" if zipfile.is_zipfile(package_path) else None
        try:
            shutil.unpack_archive(str(package_path), str(destination), archive_format)
        except (shutil.ReadError, ValueError) as e:
            raise CommandError(f"Package {package_path} is not a supported archive: {e}")


class ExtractPackageToStagingDirectoryConvention(Convention):
    """Extracts the package and points the deployment at the staging directory."""

    def __init__(self, extractor: PackageExtractor, staging_root: Path):
        self.extractor = extractor
        self.staging_root = staging_root

    def install(self, deployment: RunningDeployment) -> None:
        package = deployment.package_file_path
        if package is None:
            logger.debug("No package to extract")
            return

        if not package.exists():
            raise CommandError(f"Could not find package file: {package}")

        staging = Path(self.staging_root) / package.stem
        staging.mkdir(parents=True, exist_ok=True)

        logger.info("Extracting package", package=str(package), staging=str(staging))
        self.extractor.extract(package, staging)
        deployment.staging_directory = staging
