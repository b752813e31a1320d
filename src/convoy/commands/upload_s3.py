"""upload-aws-s3 command."""

from __future__ import annotations

import argparse
from pathlib import Path
from typing import List

from convoy.commands.base import Command, require
from convoy.deployment.context import RunningDeployment
from convoy.deployment.conventions.base import Convention
from convoy.deployment.conventions.extract import ExtractPackageToStagingDirectoryConvention, PackageExtractor
from convoy.deployment.conventions.s3 import UploadS3Convention
from convoy.deployment.conventions.substitute import FileSubstituter
from convoy.special_variables import Aws


class UploadS3Command(Command):
    name = "upload-aws-s3"
    help = "Uploads the package, or files from it, to an S3 bucket"

    @classmethod
    def add_arguments(cls, parser: argparse.ArgumentParser) -> None:
        super().add_arguments(parser)
        parser.add_argument("--bucket", help="Name of the destination bucket")

    def conventions(
        self,
        args: argparse.Namespace,
        deployment: RunningDeployment,
        staging_root: Path,
    ) -> List[Convention]:
        bucket = require(
            args.bucket or deployment.variables.get(Aws.S3_BUCKET_NAME),
            "No bucket was specified. Please pass --bucket",
        )
        return [
            ExtractPackageToStagingDirectoryConvention(PackageExtractor(), staging_root),
            UploadS3Convention(self.client_factory, bucket, FileSubstituter()),
        ]
