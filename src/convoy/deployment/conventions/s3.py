"""Convention that uploads package content to S3."""

from __future__ import annotations

from typing import Any, Callable, Optional, Sequence

import structlog

from convoy.aws.s3.targets import targets_from_variables
from convoy.aws.s3.uploader import S3Uploader
from convoy.deployment.context import RunningDeployment
from convoy.deployment.conventions.base import Convention
from convoy.deployment.conventions.substitute import FileSubstituter

logger = structlog.get_logger()


class UploadS3Convention(Convention):
    """Uploads the configured targets to a bucket.

    Targets default to the ones described by the deployment's S3 variables.
    The bucket is expected to exist already.
    """

    def __init__(
        self,
        client_factory: Any,
        bucket: str,
        substituter: FileSubstituter,
        targets: Optional[Callable[[RunningDeployment], Sequence[Any]]] = None,
    ):
        self.client_factory = client_factory
        self.bucket = bucket
        self.substituter = substituter
        self.targets = targets or (lambda deployment: targets_from_variables(deployment.variables))

    def install(self, deployment: RunningDeployment) -> None:
        uploader = S3Uploader(self.client_factory, self.bucket, self.substituter)
        results = uploader.upload(self.targets(deployment), deployment)

        uploaded = sum(1 for result in results if result.is_success)
        logger.info(
            "Upload to S3 finished",
            bucket=self.bucket,
            uploaded=uploaded,
            skipped=len(results) - uploaded,
        )
