"""Uploads a batch of targets to one S3 bucket.

A failure that concerns a single object is reported as a warning and the
batch continues; an access-denied answer stops the whole upload because
every remaining object would fail the same way.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence, assert_never
from urllib.parse import urlencode

import structlog
from botocore.exceptions import BotoCoreError, ClientError

from convoy.aws import errors
from convoy.aws.errors import UploadErrorClass, WarningLedger
from convoy.aws.s3.targets import MultiFileTarget, PackageTarget, S3TargetProperties, SingleFileTarget
from convoy.core.exceptions import FileNotFoundInPackageError, PermissionDeniedError, UnknownAwsError
from convoy.deployment.context import RunningDeployment
from convoy.deployment.conventions.substitute import (
    FileSubstituter,
    SubstituteInFilesConvention,
    split_patterns,
)
from convoy.utils.metrics import OBJECT_UPLOADS

logger = structlog.get_logger()

# Metadata keys that S3 stores as HTTP headers rather than x-amz-meta-*
HEADER_ARGUMENTS = {
    "cache-control": "CacheControl",
    "content-disposition": "ContentDisposition",
    "content-encoding": "ContentEncoding",
    "content-language": "ContentLanguage",
    "content-type": "ContentType",
    "x-amz-website-redirect-location": "WebsiteRedirectLocation",
}

USER_METADATA_PREFIX = "x-amz-meta-"


@dataclass(frozen=True)
class PutObjectRequest:
    bucket: str
    key: str
    file_path: Path
    storage_class: str
    canned_acl: str
    metadata: Dict[str, str] = field(default_factory=dict)
    headers: Dict[str, str] = field(default_factory=dict)
    tags: Dict[str, str] = field(default_factory=dict)

    @classmethod
    def build(cls, bucket: str, key: str, file_path: Path, properties: S3TargetProperties) -> "PutObjectRequest":
        metadata: Dict[str, str] = {}
        headers: Dict[str, str] = {}
        for name, value in properties.metadata.items():
            argument = HEADER_ARGUMENTS.get(name.strip().lower())
            if argument:
                headers[argument] = value
                continue
            name = name.strip()
            if name.lower().startswith(USER_METADATA_PREFIX):
                name = name[len(USER_METADATA_PREFIX):]
            metadata[name] = value

        return cls(
            bucket=bucket.strip(),
            key=key.strip(),
            file_path=file_path,
            storage_class=properties.storage_class.strip(),
            canned_acl=properties.canned_acl.strip(),
            metadata=metadata,
            headers=headers,
            tags=dict(properties.tags),
        )

    def to_put_object_kwargs(self, body: Any) -> Dict[str, Any]:
        kwargs: Dict[str, Any] = {
            "Bucket": self.bucket,
            "Key": self.key,
            "Body": body,
            "StorageClass": self.storage_class,
            "ACL": self.canned_acl,
        }
        if self.metadata:
            kwargs["Metadata"] = dict(self.metadata)
        if self.tags:
            kwargs["Tagging"] = urlencode(self.tags)
        kwargs.update(self.headers)
        return kwargs


@dataclass(frozen=True)
class UploadResult:
    """One request paired with its response; no response means it was skipped."""

    request: PutObjectRequest
    response: Optional[Dict[str, Any]] = None

    @property
    def is_success(self) -> bool:
        return self.response is not None

    @property
    def version(self) -> str:
        if self.response is None:
            return ""
        return self.response.get("VersionId") or ""


class S3Uploader:
    """Uploads targets in order, tolerating per-object failures."""

    def __init__(self, client_factory: Any, bucket: str, substituter: FileSubstituter):
        if not bucket or not bucket.strip():
            raise ValueError("bucket can not be empty")
        self.client_factory = client_factory
        self.bucket = bucket.strip()
        self.substituter = substituter
        self.warnings = WarningLedger()

    def upload(self, targets: Sequence[Any], deployment: RunningDeployment) -> List[UploadResult]:
        client = self.client_factory.s3()
        results: List[UploadResult] = []
        for target in targets:
            match target:
                case PackageTarget():
                    results.append(self._upload_package(client, deployment, target))
                case SingleFileTarget():
                    results.append(self._upload_single_file(client, deployment, target))
                case MultiFileTarget():
                    results.extend(self._upload_multiple_files(client, deployment, target))
                case _:
                    assert_never(target)
        return results

    def _upload_package(self, client: Any, deployment: RunningDeployment, target: PackageTarget) -> UploadResult:
        package = deployment.package_file_path
        if package is None or not Path(package).is_file():
            raise FileNotFoundInPackageError(f"The package file {package} could not be found.", code="S3-0003")

        request = PutObjectRequest.build(self.bucket, target.bucket_key, Path(package), target)
        return self._put(client, request, deployment, "entire package")

    def _upload_single_file(
        self,
        client: Any,
        deployment: RunningDeployment,
        target: SingleFileTarget,
    ) -> UploadResult:
        file_path = deployment.current_directory / target.path
        if not file_path.is_file():
            raise FileNotFoundInPackageError(
                f"The file {target.path} could not be found in the package.",
                code="S3-0003",
            )

        SubstituteInFilesConvention(
            self.substituter,
            lambda _: target.perform_variable_substitution,
            lambda _: [str(file_path)],
        ).install(deployment)

        request = PutObjectRequest.build(self.bucket, target.bucket_key, file_path, target)
        return self._put(client, request, deployment, str(file_path))

    def _upload_multiple_files(
        self,
        client: Any,
        deployment: RunningDeployment,
        target: MultiFileTarget,
    ) -> List[UploadResult]:
        root = deployment.staging_directory or deployment.current_directory
        files = sorted(p for p in root.glob(target.pattern) if p.is_file())
        if not files:
            logger.info(
                f"The glob pattern '{target.pattern}' didn't match any files. Nothing was uploaded to S3.",
                pattern=target.pattern,
            )
            return []

        logger.info(f"Glob pattern '{target.pattern}' matched {len(files)} files.", pattern=target.pattern)

        patterns = split_patterns(target.variable_substitution_patterns)
        SubstituteInFilesConvention(
            self.substituter,
            lambda _: bool(patterns),
            lambda _: patterns,
        ).install(deployment)

        results = []
        for path in files:
            request = PutObjectRequest.build(self.bucket, f"{target.bucket_key_prefix}{path.name}", path, target)
            results.append(self._put(client, request, deployment, str(path)))
        return results

    def _put(
        self,
        client: Any,
        request: PutObjectRequest,
        deployment: RunningDeployment,
        description: str,
    ) -> UploadResult:
        logger.info(f"Uploading {description} to bucket {request.bucket} with key {request.key}.")
        try:
            with open(request.file_path, "rb") as body:
                response = client.put_object(**request.to_put_object_kwargs(body))
        except ClientError as e:
            error_class = errors.classify_upload_error(e)
            if error_class is UploadErrorClass.ACCOUNT_DENIED:
                raise PermissionDeniedError(
                    "The AWS account used to perform the operation does not have the required "
                    f"permissions to upload to bucket {request.bucket}.\n{errors.error_message(e)}",
                    code="S3-0002",
                ) from e
            if error_class is UploadErrorClass.PER_OBJECT:
                logger.warning(
                    errors.upload_warning_message(e, str(request.file_path), request.canned_acl),
                    error_code=errors.error_code(e),
                    key=request.key,
                )
                OBJECT_UPLOADS.labels(outcome="skipped").inc()
                return UploadResult(request)
            raise UnknownAwsError(
                f"An unrecognised {errors.error_code(e)} error was thrown while uploading to bucket "
                f"{request.bucket}.\n{errors.error_message(e)}",
                code="S3-0004",
            ) from e
        except BotoCoreError as e:
            self.warnings.display("S3-0001", f"An exception was thrown while contacting the AWS API.\n{e}")
            raise

        OBJECT_UPLOADS.labels(outcome="uploaded").inc()
        result = UploadResult(request, response)
        deployment.variables.set_output_variable(f"Files[{request.key}]", result.version)
        return result
