"""Batch uploads to S3."""

from .targets import (
    MultiFileTarget,
    PackageTarget,
    SingleFileTarget,
    UploadTarget,
    parse_targets,
    targets_from_variables,
)
from .uploader import PutObjectRequest, S3Uploader, UploadResult

__all__ = [
    "MultiFileTarget",
    "PackageTarget",
    "PutObjectRequest",
    "S3Uploader",
    "SingleFileTarget",
    "UploadResult",
    "UploadTarget",
    "parse_targets",
    "targets_from_variables",
]
