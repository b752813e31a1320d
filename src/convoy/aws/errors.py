"""Classification of AWS provider errors.

CloudFormation and S3 both surface failures as ``botocore`` ``ClientError``
instances carrying a provider-defined code. This module decides which of
those codes are fatal, which are tolerated per object, and which mean
there was simply nothing to do.
"""

from __future__ import annotations

from enum import Enum
from typing import Callable, Dict, Optional, Set

import structlog
from botocore.exceptions import ClientError

logger = structlog.get_logger()

ACCESS_DENIED = "AccessDenied"
VALIDATION_ERROR = "ValidationError"

# CloudFormation has no dedicated error code for an empty change set.
NO_UPDATES_MESSAGE = "No updates are to be performed"

KNOWN_CANNED_ACLS = frozenset(
    {
        "private",
        "public-read",
        "public-read-write",
        "aws-exec-read",
        "authenticated-read",
        "bucket-owner-read",
        "bucket-owner-full-control",
        "log-delivery-write",
    }
)


class UploadErrorClass(str, Enum):
    """How an S3 put-object failure affects the rest of the batch."""

    ACCOUNT_DENIED = "account_denied"
    PER_OBJECT = "per_object"
    FATAL = "fatal"


def error_code(error: ClientError) -> str:
    return error.response.get("Error", {}).get("Code", "") or ""


def error_message(error: ClientError) -> str:
    return error.response.get("Error", {}).get("Message", "") or str(error)


def is_access_denied(error: ClientError) -> bool:
    return error_code(error) == ACCESS_DENIED


def is_validation_error(error: ClientError) -> bool:
    return error_code(error) == VALIDATION_ERROR


def is_no_updates(error: ClientError) -> bool:
    return NO_UPDATES_MESSAGE.lower() in error_message(error).lower()


def _file_message(file_path: str, canned_acl: Optional[str], error: ClientError) -> str:
    return f"Failed to upload file {file_path}. {error_message(error)}"


def _invalid_argument_message(file_path: str, canned_acl: Optional[str], error: ClientError) -> str:
    message = f"Failed to upload {file_path}. An invalid argument was provided."
    if canned_acl not in KNOWN_CANNED_ACLS:
        message += " This is possibly due to the value specified for the canned ACL."
    return message


PER_OBJECT_UPLOAD_ERRORS: Dict[str, Callable[[str, Optional[str], ClientError], str]] = {
    "RequestIsNotMultiPartContent": _file_message,
    "UnexpectedContent": _file_message,
    "MetadataTooLarge": _file_message,
    "MaxMessageLengthExceeded": _file_message,
    "KeyTooLongError": _file_message,
    "SignatureDoesNotMatch": _file_message,
    "InvalidStorageClass": _file_message,
    "InvalidArgument": _invalid_argument_message,
}


def classify_upload_error(error: ClientError) -> UploadErrorClass:
    code = error_code(error)
    if code == ACCESS_DENIED:
        return UploadErrorClass.ACCOUNT_DENIED
    if code in PER_OBJECT_UPLOAD_ERRORS:
        return UploadErrorClass.PER_OBJECT
    return UploadErrorClass.FATAL


def upload_warning_message(error: ClientError, file_path: str, canned_acl: Optional[str]) -> str:
    """Operator-facing description of a tolerated per-object failure."""
    return PER_OBJECT_UPLOAD_ERRORS[error_code(error)](file_path, canned_acl, error)


class WarningLedger:
    """Remembers which warning codes were shown so each appears once."""

    def __init__(self):
        self._displayed: Set[str] = set()

    def __contains__(self, code: str) -> bool:
        return code in self._displayed

    def display(self, code: str, message: str) -> bool:
        """Log ``message`` under ``code`` unless already shown. Returns True if logged."""
        if code in self._displayed:
            return False
        self._displayed.add(code)
        logger.warning(f"{code}: {message}", code=code)
        return True
