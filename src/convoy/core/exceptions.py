"""Custom exceptions for Convoy."""

from typing import Optional


class ConvoyError(Exception):
    """Base exception for all deployment errors.

    ``code`` is the reference identifier shown to operators so that
    otherwise similar failures can be told apart (e.g. ``CFN-0007``).
    """

    def __init__(self, message: str, code: Optional[str] = None):
        super().__init__(f"{code}: {message}" if code else message)
        self.message = message
        self.code = code


class ConfigurationError(ConvoyError):
    """Configuration error."""
    pass


class CommandError(ConvoyError):
    """Invalid command invocation."""
    pass


class FileNotFoundInPackageError(ConvoyError):
    """A file required by a convention is missing from the package."""
    pass


class AwsError(ConvoyError):
    """AWS-related errors."""
    pass


class PermissionDeniedError(AwsError):
    """The AWS account lacks permissions for a required operation."""
    pass


class StackRollbackError(AwsError):
    """The stack finished in a rollback or failed state."""
    pass


class StackTimeoutError(AwsError):
    """The stack did not reach a terminal state before the deadline."""
    pass


class UnknownAwsError(AwsError):
    """An unrecognised AWS error."""
    pass
