"""Drives a CloudFormation stack from its current state to the desired one.

The reconciler first waits out any operation left running by a previous
deployment, then creates or updates the stack, and optionally polls until
the stack reaches a terminal status. Stacks stuck in a state that only
allows deletion (for example a first creation that rolled back) are
deleted and created again.
"""

from __future__ import annotations

import time
from typing import Any, Dict, Optional, assert_never

import structlog
from botocore.exceptions import BotoCoreError, ClientError

from convoy.aws import errors
from convoy.aws.cloudformation import status
from convoy.aws.cloudformation.client import (
    NoUpdatesRequired,
    StackClient,
    StackDescription,
    StackEvent,
    StackUpdated,
    UpdateFailed,
)
from convoy.aws.cloudformation.status import StackStatus
from convoy.aws.cloudformation.template import StackDescriptor
from convoy.aws.errors import WarningLedger
from convoy.core.exceptions import (
    PermissionDeniedError,
    StackRollbackError,
    StackTimeoutError,
    UnknownAwsError,
)
from convoy.utils.metrics import STACK_OPERATIONS

logger = structlog.get_logger()

NO_PERMISSION = "The AWS account used to perform the operation does not have the required permissions to"


class StackReconciler:
    """Create/update/delete state machine for one named stack.

    Instances keep the last logged status and the set of warnings already
    shown, so use one reconciler per deployment.
    """

    def __init__(
        self,
        client_factory: Any,
        stack_name: str,
        *,
        wait_period: float = 5.0,
        timeout: Optional[float] = None,
    ):
        self.stack_name = stack_name
        self.region = getattr(client_factory, "region", "")
        self.client = StackClient(client_factory.cloudformation(), stack_name)
        self.wait_period = wait_period
        self.timeout = timeout
        self.warnings = WarningLedger()
        self.last_message: Optional[str] = None

    def reconcile(self, descriptor: StackDescriptor, wait_for_complete: bool) -> str:
        """Create or update the stack and return its id."""
        if descriptor.name != self.stack_name:
            raise ValueError(
                f"Descriptor is for stack {descriptor.name} but this reconciler manages {self.stack_name}"
            )

        self.wait_for_completion(expect_success=False)

        if self.stack_status(StackStatus.DOES_NOT_EXIST) is StackStatus.DOES_NOT_EXIST:
            stack_id = self._create(descriptor)
        else:
            stack_id = self._update(descriptor)

        if wait_for_complete:
            self.wait_for_completion()

        return stack_id

    def stack_status(self, default: StackStatus) -> StackStatus:
        """Current state of the stack.

        ``default`` is returned when the account may not describe stacks.
        """
        try:
            description = self.client.describe_stack()
        except ClientError as e:
            if errors.is_access_denied(e):
                self.warnings.display(
                    "CFN-0003",
                    f"{NO_PERMISSION} describe the stack.\n{errors.error_message(e)}",
                )
                return default
            # describe-stacks answers a missing stack with a validation error
            if errors.is_validation_error(e):
                return StackStatus.DOES_NOT_EXIST
            raise UnknownAwsError(
                "An unrecognised exception was thrown while checking to see if the CloudFormation stack exists.\n"
                + errors.error_message(e),
                code="CFN-0006",
            ) from e
        except BotoCoreError as e:
            self._warn_api_error(e)
            raise

        if description is None or (description.status or "").upper() == "DELETE_COMPLETE":
            return StackStatus.DOES_NOT_EXIST
        return status.stack_status(description.status)

    def query_stack(self) -> Optional[StackDescription]:
        try:
            return self.client.describe_stack()
        except ClientError as e:
            raise self._query_error(e) from e
        except BotoCoreError as e:
            self._warn_api_error(e)
            raise

    def stack_outputs(self) -> Dict[str, str]:
        """Outputs of the stack; empty if they cannot be read."""
        try:
            description = self.query_stack()
        except PermissionDeniedError as e:
            self.warnings.display(e.code, e.message)
            return {}
        return dict(description.outputs) if description else {}

    def wait_for_completion(self, expect_success: bool = True, missing_is_failure: bool = True) -> None:
        """Block until the stack is no longer in progress.

        With ``expect_success`` a terminal failure status raises
        ``StackRollbackError``. ``missing_is_failure`` decides whether a stack
        that disappeared counts as such a failure.
        """
        if self.stack_status(StackStatus.DOES_NOT_EXIST) in (StackStatus.DOES_NOT_EXIST, StackStatus.COMPLETED):
            return

        deadline = time.monotonic() + self.timeout if self.timeout else None
        while True:
            time.sleep(self.wait_period)
            event_completed = self._stack_event_completed(expect_success, missing_is_failure)
            if self.stack_status(StackStatus.COMPLETED) is not StackStatus.IN_PROGRESS:
                # the stack may have finished after its last event was read
                if not event_completed:
                    self._stack_event_completed(expect_success, missing_is_failure)
                return
            if deadline is not None and time.monotonic() >= deadline:
                raise StackTimeoutError(
                    f"Stack {self.stack_name} did not reach a completed state within {self.timeout} seconds.",
                    code="CFN-0013",
                )

    def _stack_event_completed(self, expect_success: bool, missing_is_failure: bool) -> bool:
        try:
            event = self._latest_event()
        except PermissionDeniedError as e:
            self.warnings.display(e.code, e.message)
            return True

        self._log_current_state(event)
        self._check_for_rollback(event, expect_success, missing_is_failure)

        if event is None:
            return True
        return status.is_terminal(event.resource_status) and status.is_stack_resource(event.resource_type)

    def _latest_event(self, predicate=None) -> Optional[StackEvent]:
        try:
            return self.client.latest_event(predicate)
        except ClientError as e:
            if errors.is_access_denied(e):
                raise PermissionDeniedError(
                    f"{NO_PERMISSION} query the current state of the CloudFormation stack. "
                    "This step will not fail if the stack finishes in an error state.\n"
                    + errors.error_message(e),
                    code="CFN-0002",
                ) from e
            # Treated as "Stack [name] does not exist"
            return None
        except BotoCoreError as e:
            self._warn_api_error(e)
            raise

    def _log_current_state(self, event: Optional[StackEvent]) -> None:
        """Log the stack state, demoting unchanged repeats to verbose."""
        if event is None:
            message = "Does not exist"
        elif event.resource_type:
            message = f"{event.resource_type} {event.resource_status}"
        else:
            message = str(event.resource_status)

        if message != self.last_message:
            logger.info(f"Current stack state: {message}", stack=self.stack_name)
        else:
            logger.debug(f"Current stack state: {message}", stack=self.stack_name)
        self.last_message = message

    def _check_for_rollback(
        self,
        event: Optional[StackEvent],
        expect_success: bool,
        missing_is_failure: bool,
    ) -> None:
        if event is None:
            unsuccessful, is_stack = missing_is_failure, True
        else:
            unsuccessful = status.is_unsuccessful(event.resource_status)
            is_stack = status.is_stack_resource(event.resource_type)

        if not (expect_success and unsuccessful and is_stack):
            return

        logger.warning(
            "Stack was either missing, in a rollback state, or in a failed state. This means that the stack "
            "was not processed correctly. Review the stack in the AWS console to find any errors that may "
            "have occurred during deployment.",
            stack=self.stack_name,
        )

        message = "CloudFormation stack finished in a rollback or failed state."
        try:
            failure = self._latest_event(lambda e: e.status_reason is not None)
        except PermissionDeniedError:
            logger.debug("Unable to read stack events for a failure reason", stack=self.stack_name)
            failure = None
        if failure is not None:
            logger.warning(failure.status_reason, stack=self.stack_name, resource=failure.logical_resource_id)
            message = f"{message} {failure.status_reason}"

        raise StackRollbackError(message, code="CFN-0001")

    def _stack_must_be_deleted(self) -> bool:
        try:
            event = self._latest_event(lambda e: status.is_stack_resource(e.resource_type))
        except PermissionDeniedError:
            # without the status assume the stack cannot be recovered by deleting it
            return False
        return event is not None and status.must_be_deleted(event.resource_status)

    def _create(self, descriptor: StackDescriptor) -> str:
        try:
            stack_id = self.client.create_stack(descriptor)
        except ClientError as e:
            if errors.is_access_denied(e):
                raise PermissionDeniedError(
                    f"{NO_PERMISSION} create the stack.\n{errors.error_message(e)}",
                    code="CFN-0007",
                ) from e
            raise UnknownAwsError(
                "An unrecognised exception was thrown while creating a CloudFormation stack.\n"
                + errors.error_message(e),
                code="CFN-0008",
            ) from e
        except BotoCoreError as e:
            self._warn_api_error(e)
            raise

        STACK_OPERATIONS.labels(operation="create").inc()
        logger.info(f"Created stack with id {stack_id} in region {self.region}", stack=self.stack_name)
        return stack_id

    def _update(self, descriptor: StackDescriptor) -> str:
        try:
            outcome = self.client.update_stack(descriptor)
        except ClientError as e:
            # only the follow-up describe of an unchanged stack raises here
            raise self._query_error(e) from e
        except BotoCoreError as e:
            self._warn_api_error(e)
            raise

        match outcome:
            case StackUpdated(stack_id):
                STACK_OPERATIONS.labels(operation="update").inc()
                logger.info(f"Updated stack with id {stack_id} in region {self.region}", stack=self.stack_name)
                return stack_id
            case NoUpdatesRequired(stack_id):
                STACK_OPERATIONS.labels(operation="no_op").inc()
                return stack_id
            case UpdateFailed(error):
                if self._stack_must_be_deleted():
                    logger.info(
                        "Stack is in a state that can not be updated, recreating it",
                        stack=self.stack_name,
                    )
                    self._delete()
                    self.wait_for_completion(expect_success=False)
                    return self._create(descriptor)
                if errors.is_access_denied(error):
                    raise PermissionDeniedError(
                        f"{NO_PERMISSION} update the stack.\n{errors.error_message(error)}",
                        code="CFN-0011",
                    ) from error
                raise UnknownAwsError(
                    "An unrecognised exception was thrown while updating a CloudFormation stack.\n"
                    + errors.error_message(error),
                    code="CFN-0012",
                ) from error
            case _:
                assert_never(outcome)

    def _delete(self) -> None:
        try:
            self.client.delete_stack()
        except ClientError as e:
            if errors.is_access_denied(e):
                raise PermissionDeniedError(
                    f"{NO_PERMISSION} delete the stack.\n{errors.error_message(e)}",
                    code="CFN-0009",
                ) from e
            raise UnknownAwsError(
                "An unrecognised exception was thrown while deleting a CloudFormation stack.\n"
                + errors.error_message(e),
                code="CFN-0010",
            ) from e
        except BotoCoreError as e:
            self._warn_api_error(e)
            raise

        STACK_OPERATIONS.labels(operation="delete").inc()
        logger.info(f"Deleted stack called {self.stack_name} in region {self.region}", stack=self.stack_name)

    def _query_error(self, e: ClientError) -> Exception:
        if errors.is_access_denied(e):
            return PermissionDeniedError(
                f"{NO_PERMISSION} describe the CloudFormation stack. "
                "This means that the step is not able to generate any output variables.\n"
                + errors.error_message(e),
                code="CFN-0004",
            )
        return UnknownAwsError(
            "An unrecognised exception was thrown while querying the CloudFormation stacks.\n"
            + errors.error_message(e),
            code="CFN-0005",
        )

    def _warn_api_error(self, e: BotoCoreError) -> None:
        self.warnings.display("CFN-0014", f"An exception was thrown while contacting the AWS API.\n{e}")
