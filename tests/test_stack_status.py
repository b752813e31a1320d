"""Tests for the stack status vocabulary."""

import pytest

from convoy.aws.cloudformation import status
from convoy.aws.cloudformation.status import StackStatus, StatusOutcome


@pytest.mark.parametrize(
    "raw,expected",
    [
        ("CREATE_IN_PROGRESS", StatusOutcome.IN_PROGRESS),
        ("UPDATE_COMPLETE_CLEANUP_IN_PROGRESS", StatusOutcome.IN_PROGRESS),
        ("CREATE_COMPLETE", StatusOutcome.SUCCESS),
        ("UPDATE_ROLLBACK_COMPLETE", StatusOutcome.FAILURE),
        ("ROLLBACK_FAILED", StatusOutcome.FAILURE),
        ("update_complete", StatusOutcome.SUCCESS),
    ],
)
def test_outcome_table(raw, expected):
    assert status.outcome(raw) is expected


def test_unknown_statuses_fall_back_to_suffix():
    assert status.outcome("FUTURE_THING_FAILED") is StatusOutcome.FAILURE
    assert status.outcome("FUTURE_THING_COMPLETE") is StatusOutcome.SUCCESS
    assert status.outcome("FUTURE_THING_PENDING") is StatusOutcome.IN_PROGRESS


def test_missing_status_is_terminal():
    assert status.is_terminal(None)
    assert status.stack_status(None) is StackStatus.COMPLETED


def test_rollback_complete_is_terminal_but_unsuccessful():
    assert status.is_terminal("ROLLBACK_COMPLETE")
    assert status.is_unsuccessful("ROLLBACK_COMPLETE")
    assert not status.is_unsuccessful("UPDATE_COMPLETE")


@pytest.mark.parametrize(
    "raw",
    ["CREATE_FAILED", "ROLLBACK_COMPLETE", "ROLLBACK_FAILED", "DELETE_FAILED", "UPDATE_ROLLBACK_FAILED"],
)
def test_must_be_deleted(raw):
    assert status.must_be_deleted(raw)
    assert status.must_be_deleted(raw.lower())


def test_update_rollback_complete_can_still_be_updated():
    assert not status.must_be_deleted("UPDATE_ROLLBACK_COMPLETE")


def test_only_the_top_level_stack_counts():
    assert status.is_stack_resource("AWS::CloudFormation::Stack")
    assert not status.is_stack_resource("AWS::S3::Bucket")
    assert not status.is_stack_resource(None)
