"""Tests for the run status state machine and value parsing."""

import pytest

from openclaw.db.models import ArtifactKind, RunStatus, RunType
from openclaw.errors import InvalidTransition, ValidationError
from openclaw.services.lifecycle import (
    TERMINAL_STATUSES,
    check_artifact_path,
    check_outcome,
    check_transition,
    is_terminal,
    parse_artifact_kind,
    parse_run_status,
    parse_run_type,
)


@pytest.mark.parametrize(
    "current, target",
    [
        (RunStatus.QUEUED, RunStatus.RUNNING),
        (RunStatus.RUNNING, RunStatus.SUCCEEDED),
        (RunStatus.RUNNING, RunStatus.FAILED),
    ],
)
def test_allowed_transitions(current, target):
    check_transition(current, target)


@pytest.mark.parametrize(
    "current, target",
    [
        (RunStatus.QUEUED, RunStatus.SUCCEEDED),
        (RunStatus.QUEUED, RunStatus.FAILED),
        (RunStatus.QUEUED, RunStatus.QUEUED),
        (RunStatus.RUNNING, RunStatus.QUEUED),
        (RunStatus.RUNNING, RunStatus.RUNNING),
        (RunStatus.SUCCEEDED, RunStatus.RUNNING),
        (RunStatus.SUCCEEDED, RunStatus.FAILED),
        (RunStatus.FAILED, RunStatus.QUEUED),
        (RunStatus.FAILED, RunStatus.SUCCEEDED),
    ],
)
def test_rejected_transitions(current, target):
    with pytest.raises(InvalidTransition):
        check_transition(current, target)


def test_terminal_statuses():
    assert TERMINAL_STATUSES == {RunStatus.SUCCEEDED, RunStatus.FAILED}
    assert is_terminal(RunStatus.FAILED)
    assert not is_terminal(RunStatus.RUNNING)


@pytest.mark.parametrize("current", [RunStatus.SUCCEEDED, RunStatus.FAILED])
def test_finished_run_is_reported_as_finished(current):
    with pytest.raises(InvalidTransition, match="is finished"):
        check_transition(current, RunStatus.RUNNING)


def test_illegal_edge_names_both_statuses():
    with pytest.raises(InvalidTransition, match="from 'queued' to 'succeeded'"):
        check_transition(RunStatus.QUEUED, RunStatus.SUCCEEDED)


def test_parse_closed_sets():
    assert parse_run_type("image") is RunType.IMAGE
    assert parse_run_status("running") is RunStatus.RUNNING
    assert parse_artifact_kind("model") is ArtifactKind.MODEL

    for parse, bad in (
        (parse_run_type, "video"),
        (parse_run_status, "done"),
        (parse_artifact_kind, "IMAGE"),
    ):
        with pytest.raises(ValidationError):
            parse(bad)


def test_outcome_fields_follow_target():
    check_outcome(RunStatus.SUCCEEDED, {"pages": 3}, None)
    check_outcome(RunStatus.FAILED, None, "out of memory")
    check_outcome(RunStatus.RUNNING, None, None)

    with pytest.raises(ValidationError):
        check_outcome(RunStatus.RUNNING, {"pages": 3}, None)
    with pytest.raises(ValidationError):
        check_outcome(RunStatus.SUCCEEDED, None, "boom")


def test_artifact_path_must_sit_under_prefix():
    check_artifact_path("images/jh/run1", "images/jh/run1/page-01.png")
    check_artifact_path("images/jh/run1/", "images/jh/run1/nested/page-02.png")
    check_artifact_path(None, "anywhere/at/all.txt")

    for bad in ("images/jh/run10/page-01.png", "images/jh/run1", "images/jh/run1/", "other/x.png"):
        with pytest.raises(ValidationError):
            check_artifact_path("images/jh/run1", bad)

    with pytest.raises(ValidationError):
        check_artifact_path(None, "")
