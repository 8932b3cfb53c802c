"""
Run status state machine.

queued -> running -> succeeded | failed. There is no shortcut from queued to
a terminal state and no way back out of one.
"""

from openclaw.db.models import ArtifactKind, RunStatus, RunType
from openclaw.errors import InvalidTransition, ValidationError

ALLOWED_TRANSITIONS: dict[RunStatus, frozenset[RunStatus]] = {
    RunStatus.QUEUED: frozenset({RunStatus.RUNNING}),
    RunStatus.RUNNING: frozenset({RunStatus.SUCCEEDED, RunStatus.FAILED}),
    RunStatus.SUCCEEDED: frozenset(),
    RunStatus.FAILED: frozenset(),
}

TERMINAL_STATUSES = frozenset(s for s, nxt in ALLOWED_TRANSITIONS.items() if not nxt)


def parse_run_type(value: str) -> RunType:
    try:
        return RunType(value)
    except ValueError:
        raise ValidationError(
            f"Invalid run type {value!r}; expected one of {_choices(RunType)}."
        ) from None


def parse_run_status(value: str) -> RunStatus:
    try:
        return RunStatus(value)
    except ValueError:
        raise ValidationError(
            f"Invalid run status {value!r}; expected one of {_choices(RunStatus)}."
        ) from None


def parse_artifact_kind(value: str) -> ArtifactKind:
    try:
        return ArtifactKind(value)
    except ValueError:
        raise ValidationError(
            f"Invalid artifact kind {value!r}; expected one of {_choices(ArtifactKind)}."
        ) from None


def is_terminal(status: RunStatus) -> bool:
    return status in TERMINAL_STATUSES


def check_transition(current: RunStatus, target: RunStatus) -> None:
    """Raise InvalidTransition unless current -> target is an edge of the graph."""
    if is_terminal(current):
        raise InvalidTransition(f"A {current.value!r} run is finished and cannot change status.")
    if target not in ALLOWED_TRANSITIONS[current]:
        raise InvalidTransition(
            f"Cannot move a run from {current.value!r} to {target.value!r}."
        )


def check_outcome(target: RunStatus, result: dict | None, error: str | None) -> None:
    """A result only accompanies success, an error message only failure."""
    if result is not None and target is not RunStatus.SUCCEEDED:
        raise ValidationError("A result can only be recorded when a run succeeds.")
    if error is not None and target is not RunStatus.FAILED:
        raise ValidationError("An error can only be recorded when a run fails.")


def check_artifact_path(b2_prefix: str | None, path: str) -> None:
    """When a run declares a prefix, its artifacts must live strictly below it."""
    if not path:
        raise ValidationError("Artifact path must not be empty.")
    if b2_prefix is None:
        return
    root = b2_prefix.rstrip("/") + "/"
    if not path.startswith(root) or len(path) == len(root):
        raise ValidationError(f"Artifact path must be under the run prefix {root!r}.")


def _choices(enum_cls) -> str:
    return ", ".join(member.value for member in enum_cls)
