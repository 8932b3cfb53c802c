import logging
import uuid

from sqlalchemy import delete, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from openclaw.db.models import Artifact, Run, RunStatus, utcnow
from openclaw.errors import ForeignKeyViolation, InvalidTransition, NotFound, ValidationError
from openclaw.services.lifecycle import (
    check_artifact_path,
    check_outcome,
    check_transition,
    parse_artifact_kind,
    parse_run_status,
    parse_run_type,
)

logger = logging.getLogger(__name__)


def _as_uuid(value: uuid.UUID | str) -> uuid.UUID:
    if isinstance(value, uuid.UUID):
        return value
    try:
        return uuid.UUID(str(value))
    except ValueError:
        raise ValidationError(f"Invalid id {value!r}.") from None


def _as_object(value, field: str) -> dict:
    if value is None:
        return {}
    if not isinstance(value, dict):
        raise ValidationError(f"{field} must be a JSON object.")
    return value


# ======================================================
# RUN STORE
# ======================================================

async def create_run(
    session: AsyncSession,
    type: str,
    project: str,
    params: dict | None = None,
    b2_prefix: str | None = None,
) -> Run:
    """Insert a queued run. Validation happens before anything touches the db."""
    run_type = parse_run_type(type)
    if not project or not project.strip():
        raise ValidationError("Project must not be empty.")

    run = Run(
        type=run_type.value,
        project=project,
        status=RunStatus.QUEUED.value,
        params=_as_object(params, "params"),
        b2_prefix=b2_prefix or None,
    )
    session.add(run)
    await session.flush()
    # pick up server-side defaults
    await session.refresh(run)
    logger.info("Created run %s (type=%s, project=%s)", run.id, run.type, run.project)
    return run


async def get_run(session: AsyncSession, run_id: uuid.UUID | str) -> Run:
    run = await session.get(Run, _as_uuid(run_id))
    if run is None:
        raise NotFound(f"Run {run_id} not found.")
    return run


async def list_runs(
    session: AsyncSession,
    project: str | None = None,
    status: str | None = None,
    type: str | None = None,
    limit: int = 50,
    offset: int = 0,
) -> list[Run]:
    stmt = select(Run).order_by(Run.created_at.desc(), Run.id).limit(limit).offset(offset)
    if project:
        stmt = stmt.where(Run.project == project)
    if status:
        stmt = stmt.where(Run.status == parse_run_status(status).value)
    if type:
        stmt = stmt.where(Run.type == parse_run_type(type).value)
    result = await session.execute(stmt)
    return list(result.scalars().all())


async def transition_status(
    session: AsyncSession,
    run_id: uuid.UUID | str,
    from_status: str,
    to_status: str,
    result: dict | None = None,
    error: str | None = None,
) -> Run:
    """
    Move a run along queued -> running -> {succeeded, failed}.

    The write is conditional on the current status, so two workers racing on
    the same run cannot both win and a terminal row is never overwritten.
    """
    run_uuid = _as_uuid(run_id)
    current = parse_run_status(from_status)
    target = parse_run_status(to_status)
    try:
        check_transition(current, target)
    except InvalidTransition:
        # an unknown run is reported as such, whatever edge was asked for
        await get_run(session, run_uuid)
        raise
    check_outcome(target, result, error)

    values: dict = {"status": target.value, "updated_at": utcnow()}
    if result is not None:
        values["result"] = _as_object(result, "result")
    if error is not None:
        values["error"] = error

    stmt = (
        update(Run)
        .where(Run.id == run_uuid, Run.status == current.value)
        .values(**values)
        .execution_options(synchronize_session=False)
    )
    outcome = await session.execute(stmt)

    if outcome.rowcount == 0:
        existing = await session.get(Run, run_uuid)
        if existing is None:
            raise NotFound(f"Run {run_uuid} not found.")
        raise InvalidTransition(
            f"Run {run_uuid} is {existing.status!r}, not {current.value!r}."
        )

    refreshed = await session.execute(
        select(Run).where(Run.id == run_uuid).execution_options(populate_existing=True)
    )
    run = refreshed.scalar_one()
    logger.info("Run %s moved %s -> %s", run_uuid, current.value, target.value)
    return run


async def delete_run(session: AsyncSession, run_id: uuid.UUID | str) -> None:
    """Hard delete a run; its artifacts go with it (ON DELETE CASCADE)."""
    run_uuid = _as_uuid(run_id)
    outcome = await session.execute(
        delete(Run).where(Run.id == run_uuid).execution_options(synchronize_session=False)
    )
    if outcome.rowcount == 0:
        raise NotFound(f"Run {run_uuid} not found.")
    logger.info("Deleted run %s", run_uuid)


# ======================================================
# ARTIFACT STORE
# ======================================================

async def create_artifact(
    session: AsyncSession,
    run_id: uuid.UUID | str,
    kind: str,
    path: str,
    metadata: dict | None = None,
) -> Artifact:
    """Insert an artifact row. The object itself may be uploaded later."""
    artifact_kind = parse_artifact_kind(kind)
    run_uuid = _as_uuid(run_id)

    owner = await session.get(Run, run_uuid)
    if owner is None:
        raise ForeignKeyViolation(f"Run {run_uuid} does not exist.")
    check_artifact_path(owner.b2_prefix, path)

    artifact = Artifact(
        run_id=run_uuid,
        kind=artifact_kind.value,
        path=path,
        metadata_=_as_object(metadata, "metadata"),
    )
    session.add(artifact)
    try:
        await session.flush()
    except IntegrityError as e:
        # The run was deleted between the lookup and the insert
        raise ForeignKeyViolation(f"Run {run_uuid} does not exist.") from e
    await session.refresh(artifact)
    logger.info("Created artifact %s for run %s (%s)", artifact.id, run_uuid, artifact.kind)
    return artifact


async def list_artifacts(session: AsyncSession, run_id: uuid.UUID | str) -> list[Artifact]:
    """All artifacts of a run, oldest first."""
    run = await get_run(session, run_id)
    stmt = (
        select(Artifact)
        .where(Artifact.run_id == run.id)
        .order_by(Artifact.created_at, Artifact.id)
    )
    result = await session.execute(stmt)
    return list(result.scalars().all())


async def create_run_with_artifact(
    session: AsyncSession,
    type: str,
    project: str,
    params: dict | None,
    b2_prefix: str | None,
    kind: str,
    path: str,
    metadata: dict | None = None,
) -> tuple[Run, Artifact]:
    """
    Create a run and its first artifact inside the caller's transaction.

    Used under session_scope, a failure on the artifact insert rolls the run
    back too, so no half-written pair is left behind.
    """
    run = await create_run(session, type, project, params, b2_prefix)
    artifact = await create_artifact(session, run.id, kind, path, metadata)
    return run, artifact
