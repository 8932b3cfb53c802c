"""
/runs — run lifecycle and artifact endpoints.

Flow:
  POST /runs                        →  run saved as "queued"
  POST /runs/{id}/transition        →  queued → running → succeeded | failed
  POST /runs/{id}/artifacts         →  declare an output under the run's prefix
  DELETE /runs/{id}  (admin token)  →  run and its artifacts removed
"""

from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from openclaw.db.repository import (
    create_artifact,
    create_run,
    delete_run,
    get_run,
    list_artifacts,
    list_runs,
    transition_status,
)
from openclaw.db.session import session_scope
from openclaw.dependencies import get_sessions, require_admin
from openclaw.schemas.runs import (
    ArtifactCreateRequest,
    ArtifactListResponse,
    ArtifactResponse,
    RunCreateRequest,
    RunListResponse,
    RunResponse,
    TransitionRequest,
)

router = APIRouter(prefix="/runs", tags=["runs"])

Sessions = async_sessionmaker[AsyncSession]


# ============================================================
# LIST RUNS  GET /runs
# ============================================================

@router.get("", response_model=RunListResponse)
async def list_runs_api(
    project: Optional[str] = Query(None),
    status: Optional[str] = Query(None, description="queued | running | succeeded | failed"),
    type: Optional[str] = Query(None, description="text | image"),
    limit: int = Query(50, ge=1, le=200),
    offset: int = Query(0, ge=0),
    sessions: Sessions = Depends(get_sessions),
):
    async with session_scope(sessions) as session:
        runs = await list_runs(
            session, project=project, status=status, type=type, limit=limit, offset=offset
        )
    return RunListResponse(
        runs=[RunResponse.from_run(r) for r in runs], limit=limit, offset=offset
    )


# ============================================================
# CREATE RUN  POST /runs
# ============================================================

@router.post("", response_model=RunResponse, status_code=201)
async def create_run_api(data: RunCreateRequest, sessions: Sessions = Depends(get_sessions)):
    async with session_scope(sessions) as session:
        run = await create_run(
            session,
            type=data.type,
            project=data.project,
            params=data.params,
            b2_prefix=data.b2_prefix,
        )
    return RunResponse.from_run(run)


# ============================================================
# GET SINGLE RUN  GET /runs/{run_id}
# ============================================================

@router.get("/{run_id}", response_model=RunResponse)
async def get_run_api(run_id: UUID, sessions: Sessions = Depends(get_sessions)):
    async with session_scope(sessions) as session:
        run = await get_run(session, run_id)
    return RunResponse.from_run(run)


# ============================================================
# TRANSITION  POST /runs/{run_id}/transition
# ============================================================

@router.post("/{run_id}/transition", response_model=RunResponse)
async def transition_run_api(
    run_id: UUID, data: TransitionRequest, sessions: Sessions = Depends(get_sessions)
):
    """Conditional status change; 409 when the run is not in the expected state."""
    async with session_scope(sessions) as session:
        run = await transition_status(
            session,
            run_id,
            from_status=data.from_status,
            to_status=data.to_status,
            result=data.result,
            error=data.error,
        )
    return RunResponse.from_run(run)


# ============================================================
# DELETE RUN  DELETE /runs/{run_id}
# ============================================================

@router.delete("/{run_id}", dependencies=[Depends(require_admin)])
async def delete_run_api(run_id: UUID, sessions: Sessions = Depends(get_sessions)):
    async with session_scope(sessions) as session:
        await delete_run(session, run_id)
    return {"ok": True, "deleted": str(run_id)}


# ============================================================
# ARTIFACTS  /runs/{run_id}/artifacts
# ============================================================

@router.post("/{run_id}/artifacts", response_model=ArtifactResponse, status_code=201)
async def create_artifact_api(
    run_id: UUID, data: ArtifactCreateRequest, sessions: Sessions = Depends(get_sessions)
):
    async with session_scope(sessions) as session:
        artifact = await create_artifact(
            session, run_id, kind=data.kind, path=data.path, metadata=data.metadata
        )
    return ArtifactResponse.from_artifact(artifact)


@router.get("/{run_id}/artifacts", response_model=ArtifactListResponse)
async def list_artifacts_api(run_id: UUID, sessions: Sessions = Depends(get_sessions)):
    async with session_scope(sessions) as session:
        artifacts = await list_artifacts(session, run_id)
    return ArtifactListResponse(
        run_id=str(run_id),
        artifacts=[ArtifactResponse.from_artifact(a) for a in artifacts],
    )
