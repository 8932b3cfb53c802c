"""
Smoke tests for the external dependencies.

GET /b2-test        writes one small object to the bucket
GET /db-test        inserts one queued run
GET /artifact-test  inserts a run and one artifact in a single transaction

Mounted only when ENABLE_DIAGNOSTICS is on.
"""

import time
import uuid

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from openclaw.db.repository import create_run, create_run_with_artifact
from openclaw.db.session import session_scope
from openclaw.dependencies import get_sessions, get_storage
from openclaw.schemas.runs import ArtifactResponse, RunResponse
from openclaw.services.object_storage import ObjectStorage

router = APIRouter(tags=["diagnostics"])

DIAGNOSTICS_PROJECT = "diagnostics"


@router.get("/b2-test")
async def b2_test(storage: ObjectStorage = Depends(get_storage)):
    key = f"diagnostics/b2-test-{int(time.time() * 1000)}.txt"
    await storage.put_object(key, "hello from openclaw", content_type="text/plain")
    return {"ok": True, "bucket": storage.bucket, "key": key}


@router.get("/db-test")
async def db_test(sessions: async_sessionmaker[AsyncSession] = Depends(get_sessions)):
    async with session_scope(sessions) as session:
        run = await create_run(
            session,
            type="text",
            project=DIAGNOSTICS_PROJECT,
            params={"note": "db-test"},
        )
    return {"ok": True, "run": RunResponse.from_run(run).model_dump()}


@router.get("/artifact-test")
async def artifact_test(sessions: async_sessionmaker[AsyncSession] = Depends(get_sessions)):
    prefix = f"images/{DIAGNOSTICS_PROJECT}/{uuid.uuid4().hex}"
    async with session_scope(sessions) as session:
        run, artifact = await create_run_with_artifact(
            session,
            type="image",
            project=DIAGNOSTICS_PROJECT,
            params={"note": "artifact-test"},
            b2_prefix=prefix,
            kind="image",
            path=f"{prefix}/page-01.png",
            metadata={"diagnostic": True},
        )
    return {
        "ok": True,
        "runId": str(run.id),
        "artifact": ArtifactResponse.from_artifact(artifact).model_dump(),
    }
