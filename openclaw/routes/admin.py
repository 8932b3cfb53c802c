"""
Operator-only schema routes. Both require the admin token.

Send it as an X-Admin-Token header. ?token= also works but the query string
is written to the uvicorn access log along with the path.

GET /db-init                   ensure runs + artifacts
GET /__admin/migrate-artifacts ensure artifacts only
"""

import logging

from fastapi import APIRouter, Depends
from fastapi.responses import PlainTextResponse
from sqlalchemy.ext.asyncio import AsyncEngine

from openclaw.db.schema import init_artifacts_schema, init_schema
from openclaw.dependencies import get_engine, require_admin

logger = logging.getLogger(__name__)

router = APIRouter(tags=["admin"], dependencies=[Depends(require_admin)])


@router.get("/db-init")
async def db_init(engine: AsyncEngine = Depends(get_engine)):
    await init_schema(engine)
    return {"ok": True, "message": "runs and artifacts tables are ready"}


@router.get("/__admin/migrate-artifacts", response_class=PlainTextResponse)
async def migrate_artifacts(engine: AsyncEngine = Depends(get_engine)):
    logger.info("Running artifacts migration")
    await init_artifacts_schema(engine)
    return "ok"
