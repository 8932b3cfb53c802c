"""
Schema initialization.

Both operations use create-if-not-exists semantics, so they are safe to call
any number of times. They are operator actions: the HTTP routes that reach
them sit behind the admin token.
"""

import logging

from sqlalchemy import inspect
from sqlalchemy.ext.asyncio import AsyncEngine

from openclaw.db.models import Artifact, Base
from openclaw.db.session import translate_db_errors

logger = logging.getLogger(__name__)


async def init_schema(engine: AsyncEngine) -> None:
    """Create the runs and artifacts tables and their indexes if missing."""
    async with translate_db_errors():
        async with engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all, checkfirst=True)
    logger.info("Schema ensured: runs, artifacts")


async def init_artifacts_schema(engine: AsyncEngine) -> None:
    """Create only the artifacts table and its indexes; runs must already exist."""
    async with translate_db_errors():
        async with engine.begin() as conn:
            await conn.run_sync(Artifact.__table__.create, checkfirst=True)
    logger.info("Schema ensured: artifacts")


async def existing_tables(engine: AsyncEngine) -> list[str]:
    async with translate_db_errors():
        async with engine.connect() as conn:
            return await conn.run_sync(lambda sync_conn: inspect(sync_conn).get_table_names())
