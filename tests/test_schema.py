"""Schema initialization tests."""

import pytest
import pytest_asyncio
from sqlalchemy import inspect, text
from sqlalchemy.exc import IntegrityError

from openclaw.db.schema import existing_tables, init_artifacts_schema, init_schema
from openclaw.db.session import build_engine


def _describe(sync_conn) -> dict:
    inspector = inspect(sync_conn)
    return {
        table: {
            "columns": sorted(c["name"] for c in inspector.get_columns(table)),
            "indexes": sorted(i["name"] for i in inspector.get_indexes(table)),
            "foreign_keys": [
                (fk["referred_table"], tuple(fk["constrained_columns"]), fk["options"].get("ondelete"))
                for fk in inspector.get_foreign_keys(table)
            ],
        }
        for table in sorted(inspector.get_table_names())
    }


@pytest_asyncio.fixture
async def blank_engine(tmp_path):
    engine = build_engine(f"sqlite+aiosqlite:///{tmp_path / 'schema.db'}")
    yield engine
    await engine.dispose()


async def test_init_schema_is_idempotent(blank_engine):
    await init_schema(blank_engine)
    async with blank_engine.connect() as conn:
        first = await conn.run_sync(_describe)

    await init_schema(blank_engine)
    async with blank_engine.connect() as conn:
        second = await conn.run_sync(_describe)

    assert first == second
    assert set(first) == {"runs", "artifacts"}
    assert first["runs"]["columns"] == sorted(
        [
            "id", "type", "project", "status", "params", "b2_prefix",
            "result", "error", "created_at", "updated_at",
        ]
    )
    assert first["runs"]["indexes"] == ["idx_runs_project", "idx_runs_status", "idx_runs_type"]
    assert first["artifacts"]["columns"] == sorted(
        ["id", "run_id", "kind", "path", "metadata", "created_at"]
    )
    assert first["artifacts"]["indexes"] == ["idx_artifacts_kind", "idx_artifacts_run_id"]
    assert first["artifacts"]["foreign_keys"] == [("runs", ("run_id",), "CASCADE")]


async def test_artifacts_migration_only_touches_artifacts(blank_engine):
    async with blank_engine.begin() as conn:
        await conn.execute(text("CREATE TABLE runs (id CHAR(32) PRIMARY KEY)"))

    await init_artifacts_schema(blank_engine)
    await init_artifacts_schema(blank_engine)

    assert sorted(await existing_tables(blank_engine)) == ["artifacts", "runs"]


async def test_check_constraints_hold_at_the_database(blank_engine):
    await init_schema(blank_engine)

    with pytest.raises(IntegrityError):
        async with blank_engine.begin() as conn:
            await conn.execute(
                text("INSERT INTO runs (id, type, project) VALUES ('a1', 'video', 'p')")
            )

    with pytest.raises(IntegrityError):
        async with blank_engine.begin() as conn:
            await conn.execute(
                text(
                    "INSERT INTO runs (id, type, project, status) "
                    "VALUES ('a2', 'text', 'p', 'done')"
                )
            )

    async with blank_engine.begin() as conn:
        await conn.execute(text("INSERT INTO runs (id, type, project) VALUES ('a3', 'text', 'p')"))
        row = (
            await conn.execute(text("SELECT status, params, result FROM runs WHERE id = 'a3'"))
        ).one()

    assert row.status == "queued"
    assert row.params == "{}"
    assert row.result == "{}"
