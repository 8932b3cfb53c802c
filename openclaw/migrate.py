"""
Migration: ensure the runs and artifacts tables exist.

Run it against the database named by DATABASE_URL (environment or .env):
    openclaw-migrate
    openclaw-migrate --artifacts-only

It is safe to run multiple times — every statement is create-if-not-exists.
"""

import argparse
import asyncio
import os
import sys

from dotenv import find_dotenv, load_dotenv

from openclaw.db.schema import existing_tables, init_artifacts_schema, init_schema
from openclaw.db.session import build_engine
from openclaw.errors import StorageUnavailable


async def migrate(database_url: str, artifacts_only: bool = False) -> list[str]:
    # Only the database is needed here, so the full Settings (which also
    # demands the object-storage variables) is not loaded.
    engine = build_engine(
        database_url,
        pool_size=1,
        max_overflow=0,
        timeout=float(os.environ.get("DB_TIMEOUT_SECONDS", "10")),
    )
    try:
        print("Connected to database. Running migration...")
        if artifacts_only:
            await init_artifacts_schema(engine)
            print("  ✓ Table 'artifacts' ensured.")
        else:
            await init_schema(engine)
            print("  ✓ Tables 'runs' and 'artifacts' ensured.")
        return await existing_tables(engine)
    finally:
        await engine.dispose()


def main(argv: list[str] | None = None) -> int:
    load_dotenv(find_dotenv(usecwd=True))  # reads the .env in the working directory

    parser = argparse.ArgumentParser(prog="openclaw-migrate", description=__doc__.splitlines()[1])
    parser.add_argument(
        "--artifacts-only", action="store_true", help="only create the artifacts table"
    )
    args = parser.parse_args(argv)

    database_url = os.environ.get("DATABASE_URL")
    if not database_url:
        print("Missing required env var: DATABASE_URL", file=sys.stderr)
        return 2

    try:
        tables = asyncio.run(migrate(database_url, artifacts_only=args.artifacts_only))
    except StorageUnavailable as e:
        print(f"Migration failed: {e}", file=sys.stderr)
        return 1

    print(f"\nMigration complete. Tables present: {', '.join(sorted(tables))}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
