"""Test configuration and fixtures."""

import pytest
import pytest_asyncio
from fastapi.testclient import TestClient

from openclaw.config import Settings
from openclaw.db.schema import init_schema
from openclaw.db.session import build_engine, build_sessionmaker
from openclaw.main import create_app
from openclaw.services.object_storage import ObjectStorage

ADMIN_TOKEN = "s3cret-admin-token"


def make_settings(tmp_path, **overrides) -> Settings:
    values = dict(
        database_url=f"sqlite+aiosqlite:///{tmp_path / 'openclaw.db'}",
        b2_key_id="test-key-id",
        b2_app_key="test-app-key",
        b2_bucket="openclaw-test",
        b2_endpoint="https://s3.us-west-004.backblazeb2.com",
        b2_region="us-west-004",
        admin_token=ADMIN_TOKEN,
        auto_init_schema=True,
    )
    values.update(overrides)
    return Settings(_env_file=None, **values)


@pytest.fixture
def settings_factory(tmp_path):
    return lambda **overrides: make_settings(tmp_path, **overrides)


@pytest.fixture
def settings(settings_factory) -> Settings:
    return settings_factory()


@pytest.fixture
def storage(settings) -> ObjectStorage:
    return ObjectStorage.from_settings(settings)


@pytest.fixture
def client(settings, storage):
    """A running app backed by a fresh sqlite file with the schema in place."""
    with TestClient(create_app(settings, storage=storage)) as c:
        yield c


@pytest_asyncio.fixture
async def engine(tmp_path):
    engine = build_engine(f"sqlite+aiosqlite:///{tmp_path / 'store.db'}")
    await init_schema(engine)
    yield engine
    await engine.dispose()


@pytest.fixture
def sessions(engine):
    return build_sessionmaker(engine)


@pytest.fixture
def admin_token() -> str:
    return ADMIN_TOKEN
