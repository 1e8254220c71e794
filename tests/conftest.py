"""Shared fixtures: SQLite in-memory database and temporary landing/version directories."""

from types import SimpleNamespace

import pytest
import pytest_asyncio

import src.entities  # noqa: F401  (registers tables)
from src.config import settings
from src.database import Base
from src.entities.landing import Landing
from versioning.blobs import ArchiveStore

from helpers import TestSession, test_engine, write_files


@pytest_asyncio.fixture
async def setup_db():
    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield
    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await test_engine.dispose()


@pytest_asyncio.fixture
async def session(setup_db):
    async with TestSession() as db:
        yield db


@pytest.fixture
def dirs(tmp_path, monkeypatch):
    landings = tmp_path / "landings"
    versions = tmp_path / "versions"
    landings.mkdir()
    versions.mkdir()
    monkeypatch.setattr(settings, "landings_dir", str(landings))
    monkeypatch.setattr(settings, "versions_dir", str(versions))
    monkeypatch.setattr(settings, "audit_webhook_url", "")
    return SimpleNamespace(landings=landings, versions=versions, archives=ArchiveStore(versions))


@pytest_asyncio.fixture
async def landing(session, dirs):
    """A landing 'promo' whose live directory holds index.html = 'A'."""
    lp = Landing(id="lp_test", slug="promo", name="Promo Page", type="html")
    session.add(lp)
    await session.commit()
    write_files(dirs.landings / "promo", {"index.html": "A"})
    return lp
