# src/SOAT/tests/conftest.py
from __future__ import annotations

import os

# settings are read at import time; pin them before anything from SOAT loads
os.environ.setdefault("SCHOOL_TIMEZONE", "UTC")
os.environ.setdefault("LOG_JSON", "false")
os.environ.setdefault("TESTING", "1")
os.environ.pop("SOAT_DISABLE_AUTH", None)
os.environ.pop("DISABLE_AUTH", None)

import logging
import sys

import pytest
from httpx import ASGITransport, AsyncClient

from SOAT.core.config import settings
from SOAT.db.session import build_engine, build_sessionmaker, create_all
from SOAT.main import create_app
from SOAT.tests.helpers import NOW, FrozenClock, Seeder


# =========================
# Logging -> stdout
# =========================
@pytest.fixture(scope="session", autouse=True)
def _tests_log_to_stdout():
    """
    Ensure test logs go to stdout so they show up under pytest -s or log_cli=true.
    Avoid duplicates if handler is already present.
    """
    root = logging.getLogger()
    want = None
    for h in root.handlers:
        if isinstance(h, logging.StreamHandler) and getattr(h, "stream", None) is sys.stdout:
            want = h
            break
    if want is None:
        want = logging.StreamHandler(sys.stdout)
        want.setFormatter(logging.Formatter("%(levelname)s %(name)s: %(message)s"))
        root.addHandler(want)

    # Let the user override via TEST_LOG_LEVEL=DEBUG/INFO/WARNING...
    root.setLevel(os.getenv("TEST_LOG_LEVEL", "INFO").upper())


# Make anyio run on asyncio (so our async fixtures work everywhere)
@pytest.fixture(scope="session", autouse=True)
def anyio_backend():
    return "asyncio"


@pytest.fixture
def clock() -> FrozenClock:
    return FrozenClock(NOW)


# ==============================================================
# Database: one on-disk sqlite file per test
# ==============================================================

@pytest.fixture
def db_url(tmp_path) -> str:
    return f"sqlite+aiosqlite:///{tmp_path / 'soat-test.db'}"


@pytest.fixture
async def engine(db_url):
    eng = build_engine(db_url)
    await create_all(eng)
    yield eng
    await eng.dispose()


@pytest.fixture
async def sessionmaker(engine):
    return build_sessionmaker(engine)


@pytest.fixture
async def seed(sessionmaker) -> Seeder:
    return Seeder(sessionmaker)


# ==============================================================
# App / HTTP client
# ==============================================================

@pytest.fixture
async def app(engine, db_url, clock):
    application = create_app(database_url=db_url, create_tables=True, clock=clock)
    # ASGITransport does not drive the lifespan; run it explicitly
    async with application.router.lifespan_context(application):
        yield application


@pytest.fixture
async def client(app):
    headers = {settings.SOAT_CAPABILITY_HEADER: "true"}
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test", headers=headers) as c:
        yield c


@pytest.fixture
async def anon_client(app):
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as c:
        yield c
