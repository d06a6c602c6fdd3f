"""Shared pytest fixtures."""

from __future__ import annotations

import os
import sys
import tempfile
from collections.abc import Iterator
from pathlib import Path

import pytest
from alembic import command
from alembic.config import Config

ROOT_DIR = Path(__file__).resolve().parents[1]
if str(ROOT_DIR) not in sys.path:
    sys.path.insert(0, str(ROOT_DIR))

# config.py reads the environment at import time, so the test database and
# scheduler switch must be in place before anything imports it.
_DB_DIR = Path(tempfile.mkdtemp(prefix="valut-tests-"))
DATABASE_URL = f"sqlite:///{_DB_DIR / 'test.db'}"
os.environ["DATABASE_URL"] = DATABASE_URL
os.environ["SCHEDULER_ENABLED"] = "false"

from valut import create_app  # noqa: E402
from valut.database import SessionLocal, get_engine  # noqa: E402
from valut.models import ExchangeRate  # noqa: E402
from valut.services.rate_store import SqlRateStore  # noqa: E402


@pytest.fixture(scope="session")
def app() -> Iterator:
    """Session-wide Flask application backed by a migrated SQLite database."""

    alembic_cfg = Config(str(ROOT_DIR / "alembic.ini"))
    alembic_cfg.set_main_option("sqlalchemy.url", DATABASE_URL)
    command.upgrade(alembic_cfg, "head")

    flask_app = create_app("development")
    flask_app.config.update(TESTING=True)

    yield flask_app

    engine = get_engine()
    SessionLocal.remove()
    engine.dispose()
    command.downgrade(alembic_cfg, "base")


@pytest.fixture()
def client(app):
    """Provide a Flask test client."""

    with app.test_client() as client:
        yield client


@pytest.fixture()
def db_session(app) -> Iterator:
    """Provide a session on an empty ``exchange_rates`` table."""

    session = SessionLocal()
    session.query(ExchangeRate).delete()
    session.commit()
    try:
        yield session
    finally:
        session.rollback()
        session.query(ExchangeRate).delete()
        session.commit()
        SessionLocal.remove()


@pytest.fixture()
def store(db_session) -> SqlRateStore:
    return SqlRateStore()

