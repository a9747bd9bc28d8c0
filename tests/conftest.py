from __future__ import annotations

import logging
import os
from pathlib import Path

import pytest
import structlog
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from src.cms.db.db_init import init_db
from src.cms.logging import HANDLER_NAME

TEST_CREDENTIALS = Path(__file__).resolve().parent / "data" / "runtime_credentials.json"

os.environ.setdefault("JWT_SIGNING_KEY", "test-signing-key")
os.environ.setdefault("ADMIN_CREDENTIALS_PATH", str(TEST_CREDENTIALS))
os.environ.setdefault("ADMIN_JWT_TTL_HOURS", "168")


@pytest.fixture()
def session_factory():
    engine = create_engine(
        "sqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    init_db(engine)
    yield sessionmaker(bind=engine, expire_on_commit=False)
    engine.dispose()


@pytest.fixture(autouse=True)
def _reset_logging():
    yield
    root = logging.getLogger()
    for handler in [item for item in root.handlers if item.get_name() == HANDLER_NAME]:
        root.removeHandler(handler)
    structlog.reset_defaults()
