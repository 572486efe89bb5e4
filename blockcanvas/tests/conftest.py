"""Pytest configuration and fixtures."""

import os

# Keep tests offline and off the default database file
os.environ["USE_LLM"] = "false"
os.environ.setdefault("DATABASE_URL", "sqlite:///:memory:")

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from blockcanvas.db.base import Base, get_db
from blockcanvas.db import models  # noqa: F401
from blockcanvas.engine.generator import DiagramGenerator

DOORBELL = "Smart doorbell with camera, PIR motion sensor, microphone, and cloud connectivity"


@pytest.fixture
def doorbell_description() -> str:
    """Description used across generation tests."""
    return DOORBELL


@pytest.fixture
def generator() -> DiagramGenerator:
    """Offline generator (pattern matching only)."""
    return DiagramGenerator()


@pytest.fixture
def diagram(generator):
    """A freshly generated, unedited diagram."""
    return generator.generate_with_pattern_matching(DOORBELL)


@pytest.fixture(scope="function")
def test_db():
    """Create test database with thread-safe SQLite."""
    engine = create_engine(
        "sqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    TestSession = sessionmaker(bind=engine)
    session = TestSession()
    yield session
    session.close()
    Base.metadata.drop_all(bind=engine)


@pytest.fixture
def client(test_db):
    """Create test client with the test database."""
    from blockcanvas.api.main import create_app

    app = create_app()

    def override_get_db():
        yield test_db

    app.dependency_overrides[get_db] = override_get_db

    with TestClient(app) as client:
        yield client
