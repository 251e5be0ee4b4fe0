"""Shared test fixtures."""

from unittest.mock import AsyncMock, Mock

import pytest
from cassandra.cluster import Session
from fastapi.testclient import TestClient

from kbw_notes.main import create_app


@pytest.fixture
def mock_session():
    """Mock Cassandra session (cassandra-asyncio-driver exposes aexecute)."""
    session = Mock(spec=Session)
    session.prepare = Mock(side_effect=lambda cql: Mock(name="prepared", cql=cql))
    session.aexecute = AsyncMock(return_value=Mock())
    return session


@pytest.fixture
def app():
    """Application without lifespan; tests attach services to app.state."""
    return create_app()


@pytest.fixture
def client(app) -> TestClient:
    return TestClient(app)
