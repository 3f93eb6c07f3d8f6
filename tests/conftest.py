"""Shared fixtures: in-memory content store, wired app and test client."""

import asyncio
import os
import tempfile
from unittest.mock import AsyncMock, Mock


# Settings are read once; set the test environment before importing forum
os.environ.setdefault("ENVIRONMENT", "testing")
os.environ.setdefault("LOG_DIR", tempfile.mkdtemp(prefix="forum-test-logs-"))
os.environ.setdefault("LOG_LEVEL", "WARNING")
os.environ.setdefault("CASSANDRA_KEYSPACE", "forum_test")

import pytest  # noqa: E402
from factories import auth_headers, create_member  # noqa: E402
from fake_cassandra import FakeCassandraSession  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402

from forum.auth.permissions import UserRole  # noqa: E402
from forum.config import get_settings  # noqa: E402
from forum.core.database import ALL_TABLES_CQL  # noqa: E402
from forum.main import attach_services, create_app  # noqa: E402


@pytest.fixture
def settings():
    return get_settings()


@pytest.fixture
def session(settings) -> FakeCassandraSession:
    """Fresh in-memory session with every forum table created."""
    fake = FakeCassandraSession()
    for templates in ALL_TABLES_CQL.values():
        for cql_template in templates:
            fake.execute(cql_template.format(keyspace=settings.cassandra_keyspace))
    return fake


@pytest.fixture
def forum_app(session, settings):
    """App with services wired to the in-memory session (lifespan skipped)."""
    app = create_app()
    attach_services(app, session, settings)
    return app


@pytest.fixture
def services(forum_app):
    """The app's service container (``app.state``)."""
    return forum_app.state


@pytest.fixture
def client(forum_app) -> TestClient:
    return TestClient(forum_app)


@pytest.fixture
def register(services):
    """Provision a member for HTTP tests; returns (actor, auth headers).

    Only for synchronous tests: setup runs on its own event loop.
    """

    def _register(username: str, role: UserRole = UserRole.USER):
        actor = asyncio.run(create_member(services.profile_service, username, role))
        return actor, auth_headers(actor)

    return _register


@pytest.fixture
def mock_redis():
    """Mock Redis client."""
    redis_mock = AsyncMock()
    # Mock pipeline for rate limiting
    mock_pipe = Mock()
    mock_pipe.incr = Mock()
    mock_pipe.expire = Mock()
    mock_pipe.execute = AsyncMock(return_value=[1, True, 1, True])
    redis_mock.pipeline = Mock(return_value=mock_pipe)
    redis_mock.get = AsyncMock(return_value=None)
    return redis_mock
