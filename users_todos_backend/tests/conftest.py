import os

import pytest
from fastapi.testclient import TestClient

# Ensure the module-level app never tries to reach a real database during tests
os.environ.setdefault("PERSISTENCE_BACKEND", "memory")

from src.api.main import create_app  # noqa: E402
from src.api.repositories import InMemoryRepository  # noqa: E402
from src.api.settings import Settings  # noqa: E402


def make_settings(**overrides) -> Settings:
    values = dict(
        persistence_backend="memory",
        database_url=None,
        pool_min_size=1,
        pool_max_size=10,
        cors_allow_origins=["*"],
        debug_errors=False,
        log_level="INFO",
    )
    values.update(overrides)
    return Settings(**values)


@pytest.fixture
def repo():
    return InMemoryRepository()


@pytest.fixture
def make_client():
    """Factory building a TestClient around a fresh app; extra kwargs override settings."""
    clients = []

    def _make(repository=None, **overrides):
        app = create_app(make_settings(**overrides), repository=repository or InMemoryRepository())
        c = TestClient(app)
        c.__enter__()
        clients.append(c)
        return c

    yield _make
    for c in clients:
        c.__exit__(None, None, None)


@pytest.fixture
def client(repo):
    app = create_app(make_settings(), repository=repo)
    with TestClient(app) as c:
        yield c
