import os
import sys
import pathlib
import pytest
import pytest_asyncio

# Sign session cookies with a deterministic test-only key instead of the
# random per-process fallback.
os.environ.setdefault('SECRET_KEY', 'test-secret-key-for-unit-tests')

from httpx import AsyncClient, ASGITransport

ROOT = pathlib.Path(__file__).resolve().parents[1]
sys.path.insert(0, str(ROOT))

from session_todo.main import app
from session_todo.models import SessionState
from session_todo.repository import ListRepository
from session_todo.sessions import store



@pytest.fixture(autouse=True)
def fresh_store():
    """Every test starts with no live sessions."""
    store.clear()
    yield store
    store.clear()


@pytest.fixture
def state():
    return SessionState()


@pytest.fixture
def repo(state):
    return ListRepository(state)


@pytest_asyncio.fixture
async def client():
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


@pytest.fixture
def make_client():
    """Factory for extra clients, each with its own cookie jar (own session)."""
    def _make():
        return AsyncClient(transport=ASGITransport(app=app), base_url="http://test")
    return _make
