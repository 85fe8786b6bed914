"""
Test configuration and fixtures.

Provides:
- A throwaway SQLite database, recreated for every test
- Identity and session-cookie minting for authenticated tests
- HTTPX AsyncClients (anonymous, client role, admin role) with CSRF set up

The dashboard reads from several worker threads with their own sessions,
so fixtures commit real rows instead of wrapping the test in a savepoint.
"""
import os
import tempfile
import uuid
from dataclasses import dataclass
from typing import AsyncGenerator, Generator

import pytest
from httpx import ASGITransport, AsyncClient

_TEST_DIR = tempfile.mkdtemp(prefix="soloflow-tests-")
os.environ["DATABASE_URL"] = f"sqlite:///{os.path.join(_TEST_DIR, 'test.db')}"
os.environ["ENV"] = "test"
os.environ["TESTING"] = "1"
os.environ["ADMIN_EMAILS"] = ""
os.environ["ALLOWED_EMAIL_DOMAINS"] = ""
os.environ["SESSION_SECRET"] = "test-session-secret"
os.environ["SESSION_SECRET_PREVIOUS"] = ""

from sqlalchemy.orm import Session

from soloflow.core.csrf import CSRF_COOKIE_NAME, CSRF_HEADER
from soloflow.core.deps import COOKIE_NAME
from soloflow.core.security import create_session_token
from soloflow.db.base import Base
from soloflow.db.models import User
from soloflow.db.session import SessionLocal, engine
from soloflow.main import app
from soloflow.schemas.auth import Identity
from soloflow.services import user_service

CSRF_TOKEN = "test-csrf-token"


# =============================================================================
# Database Fixtures
# =============================================================================

@pytest.fixture(scope="function")
def db() -> Generator[Session, None, None]:
    """Fresh schema per test; the session commits like application code does."""
    Base.metadata.create_all(bind=engine)
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)


def make_identity(prefix: str = "client", name: str = "Test Client") -> Identity:
    suffix = uuid.uuid4().hex[:8]
    first, _, last = name.partition(" ")
    return Identity(
        subject=f"google-{prefix}-{suffix}",
        email=f"{prefix}-{suffix}@example.com",
        name=name,
        first_name=first or None,
        last_name=last or None,
    )


@pytest.fixture(scope="function")
def identity() -> Identity:
    return make_identity()


@pytest.fixture(scope="function")
def admin_identity() -> Identity:
    return make_identity("admin", "Test Admin")


@pytest.fixture(scope="function")
def test_user(db: Session, identity: Identity) -> User:
    """A client-role user created the way a first sign-in creates it."""
    user = user_service.ensure_user(db, identity)
    assert user is not None
    return user


@pytest.fixture(scope="function")
def test_admin(db: Session, admin_identity: Identity) -> User:
    user = user_service.ensure_user(db, admin_identity, admin_emails=[admin_identity.email])
    assert user is not None
    return user


# =============================================================================
# Auth Fixtures
# =============================================================================

@dataclass
class TestAuth:
    """Test authentication context."""
    user: User
    identity: Identity
    token: str
    cookie_name: str = COOKIE_NAME


@pytest.fixture(scope="function")
def test_auth(test_user: User, identity: Identity) -> TestAuth:
    return TestAuth(user=test_user, identity=identity, token=create_session_token(identity))


@pytest.fixture(scope="function")
def admin_auth(test_admin: User, admin_identity: Identity) -> TestAuth:
    return TestAuth(user=test_admin, identity=admin_identity, token=create_session_token(admin_identity))


# =============================================================================
# Client Fixtures
# =============================================================================

def _client(cookies: dict | None = None, headers: dict | None = None) -> AsyncClient:
    return AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
        cookies=cookies,
        headers=headers,
    )


@pytest.fixture(scope="function")
async def client(db: Session) -> AsyncGenerator[AsyncClient, None]:
    """Unauthenticated AsyncClient for public pages and redirect checks."""
    async with _client() as c:
        yield c


@pytest.fixture(scope="function")
async def authed_client(db: Session, test_auth: TestAuth) -> AsyncGenerator[AsyncClient, None]:
    """Client-role session cookie plus a matching CSRF cookie and header."""
    async with _client(
        cookies={test_auth.cookie_name: test_auth.token, CSRF_COOKIE_NAME: CSRF_TOKEN},
        headers={CSRF_HEADER: CSRF_TOKEN},
    ) as c:
        yield c


@pytest.fixture(scope="function")
async def admin_client(db: Session, admin_auth: TestAuth) -> AsyncGenerator[AsyncClient, None]:
    async with _client(
        cookies={admin_auth.cookie_name: admin_auth.token, CSRF_COOKIE_NAME: CSRF_TOKEN},
        headers={CSRF_HEADER: CSRF_TOKEN},
    ) as c:
        yield c
