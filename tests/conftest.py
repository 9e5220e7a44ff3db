import secrets
from datetime import datetime, timedelta

import pytest
from fastapi.testclient import TestClient
from sqlmodel import Session, SQLModel, create_engine
from sqlmodel.pool import StaticPool

from main import app
from app.config import SESSION_COOKIE_NAME
from app.database import get_session
from app.models import League, User, UserRole
from app.models import Session as UserSession
from app.services.auth import hash_password

# Create in-memory database for testing
TEST_DATABASE_URL = "sqlite:///:memory:"

engine = create_engine(
    TEST_DATABASE_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)

PASSWORD = "password123"


@pytest.fixture(name="session")
def session_fixture():
    SQLModel.metadata.create_all(engine)
    with Session(engine) as session:
        yield session
    SQLModel.metadata.drop_all(engine)


@pytest.fixture(name="client")
def client_fixture(session: Session):
    def get_session_override():
        return session

    app.dependency_overrides[get_session] = get_session_override
    client = TestClient(app)
    yield client
    app.dependency_overrides.clear()


@pytest.fixture(name="make_user")
def make_user_fixture(session: Session):
    """Create a user with a live session; returns (user, session token)."""
    counter = {"n": 0}

    def _make_user(role: UserRole = UserRole.REGULAR, name: str = None):
        counter["n"] += 1
        n = counter["n"]
        user = User(
            email=f"user{n}@example.com",
            name=name or f"User {n}",
            password_hash=hash_password(PASSWORD),
            role=role
        )
        session.add(user)
        session.commit()
        session.refresh(user)

        token = secrets.token_urlsafe(32)
        session.add(UserSession(
            user_id=user.id,
            session_token=token,
            expires_at=datetime.utcnow() + timedelta(days=7)
        ))
        session.commit()
        return user, token

    return _make_user


@pytest.fixture(name="league")
def league_fixture(session: Session):
    league = League(name="Sunday Soccer", slug="sunday-soccer", season="2026")
    session.add(league)
    session.commit()
    session.refresh(league)
    return league


@pytest.fixture(name="login")
def login_fixture(client: TestClient):
    """Switch the client to the given session token."""
    def _login(token: str) -> None:
        client.cookies.clear()
        client.cookies.set(SESSION_COOKIE_NAME, token)

    return _login
