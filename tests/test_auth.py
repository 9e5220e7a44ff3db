from sqlmodel import select

from app.models import User, UserRole
from app.models import Session as UserSession
from app.services.auth import hash_password, verify_password


def test_password_hashing():
    password = "secure_password_123"
    hashed = hash_password(password)

    assert hashed != password
    assert isinstance(hashed, str)
    assert len(hashed) > 0


def test_password_verification():
    hashed = hash_password("secure_password_123")

    assert verify_password("secure_password_123", hashed) is True
    assert verify_password("wrong_password", hashed) is False


def test_password_long_truncation():
    # bcrypt handles max 72 bytes; longer passwords are truncated
    long_password = "a" * 100
    hashed = hash_password(long_password)

    assert verify_password(long_password, hashed) is True
    assert verify_password("a" * 72, hashed) is True
    assert verify_password("b" * 72, hashed) is False


def test_signup_creates_regular_user_and_session(client, session):
    response = client.post(
        "/auth/signup",
        json={"email": "Player@Example.com", "password": "goalkeeper1", "name": "Pat Player"}
    )

    assert response.status_code == 201
    data = response.json()
    assert data["email"] == "player@example.com"
    assert data["role"] == "REGULAR"
    assert "password_hash" not in data
    assert "session_token" in response.cookies

    user = session.exec(select(User).where(User.email == "player@example.com")).first()
    assert user.role == UserRole.REGULAR
    assert session.exec(select(UserSession).where(UserSession.user_id == user.id)).first()


def test_signup_then_me(client):
    client.post(
        "/auth/signup",
        json={"email": "sam@example.com", "password": "striker99", "name": "Sam"}
    )

    response = client.get("/users/me")

    assert response.status_code == 200
    assert response.json()["email"] == "sam@example.com"


def test_signup_duplicate_email(client, make_user):
    user, _ = make_user()

    response = client.post(
        "/auth/signup",
        json={"email": user.email.upper(), "password": "goalkeeper1", "name": "Copy Cat"}
    )

    assert response.status_code == 409
    assert response.json()["error"] == "conflict"


def test_signup_weak_password(client):
    response = client.post(
        "/auth/signup",
        json={"email": "weak@example.com", "password": "short", "name": "Weak"}
    )

    assert response.status_code == 400
    assert response.json()["error"] == "validation_failed"


def test_signup_invalid_email(client):
    response = client.post(
        "/auth/signup",
        json={"email": "not-an-email", "password": "goalkeeper1", "name": "Nobody"}
    )

    assert response.status_code == 400


def test_login_and_logout(client, make_user):
    user, _ = make_user()

    response = client.post("/auth/login", json={"email": user.email, "password": "password123"})
    assert response.status_code == 200
    assert response.json()["id"] == user.id

    assert client.get("/users/me").status_code == 200

    assert client.post("/auth/logout").status_code == 200
    client.cookies.clear()
    assert client.get("/users/me").status_code == 401


def test_login_wrong_password(client, make_user):
    user, _ = make_user()

    response = client.post("/auth/login", json={"email": user.email, "password": "nope12345"})

    assert response.status_code == 401
    assert response.json() == {"error": "unauthorized", "detail": "Invalid email or password"}


def test_unknown_session_token_is_unauthorized(client):
    client.cookies.set("session_token", "not-a-real-token")

    assert client.get("/users/me").status_code == 401
