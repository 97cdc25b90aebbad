from jose import jwt

from app.core.config import settings
from conftest import TEST_PASSWORD, register_and_login


def test_register_login_and_me(client):
    headers = register_and_login(client, email="Mira@Example.com", full_name="Mira Shah")

    response = client.get("/auth/me", headers=headers)

    assert response.status_code == 200
    body = response.json()
    assert body["email"] == "mira@example.com"
    assert body["fullName"] == "Mira Shah"
    assert body["currency"] == "INR"
    assert "hashedPassword" not in body


def test_duplicate_email_is_conflict(client):
    register_and_login(client)

    response = client.post(
        "/auth/register",
        json={"fullName": "Raj Koli", "email": "raj@example.com", "password": TEST_PASSWORD},
    )

    assert response.status_code == 409
    assert response.json() == {"detail": "Email already registered"}


def test_wrong_password_is_rejected(client):
    register_and_login(client)

    response = client.post("/auth/login", data={"username": "raj@example.com", "password": "wrong-password"})

    assert response.status_code == 401
    assert response.json()["detail"] == "Invalid credentials"


def test_missing_token_is_unauthorized(client):
    response = client.get("/invoice")

    assert response.status_code == 401
    assert response.headers["www-authenticate"] == "Bearer"


def test_token_for_unknown_user_is_rejected(client):
    token = jwt.encode({"sub": "ghost@example.com"}, settings.SECRET_KEY, algorithm=settings.ALGORITHM)

    response = client.get("/auth/me", headers={"Authorization": f"Bearer {token}"})

    assert response.status_code == 401
    assert response.json()["detail"] == "User not found"


def test_garbage_token_is_rejected(client):
    response = client.get("/auth/me", headers={"Authorization": "Bearer not-a-jwt"})

    assert response.status_code == 401
    assert response.json()["detail"] == "Invalid authentication token"


def test_register_validation_errors_are_400_and_aggregated(client):
    response = client.post("/auth/register", json={"fullName": "R", "email": "nope", "password": "123"})

    assert response.status_code == 400
    detail = response.json()["detail"]
    assert detail.startswith("Invalid input data.")
    assert "fullName" in detail
    assert "email" in detail
    assert "password" in detail
