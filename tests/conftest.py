import os

os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("CREATE_TABLES_ON_STARTUP", "false")
os.environ.setdefault("SECRET_KEY", "test-secret-key-that-is-long-enough-for-hs256")

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from app.main import app
from app.core.dependencies import get_db
from app.core.security import hash_password
from app.db.base import Base
from app.models.client import Client
from app.models.project import Project
from app.models.user import User


TEST_PASSWORD = "averysecurepassword123"


@pytest.fixture()
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture()
def session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture()
def db_session(session_factory):
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture()
def client(session_factory):
    def override_get_db():
        db = session_factory()
        try:
            yield db
        finally:
            db.close()

    app.dependency_overrides[get_db] = override_get_db
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


def register_and_login(client: TestClient, email: str = "raj@example.com", full_name: str = "Raj Koli") -> dict:
    response = client.post(
        "/auth/register",
        json={"fullName": full_name, "email": email, "password": TEST_PASSWORD, "defaultHourlyRate": 40},
    )
    assert response.status_code == 201, response.text

    response = client.post("/auth/login", data={"username": email, "password": TEST_PASSWORD})
    assert response.status_code == 200, response.text
    token = response.json()["access_token"]
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture()
def auth_headers(client):
    return register_and_login(client)


def create_client_record(client: TestClient, headers: dict, **overrides) -> dict:
    payload = {"name": "Acme Corp", "email": "billing@acme.com", "currency": "USD"}
    payload.update(overrides)
    response = client.post("/clients", json=payload, headers=headers)
    assert response.status_code == 201, response.text
    return response.json()


def create_project_record(client: TestClient, headers: dict, client_id: int, **overrides) -> dict:
    payload = {"clientId": client_id, "title": "Website redesign", "billingType": "hourly", "hourlyRate": 50}
    payload.update(overrides)
    response = client.post("/projects", json=payload, headers=headers)
    assert response.status_code == 201, response.text
    return response.json()


def log_time(client: TestClient, headers: dict, project_id: int, hours: float, **overrides) -> dict:
    payload = {
        "projectId": project_id,
        "date": "2025-01-10",
        "hours": hours,
        "description": f"Work session ({hours}h)",
    }
    payload.update(overrides)
    response = client.post("/timelog", json=payload, headers=headers)
    assert response.status_code == 201, response.text
    return response.json()


@pytest.fixture()
def seeded_owner(db_session):
    """User, client and hourly project created straight through the ORM."""
    user = User(
        full_name="Asha Verma",
        email="asha@example.com",
        hashed_password=hash_password(TEST_PASSWORD),
        currency="INR",
    )
    db_session.add(user)
    db_session.flush()

    client_row = Client(user_id=user.id, name="Globex", currency="INR")
    db_session.add(client_row)
    db_session.flush()

    project = Project(
        user_id=user.id,
        client_id=client_row.id,
        title="Mobile app",
        billing_type="hourly",
        hourly_rate=75,
    )
    db_session.add(project)
    db_session.commit()

    return user, client_row, project
