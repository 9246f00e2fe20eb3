from __future__ import annotations

import os
import uuid
from datetime import datetime, timedelta

import pytest
from fastapi import status
from fastapi.testclient import TestClient
from sqlalchemy import text
from sqlmodel import Session, SQLModel, create_engine

from clientportal.api.deps import get_db
from clientportal.core.config import settings
from clientportal.db import session as db_session_module
from clientportal.db.session import get_session
from clientportal.main import app
from clientportal.models.client import Client
from clientportal.models.project import Project
from clientportal.schemas.client import ClientCreate
from clientportal.services.clients import ClientService

pytestmark = pytest.mark.anyio


@pytest.fixture()
def db_engine(tmp_path):
    test_database_url = os.getenv("TEST_DATABASE_URL")
    if not test_database_url:
        db_path = tmp_path / f"test_{uuid.uuid4().hex}.db"
        test_database_url = f"sqlite:///{db_path}"

    is_postgres = test_database_url.startswith("postgresql")

    admin_engine = None
    schema_name = None

    if is_postgres:
        schema_name = f"test_{uuid.uuid4().hex}"
        admin_engine = create_engine(test_database_url, future=True)
        with admin_engine.connect() as conn:
            conn.execution_options(isolation_level="AUTOCOMMIT").execute(
                text(f'CREATE SCHEMA IF NOT EXISTS "{schema_name}"')
            )
        client_encoding = os.getenv("POSTGRES_CLIENT_ENCODING", "UTF8")
        connect_args = {"options": f"-csearch_path={schema_name},public -cclient_encoding={client_encoding}"}
        engine = create_engine(test_database_url, connect_args=connect_args, future=True)
    else:
        engine = create_engine(test_database_url, connect_args={"check_same_thread": False})

    SQLModel.metadata.create_all(bind=engine)

    original_engine = db_session_module.engine
    db_session_module.engine = engine

    def override_dependency():
        with Session(engine) as session:
            yield session

    app.dependency_overrides[get_session] = override_dependency
    app.dependency_overrides[get_db] = override_dependency

    yield engine

    app.dependency_overrides.pop(get_session, None)
    app.dependency_overrides.pop(get_db, None)
    db_session_module.engine = original_engine
    engine.dispose()
    if is_postgres and admin_engine and schema_name:
        with admin_engine.connect() as conn:
            conn.execution_options(isolation_level="AUTOCOMMIT").execute(
                text(f'DROP SCHEMA IF EXISTS "{schema_name}" CASCADE')
            )
        admin_engine.dispose()


@pytest.fixture()
def client(db_engine) -> TestClient:
    return TestClient(app)


@pytest.fixture()
def db_session(db_engine) -> Session:
    with Session(db_engine) as session:
        yield session


@pytest.fixture()
def api():
    return settings.api_v1_str


@pytest.fixture()
def make_client(db_session):
    def _make(name: str = "Cliente Teste", *, redeemed: bool = True) -> Client:
        email = f"{uuid.uuid4().hex[:8]}@example.com"
        service = ClientService(db_session)
        created = service.create_client(ClientCreate(name=name, email=email))
        if redeemed:
            created = service.redeem_magic_link(created.portal_token)
        return created

    return _make


@pytest.fixture()
def make_project(db_session):
    def _make(client: Client, name: str = "Site institucional", status: str = "active") -> Project:
        project = Project(client_id=client.id, name=name, status=status)
        db_session.add(project)
        db_session.commit()
        db_session.refresh(project)
        return project

    return _make


@pytest.fixture()
def portal_login(client, make_client, api):
    """Cria um cliente e troca o link de acesso por um token do portal."""

    def _login(name: str = "Cliente Portal") -> tuple[Client, dict[str, str]]:
        portal_client = make_client(name, redeemed=False)
        response = client.post(f"{api}/portal/magic-link/{portal_client.portal_token}")
        assert response.status_code == status.HTTP_200_OK, response.text
        token = response.json()["access_token"]
        client_id = uuid.UUID(response.json()["client"]["id"])
        with Session(db_session_module.engine) as session:
            refreshed = session.get(Client, client_id)
        return refreshed, {"Authorization": f"Bearer {token}"}

    return _login


@pytest.fixture()
def admin_client(client, api) -> TestClient:
    response = client.post(f"{api}/admin/session", json={"password": settings.admin_password})
    assert response.status_code == status.HTTP_200_OK, response.text
    return client


@pytest.fixture()
def fixed_now() -> datetime:
    return datetime(2025, 3, 10, 12, 0, 0)


@pytest.fixture()
def days(fixed_now):
    def _offset(value: float) -> datetime:
        return fixed_now + timedelta(days=value)

    return _offset
