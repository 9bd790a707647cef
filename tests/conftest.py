# tests/conftest.py
"""
Shared fixtures: a throwaway SQLite file database per test, access codes for
every profile, and a TestClient wired to the same database.

The module-level engine in core.database is pointed at an in-memory database
before anything imports it; tests never touch data/.
"""

from __future__ import annotations

import os

os.environ["DATABASE_URL"] = "sqlite://"
os.environ.setdefault("JWT_SECRET_KEY", "test-secret")

from datetime import timedelta

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.orm import sessionmaker

from core.database import create_store_engine, get_db, init_db
from schemas.access_code import Actor
from utils.access_code_manager import AccessCodeManager
from utils.time_slots import today


@pytest.fixture
def engine(tmp_path):
    store_engine = create_store_engine(f"sqlite:///{tmp_path / 'scheduler.db'}")
    init_db(store_engine)
    yield store_engine
    store_engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    yield session
    session.close()


def make_actor(db, code, profile, display_name=None, class_name=None) -> Actor:
    manager = AccessCodeManager(db)
    manager.create_code(code, profile, display_name, class_name)
    return manager.authenticate(code)


@pytest.fixture
def admin(db) -> Actor:
    return make_actor(db, "ADMIN", "admin", "Administration")


@pytest.fixture
def teacher(db) -> Actor:
    return make_actor(db, "DUPONT", "teacher", "M. Dupont", "CM2")


@pytest.fixture
def other_teacher(db) -> Actor:
    return make_actor(db, "MARTIN", "teacher", "Mme Martin", "CM1")


@pytest.fixture
def partner(db) -> Actor:
    return make_actor(db, "MAIRIE", "partner", "Mairie")


@pytest.fixture
def parent_a(db) -> Actor:
    return make_actor(db, "CM2", "parent", "Parents CM2", "CM2")


@pytest.fixture
def parent_b(db) -> Actor:
    return make_actor(db, "CM2B", "parent", "Parents CM2 B", "CM2")


@pytest.fixture
def future_day():
    return today() + timedelta(days=7)


@pytest.fixture
def client(session_factory):
    from app import app

    def override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


def auth_headers(client, code: str) -> dict:
    response = client.post("/api/auth/login", json={"code": code})
    assert response.status_code == 200, response.text
    return {"Authorization": f"Bearer {response.json()['access_token']}"}
