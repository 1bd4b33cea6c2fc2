# -*- coding: utf-8 -*-
"""
Shared fixtures: a fresh SQLite file per test, the app wired to it, and
logged-in clients for each role.
"""
from datetime import datetime, timedelta

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.orm import sessionmaker

from main import app
from nonprofit_portal.auth import get_password_hash
from nonprofit_portal.database import Base, build_engine, get_db
from nonprofit_portal.models.event import EventOccurrence, EventTemplate
from nonprofit_portal.models.user import User, ROLE_ADMIN, ROLE_PARTICIPANT

PASSWORD = "s3cret-pass"


@pytest.fixture
def engine(tmp_path):
    engine = build_engine(f"sqlite:///{tmp_path / 'portal.db'}")
    Base.metadata.create_all(bind=engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def make_user(db):
    counter = {"n": 0}

    def _make(role=ROLE_PARTICIPANT, email=None, first_name="Pat", last_name="Member"):
        counter["n"] += 1
        user = User(
            email=email or f"user{counter['n']}@example.org",
            first_name=first_name,
            last_name=last_name,
            role=role,
            hashed_password=get_password_hash(PASSWORD),
        )
        db.add(user)
        db.commit()
        db.refresh(user)
        return user

    return _make


@pytest.fixture
def make_occurrence(db):
    def _make(start=None, end=None, capacity=None, deadline=None, name="Coding Night"):
        template = EventTemplate(name=name, type="Workshop", default_capacity=capacity)
        db.add(template)
        db.flush()
        occurrence = EventOccurrence(
            template_id=template.id,
            name=name,
            start=start or datetime.utcnow() + timedelta(days=7),
            end=end,
            location="Main Hall",
            capacity=capacity,
            registration_deadline=deadline,
        )
        db.add(occurrence)
        db.commit()
        db.refresh(occurrence)
        return occurrence

    return _make


@pytest.fixture
def app_db(session_factory):
    def override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    yield session_factory
    app.dependency_overrides.clear()


@pytest.fixture
def client(app_db):
    return TestClient(app, follow_redirects=False)


def login(test_client, email, password=PASSWORD):
    response = test_client.post("/login", data={"email": email, "password": password})
    assert response.status_code == 302, response.text
    return test_client


@pytest.fixture
def participant(make_user):
    return make_user(email="participant@example.org")


@pytest.fixture
def admin(make_user):
    return make_user(role=ROLE_ADMIN, email="staff@example.org", first_name="Ada", last_name="Admin")


@pytest.fixture
def participant_client(client, participant):
    return login(client, participant.email)


@pytest.fixture
def admin_client(app_db, admin):
    return login(TestClient(app, follow_redirects=False), admin.email)
