"""
Shared fixtures for the SkillGauge test suite.

Every test gets a fresh in-memory SQLite database with foreign keys on,
created from the ORM metadata and seeded with the role catalogue.
"""

import os

# Fast password hashing for tests
os.environ.setdefault("PASSWORD_HASH_ITERATIONS", "1000")

import pytest
from fastapi.testclient import TestClient

from skillgauge.common.auth.jwt import create_access_token
from skillgauge.common.auth.user import Role
from skillgauge.common.db.session import (
    create_engine_from_settings,
    create_session_factory,
    get_session,
)
from skillgauge.database.init_db import init_db
from skillgauge.domain.identity.repository import IdentityRepository
from skillgauge.domain.questions.repository import QuestionRepository
from skillgauge.main import create_app

MEMORY_DATABASE = {"database_url": "sqlite://", "db_type": "sqlite", "echo": False}


@pytest.fixture
def engine():
    """In-memory engine with the full schema"""
    test_engine = create_engine_from_settings(MEMORY_DATABASE)
    init_db(test_engine)
    yield test_engine
    test_engine.dispose()


@pytest.fixture
def session(engine):
    """Session shared by the test body and every request it makes"""
    db_session = create_session_factory(engine)()
    try:
        yield db_session
    finally:
        db_session.close()


@pytest.fixture
def app(engine, session):
    application = create_app(bind=engine, initialize=False)
    application.dependency_overrides[get_session] = lambda: session
    return application


@pytest.fixture
def client(app):
    return TestClient(app)


@pytest.fixture
def make_user(session):
    """Factory creating an account with the given roles"""
    counter = {"n": 0}

    def factory(*roles, full_name="Somchai Worker", password="password123"):
        counter["n"] += 1
        identities = IdentityRepository(session)
        user = identities.signup({
            "full_name": full_name,
            "phone": f"08{counter['n']:08d}",
            "password": password,
        })
        extra = [role for role in roles if role != Role.WORKER]
        if extra:
            identities.attach_roles(user.id, extra)
            session.commit()
        return user

    return factory


@pytest.fixture
def token_for():
    """Factory issuing a bearer header for a user id and roles"""
    def factory(user_id, *roles):
        token = create_access_token(user_id, roles or (Role.WORKER,))
        return {"Authorization": f"Bearer {token}"}

    return factory


@pytest.fixture
def admin_headers(make_user, token_for):
    admin = make_user(Role.ADMIN, full_name="Admin")
    return token_for(admin.id, Role.ADMIN)


@pytest.fixture
def make_question(session):
    """Factory creating a question; the first option listed is correct unless given"""
    def factory(text="Which tool checks level?", options=None, **fields):
        options = options or [
            {"text": "Spirit level", "is_correct": True},
            {"text": "Hammer", "is_correct": False},
            {"text": "Trowel", "is_correct": False},
        ]
        return QuestionRepository(session).create({"text": text, "options": options, **fields})

    return factory
