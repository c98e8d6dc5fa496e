"""
Shared fixtures: in-memory database, recording notifier, users and tokens.
"""
import os

os.environ.setdefault("DATABASE_URL", "sqlite://")

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

import gatepass.models  # noqa: F401
from gatepass.core.permissions import Role
from gatepass.core.security import create_user_token, get_password_hash
from gatepass.db.base import Base
from gatepass.db.session import get_db
from gatepass.main import app
from gatepass.models.user import User
from gatepass.services.notification_service import NotificationPort, get_notifier

PASSWORD = "testpassword123"
PASSWORD_HASH = get_password_hash(PASSWORD)


class RecordingNotifier(NotificationPort):
    """Keeps every message instead of sending it."""

    def __init__(self):
        self.emails = []
        self.sms = []

    def send_email(self, to, subject, body):
        self.emails.append({"to": list(to), "subject": subject, "body": body})

    def send_sms(self, destination, message):
        self.sms.append({"to": destination, "message": message})


class FailingNotifier(NotificationPort):
    """Every delivery blows up."""

    def send_email(self, to, subject, body):
        raise ConnectionError("SMTP unreachable")

    def send_sms(self, destination, message):
        raise ConnectionError("SMS gateway unreachable")


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(bind=engine, autoflush=False, autocommit=False)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def notifier():
    return RecordingNotifier()


@pytest.fixture
def client(session_factory, notifier):
    def override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_notifier] = lambda: notifier
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


@pytest.fixture
def make_user(db):
    counter = {"n": 0}

    def _make_user(role=Role.STUDENT, **fields):
        counter["n"] += 1
        n = counter["n"]
        role = Role(role)
        user = User(
            username=fields.pop("username", f"{role.value}{n}"),
            email=fields.pop("email", f"{role.value}{n}@campus.edu.pk"),
            full_name=fields.pop("full_name", f"{role.value.title()} {n}"),
            hashed_password=PASSWORD_HASH,
            role=role,
            **fields
        )
        db.add(user)
        db.commit()
        db.refresh(user)
        return user

    return _make_user


def auth_headers(user):
    return {"Authorization": f"Bearer {create_user_token(user)}"}


@pytest.fixture
def auth():
    """Returns a function building bearer headers for a user."""
    return auth_headers


@pytest.fixture
def failing_notifier():
    return FailingNotifier()
