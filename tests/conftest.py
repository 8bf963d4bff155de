import os

os.environ.setdefault("SECRET_KEY", "test-secret-key")
os.environ.setdefault("SESSION_BACKEND", "memory")

from decimal import Decimal

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.pool import StaticPool
from sqlmodel import Session

from agenda.auth import get_session_store, hash_password
from agenda.db import build_engine, create_db_and_tables, get_session
from agenda.email_service import EmailService, get_email_service
from agenda.main import app
from agenda.models import Appointment
from agenda.sessions import InMemorySessionStore
from agenda.storage import Storage

from helpers import setup_provider, upcoming


class FakeEmailService(EmailService):
    def __init__(self):
        super().__init__(api_key=None)
        self.sent = []
        self.fail = False

    def send_verification_email(self, to, code, user_name):
        self.sent.append({"to": to, "code": code, "name": user_name})
        return not self.fail

    def last_code(self, to):
        codes = [m["code"] for m in self.sent if m["to"] == to]
        return codes[-1] if codes else None


@pytest.fixture
def engine():
    engine = build_engine("sqlite://", poolclass=StaticPool)
    create_db_and_tables(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session(engine):
    with Session(engine) as session:
        yield session


@pytest.fixture
def storage(session):
    return Storage(session)


@pytest.fixture
def email():
    return FakeEmailService()


@pytest.fixture
def monday():
    return upcoming(1)


@pytest.fixture
def make_user(storage):
    counter = {"n": 0}

    def _make(email=None, name="Test Owner", password="password123"):
        counter["n"] += 1
        email = email or f"owner{counter['n']}@example.com"
        return storage.create_user(email, hash_password(password), name)

    return _make


@pytest.fixture
def make_provider(storage, make_user):
    def _make(slug="studio", is_active=True, user=None):
        user = user or make_user()
        return storage.create_provider(
            user_id=user.id, business_name=slug.title(), slug=slug, is_active=is_active
        )

    return _make


@pytest.fixture
def provider(make_provider):
    return make_provider()


@pytest.fixture
def make_service(storage):
    def _make(provider, price="80.00", duration=60, name="Haircut", is_active=True):
        return storage.create_service(
            provider.id, name=name, price=Decimal(price), duration=duration, is_active=is_active
        )

    return _make


@pytest.fixture
def make_appointment(storage):
    def _make(provider, service, start, status="confirmed", duration=None):
        return storage.create_appointment(
            Appointment(
                provider_id=provider.id,
                service_id=service.id,
                client_name="Existing Client",
                client_phone="555-0100",
                appointment_date=start,
                duration=duration or service.duration,
                price=service.price,
                status=status,
            )
        )

    return _make


@pytest.fixture
def session_store():
    return InMemorySessionStore()


@pytest.fixture
def client_factory(engine, email, session_store):
    def override_get_session():
        with Session(engine) as session:
            yield session

    app.dependency_overrides[get_session] = override_get_session
    app.dependency_overrides[get_email_service] = lambda: email
    app.dependency_overrides[get_session_store] = lambda: session_store

    def _make():
        return TestClient(app)

    yield _make
    app.dependency_overrides.clear()


@pytest.fixture
def client(client_factory):
    return client_factory()


@pytest.fixture
def owner_client(client):
    setup_provider(client)
    return client
