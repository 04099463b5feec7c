"""Shared fixtures: in-memory SQLite, a controllable clock, fake notifier and blob store."""

import os
import tempfile

os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("SECRET_KEY", "test-secret")
os.environ.setdefault("ENVIRONMENT", "test")
os.environ.setdefault("ADMIN_EMAILS", '["admin@example.com"]')
os.environ.setdefault("UPLOAD_DIR", tempfile.mkdtemp(prefix="ireporter-uploads-"))

from datetime import datetime, timedelta, timezone

import pytest
from sqlalchemy.orm import sessionmaker

from app.application.services.admin_service import AdminService
from app.application.services.auth_service import AuthService, admin_email_predicate, hash_password
from app.application.services.otp_registry import InMemoryOTPRegistry
from app.application.services.report_service import ReportService
from app.application.services.token_service import TokenService
from app.domain.models.report import Report
from app.domain.models.user import User, ROLE_ADMIN, ROLE_USER
from app.domain.schemas.auth import TokenClaims
from app.infrastructure.database import Base, build_engine
from app.infrastructure.repositories.report_repository import SQLAlchemyReportRepository
from app.infrastructure.repositories.user_repository import SQLAlchemyUserRepository

ADMIN_EMAIL = "admin@example.com"
PASSWORD = "secret123"
PASSWORD_HASH = hash_password(PASSWORD)


class FakeClock:
    def __init__(self):
        self.now = datetime(2026, 1, 1, 12, 0, tzinfo=timezone.utc)

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now += timedelta(**kwargs)


class RecordingNotifier:
    def __init__(self):
        self.codes = []
        self.status_changes = []
        self.deliver_codes = True
        self.deliver_status = True

    def send_code(self, email, code, display_name):
        self.codes.append((email, code, display_name))
        return self.deliver_codes

    def send_status_change(self, email, display_name, report_title, old_status, new_status):
        self.status_changes.append((email, display_name, report_title, old_status, new_status))
        return self.deliver_status

    def last_code(self, email):
        return [code for to, code, _ in self.codes if to == email][-1]


class FakeBlobStore:
    def __init__(self):
        self.stored = []
        self.deleted = []
        self._by_reference = {}
        self._count = 0

    def store(self, file):
        self._count += 1
        reference = f"blob://{self._count}/{file.filename}"
        self.stored.append(file)
        self._by_reference[reference] = file
        return reference

    def delete(self, reference):
        self.deleted.append(reference)
        file = self._by_reference.pop(reference, None)
        if file is not None:
            self.stored.remove(file)


@pytest.fixture
def db_session():
    engine = build_engine("sqlite://")
    Base.metadata.create_all(engine)
    session = sessionmaker(bind=engine, autoflush=False)()
    yield session
    session.close()
    engine.dispose()


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def registry(clock):
    return InMemoryOTPRegistry(ttl=timedelta(minutes=10), clock=clock)


@pytest.fixture
def tokens():
    return TokenService("test-secret", ttl=timedelta(minutes=60))


@pytest.fixture
def notifier():
    return RecordingNotifier()


@pytest.fixture
def blob_store():
    return FakeBlobStore()


@pytest.fixture
def user_repo(db_session):
    return SQLAlchemyUserRepository(db_session, User)


@pytest.fixture
def report_repo(db_session):
    return SQLAlchemyReportRepository(db_session, Report)


@pytest.fixture
def auth_service(user_repo, registry, tokens, notifier):
    return AuthService(
        users=user_repo,
        registry=registry,
        tokens=tokens,
        notifier=notifier,
        is_admin_identity=admin_email_predicate([ADMIN_EMAIL]),
    )


@pytest.fixture
def report_service(report_repo, user_repo, notifier, blob_store):
    return ReportService(reports=report_repo, users=user_repo, notifier=notifier, blob_store=blob_store)


@pytest.fixture
def admin_service(user_repo, report_repo):
    return AdminService(users=user_repo, reports=report_repo)


@pytest.fixture
def make_user(user_repo):
    """Insert an active account directly and return claims for it."""

    def _make(email="user@example.com", role=ROLE_USER, first_name="Test", last_name="User"):
        user = user_repo.create({
            "email": email,
            "password_hash": PASSWORD_HASH,
            "first_name": first_name,
            "last_name": last_name,
            "role": role,
        })
        return TokenClaims(user_id=user.id, email=user.email, role=user.role)

    return _make


@pytest.fixture
def alice(make_user):
    return make_user("alice@example.com", first_name="Alice", last_name="Nakato")


@pytest.fixture
def bob(make_user):
    return make_user("bob@example.com", first_name="Bob", last_name="Okello")


@pytest.fixture
def admin(make_user):
    return make_user(ADMIN_EMAIL, role=ROLE_ADMIN, first_name="Ada", last_name="Admin")


@pytest.fixture
def client(db_session, registry, tokens, notifier, blob_store):
    from fastapi.testclient import TestClient

    from app.infrastructure.database import get_db
    from app.interfaces.deps import get_blob_store, get_notifier, get_otp_registry, get_token_service
    from app.main import app

    def _get_db():
        yield db_session

    app.dependency_overrides[get_db] = _get_db
    app.dependency_overrides[get_otp_registry] = lambda: registry
    app.dependency_overrides[get_token_service] = lambda: tokens
    app.dependency_overrides[get_notifier] = lambda: notifier
    app.dependency_overrides[get_blob_store] = lambda: blob_store
    yield TestClient(app)
    app.dependency_overrides.clear()
