"""Pytest configuration: in-memory SQLite test database and FastAPI TestClient."""

from __future__ import annotations

import hashlib
import os
import tempfile
from datetime import timedelta
from typing import Generator

import pytest

# Override env BEFORE importing app modules so Settings picks up test values.
os.environ.update(
    {
        "DATABASE_URL": "sqlite://",
        "JWT_SECRET_KEY": "test-secret-key-for-pytest",
        "EMAIL_PROVIDER": "dev",
        "STORAGE_BACKEND": "local",
        "UPLOAD_DIR": tempfile.mkdtemp(prefix="courtfile-uploads-"),
        "RAZORPAY_KEY_ID": "rzp_test_key",
        "RAZORPAY_KEY_SECRET": "rzp_test_secret",
        "ADMIN_SECURITY_CODE_HASH": hashlib.sha256(b"let-me-in").hexdigest(),
        "BOOTSTRAP_ADMIN_EMAIL": "",
        "DEBUG": "true",
    }
)

from fastapi.testclient import TestClient  # noqa: E402
from sqlalchemy import create_engine, event  # noqa: E402
from sqlalchemy.orm import Session, sessionmaker  # noqa: E402
from sqlalchemy.pool import StaticPool  # noqa: E402

from courtfile.core.security import create_access_token, get_password_hash  # noqa: E402
from courtfile.db.database import Base, get_db  # noqa: E402
from courtfile.db.models import (  # noqa: E402
    Case,
    CasePaymentStatus,
    CaseStatus,
    User,
    UserRole,
)
from courtfile.main import app  # noqa: E402
from courtfile.services.payment_gateway import PaymentGateway, get_payment_gateway  # noqa: E402
from courtfile.services.storage import LocalBlobStore, get_blob_store  # noqa: E402

SECURITY_CODE = "let-me-in"
RAZORPAY_SECRET = "rzp_test_secret"

# ── In-memory SQLite engine shared across threads ──────────────────

_engine = create_engine(
    "sqlite://",
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
    echo=False,
)


@event.listens_for(_engine, "connect")
def _set_sqlite_pragma(dbapi_connection, connection_record):
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


_TestSession = sessionmaker(bind=_engine, class_=Session, expire_on_commit=False)


@pytest.fixture(autouse=True)
def _create_tables():
    """Create all tables before each test and drop after."""
    Base.metadata.create_all(bind=_engine)
    yield
    Base.metadata.drop_all(bind=_engine)


@pytest.fixture()
def db() -> Generator[Session, None, None]:
    session = _TestSession()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture()
def blob_store(tmp_path) -> LocalBlobStore:
    return LocalBlobStore(str(tmp_path / "uploads"), "/uploads")


@pytest.fixture()
def gateway() -> PaymentGateway:
    """Real Razorpay client (signature checks are local); order creation is patched per test."""
    return PaymentGateway("rzp_test_key", RAZORPAY_SECRET)


@pytest.fixture()
def client(db: Session, blob_store: LocalBlobStore, gateway: PaymentGateway) -> Generator[TestClient, None, None]:
    """FastAPI TestClient wired to the in-memory DB, a temp blob store and the test gateway."""

    def _override_get_db():
        yield db

    app.dependency_overrides[get_db] = _override_get_db
    app.dependency_overrides[get_blob_store] = lambda: blob_store
    app.dependency_overrides[get_payment_gateway] = lambda: gateway

    with TestClient(app, raise_server_exceptions=False) as tc:
        yield tc

    app.dependency_overrides.clear()


# ── Accounts ───────────────────────────────────────────────────────

def make_user(
    db: Session,
    email: str,
    role: UserRole = UserRole.user,
    name: str = "Test User",
    password: str = "secret123",
    is_verified: bool = True,
) -> User:
    user = User(
        name=name,
        email=email,
        password_hash=get_password_hash(password),
        role=role,
        is_active=True,
        is_verified=is_verified,
    )
    db.add(user)
    db.commit()
    db.refresh(user)
    return user


def auth_headers(user: User) -> dict:
    token = create_access_token(
        {"sub": str(user.id), "role": user.role.value, "is_verified": user.is_verified},
        expires_delta=timedelta(minutes=30),
    )
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture()
def user(db: Session) -> User:
    return make_user(db, "filer@example.com", name="Asha Filer")


@pytest.fixture()
def other_user(db: Session) -> User:
    return make_user(db, "someone@example.com", name="Other Filer")


@pytest.fixture()
def admin(db: Session) -> User:
    return make_user(db, "admin@example.com", role=UserRole.admin, name="Court Admin")


@pytest.fixture()
def user_headers(user: User) -> dict:
    return auth_headers(user)


@pytest.fixture()
def other_headers(other_user: User) -> dict:
    return auth_headers(other_user)


@pytest.fixture()
def admin_headers(admin: User) -> dict:
    return auth_headers(admin)


# ── Domain rows ────────────────────────────────────────────────────

def make_case(
    db: Session,
    owner: User,
    status: CaseStatus = CaseStatus.pending,
    payment_status: CasePaymentStatus = CasePaymentStatus.unpaid,
    case_type: str = "civil",
    case_number: str = "CASE-2026-ABC123",
) -> Case:
    case = Case(
        case_number=case_number,
        title="Land dispute",
        description="Boundary disagreement",
        plaintiffs="Asha Filer",
        defendants="Ravi Neighbour",
        case_type=case_type,
        filing_fee=500,
        status=status,
        payment_status=payment_status,
        user_id=owner.id,
    )
    db.add(case)
    db.commit()
    db.refresh(case)
    return case


@pytest.fixture()
def sample_case(db: Session, user: User) -> Case:
    return make_case(db, user)


@pytest.fixture()
def paid_case(db: Session, user: User) -> Case:
    return make_case(db, user, payment_status=CasePaymentStatus.paid, case_number="CASE-2026-PAID01")
