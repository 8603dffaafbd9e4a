"""Shared pytest fixtures: throwaway SQLite database, factories and an API client."""
import os

# Settings are read at import time
os.environ["GROQ_API_KEY"] = ""
os.environ.setdefault("ALLOWED_HOSTS", "testserver,localhost")
os.environ.setdefault("DATABASE_URL", "sqlite://")

from decimal import Decimal  # noqa: E402

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402
from sqlalchemy.orm import sessionmaker  # noqa: E402

from app import models  # noqa: E402,F401
from app.api.deps import get_db  # noqa: E402
from app.core.audit import AuditLog, get_audit_log  # noqa: E402
from app.core.permissions import Role  # noqa: E402
from app.core.security import create_access_token, get_password_hash  # noqa: E402
from app.db.base import Base  # noqa: E402
from app.db.session import make_engine  # noqa: E402
from app.main import app  # noqa: E402
from app.models.patient import Patient  # noqa: E402
from app.models.product import Product  # noqa: E402
from app.models.user import User  # noqa: E402
from app.services.safety_screener import SafetyScreener, get_safety_screener  # noqa: E402

TEST_PASSWORD = "Counter#Pass2024"


@pytest.fixture
def engine(tmp_path):
    # File-backed so the audit log's own session is a separate connection
    eng = make_engine(f"sqlite:///{tmp_path / 'pharmacare_test.db'}")
    Base.metadata.create_all(bind=eng)
    yield eng
    eng.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(bind=engine, autocommit=False, autoflush=False, expire_on_commit=False)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def audit(session_factory):
    return AuditLog(session_factory=session_factory)


@pytest.fixture
def screener():
    """Local rules only; no network."""
    return SafetyScreener(advisor=None)


@pytest.fixture(scope="session")
def password_hash():
    return get_password_hash(TEST_PASSWORD)


@pytest.fixture
def make_user(db, password_hash):
    counter = {"n": 0}

    def _make(role: Role = Role.PHARMACIST, **kwargs) -> User:
        counter["n"] += 1
        user = User(
            email=kwargs.pop("email", f"{role.value}{counter['n']}@pharmacare.co.zw"),
            hashed_password=password_hash,
            first_name=kwargs.pop("first_name", role.value.title()),
            last_name=kwargs.pop("last_name", f"Staff{counter['n']}"),
            role=role,
            **kwargs,
        )
        db.add(user)
        db.commit()
        db.refresh(user)
        return user

    return _make


@pytest.fixture
def make_product(db):
    def _make(name: str, **kwargs) -> Product:
        values = dict(
            name=name,
            generic_name=None,
            unit_price=Decimal("5.00"),
            selling_price=Decimal("10.00"),
            vat_percentage=Decimal("15"),
            reorder_level=10,
            requires_prescription=False,
            is_controlled_substance=False,
        )
        values.update(kwargs)
        product = Product(**values)
        db.add(product)
        db.commit()
        db.refresh(product)
        return product

    return _make


@pytest.fixture
def make_patient(db):
    def _make(first_name: str = "Tendai", last_name: str = "Moyo", **kwargs) -> Patient:
        values = dict(allergies=[], chronic_conditions=[])
        values.update(kwargs)
        patient = Patient(first_name=first_name, last_name=last_name, **values)
        db.add(patient)
        db.commit()
        db.refresh(patient)
        return patient

    return _make


@pytest.fixture
def pharmacist(make_user):
    return make_user(Role.PHARMACIST)


@pytest.fixture
def receptionist(make_user):
    return make_user(Role.RECEPTIONIST)


@pytest.fixture
def client(session_factory, audit, screener):
    def _get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = _get_db
    app.dependency_overrides[get_audit_log] = lambda: audit
    app.dependency_overrides[get_safety_screener] = lambda: screener
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()


def auth_headers(user: User) -> dict:
    token = create_access_token(subject=str(user.id), role=user.role.value)
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def headers_for():
    return auth_headers
