import os
import tempfile
from datetime import datetime, timedelta

# Configure before fixerhub reads its settings
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["UPLOAD_DIR"] = tempfile.mkdtemp(prefix="fixerhub-uploads-")
os.environ["SECRET_KEY"] = "test-secret-key"
os.environ["RESEND_API_KEY"] = ""
os.environ["STRIPE_SECRET_KEY"] = ""
os.environ["DB_SLOW_QUERY_SECONDS"] = "0"

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402

from fixerhub.database import Base, SessionLocal, engine, get_db  # noqa: E402
from fixerhub.domain.chat.history import conversation_store  # noqa: E402
from fixerhub.main import app  # noqa: E402
from fixerhub.models import Booking, User  # noqa: E402
from fixerhub.models_certification import Certification  # noqa: E402
from fixerhub.security_utils import create_access_token, hash_password  # noqa: E402

PASSWORD = "secret123"


@pytest.fixture(autouse=True)
def _reset_database():
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    conversation_store._conversations.clear()
    yield


@pytest.fixture
def db():
    session = SessionLocal()
    try:
        yield session
    finally:
        session.rollback()
        session.close()


@pytest.fixture
def client(db):
    def override_get_db():
        yield db

    app.dependency_overrides[get_db] = override_get_db
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()


@pytest.fixture
def auth_headers():
    def _auth_headers(user: User) -> dict:
        return {"Authorization": f"Bearer {create_access_token(user.id, user.role)}"}

    return _auth_headers


@pytest.fixture
def make_user(db):
    counter = {"n": 0}

    def _make_user(role="service_seeker", **overrides):
        counter["n"] += 1
        data = {
            "name": f"User {counter['n']}",
            "email": f"user{counter['n']}@example.com",
            "password_hash": hash_password(PASSWORD),
            "role": role,
            "location": "Colombo",
            "email_verified": True,
        }
        if role == "service_provider":
            data.update(
                service_category="plumbing",
                hourly_rate=2500.0,
                description="Licensed plumber",
                bank_name="Commercial Bank",
                account_number="1234567890",
                branch_name="Colombo 03",
            )
        data.update(overrides)
        user = User(**data)
        db.add(user)
        db.commit()
        db.refresh(user)
        return user

    return _make_user


@pytest.fixture
def seeker(make_user):
    return make_user("service_seeker", name="Sam Seeker")


@pytest.fixture
def provider(make_user):
    return make_user("service_provider", name="Pat Provider")


@pytest.fixture
def admin(make_user):
    return make_user("admin", name="Ada Admin")


@pytest.fixture
def make_booking(db):
    def _make_booking(seeker, provider, **overrides):
        data = {
            "service_seeker_id": seeker.id,
            "service_provider_id": provider.id,
            "date": datetime.utcnow() + timedelta(days=3),
            "time": "10:00",
            "description": "Fix leaking kitchen sink",
            "price": 5000.0,
        }
        data.update(overrides)
        booking = Booking(**data)
        db.add(booking)
        db.commit()
        db.refresh(booking)
        return booking

    return _make_booking


@pytest.fixture
def booking(make_booking, seeker, provider):
    return make_booking(seeker, provider)


@pytest.fixture
def make_certification(db):
    def _make_certification(provider, **overrides):
        data = {
            "service_provider_id": provider.id,
            "title": "Plumbing License",
            "issuing_organization": "National Trade Board",
            "certificate_number": "PL-001",
            "issue_date": datetime(2022, 1, 15),
            "category": "trade",
            "points": 10,
            "document_file": "certifications/cert-1-license.pdf",
        }
        data.update(overrides)
        certification = Certification(**data)
        db.add(certification)
        db.commit()
        db.refresh(certification)
        return certification

    return _make_certification
