import os

# Configure the app before anything imports it
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["SECRET_KEY"] = "test-secret-key"
os.environ["RATE_LIMIT_ENABLED"] = "false"

import uuid
from datetime import datetime

import pytest
from fastapi.testclient import TestClient
from jose import jwt

from reparaya.config import JWT_ALGORITHM, SECRET_KEY
from reparaya.database import Base, SessionLocal, engine
from reparaya.main import app
from reparaya.models import (
    Booking,
    ContractorProfile,
    Service,
    ServiceCategory,
    ServiceImage,
    ServiceVisibilityStatus,
    User,
    UserRole,
)
from reparaya.services.geocoding import (
    GeocodingResult,
    GeocodingServiceUnavailableError,
    get_geocoding_client,
)

VALID_DESCRIPTION = (
    "Reparación de fugas, cambio de llaves y destape de tuberías con garantía de 30 días."
)


@pytest.fixture(autouse=True)
def db():
    """Fresh schema per test"""
    Base.metadata.create_all(bind=engine)
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture
def client():
    yield TestClient(app)
    app.dependency_overrides.clear()


def token_for(user: User) -> str:
    return jwt.encode(
        {"sub": user.auth_subject, "email": user.email}, SECRET_KEY, algorithm=JWT_ALGORITHM
    )


def auth(user: User) -> dict:
    return {"Authorization": f"Bearer {token_for(user)}"}


@pytest.fixture
def auth_headers():
    return auth


@pytest.fixture
def make_user(db):
    def _make_user(role: UserRole = UserRole.CLIENT, email: str = None) -> User:
        subject = f"user_{uuid.uuid4().hex[:12]}"
        user = User(
            auth_subject=subject,
            email=email or f"{subject}@example.com",
            full_name="Test User",
            role=role.value,
        )
        db.add(user)
        db.commit()
        db.refresh(user)
        return user

    return _make_user


@pytest.fixture
def contractor(make_user):
    return make_user(UserRole.CONTRACTOR)


@pytest.fixture
def other_contractor(make_user):
    return make_user(UserRole.CONTRACTOR)


@pytest.fixture
def client_user(make_user):
    return make_user(UserRole.CLIENT)


@pytest.fixture
def admin(make_user):
    return make_user(UserRole.ADMIN)


@pytest.fixture
def make_profile(db):
    def _make_profile(user: User, verified: bool = False) -> ContractorProfile:
        profile = ContractorProfile(
            user_id=user.id,
            business_name="Plomería Hernández",
            description="Plomero con 10 años de experiencia en CDMX",
            specialties=["plomeria"],
            verified=verified,
        )
        db.add(profile)
        db.commit()
        db.refresh(profile)
        return profile

    return _make_profile


@pytest.fixture
def category(db):
    category = ServiceCategory(name="Plomería", slug="plomeria", description="Tuberías y fugas")
    db.add(category)
    db.commit()
    db.refresh(category)
    return category


@pytest.fixture
def make_service(db, category):
    def _make_service(
        owner: User,
        status: ServiceVisibilityStatus = ServiceVisibilityStatus.DRAFT,
        images: int = 0,
        **overrides,
    ) -> Service:
        fields = {
            "category_id": category.id,
            "title": "Reparación de fugas",
            "description": VALID_DESCRIPTION,
            "base_price": 450.0,
            "duration_minutes": 90,
            "visibility_status": status.value,
        }
        if status == ServiceVisibilityStatus.ACTIVE:
            fields["last_published_at"] = datetime(2024, 1, 1)
        fields.update(overrides)
        service = Service(contractor_id=owner.id, **fields)
        db.add(service)
        db.commit()
        for position in range(images):
            key = f"contractor-services/{owner.id}/{service.id}/{uuid.uuid4()}.jpg"
            db.add(
                ServiceImage(
                    service_id=service.id,
                    s3_key=key,
                    s3_url=f"https://bucket.example.com/{key}",
                    order=position,
                )
            )
        db.commit()
        db.refresh(service)
        return service

    return _make_service


@pytest.fixture
def make_booking(db, make_user):
    def _make_booking(service: Service, status: str = "PENDING") -> Booking:
        booking = Booking(service_id=service.id, client_id=make_user().id, status=status)
        db.add(booking)
        db.commit()
        return booking

    return _make_booking


class FakeGeocoder:
    """Stands in for GeocodingClient; records every address it is asked about"""

    def __init__(self, result: GeocodingResult = None, error: Exception = None):
        self.result = result or GeocodingResult(
            latitude=19.432608,
            longitude=-99.133209,
            normalized_address="Av. Juárez 100, Centro, Ciudad de México, CDMX, 06000, México",
            relevance=0.92,
        )
        self.error = error
        self.calls = []

    async def geocode(self, address, country_code="mx"):
        self.calls.append(address)
        if self.error:
            raise self.error
        return self.result


@pytest.fixture
def fake_geocoder():
    geocoder = FakeGeocoder()
    app.dependency_overrides[get_geocoding_client] = lambda: geocoder
    return geocoder


@pytest.fixture
def failing_geocoder():
    geocoder = FakeGeocoder(error=GeocodingServiceUnavailableError())
    app.dependency_overrides[get_geocoding_client] = lambda: geocoder
    return geocoder
