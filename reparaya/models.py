import enum
import uuid

from sqlalchemy import (
    JSON,
    Boolean,
    Column,
    DateTime,
    Float,
    ForeignKey,
    Integer,
    String,
    Text,
)
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from .database import Base


def generate_id():
    """Generate a UUID string primary key"""
    return str(uuid.uuid4())


class UserRole(str, enum.Enum):
    CLIENT = "CLIENT"
    CONTRACTOR = "CONTRACTOR"
    ADMIN = "ADMIN"


class ServiceVisibilityStatus(str, enum.Enum):
    DRAFT = "DRAFT"
    ACTIVE = "ACTIVE"
    PAUSED = "PAUSED"
    ARCHIVED = "ARCHIVED"


class GeocodingStatus(str, enum.Enum):
    PENDING = "PENDING"
    SUCCESS = "SUCCESS"
    FAILED = "FAILED"


class ServiceZoneType(str, enum.Enum):
    RADIUS = "RADIUS"
    POLYGON = "POLYGON"


class BookingStatus(str, enum.Enum):
    PENDING = "PENDING"
    CONFIRMED = "CONFIRMED"
    IN_PROGRESS = "IN_PROGRESS"
    COMPLETED = "COMPLETED"
    CANCELLED = "CANCELLED"


# Bookings in these states block archiving a service
ACTIVE_BOOKING_STATUSES = (
    BookingStatus.PENDING.value,
    BookingStatus.CONFIRMED.value,
    BookingStatus.IN_PROGRESS.value,
)


class User(Base):
    __tablename__ = "users"

    id = Column(String(36), primary_key=True, default=generate_id)
    auth_subject = Column(String(255), unique=True, index=True, nullable=False)  # Token "sub" claim
    email = Column(String(255), unique=True, index=True, nullable=False)
    full_name = Column(String(255), nullable=True)
    avatar_url = Column(String(500), nullable=True)
    phone = Column(String(20), nullable=True)
    role = Column(String(20), default=UserRole.CLIENT.value, nullable=False)
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    contractor_profile = relationship("ContractorProfile", back_populates="user", uselist=False)
    services = relationship("Service", back_populates="contractor")
    addresses = relationship("Address", back_populates="user", cascade="all, delete-orphan")


class Address(Base):
    """Client address used for bookings. One per user may be the default."""

    __tablename__ = "addresses"

    id = Column(String(36), primary_key=True, default=generate_id)
    user_id = Column(String(36), ForeignKey("users.id"), nullable=False, index=True)
    address_line1 = Column(String(200), nullable=False)
    address_line2 = Column(String(200), nullable=True)
    city = Column(String(100), nullable=False)
    state = Column(String(100), nullable=False)
    postal_code = Column(String(5), nullable=False)
    country = Column(String(2), default="MX", nullable=False)
    latitude = Column(Float, nullable=True)
    longitude = Column(Float, nullable=True)
    is_default = Column(Boolean, default=False, nullable=False)
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    user = relationship("User", back_populates="addresses")


class ContractorProfile(Base):
    __tablename__ = "contractor_profiles"

    id = Column(String(36), primary_key=True, default=generate_id)
    user_id = Column(String(36), ForeignKey("users.id"), unique=True, nullable=False)
    business_name = Column(String(100), nullable=False)
    description = Column(Text, nullable=False)
    specialties = Column(JSON, default=list)  # e.g. ["plomeria", "electricidad"]
    # verified=False is the DRAFT profile state; only admins flip it
    verified = Column(Boolean, default=False, nullable=False)
    verification_documents = Column(JSON, nullable=True)
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    user = relationship("User", back_populates="contractor_profile")
    location = relationship(
        "ContractorLocation",
        back_populates="contractor_profile",
        uselist=False,
        cascade="all, delete-orphan",
    )


class ContractorLocation(Base):
    __tablename__ = "contractor_locations"

    id = Column(String(36), primary_key=True, default=generate_id)
    contractor_profile_id = Column(
        String(36), ForeignKey("contractor_profiles.id"), unique=True, nullable=False
    )

    # Structured address
    street = Column(String(200), nullable=False)
    exterior_number = Column(String(20), nullable=False)
    interior_number = Column(String(20), nullable=True)
    neighborhood = Column(String(100), nullable=True)  # Colonia
    city = Column(String(100), nullable=False)
    state = Column(String(100), nullable=False)
    postal_code = Column(String(5), nullable=False)
    country = Column(String(2), nullable=False, default="MX")

    # Geocoding output
    base_latitude = Column(Float, nullable=True)
    base_longitude = Column(Float, nullable=True)
    normalized_address = Column(Text, nullable=True)
    geocoding_status = Column(String(20), default=GeocodingStatus.PENDING.value, nullable=False)

    # Service zone
    zone_type = Column(String(20), default=ServiceZoneType.RADIUS.value, nullable=False)
    radius_km = Column(Integer, nullable=True)
    polygon_coordinates = Column(JSON, nullable=True)  # [{"lat": ..., "lng": ...}, ...]

    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    contractor_profile = relationship("ContractorProfile", back_populates="location")


class ServiceCategory(Base):
    __tablename__ = "service_categories"

    id = Column(String(36), primary_key=True, default=generate_id)
    name = Column(String(100), nullable=False)
    slug = Column(String(100), unique=True, index=True, nullable=False)
    description = Column(Text, nullable=True)
    icon_url = Column(String(500), nullable=True)
    parent_id = Column(String(36), ForeignKey("service_categories.id"), nullable=True)
    created_at = Column(DateTime, server_default=func.now())

    parent = relationship("ServiceCategory", remote_side=[id], back_populates="children")
    children = relationship("ServiceCategory", back_populates="parent")
    services = relationship("Service", back_populates="category")


class Service(Base):
    __tablename__ = "services"

    id = Column(String(36), primary_key=True, default=generate_id)
    # Owner's user id (not the contractor profile id)
    contractor_id = Column(String(36), ForeignKey("users.id"), nullable=False, index=True)
    category_id = Column(String(36), ForeignKey("service_categories.id"), nullable=False)
    title = Column(String(100), nullable=False)
    description = Column(Text, nullable=False)
    base_price = Column(Float, nullable=False)
    currency = Column(String(3), default="MXN", nullable=False)
    duration_minutes = Column(Integer, nullable=False)

    # Visibility workflow: DRAFT → ACTIVE ↔ PAUSED, any → ARCHIVED (terminal)
    visibility_status = Column(
        String(20), default=ServiceVisibilityStatus.DRAFT.value, nullable=False, index=True
    )
    last_published_at = Column(DateTime, nullable=True)
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    contractor = relationship("User", back_populates="services")
    category = relationship("ServiceCategory", back_populates="services")
    images = relationship(
        "ServiceImage",
        back_populates="service",
        order_by="ServiceImage.order",
        cascade="all, delete-orphan",
    )
    bookings = relationship("Booking", back_populates="service")


class ServiceImage(Base):
    __tablename__ = "service_images"

    id = Column(String(36), primary_key=True, default=generate_id)
    service_id = Column(String(36), ForeignKey("services.id"), nullable=False, index=True)
    s3_key = Column(String(500), nullable=False, unique=True)
    s3_url = Column(String(1000), nullable=False)
    order = Column(Integer, default=0, nullable=False)  # Display order (0-4)
    width = Column(Integer, nullable=True)
    height = Column(Integer, nullable=True)
    alt_text = Column(String(200), nullable=True)
    uploaded_at = Column(DateTime, server_default=func.now())

    service = relationship("Service", back_populates="images")


class Booking(Base):
    """Client booking of a service. Only read here to guard service archiving."""

    __tablename__ = "bookings"

    id = Column(String(36), primary_key=True, default=generate_id)
    service_id = Column(String(36), ForeignKey("services.id"), nullable=False, index=True)
    client_id = Column(String(36), ForeignKey("users.id"), nullable=False)
    status = Column(String(20), default=BookingStatus.PENDING.value, nullable=False, index=True)
    scheduled_at = Column(DateTime, nullable=True)
    created_at = Column(DateTime, server_default=func.now())

    service = relationship("Service", back_populates="bookings")
