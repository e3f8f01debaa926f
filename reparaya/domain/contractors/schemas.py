"""Contractor domain schemas - Pydantic models for validation"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field, field_validator

from ...models import GeocodingStatus, ServiceZoneType
from ...shared.validators import validate_postal_code

SUPPORTED_COUNTRIES = ("MX", "US", "CO", "PE", "AR")
MIN_RADIUS_KM = 1
MAX_RADIUS_KM = 100


# ============================================================================
# PROFILES
# ============================================================================


class ContractorProfileCreate(BaseModel):
    """Schema for creating a contractor profile (starts unverified)"""

    businessName: str = Field(..., min_length=2, max_length=100)
    description: str = Field(..., min_length=10, max_length=2000)
    specialties: list[str] = Field(default_factory=list, max_length=10)

    @field_validator("businessName", "description", mode="before")
    @classmethod
    def strip_text(cls, v):
        return v.strip() if isinstance(v, str) else v

    @field_validator("specialties")
    @classmethod
    def validate_specialties(cls, v):
        cleaned = [s.strip() for s in v if s and s.strip()]
        if any(len(s) > 50 for s in cleaned):
            raise ValueError("Each specialty must be at most 50 characters")
        return cleaned


class ContractorProfileUpdate(BaseModel):
    """Schema for updating an unverified contractor profile"""

    businessName: Optional[str] = Field(None, min_length=2, max_length=100)
    description: Optional[str] = Field(None, min_length=10, max_length=2000)
    specialties: Optional[list[str]] = Field(None, max_length=10)

    @field_validator("businessName", "description", mode="before")
    @classmethod
    def strip_text(cls, v):
        return v.strip() if isinstance(v, str) else v


class VerifyContractorRequest(BaseModel):
    verified: bool


class ContractorProfileResponse(BaseModel):
    """Full profile view for the owner and admins"""

    id: str
    userId: str
    businessName: str
    description: str
    specialties: list[str] = []
    verified: bool
    verificationDocuments: Optional[dict] = None
    createdAt: Optional[datetime] = None
    updatedAt: Optional[datetime] = None


class ContractorPublicProfileResponse(BaseModel):
    """Public profile view"""

    id: str
    businessName: str
    description: str
    specialties: list[str] = []
    verified: bool


# ============================================================================
# LOCATION
# ============================================================================


class LocationCreate(BaseModel):
    """Schema for registering a contractor's base address and service zone"""

    street: str = Field(..., min_length=3, max_length=200)
    exteriorNumber: str = Field(..., min_length=1, max_length=20)
    interiorNumber: Optional[str] = Field(None, max_length=20)
    neighborhood: Optional[str] = Field(None, max_length=100)
    city: str = Field(..., min_length=2, max_length=100)
    state: str = Field(..., min_length=2, max_length=100)
    postalCode: str
    country: str = "MX"
    zoneType: ServiceZoneType = ServiceZoneType.RADIUS
    radiusKm: int = Field(..., ge=MIN_RADIUS_KM, le=MAX_RADIUS_KM)

    @field_validator(
        "street", "exteriorNumber", "interiorNumber", "neighborhood", "city", "state", mode="before"
    )
    @classmethod
    def strip_text(cls, v):
        return v.strip() if isinstance(v, str) else v

    @field_validator("postalCode")
    @classmethod
    def validate_postal(cls, v):
        return validate_postal_code(v)

    @field_validator("country")
    @classmethod
    def validate_country(cls, v):
        v = v.strip().upper()
        if v not in SUPPORTED_COUNTRIES:
            raise ValueError(f"Country must be one of: {', '.join(SUPPORTED_COUNTRIES)}")
        return v

    @field_validator("zoneType")
    @classmethod
    def validate_zone_type(cls, v):
        if v != ServiceZoneType.RADIUS:
            raise ValueError("Only RADIUS service zones are supported")
        return v


class LocationUpdate(BaseModel):
    """Schema for updating a location. Every field is optional."""

    street: Optional[str] = Field(None, min_length=3, max_length=200)
    exteriorNumber: Optional[str] = Field(None, min_length=1, max_length=20)
    interiorNumber: Optional[str] = Field(None, max_length=20)
    neighborhood: Optional[str] = Field(None, max_length=100)
    city: Optional[str] = Field(None, min_length=2, max_length=100)
    state: Optional[str] = Field(None, min_length=2, max_length=100)
    postalCode: Optional[str] = None
    country: Optional[str] = None
    zoneType: Optional[ServiceZoneType] = None
    radiusKm: Optional[int] = Field(None, ge=MIN_RADIUS_KM, le=MAX_RADIUS_KM)

    @field_validator(
        "street", "exteriorNumber", "interiorNumber", "neighborhood", "city", "state", mode="before"
    )
    @classmethod
    def strip_text(cls, v):
        return v.strip() if isinstance(v, str) else v

    @field_validator("postalCode")
    @classmethod
    def validate_postal(cls, v):
        return validate_postal_code(v)

    @field_validator("country")
    @classmethod
    def validate_country(cls, v):
        if v is None:
            return v
        v = v.strip().upper()
        if v not in SUPPORTED_COUNTRIES:
            raise ValueError(f"Country must be one of: {', '.join(SUPPORTED_COUNTRIES)}")
        return v

    @field_validator("zoneType")
    @classmethod
    def validate_zone_type(cls, v):
        if v is not None and v != ServiceZoneType.RADIUS:
            raise ValueError("Only RADIUS service zones are supported")
        return v


class Coordinates(BaseModel):
    latitude: float
    longitude: float


class ServiceZone(BaseModel):
    type: ServiceZoneType
    radiusKm: Optional[int] = None


class Address(BaseModel):
    street: str
    exteriorNumber: str
    interiorNumber: Optional[str] = None
    neighborhood: Optional[str] = None
    city: str
    state: str
    postalCode: str
    country: str


class LocationResponse(BaseModel):
    """Full location view for the owner and admins"""

    id: str
    contractorProfileId: str
    address: Address
    coordinates: Optional[Coordinates] = None
    normalizedAddress: Optional[str] = None
    geocodingStatus: GeocodingStatus
    serviceZone: ServiceZone
    createdAt: Optional[datetime] = None
    updatedAt: Optional[datetime] = None


class PublicLocationResponse(BaseModel):
    """Coarse location view for everyone else (no street-level data)"""

    city: str
    state: str
    coordinates: Optional[Coordinates] = None
    serviceZone: ServiceZone


class CoverageResponse(BaseModel):
    contractorProfileId: str
    latitude: float
    longitude: float
    withinServiceArea: bool
