"""User domain schemas"""

import re
from datetime import datetime
from typing import Optional
from urllib.parse import urlparse

from pydantic import BaseModel, Field, field_validator

from ...models import UserRole
from ...shared.validators import validate_postal_code

MAX_ADDRESSES_PER_USER = 10


class UserResponse(BaseModel):
    id: str
    email: str
    fullName: Optional[str] = None
    avatarUrl: Optional[str] = None
    phone: Optional[str] = None
    role: UserRole
    hasContractorProfile: bool = False
    createdAt: Optional[datetime] = None
    updatedAt: Optional[datetime] = None


class PublicUserResponse(BaseModel):
    """What anyone may see about a user: no email, phone or addresses"""

    id: str
    fullName: Optional[str] = None
    avatarUrl: Optional[str] = None


class RoleUpdate(BaseModel):
    role: UserRole


class UserProfileUpdate(BaseModel):
    fullName: Optional[str] = Field(None, min_length=1, max_length=200)
    phone: Optional[str] = None
    avatarUrl: Optional[str] = Field(None, max_length=500)

    @field_validator("fullName", "phone", "avatarUrl", mode="before")
    @classmethod
    def strip_text(cls, v):
        return v.strip() if isinstance(v, str) else v

    @field_validator("phone")
    @classmethod
    def validate_phone(cls, v):
        if v is not None and not re.fullmatch(r"\d{10}", v):
            raise ValueError("Phone must be exactly 10 digits")
        return v

    @field_validator("avatarUrl")
    @classmethod
    def validate_avatar_url(cls, v):
        if v is None:
            return v
        parsed = urlparse(v)
        if parsed.scheme not in ("http", "https") or not parsed.netloc:
            raise ValueError("Avatar URL must be a valid http(s) URL")
        return v


# ============================================================================
# ADDRESSES
# ============================================================================


class AddressCreate(BaseModel):
    addressLine1: str = Field(..., min_length=5, max_length=200)
    addressLine2: Optional[str] = Field(None, max_length=200)
    city: str = Field(..., min_length=2, max_length=100)
    state: str = Field(..., min_length=2, max_length=100)
    postalCode: str
    isDefault: bool = False

    @field_validator("addressLine1", "addressLine2", "city", "state", mode="before")
    @classmethod
    def strip_text(cls, v):
        return v.strip() if isinstance(v, str) else v

    @field_validator("postalCode")
    @classmethod
    def check_postal_code(cls, v):
        return validate_postal_code(v)


class AddressUpdate(BaseModel):
    addressLine1: Optional[str] = Field(None, min_length=5, max_length=200)
    addressLine2: Optional[str] = Field(None, max_length=200)
    city: Optional[str] = Field(None, min_length=2, max_length=100)
    state: Optional[str] = Field(None, min_length=2, max_length=100)
    postalCode: Optional[str] = None
    isDefault: Optional[bool] = None

    @field_validator("addressLine1", "addressLine2", "city", "state", mode="before")
    @classmethod
    def strip_text(cls, v):
        return v.strip() if isinstance(v, str) else v

    @field_validator("postalCode")
    @classmethod
    def check_postal_code(cls, v):
        return validate_postal_code(v)


class AddressResponse(BaseModel):
    id: str
    userId: str
    addressLine1: str
    addressLine2: Optional[str] = None
    city: str
    state: str
    postalCode: str
    country: str
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    isDefault: bool
    createdAt: Optional[datetime] = None
    updatedAt: Optional[datetime] = None
