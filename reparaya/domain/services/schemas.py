"""Service listing schemas - Pydantic models for validation"""

import re
from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field, field_validator

from ...models import ServiceVisibilityStatus
from ...shared.validators import validate_price, validate_uuid_field

# Field limits shared by create/update validation and the publication check
TITLE_MIN_LENGTH = 5
TITLE_MAX_LENGTH = 100
DESCRIPTION_MIN_LENGTH = 50
DESCRIPTION_MAX_LENGTH = 2000
MIN_BASE_PRICE = 50.0
MAX_BASE_PRICE = 50000.0
MIN_DURATION_MINUTES = 30
MAX_DURATION_MINUTES = 480

# Image constraints
MAX_IMAGES_PER_SERVICE = 5
MAX_IMAGE_SIZE_BYTES = 10 * 1024 * 1024
ALLOWED_IMAGE_MIME_TYPES = ("image/jpeg", "image/png", "image/webp")
MIME_TYPE_TO_EXTENSION = {"image/jpeg": "jpg", "image/png": "png", "image/webp": "webp"}
CONTRACTOR_SERVICE_PREFIX = "contractor-services/"
S3_KEY_PATTERN = re.compile(
    r"^contractor-services/([a-f0-9-]+)/([a-f0-9-]+)/[a-f0-9-]+\.(jpg|jpeg|png|webp)$",
    re.IGNORECASE,
)
FILE_NAME_PATTERN = re.compile(r"^[a-zA-Z0-9_\-.]+$")


class ServiceCreate(BaseModel):
    """Schema for creating a new service (always starts as DRAFT)"""

    categoryId: str
    title: str = Field(..., min_length=TITLE_MIN_LENGTH, max_length=TITLE_MAX_LENGTH)
    description: str = Field(
        ..., min_length=DESCRIPTION_MIN_LENGTH, max_length=DESCRIPTION_MAX_LENGTH
    )
    basePrice: float = Field(..., ge=MIN_BASE_PRICE, le=MAX_BASE_PRICE)
    durationMinutes: int = Field(..., ge=MIN_DURATION_MINUTES, le=MAX_DURATION_MINUTES)

    @field_validator("title", "description", mode="before")
    @classmethod
    def strip_text(cls, v):
        return v.strip() if isinstance(v, str) else v

    @field_validator("categoryId")
    @classmethod
    def validate_category_id(cls, v):
        return validate_uuid_field(v, "categoryId")

    @field_validator("basePrice")
    @classmethod
    def validate_base_price(cls, v):
        return validate_price(v)


class ServiceUpdate(BaseModel):
    """Schema for updating a service. Status is never changed through here."""

    categoryId: Optional[str] = None
    title: Optional[str] = Field(None, min_length=TITLE_MIN_LENGTH, max_length=TITLE_MAX_LENGTH)
    description: Optional[str] = Field(
        None, min_length=DESCRIPTION_MIN_LENGTH, max_length=DESCRIPTION_MAX_LENGTH
    )
    basePrice: Optional[float] = Field(None, ge=MIN_BASE_PRICE, le=MAX_BASE_PRICE)
    durationMinutes: Optional[int] = Field(
        None, ge=MIN_DURATION_MINUTES, le=MAX_DURATION_MINUTES
    )

    @field_validator("title", "description", mode="before")
    @classmethod
    def strip_text(cls, v):
        return v.strip() if isinstance(v, str) else v

    @field_validator("categoryId")
    @classmethod
    def validate_category_id(cls, v):
        if v is None:
            return v
        return validate_uuid_field(v, "categoryId")

    @field_validator("basePrice")
    @classmethod
    def validate_base_price(cls, v):
        if v is None:
            return v
        return validate_price(v)


class ServiceSearchFilters(BaseModel):
    """Catalog filters. ``status`` and ``contractorId`` are honored for admins only."""

    category: Optional[str] = None
    minPrice: Optional[float] = Field(None, gt=0)
    maxPrice: Optional[float] = Field(None, gt=0)
    search: Optional[str] = Field(None, min_length=2, max_length=100)
    page: int = Field(1, ge=1)
    limit: int = Field(20, ge=1, le=100)
    status: Optional[ServiceVisibilityStatus] = None
    contractorId: Optional[str] = None


class CategorySummary(BaseModel):
    id: str
    name: str
    slug: str
    iconUrl: Optional[str] = None


class ServiceImageResponse(BaseModel):
    id: str
    serviceId: str
    s3Url: str
    s3Key: str
    order: int
    width: Optional[int] = None
    height: Optional[int] = None
    altText: Optional[str] = None
    uploadedAt: Optional[datetime] = None


class ContractorSummary(BaseModel):
    id: str
    businessName: Optional[str] = None
    verified: bool = False


class ServiceResponse(BaseModel):
    """Full service view (owner and admins)"""

    id: str
    contractorId: str
    categoryId: str
    title: str
    description: str
    basePrice: float
    currency: str
    durationMinutes: int
    visibilityStatus: ServiceVisibilityStatus
    lastPublishedAt: Optional[datetime] = None
    createdAt: Optional[datetime] = None
    updatedAt: Optional[datetime] = None
    category: Optional[CategorySummary] = None
    images: list[ServiceImageResponse] = []
    contractor: Optional[ContractorSummary] = None


class ServicePublicResponse(BaseModel):
    """Public catalog view (ACTIVE services only)"""

    id: str
    title: str
    categoryId: str
    category: Optional[CategorySummary] = None
    description: str
    basePrice: float
    currency: str
    durationMinutes: int
    visibilityStatus: ServiceVisibilityStatus
    images: list[ServiceImageResponse] = []
    contractor: Optional[ContractorSummary] = None
    lastPublishedAt: Optional[datetime] = None


class Pagination(BaseModel):
    page: int
    limit: int
    total: int
    pages: int


class ServiceListResponse(BaseModel):
    services: list[ServicePublicResponse]
    pagination: Pagination


class AdminServiceListResponse(BaseModel):
    services: list[ServiceResponse]
    pagination: Pagination


class ImageUploadUrlRequest(BaseModel):
    """Schema for requesting a presigned upload URL"""

    fileName: str = Field(..., min_length=1, max_length=255)
    mimeType: str
    fileSize: int = Field(..., gt=0)

    @field_validator("fileName")
    @classmethod
    def validate_file_name(cls, v):
        v = v.strip()
        if not FILE_NAME_PATTERN.match(v):
            raise ValueError(
                "File name may only contain letters, numbers, dots, dashes and underscores"
            )
        return v


class ImageUploadUrlResponse(BaseModel):
    presignedUrl: str
    s3Key: str
    expiresAt: datetime


class ImageUploadConfirm(BaseModel):
    """Schema for confirming an image that was PUT to storage"""

    s3Key: str
    s3Url: Optional[str] = Field(None, min_length=1, max_length=1000)
    width: Optional[int] = Field(None, ge=100, le=10000)
    height: Optional[int] = Field(None, ge=100, le=10000)
    altText: Optional[str] = Field(None, min_length=5, max_length=200)

    @field_validator("s3Key")
    @classmethod
    def validate_s3_key(cls, v):
        v = v.strip()
        if not S3_KEY_PATTERN.match(v):
            raise ValueError("Invalid S3 key format")
        return v

    @field_validator("s3Url")
    @classmethod
    def validate_s3_url(cls, v):
        if v is not None and not v.startswith("https://"):
            raise ValueError("S3 URL must use https")
        return v
