"""Service router - FastAPI endpoints for listings, transitions and images"""

import logging
import math
from typing import Optional

from fastapi import APIRouter, Depends, Query, Response
from sqlalchemy.orm import Session

from ...auth import get_current_user, get_optional_user
from ...database import get_db
from ...models import ContractorProfile, Service, ServiceImage, ServiceVisibilityStatus, User
from ...rate_limiter import create_rate_limiter
from ...utils.sanitization import sanitize_string
from .images import ServiceImageService
from .schemas import (
    CategorySummary,
    ContractorSummary,
    ImageUploadConfirm,
    ImageUploadUrlRequest,
    ImageUploadUrlResponse,
    Pagination,
    ServiceCreate,
    ServiceImageResponse,
    ServiceListResponse,
    ServicePublicResponse,
    ServiceResponse,
    ServiceSearchFilters,
    ServiceUpdate,
)
from .service import ServiceListingService, is_admin
from .state_machine import is_service_owner

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/services", tags=["Services"])

rate_limit_catalog = create_rate_limiter(limit=120, window_seconds=60, key_prefix="catalog")


def get_listing_service(db: Session = Depends(get_db)) -> ServiceListingService:
    """Dependency injection for ServiceListingService"""
    return ServiceListingService(db)


def get_image_service(db: Session = Depends(get_db)) -> ServiceImageService:
    """Dependency injection for ServiceImageService"""
    return ServiceImageService(db)


# ============================================================================
# RESPONSE BUILDERS
# ============================================================================


def to_image_response(image: ServiceImage) -> ServiceImageResponse:
    return ServiceImageResponse(
        id=image.id,
        serviceId=image.service_id,
        s3Url=image.s3_url,
        s3Key=image.s3_key,
        order=image.order,
        width=image.width,
        height=image.height,
        altText=sanitize_string(image.alt_text),
        uploadedAt=image.uploaded_at,
    )


def _category_summary(service: Service) -> Optional[CategorySummary]:
    if not service.category:
        return None
    return CategorySummary(
        id=service.category.id,
        name=service.category.name,
        slug=service.category.slug,
        iconUrl=service.category.icon_url,
    )


def _contractor_summary(profile: Optional[ContractorProfile]) -> Optional[ContractorSummary]:
    if not profile:
        return None
    return ContractorSummary(
        id=profile.id,
        businessName=sanitize_string(profile.business_name),
        verified=profile.verified,
    )


def to_service_response(
    service: Service, profile: Optional[ContractorProfile] = None
) -> ServiceResponse:
    return ServiceResponse(
        id=service.id,
        contractorId=service.contractor_id,
        categoryId=service.category_id,
        title=sanitize_string(service.title),
        description=sanitize_string(service.description),
        basePrice=service.base_price,
        currency=service.currency,
        durationMinutes=service.duration_minutes,
        visibilityStatus=service.visibility_status,
        lastPublishedAt=service.last_published_at,
        createdAt=service.created_at,
        updatedAt=service.updated_at,
        category=_category_summary(service),
        images=[to_image_response(i) for i in service.images],
        contractor=_contractor_summary(profile),
    )


def to_public_response(
    service: Service, profile: Optional[ContractorProfile] = None
) -> ServicePublicResponse:
    return ServicePublicResponse(
        id=service.id,
        title=sanitize_string(service.title),
        categoryId=service.category_id,
        category=_category_summary(service),
        description=sanitize_string(service.description),
        basePrice=service.base_price,
        currency=service.currency,
        durationMinutes=service.duration_minutes,
        visibilityStatus=service.visibility_status,
        images=[to_image_response(i) for i in service.images],
        contractor=_contractor_summary(profile),
        lastPublishedAt=service.last_published_at,
    )


def build_pagination(filters: ServiceSearchFilters, total: int) -> Pagination:
    return Pagination(
        page=filters.page,
        limit=filters.limit,
        total=total,
        pages=math.ceil(total / filters.limit) if total else 0,
    )


def search_filters(
    category: Optional[str] = Query(None),
    minPrice: Optional[float] = Query(None, gt=0),
    maxPrice: Optional[float] = Query(None, gt=0),
    search: Optional[str] = Query(None, min_length=2, max_length=100),
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    status: Optional[ServiceVisibilityStatus] = Query(None),
    contractorId: Optional[str] = Query(None),
) -> ServiceSearchFilters:
    """Query string -> ServiceSearchFilters"""
    return ServiceSearchFilters(
        category=category,
        minPrice=minPrice,
        maxPrice=maxPrice,
        search=search,
        page=page,
        limit=limit,
        status=status,
        contractorId=contractorId,
    )


# ============================================================================
# CATALOG & CRUD
# ============================================================================


@router.get("", response_model=ServiceListResponse)
async def search_services(
    filters: ServiceSearchFilters = Depends(search_filters),
    service: ServiceListingService = Depends(get_listing_service),
    _: None = Depends(rate_limit_catalog),
):
    """Public catalog of ACTIVE services, most recently published first"""
    services, total = service.search_active_services(filters)
    profiles = service.contractor_profiles_for(services)
    return ServiceListResponse(
        services=[to_public_response(s, profiles.get(s.contractor_id)) for s in services],
        pagination=build_pagination(filters, total),
    )


@router.post("", response_model=ServiceResponse, status_code=201)
async def create_service(
    data: ServiceCreate,
    current_user: User = Depends(get_current_user),
    service: ServiceListingService = Depends(get_listing_service),
):
    """Create a new DRAFT service"""
    return to_service_response(service.create_service(data, current_user))


@router.get("/me", response_model=list[ServiceResponse])
async def get_my_services(
    status: Optional[ServiceVisibilityStatus] = Query(None),
    current_user: User = Depends(get_current_user),
    service: ServiceListingService = Depends(get_listing_service),
):
    """All of the caller's services in every status"""
    return [
        to_service_response(s) for s in service.list_contractor_services(current_user, status)
    ]


@router.get("/{service_id}")
async def get_service(
    service_id: str,
    viewer: Optional[User] = Depends(get_optional_user),
    service: ServiceListingService = Depends(get_listing_service),
):
    """Full view for the owner and admins, public view for everyone else"""
    listing = service.get_service(service_id, viewer)
    profile = service.contractor_profiles_for([listing]).get(listing.contractor_id)
    if is_service_owner(listing, viewer) or is_admin(viewer):
        return to_service_response(listing, profile)
    return to_public_response(listing, profile)


@router.patch("/{service_id}", response_model=ServiceResponse)
async def update_service(
    service_id: str,
    data: ServiceUpdate,
    current_user: User = Depends(get_current_user),
    service: ServiceListingService = Depends(get_listing_service),
):
    return to_service_response(service.update_service(service_id, data, current_user))


@router.delete("/{service_id}", response_model=ServiceResponse)
async def archive_service(
    service_id: str,
    current_user: User = Depends(get_current_user),
    service: ServiceListingService = Depends(get_listing_service),
):
    """Soft delete (ARCHIVED). Blocked while bookings are in flight."""
    return to_service_response(service.archive(service_id, current_user))


# ============================================================================
# VISIBILITY TRANSITIONS
# ============================================================================


@router.patch("/{service_id}/publish", response_model=ServiceResponse)
async def publish_service(
    service_id: str,
    current_user: User = Depends(get_current_user),
    service: ServiceListingService = Depends(get_listing_service),
):
    return to_service_response(service.publish(service_id, current_user))


@router.patch("/{service_id}/pause", response_model=ServiceResponse)
async def pause_service(
    service_id: str,
    current_user: User = Depends(get_current_user),
    service: ServiceListingService = Depends(get_listing_service),
):
    return to_service_response(service.pause(service_id, current_user))


@router.patch("/{service_id}/unpublish", response_model=ServiceResponse)
async def unpublish_service(
    service_id: str,
    current_user: User = Depends(get_current_user),
    service: ServiceListingService = Depends(get_listing_service),
):
    return to_service_response(service.unpublish(service_id, current_user))


# ============================================================================
# IMAGES
# ============================================================================


@router.post("/{service_id}/images/upload-url", response_model=ImageUploadUrlResponse)
async def request_upload_url(
    service_id: str,
    data: ImageUploadUrlRequest,
    current_user: User = Depends(get_current_user),
    images: ServiceImageService = Depends(get_image_service),
):
    """Presigned PUT URL for uploading one image straight to storage"""
    url, s3_key, expires_at = images.request_upload_url(
        service_id, current_user, data.fileName, data.mimeType, data.fileSize
    )
    return ImageUploadUrlResponse(presignedUrl=url, s3Key=s3_key, expiresAt=expires_at)


@router.post("/{service_id}/images/confirm", response_model=ServiceImageResponse, status_code=201)
async def confirm_upload(
    service_id: str,
    data: ImageUploadConfirm,
    current_user: User = Depends(get_current_user),
    images: ServiceImageService = Depends(get_image_service),
):
    return to_image_response(images.confirm_upload(service_id, current_user, data))


@router.get("/{service_id}/images", response_model=list[ServiceImageResponse])
async def list_images(
    service_id: str,
    viewer: Optional[User] = Depends(get_optional_user),
    images: ServiceImageService = Depends(get_image_service),
):
    return [to_image_response(i) for i in images.list_images(service_id, viewer)]


@router.delete("/{service_id}/images/{image_id}", status_code=204)
async def delete_image(
    service_id: str,
    image_id: str,
    current_user: User = Depends(get_current_user),
    images: ServiceImageService = Depends(get_image_service),
):
    images.delete_image(service_id, image_id, current_user)
    return Response(status_code=204)
