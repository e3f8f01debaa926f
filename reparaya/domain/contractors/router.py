"""Contractor router - FastAPI endpoints for profiles and locations"""

import logging
from typing import Optional, Union

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from ...auth import get_current_user, get_optional_user
from ...database import get_db
from ...models import ContractorLocation, ContractorProfile, User
from ...rate_limiter import create_rate_limiter
from ...services.geocoding import GeocodingClient, get_geocoding_client
from ...utils.sanitization import sanitize_list, sanitize_string
from .location import to_full_location
from .location_service import ContractorLocationService
from .schemas import (
    ContractorProfileCreate,
    ContractorProfileResponse,
    ContractorProfileUpdate,
    ContractorPublicProfileResponse,
    CoverageResponse,
    LocationCreate,
    LocationResponse,
    LocationUpdate,
    PublicLocationResponse,
)
from .service import ContractorProfileService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/contractors", tags=["Contractors"])

rate_limit_location = create_rate_limiter(limit=60, window_seconds=60, key_prefix="location_read")


def get_profile_service(db: Session = Depends(get_db)) -> ContractorProfileService:
    """Dependency injection for ContractorProfileService"""
    return ContractorProfileService(db)


def get_location_service(
    db: Session = Depends(get_db),
    geocoder: GeocodingClient = Depends(get_geocoding_client),
) -> ContractorLocationService:
    """Dependency injection for ContractorLocationService"""
    return ContractorLocationService(db, geocoder)


def to_profile_response(profile: ContractorProfile) -> ContractorProfileResponse:
    return ContractorProfileResponse(
        id=profile.id,
        userId=profile.user_id,
        businessName=sanitize_string(profile.business_name),
        description=sanitize_string(profile.description),
        specialties=sanitize_list(profile.specialties),
        verified=profile.verified,
        verificationDocuments=profile.verification_documents,
        createdAt=profile.created_at,
        updatedAt=profile.updated_at,
    )


# ============================================================================
# PROFILES
# ============================================================================


@router.post("/profile", response_model=ContractorProfileResponse, status_code=201)
async def create_profile(
    data: ContractorProfileCreate,
    current_user: User = Depends(get_current_user),
    service: ContractorProfileService = Depends(get_profile_service),
):
    """Create the caller's contractor profile"""
    return to_profile_response(service.create_profile(current_user, data))


@router.get("/profile/me", response_model=ContractorProfileResponse)
async def get_my_profile(
    current_user: User = Depends(get_current_user),
    service: ContractorProfileService = Depends(get_profile_service),
):
    return to_profile_response(service.get_my_profile(current_user))


@router.patch("/profile/me", response_model=ContractorProfileResponse)
async def update_my_profile(
    data: ContractorProfileUpdate,
    current_user: User = Depends(get_current_user),
    service: ContractorProfileService = Depends(get_profile_service),
):
    """Update the caller's profile (only while unverified)"""
    return to_profile_response(service.update_profile(current_user, data))


@router.get("/{profile_id}", response_model=ContractorPublicProfileResponse)
async def get_public_profile(
    profile_id: str,
    service: ContractorProfileService = Depends(get_profile_service),
):
    """Public profile of a contractor"""
    profile = service.get_public_profile(profile_id)
    return ContractorPublicProfileResponse(
        id=profile.id,
        businessName=sanitize_string(profile.business_name),
        description=sanitize_string(profile.description),
        specialties=sanitize_list(profile.specialties),
        verified=profile.verified,
    )


# ============================================================================
# LOCATION
# ============================================================================


@router.post("/{profile_id}/location", response_model=LocationResponse, status_code=201)
async def create_location(
    profile_id: str,
    data: LocationCreate,
    current_user: User = Depends(get_current_user),
    service: ContractorLocationService = Depends(get_location_service),
):
    """Register the contractor's base address and service radius"""
    location: ContractorLocation = await service.create_location(profile_id, data, current_user)
    return to_full_location(location)


@router.patch("/{profile_id}/location", response_model=LocationResponse)
async def update_location(
    profile_id: str,
    data: LocationUpdate,
    current_user: User = Depends(get_current_user),
    service: ContractorLocationService = Depends(get_location_service),
):
    location = await service.update_location(profile_id, data, current_user)
    return to_full_location(location)


@router.get(
    "/{profile_id}/location",
    response_model=Union[LocationResponse, PublicLocationResponse],
)
async def get_location(
    profile_id: str,
    viewer: Optional[User] = Depends(get_optional_user),
    service: ContractorLocationService = Depends(get_location_service),
    _: None = Depends(rate_limit_location),
):
    """Exact location for the owner and admins, approximate for everyone else"""
    return service.get_location(profile_id, viewer)


@router.get("/{profile_id}/location/coverage", response_model=CoverageResponse)
async def check_coverage(
    profile_id: str,
    lat: float = Query(..., ge=-90, le=90),
    lng: float = Query(..., ge=-180, le=180),
    service: ContractorLocationService = Depends(get_location_service),
    _: None = Depends(rate_limit_location),
):
    """Whether a point falls inside the contractor's service radius"""
    return CoverageResponse(
        contractorProfileId=profile_id,
        latitude=lat,
        longitude=lng,
        withinServiceArea=service.check_coverage(profile_id, lat, lng),
    )
