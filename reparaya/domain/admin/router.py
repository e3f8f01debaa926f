"""Admin router - listing moderation and contractor verification"""

from typing import Optional

from fastapi import APIRouter, Body, Depends, Query
from sqlalchemy.orm import Session

from ...auth import require_roles
from ...database import get_db
from ...models import User, UserRole
from ..contractors.router import get_profile_service, to_profile_response
from ..contractors.schemas import ContractorProfileResponse, VerifyContractorRequest
from ..contractors.service import ContractorProfileService
from ..services.router import build_pagination, search_filters, to_service_response
from ..services.schemas import AdminServiceListResponse, ServiceResponse, ServiceSearchFilters
from ..services.service import ServiceListingService

router = APIRouter(prefix="/admin", tags=["Admin"])

require_admin = require_roles(UserRole.ADMIN)


def get_listing_service(db: Session = Depends(get_db)) -> ServiceListingService:
    return ServiceListingService(db)


@router.get("/services", response_model=AdminServiceListResponse)
async def list_services(
    filters: ServiceSearchFilters = Depends(search_filters),
    admin: User = Depends(require_admin),
    service: ServiceListingService = Depends(get_listing_service),
):
    """Every listing in any status, filterable by status and contractor"""
    services, total = service.admin_list_services(admin, filters)
    profiles = service.contractor_profiles_for(services)
    return AdminServiceListResponse(
        services=[to_service_response(s, profiles.get(s.contractor_id)) for s in services],
        pagination=build_pagination(filters, total),
    )


@router.patch("/services/{service_id}/pause", response_model=ServiceResponse)
async def pause_service(
    service_id: str,
    reason: Optional[str] = Body(None, embed=True, max_length=500),
    admin: User = Depends(require_admin),
    service: ServiceListingService = Depends(get_listing_service),
):
    """Take an ACTIVE listing off the catalog"""
    return to_service_response(service.admin_pause(service_id, admin, reason))


@router.patch("/services/{service_id}/activate", response_model=ServiceResponse)
async def activate_service(
    service_id: str,
    admin: User = Depends(require_admin),
    service: ServiceListingService = Depends(get_listing_service),
):
    """Put a PAUSED listing back in the catalog"""
    return to_service_response(service.admin_activate(service_id, admin))


@router.get("/contractors", response_model=list[ContractorProfileResponse])
async def list_contractors(
    verified: Optional[bool] = Query(None),
    admin: User = Depends(require_admin),
    service: ContractorProfileService = Depends(get_profile_service),
):
    return [to_profile_response(p) for p in service.list_profiles(verified)]


@router.patch("/contractors/{profile_id}/verify", response_model=ContractorProfileResponse)
async def verify_contractor(
    profile_id: str,
    data: VerifyContractorRequest,
    admin: User = Depends(require_admin),
    service: ContractorProfileService = Depends(get_profile_service),
):
    """Approve (or revoke) a contractor profile"""
    return to_profile_response(service.verify_profile(admin, profile_id, data.verified))
