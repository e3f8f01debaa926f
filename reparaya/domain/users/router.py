"""User router - account, public profile and address endpoints"""

from fastapi import APIRouter, Depends, Response
from sqlalchemy.orm import Session

from ...auth import get_current_user
from ...database import get_db
from ...models import Address, User
from ...utils.sanitization import sanitize_string
from .schemas import (
    AddressCreate,
    AddressResponse,
    AddressUpdate,
    PublicUserResponse,
    RoleUpdate,
    UserProfileUpdate,
    UserResponse,
)
from .service import UserService

router = APIRouter(prefix="/users", tags=["Users"])


def get_user_service(db: Session = Depends(get_db)) -> UserService:
    """Dependency injection for UserService"""
    return UserService(db)


def to_user_response(user: User) -> UserResponse:
    return UserResponse(
        id=user.id,
        email=user.email,
        fullName=sanitize_string(user.full_name),
        avatarUrl=user.avatar_url,
        phone=user.phone,
        role=user.role,
        hasContractorProfile=user.contractor_profile is not None,
        createdAt=user.created_at,
        updatedAt=user.updated_at,
    )


def to_address_response(address: Address) -> AddressResponse:
    return AddressResponse(
        id=address.id,
        userId=address.user_id,
        addressLine1=sanitize_string(address.address_line1),
        addressLine2=sanitize_string(address.address_line2),
        city=sanitize_string(address.city),
        state=sanitize_string(address.state),
        postalCode=address.postal_code,
        country=address.country,
        latitude=address.latitude,
        longitude=address.longitude,
        isDefault=address.is_default,
        createdAt=address.created_at,
        updatedAt=address.updated_at,
    )


@router.get("/me", response_model=UserResponse)
async def get_me(current_user: User = Depends(get_current_user)):
    """Current account (provisioned on first authenticated request)"""
    return to_user_response(current_user)


@router.patch("/me", response_model=UserResponse)
async def update_me(
    data: UserProfileUpdate,
    current_user: User = Depends(get_current_user),
    service: UserService = Depends(get_user_service),
):
    return to_user_response(service.update_profile(current_user, data))


@router.patch("/me/role", response_model=UserResponse)
async def update_my_role(
    data: RoleUpdate,
    current_user: User = Depends(get_current_user),
    service: UserService = Depends(get_user_service),
):
    """Become a contractor"""
    return to_user_response(service.update_role(current_user, data.role))


@router.get("/{user_id}/public", response_model=PublicUserResponse)
async def get_public_user(user_id: str, service: UserService = Depends(get_user_service)):
    """Name and avatar only. No authentication required."""
    user = service.get_public_profile(user_id)
    return PublicUserResponse(id=user.id, fullName=sanitize_string(user.full_name), avatarUrl=user.avatar_url)


# ============================================================================
# ADDRESSES
# ============================================================================


@router.get("/me/addresses", response_model=list[AddressResponse])
async def list_my_addresses(
    current_user: User = Depends(get_current_user),
    service: UserService = Depends(get_user_service),
):
    """Caller's addresses, default first"""
    return [to_address_response(a) for a in service.list_addresses(current_user)]


@router.post("/me/addresses", response_model=AddressResponse, status_code=201)
async def create_my_address(
    data: AddressCreate,
    current_user: User = Depends(get_current_user),
    service: UserService = Depends(get_user_service),
):
    return to_address_response(service.create_address(current_user, data))


@router.get("/me/addresses/{address_id}", response_model=AddressResponse)
async def get_my_address(
    address_id: str,
    current_user: User = Depends(get_current_user),
    service: UserService = Depends(get_user_service),
):
    return to_address_response(service.get_address(current_user, address_id))


@router.patch("/me/addresses/{address_id}", response_model=AddressResponse)
async def update_my_address(
    address_id: str,
    data: AddressUpdate,
    current_user: User = Depends(get_current_user),
    service: UserService = Depends(get_user_service),
):
    return to_address_response(service.update_address(current_user, address_id, data))


@router.delete("/me/addresses/{address_id}", status_code=204)
async def delete_my_address(
    address_id: str,
    current_user: User = Depends(get_current_user),
    service: UserService = Depends(get_user_service),
):
    service.delete_address(current_user, address_id)
    return Response(status_code=204)
