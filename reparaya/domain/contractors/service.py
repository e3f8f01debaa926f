"""Contractor profile service - Business logic for profiles and verification"""

import logging
from typing import Optional

from sqlalchemy.orm import Session

from ...models import ContractorProfile, User, UserRole
from ...utils.sanitization import clean_fields
from .errors import (
    ContractorProfileAlreadyExistsError,
    ContractorProfileNotFoundError,
    InvalidVerificationStatusError,
    UnauthorizedContractorActionError,
)
from .repository import ContractorRepository
from .schemas import ContractorProfileCreate, ContractorProfileUpdate

logger = logging.getLogger(__name__)
audit_logger = logging.getLogger("reparaya.audit")


class ContractorProfileService:
    """Service layer for contractor profile business logic"""

    def __init__(self, db: Session):
        self.db = db
        self.repo = ContractorRepository()

    def get_profile(self, profile_id: str) -> ContractorProfile:
        profile = self.repo.get_profile_by_id(self.db, profile_id)
        if not profile:
            raise ContractorProfileNotFoundError(profile_id)
        return profile

    def get_my_profile(self, user: User) -> ContractorProfile:
        profile = self.repo.get_profile_by_user_id(self.db, user.id)
        if not profile:
            raise ContractorProfileNotFoundError(f"for user {user.id}")
        return profile

    def get_public_profile(self, profile_id: str) -> ContractorProfile:
        return self.get_profile(profile_id)

    def create_profile(self, user: User, data: ContractorProfileCreate) -> ContractorProfile:
        """Create the caller's contractor profile (one per user, starts unverified)"""
        if user.role != UserRole.CONTRACTOR.value:
            raise UnauthorizedContractorActionError("only contractors can create a profile")

        if self.repo.get_profile_by_user_id(self.db, user.id):
            raise ContractorProfileAlreadyExistsError(user.id)

        logger.info(f"📥 Creating contractor profile for user_id: {user.id}")
        profile_data = clean_fields(
            {
                "business_name": data.businessName,
                "description": data.description,
                "specialties": data.specialties,
            },
            ["business_name", "description", "specialties"],
        )
        return self.repo.create_profile(self.db, user.id, verified=False, **profile_data)

    def update_profile(self, user: User, data: ContractorProfileUpdate) -> ContractorProfile:
        """Update the caller's profile. Verified profiles are locked."""
        profile = self.get_my_profile(user)
        if profile.verified:
            raise InvalidVerificationStatusError(
                "Verified profiles cannot be edited. Contact support to request changes."
            )

        updates = {}
        if data.businessName is not None:
            updates["business_name"] = data.businessName
        if data.description is not None:
            updates["description"] = data.description
        if data.specialties is not None:
            updates["specialties"] = data.specialties

        updates = clean_fields(updates, ["business_name", "description", "specialties"])
        return self.repo.update_profile(self.db, profile, **updates)

    def verify_profile(self, admin: User, profile_id: str, verified: bool) -> ContractorProfile:
        """Set the verification flag. Admins cannot verify their own profile."""
        if admin.role != UserRole.ADMIN.value:
            raise UnauthorizedContractorActionError("only admins can verify contractors")

        profile = self.get_profile(profile_id)
        if profile.user_id == admin.id:
            raise UnauthorizedContractorActionError("admins cannot verify their own profile")

        profile.verified = verified
        self.db.commit()
        self.db.refresh(profile)

        audit_logger.info(
            f"admin={admin.id} action=verify_contractor profile={profile.id} verified={verified}"
        )
        return profile

    def list_profiles(self, verified: Optional[bool] = None) -> list[ContractorProfile]:
        return self.repo.list_profiles(self.db, verified)
