"""Contractor location service - Geocoded base address and service zone"""

import logging
from typing import Optional, Union

from sqlalchemy.orm import Session

from ...models import ContractorLocation, ContractorProfile, GeocodingStatus, User, UserRole
from ...services.geocoding import GeocodingClient, GeocodingError
from ...utils.sanitization import clean_fields
from .errors import (
    ContractorProfileNotFoundError,
    InvalidVerificationStatusError,
    LocationAlreadyExistsError,
    LocationNotFoundError,
    UnauthorizedContractorActionError,
)
from .location import filter_location_for_viewer, is_within_service_area
from .repository import ContractorRepository
from .schemas import LocationCreate, LocationResponse, LocationUpdate, PublicLocationResponse

logger = logging.getLogger(__name__)

ADDRESS_TEXT_FIELDS = ["street", "exterior_number", "interior_number", "neighborhood", "city", "state"]

# Changes to these trigger re-geocoding
GEOCODED_FIELDS = ("street", "exterior_number", "city", "state", "postal_code", "country")


def format_address(fields: dict) -> str:
    """Build the free-form search text sent to the geocoder"""
    street = " ".join(p for p in (fields.get("street"), fields.get("exterior_number")) if p)
    locality = " ".join(p for p in (fields.get("state"), fields.get("postal_code")) if p)
    parts = [street, fields.get("neighborhood"), fields.get("city"), locality, fields.get("country")]
    return ", ".join(p for p in parts if p)


class ContractorLocationService:
    """Service layer for contractor location business logic"""

    def __init__(self, db: Session, geocoder: GeocodingClient):
        self.db = db
        self.geocoder = geocoder
        self.repo = ContractorRepository()

    def _get_profile(self, profile_id: str) -> ContractorProfile:
        profile = self.repo.get_profile_by_id(self.db, profile_id)
        if not profile:
            raise ContractorProfileNotFoundError(profile_id)
        return profile

    def _get_location(self, profile_id: str) -> ContractorLocation:
        location = self.repo.get_location(self.db, profile_id)
        if not location:
            raise LocationNotFoundError(profile_id)
        return location

    async def _geocode(self, profile_id: str, address_fields: dict) -> dict:
        """Geocode an address. Failures are recorded, never raised."""
        try:
            result = await self.geocoder.geocode(
                format_address(address_fields), (address_fields.get("country") or "").lower() or None
            )
        except GeocodingError as e:
            logger.warning(f"⚠️ Geocoding failed for contractor profile {profile_id}: {e.message}")
            return {
                "base_latitude": None,
                "base_longitude": None,
                "normalized_address": None,
                "geocoding_status": GeocodingStatus.FAILED.value,
            }

        logger.info(f"✅ Geocoded contractor profile {profile_id} (relevance {result.relevance:.2f})")
        return {
            "base_latitude": result.latitude,
            "base_longitude": result.longitude,
            "normalized_address": result.normalized_address,
            "geocoding_status": GeocodingStatus.SUCCESS.value,
        }

    async def create_location(
        self, profile_id: str, data: LocationCreate, user: User
    ) -> ContractorLocation:
        """Register the base location of an unverified profile"""
        profile = self._get_profile(profile_id)

        if profile.user_id != user.id:
            raise UnauthorizedContractorActionError("only the profile owner can create its location")

        if profile.verified:
            raise InvalidVerificationStatusError(
                "Locations can only be created while the profile is not yet verified"
            )

        if self.repo.get_location(self.db, profile_id):
            raise LocationAlreadyExistsError(profile_id)

        address = {
            "street": data.street,
            "exterior_number": data.exteriorNumber,
            "interior_number": data.interiorNumber,
            "neighborhood": data.neighborhood,
            "city": data.city,
            "state": data.state,
            "postal_code": data.postalCode,
            "country": data.country,
        }
        geocoded = await self._geocode(profile_id, address)

        return self.repo.create_location(
            self.db,
            profile_id,
            **clean_fields(address, ADDRESS_TEXT_FIELDS),
            **geocoded,
            zone_type=data.zoneType.value,
            radius_km=data.radiusKm,
        )

    async def update_location(
        self, profile_id: str, data: LocationUpdate, user: User
    ) -> ContractorLocation:
        """Update address and/or zone. Verified profiles can only be edited by admins."""
        profile = self._get_profile(profile_id)

        is_owner = profile.user_id == user.id
        is_admin = user.role == UserRole.ADMIN.value
        if not is_owner and not is_admin:
            raise UnauthorizedContractorActionError(
                "only the profile owner or an admin can edit the location"
            )

        if profile.verified and not is_admin:
            raise InvalidVerificationStatusError(
                "Only an admin can edit the location of a verified profile"
            )

        location = self._get_location(profile_id)

        field_map = {
            "street": data.street,
            "exterior_number": data.exteriorNumber,
            "interior_number": data.interiorNumber,
            "neighborhood": data.neighborhood,
            "city": data.city,
            "state": data.state,
            "postal_code": data.postalCode,
            "country": data.country,
        }
        updates = {key: value for key, value in field_map.items() if value is not None}
        updates = clean_fields(updates, ADDRESS_TEXT_FIELDS)

        address_changed = any(
            key in updates and updates[key] != getattr(location, key) for key in GEOCODED_FIELDS
        )
        if address_changed:
            merged = {key: getattr(location, key) for key in field_map}
            merged.update(updates)
            updates.update(await self._geocode(profile_id, merged))

        if data.zoneType is not None:
            updates["zone_type"] = data.zoneType.value
        if data.radiusKm is not None:
            updates["radius_km"] = data.radiusKm

        return self.repo.update_location(self.db, location, **updates)

    def get_location(
        self, profile_id: str, viewer: Optional[User]
    ) -> Union[LocationResponse, PublicLocationResponse]:
        """Location shaped for the viewer's privileges"""
        profile = self._get_profile(profile_id)
        location = self._get_location(profile_id)
        return filter_location_for_viewer(location, viewer, profile)

    def check_coverage(self, profile_id: str, latitude: float, longitude: float) -> bool:
        self._get_profile(profile_id)
        return is_within_service_area(self._get_location(profile_id), latitude, longitude)
