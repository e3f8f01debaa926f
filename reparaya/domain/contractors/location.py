"""Location privacy filtering and service area geometry.

Street-level data and full-precision coordinates are only ever returned to the
profile owner and to admins. Everyone else gets city/state and coordinates
rounded to two decimals (roughly 1 km).
"""

import math
from typing import Optional, Union

from ...models import ContractorLocation, ContractorProfile, ServiceZoneType, User, UserRole
from ...utils.sanitization import sanitize_string
from .schemas import (
    Address,
    Coordinates,
    LocationResponse,
    PublicLocationResponse,
    ServiceZone,
)

EARTH_RADIUS_KM = 6371.0
PUBLIC_COORDINATE_DECIMALS = 2


def _coordinates(location: ContractorLocation, decimals: Optional[int] = None) -> Optional[Coordinates]:
    if location.base_latitude is None or location.base_longitude is None:
        return None
    latitude = float(location.base_latitude)
    longitude = float(location.base_longitude)
    if decimals is not None:
        latitude = round(latitude, decimals)
        longitude = round(longitude, decimals)
    return Coordinates(latitude=latitude, longitude=longitude)


def _service_zone(location: ContractorLocation) -> ServiceZone:
    return ServiceZone(type=ServiceZoneType(location.zone_type), radiusKm=location.radius_km)


def can_view_exact_location(profile: ContractorProfile, viewer: Optional[User]) -> bool:
    if viewer is None:
        return False
    return viewer.id == profile.user_id or viewer.role == UserRole.ADMIN.value


def to_full_location(location: ContractorLocation) -> LocationResponse:
    return LocationResponse(
        id=location.id,
        contractorProfileId=location.contractor_profile_id,
        address=Address(
            street=sanitize_string(location.street),
            exteriorNumber=sanitize_string(location.exterior_number),
            interiorNumber=sanitize_string(location.interior_number),
            neighborhood=sanitize_string(location.neighborhood),
            city=sanitize_string(location.city),
            state=sanitize_string(location.state),
            postalCode=location.postal_code,
            country=location.country,
        ),
        coordinates=_coordinates(location),
        normalizedAddress=sanitize_string(location.normalized_address),
        geocodingStatus=location.geocoding_status,
        serviceZone=_service_zone(location),
        createdAt=location.created_at,
        updatedAt=location.updated_at,
    )


def to_public_location(location: ContractorLocation) -> PublicLocationResponse:
    return PublicLocationResponse(
        city=sanitize_string(location.city),
        state=sanitize_string(location.state),
        coordinates=_coordinates(location, PUBLIC_COORDINATE_DECIMALS),
        serviceZone=_service_zone(location),
    )


def filter_location_for_viewer(
    location: ContractorLocation, viewer: Optional[User], profile: ContractorProfile
) -> Union[LocationResponse, PublicLocationResponse]:
    """
    Shape a stored location for whoever is asking.

    Args:
        location: Stored location with exact address and coordinates
        viewer: Requesting user, or None for anonymous requests
        profile: Contractor profile that owns the location

    Returns:
        Full view for the owner or an admin, coarse public view otherwise
    """
    if can_view_exact_location(profile, viewer):
        return to_full_location(location)
    return to_public_location(location)


def haversine_km(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """Great-circle distance between two points in kilometers"""
    phi1, phi2 = math.radians(lat1), math.radians(lat2)
    d_phi = math.radians(lat2 - lat1)
    d_lambda = math.radians(lon2 - lon1)
    a = math.sin(d_phi / 2) ** 2 + math.cos(phi1) * math.cos(phi2) * math.sin(d_lambda / 2) ** 2
    return 2 * EARTH_RADIUS_KM * math.asin(math.sqrt(a))


def is_within_service_area(location: ContractorLocation, latitude: float, longitude: float) -> bool:
    """True when the point falls inside the contractor's radius zone"""
    if location.base_latitude is None or location.base_longitude is None:
        return False
    if location.zone_type != ServiceZoneType.RADIUS.value or not location.radius_km:
        return False
    distance = haversine_km(location.base_latitude, location.base_longitude, latitude, longitude)
    return distance <= location.radius_km
