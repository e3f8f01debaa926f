import pytest

from reparaya.domain.contractors.location import (
    filter_location_for_viewer,
    haversine_km,
    is_within_service_area,
)
from reparaya.domain.contractors.schemas import LocationResponse, PublicLocationResponse
from reparaya.models import ContractorLocation, ContractorProfile, User

STREET_LEVEL_FIELDS = {
    "address",
    "street",
    "exteriorNumber",
    "interiorNumber",
    "neighborhood",
    "postalCode",
    "normalizedAddress",
}


def build_location(**overrides) -> ContractorLocation:
    fields = {
        "id": "loc-1",
        "contractor_profile_id": "profile-1",
        "street": "Av. Insurgentes Sur",
        "exterior_number": "1602",
        "interior_number": "4B",
        "neighborhood": "Crédito Constructor",
        "city": "Ciudad de México",
        "state": "CDMX",
        "postal_code": "03940",
        "country": "MX",
        "base_latitude": 19.365482,
        "base_longitude": -99.178231,
        "normalized_address": "Av. Insurgentes Sur 1602, Crédito Constructor, CDMX",
        "geocoding_status": "SUCCESS",
        "zone_type": "RADIUS",
        "radius_km": 15,
    }
    fields.update(overrides)
    return ContractorLocation(**fields)


@pytest.fixture
def profile():
    return ContractorProfile(id="profile-1", user_id="owner-1", verified=True)


def test_owner_gets_full_precision(profile):
    view = filter_location_for_viewer(build_location(), User(id="owner-1", role="CONTRACTOR"), profile)

    assert isinstance(view, LocationResponse)
    assert view.coordinates.latitude == 19.365482
    assert view.coordinates.longitude == -99.178231
    assert view.address.street == "Av. Insurgentes Sur"
    assert view.address.postalCode == "03940"
    assert view.normalizedAddress.startswith("Av. Insurgentes Sur")


def test_admin_gets_full_view(profile):
    view = filter_location_for_viewer(build_location(), User(id="admin-1", role="ADMIN"), profile)
    assert isinstance(view, LocationResponse)
    assert view.coordinates.latitude == 19.365482


@pytest.mark.parametrize(
    "viewer",
    [
        User(id="client-1", role="CLIENT"),
        User(id="someone-else", role="CONTRACTOR"),
        None,
    ],
    ids=["client", "other-contractor", "anonymous"],
)
def test_everyone_else_gets_coarse_view(profile, viewer):
    location = build_location()

    view = filter_location_for_viewer(location, viewer, profile)

    assert isinstance(view, PublicLocationResponse)
    payload = view.model_dump()
    assert STREET_LEVEL_FIELDS.isdisjoint(payload)
    assert payload["city"] == "Ciudad de México"
    assert payload["state"] == "CDMX"
    assert payload["coordinates"] == {
        "latitude": round(location.base_latitude, 2),
        "longitude": round(location.base_longitude, 2),
    }
    assert payload["serviceZone"] == {"type": "RADIUS", "radiusKm": 15}


def test_public_coordinates_have_two_decimals(profile):
    view = filter_location_for_viewer(build_location(), None, profile)
    assert view.coordinates.latitude == 19.37
    assert view.coordinates.longitude == -99.18


def test_not_geocoded_location_has_null_coordinates(profile):
    location = build_location(base_latitude=None, base_longitude=None, geocoding_status="FAILED")

    assert filter_location_for_viewer(location, None, profile).coordinates is None
    owner_view = filter_location_for_viewer(location, User(id="owner-1", role="CONTRACTOR"), profile)
    assert owner_view.coordinates is None
    assert owner_view.geocodingStatus == "FAILED"


def test_haversine_distance_cdmx_to_guadalajara():
    distance = haversine_km(19.4326, -99.1332, 20.6597, -103.3496)
    assert 455 < distance < 470


def test_point_inside_radius():
    # Roughly 5 km north of the base
    assert is_within_service_area(build_location(), 19.41, -99.178231)


def test_point_outside_radius():
    # Toluca, ~50 km away
    assert not is_within_service_area(build_location(), 19.2826, -99.6557)


def test_coverage_requires_geocoded_location():
    location = build_location(base_latitude=None, base_longitude=None)
    assert not is_within_service_area(location, 19.365482, -99.178231)
