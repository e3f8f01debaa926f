import pytest

from reparaya.domain.services.errors import (
    InvalidStateTransitionError,
    PublicationRequirementsNotMetError,
)
from reparaya.domain.services.state_machine import (
    VALID_TRANSITIONS,
    can_transition,
    is_service_owner,
    transition_to,
    validate_publication_requirements,
)
from reparaya.models import ContractorProfile, Service, ServiceVisibilityStatus, User

DRAFT = ServiceVisibilityStatus.DRAFT
ACTIVE = ServiceVisibilityStatus.ACTIVE
PAUSED = ServiceVisibilityStatus.PAUSED
ARCHIVED = ServiceVisibilityStatus.ARCHIVED


def build_service(**overrides) -> Service:
    fields = {
        "id": "svc-1",
        "contractor_id": "user-1",
        "category_id": "cat-1",
        "title": "Instalación eléctrica",
        "description": "Instalación de contactos, apagadores y centros de carga residenciales.",
        "base_price": 850.0,
        "duration_minutes": 120,
        "visibility_status": DRAFT.value,
    }
    fields.update(overrides)
    return Service(**fields)


def verified_profile(verified: bool = True) -> ContractorProfile:
    return ContractorProfile(user_id="user-1", business_name="Eléctrica", description="x", verified=verified)


@pytest.mark.parametrize(
    "source,target",
    [
        (DRAFT, ACTIVE),
        (DRAFT, ARCHIVED),
        (ACTIVE, PAUSED),
        (ACTIVE, DRAFT),
        (ACTIVE, ARCHIVED),
        (PAUSED, ACTIVE),
        (PAUSED, DRAFT),
        (PAUSED, ARCHIVED),
    ],
)
def test_allowed_transitions(source, target):
    assert can_transition(source, target)
    assert can_transition(source.value, target.value)


@pytest.mark.parametrize("status", list(ServiceVisibilityStatus))
def test_same_state_is_not_a_transition(status):
    assert not can_transition(status, status)


@pytest.mark.parametrize("target", list(ServiceVisibilityStatus))
def test_archived_is_terminal(target):
    assert not can_transition(ARCHIVED, target)
    assert VALID_TRANSITIONS[ARCHIVED] == frozenset()


def test_draft_cannot_be_paused_directly():
    assert not can_transition(DRAFT, PAUSED)


def test_unknown_status_is_rejected():
    assert not can_transition("DELETED", ACTIVE)


def test_publishable_service_has_no_violations():
    assert validate_publication_requirements(build_service(), verified_profile(), 1) == []


def test_every_unmet_requirement_is_listed():
    service = build_service(
        title="Hey",
        description="Too short",
        category_id=None,
        base_price=10.0,
        duration_minutes=15,
    )

    violations = validate_publication_requirements(service, verified_profile(False), 0)

    assert len(violations) == 7
    joined = " ".join(violations)
    for fragment in ("verified", "image", "Title", "Description", "Category", "price", "Duration"):
        assert fragment in joined


def test_missing_profile_counts_as_unverified():
    violations = validate_publication_requirements(build_service(), None, 2)
    assert violations == ["Contractor profile must be verified"]


def test_price_with_more_than_two_decimals_is_rejected():
    violations = validate_publication_requirements(
        build_service(base_price=120.555), verified_profile(), 1
    )
    assert violations == ["Base price must have at most 2 decimal places"]


@pytest.mark.parametrize("price", [50.0, 50000.0, 199.99])
def test_price_bounds_are_inclusive(price):
    assert validate_publication_requirements(build_service(base_price=price), verified_profile(), 1) == []


@pytest.mark.parametrize("duration", [30, 480])
def test_duration_bounds_are_inclusive(duration):
    service = build_service(duration_minutes=duration)
    assert validate_publication_requirements(service, verified_profile(), 1) == []


def test_publish_fails_with_violations_and_leaves_service_untouched():
    service = build_service()

    with pytest.raises(PublicationRequirementsNotMetError) as exc_info:
        transition_to(service, ACTIVE, verified_profile(False), 0)

    assert exc_info.value.violations == [
        "Contractor profile must be verified",
        "At least one image is required",
    ]
    assert service.visibility_status == DRAFT.value
    assert service.last_published_at is None


def test_transition_returns_target_without_writing_it():
    service = build_service()

    result = transition_to(service, ACTIVE, verified_profile(), 3)

    assert result == ACTIVE
    assert service.visibility_status == DRAFT.value


def test_pause_has_no_requirements():
    service = build_service(visibility_status=ACTIVE.value, title="x")
    assert transition_to(service, PAUSED) == PAUSED


def test_invalid_transition_carries_both_states():
    service = build_service(visibility_status=ARCHIVED.value)

    with pytest.raises(InvalidStateTransitionError) as exc_info:
        transition_to(service, ACTIVE, verified_profile(), 1)

    assert exc_info.value.from_status == "ARCHIVED"
    assert exc_info.value.to_status == "ACTIVE"
    assert exc_info.value.extra() == {"fromStatus": "ARCHIVED", "toStatus": "ACTIVE"}


def test_same_state_transition_raises():
    service = build_service(visibility_status=ACTIVE.value)
    with pytest.raises(InvalidStateTransitionError, match="already ACTIVE"):
        transition_to(service, ACTIVE, verified_profile(), 1)


def test_table_is_checked_before_requirements():
    service = build_service(visibility_status=ARCHIVED.value)
    with pytest.raises(InvalidStateTransitionError):
        transition_to(service, ACTIVE, None, 0)


def test_is_service_owner():
    service = build_service()
    assert is_service_owner(service, User(id="user-1"))
    assert not is_service_owner(service, User(id="user-2"))
    assert not is_service_owner(service, None)
