"""Visibility state machine for contractor service listings.

DRAFT -> ACTIVE <-> PAUSED, ACTIVE/PAUSED -> DRAFT, any -> ARCHIVED (terminal).

Functions here are pure: they inspect the listing and never touch it or the
session. Callers write the new status and commit.
"""

from typing import Optional

from ...models import ContractorProfile, Service, ServiceVisibilityStatus, User
from ...shared.validators import has_max_two_decimals
from .errors import InvalidStateTransitionError, PublicationRequirementsNotMetError
from .schemas import (
    DESCRIPTION_MAX_LENGTH,
    DESCRIPTION_MIN_LENGTH,
    MAX_BASE_PRICE,
    MAX_DURATION_MINUTES,
    MIN_BASE_PRICE,
    MIN_DURATION_MINUTES,
    TITLE_MAX_LENGTH,
    TITLE_MIN_LENGTH,
)

Status = ServiceVisibilityStatus

VALID_TRANSITIONS: dict[ServiceVisibilityStatus, frozenset] = {
    Status.DRAFT: frozenset({Status.ACTIVE, Status.ARCHIVED}),
    Status.ACTIVE: frozenset({Status.PAUSED, Status.DRAFT, Status.ARCHIVED}),
    Status.PAUSED: frozenset({Status.ACTIVE, Status.DRAFT, Status.ARCHIVED}),
    Status.ARCHIVED: frozenset(),
}


def can_transition(from_status, to_status) -> bool:
    """True when the table allows moving from ``from_status`` to ``to_status``"""
    try:
        source = Status(from_status)
        target = Status(to_status)
    except ValueError:
        return False
    return target in VALID_TRANSITIONS[source]


def validate_publication_requirements(
    service: Service, contractor: Optional[ContractorProfile], image_count: int
) -> list[str]:
    """
    Check everything a listing needs before it can become ACTIVE.

    Args:
        service: The listing being published
        contractor: The owner's contractor profile (None if missing)
        image_count: Number of confirmed images on the listing

    Returns:
        Human readable violations, empty when the listing is publishable
    """
    violations = []

    if contractor is None or not contractor.verified:
        violations.append("Contractor profile must be verified")

    if image_count < 1:
        violations.append("At least one image is required")

    title = (service.title or "").strip()
    if not TITLE_MIN_LENGTH <= len(title) <= TITLE_MAX_LENGTH:
        violations.append(
            f"Title must be between {TITLE_MIN_LENGTH} and {TITLE_MAX_LENGTH} characters"
        )

    description = (service.description or "").strip()
    if not DESCRIPTION_MIN_LENGTH <= len(description) <= DESCRIPTION_MAX_LENGTH:
        violations.append(
            f"Description must be between {DESCRIPTION_MIN_LENGTH} and "
            f"{DESCRIPTION_MAX_LENGTH} characters"
        )

    if not service.category_id:
        violations.append("Category is required")

    price = service.base_price
    if price is None or not MIN_BASE_PRICE <= price <= MAX_BASE_PRICE:
        violations.append(
            f"Base price must be between {MIN_BASE_PRICE:.2f} and {MAX_BASE_PRICE:.2f}"
        )
    elif not has_max_two_decimals(price):
        violations.append("Base price must have at most 2 decimal places")

    duration = service.duration_minutes
    if duration is None or not MIN_DURATION_MINUTES <= duration <= MAX_DURATION_MINUTES:
        violations.append(
            f"Duration must be between {MIN_DURATION_MINUTES} and "
            f"{MAX_DURATION_MINUTES} minutes"
        )

    return violations


def transition_to(
    service: Service,
    target,
    contractor: Optional[ContractorProfile] = None,
    image_count: int = 0,
) -> ServiceVisibilityStatus:
    """
    Validate a status change and return the status to write.

    Raises:
        InvalidStateTransitionError: The table forbids the move
        PublicationRequirementsNotMetError: Target is ACTIVE and requirements fail
    """
    current = Status(service.visibility_status)
    target = Status(target)

    if not can_transition(current, target):
        if current == Status.ARCHIVED:
            message = "Archived services cannot change status"
        elif current == target:
            message = f"Service is already {current.value}"
        else:
            message = None
        raise InvalidStateTransitionError(current.value, target.value, message)

    if target == Status.ACTIVE:
        violations = validate_publication_requirements(service, contractor, image_count)
        if violations:
            raise PublicationRequirementsNotMetError(violations)

    return target


def is_service_owner(service: Service, user: Optional[User]) -> bool:
    return user is not None and service.contractor_id == user.id
