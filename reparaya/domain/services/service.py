"""Service listing service - Business logic around the visibility workflow"""

import logging
from datetime import datetime
from typing import Optional

from sqlalchemy.orm import Session

from ...errors import ConflictError, NotFoundError
from ...models import Service, ServiceVisibilityStatus, User, UserRole
from ...utils.sanitization import clean_text
from ..contractors.errors import ContractorProfileNotFoundError
from .errors import (
    ActiveBookingsExistError,
    InvalidStateTransitionError,
    ServiceNotFoundError,
    UnauthorizedServiceActionError,
)
from .repository import ServiceRepository
from .schemas import ServiceCreate, ServiceSearchFilters, ServiceUpdate
from .state_machine import is_service_owner, transition_to

logger = logging.getLogger(__name__)
audit_logger = logging.getLogger("reparaya.audit")

Status = ServiceVisibilityStatus


def is_admin(user: Optional[User]) -> bool:
    return user is not None and user.role == UserRole.ADMIN.value


class ServiceListingService:
    """Service layer for contractor service listings"""

    def __init__(self, db: Session):
        self.db = db
        self.repo = ServiceRepository()

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def _get_existing(self, service_id: str) -> Service:
        service = self.repo.get_service_by_id(self.db, service_id)
        if not service:
            raise ServiceNotFoundError(service_id)
        return service

    def get_service(self, service_id: str, viewer: Optional[User]) -> Service:
        """Owners and admins see any status, everyone else only ACTIVE"""
        service = self._get_existing(service_id)
        if is_service_owner(service, viewer) or is_admin(viewer):
            return service
        if service.visibility_status != Status.ACTIVE.value:
            raise ServiceNotFoundError(service_id)
        return service

    def list_contractor_services(self, user: User, status: Optional[Status] = None) -> list[Service]:
        return self.repo.get_services_by_contractor(
            self.db, user.id, status.value if status else None
        )

    def search_active_services(self, filters: ServiceSearchFilters) -> tuple[list[Service], int]:
        """Public catalog. Admin-only filters are ignored here."""
        public_filters = filters.model_copy(update={"status": None, "contractorId": None})
        return self.repo.search_services(self.db, public_filters, Status.ACTIVE.value)

    def admin_list_services(
        self, admin: User, filters: ServiceSearchFilters
    ) -> tuple[list[Service], int]:
        self._require_admin(admin, "list all services")
        status = filters.status.value if filters.status else None
        return self.repo.search_services(self.db, filters, status)

    def contractor_profiles_for(self, services: list[Service]) -> dict:
        return self.repo.get_contractor_profiles(self.db, [s.contractor_id for s in services])

    def image_count(self, service: Service) -> int:
        return self.repo.count_images(self.db, service.id)

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    def create_service(self, data: ServiceCreate, user: User) -> Service:
        """Create a DRAFT listing for the calling contractor"""
        if user.role != UserRole.CONTRACTOR.value:
            raise UnauthorizedServiceActionError("only contractors can create services")

        if not self.repo.get_contractor_profile(self.db, user.id):
            raise ContractorProfileNotFoundError(f"for user {user.id}")

        if not self.repo.category_exists(self.db, data.categoryId):
            raise NotFoundError(f"Category {data.categoryId} not found")

        logger.info(f"📥 Creating service for contractor {user.id}")
        return self.repo.create_service(
            self.db,
            user.id,
            category_id=data.categoryId,
            title=clean_text(data.title),
            description=clean_text(data.description),
            base_price=data.basePrice,
            currency="MXN",
            duration_minutes=data.durationMinutes,
            visibility_status=Status.DRAFT.value,
        )

    def update_service(self, service_id: str, data: ServiceUpdate, user: User) -> Service:
        """Edit listing fields. The visibility status never changes here."""
        service = self._get_existing(service_id)
        self._require_owner(service, user, "update service")

        if service.visibility_status == Status.ARCHIVED.value:
            raise ConflictError("Archived services cannot be edited")

        if data.categoryId is not None and not self.repo.category_exists(self.db, data.categoryId):
            raise NotFoundError(f"Category {data.categoryId} not found")

        updates = {}
        if data.categoryId is not None:
            updates["category_id"] = data.categoryId
        if data.title is not None:
            updates["title"] = clean_text(data.title)
        if data.description is not None:
            updates["description"] = clean_text(data.description)
        if data.basePrice is not None:
            updates["base_price"] = data.basePrice
        if data.durationMinutes is not None:
            updates["duration_minutes"] = data.durationMinutes

        return self.repo.update_service(self.db, service, **updates)

    # ------------------------------------------------------------------
    # Visibility transitions
    # ------------------------------------------------------------------

    def _require_owner(self, service: Service, user: User, action: str) -> None:
        if not is_service_owner(service, user):
            logger.warning(f"⚠️ User {user.id} tried to {action} on service {service.id}")
            raise UnauthorizedServiceActionError(action)

    def _require_admin(self, user: User, action: str) -> None:
        if not is_admin(user):
            raise UnauthorizedServiceActionError(action)

    def _apply_transition(self, service: Service, target: Status) -> Service:
        contractor = None
        image_count = 0
        if target == Status.ACTIVE:
            contractor = self.repo.get_contractor_profile(self.db, service.contractor_id)
            image_count = self.repo.count_images(self.db, service.id)

        new_status = transition_to(service, target, contractor, image_count)

        previous = service.visibility_status
        service.visibility_status = new_status.value
        if new_status == Status.ACTIVE:
            service.last_published_at = datetime.utcnow()
        self.db.commit()
        self.db.refresh(service)

        logger.info(f"🔄 Service {service.id}: {previous} -> {new_status.value}")
        return service

    def publish(self, service_id: str, user: User) -> Service:
        """DRAFT/PAUSED -> ACTIVE, gated by publication requirements"""
        service = self._get_existing(service_id)
        self._require_owner(service, user, "publish service")
        return self._apply_transition(service, Status.ACTIVE)

    def pause(self, service_id: str, user: User) -> Service:
        service = self._get_existing(service_id)
        self._require_owner(service, user, "pause service")
        return self._apply_transition(service, Status.PAUSED)

    def unpublish(self, service_id: str, user: User) -> Service:
        """ACTIVE/PAUSED -> DRAFT"""
        service = self._get_existing(service_id)
        self._require_owner(service, user, "unpublish service")
        return self._apply_transition(service, Status.DRAFT)

    def archive(self, service_id: str, user: User) -> Service:
        """Soft delete. Owner only, and only without bookings in flight."""
        service = self._get_existing(service_id)
        self._require_owner(service, user, "archive service")

        transition_to(service, Status.ARCHIVED)

        active_bookings = self.repo.count_active_bookings(self.db, service.id)
        if active_bookings:
            raise ActiveBookingsExistError(service.id, active_bookings)

        return self._apply_transition(service, Status.ARCHIVED)

    def admin_pause(self, service_id: str, admin: User, reason: Optional[str] = None) -> Service:
        service = self._get_existing(service_id)
        self._require_admin(admin, "pause service as admin")

        service = self._apply_transition(service, Status.PAUSED)
        audit_logger.info(
            f"admin={admin.id} action=pause_service service={service.id} reason={reason or '-'}"
        )
        return service

    def admin_activate(self, service_id: str, admin: User) -> Service:
        """PAUSED -> ACTIVE by an admin (requirements still apply)"""
        service = self._get_existing(service_id)
        self._require_admin(admin, "activate service as admin")

        if service.visibility_status != Status.PAUSED.value:
            raise InvalidStateTransitionError(
                service.visibility_status,
                Status.ACTIVE.value,
                "Admins can only reactivate PAUSED services",
            )

        service = self._apply_transition(service, Status.ACTIVE)
        audit_logger.info(f"admin={admin.id} action=activate_service service={service.id}")
        return service
