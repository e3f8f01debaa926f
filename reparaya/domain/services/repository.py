"""Service repository - Database operations for listings, images and bookings"""

from typing import Optional

from sqlalchemy import func, or_
from sqlalchemy.orm import Session, selectinload

from ...models import (
    ACTIVE_BOOKING_STATUSES,
    Booking,
    ContractorProfile,
    Service,
    ServiceCategory,
    ServiceImage,
    ServiceVisibilityStatus,
)
from .schemas import ServiceSearchFilters


class ServiceRepository:
    """Repository for service listing database operations"""

    @staticmethod
    def get_service_by_id(db: Session, service_id: str) -> Optional[Service]:
        return (
            db.query(Service)
            .options(selectinload(Service.images), selectinload(Service.category))
            .filter(Service.id == service_id)
            .first()
        )

    @staticmethod
    def get_services_by_contractor(
        db: Session, contractor_id: str, status: Optional[str] = None
    ) -> list[Service]:
        """Listings owned by a user, newest first"""
        query = (
            db.query(Service)
            .options(selectinload(Service.images), selectinload(Service.category))
            .filter(Service.contractor_id == contractor_id)
        )
        if status:
            query = query.filter(Service.visibility_status == status)
        return query.order_by(Service.created_at.desc()).all()

    @staticmethod
    def search_services(
        db: Session, filters: ServiceSearchFilters, status: Optional[str] = None
    ) -> tuple[list[Service], int]:
        """
        Filtered, paginated listing query.

        Returns:
            Tuple of (services for the requested page, total matching rows)
        """
        query = db.query(Service)

        if status:
            query = query.filter(Service.visibility_status == status)
        if filters.contractorId:
            query = query.filter(Service.contractor_id == filters.contractorId)
        if filters.category:
            query = query.filter(Service.category_id == filters.category)
        if filters.minPrice is not None:
            query = query.filter(Service.base_price >= filters.minPrice)
        if filters.maxPrice is not None:
            query = query.filter(Service.base_price <= filters.maxPrice)
        if filters.search:
            pattern = f"%{filters.search.strip()}%"
            query = query.filter(
                or_(Service.title.ilike(pattern), Service.description.ilike(pattern))
            )

        total = query.with_entities(func.count(Service.id)).scalar() or 0

        if status == ServiceVisibilityStatus.ACTIVE.value:
            ordering = [Service.last_published_at.desc(), Service.created_at.desc()]
        else:
            ordering = [Service.created_at.desc()]

        services = (
            query.options(selectinload(Service.images), selectinload(Service.category))
            .order_by(*ordering)
            .offset((filters.page - 1) * filters.limit)
            .limit(filters.limit)
            .all()
        )
        return services, total

    @staticmethod
    def create_service(db: Session, contractor_id: str, **service_data) -> Service:
        service = Service(contractor_id=contractor_id, **service_data)
        db.add(service)
        db.commit()
        db.refresh(service)
        return service

    @staticmethod
    def update_service(db: Session, service: Service, **updates) -> Service:
        """Update a service with provided fields"""
        for key, value in updates.items():
            if value is not None and hasattr(service, key):
                setattr(service, key, value)

        db.commit()
        db.refresh(service)
        return service

    @staticmethod
    def category_exists(db: Session, category_id: str) -> bool:
        return (
            db.query(ServiceCategory.id).filter(ServiceCategory.id == category_id).first()
            is not None
        )

    @staticmethod
    def get_contractor_profile(db: Session, user_id: str) -> Optional[ContractorProfile]:
        return db.query(ContractorProfile).filter(ContractorProfile.user_id == user_id).first()

    @staticmethod
    def get_contractor_profiles(db: Session, user_ids: list[str]) -> dict[str, ContractorProfile]:
        if not user_ids:
            return {}
        profiles = (
            db.query(ContractorProfile).filter(ContractorProfile.user_id.in_(set(user_ids))).all()
        )
        return {p.user_id: p for p in profiles}

    @staticmethod
    def count_active_bookings(db: Session, service_id: str) -> int:
        """Bookings that still need the listing (pending, confirmed, in progress)"""
        return (
            db.query(func.count(Booking.id))
            .filter(Booking.service_id == service_id, Booking.status.in_(ACTIVE_BOOKING_STATUSES))
            .scalar()
            or 0
        )

    # Image Methods
    @staticmethod
    def count_images(db: Session, service_id: str) -> int:
        return (
            db.query(func.count(ServiceImage.id))
            .filter(ServiceImage.service_id == service_id)
            .scalar()
            or 0
        )

    @staticmethod
    def get_images(db: Session, service_id: str) -> list[ServiceImage]:
        return (
            db.query(ServiceImage)
            .filter(ServiceImage.service_id == service_id)
            .order_by(ServiceImage.order)
            .all()
        )

    @staticmethod
    def get_image(db: Session, service_id: str, image_id: str) -> Optional[ServiceImage]:
        return (
            db.query(ServiceImage)
            .filter(ServiceImage.id == image_id, ServiceImage.service_id == service_id)
            .first()
        )

    @staticmethod
    def get_image_by_key(db: Session, s3_key: str) -> Optional[ServiceImage]:
        return db.query(ServiceImage).filter(ServiceImage.s3_key == s3_key).first()

    @staticmethod
    def create_image(db: Session, service_id: str, **image_data) -> ServiceImage:
        image = ServiceImage(service_id=service_id, **image_data)
        db.add(image)
        db.commit()
        db.refresh(image)
        return image

    @staticmethod
    def delete_image(db: Session, image: ServiceImage) -> None:
        """Delete an image and close the gap in display order"""
        service_id = image.service_id
        db.delete(image)
        db.flush()

        remaining = (
            db.query(ServiceImage)
            .filter(ServiceImage.service_id == service_id)
            .order_by(ServiceImage.order)
            .all()
        )
        for position, remaining_image in enumerate(remaining):
            remaining_image.order = position
        db.commit()
