"""Service image service - presigned uploads, confirmation and ordering"""

import logging
import uuid
from datetime import datetime
from typing import Optional

from sqlalchemy.orm import Session

from ...errors import ConflictError, ValidationFailedError
from ...models import Service, ServiceImage, ServiceVisibilityStatus, User, UserRole
from ...utils.image_storage import build_public_url, delete_object, generate_presigned_upload_url
from ...utils.sanitization import clean_text
from .errors import (
    ImageSizeLimitExceededError,
    InvalidMimeTypeError,
    MaxImagesExceededError,
    ServiceImageNotFoundError,
    ServiceNotFoundError,
    UnauthorizedServiceActionError,
)
from .repository import ServiceRepository
from .schemas import (
    ALLOWED_IMAGE_MIME_TYPES,
    CONTRACTOR_SERVICE_PREFIX,
    MAX_IMAGE_SIZE_BYTES,
    MAX_IMAGES_PER_SERVICE,
    MIME_TYPE_TO_EXTENSION,
    S3_KEY_PATTERN,
    ImageUploadConfirm,
)
from .state_machine import is_service_owner

logger = logging.getLogger(__name__)


def generate_image_key(contractor_id: str, service_id: str, mime_type: str) -> str:
    """contractor-services/{contractor_id}/{service_id}/{uuid}.{ext}"""
    extension = MIME_TYPE_TO_EXTENSION[mime_type]
    return f"{CONTRACTOR_SERVICE_PREFIX}{contractor_id}/{service_id}/{uuid.uuid4()}.{extension}"


def key_belongs_to_service(s3_key: str, contractor_id: str, service_id: str) -> bool:
    match = S3_KEY_PATTERN.match(s3_key)
    if not match:
        return False
    return match.group(1) == contractor_id and match.group(2) == service_id


class ServiceImageService:
    """Service layer for listing images"""

    def __init__(self, db: Session):
        self.db = db
        self.repo = ServiceRepository()

    def _get_owned_service(self, service_id: str, user: User, action: str) -> Service:
        service = self.repo.get_service_by_id(self.db, service_id)
        if not service:
            raise ServiceNotFoundError(service_id)
        if not is_service_owner(service, user):
            raise UnauthorizedServiceActionError(action)
        return service

    def request_upload_url(
        self, service_id: str, user: User, file_name: str, mime_type: str, file_size: int
    ) -> tuple[str, str, datetime]:
        """
        Validate an upload request and sign a PUT URL for it.

        Returns:
            Tuple of (presigned_url, s3_key, expires_at)
        """
        service = self._get_owned_service(service_id, user, "upload service image")

        if service.visibility_status == ServiceVisibilityStatus.ARCHIVED.value:
            raise ConflictError("Cannot add images to an archived service")

        if self.repo.count_images(self.db, service.id) >= MAX_IMAGES_PER_SERVICE:
            raise MaxImagesExceededError(service.id, MAX_IMAGES_PER_SERVICE)

        if mime_type not in ALLOWED_IMAGE_MIME_TYPES:
            raise InvalidMimeTypeError(mime_type, ALLOWED_IMAGE_MIME_TYPES)

        if file_size > MAX_IMAGE_SIZE_BYTES:
            raise ImageSizeLimitExceededError(MAX_IMAGE_SIZE_BYTES / (1024 * 1024), file_size)

        s3_key = generate_image_key(service.contractor_id, service.id, mime_type)
        url, expires_at = generate_presigned_upload_url(s3_key, mime_type)
        logger.info(f"📤 Upload URL issued for service {service.id} ({file_name})")
        return url, s3_key, expires_at

    def confirm_upload(self, service_id: str, user: User, data: ImageUploadConfirm) -> ServiceImage:
        """Record an uploaded object as the next image of the listing"""
        service = self._get_owned_service(service_id, user, "confirm service image")

        if service.visibility_status == ServiceVisibilityStatus.ARCHIVED.value:
            raise ConflictError("Cannot add images to an archived service")

        if not key_belongs_to_service(data.s3Key, service.contractor_id, service.id):
            raise ValidationFailedError("S3 key does not belong to this service")

        if self.repo.get_image_by_key(self.db, data.s3Key):
            raise ConflictError("This image has already been confirmed")

        current_count = self.repo.count_images(self.db, service.id)
        if current_count >= MAX_IMAGES_PER_SERVICE:
            raise MaxImagesExceededError(service.id, MAX_IMAGES_PER_SERVICE)

        return self.repo.create_image(
            self.db,
            service.id,
            s3_key=data.s3Key,
            s3_url=data.s3Url or build_public_url(data.s3Key),
            order=current_count,
            width=data.width,
            height=data.height,
            alt_text=clean_text(data.altText),
        )

    def delete_image(self, service_id: str, image_id: str, user: User) -> None:
        """Remove an image. An ACTIVE listing always keeps at least one."""
        service = self._get_owned_service(service_id, user, "delete service image")

        image = self.repo.get_image(self.db, service.id, image_id)
        if not image:
            raise ServiceImageNotFoundError(image_id)

        if (
            service.visibility_status == ServiceVisibilityStatus.ACTIVE.value
            and self.repo.count_images(self.db, service.id) <= 1
        ):
            raise ConflictError(
                "Cannot delete the last image of an active service. Pause it first."
            )

        s3_key = image.s3_key
        self.repo.delete_image(self.db, image)

        if not delete_object(s3_key):
            logger.warning(f"⚠️ Image {image_id} removed but object {s3_key} was left in storage")

    def list_images(self, service_id: str, viewer: Optional[User]) -> list[ServiceImage]:
        """Images in display order, visible wherever the listing itself is"""
        service = self.repo.get_service_by_id(self.db, service_id)
        if not service:
            raise ServiceNotFoundError(service_id)
        is_admin = viewer is not None and viewer.role == UserRole.ADMIN.value
        if (
            not is_service_owner(service, viewer)
            and not is_admin
            and service.visibility_status != ServiceVisibilityStatus.ACTIVE.value
        ):
            raise ServiceNotFoundError(service_id)
        return self.repo.get_images(self.db, service_id)
