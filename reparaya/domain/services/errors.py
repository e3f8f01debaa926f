"""Errors for contractor service listings"""

from typing import Any, Optional

from ...errors import ConflictError, ForbiddenError, NotFoundError, ValidationFailedError


class ServiceNotFoundError(NotFoundError):
    def __init__(self, identifier: str):
        super().__init__(f"Service {identifier} not found")


class ServiceImageNotFoundError(NotFoundError):
    def __init__(self, identifier: str):
        super().__init__(f"Service image {identifier} not found")


class UnauthorizedServiceActionError(ForbiddenError):
    def __init__(self, action: str):
        super().__init__(f"Unauthorized action: {action}")
        self.action = action


class InvalidStateTransitionError(ConflictError):
    def __init__(self, from_status: str, to_status: str, message: Optional[str] = None):
        super().__init__(message or f"Transition from {from_status} to {to_status} is not allowed")
        self.from_status = from_status
        self.to_status = to_status

    def extra(self) -> dict[str, Any]:
        return {"fromStatus": self.from_status, "toStatus": self.to_status}


class ActiveBookingsExistError(ConflictError):
    def __init__(self, service_id: str, active_count: int):
        super().__init__(
            f"Service {service_id} has {active_count} active booking(s) and cannot be archived"
        )
        self.active_count = active_count

    def extra(self) -> dict[str, Any]:
        return {"activeBookings": self.active_count}


class PublicationRequirementsNotMetError(ValidationFailedError):
    def __init__(self, violations: list[str]):
        super().__init__(
            f"Publication requirements not met: {', '.join(violations)}", violations
        )


class MaxImagesExceededError(ValidationFailedError):
    def __init__(self, service_id: str, max_images: int):
        super().__init__(
            f"Service {service_id} already has the maximum of {max_images} images"
        )


class ImageSizeLimitExceededError(ValidationFailedError):
    def __init__(self, max_size_mb: float, actual_size: int):
        super().__init__(
            f"File size {actual_size} bytes exceeds the {max_size_mb:g} MB limit"
        )


class InvalidMimeTypeError(ValidationFailedError):
    def __init__(self, mime_type: str, allowed: tuple[str, ...]):
        super().__init__(f"File type {mime_type} not allowed. Use: {', '.join(allowed)}")
