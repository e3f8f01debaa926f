"""Base error hierarchy.

Domain code raises these; ``main.py`` maps them to HTTP responses in a single
exception handler so services never build ``HTTPException`` themselves.
"""

from typing import Any, Optional


class ReparaYaError(Exception):
    """Root of every expected application error"""

    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def extra(self) -> dict[str, Any]:
        """Additional fields merged into the JSON error body"""
        return {}


class NotFoundError(ReparaYaError):
    status_code = 404


class UnauthorizedError(ReparaYaError):
    """Missing or invalid credentials"""

    status_code = 401

    def __init__(self, message: str = "Not authenticated"):
        super().__init__(message)


class ForbiddenError(ReparaYaError):
    """Authenticated, but the role or ownership does not allow the action"""

    status_code = 403

    def __init__(self, message: str, required_role: Optional[str] = None):
        super().__init__(message)
        self.required_role = required_role

    def extra(self) -> dict[str, Any]:
        return {"requiredRole": self.required_role} if self.required_role else {}


class ConflictError(ReparaYaError):
    status_code = 409


class ValidationFailedError(ReparaYaError):
    status_code = 422

    def __init__(self, message: str, violations: Optional[list[str]] = None):
        super().__init__(message)
        self.violations = list(violations or [])

    def extra(self) -> dict[str, Any]:
        return {"violations": self.violations} if self.violations else {}


class ExternalServiceError(ReparaYaError):
    """An upstream dependency (geocoder, object storage) failed"""

    status_code = 502
