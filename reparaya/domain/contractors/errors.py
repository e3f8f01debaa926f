"""Errors for contractor profiles and locations"""

from ...errors import ConflictError, ForbiddenError, NotFoundError


class ContractorProfileNotFoundError(NotFoundError):
    def __init__(self, identifier: str):
        super().__init__(f"Contractor profile {identifier} not found")


class ContractorProfileAlreadyExistsError(ConflictError):
    def __init__(self, user_id: str):
        super().__init__(f"User {user_id} already has a contractor profile")


class InvalidVerificationStatusError(ConflictError):
    pass


class UnauthorizedContractorActionError(ForbiddenError):
    def __init__(self, action: str):
        super().__init__(f"Unauthorized action: {action}")


class LocationNotFoundError(NotFoundError):
    def __init__(self, contractor_profile_id: str):
        super().__init__(f"No location registered for contractor profile {contractor_profile_id}")


class LocationAlreadyExistsError(ConflictError):
    def __init__(self, contractor_profile_id: str):
        super().__init__(f"Contractor profile {contractor_profile_id} already has a location")
