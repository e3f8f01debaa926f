"""Errors for user accounts and client addresses"""

from ...errors import ConflictError, NotFoundError


class UserNotFoundError(NotFoundError):
    def __init__(self, user_id: str):
        super().__init__(f"User {user_id} not found")


class AddressNotFoundError(NotFoundError):
    def __init__(self, address_id: str):
        super().__init__(f"Address {address_id} not found")


class CannotDeleteLastAddressError(ConflictError):
    def __init__(self):
        super().__init__("You cannot delete the only address on your profile")


class AddressLimitReachedError(ConflictError):
    def __init__(self, limit: int):
        super().__init__(f"An account can hold at most {limit} addresses")
