"""User service - account profile, role changes and client addresses"""

import logging

from sqlalchemy.orm import Session

from ...errors import ForbiddenError, ValidationFailedError
from ...models import Address, User, UserRole
from ...utils.sanitization import clean_fields
from .errors import (
    AddressLimitReachedError,
    AddressNotFoundError,
    CannotDeleteLastAddressError,
    UserNotFoundError,
)
from .repository import UserRepository
from .schemas import MAX_ADDRESSES_PER_USER, AddressCreate, AddressUpdate, UserProfileUpdate

logger = logging.getLogger(__name__)

ADDRESS_TEXT_FIELDS = ["address_line1", "address_line2", "city", "state"]


class UserService:
    def __init__(self, db: Session):
        self.db = db
        self.repo = UserRepository()

    def get_public_profile(self, user_id: str) -> User:
        user = self.repo.get_by_id(self.db, user_id)
        if not user:
            raise UserNotFoundError(user_id)
        return user

    def update_profile(self, user: User, data: UserProfileUpdate) -> User:
        """
        Update name, phone and avatar.

        Fields left out of the request are untouched. An explicit null clears
        phone or avatar; the name can only be replaced.
        """
        provided = data.model_dump(exclude_unset=True)
        updates = {}
        if provided.get("fullName") is not None:
            updates["full_name"] = provided["fullName"]
        if "phone" in provided:
            updates["phone"] = provided["phone"]
        if "avatarUrl" in provided:
            updates["avatar_url"] = provided["avatarUrl"]

        if not updates:
            return user

        updates = clean_fields(updates, ["full_name"])
        logger.info(f"📝 Updating profile for user {user.id}: {sorted(updates)}")
        return self.repo.update_user(self.db, user, **updates)

    def update_role(self, user: User, role: UserRole) -> User:
        """
        Switch the caller to the CONTRACTOR role.

        Only CLIENT -> CONTRACTOR is allowed. Repeating it is a no-op.
        """
        if role != UserRole.CONTRACTOR:
            raise ValidationFailedError(
                "Only a change to the CONTRACTOR role can be requested",
                [f"role must be {UserRole.CONTRACTOR.value}"],
            )

        if user.role == UserRole.CONTRACTOR.value:
            return user

        if user.role != UserRole.CLIENT.value:
            raise ForbiddenError(f"Users with role {user.role} cannot become contractors")

        user.role = UserRole.CONTRACTOR.value
        self.db.commit()
        self.db.refresh(user)
        logger.info(f"🔄 User {user.id} switched to CONTRACTOR")
        return user

    # ------------------------------------------------------------------
    # Addresses
    # ------------------------------------------------------------------

    def list_addresses(self, user: User) -> list[Address]:
        return self.repo.list_addresses(self.db, user.id)

    def get_address(self, user: User, address_id: str) -> Address:
        address = self.repo.get_address(self.db, address_id, user.id)
        if not address:
            raise AddressNotFoundError(address_id)
        return address

    def create_address(self, user: User, data: AddressCreate) -> Address:
        """
        Add an address for the caller.

        The first address is always the default. Marking a new address as
        default clears the flag on the others.
        """
        existing = self.repo.count_addresses(self.db, user.id)
        if existing >= MAX_ADDRESSES_PER_USER:
            raise AddressLimitReachedError(MAX_ADDRESSES_PER_USER)

        is_default = data.isDefault or existing == 0
        if is_default:
            self.repo.clear_default(self.db, user.id)

        address_data = clean_fields(
            {
                "address_line1": data.addressLine1,
                "address_line2": data.addressLine2 or None,
                "city": data.city,
                "state": data.state,
                "postal_code": data.postalCode,
                "country": "MX",
                "is_default": is_default,
            },
            ADDRESS_TEXT_FIELDS,
        )
        address = self.repo.create_address(self.db, user.id, **address_data)
        logger.info(f"✅ Address {address.id} created for user {user.id} (default={is_default})")
        return address

    def update_address(self, user: User, address_id: str, data: AddressUpdate) -> Address:
        address = self.get_address(user, address_id)
        provided = data.model_dump(exclude_unset=True)

        updates = {}
        for field, column in (
            ("addressLine1", "address_line1"),
            ("city", "city"),
            ("state", "state"),
            ("postalCode", "postal_code"),
        ):
            if provided.get(field) is not None:
                updates[column] = provided[field]
        if "addressLine2" in provided:
            updates["address_line2"] = provided["addressLine2"] or None
        if provided.get("isDefault") is not None:
            updates["is_default"] = provided["isDefault"]
            if provided["isDefault"]:
                self.repo.clear_default(self.db, user.id, keep_id=address.id)

        updates = clean_fields(updates, ADDRESS_TEXT_FIELDS)
        return self.repo.update_address(self.db, address, **updates)

    def delete_address(self, user: User, address_id: str) -> None:
        """
        Remove an address. The last one cannot be removed; deleting the
        default promotes the oldest remaining address.
        """
        address = self.get_address(user, address_id)
        if self.repo.count_addresses(self.db, user.id) <= 1:
            raise CannotDeleteLastAddressError()

        was_default = address.is_default
        self.repo.delete_address(self.db, address)
        logger.info(f"🗑️ Address {address_id} deleted for user {user.id}")

        if was_default:
            remaining = self.repo.list_addresses(self.db, user.id)
            if remaining:
                self.repo.update_address(self.db, remaining[0], is_default=True)
