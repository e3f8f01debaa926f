"""User repository - Database operations for accounts and addresses"""

from typing import Optional

from sqlalchemy.orm import Session

from ...models import Address, User


class UserRepository:
    """Repository for user and address database operations"""

    @staticmethod
    def get_by_id(db: Session, user_id: str) -> Optional[User]:
        return db.query(User).filter(User.id == user_id).first()

    @staticmethod
    def update_user(db: Session, user: User, **updates) -> User:
        for key, value in updates.items():
            if hasattr(user, key):
                setattr(user, key, value)

        db.commit()
        db.refresh(user)
        return user

    @staticmethod
    def list_addresses(db: Session, user_id: str) -> list[Address]:
        """Default address first, then oldest first"""
        return (
            db.query(Address)
            .filter(Address.user_id == user_id)
            .order_by(Address.is_default.desc(), Address.created_at.asc(), Address.id.asc())
            .all()
        )

    @staticmethod
    def count_addresses(db: Session, user_id: str) -> int:
        return db.query(Address).filter(Address.user_id == user_id).count()

    @staticmethod
    def get_address(db: Session, address_id: str, user_id: str) -> Optional[Address]:
        """Scoped to the owner so foreign ids look exactly like missing ones"""
        return db.query(Address).filter(Address.id == address_id, Address.user_id == user_id).first()

    @staticmethod
    def clear_default(db: Session, user_id: str, keep_id: Optional[str] = None) -> None:
        """Unset is_default on every address of the user except ``keep_id``. Does not commit."""
        query = db.query(Address).filter(Address.user_id == user_id, Address.is_default.is_(True))
        if keep_id:
            query = query.filter(Address.id != keep_id)
        query.update({Address.is_default: False}, synchronize_session="fetch")

    @staticmethod
    def create_address(db: Session, user_id: str, **address_data) -> Address:
        address = Address(user_id=user_id, **address_data)
        db.add(address)
        db.commit()
        db.refresh(address)
        return address

    @staticmethod
    def update_address(db: Session, address: Address, **updates) -> Address:
        for key, value in updates.items():
            if hasattr(address, key):
                setattr(address, key, value)

        db.commit()
        db.refresh(address)
        return address

    @staticmethod
    def delete_address(db: Session, address: Address) -> None:
        db.delete(address)
        db.commit()
