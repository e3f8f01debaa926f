"""Contractor repository - Database operations for profiles and locations"""

from typing import Optional

from sqlalchemy.orm import Session

from ...models import ContractorLocation, ContractorProfile


class ContractorRepository:
    """Repository for contractor profile and location database operations"""

    @staticmethod
    def get_profile_by_id(db: Session, profile_id: str) -> Optional[ContractorProfile]:
        return db.query(ContractorProfile).filter(ContractorProfile.id == profile_id).first()

    @staticmethod
    def get_profile_by_user_id(db: Session, user_id: str) -> Optional[ContractorProfile]:
        return db.query(ContractorProfile).filter(ContractorProfile.user_id == user_id).first()

    @staticmethod
    def list_profiles(db: Session, verified: Optional[bool] = None) -> list[ContractorProfile]:
        """List profiles, newest first, optionally by verification state"""
        query = db.query(ContractorProfile)
        if verified is not None:
            query = query.filter(ContractorProfile.verified == verified)
        return query.order_by(ContractorProfile.created_at.desc()).all()

    @staticmethod
    def create_profile(db: Session, user_id: str, **profile_data) -> ContractorProfile:
        profile = ContractorProfile(user_id=user_id, **profile_data)
        db.add(profile)
        db.commit()
        db.refresh(profile)
        return profile

    @staticmethod
    def update_profile(db: Session, profile: ContractorProfile, **updates) -> ContractorProfile:
        """Update a profile with provided fields"""
        for key, value in updates.items():
            if value is not None and hasattr(profile, key):
                setattr(profile, key, value)

        db.commit()
        db.refresh(profile)
        return profile

    @staticmethod
    def get_location(db: Session, profile_id: str) -> Optional[ContractorLocation]:
        return (
            db.query(ContractorLocation)
            .filter(ContractorLocation.contractor_profile_id == profile_id)
            .first()
        )

    @staticmethod
    def create_location(db: Session, profile_id: str, **location_data) -> ContractorLocation:
        location = ContractorLocation(contractor_profile_id=profile_id, **location_data)
        db.add(location)
        db.commit()
        db.refresh(location)
        return location

    @staticmethod
    def update_location(db: Session, location: ContractorLocation, **updates) -> ContractorLocation:
        """Apply updates as given. None clears a column (e.g. failed re-geocoding)."""
        for key, value in updates.items():
            if hasattr(location, key):
                setattr(location, key, value)

        db.commit()
        db.refresh(location)
        return location
