"""Category repository - Database operations for the service category tree"""

from typing import Optional

from sqlalchemy.orm import Session, selectinload

from ...models import ServiceCategory


class CategoryRepository:
    @staticmethod
    def get_root_categories(db: Session) -> list[ServiceCategory]:
        """Top-level categories with their children loaded"""
        return (
            db.query(ServiceCategory)
            .filter(ServiceCategory.parent_id.is_(None))
            .options(selectinload(ServiceCategory.children))
            .order_by(ServiceCategory.name)
            .all()
        )

    @staticmethod
    def get_category_by_id(db: Session, category_id: str) -> Optional[ServiceCategory]:
        return db.query(ServiceCategory).filter(ServiceCategory.id == category_id).first()
