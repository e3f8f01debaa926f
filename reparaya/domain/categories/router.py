"""Category router - public category tree"""

from typing import Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel
from sqlalchemy.orm import Session

from ...database import get_db
from ...errors import NotFoundError
from ...models import ServiceCategory
from ...rate_limiter import create_rate_limiter
from .repository import CategoryRepository

router = APIRouter(prefix="/categories", tags=["Categories"])

rate_limit_catalog = create_rate_limiter(limit=120, window_seconds=60, key_prefix="categories")


class CategoryResponse(BaseModel):
    id: str
    name: str
    slug: str
    description: Optional[str] = None
    iconUrl: Optional[str] = None
    parentId: Optional[str] = None
    children: list["CategoryResponse"] = []


def to_category_response(category: ServiceCategory, depth: int = 1) -> CategoryResponse:
    children = []
    if depth > 0:
        children = [
            to_category_response(child, depth - 1)
            for child in sorted(category.children, key=lambda c: c.name)
        ]
    return CategoryResponse(
        id=category.id,
        name=category.name,
        slug=category.slug,
        description=category.description,
        iconUrl=category.icon_url,
        parentId=category.parent_id,
        children=children,
    )


@router.get("", response_model=list[CategoryResponse])
async def list_categories(
    db: Session = Depends(get_db),
    _: None = Depends(rate_limit_catalog),
):
    """Root categories with their subcategories"""
    return [to_category_response(c) for c in CategoryRepository.get_root_categories(db)]


@router.get("/{category_id}", response_model=CategoryResponse)
async def get_category(category_id: str, db: Session = Depends(get_db)):
    category = CategoryRepository.get_category_by_id(db, category_id)
    if not category:
        raise NotFoundError(f"Category {category_id} not found")
    return to_category_response(category)
