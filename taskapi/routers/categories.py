from datetime import datetime, timezone
from typing import Literal, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query, status

from ..dependencies import get_category_service, get_current_user, public
from ..models import User
from ..schemas import CategoryCreate, CategoryList, CategoryOut, CategoryStats, CategoryUpdate
from ..services import CategoryService

router = APIRouter(prefix="/categories", tags=["Categories"])


@router.get("/test")
@public
async def categories_test():
    """Check that the categories module is reachable"""
    return {
        "success": True,
        "message": "Categories module is working",
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }


@router.post("", response_model=CategoryOut, status_code=status.HTTP_201_CREATED)
def create_category(payload: CategoryCreate,
                    current_user: User = Depends(get_current_user),
                    categories: CategoryService = Depends(get_category_service)):
    """Create a category for the current user"""
    return categories.create(payload.name, current_user.id,
                             description=payload.description, color=payload.color)


@router.get("", response_model=CategoryList)
def list_categories(
    search: Optional[str] = Query(None),
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    sort_by: Literal["name", "createdAt", "updatedAt"] = Query("createdAt", alias="sortBy"),
    sort_order: Literal["ASC", "DESC"] = Query("DESC", alias="sortOrder"),
    current_user: User = Depends(get_current_user),
    categories: CategoryService = Depends(get_category_service),
):
    """Get the caller's categories, one page at a time"""
    return categories.list(current_user.id, search=search, page=page, limit=limit,
                           sort_by=sort_by, sort_order=sort_order)


@router.get("/stats", response_model=CategoryStats)
def category_stats(current_user: User = Depends(get_current_user),
                   categories: CategoryService = Depends(get_category_service)):
    """Get category totals for the current user"""
    return categories.stats(current_user.id)


@router.get("/{category_id}", response_model=CategoryOut)
def get_category(category_id: UUID,
                 current_user: User = Depends(get_current_user),
                 categories: CategoryService = Depends(get_category_service)):
    """Get one category with its task count"""
    return categories.get(str(category_id), current_user.id)


@router.patch("/{category_id}", response_model=CategoryOut)
def update_category(category_id: UUID, payload: CategoryUpdate,
                    current_user: User = Depends(get_current_user),
                    categories: CategoryService = Depends(get_category_service)):
    """Change the name, description or color of a category"""
    return categories.update(str(category_id), payload.to_patch(), current_user.id)


@router.delete("/{category_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_category(category_id: UUID,
                    current_user: User = Depends(get_current_user),
                    categories: CategoryService = Depends(get_category_service)):
    """Delete a category, leaving its tasks uncategorized"""
    categories.remove(str(category_id), current_user.id)
