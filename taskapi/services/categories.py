import logging
from typing import Any, Dict, Optional

from ..errors import AppValidationError, ConflictError, NotFoundError
from ..models import Category, new_id, utcnow
from ..schemas import DEFAULT_CATEGORY_COLOR, CategoryList, CategoryOut, CategoryStats, PaginationMeta
from ..stores import CategoryStore
from ..stores.base import CATEGORY_SORT_FIELDS, SORT_ORDERS

logger = logging.getLogger(__name__)

MAX_LIMIT = 100


class CategoryService:
    def __init__(self, categories: CategoryStore):
        self.categories = categories

    def _get_owned(self, category_id: str, owner_id: str) -> Category:
        category = self.categories.get(category_id, owner_id)
        if category is None:
            raise NotFoundError("Category not found")
        return category

    def _ensure_unique(self, owner_id: str, name: str) -> None:
        if self.categories.find_by_name(owner_id, name) is not None:
            raise ConflictError("Category with this name already exists")

    def _count(self, category: Category) -> int:
        return self.categories.task_counts(category.user_id).get(category.id, 0)

    def create(self, name: str, owner_id: str, description: Optional[str] = None,
               color: Optional[str] = None) -> CategoryOut:
        self._ensure_unique(owner_id, name)
        now = utcnow()
        category = Category(
            id=new_id(),
            name=name,
            description=description,
            color=color or DEFAULT_CATEGORY_COLOR,
            user_id=owner_id,
            created_at=now,
            updated_at=now,
        )
        self.categories.add(category)
        logger.info("Created category %s for user %s", category.id, owner_id)
        return CategoryOut.from_entity(category)

    def list(self, owner_id: str, search: Optional[str] = None, page: int = 1, limit: int = 10,
             sort_by: str = "createdAt", sort_order: str = "DESC") -> CategoryList:
        if sort_by not in CATEGORY_SORT_FIELDS:
            raise AppValidationError(f"Cannot sort categories by {sort_by}")
        if sort_order not in SORT_ORDERS:
            raise AppValidationError(f"Sort order must be one of {', '.join(SORT_ORDERS)}")
        page = max(1, page)
        limit = min(MAX_LIMIT, max(1, limit))
        items, total = self.categories.list(owner_id, search, sort_by, sort_order,
                                            offset=(page - 1) * limit, limit=limit)
        counts = self.categories.task_counts(owner_id)
        return CategoryList(
            data=[CategoryOut.from_entity(c, counts.get(c.id, 0)) for c in items],
            meta=PaginationMeta.build(total, page, limit),
        )

    def get(self, category_id: str, owner_id: str) -> CategoryOut:
        category = self._get_owned(category_id, owner_id)
        return CategoryOut.from_entity(category, self._count(category))

    def update(self, category_id: str, patch: Dict[str, Any], owner_id: str) -> CategoryOut:
        category = self._get_owned(category_id, owner_id)

        new_name = patch.get("name")
        if new_name and new_name != category.name:
            existing = self.categories.find_by_name(owner_id, new_name)
            # Renaming only the letter case of the same category is allowed
            if existing is not None and existing.id != category.id:
                raise ConflictError("Category with this name already exists")

        for key, value in patch.items():
            setattr(category, key, value)
        category.updated_at = utcnow()
        self.categories.save(category)
        return CategoryOut.from_entity(category, self._count(category))

    def remove(self, category_id: str, owner_id: str) -> None:
        category = self._get_owned(category_id, owner_id)
        self.categories.delete(category)
        logger.info("Deleted category %s for user %s", category_id, owner_id)

    def stats(self, owner_id: str) -> CategoryStats:
        _, total_categories = self.categories.list(owner_id, None, "createdAt", "DESC", 0, 1)
        counts = self.categories.task_counts(owner_id)
        total_tasks = sum(counts.values())
        average = total_tasks / total_categories if total_categories else 0
        return CategoryStats(
            total_categories=total_categories,
            categories_with_tasks=len(counts),
            average_tasks_per_category=round(average, 2),
        )
