import logging
from datetime import datetime
from typing import Any, Dict, Iterable, List, Optional, Set, Tuple

from sqlalchemy import delete, func, or_, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from ..errors import ConflictError
from ..models import Category, Task, TaskPriority, TaskStatus, User
from .base import CategoryStore, TaskStore, UserStore

logger = logging.getLogger(__name__)

_CATEGORY_COLUMNS = {
    "name": Category.name,
    "createdAt": Category.created_at,
    "updatedAt": Category.updated_at,
}


def _like(term: str) -> str:
    escaped = term.lower().replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
    return f"%{escaped}%"


class SqlUserStore(UserStore):
    def __init__(self, db: Session):
        self.db = db

    def get_by_id(self, user_id: str) -> Optional[User]:
        return self.db.get(User, user_id)

    def get_by_email(self, email: str) -> Optional[User]:
        return self.db.execute(select(User).where(User.email == email)).scalars().first()

    def add(self, user: User) -> User:
        self.db.add(user)
        try:
            self.db.commit()
        except IntegrityError:
            # Lost a race with a concurrent registration for the same email
            self.db.rollback()
            raise ConflictError("User with this email already exists")
        return user


class SqlCategoryStore(CategoryStore):
    def __init__(self, db: Session):
        self.db = db

    def get(self, category_id: str, owner_id: str) -> Optional[Category]:
        stmt = select(Category).where(Category.id == category_id, Category.user_id == owner_id)
        return self.db.execute(stmt).scalars().first()

    def find_by_name(self, owner_id: str, name: str) -> Optional[Category]:
        stmt = select(Category).where(
            Category.user_id == owner_id,
            func.lower(Category.name) == name.lower(),
        )
        return self.db.execute(stmt).scalars().first()

    def list(self, owner_id: str, search: Optional[str], sort_by: str, sort_order: str,
             offset: int, limit: int) -> Tuple[List[Category], int]:
        conditions = [Category.user_id == owner_id]
        if search:
            conditions.append(func.lower(Category.name).like(_like(search), escape="\\"))

        total = self.db.execute(
            select(func.count()).select_from(Category).where(*conditions)
        ).scalar_one()
        if offset >= total:
            return [], total

        column = _CATEGORY_COLUMNS.get(sort_by, Category.created_at)
        ordering = column.asc() if sort_order == "ASC" else column.desc()
        stmt = (select(Category).where(*conditions)
                .order_by(ordering, Category.id)
                .offset(offset).limit(limit))
        return list(self.db.execute(stmt).scalars().all()), total

    def task_counts(self, owner_id: str) -> Dict[str, int]:
        stmt = (select(Task.category_id, func.count(Task.id))
                .where(Task.user_id == owner_id, Task.category_id.is_not(None))
                .group_by(Task.category_id))
        return {category_id: count for category_id, count in self.db.execute(stmt).all()}

    def add(self, category: Category) -> Category:
        self.db.add(category)
        self.db.commit()
        return category

    def save(self, category: Category) -> Category:
        self.db.commit()
        return category

    def delete(self, category: Category) -> None:
        # Not every backend enforces ON DELETE SET NULL, so unset references explicitly
        self.db.execute(
            update(Task)
            .where(Task.category_id == category.id)
            .values(category_id=None)
            .execution_options(synchronize_session=False)
        )
        self.db.delete(category)
        self.db.commit()


class SqlTaskStore(TaskStore):
    def __init__(self, db: Session):
        self.db = db

    def get(self, task_id: str, owner_id: str) -> Optional[Task]:
        stmt = select(Task).where(Task.id == task_id, Task.user_id == owner_id)
        return self.db.execute(stmt).scalars().first()

    def list(self, owner_id: str, status: Optional[TaskStatus], priority: Optional[TaskPriority],
             category_id: Optional[str], search: Optional[str],
             offset: int, limit: int) -> Tuple[List[Task], int]:
        conditions = [Task.user_id == owner_id]
        if status:
            conditions.append(Task.status == status)
        if priority:
            conditions.append(Task.priority == priority)
        if category_id:
            conditions.append(Task.category_id == category_id)
        if search:
            pattern = _like(search)
            conditions.append(or_(
                func.lower(Task.title).like(pattern, escape="\\"),
                func.lower(Task.description).like(pattern, escape="\\"),
            ))

        total = self.db.execute(
            select(func.count()).select_from(Task).where(*conditions)
        ).scalar_one()
        if offset >= total:
            return [], total
        stmt = (select(Task).where(*conditions)
                .order_by(Task.created_at.desc(), Task.id)
                .offset(offset).limit(limit))
        return list(self.db.execute(stmt).scalars().all()), total

    def owned_ids(self, owner_id: str, task_ids: Iterable[str]) -> Set[str]:
        task_ids = list(task_ids)
        if not task_ids:
            return set()
        stmt = select(Task.id).where(Task.user_id == owner_id, Task.id.in_(task_ids))
        return set(self.db.execute(stmt).scalars().all())

    def update_many(self, owner_id: str, task_ids: List[str], values: Dict[str, Any]) -> int:
        if not task_ids:
            return 0
        result = self.db.execute(
            update(Task)
            .where(Task.user_id == owner_id, Task.id.in_(task_ids))
            .values(**values)
            .execution_options(synchronize_session="fetch")
        )
        self.db.commit()
        return result.rowcount

    def delete_many(self, owner_id: str, task_ids: List[str]) -> int:
        if not task_ids:
            return 0
        result = self.db.execute(
            delete(Task)
            .where(Task.user_id == owner_id, Task.id.in_(task_ids))
            .execution_options(synchronize_session="fetch")
        )
        self.db.commit()
        return result.rowcount

    def status_counts(self, owner_id: str) -> Dict[TaskStatus, int]:
        stmt = (select(Task.status, func.count(Task.id))
                .where(Task.user_id == owner_id)
                .group_by(Task.status))
        counts = {status: 0 for status in TaskStatus}
        for status, count in self.db.execute(stmt).all():
            counts[TaskStatus(status)] = count
        return counts

    def count_overdue(self, owner_id: str, now: datetime) -> int:
        stmt = select(func.count()).select_from(Task).where(
            Task.user_id == owner_id,
            Task.due_date.is_not(None),
            Task.due_date < now,
            Task.status != TaskStatus.COMPLETED,
        )
        return self.db.execute(stmt).scalar_one()

    def add(self, task: Task) -> Task:
        self.db.add(task)
        self.db.commit()
        return task

    def save(self, task: Task) -> Task:
        self.db.commit()
        return task

    def delete(self, task: Task) -> None:
        self.db.delete(task)
        self.db.commit()
