"""In-memory fixture stores, used when the service runs without a database.

Entities are kept in process-wide dicts, so data lives only as long as the
process. Endpoints run in a threadpool; each store serialises access with a lock.
"""
import logging
import threading
from datetime import datetime
from typing import Any, Dict, Iterable, List, Optional, Set, Tuple

from ..models import Category, Task, TaskPriority, TaskStatus, User
from .base import CategoryStore, TaskStore, UserStore

logger = logging.getLogger(__name__)

_CATEGORY_ATTRS = {"name": "name", "createdAt": "created_at", "updatedAt": "updated_at"}


class MemoryDatabase:
    """The three tables plus the lock that guards them."""

    def __init__(self):
        self.lock = threading.RLock()
        self.users: Dict[str, User] = {}
        self.categories: Dict[str, Category] = {}
        self.tasks: Dict[str, Task] = {}


class MemoryUserStore(UserStore):
    def __init__(self, data: MemoryDatabase):
        self.data = data

    def get_by_id(self, user_id: str) -> Optional[User]:
        with self.data.lock:
            return self.data.users.get(user_id)

    def get_by_email(self, email: str) -> Optional[User]:
        with self.data.lock:
            for user in self.data.users.values():
                if user.email == email:
                    return user
        return None

    def add(self, user: User) -> User:
        with self.data.lock:
            self.data.users[user.id] = user
        return user


class MemoryCategoryStore(CategoryStore):
    def __init__(self, data: MemoryDatabase):
        self.data = data

    def _owned(self, owner_id: str) -> List[Category]:
        return [c for c in self.data.categories.values() if c.user_id == owner_id]

    def get(self, category_id: str, owner_id: str) -> Optional[Category]:
        with self.data.lock:
            category = self.data.categories.get(category_id)
        if category is None or category.user_id != owner_id:
            return None
        return category

    def find_by_name(self, owner_id: str, name: str) -> Optional[Category]:
        wanted = name.lower()
        with self.data.lock:
            for category in self._owned(owner_id):
                if category.name.lower() == wanted:
                    return category
        return None

    def list(self, owner_id: str, search: Optional[str], sort_by: str, sort_order: str,
             offset: int, limit: int) -> Tuple[List[Category], int]:
        with self.data.lock:
            items = self._owned(owner_id)
        if search:
            term = search.lower()
            items = [c for c in items if term in c.name.lower()]

        attr = _CATEGORY_ATTRS.get(sort_by, "created_at")

        def sort_key(category):
            value = getattr(category, attr)
            return value.lower() if isinstance(value, str) else value

        items.sort(key=lambda c: c.id)
        items.sort(key=sort_key, reverse=(sort_order == "DESC"))
        return items[offset:offset + limit], len(items)

    def task_counts(self, owner_id: str) -> Dict[str, int]:
        counts: Dict[str, int] = {}
        with self.data.lock:
            for task in self.data.tasks.values():
                if task.user_id == owner_id and task.category_id:
                    counts[task.category_id] = counts.get(task.category_id, 0) + 1
        return counts

    def add(self, category: Category) -> Category:
        with self.data.lock:
            self.data.categories[category.id] = category
        return category

    def save(self, category: Category) -> Category:
        return self.add(category)

    def delete(self, category: Category) -> None:
        with self.data.lock:
            for task in self.data.tasks.values():
                if task.category_id == category.id:
                    task.category_id = None
            self.data.categories.pop(category.id, None)


class MemoryTaskStore(TaskStore):
    def __init__(self, data: MemoryDatabase):
        self.data = data

    def _owned(self, owner_id: str) -> List[Task]:
        return [t for t in self.data.tasks.values() if t.user_id == owner_id]

    def get(self, task_id: str, owner_id: str) -> Optional[Task]:
        with self.data.lock:
            task = self.data.tasks.get(task_id)
        if task is None or task.user_id != owner_id:
            return None
        return task

    def list(self, owner_id: str, status: Optional[TaskStatus], priority: Optional[TaskPriority],
             category_id: Optional[str], search: Optional[str],
             offset: int, limit: int) -> Tuple[List[Task], int]:
        with self.data.lock:
            items = self._owned(owner_id)
        if status:
            items = [t for t in items if t.status == status]
        if priority:
            items = [t for t in items if t.priority == priority]
        if category_id:
            items = [t for t in items if t.category_id == category_id]
        if search:
            term = search.lower()
            items = [t for t in items
                     if term in t.title.lower() or (t.description and term in t.description.lower())]

        items.sort(key=lambda t: t.id)
        items.sort(key=lambda t: t.created_at, reverse=True)
        return items[offset:offset + limit], len(items)

    def owned_ids(self, owner_id: str, task_ids: Iterable[str]) -> Set[str]:
        with self.data.lock:
            return {task_id for task_id in task_ids
                    if task_id in self.data.tasks and self.data.tasks[task_id].user_id == owner_id}

    def update_many(self, owner_id: str, task_ids: List[str], values: Dict[str, Any]) -> int:
        updated = 0
        with self.data.lock:
            for task_id in task_ids:
                task = self.data.tasks.get(task_id)
                if task is None or task.user_id != owner_id:
                    continue
                for key, value in values.items():
                    setattr(task, key, value)
                updated += 1
        return updated

    def delete_many(self, owner_id: str, task_ids: List[str]) -> int:
        deleted = 0
        with self.data.lock:
            for task_id in task_ids:
                task = self.data.tasks.get(task_id)
                if task is None or task.user_id != owner_id:
                    continue
                del self.data.tasks[task_id]
                deleted += 1
        return deleted

    def status_counts(self, owner_id: str) -> Dict[TaskStatus, int]:
        counts = {status: 0 for status in TaskStatus}
        with self.data.lock:
            for task in self._owned(owner_id):
                counts[TaskStatus(task.status)] += 1
        return counts

    def count_overdue(self, owner_id: str, now: datetime) -> int:
        with self.data.lock:
            return sum(1 for t in self._owned(owner_id)
                       if t.due_date is not None and t.due_date < now
                       and t.status != TaskStatus.COMPLETED)

    def add(self, task: Task) -> Task:
        with self.data.lock:
            self.data.tasks[task.id] = task
        return task

    def save(self, task: Task) -> Task:
        return self.add(task)

    def delete(self, task: Task) -> None:
        with self.data.lock:
            self.data.tasks.pop(task.id, None)
