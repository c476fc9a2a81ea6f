"""Persistence interfaces shared by the relational and in-memory stores.

Every category and task lookup takes the owner id: a record that exists but
belongs to someone else is indistinguishable from a missing one.
"""
from abc import ABC, abstractmethod
from datetime import datetime
from typing import Any, Dict, Iterable, List, Optional, Set, Tuple

from ..models import Category, Task, TaskPriority, TaskStatus, User

CATEGORY_SORT_FIELDS = ("name", "createdAt", "updatedAt")
SORT_ORDERS = ("ASC", "DESC")


class UserStore(ABC):
    @abstractmethod
    def get_by_id(self, user_id: str) -> Optional[User]:
        ...

    @abstractmethod
    def get_by_email(self, email: str) -> Optional[User]:
        """Exact, case-sensitive match."""

    @abstractmethod
    def add(self, user: User) -> User:
        ...


class CategoryStore(ABC):
    @abstractmethod
    def get(self, category_id: str, owner_id: str) -> Optional[Category]:
        ...

    @abstractmethod
    def find_by_name(self, owner_id: str, name: str) -> Optional[Category]:
        """Case-insensitive name lookup within one owner's categories."""

    @abstractmethod
    def list(self, owner_id: str, search: Optional[str], sort_by: str, sort_order: str,
             offset: int, limit: int) -> Tuple[List[Category], int]:
        ...

    @abstractmethod
    def task_counts(self, owner_id: str) -> Dict[str, int]:
        """Number of tasks per category id, only categories with at least one task."""

    @abstractmethod
    def add(self, category: Category) -> Category:
        ...

    @abstractmethod
    def save(self, category: Category) -> Category:
        ...

    @abstractmethod
    def delete(self, category: Category) -> None:
        """Remove the category and unset it on every task that referenced it."""


class TaskStore(ABC):
    @abstractmethod
    def get(self, task_id: str, owner_id: str) -> Optional[Task]:
        ...

    @abstractmethod
    def list(self, owner_id: str, status: Optional[TaskStatus], priority: Optional[TaskPriority],
             category_id: Optional[str], search: Optional[str],
             offset: int, limit: int) -> Tuple[List[Task], int]:
        """Conjunctive filters, newest first."""

    @abstractmethod
    def owned_ids(self, owner_id: str, task_ids: Iterable[str]) -> Set[str]:
        ...

    @abstractmethod
    def update_many(self, owner_id: str, task_ids: List[str], values: Dict[str, Any]) -> int:
        """Apply the same column values to every listed task in a single write."""

    @abstractmethod
    def delete_many(self, owner_id: str, task_ids: List[str]) -> int:
        ...

    @abstractmethod
    def status_counts(self, owner_id: str) -> Dict[TaskStatus, int]:
        ...

    @abstractmethod
    def count_overdue(self, owner_id: str, now: datetime) -> int:
        ...

    @abstractmethod
    def add(self, task: Task) -> Task:
        ...

    @abstractmethod
    def save(self, task: Task) -> Task:
        ...

    @abstractmethod
    def delete(self, task: Task) -> None:
        ...
