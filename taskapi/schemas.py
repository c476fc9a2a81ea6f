"""Request payloads and response projections.

Responses use camelCase on the wire; every projection is built from an entity
by an explicit ``from_entity`` mapping so persistence-only fields (the password
hash) can never leak into a response.
"""
import math
import re
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional
from uuid import UUID

from email_validator import EmailNotValidError, validate_email
from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from .models import Category, Task, TaskPriority, TaskStatus, User

HEX_COLOR = r"^#[A-Fa-f0-9]{6}$"
DEFAULT_CATEGORY_COLOR = "#6366F1"


def check_email(value: str) -> str:
    """Reject malformed addresses but keep the value exactly as submitted."""
    try:
        validate_email(value, check_deliverability=False)
    except EmailNotValidError as exc:
        raise ValueError(str(exc))
    return value


def to_utc_naive(value: Optional[datetime]) -> Optional[datetime]:
    if value is not None and value.tzinfo is not None:
        return value.astimezone(timezone.utc).replace(tzinfo=None)
    return value


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# --- Auth -------------------------------------------------------------------

class RegisterRequest(CamelModel):
    email: str
    password: str = Field(min_length=8)
    first_name: str = Field(min_length=2, max_length=50)
    last_name: str = Field(min_length=2, max_length=50)

    @field_validator("email")
    @classmethod
    def email_format(cls, value: str) -> str:
        return check_email(value)

    @field_validator("password")
    @classmethod
    def password_strength(cls, value: str) -> str:
        if not (re.search(r"[a-z]", value) and re.search(r"[A-Z]", value) and re.search(r"\d", value)):
            raise ValueError("Password must contain an uppercase letter, a lowercase letter and a number")
        return value


class LoginRequest(CamelModel):
    email: str
    password: str = Field(min_length=1)

    @field_validator("email")
    @classmethod
    def email_format(cls, value: str) -> str:
        return check_email(value)


class UserPublic(CamelModel):
    id: str
    email: str
    first_name: str
    last_name: str
    is_active: bool
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_entity(cls, user: User) -> "UserPublic":
        return cls(
            id=user.id,
            email=user.email,
            first_name=user.first_name,
            last_name=user.last_name,
            is_active=user.is_active,
            created_at=user.created_at,
            updated_at=user.updated_at,
        )


class AuthResponse(CamelModel):
    access_token: str
    token_type: str = "bearer"
    user: UserPublic


# --- Pagination -------------------------------------------------------------

class PaginationMeta(CamelModel):
    total: int
    page: int
    limit: int
    total_pages: int

    @classmethod
    def build(cls, total: int, page: int, limit: int) -> "PaginationMeta":
        return cls(total=total, page=page, limit=limit, total_pages=math.ceil(total / limit))


# --- Categories -------------------------------------------------------------

class CategoryCreate(CamelModel):
    name: str = Field(min_length=1, max_length=100)
    description: Optional[str] = None
    color: Optional[str] = Field(default=None, pattern=HEX_COLOR)

    @field_validator("name")
    @classmethod
    def name_not_blank(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("Name must not be blank")
        return value


class CategoryUpdate(CamelModel):
    name: Optional[str] = Field(default=None, min_length=1, max_length=100)
    description: Optional[str] = None
    color: Optional[str] = Field(default=None, pattern=HEX_COLOR)

    @field_validator("name")
    @classmethod
    def name_not_blank(cls, value: Optional[str]) -> Optional[str]:
        if value is None:
            return value
        value = value.strip()
        if not value:
            raise ValueError("Name must not be blank")
        return value

    def to_patch(self) -> Dict[str, Any]:
        patch = self.model_dump(exclude_unset=True)
        # name and color are not nullable
        return {k: v for k, v in patch.items() if not (k in ("name", "color") and v is None)}


class CategoryOut(CamelModel):
    id: str
    name: str
    description: Optional[str] = None
    color: str
    user_id: str
    task_count: int = 0
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_entity(cls, category: Category, task_count: int = 0) -> "CategoryOut":
        return cls(
            id=category.id,
            name=category.name,
            description=category.description,
            color=category.color,
            user_id=category.user_id,
            task_count=task_count,
            created_at=category.created_at,
            updated_at=category.updated_at,
        )


class CategoryList(CamelModel):
    data: List[CategoryOut]
    meta: PaginationMeta


class CategoryStats(CamelModel):
    total_categories: int
    categories_with_tasks: int
    average_tasks_per_category: float


# --- Tasks ------------------------------------------------------------------

class NoteCreate(CamelModel):
    content: str = Field(min_length=1, max_length=1000)


class NoteOut(CamelModel):
    id: str
    content: str
    created_at: datetime
    updated_at: datetime


class TaskCreate(CamelModel):
    title: str = Field(min_length=1, max_length=255)
    description: Optional[str] = None
    priority: TaskPriority = TaskPriority.MEDIUM
    due_date: Optional[datetime] = None
    category_id: Optional[UUID] = None

    @field_validator("due_date")
    @classmethod
    def normalize_due_date(cls, value: Optional[datetime]) -> Optional[datetime]:
        return to_utc_naive(value)


class TaskUpdate(CamelModel):
    title: Optional[str] = Field(default=None, min_length=1, max_length=255)
    description: Optional[str] = None
    status: Optional[TaskStatus] = None
    priority: Optional[TaskPriority] = None
    due_date: Optional[datetime] = None
    category_id: Optional[UUID] = None

    @field_validator("due_date")
    @classmethod
    def normalize_due_date(cls, value: Optional[datetime]) -> Optional[datetime]:
        return to_utc_naive(value)

    def to_patch(self) -> Dict[str, Any]:
        """Only the fields the client sent; a missing or null dueDate keeps the stored one."""
        patch = self.model_dump(exclude_unset=True)
        for key in ("title", "status", "priority", "due_date"):
            if key in patch and patch[key] is None:
                del patch[key]
        if patch.get("category_id") is not None:
            patch["category_id"] = str(patch["category_id"])
        return patch


class BulkTaskIds(CamelModel):
    task_ids: List[UUID] = Field(min_length=1)

    def ids(self) -> List[str]:
        # Keep first occurrence order, drop duplicates
        return list(dict.fromkeys(str(task_id) for task_id in self.task_ids))


class BulkUpdateRequest(BulkTaskIds):
    status: Optional[TaskStatus] = None
    priority: Optional[TaskPriority] = None
    category_id: Optional[UUID] = None

    def to_patch(self) -> Dict[str, Any]:
        patch = self.model_dump(exclude_unset=True, exclude={"task_ids"})
        for key in ("status", "priority"):
            if key in patch and patch[key] is None:
                del patch[key]
        if patch.get("category_id") is not None:
            patch["category_id"] = str(patch["category_id"])
        return patch


class BulkDeleteRequest(BulkTaskIds):
    pass


class TaskOut(CamelModel):
    id: str
    title: str
    description: Optional[str] = None
    status: TaskStatus
    priority: TaskPriority
    due_date: Optional[datetime] = None
    is_completed: bool
    user_id: str
    category_id: Optional[str] = None
    notes: List[NoteOut] = []
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_entity(cls, task: Task) -> "TaskOut":
        return cls(
            id=task.id,
            title=task.title,
            description=task.description,
            status=task.status,
            priority=task.priority,
            due_date=task.due_date,
            is_completed=task.is_completed,
            user_id=task.user_id,
            category_id=task.category_id,
            notes=[NoteOut.model_validate(note) for note in (task.notes or [])],
            created_at=task.created_at,
            updated_at=task.updated_at,
        )


class TaskList(CamelModel):
    tasks: List[TaskOut]
    total: int
    page: int
    limit: int
    total_pages: int


class TaskStats(CamelModel):
    total: int
    pending: int
    in_progress: int
    completed: int
    overdue: int


class BulkUpdateResult(CamelModel):
    updated_count: int
    failed_ids: List[str]


class BulkDeleteResult(CamelModel):
    deleted_count: int
    failed_ids: List[str]
