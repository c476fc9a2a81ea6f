import logging
import math
from datetime import datetime
from typing import Any, Dict, List, Optional

from ..errors import NotFoundError
from ..models import Task, TaskPriority, TaskStatus, new_id, utcnow
from ..schemas import BulkDeleteResult, BulkUpdateResult, TaskList, TaskOut, TaskStats
from ..stores import CategoryStore, TaskStore

logger = logging.getLogger(__name__)

MAX_LIMIT = 100


def completion_for(status: Optional[TaskStatus]) -> Optional[bool]:
    """The completion flag a status implies, or None when it implies nothing."""
    if status == TaskStatus.COMPLETED:
        return True
    if status in (TaskStatus.PENDING, TaskStatus.IN_PROGRESS):
        return False
    return None


def derive_completion(status: Optional[TaskStatus], current: bool) -> bool:
    implied = completion_for(status)
    return current if implied is None else implied


class TaskService:
    def __init__(self, tasks: TaskStore, categories: CategoryStore):
        self.tasks = tasks
        self.categories = categories

    def _get_owned(self, task_id: str, owner_id: str) -> Task:
        task = self.tasks.get(task_id, owner_id)
        if task is None:
            raise NotFoundError("Task not found")
        return task

    def _check_category(self, category_id: Optional[str], owner_id: str) -> None:
        if category_id and self.categories.get(category_id, owner_id) is None:
            raise NotFoundError("Category not found")

    def create(self, title: str, owner_id: str, description: Optional[str] = None,
               priority: TaskPriority = TaskPriority.MEDIUM, due_date: Optional[datetime] = None,
               category_id: Optional[str] = None) -> TaskOut:
        self._check_category(category_id, owner_id)
        now = utcnow()
        task = Task(
            id=new_id(),
            title=title,
            description=description,
            status=TaskStatus.PENDING,
            priority=priority,
            due_date=due_date,
            is_completed=False,
            notes=[],
            user_id=owner_id,
            category_id=category_id,
            created_at=now,
            updated_at=now,
        )
        self.tasks.add(task)
        logger.info("Created task %s for user %s", task.id, owner_id)
        return TaskOut.from_entity(task)

    def list(self, owner_id: str, status: Optional[TaskStatus] = None,
             priority: Optional[TaskPriority] = None, category_id: Optional[str] = None,
             search: Optional[str] = None, page: int = 1, limit: int = 10) -> TaskList:
        page = max(1, page)
        limit = min(MAX_LIMIT, max(1, limit))
        items, total = self.tasks.list(owner_id, status, priority, category_id, search,
                                       offset=(page - 1) * limit, limit=limit)
        return TaskList(
            tasks=[TaskOut.from_entity(t) for t in items],
            total=total,
            page=page,
            limit=limit,
            total_pages=math.ceil(total / limit),
        )

    def get(self, task_id: str, owner_id: str) -> TaskOut:
        return TaskOut.from_entity(self._get_owned(task_id, owner_id))

    def update(self, task_id: str, patch: Dict[str, Any], owner_id: str) -> TaskOut:
        """Merge ``patch`` over the stored task; absent keys keep their values."""
        task = self._get_owned(task_id, owner_id)
        if "category_id" in patch:
            self._check_category(patch["category_id"], owner_id)

        for key, value in patch.items():
            setattr(task, key, value)
        if "status" in patch:
            task.is_completed = derive_completion(patch["status"], task.is_completed)
        task.updated_at = utcnow()
        self.tasks.save(task)
        return TaskOut.from_entity(task)

    def remove(self, task_id: str, owner_id: str) -> None:
        task = self._get_owned(task_id, owner_id)
        self.tasks.delete(task)
        logger.info("Deleted task %s for user %s", task_id, owner_id)

    def stats(self, owner_id: str) -> TaskStats:
        counts = self.tasks.status_counts(owner_id)
        return TaskStats(
            total=sum(counts.values()),
            pending=counts[TaskStatus.PENDING],
            in_progress=counts[TaskStatus.IN_PROGRESS],
            completed=counts[TaskStatus.COMPLETED],
            overdue=self.tasks.count_overdue(owner_id, utcnow()),
        )

    def _partition(self, task_ids: List[str], owner_id: str):
        owned = self.tasks.owned_ids(owner_id, task_ids)
        valid = [task_id for task_id in task_ids if task_id in owned]
        failed = [task_id for task_id in task_ids if task_id not in owned]
        return valid, failed

    def bulk_update(self, task_ids: List[str], patch: Dict[str, Any], owner_id: str) -> BulkUpdateResult:
        if "category_id" in patch:
            self._check_category(patch["category_id"], owner_id)
        valid, failed = self._partition(task_ids, owner_id)

        values = dict(patch)
        if "status" in patch:
            implied = completion_for(patch["status"])
            if implied is not None:
                values["is_completed"] = implied
        values["updated_at"] = utcnow()

        updated = self.tasks.update_many(owner_id, valid, values) if valid else 0
        logger.info("Bulk update for user %s: %d updated, %d failed", owner_id, updated, len(failed))
        return BulkUpdateResult(updated_count=updated, failed_ids=failed)

    def bulk_delete(self, task_ids: List[str], owner_id: str) -> BulkDeleteResult:
        valid, failed = self._partition(task_ids, owner_id)
        deleted = self.tasks.delete_many(owner_id, valid) if valid else 0
        logger.info("Bulk delete for user %s: %d deleted, %d failed", owner_id, deleted, len(failed))
        return BulkDeleteResult(deleted_count=deleted, failed_ids=failed)

    def add_note(self, task_id: str, content: str, owner_id: str) -> TaskOut:
        task = self._get_owned(task_id, owner_id)
        now = utcnow()
        note = {
            "id": new_id(),
            "content": content,
            "createdAt": now.isoformat(),
            "updatedAt": now.isoformat(),
        }
        task.notes = list(task.notes or []) + [note]
        task.updated_at = now
        self.tasks.save(task)
        return TaskOut.from_entity(task)

    def remove_note(self, task_id: str, note_id: str, owner_id: str) -> TaskOut:
        """Unknown note ids are ignored; the task is returned either way."""
        task = self._get_owned(task_id, owner_id)
        notes = list(task.notes or [])
        remaining = [note for note in notes if note.get("id") != note_id]
        if len(remaining) != len(notes):
            task.notes = remaining
            task.updated_at = utcnow()
            self.tasks.save(task)
        return TaskOut.from_entity(task)
