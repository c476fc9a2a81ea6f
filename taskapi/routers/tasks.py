from datetime import datetime, timezone
from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query, status

from ..dependencies import get_current_user, get_task_service, public
from ..models import TaskPriority, TaskStatus, User
from ..schemas import (BulkDeleteRequest, BulkDeleteResult, BulkUpdateRequest, BulkUpdateResult,
                       NoteCreate, TaskCreate, TaskList, TaskOut, TaskStats, TaskUpdate)
from ..services import TaskService

router = APIRouter(prefix="/tasks", tags=["Tasks"])


@router.get("/test")
@public
async def tasks_test():
    """Check that the tasks module is reachable"""
    return {
        "message": "Tasks module is working",
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "status": "ok",
    }


@router.post("", response_model=TaskOut, status_code=status.HTTP_201_CREATED)
def create_task(payload: TaskCreate,
                current_user: User = Depends(get_current_user),
                tasks: TaskService = Depends(get_task_service)):
    """Create a pending task for the current user"""
    return tasks.create(
        payload.title,
        current_user.id,
        description=payload.description,
        priority=payload.priority,
        due_date=payload.due_date,
        category_id=str(payload.category_id) if payload.category_id else None,
    )


@router.get("", response_model=TaskList)
def list_tasks(
    status_filter: Optional[TaskStatus] = Query(None, alias="status"),
    priority: Optional[TaskPriority] = Query(None),
    category_id: Optional[UUID] = Query(None, alias="categoryId"),
    search: Optional[str] = Query(None),
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    current_user: User = Depends(get_current_user),
    tasks: TaskService = Depends(get_task_service),
):
    """Get the caller's tasks, newest first; filters combine with AND"""
    return tasks.list(
        current_user.id,
        status=status_filter,
        priority=priority,
        category_id=str(category_id) if category_id else None,
        search=search,
        page=page,
        limit=limit,
    )


@router.get("/stats", response_model=TaskStats)
def task_stats(current_user: User = Depends(get_current_user),
               tasks: TaskService = Depends(get_task_service)):
    """Get task counts by status, plus overdue tasks"""
    return tasks.stats(current_user.id)


@router.put("/bulk/update", response_model=BulkUpdateResult)
def bulk_update_tasks(payload: BulkUpdateRequest,
                      current_user: User = Depends(get_current_user),
                      tasks: TaskService = Depends(get_task_service)):
    """Apply the same changes to many tasks at once"""
    return tasks.bulk_update(payload.ids(), payload.to_patch(), current_user.id)


@router.delete("/bulk/delete", response_model=BulkDeleteResult)
def bulk_delete_tasks(payload: BulkDeleteRequest,
                      current_user: User = Depends(get_current_user),
                      tasks: TaskService = Depends(get_task_service)):
    """Delete many tasks at once"""
    return tasks.bulk_delete(payload.ids(), current_user.id)


@router.get("/{task_id}", response_model=TaskOut)
def get_task(task_id: UUID,
             current_user: User = Depends(get_current_user),
             tasks: TaskService = Depends(get_task_service)):
    """Get one task by id"""
    return tasks.get(str(task_id), current_user.id)


@router.put("/{task_id}", response_model=TaskOut)
def update_task(task_id: UUID, payload: TaskUpdate,
                current_user: User = Depends(get_current_user),
                tasks: TaskService = Depends(get_task_service)):
    """Update a task; completion follows the status"""
    return tasks.update(str(task_id), payload.to_patch(), current_user.id)


@router.delete("/{task_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_task(task_id: UUID,
                current_user: User = Depends(get_current_user),
                tasks: TaskService = Depends(get_task_service)):
    """Delete a task"""
    tasks.remove(str(task_id), current_user.id)


@router.post("/{task_id}/notes", response_model=TaskOut, status_code=status.HTTP_201_CREATED)
def add_note(task_id: UUID, payload: NoteCreate,
             current_user: User = Depends(get_current_user),
             tasks: TaskService = Depends(get_task_service)):
    """Attach a note to a task"""
    return tasks.add_note(str(task_id), payload.content, current_user.id)


@router.delete("/{task_id}/notes/{note_id}", response_model=TaskOut)
def remove_note(task_id: UUID, note_id: str,
                current_user: User = Depends(get_current_user),
                tasks: TaskService = Depends(get_task_service)):
    """Remove a note from a task"""
    return tasks.remove_note(str(task_id), note_id, current_user.id)
