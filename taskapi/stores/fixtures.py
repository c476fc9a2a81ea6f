import logging
from datetime import timedelta

from ..models import Category, Task, TaskPriority, TaskStatus, User, new_id, utcnow
from ..security import hash_password
from .memory import MemoryDatabase

logger = logging.getLogger(__name__)

DEMO_EMAIL = "demo@taskapi.io"
DEMO_PASSWORD = "DemoP@ssw0rd1"


def seed_demo_data(data: MemoryDatabase, bcrypt_rounds: int = 12) -> User:
    """Load a demo account with a few categories and tasks into an empty memory database."""
    now = utcnow()
    user = User(
        id=new_id(),
        email=DEMO_EMAIL,
        first_name="Demo",
        last_name="User",
        hashed_password=hash_password(DEMO_PASSWORD, rounds=bcrypt_rounds),
        is_active=True,
        created_at=now,
        updated_at=now,
    )
    data.users[user.id] = user

    categories = {}
    for offset, (name, description, color) in enumerate([
        ("Work", "Work-related tasks and projects", "#EF4444"),
        ("Personal", "Personal tasks and activities", "#10B981"),
        ("Health", "Health and fitness related tasks", "#8B5CF6"),
    ]):
        created = now - timedelta(days=3 - offset)
        category = Category(id=new_id(), name=name, description=description, color=color,
                            user_id=user.id, created_at=created, updated_at=created)
        data.categories[category.id] = category
        categories[name] = category

    for offset, (title, description, status, priority, due_in_days, category) in enumerate([
        ("Complete project documentation", "Write comprehensive documentation for the API",
         TaskStatus.IN_PROGRESS, TaskPriority.HIGH, 7, "Work"),
        ("Review code changes", "Review pull request #123",
         TaskStatus.PENDING, TaskPriority.MEDIUM, -1, "Work"),
        ("Set up deployment pipeline", "Configure CI/CD for the project",
         TaskStatus.COMPLETED, TaskPriority.LOW, None, None),
    ]):
        created = now - timedelta(hours=3 - offset)
        task = Task(
            id=new_id(),
            title=title,
            description=description,
            status=status,
            priority=priority,
            due_date=now + timedelta(days=due_in_days) if due_in_days is not None else None,
            is_completed=status == TaskStatus.COMPLETED,
            notes=[],
            user_id=user.id,
            category_id=categories[category].id if category else None,
            created_at=created,
            updated_at=created,
        )
        data.tasks[task.id] = task

    logger.info("Seeded in-memory store with demo account %s", DEMO_EMAIL)
    return user
