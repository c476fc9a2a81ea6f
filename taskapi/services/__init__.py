from .auth import AuthService
from .categories import CategoryService
from .tasks import TaskService, derive_completion

__all__ = ["AuthService", "CategoryService", "TaskService", "derive_completion"]
