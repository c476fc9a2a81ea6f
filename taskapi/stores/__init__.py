from .base import CategoryStore, TaskStore, UserStore
from .memory import MemoryCategoryStore, MemoryDatabase, MemoryTaskStore, MemoryUserStore
from .sql import SqlCategoryStore, SqlTaskStore, SqlUserStore

__all__ = [
    "UserStore",
    "CategoryStore",
    "TaskStore",
    "MemoryDatabase",
    "MemoryUserStore",
    "MemoryCategoryStore",
    "MemoryTaskStore",
    "SqlUserStore",
    "SqlCategoryStore",
    "SqlTaskStore",
]
