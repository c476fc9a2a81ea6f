from contextlib import contextmanager
from dataclasses import dataclass
from typing import Iterator

from sqlalchemy.orm import sessionmaker

from .base import CategoryStore, TaskStore, UserStore
from .memory import MemoryCategoryStore, MemoryDatabase, MemoryTaskStore, MemoryUserStore
from .sql import SqlCategoryStore, SqlTaskStore, SqlUserStore


@dataclass
class Stores:
    users: UserStore
    categories: CategoryStore
    tasks: TaskStore


class SqlStoreProvider:
    """One session per request, shared by the three stores and closed afterwards."""

    def __init__(self, session_factory: sessionmaker):
        self.session_factory = session_factory

    @contextmanager
    def open(self) -> Iterator[Stores]:
        db = self.session_factory()
        try:
            yield Stores(SqlUserStore(db), SqlCategoryStore(db), SqlTaskStore(db))
        except Exception:
            db.rollback()
            raise
        finally:
            db.close()


class MemoryStoreProvider:
    def __init__(self, data: MemoryDatabase):
        self.data = data

    @contextmanager
    def open(self) -> Iterator[Stores]:
        yield Stores(MemoryUserStore(self.data), MemoryCategoryStore(self.data),
                     MemoryTaskStore(self.data))
