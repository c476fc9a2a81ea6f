from . import auth, categories, health, tasks

__all__ = ["auth", "categories", "health", "tasks"]
