# mailtrust/storage/__init__.py
from .base import Store
from .memory import InMemoryStore

__all__ = ["Store", "InMemoryStore", "create_store"]


def create_store(settings) -> Store:
    """Pick the storage backend named by settings.STORAGE_BACKEND."""
    backend = (settings.STORAGE_BACKEND or "memory").lower()
    if backend == "memory":
        return InMemoryStore()
    if backend == "sql":
        from .sql import SqlStore

        return SqlStore.from_url(settings.DATABASE_URL, echo=bool(settings.DEBUG))
    raise ValueError(f"Unknown STORAGE_BACKEND: {settings.STORAGE_BACKEND!r}")
