"""
Storage backends for tokens and location history.

create_storage() picks the backend named by STORAGE_BACKEND at process start.
"""

from storage.memory import MemoryStorage
from storage.protocol import AppendOutcome, LocationStorage, StorageError, StorageStats

_BACKENDS = {
    "memory": MemoryStorage,
}


def create_storage(backend: str) -> LocationStorage:
    """Instantiate the backend registered under *backend*.

    Raises:
        ValueError: no backend has that name.
    """
    try:
        factory = _BACKENDS[backend.strip().lower()]
    except KeyError:
        raise ValueError(
            f"unknown storage backend {backend!r}; available: {', '.join(sorted(_BACKENDS))}"
        ) from None
    return factory()


__all__ = [
    "AppendOutcome",
    "LocationStorage",
    "MemoryStorage",
    "StorageError",
    "StorageStats",
    "create_storage",
]
