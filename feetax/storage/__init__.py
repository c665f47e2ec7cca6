from .json_storage import JsonFileStorage, PersistedState, StorageError

__all__ = [
    "JsonFileStorage",
    "PersistedState",
    "StorageError",
]
