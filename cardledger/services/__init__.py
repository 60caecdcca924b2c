"""Services package."""

from cardledger.services.storage import (
    CorruptStateError,
    InMemoryStateStorage,
    JsonFileStateStorage,
    StateStorageInterface,
    StorageError,
    StorageWriteError,
)

__all__ = [
    "CorruptStateError",
    "InMemoryStateStorage",
    "JsonFileStateStorage",
    "StateStorageInterface",
    "StorageError",
    "StorageWriteError",
]
