"""
Storage Services Package

Provides the abstract state storage interface and its implementations.
The JSON file backend is used by the application; the in-memory one by tests.
"""

from cardledger.services.storage.interface import (
    CorruptStateError,
    StateStorageInterface,
    StorageError,
    StorageWriteError,
)
from cardledger.services.storage.json_file import JsonFileStateStorage
from cardledger.services.storage.memory import InMemoryStateStorage

__all__ = [
    # Interface
    "StateStorageInterface",
    # Exceptions
    "CorruptStateError",
    "StorageError",
    "StorageWriteError",
    # Implementations
    "InMemoryStateStorage",
    "JsonFileStateStorage",
]
