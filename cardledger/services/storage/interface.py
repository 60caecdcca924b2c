"""
Abstract Storage Interface

DESIGN DECISION: The ledger is persisted as ONE blob - the whole AppState.
Storage is loaded once at startup and written after every mutation.
Keeping this behind an interface allows us to:
1. Use a JSON file on disk for the real application
2. Use in-memory storage for testing
3. Swap in another backend without touching ledger logic
"""

from abc import ABC, abstractmethod
from typing import Optional

from cardledger.models.ledger import AppState


class StateStorageInterface(ABC):
    """
    Abstract interface for ledger state persistence.

    Any storage implementation must implement these methods.
    """

    @abstractmethod
    def load(self) -> Optional[AppState]:
        """
        Load the persisted state.

        Returns:
            The stored state, or None when nothing was persisted yet

        Raises:
            CorruptStateError: If a blob exists but cannot be parsed
        """
        pass

    @abstractmethod
    def save(self, state: AppState) -> None:
        """
        Persist the full state, replacing whatever was stored.

        Raises:
            StorageWriteError: If the state could not be written
        """
        pass


class StorageError(Exception):
    """Base exception for storage operations."""
    pass


class CorruptStateError(StorageError):
    """The persisted blob exists but is not a valid ledger."""
    pass


class StorageWriteError(StorageError):
    """Could not write the ledger to the backend."""
    pass
