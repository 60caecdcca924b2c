"""In-memory storage, used by tests and throwaway sessions."""

from typing import Optional

from cardledger.models.ledger import AppState
from cardledger.services.storage.interface import StateStorageInterface


class InMemoryStateStorage(StateStorageInterface):
    """
    Keeps the serialized blob in memory.

    The state goes through the same JSON encoding as the file backend,
    so a load always returns a fresh, equal copy.
    """

    def __init__(self, initial: Optional[AppState] = None):
        self._blob: Optional[str] = initial.to_json() if initial is not None else None
        self.save_count = 0

    @property
    def blob(self) -> Optional[str]:
        return self._blob

    def load(self) -> Optional[AppState]:
        if self._blob is None:
            return None
        return AppState.from_json(self._blob)

    def save(self, state: AppState) -> None:
        self._blob = state.to_json()
        self.save_count += 1
