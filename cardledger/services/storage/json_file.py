"""
JSON File Storage Implementation

DESIGN DECISION: A single JSON file holds the whole ledger, the same blob
layout the browser version kept in local storage:
    {"people": [...], "cards": [...], "expenses": [...],
     "payments": [...], "invoices": [...]}

TRADEOFFS:
- The entire file is rewritten on every mutation (fine for personal data volumes)
- Writes go to a temporary file first and are swapped in with os.replace,
  so a crash mid-write leaves the previous state intact
"""

import os
from pathlib import Path
from typing import Optional

from pydantic import ValidationError
from tenacity import (
    Retrying,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from cardledger.config import get_settings
from cardledger.logger import get_logger
from cardledger.models.ledger import AppState
from cardledger.services.storage.interface import (
    CorruptStateError,
    StateStorageInterface,
    StorageWriteError,
)


class JsonFileStateStorage(StateStorageInterface):
    """Ledger state persisted to a JSON file."""

    def __init__(
        self,
        path: Optional[Path] = None,
        write_retries: Optional[int] = None,
    ):
        settings = get_settings().storage
        self._path = Path(path) if path else settings.data_path
        self._write_retries = write_retries or settings.write_retries
        self._logger = get_logger(__name__)

    @property
    def path(self) -> Path:
        return self._path

    def load(self) -> Optional[AppState]:
        if not self._path.exists():
            return None

        try:
            raw = self._path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as e:
            raise CorruptStateError(f"Ledger file {self._path} cannot be read: {e}") from e
        if not raw.strip():
            return None

        try:
            state = AppState.from_json(raw)
        except ValidationError as e:
            raise CorruptStateError(
                f"Ledger file {self._path} is not a valid ledger: {e.error_count()} error(s)"
            ) from e

        self._logger.info(
            "state_loaded",
            path=str(self._path),
            expenses=len(state.expenses),
            payments=len(state.payments),
            invoices=len(state.invoices),
        )
        return state

    def save(self, state: AppState) -> None:
        payload = state.to_json()
        try:
            for attempt in Retrying(
                stop=stop_after_attempt(self._write_retries),
                wait=wait_exponential(multiplier=0.1, max=2),
                retry=retry_if_exception_type(OSError),
                reraise=True,
            ):
                with attempt:
                    self._write(payload)
        except OSError as e:
            raise StorageWriteError(f"Could not write ledger to {self._path}: {e}") from e

    def _write(self, payload: str) -> None:
        self._path.parent.mkdir(parents=True, exist_ok=True)
        tmp = self._path.with_name(self._path.name + ".tmp")
        tmp.write_text(payload, encoding="utf-8")
        os.replace(tmp, self._path)
