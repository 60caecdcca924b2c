"""Ledger store package: pure state transforms and the store that owns the state."""

from cardledger.ledger import operations
from cardledger.ledger.store import LedgerStore

__all__ = ["LedgerStore", "operations"]
