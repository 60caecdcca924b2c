"""AI helpers. Nothing here writes to the ledger directly."""

from cardledger.agents.classifier import (
    ExpenseClassification,
    ExpenseClassifier,
    parse_classification,
)

__all__ = [
    "ExpenseClassification",
    "ExpenseClassifier",
    "parse_classification",
]
