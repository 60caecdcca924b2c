"""
Data Models Package

This package contains all Pydantic models used by the card ledger.
Ledger records, the aggregate root, and the read models handed to
dashboards and report renderers.
"""

from cardledger.models.ledger import (
    AppState,
    CreditCard,
    Expense,
    ExpenseCategory,
    Invoice,
    InvoiceStatus,
    Payment,
    Person,
    ValidationIssue,
    ValidationResult,
    default_state,
    new_id,
)
from cardledger.models.report import (
    CardAmountRow,
    DashboardSummary,
    GlobalSummaryRow,
    InvoiceReport,
    PersonBalance,
    PersonCardBreakdown,
    PersonTransactions,
    TransactionRow,
)

__all__ = [
    # Ledger models
    "AppState",
    "CreditCard",
    "Expense",
    "ExpenseCategory",
    "Invoice",
    "InvoiceStatus",
    "Payment",
    "Person",
    "ValidationIssue",
    "ValidationResult",
    "default_state",
    "new_id",
    # Report models
    "CardAmountRow",
    "DashboardSummary",
    "GlobalSummaryRow",
    "InvoiceReport",
    "PersonBalance",
    "PersonCardBreakdown",
    "PersonTransactions",
    "TransactionRow",
]
