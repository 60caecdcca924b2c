"""
Read Models for Dashboards and Closing Reports

These are shaped for the rendering layer. They carry already-aggregated
numbers and resolved labels, never references back into the ledger.
"""

from datetime import date
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, Field


# =============================================================================
# DASHBOARD
# =============================================================================

class PersonBalance(BaseModel):
    """One person's card on the dashboard."""

    person_id: str
    name: str
    display_color: str
    current_spend: Decimal = Decimal("0")
    current_by_card: dict[str, Decimal] = Field(
        default_factory=dict,
        description="card_id -> amount on the selected invoice",
    )
    lifetime_spend: Decimal = Decimal("0")
    lifetime_paid: Decimal = Decimal("0")
    remaining_debt: Decimal = Decimal("0")
    status: str = Field(
        default="settled",
        pattern="^(owing|settled)$",
    )


class DashboardSummary(BaseModel):
    """Everything the dashboard shows for one selected invoice."""

    invoice_id: Optional[str] = None
    invoice_name: Optional[str] = None
    invoice_total: Decimal = Decimal("0")
    category_breakdown: dict[str, Decimal] = Field(default_factory=dict)
    total_expenses: Decimal = Decimal("0")
    total_payments: Decimal = Decimal("0")
    global_debt: Decimal = Decimal("0")
    people: list[PersonBalance] = Field(default_factory=list)


# =============================================================================
# CLOSING REPORT
# =============================================================================

class GlobalSummaryRow(BaseModel):
    """Lifetime position of one person across every invoice."""

    person_name: str
    lifetime_spend: Decimal
    lifetime_paid: Decimal
    remaining_debt: Decimal


class CardAmountRow(BaseModel):
    card_name: str
    amount: Decimal


class PersonCardBreakdown(BaseModel):
    """How much one person charged to each card on the invoice."""

    person_name: str
    total: Decimal
    cards: list[CardAmountRow] = Field(default_factory=list)


class TransactionRow(BaseModel):
    spent_on: date
    description: str
    card_name: str
    amount: Decimal


class PersonTransactions(BaseModel):
    """One person's invoice expenses, newest first."""

    person_name: str
    total: Decimal
    rows: list[TransactionRow] = Field(default_factory=list)


class InvoiceReport(BaseModel):
    """
    Closing report for one invoice.

    Three sections: lifetime summary per person, per-card breakdown on
    this invoice, and the detailed transaction listing.
    """

    invoice_id: str
    invoice_name: str
    generated_on: date
    global_summary: list[GlobalSummaryRow] = Field(default_factory=list)
    card_breakdown: list[PersonCardBreakdown] = Field(default_factory=list)
    transactions: list[PersonTransactions] = Field(default_factory=list)
    global_total: Decimal = Decimal("0")

    @property
    def file_stem(self) -> str:
        """Name used for exported files, whitespace collapsed to underscores."""
        return "Invoice-" + "_".join(self.invoice_name.split())
