"""
Balance Queries

Pure read-only functions over an AppState snapshot. No caching: every
call is a linear scan, which is plenty for one household's history.

THE LEDGER EQUATION:
    remaining_debt(person) = lifetime spend - lifetime paid

computed over the ENTIRE history, never scoped to one invoice. Summing
remaining_debt over every person equals global_debt exactly, as long as
no record points at a deleted person.
"""

from collections import defaultdict
from decimal import Decimal
from typing import Iterable, Optional

from cardledger.models.ledger import (
    AppState,
    Expense,
    ExpenseCategory,
    Invoice,
    Payment,
)
from cardledger.models.report import DashboardSummary, PersonBalance


ZERO = Decimal("0")
DEFAULT_DEBT_THRESHOLD = Decimal("1")


def _sum(amounts: Iterable[Decimal]) -> Decimal:
    return sum(amounts, ZERO)


# =============================================================================
# INVOICE SCOPE
# =============================================================================

def invoice_expenses(state: AppState, invoice_id: Optional[str]) -> list[Expense]:
    return [e for e in state.expenses if e.invoice_id == invoice_id]


def invoice_total(expenses: Iterable[Expense]) -> Decimal:
    return _sum(e.amount for e in expenses)


def category_breakdown(expenses: Iterable[Expense]) -> dict[str, Decimal]:
    """Sum per category; a blank category counts as Other."""
    totals: dict[str, Decimal] = defaultdict(lambda: ZERO)
    for e in expenses:
        totals[e.category_id or ExpenseCategory.OTHER.value] += e.amount
    return dict(totals)


def person_invoice_spend(person_id: str, expenses: Iterable[Expense]) -> Decimal:
    return _sum(e.amount for e in expenses if e.person_id == person_id)


def person_card_breakdown(person_id: str, expenses: Iterable[Expense]) -> dict[str, Decimal]:
    """card_id -> amount for one person, in first-seen order."""
    totals: dict[str, Decimal] = {}
    for e in expenses:
        if e.person_id == person_id:
            totals[e.card_id] = totals.get(e.card_id, ZERO) + e.amount
    return totals


# =============================================================================
# LIFETIME SCOPE
# =============================================================================

def person_lifetime_spend(person_id: str, expenses: Iterable[Expense]) -> Decimal:
    return _sum(e.amount for e in expenses if e.person_id == person_id)


def person_lifetime_paid(person_id: str, payments: Iterable[Payment]) -> Decimal:
    return _sum(p.amount for p in payments if p.person_id == person_id)


def remaining_debt(state: AppState, person_id: str) -> Decimal:
    """Lifetime spend minus lifetime paid. Negative means overpaid."""
    return (
        person_lifetime_spend(person_id, state.expenses)
        - person_lifetime_paid(person_id, state.payments)
    )


def expenses_total(state: AppState) -> Decimal:
    return _sum(e.amount for e in state.expenses)


def payments_total(state: AppState) -> Decimal:
    return _sum(p.amount for p in state.payments)


def global_debt(state: AppState) -> Decimal:
    return expenses_total(state) - payments_total(state)


def is_in_debt(amount: Decimal, threshold: Decimal = DEFAULT_DEBT_THRESHOLD) -> bool:
    """Only debts above the threshold count; smaller residues are rounding noise."""
    return amount > threshold


def debt_status(amount: Decimal, threshold: Decimal = DEFAULT_DEBT_THRESHOLD) -> str:
    return "owing" if is_in_debt(amount, threshold) else "settled"


# =============================================================================
# DISPLAY HELPERS
# =============================================================================

def current_open_invoice(state: AppState) -> Optional[Invoice]:
    """The first open invoice, which dashboards treat as current."""
    return next((i for i in state.invoices if i.is_open), None)


def sorted_by_date_desc(records: Iterable[Expense]) -> list[Expense]:
    return sorted(records, key=lambda e: e.spent_on, reverse=True)


def sorted_payments_desc(payments: Iterable[Payment]) -> list[Payment]:
    return sorted(payments, key=lambda p: p.paid_on, reverse=True)


def person_summaries(
    state: AppState,
    invoice_id: Optional[str],
    threshold: Decimal = DEFAULT_DEBT_THRESHOLD,
) -> list[PersonBalance]:
    """Per-person current-invoice spend next to their lifetime position."""
    current = invoice_expenses(state, invoice_id)
    summaries = []
    for person in state.people:
        spend = person_lifetime_spend(person.id, state.expenses)
        paid = person_lifetime_paid(person.id, state.payments)
        debt = spend - paid
        summaries.append(PersonBalance(
            person_id=person.id,
            name=person.name,
            display_color=person.display_color,
            current_spend=person_invoice_spend(person.id, current),
            current_by_card=person_card_breakdown(person.id, current),
            lifetime_spend=spend,
            lifetime_paid=paid,
            remaining_debt=debt,
            status=debt_status(debt, threshold),
        ))
    return summaries


def dashboard_summary(
    state: AppState,
    invoice_id: Optional[str] = None,
    threshold: Decimal = DEFAULT_DEBT_THRESHOLD,
) -> DashboardSummary:
    """
    Build the dashboard for one invoice.

    Without an explicit invoice_id the first open invoice is used.
    """
    if invoice_id is None:
        open_invoice = current_open_invoice(state)
        invoice_id = open_invoice.id if open_invoice else None

    invoice = state.find_invoice(invoice_id) if invoice_id else None
    current = invoice_expenses(state, invoice_id) if invoice else []

    return DashboardSummary(
        invoice_id=invoice.id if invoice else None,
        invoice_name=invoice.name if invoice else None,
        invoice_total=invoice_total(current),
        category_breakdown=category_breakdown(current),
        total_expenses=expenses_total(state),
        total_payments=payments_total(state),
        global_debt=global_debt(state),
        people=person_summaries(state, invoice.id if invoice else None, threshold),
    )
