"""
Ledger Operations

Pure value transforms over AppState. Each function takes a state and
returns the next one; nothing here keeps state or performs I/O.

CONTRACT:
- Unknown ids are a silent no-op and return the SAME state object,
  so callers can detect "nothing changed" with an identity check.
- Inputs are trusted. Amounts, dates and references are stored as given;
  validation belongs to the entry forms (see cardledger.validation).
- Deleting a person or card does not check references. Callers must
  consult person_in_use / card_in_use first.
"""

from typing import Callable, Optional, TypeVar

from cardledger.models.ledger import (
    AppState,
    CreditCard,
    Expense,
    Invoice,
    InvoiceStatus,
    Payment,
    Person,
    new_id,
)


R = TypeVar("R", Person, CreditCard, Expense, Payment, Invoice)


def _replace_by_id(records: tuple[R, ...], updated: R) -> Optional[tuple[R, ...]]:
    """Return a new tuple with `updated` swapped in, or None if its id is absent."""
    if not any(r.id == updated.id for r in records):
        return None
    return tuple(updated if r.id == updated.id else r for r in records)


def _remove_by_id(records: tuple[R, ...], record_id: str) -> Optional[tuple[R, ...]]:
    kept = tuple(r for r in records if r.id != record_id)
    if len(kept) == len(records):
        return None
    return kept


def _map_one(
    records: tuple[R, ...],
    record_id: str,
    change: Callable[[R], R],
) -> Optional[tuple[R, ...]]:
    found = False
    out = []
    for r in records:
        if r.id == record_id:
            found = True
            out.append(change(r))
        else:
            out.append(r)
    return tuple(out) if found else None


# =============================================================================
# PEOPLE & CARDS
# =============================================================================

def add_person(state: AppState, person: Person) -> AppState:
    return state.model_copy(update={"people": state.people + (person,)})


def update_person(state: AppState, person: Person) -> AppState:
    people = _replace_by_id(state.people, person)
    if people is None:
        return state
    return state.model_copy(update={"people": people})


def delete_person(state: AppState, person_id: str) -> AppState:
    people = _remove_by_id(state.people, person_id)
    if people is None:
        return state
    return state.model_copy(update={"people": people})


def add_card(state: AppState, card: CreditCard) -> AppState:
    return state.model_copy(update={"cards": state.cards + (card,)})


def update_card(state: AppState, card: CreditCard) -> AppState:
    cards = _replace_by_id(state.cards, card)
    if cards is None:
        return state
    return state.model_copy(update={"cards": cards})


def delete_card(state: AppState, card_id: str) -> AppState:
    cards = _remove_by_id(state.cards, card_id)
    if cards is None:
        return state
    return state.model_copy(update={"cards": cards})


def person_in_use(state: AppState, person_id: str) -> bool:
    """True while any expense or payment references the person."""
    return any(e.person_id == person_id for e in state.expenses) or any(
        p.person_id == person_id for p in state.payments
    )


def card_in_use(state: AppState, card_id: str) -> bool:
    """True while any expense was charged to the card."""
    return any(e.card_id == card_id for e in state.expenses)


# =============================================================================
# EXPENSES & PAYMENTS
# =============================================================================

def add_expense(state: AppState, expense: Expense) -> AppState:
    """Prepend: natural order is most-recent-insert first."""
    return state.model_copy(update={"expenses": (expense,) + state.expenses})


def update_expense(state: AppState, expense: Expense) -> AppState:
    expenses = _replace_by_id(state.expenses, expense)
    if expenses is None:
        return state
    return state.model_copy(update={"expenses": expenses})


def delete_expense(state: AppState, expense_id: str) -> AppState:
    expenses = _remove_by_id(state.expenses, expense_id)
    if expenses is None:
        return state
    return state.model_copy(update={"expenses": expenses})


def set_expense_analysis(
    state: AppState,
    expense_id: str,
    ai_analysis: Optional[str],
    category_id: Optional[str] = None,
) -> AppState:
    """Attach a classifier result to an existing expense."""

    def change(expense: Expense) -> Expense:
        update = {"ai_analysis": ai_analysis}
        if category_id:
            update["category_id"] = category_id
        return expense.model_copy(update=update)

    expenses = _map_one(state.expenses, expense_id, change)
    if expenses is None:
        return state
    return state.model_copy(update={"expenses": expenses})


def add_payment(state: AppState, payment: Payment) -> AppState:
    return state.model_copy(update={"payments": (payment,) + state.payments})


def delete_payment(state: AppState, payment_id: str) -> AppState:
    payments = _remove_by_id(state.payments, payment_id)
    if payments is None:
        return state
    return state.model_copy(update={"payments": payments})


# =============================================================================
# INVOICES
# =============================================================================

def create_invoice(
    state: AppState,
    name: str,
    invoice_id: Optional[str] = None,
) -> tuple[AppState, str]:
    """Put a new OPEN invoice at the front and return its id."""
    invoice = Invoice(id=invoice_id or new_id(), name=name, status=InvoiceStatus.OPEN)
    return state.model_copy(update={"invoices": (invoice,) + state.invoices}), invoice.id


def toggle_invoice_status(state: AppState, invoice_id: str) -> AppState:
    invoices = _map_one(
        state.invoices,
        invoice_id,
        lambda inv: inv.model_copy(update={"status": inv.status.toggled()}),
    )
    if invoices is None:
        return state
    return state.model_copy(update={"invoices": invoices})


def set_invoice_status(state: AppState, invoice_id: str, status: InvoiceStatus) -> AppState:
    """Like toggle, but idempotent: already in `status` means unchanged."""
    invoice = state.find_invoice(invoice_id)
    if invoice is None or invoice.status is status:
        return state
    return toggle_invoice_status(state, invoice_id)


def rename_invoice(state: AppState, invoice_id: str, name: str) -> AppState:
    invoice = state.find_invoice(invoice_id)
    if invoice is None or invoice.name == name:
        return state
    invoices = _map_one(
        state.invoices,
        invoice_id,
        lambda inv: inv.model_copy(update={"name": name}),
    )
    return state.model_copy(update={"invoices": invoices})


def delete_invoice(state: AppState, invoice_id: str) -> AppState:
    """Remove the invoice and every expense on it. Payments are untouched."""
    invoices = _remove_by_id(state.invoices, invoice_id)
    if invoices is None:
        return state
    return state.model_copy(update={
        "invoices": invoices,
        "expenses": tuple(e for e in state.expenses if e.invoice_id != invoice_id),
    })
