"""
Core Data Models for the Card Ledger

These models define the schemas for everything the ledger stores.
They are designed to:
1. Be immutable (every "update" replaces a whole record)
2. Serialize losslessly to the persisted JSON blob
3. Accept older blobs (missing collections, legacy key names)

DESIGN DECISION: Records are frozen Pydantic v2 models and the aggregate
root holds tuples. A mutation always produces a new AppState, so observers
can detect changes by identity comparison.

Python attributes are snake_case; the persisted JSON uses camelCase keys
(personId, invoiceId, displayColor, ...).
"""

from datetime import date
from decimal import Decimal
from enum import Enum
from typing import Optional
from uuid import uuid4

from pydantic import AliasChoices, BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


def new_id() -> str:
    """Generate a fresh record id (uuid4, backed by the OS random source)."""
    return str(uuid4())


# =============================================================================
# ENUMS - Finite set of valid values
# =============================================================================

class InvoiceStatus(str, Enum):
    """
    Billing cycle status.

    OPEN invoices accept new expenses; CLOSED ones are reporting-only.
    """
    OPEN = "open"
    CLOSED = "closed"

    def toggled(self) -> "InvoiceStatus":
        return InvoiceStatus.CLOSED if self is InvoiceStatus.OPEN else InvoiceStatus.OPEN


class ExpenseCategory(str, Enum):
    """Expense categories offered to the user and to the classifier."""
    FOOD = "Food"
    TRANSPORT = "Transport"
    SHOPPING = "Shopping"
    SERVICES = "Services"
    ENTERTAINMENT = "Entertainment"
    HEALTH = "Health"
    TRAVEL = "Travel"
    OTHER = "Other"


# =============================================================================
# LEDGER RECORDS
# =============================================================================

class LedgerRecord(BaseModel):
    """Base for every persisted record."""
    model_config = ConfigDict(
        frozen=True,
        alias_generator=to_camel,
        populate_by_name=True,
    )


class Person(LedgerRecord):
    """Someone whose spending is tracked."""

    id: str = Field(default_factory=new_id)
    name: str
    display_color: str = Field(
        default="#64748b",
        validation_alias=AliasChoices("displayColor", "color", "display_color"),
        serialization_alias="displayColor",
        description="Hex color used by dashboards",
    )


class CreditCard(LedgerRecord):
    """A card expenses are charged to."""

    id: str = Field(default_factory=new_id)
    name: str
    last4_digits: Optional[str] = Field(
        default=None,
        alias="last4Digits",
        description="Last four digits shown next to the card name",
    )
    display_color: str = Field(
        default="#64748b",
        validation_alias=AliasChoices("displayColor", "color", "display_color"),
        serialization_alias="displayColor",
    )


class Invoice(LedgerRecord):
    """
    One billing cycle.

    Created OPEN. Toggling flips between OPEN and CLOSED; closing never
    touches the invoice's expenses.
    """

    id: str = Field(default_factory=new_id)
    name: str
    status: InvoiceStatus = InvoiceStatus.OPEN

    @property
    def is_open(self) -> bool:
        return self.status is InvoiceStatus.OPEN


class Expense(LedgerRecord):
    """
    A single spend event.

    Attributed to a person, a card, a category and an invoice.
    Amount is trusted as given: validation happens before records
    reach the ledger.
    """

    id: str = Field(default_factory=new_id)
    description: str
    amount: Decimal = Field(..., description="Amount in currency units")
    spent_on: date = Field(default_factory=date.today, alias="date")
    category_id: str = ExpenseCategory.OTHER.value
    person_id: str
    card_id: str
    invoice_id: str
    ai_analysis: Optional[str] = Field(
        default=None,
        description="Advisory tip returned by the classifier",
    )


class Payment(LedgerRecord):
    """
    Money received from a person.

    Payments are global: they reduce the person's lifetime debt
    regardless of which invoice produced it.
    """

    id: str = Field(default_factory=new_id)
    person_id: str
    amount: Decimal
    paid_on: date = Field(default_factory=date.today, alias="date")


# =============================================================================
# AGGREGATE ROOT
# =============================================================================

def _seed_people() -> tuple[Person, ...]:
    return (
        Person(id="p1", name="João", display_color="#4f46e5"),
        Person(id="p2", name="Maria", display_color="#ec4899"),
    )


def _seed_cards() -> tuple[CreditCard, ...]:
    return (
        CreditCard(id="c1", name="Nubank", last4_digits="1234", display_color="#8b5cf6"),
    )


class AppState(LedgerRecord):
    """
    The whole ledger.

    A missing collection in a persisted blob falls back to its default:
    seed people/cards, empty expenses/payments/invoices.
    """

    people: tuple[Person, ...] = Field(default_factory=_seed_people)
    cards: tuple[CreditCard, ...] = Field(default_factory=_seed_cards)
    expenses: tuple[Expense, ...] = ()
    payments: tuple[Payment, ...] = ()
    invoices: tuple[Invoice, ...] = ()

    def find_person(self, person_id: str) -> Optional[Person]:
        return next((p for p in self.people if p.id == person_id), None)

    def find_card(self, card_id: str) -> Optional[CreditCard]:
        return next((c for c in self.cards if c.id == card_id), None)

    def find_invoice(self, invoice_id: str) -> Optional[Invoice]:
        return next((i for i in self.invoices if i.id == invoice_id), None)

    def find_expense(self, expense_id: str) -> Optional[Expense]:
        return next((e for e in self.expenses if e.id == expense_id), None)

    def to_json(self) -> str:
        """Serialize to the persisted blob layout."""
        return self.model_dump_json(by_alias=True)

    @classmethod
    def from_json(cls, raw: str) -> "AppState":
        return cls.model_validate_json(raw)


def default_state() -> AppState:
    """Built-in starting state: two people, one card, empty ledgers."""
    return AppState()


# =============================================================================
# VALIDATION MODELS (UI boundary)
# =============================================================================

class ValidationIssue(BaseModel):
    """A single problem found in user input."""

    field: str = Field(
        ...,
        description="Field with the issue"
    )
    issue_type: str = Field(
        ...,
        description="Type of issue (e.g., 'missing', 'invalid_amount')"
    )
    message: str = Field(
        ...,
        description="Human-readable description of the issue"
    )
    severity: str = Field(
        default="error",
        pattern="^(error|warning|info)$",
    )


class ValidationResult(BaseModel):
    """Outcome of validating one entry form."""

    issues: list[ValidationIssue] = Field(default_factory=list)

    @property
    def is_valid(self) -> bool:
        return not self.has_errors

    @property
    def has_errors(self) -> bool:
        """Check if there are any error-level issues."""
        return any(issue.severity == "error" for issue in self.issues)

    @property
    def error_count(self) -> int:
        return sum(1 for issue in self.issues if issue.severity == "error")
