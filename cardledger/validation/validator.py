"""
Entry Validation

Fast-entry forms hand us raw text. Everything is checked here, before the
ledger sees it, because the ledger itself accepts any well-typed record.

CHECKS:
- Amount parses as a positive decimal ("1.234,56", "1234.56", "R$ 10,00")
- Person, card and invoice exist
- Dates in the future and closed invoices are flagged as warnings

Warnings never block entry; errors do. Nothing is silently corrected
except the documented defaults (blank description, missing date).
"""

import re
from datetime import date
from decimal import Decimal, InvalidOperation
from typing import Optional

from cardledger.config import get_settings
from cardledger.labels import label
from cardledger.models.ledger import (
    AppState,
    Expense,
    ExpenseCategory,
    Payment,
    ValidationIssue,
    ValidationResult,
)


_CURRENCY_NOISE = re.compile(r"[^\d,.\-]")
_THOUSANDS_DOT = re.compile(r"^-?\d{1,3}\.\d{3}$")


class InvalidAmountError(ValueError):
    """Amount text is empty, not a number, or not positive."""
    pass


def parse_amount(text: Optional[str], locale: str = "en") -> Decimal:
    """
    Parse a user-typed money amount.

    The right-most of "," and "." is the decimal separator when both
    appear. A lone comma is a decimal comma; repeated dots are thousands
    separators. A single dot is a decimal point, except under the "pt"
    locale when exactly three digits follow it ("1.500" is 1500 there).

    Raises:
        InvalidAmountError: For empty, non-numeric or non-positive input
    """
    if text is None or not text.strip():
        raise InvalidAmountError("Amount is required")

    cleaned = _CURRENCY_NOISE.sub("", text)
    if "," in cleaned and "." in cleaned:
        if cleaned.rfind(",") > cleaned.rfind("."):
            cleaned = cleaned.replace(".", "").replace(",", ".")
        else:
            cleaned = cleaned.replace(",", "")
    elif "," in cleaned:
        if cleaned.count(",") > 1:
            raise InvalidAmountError(f"Not a valid amount: {text!r}")
        cleaned = cleaned.replace(",", ".")
    elif cleaned.count(".") > 1 or (locale == "pt" and _THOUSANDS_DOT.match(cleaned)):
        cleaned = cleaned.replace(".", "")

    try:
        amount = Decimal(cleaned)
    except InvalidOperation:
        raise InvalidAmountError(f"Not a valid amount: {text!r}")

    if not amount.is_finite() or amount <= 0:
        raise InvalidAmountError("Amount must be greater than zero")
    return amount


class EntryValidator:
    """Validates expense and payment entry forms against the current state."""

    def __init__(self, locale: Optional[str] = None):
        self._locale = locale or get_settings().app.locale

    @property
    def default_description(self) -> str:
        return label("misc_expense", self._locale)

    def _check_amount(self, text: Optional[str], issues: list[ValidationIssue]) -> Optional[Decimal]:
        try:
            return parse_amount(text, self._locale)
        except InvalidAmountError as e:
            issues.append(ValidationIssue(
                field="amount",
                issue_type="invalid_amount",
                message=str(e),
            ))
            return None

    def _check_date(self, when: date, issues: list[ValidationIssue]) -> None:
        if when > date.today():
            issues.append(ValidationIssue(
                field="date",
                issue_type="future_date",
                message=f"Date ({when}) is in the future",
                severity="warning",
            ))

    def _check_person(self, state: AppState, person_id: str, issues: list[ValidationIssue]) -> None:
        if state.find_person(person_id) is None:
            issues.append(ValidationIssue(
                field="person_id",
                issue_type="unknown_reference",
                message="Select who made this entry",
            ))

    def validate_expense(
        self,
        state: AppState,
        description: str,
        amount_text: str,
        person_id: str,
        card_id: str,
        invoice_id: Optional[str],
        spent_on: Optional[date] = None,
        category_id: str = ExpenseCategory.OTHER.value,
    ) -> tuple[ValidationResult, Optional[Expense]]:
        """
        Validate a fast-entry expense.

        Returns the result and, when there are no errors, an Expense ready
        to be added (fresh id, defaults applied).
        """
        issues: list[ValidationIssue] = []

        amount = self._check_amount(amount_text, issues)
        self._check_person(state, person_id, issues)

        if state.find_card(card_id) is None:
            issues.append(ValidationIssue(
                field="card_id",
                issue_type="unknown_reference",
                message="Select the card used",
            ))

        invoice = state.find_invoice(invoice_id) if invoice_id else None
        if invoice is None:
            issues.append(ValidationIssue(
                field="invoice_id",
                issue_type="no_invoice",
                message="Create or select an invoice first",
            ))
        elif not invoice.is_open:
            issues.append(ValidationIssue(
                field="invoice_id",
                issue_type="closed_invoice",
                message=f"Invoice '{invoice.name}' is closed",
                severity="warning",
            ))

        spent_on = spent_on or date.today()
        self._check_date(spent_on, issues)

        result = ValidationResult(issues=issues)
        if result.has_errors:
            return result, None

        expense = Expense(
            description=(description or "").strip() or self.default_description,
            amount=amount,
            spent_on=spent_on,
            category_id=category_id or ExpenseCategory.OTHER.value,
            person_id=person_id,
            card_id=card_id,
            invoice_id=invoice_id,
        )
        return result, expense

    def validate_payment(
        self,
        state: AppState,
        person_id: str,
        amount_text: str,
        paid_on: Optional[date] = None,
    ) -> tuple[ValidationResult, Optional[Payment]]:
        issues: list[ValidationIssue] = []

        amount = self._check_amount(amount_text, issues)
        self._check_person(state, person_id, issues)

        paid_on = paid_on or date.today()
        self._check_date(paid_on, issues)

        result = ValidationResult(issues=issues)
        if result.has_errors:
            return result, None
        return result, Payment(person_id=person_id, amount=amount, paid_on=paid_on)
