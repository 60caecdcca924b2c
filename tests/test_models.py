"""
Tests for the ledger data models.

Test strategy:
1. Unit tests for individual components (models, operations, queries)
2. Flow tests with in-memory storage and mocked external services
3. No real API calls in tests (use mocks)
"""

import json
from datetime import date
from decimal import Decimal

import pytest
from pydantic import ValidationError

from cardledger.models import (
    AppState,
    CreditCard,
    Expense,
    ExpenseCategory,
    Invoice,
    InvoiceReport,
    InvoiceStatus,
    Payment,
    Person,
    ValidationIssue,
    ValidationResult,
    default_state,
    new_id,
)


class TestLedgerRecords:
    """Tests for the individual ledger records."""

    def test_new_ids_are_unique(self):
        """Test that generated ids do not repeat."""
        assert len({new_id() for _ in range(100)}) == 100

    def test_records_are_frozen(self):
        """Test that records cannot be edited in place."""
        person = Person(name="Ana")
        with pytest.raises(ValidationError):
            person.name = "Bia"

    def test_expense_defaults(self):
        """Test category and date defaults on a new expense."""
        expense = Expense(
            description="Coffee",
            amount=Decimal("7.50"),
            person_id="p1",
            card_id="c1",
            invoice_id="i1",
        )
        assert expense.category_id == ExpenseCategory.OTHER.value
        assert expense.spent_on == date.today()
        assert expense.ai_analysis is None

    def test_invoice_is_created_open(self):
        """Test that invoices start open."""
        invoice = Invoice(name="Invoice March")
        assert invoice.status is InvoiceStatus.OPEN
        assert invoice.is_open

    def test_status_toggle(self):
        """Test that toggling flips between the two statuses."""
        assert InvoiceStatus.OPEN.toggled() is InvoiceStatus.CLOSED
        assert InvoiceStatus.CLOSED.toggled() is InvoiceStatus.OPEN


class TestAppStateSerialization:
    """Tests for the persisted JSON layout."""

    def test_camel_case_keys(self, march_state):
        """Test that the blob uses the camelCase key names."""
        blob = json.loads(march_state.to_json())
        expense = blob["expenses"][0]
        assert {"personId", "cardId", "invoiceId", "categoryId", "date", "aiAnalysis"} <= set(expense)
        assert "displayColor" in blob["people"][0]
        assert blob["cards"][0]["last4Digits"] == "1234"

    def test_amounts_serialize_as_decimal_strings(self, march_state):
        """Test that amounts survive as exact decimals."""
        blob = json.loads(march_state.to_json())
        assert blob["expenses"][0]["amount"] == "50.00"

    def test_round_trip_is_lossless(self, settled_state):
        """Test that load(save(state)) equals state."""
        assert AppState.from_json(settled_state.to_json()) == settled_state

    def test_missing_collections_use_defaults(self):
        """Test that an older blob without invoices/payments still loads."""
        state = AppState.from_json(json.dumps({
            "expenses": [{
                "id": "e1", "description": "Taxi", "amount": 12.5,
                "date": "2024-01-05", "personId": "p1", "cardId": "c1",
                "invoiceId": "i1",
            }],
        }))
        assert state.invoices == ()
        assert state.payments == ()
        assert [p.id for p in state.people] == ["p1", "p2"]
        assert state.expenses[0].amount == Decimal("12.5")

    def test_legacy_color_key_is_accepted(self):
        """Test that people saved with "color" load into display_color."""
        state = AppState.from_json(json.dumps({
            "people": [{"id": "p9", "name": "Caio", "color": "#000000"}],
        }))
        assert state.people[0].display_color == "#000000"


class TestDefaultState:
    """Tests for the built-in seed."""

    def test_seed_people_and_card(self):
        """Test the two seeded people and the seeded card."""
        state = default_state()
        assert [(p.id, p.name) for p in state.people] == [("p1", "João"), ("p2", "Maria")]
        assert state.cards[0].id == "c1"
        assert state.cards[0].last4_digits == "1234"
        assert state.expenses == state.payments == state.invoices == ()

    def test_find_helpers(self, march_state):
        """Test lookups by id, including misses."""
        assert march_state.find_person("p2").name == "Maria"
        assert march_state.find_card("c2").name == "Inter"
        assert march_state.find_invoice("inv-mar").name == "Invoice March"
        assert march_state.find_expense("e1").description == "Groceries"
        assert march_state.find_expense("nope") is None


class TestValidationResult:
    """Tests for ValidationResult."""

    def test_validation_result_has_errors(self):
        """Test error detection."""
        result = ValidationResult(issues=[
            ValidationIssue(field="amount", issue_type="invalid_amount", message="Bad"),
            ValidationIssue(field="date", issue_type="future_date", message="Later", severity="warning"),
        ])
        assert result.has_errors
        assert not result.is_valid
        assert result.error_count == 1

    def test_validation_result_warnings_only(self):
        """Test that warnings alone are still valid."""
        result = ValidationResult(issues=[
            ValidationIssue(field="date", issue_type="future_date", message="Later", severity="warning"),
        ])
        assert result.is_valid
        assert result.error_count == 0

    def test_unknown_severity_rejected(self):
        """Test that severities are restricted."""
        with pytest.raises(ValidationError):
            ValidationIssue(field="x", issue_type="y", message="z", severity="fatal")


class TestReportModels:
    """Tests for report read models."""

    def test_file_stem_collapses_whitespace(self):
        """Test the exported file name."""
        report = InvoiceReport(
            invoice_id="i1",
            invoice_name="Invoice  March 2024",
            generated_on=date(2024, 4, 1),
        )
        assert report.file_stem == "Invoice-Invoice_March_2024"


class TestCategories:
    """Tests for expense categories."""

    def test_all_categories_exist(self):
        """Test the full category list."""
        assert [c.value for c in ExpenseCategory] == [
            "Food", "Transport", "Shopping", "Services",
            "Entertainment", "Health", "Travel", "Other",
        ]
