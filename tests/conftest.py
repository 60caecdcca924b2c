"""Shared fixtures: isolated settings, seeded states and in-memory stores."""

from datetime import date
from decimal import Decimal

import pytest

from cardledger.config import get_settings
from cardledger.ledger.store import LedgerStore
from cardledger.models.ledger import (
    AppState,
    CreditCard,
    Expense,
    Invoice,
    InvoiceStatus,
    Payment,
    Person,
    default_state,
)
from cardledger.services.storage import InMemoryStateStorage


@pytest.fixture(autouse=True)
def isolated_settings(monkeypatch, tmp_path):
    """Keep tests away from the real environment and home directory."""
    for var in ("GEMINI_API_KEY", "API_KEY", "LEDGER_LOCALE", "LEDGER_DEBT_THRESHOLD"):
        monkeypatch.delenv(var, raising=False)
    monkeypatch.setenv("LEDGER_STORAGE_DATA_PATH", str(tmp_path / "state.json"))
    monkeypatch.setenv("LEDGER_REPORT_OUTPUT_DIR", str(tmp_path / "reports"))
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def seed_state() -> AppState:
    return default_state()


@pytest.fixture
def march_state() -> AppState:
    """
    One open invoice "Invoice March" with two expenses and no payments:
    João 100.00 and Maria 50.00, both on card c1.
    """
    return AppState(
        people=(
            Person(id="p1", name="João", display_color="#4f46e5"),
            Person(id="p2", name="Maria", display_color="#ec4899"),
        ),
        cards=(
            CreditCard(id="c1", name="Nubank", last4_digits="1234"),
            CreditCard(id="c2", name="Inter", last4_digits="9876"),
        ),
        expenses=(
            Expense(
                id="e2", description="Pharmacy", amount=Decimal("50.00"),
                spent_on=date(2024, 3, 12), category_id="Health",
                person_id="p2", card_id="c1", invoice_id="inv-mar",
            ),
            Expense(
                id="e1", description="Groceries", amount=Decimal("100.00"),
                spent_on=date(2024, 3, 10), category_id="Food",
                person_id="p1", card_id="c1", invoice_id="inv-mar",
            ),
        ),
        invoices=(Invoice(id="inv-mar", name="Invoice March"),),
    )


@pytest.fixture
def settled_state(march_state) -> AppState:
    """Same as march_state, but both people have paid in full."""
    return march_state.model_copy(update={
        "payments": (
            Payment(id="pay1", person_id="p1", amount=Decimal("100.00"), paid_on=date(2024, 3, 20)),
            Payment(id="pay2", person_id="p2", amount=Decimal("50.00"), paid_on=date(2024, 3, 20)),
        ),
    })


@pytest.fixture
def closed_invoice() -> Invoice:
    return Invoice(id="inv-feb", name="Invoice February", status=InvoiceStatus.CLOSED)


@pytest.fixture
def memory_storage() -> InMemoryStateStorage:
    return InMemoryStateStorage()


@pytest.fixture
def store(march_state, memory_storage) -> LedgerStore:
    return LedgerStore(state=march_state, storage=memory_storage)
