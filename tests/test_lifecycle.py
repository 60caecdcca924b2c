"""Tests for the invoice lifecycle: closing, rollover and current-invoice tracking."""

from datetime import date
from decimal import Decimal
from pathlib import Path

import pytest

from cardledger.invoices import InvoiceLifecycleManager
from cardledger.ledger.store import LedgerStore
from cardledger.models import (
    AppState,
    CreditCard,
    Expense,
    Invoice,
    InvoiceReport,
    InvoiceStatus,
    Payment,
    Person,
)
from cardledger.queries import balances
from cardledger.reports import ReportExporter, ReportExportError
from cardledger.services.storage import InMemoryStateStorage


TODAY = date(2024, 4, 2)


class RecordingExporter(ReportExporter):
    """Exporter that remembers what it was asked to render."""

    def __init__(self):
        self.reports: list[InvoiceReport] = []

    def export(self, report: InvoiceReport) -> Path:
        self.reports.append(report)
        return Path("/reports") / f"{report.file_stem}.pdf"


class BrokenExporter(ReportExporter):
    def export(self, report: InvoiceReport) -> Path:
        raise ReportExportError("printer on fire")


@pytest.fixture
def basic_state() -> AppState:
    """P1 spent 100 and 50 on I1 and paid 30."""
    return AppState(
        people=(Person(id="P1", name="P1"),),
        cards=(CreditCard(id="c1", name="Nubank"),),
        expenses=(
            Expense(id="x2", description="b", amount=Decimal("50"), spent_on=date(2024, 3, 5),
                    person_id="P1", card_id="c1", invoice_id="I1"),
            Expense(id="x1", description="a", amount=Decimal("100"), spent_on=date(2024, 3, 1),
                    person_id="P1", card_id="c1", invoice_id="I1"),
        ),
        payments=(Payment(id="pay", person_id="P1", amount=Decimal("30")),),
        invoices=(Invoice(id="I1", name="I1"),),
    )


def _manager(state: AppState, exporter: ReportExporter = None) -> InvoiceLifecycleManager:
    store = LedgerStore(state=state, storage=InMemoryStateStorage())
    return InvoiceLifecycleManager(store, report_exporter=exporter, locale="en", debt_threshold=Decimal("1"))


class TestClosingScenarios:
    """End-to-end closing scenarios."""

    def test_close_keeps_debt_and_closes_invoice(self, basic_state):
        """Test that closing never changes what P1 owes."""
        manager = _manager(basic_state)
        store = manager._store
        assert balances.remaining_debt(store.state, "P1") == Decimal("120")

        manager.confirm_close("I1", today=TODAY)

        assert balances.remaining_debt(store.state, "P1") == Decimal("120")
        assert store.state.find_invoice("I1").status is InvoiceStatus.CLOSED

    def test_rollover(self, basic_state):
        """Test the successor invoice, offsetting payment and carried expense."""
        manager = _manager(basic_state)
        store = manager._store

        outcome = manager.confirm_close("I1", today=TODAY)

        state = store.state
        assert outcome.next_invoice_id is not None
        i2 = state.find_invoice(outcome.next_invoice_id)
        assert i2.is_open
        assert state.invoices[0].id == i2.id

        payment = state.payments[0]
        assert (payment.person_id, payment.amount, payment.paid_on) == ("P1", Decimal("120"), TODAY)

        carried = balances.invoice_expenses(state, i2.id)
        assert len(carried) == 1
        assert carried[0].person_id == "P1"
        assert carried[0].amount == Decimal("120")
        assert "I1" in carried[0].description
        assert carried[0].category_id == "Other"
        assert carried[0].card_id == "c1"

        assert balances.invoice_total(carried) == Decimal("120")
        assert balances.remaining_debt(state, "P1") == Decimal("120")
        assert [r.amount for r in outcome.rollover] == [Decimal("120")]

    def test_rollover_conserves_global_debt(self, march_state):
        """Test that the payment/expense pair cancels out."""
        manager = _manager(march_state)
        before = balances.global_debt(manager._store.state)

        manager.confirm_close("inv-mar", today=TODAY)

        state = manager._store.state
        assert balances.global_debt(state) == before
        old_total = balances.invoice_total(balances.invoice_expenses(state, "inv-mar"))
        assert old_total == Decimal("150.00")

    def test_old_expenses_untouched(self, march_state):
        """Test that closing does not edit the closed invoice's expenses."""
        manager = _manager(march_state)
        manager.confirm_close("inv-mar", today=TODAY)
        old = balances.invoice_expenses(manager._store.state, "inv-mar")
        assert old == list(march_state.expenses)


class TestRolloverRules:
    """Tests for who and what gets carried forward."""

    def test_settled_people_are_not_carried(self, settled_state):
        """Test that declining a successor only closes the invoice when nobody owes."""
        manager = _manager(settled_state)
        outcome = manager.confirm_close("inv-mar", today=TODAY, create_next=False)

        assert outcome.next_invoice_id is None
        assert outcome.rollover == []
        assert len(manager._store.state.invoices) == 1
        assert manager._store.state.invoices[0].status is InvoiceStatus.CLOSED

    def test_small_residue_is_not_carried(self, settled_state):
        """Test that debts up to the threshold are ignored."""
        state = settled_state.model_copy(update={
            "expenses": (Expense(
                description="rounding", amount=Decimal("0.90"),
                person_id="p1", card_id="c1", invoice_id="inv-mar",
            ),) + settled_state.expenses,
        })
        manager = _manager(state)
        outcome = manager.confirm_close("inv-mar", today=TODAY)
        assert outcome.rollover == []
        assert balances.invoice_expenses(manager._store.state, outcome.next_invoice_id) == []

    def test_settled_close_opens_next_invoice(self, settled_state):
        """Test that closing the newest invoice opens the confirmed successor."""
        manager = _manager(settled_state)
        proposal = manager.initiate_close("inv-mar", today=TODAY)
        assert proposal.is_latest
        assert proposal.creates_successor

        outcome = manager.confirm_close("inv-mar", next_invoice_name="Invoice April", today=TODAY)

        state = manager._store.state
        successor = state.find_invoice(outcome.next_invoice_id)
        assert successor.name == "Invoice April"
        assert successor.is_open
        assert state.find_invoice("inv-mar").status is InvoiceStatus.CLOSED
        assert state.payments == settled_state.payments
        assert balances.invoice_expenses(state, successor.id) == []
        assert manager.current_invoice_id == successor.id

    def test_settled_close_of_older_invoice(self, settled_state):
        """Test that closing an older invoice does not open another by default."""
        manager = _manager(settled_state)
        newer = manager.create_invoice("Invoice April")

        proposal = manager.initiate_close("inv-mar", today=TODAY)
        assert not proposal.is_latest
        assert not proposal.creates_successor

        outcome = manager.confirm_close("inv-mar", today=TODAY)
        assert outcome.next_invoice_id is None
        assert [i.id for i in manager._store.state.invoices] == [newer, "inv-mar"]

    def test_only_debtors_are_carried(self, march_state):
        """Test that a person who paid in full is skipped."""
        state = march_state.model_copy(update={
            "payments": (Payment(person_id="p2", amount=Decimal("50.00")),),
        })
        outcome = _manager(state).confirm_close("inv-mar", today=TODAY)
        assert [(r.person_id, r.amount) for r in outcome.rollover] == [("p1", Decimal("100.00"))]

    def test_rollover_uses_latest_card(self, march_state):
        """Test that the person's most recent card on the invoice is used."""
        state = march_state.model_copy(update={
            "expenses": (Expense(
                description="Uber", amount=Decimal("20"), spent_on=date(2024, 3, 28),
                person_id="p1", card_id="c2", invoice_id="inv-mar",
            ),) + march_state.expenses,
        })
        manager = _manager(state)
        outcome = manager.confirm_close("inv-mar", today=TODAY)

        carried = balances.invoice_expenses(manager._store.state, outcome.next_invoice_id)
        cards = {e.person_id: e.card_id for e in carried}
        assert cards == {"p1": "c2", "p2": "c1"}

    def test_custom_successor_name(self, march_state):
        """Test that an edited successor name is used."""
        manager = _manager(march_state)
        outcome = manager.confirm_close("inv-mar", next_invoice_name="  April 2024 ", today=TODAY)
        assert manager._store.state.find_invoice(outcome.next_invoice_id).name == "April 2024"

    def test_suggested_successor_name(self, march_state):
        """Test the default successor name."""
        manager = _manager(march_state)
        outcome = manager.confirm_close("inv-mar", today=TODAY)
        assert manager._store.state.find_invoice(outcome.next_invoice_id).name == "Invoice April"

    def test_portuguese_rollover_description(self, march_state):
        """Test the localized carried-balance description."""
        store = LedgerStore(state=march_state)
        manager = InvoiceLifecycleManager(store, locale="pt", debt_threshold=Decimal("1"))
        outcome = manager.confirm_close("inv-mar", today=TODAY)
        carried = balances.invoice_expenses(store.state, outcome.next_invoice_id)
        assert carried[0].description == "Saldo Anterior (Invoice March)"


class TestCloseProtocol:
    """Tests for the two-step close and its guards."""

    def test_initiate_close_proposal(self, march_state):
        """Test the proposal shown before confirming."""
        proposal = _manager(march_state).initiate_close("inv-mar", today=TODAY)
        assert proposal.suggested_next_name == "Invoice April"
        assert proposal.is_latest
        assert proposal.creates_successor
        assert {r.person_id: r.amount for r in proposal.rollover} == {
            "p1": Decimal("100.00"),
            "p2": Decimal("50.00"),
        }

    def test_initiate_does_not_mutate(self, march_state):
        """Test that a proposal changes nothing."""
        manager = _manager(march_state)
        manager.initiate_close("inv-mar")
        assert manager._store.state is march_state

    def test_closed_invoice_cannot_be_closed_again(self, march_state):
        """Test that a repeated close is a no-op."""
        manager = _manager(march_state)
        manager.confirm_close("inv-mar", today=TODAY)
        state = manager._store.state

        assert manager.initiate_close("inv-mar") is None
        assert manager.confirm_close("inv-mar", today=TODAY) is None
        assert manager._store.state is state

    def test_unknown_invoice(self, march_state):
        """Test closing an id that does not exist."""
        manager = _manager(march_state)
        assert manager.initiate_close("nope") is None
        assert manager.confirm_close("nope") is None

    def test_reopen_has_no_side_effects(self, march_state):
        """Test that reopening only flips the status."""
        manager = _manager(march_state)
        manager.confirm_close("inv-mar", today=TODAY)
        before = manager._store.state

        assert manager.reopen("inv-mar")
        after = manager._store.state
        assert after.find_invoice("inv-mar").is_open
        assert after.expenses == before.expenses
        assert after.payments == before.payments
        assert not manager.reopen("inv-mar")


class TestReportExport:
    """Tests for the optional export during close."""

    def test_export_before_close(self, march_state):
        """Test that the report reflects the pre-rollover invoice."""
        exporter = RecordingExporter()
        outcome = _manager(march_state, exporter).confirm_close(
            "inv-mar", with_report_export=True, today=TODAY,
        )
        assert outcome.report_path.endswith("Invoice-Invoice_March.pdf")
        assert outcome.report_error is None
        report = exporter.reports[0]
        assert report.global_total == Decimal("150.00")

    def test_export_failure_does_not_block_close(self, march_state):
        """Test that a broken exporter is reported and ignored."""
        manager = _manager(march_state, BrokenExporter())
        outcome = manager.confirm_close("inv-mar", with_report_export=True, today=TODAY)

        assert "printer on fire" in outcome.report_error
        assert outcome.report_path is None
        assert manager._store.state.find_invoice("inv-mar").status is InvoiceStatus.CLOSED

    def test_missing_exporter(self, march_state):
        """Test asking for a report with no exporter configured."""
        manager = _manager(march_state)
        outcome = manager.confirm_close("inv-mar", with_report_export=True, today=TODAY)
        assert outcome.report_error
        assert manager._store.state.find_invoice("inv-mar").status is InvoiceStatus.CLOSED

    def test_no_export_unless_asked(self, march_state):
        """Test that exporting is opt-in."""
        exporter = RecordingExporter()
        _manager(march_state, exporter).confirm_close("inv-mar", today=TODAY)
        assert exporter.reports == []


class TestCurrentInvoice:
    """Tests for the current-invoice pointer."""

    def test_initial_resolution(self, march_state, closed_invoice):
        """Test that the first open invoice is picked on startup."""
        state = march_state.model_copy(update={"invoices": (closed_invoice,) + march_state.invoices})
        assert _manager(state).current_invoice_id == "inv-mar"

    def test_all_closed_picks_first(self, closed_invoice, seed_state):
        """Test the fallback to the first invoice."""
        state = seed_state.model_copy(update={"invoices": (closed_invoice,)})
        assert _manager(state).current_invoice_id == "inv-feb"

    def test_no_invoices(self, seed_state):
        """Test that an empty ledger has no current invoice."""
        manager = _manager(seed_state)
        assert manager.current_invoice_id is None
        assert manager.current_invoice is None

    def test_close_selects_successor(self, march_state):
        """Test that the new invoice becomes current after a rollover."""
        manager = _manager(march_state)
        outcome = manager.confirm_close("inv-mar", today=TODAY)
        assert manager.current_invoice_id == outcome.next_invoice_id

    def test_create_selects_new_invoice(self, march_state):
        """Test that a created invoice becomes current."""
        manager = _manager(march_state)
        invoice_id = manager.create_invoice("  Invoice May ")
        assert manager.current_invoice_id == invoice_id
        assert manager.current_invoice.name == "Invoice May"
        assert manager.create_invoice("   ") is None

    def test_delete_current_reselects(self, march_state):
        """Test that deleting the current invoice never leaves a dangling pointer."""
        manager = _manager(march_state)
        other = manager.create_invoice("Invoice April")
        manager.toggle_status(other)

        manager.select("inv-mar")
        manager.delete_invoice("inv-mar")

        assert manager.current_invoice_id == other
        assert manager._store.state.expenses == ()

    def test_delete_last_invoice(self, march_state):
        """Test that deleting the only invoice clears the pointer."""
        manager = _manager(march_state)
        manager.delete_invoice("inv-mar")
        assert manager.current_invoice_id is None

    def test_select_unknown_is_ignored(self, march_state):
        """Test that an unknown id cannot be selected."""
        manager = _manager(march_state)
        assert not manager.select("nope")
        assert manager.current_invoice_id == "inv-mar"

    def test_rename_ignores_blank(self, march_state):
        """Test renaming through the manager."""
        manager = _manager(march_state)
        manager.rename_invoice("inv-mar", "   ")
        assert manager.current_invoice.name == "Invoice March"
        manager.rename_invoice("inv-mar", "March")
        assert manager.current_invoice.name == "March"

    def test_multiple_open_invoices_allowed(self, march_state):
        """Test that creating an invoice leaves others open."""
        manager = _manager(march_state)
        manager.create_invoice("Side trip")
        assert all(i.is_open for i in manager._store.state.invoices)

    def test_close_unsubscribes(self, march_state):
        """Test that a closed manager stops tracking changes."""
        manager = _manager(march_state)
        manager.close()
        manager._store.delete_invoice("inv-mar")
        assert manager.current_invoice_id == "inv-mar"
