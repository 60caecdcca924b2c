"""
Invoice Lifecycle Manager

Owns the invoice state machine and the "current invoice" pointer.

STATES: open <-> closed. Reopening has no side effects.

CLOSING (two steps, user in the loop):
1. initiate_close  -> ClosingProposal: suggested successor name and the
                      balances that will be carried forward
2. confirm_close   -> CloseOutcome, applied in this fixed order:
   a. optional report export (a failure is recorded, never blocking)
   b. create the successor invoice when anyone owes more than the threshold
      or when asked to (by default: when closing the newest invoice), then
      for each debtor add Payment(debt) and an equal Expense
      "Previous Balance (<old name>)" on the successor
   c. mark the old invoice closed

The payment/expense pair cancels out in the ledger equation, so global
debt is unchanged; the debt is simply re-homed on the new invoice.
Closing never deletes or edits the old invoice's expenses.

CURRENT INVOICE: re-resolved after every store change, so it can never
point at a deleted invoice. Several invoices may be open at once.
"""

from datetime import date
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, Field

from cardledger.config import get_settings
from cardledger.invoices import naming
from cardledger.labels import label
from cardledger.ledger.store import LedgerStore
from cardledger.logger import get_logger
from cardledger.models.ledger import (
    AppState,
    Expense,
    ExpenseCategory,
    Invoice,
    InvoiceStatus,
    Payment,
)
from cardledger.queries.balances import invoice_expenses, is_in_debt, remaining_debt
from cardledger.reports import ReportExporter, export_invoice_report


class RolloverLine(BaseModel):
    """One person's balance carried into the successor invoice."""

    person_id: str
    amount: Decimal


class ClosingProposal(BaseModel):
    """What confirming the close of an invoice would do."""

    invoice_id: str
    invoice_name: str
    suggested_next_name: str = Field(
        ...,
        description="Editable default for the successor invoice"
    )
    rollover: list[RolloverLine] = Field(default_factory=list)
    is_latest: bool = Field(
        ...,
        description="Whether this is the newest invoice"
    )

    @property
    def creates_successor(self) -> bool:
        """Whether confirming with the defaults opens a new invoice."""
        return bool(self.rollover) or self.is_latest


class CloseOutcome(BaseModel):
    """Result of a confirmed close."""

    invoice_id: str
    next_invoice_id: Optional[str] = None
    rollover: list[RolloverLine] = Field(default_factory=list)
    report_path: Optional[str] = None
    report_error: Optional[str] = None


class InvoiceLifecycleManager:
    """
    State machine for invoices on top of a LedgerStore.

    Holds no ledger data of its own; only the current-invoice pointer.
    """

    def __init__(
        self,
        store: LedgerStore,
        report_exporter: Optional[ReportExporter] = None,
        locale: Optional[str] = None,
        debt_threshold: Optional[Decimal] = None,
    ):
        self._store = store
        self._exporter = report_exporter
        if locale is None or debt_threshold is None:
            app = get_settings().app
            locale = locale or app.locale
            debt_threshold = debt_threshold if debt_threshold is not None else app.debt_threshold
        self._locale = locale
        self._threshold = debt_threshold
        self._logger = get_logger(__name__)

        self._current_id: Optional[str] = None
        self._current_id = self.resolve_current()
        self._unsubscribe = store.subscribe(self._on_change)

    # -------------------------------------------------------------------------
    # Current invoice pointer
    # -------------------------------------------------------------------------

    @property
    def current_invoice_id(self) -> Optional[str]:
        return self._current_id

    @property
    def current_invoice(self) -> Optional[Invoice]:
        if self._current_id is None:
            return None
        return self._store.state.find_invoice(self._current_id)

    def select(self, invoice_id: str) -> bool:
        """Point at an existing invoice. Unknown ids are ignored."""
        if self._store.state.find_invoice(invoice_id) is None:
            return False
        self._current_id = invoice_id
        return True

    def resolve_current(self) -> Optional[str]:
        """
        Keep the current invoice if it still exists; otherwise prefer the
        first open invoice, then the first invoice, then none.
        """
        state = self._store.state
        if self._current_id and state.find_invoice(self._current_id):
            return self._current_id
        open_invoice = next((i for i in state.invoices if i.is_open), None)
        if open_invoice:
            return open_invoice.id
        return state.invoices[0].id if state.invoices else None

    def _on_change(self, old: AppState, new: AppState) -> None:
        resolved = self.resolve_current()
        if resolved != self._current_id:
            self._logger.info(
                "current_invoice_reselected",
                previous=self._current_id,
                current=resolved,
            )
        self._current_id = resolved

    def close(self) -> None:
        """Stop following store changes."""
        self._unsubscribe()

    # -------------------------------------------------------------------------
    # Create / rename / toggle / delete
    # -------------------------------------------------------------------------

    def create_invoice(self, name: str) -> Optional[str]:
        """Create an open invoice and make it current. Blank names are ignored."""
        name = name.strip()
        if not name:
            return None
        invoice_id = self._store.create_invoice(name)
        self._current_id = invoice_id
        return invoice_id

    def rename_invoice(self, invoice_id: str, name: str) -> None:
        name = name.strip()
        if not name:
            return
        self._store.rename_invoice(invoice_id, name)

    def toggle_status(self, invoice_id: str) -> None:
        self._store.toggle_invoice_status(invoice_id)

    def reopen(self, invoice_id: str) -> bool:
        return self._store.set_invoice_status(invoice_id, InvoiceStatus.OPEN)

    def delete_invoice(self, invoice_id: str) -> None:
        """
        Delete an invoice and its expenses. Irreversible.

        The current pointer is re-resolved by the store subscription.
        """
        invoice = self._store.state.find_invoice(invoice_id)
        if invoice is None:
            return
        expense_count = len(invoice_expenses(self._store.state, invoice_id))
        self._store.delete_invoice(invoice_id)
        self._logger.info(
            "invoice_deleted",
            invoice_id=invoice_id,
            name=invoice.name,
            expenses_removed=expense_count,
        )

    # -------------------------------------------------------------------------
    # Closing
    # -------------------------------------------------------------------------

    def suggest_next_name(self, invoice_id: str, today: Optional[date] = None) -> Optional[str]:
        invoice = self._store.state.find_invoice(invoice_id)
        if invoice is None:
            return None
        return naming.next_invoice_name(invoice.name, self._locale, today)

    def pending_rollover(self) -> list[RolloverLine]:
        """Debts that a close would carry forward right now."""
        state = self._store.state
        lines = []
        for person in state.people:
            debt = remaining_debt(state, person.id)
            if is_in_debt(debt, self._threshold):
                lines.append(RolloverLine(person_id=person.id, amount=debt))
        return lines

    def initiate_close(self, invoice_id: str, today: Optional[date] = None) -> Optional[ClosingProposal]:
        state = self._store.state
        invoice = state.find_invoice(invoice_id)
        if invoice is None or not invoice.is_open:
            return None

        return ClosingProposal(
            invoice_id=invoice.id,
            invoice_name=invoice.name,
            suggested_next_name=naming.next_invoice_name(invoice.name, self._locale, today),
            rollover=self.pending_rollover(),
            is_latest=state.invoices[0].id == invoice.id,
        )

    def confirm_close(
        self,
        invoice_id: str,
        with_report_export: bool = False,
        next_invoice_name: Optional[str] = None,
        today: Optional[date] = None,
        create_next: Optional[bool] = None,
    ) -> Optional[CloseOutcome]:
        """
        Close an open invoice, carrying outstanding debt forward.

        Args:
            create_next: Open a successor even when nobody owes anything.
                         Defaults to True when closing the newest invoice.
                         Outstanding debt always creates a successor.

        Returns None when the invoice does not exist or is already closed.
        """
        state = self._store.state
        invoice = state.find_invoice(invoice_id)
        if invoice is None or not invoice.is_open:
            return None

        today = today or date.today()
        outcome = CloseOutcome(invoice_id=invoice_id)
        if create_next is None:
            create_next = state.invoices[0].id == invoice_id

        if with_report_export:
            self._export_report(invoice, outcome)

        rollover = self.pending_rollover()
        if rollover or create_next:
            name = (next_invoice_name or "").strip() or self.suggest_next_name(invoice_id, today)
            outcome.next_invoice_id = self._store.create_invoice(name)

        if rollover:
            next_id = outcome.next_invoice_id
            for line in rollover:
                self._carry_forward(invoice, next_id, line, today)
            outcome.rollover = rollover
            self._logger.info(
                "invoice_rollover",
                invoice_id=invoice_id,
                next_invoice_id=next_id,
                people=len(rollover),
                total=str(sum((line.amount for line in rollover), Decimal("0"))),
            )

        self._store.set_invoice_status(invoice_id, InvoiceStatus.CLOSED)
        if outcome.next_invoice_id:
            self._current_id = outcome.next_invoice_id

        self._logger.info(
            "invoice_closed",
            invoice_id=invoice_id,
            name=invoice.name,
            report_exported=outcome.report_path is not None,
        )
        return outcome

    def _carry_forward(
        self,
        old_invoice: Invoice,
        next_invoice_id: str,
        line: RolloverLine,
        today: date,
    ) -> None:
        self._store.add_payment(Payment(
            person_id=line.person_id,
            amount=line.amount,
            paid_on=today,
        ))
        self._store.add_expense(Expense(
            description=label("previous_balance", self._locale, name=old_invoice.name),
            amount=line.amount,
            spent_on=today,
            category_id=ExpenseCategory.OTHER.value,
            person_id=line.person_id,
            card_id=self._rollover_card(line.person_id, old_invoice.id),
            invoice_id=next_invoice_id,
        ))

    def _rollover_card(self, person_id: str, invoice_id: str) -> str:
        """
        Card for a carried balance: the person's latest card on the closing
        invoice, else any card they used, else the first card on file.
        """
        state = self._store.state
        mine = [e for e in state.expenses if e.person_id == person_id]
        on_invoice = [e for e in mine if e.invoice_id == invoice_id]
        for candidates in (on_invoice, mine):
            if candidates:
                # stable sort keeps insertion order (newest first) among equal dates
                return sorted(candidates, key=lambda e: e.spent_on, reverse=True)[0].card_id
        return state.cards[0].id if state.cards else ""

    def _export_report(self, invoice: Invoice, outcome: CloseOutcome) -> None:
        if self._exporter is None:
            outcome.report_error = "No report exporter configured"
            self._logger.warning("report_export_skipped", invoice_id=invoice.id)
            return

        state = self._store.state
        try:
            path = export_invoice_report(
                self._exporter,
                invoice,
                invoice_expenses(state, invoice.id),
                state.people,
                state.cards,
                all_expenses=state.expenses,
                all_payments=state.payments,
                locale=self._locale,
            )
            outcome.report_path = str(path)
        except Exception as e:
            # The close goes ahead regardless
            outcome.report_error = str(e)
            self._logger.error("report_export_failed", invoice_id=invoice.id, error=str(e))
