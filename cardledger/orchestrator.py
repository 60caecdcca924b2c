"""
Main Orchestrator for the Card Ledger

Ties the components together and defines the end-to-end flows:
1. Expense entry (text → validate → add → classify in the background)
2. Payment entry (text → validate → add)
3. Startup wiring (settings → storage → store → lifecycle → collaborators)

DESIGN DECISION: Entry never waits on the classifier. The expense is in
the ledger before classification starts; a late answer is attached only
if the expense still exists, and never overrides a category the user
picked.
"""

import asyncio
from dataclasses import dataclass
from datetime import date
from typing import Optional

from cardledger.agents import ExpenseClassifier
from cardledger.config import get_settings
from cardledger.invoices import InvoiceLifecycleManager
from cardledger.ledger.store import LedgerStore
from cardledger.logger import get_logger
from cardledger.models.ledger import (
    Expense,
    ExpenseCategory,
    Payment,
    ValidationResult,
    default_state,
)
from cardledger.reports import PdfReportExporter, ReportExporter
from cardledger.services.storage import (
    CorruptStateError,
    JsonFileStateStorage,
    StateStorageInterface,
)
from cardledger.validation import EntryValidator


class ExpenseEntryFlow:
    """
    Orchestrates fast expense entry.

    Flow:
    1. Validate → reject on errors, keep warnings
    2. Add → expense is saved immediately
    3. Classify → detached task, result attached later if still relevant
    """

    def __init__(
        self,
        store: LedgerStore,
        lifecycle: InvoiceLifecycleManager,
        validator: Optional[EntryValidator] = None,
        classifier: Optional[ExpenseClassifier] = None,
    ):
        self._store = store
        self._lifecycle = lifecycle
        self._validator = validator or EntryValidator()
        self._classifier = classifier
        self._pending: set[asyncio.Task] = set()
        self._logger = get_logger(__name__)

    async def submit(
        self,
        description: str,
        amount_text: str,
        person_id: str,
        card_id: str,
        invoice_id: Optional[str] = None,
        spent_on: Optional[date] = None,
        category_id: str = ExpenseCategory.OTHER.value,
    ) -> tuple[ValidationResult, Optional[Expense]]:
        """
        Validate and add an expense.

        Defaults to the current invoice. Returns the validation result and
        the added expense (None when validation failed).
        """
        result, expense = self._validator.validate_expense(
            self._store.state,
            description,
            amount_text,
            person_id,
            card_id,
            invoice_id or self._lifecycle.current_invoice_id,
            spent_on=spent_on,
            category_id=category_id,
        )
        if expense is None:
            self._logger.info(
                "expense_rejected",
                errors=[i.issue_type for i in result.issues if i.severity == "error"],
            )
            return result, None

        self._store.add_expense(expense)

        if self._should_classify(expense):
            task = asyncio.get_running_loop().create_task(self._classify(expense))
            self._pending.add(task)
            task.add_done_callback(self._pending.discard)

        return result, expense

    def _should_classify(self, expense: Expense) -> bool:
        return (
            self._classifier is not None
            and self._classifier.enabled
            and expense.description != self._validator.default_description
        )

    async def _classify(self, expense: Expense) -> None:
        classification = await self._classifier.classify(expense.description, expense.amount)
        if classification is None:
            return

        current = self._store.state.find_expense(expense.id)
        if current is None:
            self._logger.info("classification_discarded", expense_id=expense.id)
            return

        category = (
            classification.category.value
            if current.category_id == ExpenseCategory.OTHER.value
            else None
        )
        self._store.set_expense_analysis(expense.id, classification.tip, category)

    async def drain(self) -> None:
        """Wait for every classification still in flight."""
        if self._pending:
            await asyncio.gather(*list(self._pending))


class PaymentEntryFlow:
    """Validates and records payments."""

    def __init__(self, store: LedgerStore, validator: Optional[EntryValidator] = None):
        self._store = store
        self._validator = validator or EntryValidator()

    def submit(
        self,
        person_id: str,
        amount_text: str,
        paid_on: Optional[date] = None,
    ) -> tuple[ValidationResult, Optional[Payment]]:
        result, payment = self._validator.validate_payment(
            self._store.state,
            person_id,
            amount_text,
            paid_on=paid_on,
        )
        if payment is not None:
            self._store.add_payment(payment)
        return result, payment


@dataclass
class AppComponents:
    """Everything a front end needs, wired together."""

    store: LedgerStore
    lifecycle: InvoiceLifecycleManager
    expense_flow: ExpenseEntryFlow
    payment_flow: PaymentEntryFlow
    report_exporter: ReportExporter
    classifier: ExpenseClassifier


def create_app_components(
    storage: Optional[StateStorageInterface] = None,
    report_exporter: Optional[ReportExporter] = None,
    classifier: Optional[ExpenseClassifier] = None,
) -> AppComponents:
    """
    Factory function to create all application components.

    Args:
        storage: State storage. Defaults to the JSON file from settings.
        report_exporter: Closing report exporter. Defaults to PDF.
        classifier: Expense classifier. Defaults to Gemini (disabled
                    without an API key).

    A corrupt state file is logged and replaced by the default state.
    """
    logger = get_logger(__name__)
    app_settings = get_settings().app

    storage = storage or JsonFileStateStorage()
    try:
        store = LedgerStore.from_storage(storage)
    except CorruptStateError as e:
        logger.error("state_load_failed", error=str(e))
        store = LedgerStore(state=default_state(), storage=storage)

    report_exporter = report_exporter or PdfReportExporter()
    classifier = classifier or ExpenseClassifier(locale=app_settings.locale)
    validator = EntryValidator(locale=app_settings.locale)

    lifecycle = InvoiceLifecycleManager(
        store,
        report_exporter=report_exporter,
        locale=app_settings.locale,
        debt_threshold=app_settings.debt_threshold,
    )

    logger.info(
        "app_started",
        invoices=len(store.state.invoices),
        classifier_enabled=classifier.enabled,
    )

    return AppComponents(
        store=store,
        lifecycle=lifecycle,
        expense_flow=ExpenseEntryFlow(store, lifecycle, validator, classifier),
        payment_flow=PaymentEntryFlow(store, validator),
        report_exporter=report_exporter,
        classifier=classifier,
    )
