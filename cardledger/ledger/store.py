"""
Ledger Store

The single owner of the current AppState. All mutation goes through here:
apply a pure transform, swap the state, persist, log, notify.

GUARANTEES:
- A transform that changes nothing triggers no persist and no notification
- A persist failure is logged but never undoes or fails the mutation
- Subscribers receive (old_state, new_state) after every change
"""

from typing import Callable, Optional

from cardledger.ledger import operations as ops
from cardledger.logger import get_logger
from cardledger.models.ledger import (
    AppState,
    CreditCard,
    Expense,
    InvoiceStatus,
    Payment,
    Person,
    default_state,
)
from cardledger.services.storage import StateStorageInterface, StorageError


Listener = Callable[[AppState, AppState], None]


class LedgerStore:
    """
    Holds the ledger and exposes its commands.

    Reads go through `state`; queries in cardledger.queries take that
    snapshot and never mutate it.
    """

    def __init__(
        self,
        state: Optional[AppState] = None,
        storage: Optional[StateStorageInterface] = None,
    ):
        self._state = state if state is not None else default_state()
        self._storage = storage
        self._listeners: list[Listener] = []
        self._logger = get_logger(__name__)

    @classmethod
    def from_storage(cls, storage: StateStorageInterface) -> "LedgerStore":
        """
        Load once at startup; seed the default state when nothing is stored.

        Raises:
            CorruptStateError: Propagated so the caller decides how to recover
        """
        state = storage.load()
        return cls(state=state if state is not None else default_state(), storage=storage)

    @property
    def state(self) -> AppState:
        return self._state

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Register a change listener. Returns a callable that unsubscribes it."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _commit(self, new_state: AppState, operation: str, target_id: Optional[str]) -> bool:
        old_state = self._state
        if new_state is old_state:
            self._logger.debug("ledger_noop", operation=operation, id=target_id)
            return False

        self._state = new_state
        self._persist(operation)
        self._logger.info("ledger_mutation", operation=operation, id=target_id)

        for listener in list(self._listeners):
            listener(old_state, new_state)
        return True

    def _persist(self, operation: str) -> None:
        if self._storage is None:
            return
        try:
            self._storage.save(self._state)
        except StorageError as e:
            self._logger.error("state_persist_failed", operation=operation, error=str(e))

    # -------------------------------------------------------------------------
    # People & cards
    # -------------------------------------------------------------------------

    def add_person(self, person: Person) -> None:
        self._commit(ops.add_person(self._state, person), "add_person", person.id)

    def update_person(self, person: Person) -> None:
        self._commit(ops.update_person(self._state, person), "update_person", person.id)

    def delete_person(self, person_id: str) -> None:
        self._commit(ops.delete_person(self._state, person_id), "delete_person", person_id)

    def add_card(self, card: CreditCard) -> None:
        self._commit(ops.add_card(self._state, card), "add_card", card.id)

    def update_card(self, card: CreditCard) -> None:
        self._commit(ops.update_card(self._state, card), "update_card", card.id)

    def delete_card(self, card_id: str) -> None:
        self._commit(ops.delete_card(self._state, card_id), "delete_card", card_id)

    def person_in_use(self, person_id: str) -> bool:
        return ops.person_in_use(self._state, person_id)

    def card_in_use(self, card_id: str) -> bool:
        return ops.card_in_use(self._state, card_id)

    # -------------------------------------------------------------------------
    # Expenses & payments
    # -------------------------------------------------------------------------

    def add_expense(self, expense: Expense) -> None:
        self._commit(ops.add_expense(self._state, expense), "add_expense", expense.id)

    def update_expense(self, expense: Expense) -> None:
        self._commit(ops.update_expense(self._state, expense), "update_expense", expense.id)

    def delete_expense(self, expense_id: str) -> None:
        self._commit(ops.delete_expense(self._state, expense_id), "delete_expense", expense_id)

    def set_expense_analysis(
        self,
        expense_id: str,
        ai_analysis: Optional[str],
        category_id: Optional[str] = None,
    ) -> bool:
        """Returns False when the expense no longer exists."""
        return self._commit(
            ops.set_expense_analysis(self._state, expense_id, ai_analysis, category_id),
            "set_expense_analysis",
            expense_id,
        )

    def add_payment(self, payment: Payment) -> None:
        self._commit(ops.add_payment(self._state, payment), "add_payment", payment.id)

    def delete_payment(self, payment_id: str) -> None:
        self._commit(ops.delete_payment(self._state, payment_id), "delete_payment", payment_id)

    # -------------------------------------------------------------------------
    # Invoices
    # -------------------------------------------------------------------------

    def create_invoice(self, name: str) -> str:
        new_state, invoice_id = ops.create_invoice(self._state, name)
        self._commit(new_state, "create_invoice", invoice_id)
        return invoice_id

    def toggle_invoice_status(self, invoice_id: str) -> None:
        self._commit(
            ops.toggle_invoice_status(self._state, invoice_id),
            "toggle_invoice_status",
            invoice_id,
        )

    def set_invoice_status(self, invoice_id: str, status: InvoiceStatus) -> bool:
        return self._commit(
            ops.set_invoice_status(self._state, invoice_id, status),
            "set_invoice_status",
            invoice_id,
        )

    def rename_invoice(self, invoice_id: str, name: str) -> None:
        self._commit(ops.rename_invoice(self._state, invoice_id, name), "rename_invoice", invoice_id)

    def delete_invoice(self, invoice_id: str) -> None:
        self._commit(ops.delete_invoice(self._state, invoice_id), "delete_invoice", invoice_id)
