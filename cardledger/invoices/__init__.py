"""Invoice state machine, closing rollover and successor naming."""

from cardledger.invoices.lifecycle import (
    ClosingProposal,
    CloseOutcome,
    InvoiceLifecycleManager,
    RolloverLine,
)
from cardledger.invoices.naming import fallback_invoice_name, next_invoice_name

__all__ = [
    "CloseOutcome",
    "ClosingProposal",
    "InvoiceLifecycleManager",
    "RolloverLine",
    "fallback_invoice_name",
    "next_invoice_name",
]
