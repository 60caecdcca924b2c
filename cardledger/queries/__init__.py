"""Balance queries package."""

from cardledger.queries.balances import (
    category_breakdown,
    current_open_invoice,
    dashboard_summary,
    debt_status,
    expenses_total,
    global_debt,
    invoice_expenses,
    invoice_total,
    is_in_debt,
    payments_total,
    person_card_breakdown,
    person_invoice_spend,
    person_lifetime_paid,
    person_lifetime_spend,
    person_summaries,
    remaining_debt,
    sorted_by_date_desc,
    sorted_payments_desc,
)

__all__ = [
    "category_breakdown",
    "current_open_invoice",
    "dashboard_summary",
    "debt_status",
    "expenses_total",
    "global_debt",
    "invoice_expenses",
    "invoice_total",
    "is_in_debt",
    "payments_total",
    "person_card_breakdown",
    "person_invoice_spend",
    "person_lifetime_paid",
    "person_lifetime_spend",
    "person_summaries",
    "remaining_debt",
    "sorted_by_date_desc",
    "sorted_payments_desc",
]
