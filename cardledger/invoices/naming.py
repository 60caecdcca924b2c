"""
Next-invoice name suggestion.

"Invoice March" is followed by "Invoice April", "Fatura Dezembro" by
"Fatura Janeiro". Names without a month fall back to the prefix plus the
month after today. The result is only a suggestion; the user edits it
before confirming.
"""

import re
from datetime import date
from typing import Optional

from cardledger.labels import label, month_names


def _month_after(today: date) -> int:
    """1-based month number following today's month."""
    return today.month % 12 + 1


def fallback_invoice_name(locale: str = "en", today: Optional[date] = None) -> str:
    today = today or date.today()
    month = month_names(locale)[_month_after(today) - 1]
    return f"{label('invoice_prefix', locale)} {month[:1].upper()}{month[1:]}"


def next_invoice_name(
    current: str,
    locale: str = "en",
    today: Optional[date] = None,
) -> str:
    """
    Suggest a successor name for an invoice.

    The first month name found (case-insensitive, in calendar order) is
    replaced by the following month, wrapping December to January.
    """
    months = month_names(locale)
    lowered = current.lower()

    for index, month in enumerate(months):
        if month.lower() in lowered:
            successor = months[(index + 1) % 12]
            return re.sub(re.escape(month), successor, current, count=1, flags=re.IGNORECASE)

    return fallback_invoice_name(locale, today)
