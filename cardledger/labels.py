"""
User-facing labels per locale.

The ledger stores whatever text it is given; these are only the defaults
it generates itself (invoice names, rollover descriptions, fallbacks).
"""

MONTH_NAMES: dict[str, list[str]] = {
    "en": [
        "January", "February", "March", "April", "May", "June",
        "July", "August", "September", "October", "November", "December",
    ],
    "pt": [
        "Janeiro", "Fevereiro", "Março", "Abril", "Maio", "Junho",
        "Julho", "Agosto", "Setembro", "Outubro", "Novembro", "Dezembro",
    ],
}

LABELS: dict[str, dict[str, str]] = {
    "en": {
        "invoice_prefix": "Invoice",
        "previous_balance": "Previous Balance ({name})",
        "misc_expense": "Miscellaneous expense",
        "unknown": "Unknown",
    },
    "pt": {
        "invoice_prefix": "Fatura",
        "previous_balance": "Saldo Anterior ({name})",
        "misc_expense": "Gasto Diversos",
        "unknown": "Desconhecido",
    },
}


def label(key: str, locale: str = "en", **fmt: str) -> str:
    """Look up a label, falling back to English for unknown locales."""
    text = LABELS.get(locale, LABELS["en"])[key]
    return text.format(**fmt) if fmt else text


def month_names(locale: str = "en") -> list[str]:
    return MONTH_NAMES.get(locale, MONTH_NAMES["en"])
