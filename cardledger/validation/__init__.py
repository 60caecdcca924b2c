"""Input validation for entry forms."""

from cardledger.validation.validator import (
    EntryValidator,
    InvalidAmountError,
    parse_amount,
)

__all__ = [
    "EntryValidator",
    "InvalidAmountError",
    "parse_amount",
]
