"""
Card Ledger

Shared credit-card expense tracking: invoices (billing cycles), expenses
attributed to people and cards, payments, and balances carried from one
invoice to the next.
"""

__version__ = "0.1.0"
