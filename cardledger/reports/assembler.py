"""
Closing Report Assembly

Shapes ledger data into the three tables of a closing report:
1. Global summary - lifetime spend / paid / debt per person
2. Card breakdown - per person, per card, on this invoice only
3. Transactions - this invoice's expenses grouped by person, newest first

No business rules live here beyond grouping, sorting and totals.
Missing cards resolve to the "unknown" label rather than failing.
"""

from datetime import date
from decimal import Decimal
from typing import Optional, Sequence

from cardledger.labels import label
from cardledger.models.ledger import CreditCard, Expense, Invoice, Payment, Person
from cardledger.models.report import (
    CardAmountRow,
    GlobalSummaryRow,
    InvoiceReport,
    PersonCardBreakdown,
    PersonTransactions,
    TransactionRow,
)
from cardledger.queries.balances import (
    ZERO,
    invoice_total,
    person_lifetime_paid,
    person_lifetime_spend,
    sorted_by_date_desc,
)


def build_global_summary(
    people: Sequence[Person],
    all_expenses: Sequence[Expense],
    all_payments: Sequence[Payment],
) -> list[GlobalSummaryRow]:
    rows = []
    for person in people:
        spend = person_lifetime_spend(person.id, all_expenses)
        paid = person_lifetime_paid(person.id, all_payments)
        rows.append(GlobalSummaryRow(
            person_name=person.name,
            lifetime_spend=spend,
            lifetime_paid=paid,
            remaining_debt=spend - paid,
        ))
    return rows


def build_card_breakdown(
    invoice_expenses: Sequence[Expense],
    people: Sequence[Person],
    cards: Sequence[CreditCard],
) -> list[PersonCardBreakdown]:
    """People without expenses on the invoice are left out, as are zero cards."""
    breakdown = []
    for person in people:
        mine = [e for e in invoice_expenses if e.person_id == person.id]
        if not mine:
            continue

        card_rows = []
        for card in cards:
            amount = invoice_total(e for e in mine if e.card_id == card.id)
            if amount > ZERO:
                card_rows.append(CardAmountRow(card_name=card.name, amount=amount))

        breakdown.append(PersonCardBreakdown(
            person_name=person.name,
            total=invoice_total(mine),
            cards=card_rows,
        ))
    return breakdown


def build_transactions(
    invoice_expenses: Sequence[Expense],
    people: Sequence[Person],
    cards: Sequence[CreditCard],
    locale: str = "en",
) -> tuple[list[PersonTransactions], Decimal]:
    """Returns the per-person listings and the running global total."""
    card_names = {c.id: c.name for c in cards}
    unknown = label("unknown", locale)

    groups = []
    global_total = ZERO
    for person in people:
        mine = [e for e in invoice_expenses if e.person_id == person.id]
        if not mine:
            continue

        person_total = invoice_total(mine)
        global_total += person_total

        groups.append(PersonTransactions(
            person_name=person.name,
            total=person_total,
            rows=[
                TransactionRow(
                    spent_on=e.spent_on,
                    description=e.description,
                    card_name=card_names.get(e.card_id, unknown),
                    amount=e.amount,
                )
                for e in sorted_by_date_desc(mine)
            ],
        ))
    return groups, global_total


def build_invoice_report(
    invoice: Invoice,
    invoice_expenses: Sequence[Expense],
    people: Sequence[Person],
    cards: Sequence[CreditCard],
    all_expenses: Sequence[Expense] = (),
    all_payments: Sequence[Payment] = (),
    generated_on: Optional[date] = None,
    locale: str = "en",
) -> InvoiceReport:
    """
    Assemble the closing report for one invoice.

    The global summary is only produced when there is expense history
    to summarize.
    """
    transactions, global_total = build_transactions(invoice_expenses, people, cards, locale)

    return InvoiceReport(
        invoice_id=invoice.id,
        invoice_name=invoice.name,
        generated_on=generated_on or date.today(),
        global_summary=(
            build_global_summary(people, all_expenses, all_payments) if all_expenses else []
        ),
        card_breakdown=build_card_breakdown(invoice_expenses, people, cards),
        transactions=transactions,
        global_total=global_total,
    )
