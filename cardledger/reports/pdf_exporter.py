"""
PDF export for closing reports.

Renders an InvoiceReport with matplotlib tables, one section per page,
into <output_dir>/Invoice-<name>.pdf.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from decimal import Decimal
from pathlib import Path
from typing import Iterator, Optional, Sequence

import matplotlib

matplotlib.use("Agg")
import matplotlib.pyplot as plt
from matplotlib.backends.backend_pdf import PdfPages
from matplotlib.figure import Figure

from cardledger.config import get_settings
from cardledger.models.ledger import CreditCard, Expense, Invoice, Payment, Person
from cardledger.models.report import InvoiceReport
from cardledger.reports.assembler import build_invoice_report


ROWS_PER_PAGE = 32
HEADER_COLOR = "#4f46e5"
SUBHEADER_COLOR = "#f1f5f9"


class ReportExportError(Exception):
    """The report could not be rendered or written."""
    pass


class ReportExporter(ABC):
    """Anything that turns an InvoiceReport into a file."""

    @abstractmethod
    def export(self, report: InvoiceReport) -> Path:
        """
        Render the report.

        Returns:
            Path of the written file

        Raises:
            ReportExportError: If rendering or writing fails
        """
        pass


def format_currency(amount: Decimal, symbol: str = "R$") -> str:
    sign = "-" if amount < 0 else ""
    return f"{sign}{symbol} {abs(amount):,.2f}"


def _chunks(rows: list, size: int) -> list[list]:
    return [rows[i:i + size] for i in range(0, len(rows), size)] or [[]]


@dataclass
class TablePage:
    """One rendered table: its rows and which of them are person subtotals."""

    section: str
    headers: list[str]
    rows: list[list[str]]
    person_rows: frozenset[int] = frozenset()
    footer: Optional[str] = None

    @classmethod
    def from_marked(
        cls,
        section: str,
        headers: list[str],
        marked_rows: list[tuple[list[str], bool]],
        footer: Optional[str] = None,
    ) -> "TablePage":
        return cls(
            section=section,
            headers=headers,
            rows=[cells for cells, _ in marked_rows],
            person_rows=frozenset(i for i, (_, is_person) in enumerate(marked_rows) if is_person),
            footer=footer,
        )


class PdfReportExporter(ReportExporter):
    """Writes closing reports as multi-page PDFs."""

    def __init__(
        self,
        output_dir: Optional[Path] = None,
        currency_symbol: Optional[str] = None,
    ):
        settings = get_settings().reports
        self._output_dir = Path(output_dir) if output_dir else settings.output_dir
        self._symbol = currency_symbol or settings.currency_symbol
        self._page_size = (settings.page_width_in, settings.page_height_in)

    def output_path(self, report: InvoiceReport) -> Path:
        return self._output_dir / f"{report.file_stem}.pdf"

    def export(self, report: InvoiceReport) -> Path:
        path = self.output_path(report)
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            with PdfPages(path) as pdf:
                for fig in self._pages(report):
                    try:
                        pdf.savefig(fig)
                    finally:
                        plt.close(fig)
        except Exception as e:
            raise ReportExportError(f"Could not export report '{report.invoice_name}': {e}") from e
        return path

    def _money(self, amount: Decimal) -> str:
        return format_currency(amount, self._symbol)

    def _pages(self, report: InvoiceReport) -> Iterator[Figure]:
        """Yield one figure per table page; the caller closes each one."""
        title = f"Closing Report: {report.invoice_name}"
        subtitle = f"Generated on {report.generated_on.isoformat()}"
        for table in self.tables(report):
            yield self._table_page(title, subtitle, table)

    def tables(self, report: InvoiceReport) -> list[TablePage]:
        """Lay the report out as table pages, person rows marked explicitly."""
        tables = []

        if report.global_summary:
            rows = [
                [r.person_name, self._money(r.lifetime_spend),
                 self._money(r.lifetime_paid), self._money(r.remaining_debt)]
                for r in report.global_summary
            ]
            tables.append(TablePage(
                section="Overall Summary (all invoices)",
                headers=["Person", "Total Spent", "Total Paid", "Current Debt"],
                rows=rows,
            ))

        breakdown_rows = []
        for person in report.card_breakdown:
            breakdown_rows.append(([person.person_name, "", self._money(person.total)], True))
            for card in person.cards:
                breakdown_rows.append((["", card.card_name, self._money(card.amount)], False))
        for chunk in _chunks(breakdown_rows, ROWS_PER_PAGE):
            tables.append(TablePage.from_marked(
                f"By Person and Card ({report.invoice_name})",
                ["Person", "Card", "Amount"],
                chunk,
            ))

        detail_rows = []
        for group in report.transactions:
            detail_rows.append(([group.person_name, "", "", self._money(group.total)], True))
            for row in group.rows:
                detail_rows.append(([
                    row.spent_on.strftime("%d/%m/%Y"),
                    row.description,
                    row.card_name,
                    self._money(row.amount),
                ], False))
        chunks = _chunks(detail_rows, ROWS_PER_PAGE)
        for i, chunk in enumerate(chunks):
            footer = (
                f"Invoice Total: {self._money(report.global_total)}"
                if i == len(chunks) - 1 else None
            )
            tables.append(TablePage.from_marked(
                "Detailed Statement",
                ["Date", "Description", "Card", "Amount"],
                chunk,
                footer,
            ))

        return tables

    def _table_page(self, title: str, subtitle: str, table_page: TablePage) -> Figure:
        fig, ax = plt.subplots(figsize=self._page_size)
        ax.axis("off")

        fig.text(0.06, 0.95, title, fontsize=16, fontweight="bold", color="#282828")
        fig.text(0.06, 0.925, subtitle, fontsize=9, color="#646464")
        fig.text(0.06, 0.89, table_page.section, fontsize=12, color=HEADER_COLOR)

        if table_page.rows:
            table = ax.table(
                cellText=table_page.rows,
                colLabels=list(table_page.headers),
                loc="upper center",
                cellLoc="left",
            )
            table.auto_set_font_size(False)
            table.set_fontsize(8)
            table.scale(1, 1.3)
            for (r, _c), cell in table.get_celld().items():
                if r == 0:
                    cell.set_facecolor(HEADER_COLOR)
                    cell.get_text().set_color("white")
                    cell.get_text().set_fontweight("bold")
                elif r - 1 in table_page.person_rows:
                    cell.set_facecolor(SUBHEADER_COLOR)
                    cell.get_text().set_fontweight("bold")
        else:
            ax.text(0.5, 0.8, "No expenses on this invoice", ha="center", va="center",
                    fontsize=11, color="#666")

        if table_page.footer:
            fig.text(0.06, 0.04, table_page.footer, fontsize=12, fontweight="bold")

        return fig


def export_invoice_report(
    exporter: ReportExporter,
    invoice: Invoice,
    invoice_expenses: Sequence[Expense],
    people: Sequence[Person],
    cards: Sequence[CreditCard],
    all_expenses: Sequence[Expense] = (),
    all_payments: Sequence[Payment] = (),
    locale: str = "en",
) -> Path:
    """Assemble the closing report for `invoice` and hand it to `exporter`."""
    report = build_invoice_report(
        invoice,
        invoice_expenses,
        people,
        cards,
        all_expenses=all_expenses,
        all_payments=all_payments,
        locale=locale,
    )
    return exporter.export(report)
