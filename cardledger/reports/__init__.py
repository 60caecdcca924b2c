"""Closing report package: data assembly and PDF export."""

from cardledger.reports.assembler import (
    build_card_breakdown,
    build_global_summary,
    build_invoice_report,
    build_transactions,
)
from cardledger.reports.pdf_exporter import (
    PdfReportExporter,
    ReportExportError,
    ReportExporter,
    TablePage,
    export_invoice_report,
    format_currency,
)

__all__ = [
    "PdfReportExporter",
    "ReportExportError",
    "ReportExporter",
    "TablePage",
    "build_card_breakdown",
    "build_global_summary",
    "build_invoice_report",
    "build_transactions",
    "export_invoice_report",
    "format_currency",
]
