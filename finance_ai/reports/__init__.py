"""Report export package."""

from finance_ai.reports.export import (
    CSV_HEADERS,
    CURRENCY_SYMBOLS,
    currency_symbol,
    format_amount,
    render_text_report,
    report_filename,
    transactions_to_csv,
)

__all__ = [
    "CSV_HEADERS",
    "CURRENCY_SYMBOLS",
    "currency_symbol",
    "format_amount",
    "render_text_report",
    "report_filename",
    "transactions_to_csv",
]
