"""
Report Export

Plain string formatters over a transaction list: a CSV of transactions
and a human-readable text report. Neither touches storage; callers pass
in the (already filtered) transactions they want exported.
"""

from datetime import date, datetime
from typing import Iterable, Sequence

from finance_ai.models.finance import SpendingTier, Transaction
from finance_ai.summaries.aggregation import (
    ReportPeriod,
    spending_by_category,
    tier_totals,
)


CSV_HEADERS = ["Date", "Description", "Category", "Type", "Amount", "Notes"]

CURRENCY_SYMBOLS = {
    "USD": "$",
    "EUR": "€",
    "GBP": "£",
    "INR": "₹",
}

# Transactions listed in full in the text report
TEXT_REPORT_TRANSACTION_LIMIT = 20


def currency_symbol(currency: str) -> str:
    """Display symbol for an ISO currency code; unknown codes show as '$'."""
    return CURRENCY_SYMBOLS.get((currency or "").upper(), "$")


def format_amount(amount: float) -> str:
    """Whole amounts without a decimal point, others as the shortest exact repr."""
    return str(int(amount)) if float(amount).is_integer() else repr(float(amount))


def _quoted(text: str) -> str:
    return '"' + (text or "").replace('"', '""') + '"'


def transactions_to_csv(transactions: Iterable[Transaction]) -> str:
    """
    CSV with header ``Date,Description,Category,Type,Amount,Notes``.

    Description, category and notes are always double-quoted (embedded
    quotes doubled); date, type and amount are written bare. Rows keep
    the order of ``transactions``.
    """
    lines = [",".join(CSV_HEADERS)]
    for t in transactions:
        lines.append(",".join([
            t.date.isoformat(),
            _quoted(t.description),
            _quoted(t.category),
            t.type.value,
            format_amount(t.amount),
            _quoted(t.notes or ""),
        ]))
    return "\n".join(lines)


def _percent(part: float, whole: float) -> str:
    return f"{part / whole * 100:.1f}%" if whole > 0 else "0.0%"


def render_text_report(
    transactions: Sequence[Transaction],
    period: ReportPeriod,
    currency: str,
    monthly_income: float,
    generated_on: date,
) -> str:
    """
    Human-readable report: summary, tier breakdown, top five categories
    and the first transactions of the list.
    """
    symbol = currency_symbol(currency)
    spending = tier_totals(transactions)
    total = spending.total
    top = spending_by_category(transactions, limit=5)

    lines = [
        f"FINANCE REPORT - {ReportPeriod(period).value.upper()}",
        f"Generated: {generated_on.isoformat()}",
        "",
        "SUMMARY",
        "-------",
        f"Total Spent: {symbol}{total:,.2f}",
        f"Monthly Income: {symbol}{monthly_income:,.2f}",
        f"Savings: {symbol}{monthly_income - total:,.2f}",
        "",
        "SPENDING BREAKDOWN",
        "------------------",
    ]
    for label, tier, amount in (
        ("Needs", SpendingTier.NEEDS, spending.needs),
        ("Wants", SpendingTier.WANTS, spending.wants),
        ("Not Important", SpendingTier.NOT_IMPORTANT, spending.not_important),
    ):
        lines.append(f"{label}: {symbol}{amount:,.2f} ({_percent(amount, total)})")

    lines += ["", "TOP CATEGORIES", "--------------"]
    for rank, entry in enumerate(top, start=1):
        lines.append(f"{rank}. {entry.category}: {symbol}{entry.amount:,.2f}")

    lines += ["", f"TRANSACTIONS ({len(transactions)} total)", "------------"]
    for t in transactions[:TEXT_REPORT_TRANSACTION_LIMIT]:
        lines.append(
            f"{t.local_date.date().isoformat()} - {t.description}: "
            f"{symbol}{format_amount(t.amount)} ({t.category})"
        )
    if len(transactions) > TEXT_REPORT_TRANSACTION_LIMIT:
        lines.append(
            f"... and {len(transactions) - TEXT_REPORT_TRANSACTION_LIMIT} more transactions"
        )

    return "\n".join(lines) + "\n"


def report_filename(period: ReportPeriod, today: date, extension: str) -> str:
    """``finance-report-<period>-<YYYY-MM-DD>.<extension>``"""
    if isinstance(today, datetime):
        today = today.date()
    return f"finance-report-{ReportPeriod(period).value}-{today.isoformat()}.{extension.lstrip('.')}"
