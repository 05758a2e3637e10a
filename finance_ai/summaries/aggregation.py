"""
Spending Aggregation

DESIGN DECISION: Every number shown to the user is recomputed from the raw
transaction list on each call. Nothing derived is ever persisted, so an
edit or delete can never leave a stale running total behind.

The cost is an O(n) scan per call, which is irrelevant at the size of one
person's budget.

All functions here are pure: they take lists of models and return models.
The store wraps them with a fresh read of the aggregate.

Months are ZERO-BASED throughout (0 = January, 11 = December) and are
read off the local wall clock: a UTC timestamp late on the 31st may
belong to the next month locally.
"""

import calendar
from collections import defaultdict
from datetime import date, datetime, timedelta
from enum import Enum
from typing import Iterable, Optional

from pydantic import BaseModel, Field

from finance_ai.models.finance import (
    CamelModel,
    MonthlySpending,
    OnboardingData,
    SavingsGoal,
    SpendingTier,
    Transaction,
)


MONTH_NAMES = list(calendar.month_name)[1:]


class ReportPeriod(str, Enum):
    """Look-back windows offered by the reports screen."""
    WEEK = "week"
    MONTH = "month"
    QUARTER = "quarter"
    YEAR = "year"


def check_month(month: int) -> None:
    """Reject month numbers outside the zero-based 0..11 range."""
    if not 0 <= month <= 11:
        raise ValueError(f"month must be between 0 and 11 (zero-based), got {month}")


def _aware(dt: datetime) -> datetime:
    """Naive timestamps are taken as local time so they compare with aware ones."""
    return dt if dt.tzinfo is not None else dt.astimezone()


# =============================================================================
# MONTHLY TOTALS
# =============================================================================

def transactions_in_month(
    transactions: Iterable[Transaction],
    year: int,
    month: int,
) -> list[Transaction]:
    """Transactions dated in calendar ``month`` (zero-based) of ``year``, order kept."""
    check_month(month)
    return [t for t in transactions if t.in_month(year, month)]


def tier_totals(transactions: Iterable[Transaction]) -> MonthlySpending:
    """Sum amounts per spending tier and overall."""
    spending = MonthlySpending()
    for transaction in transactions:
        spending.add(transaction)
    return spending


def monthly_spending(
    transactions: Iterable[Transaction],
    year: int,
    month: int,
) -> MonthlySpending:
    """Spending per tier for one calendar month."""
    return tier_totals(transactions_in_month(transactions, year, month))


class MonthKey(BaseModel):
    """A (year, zero-based month) pair with a display label."""
    year: int
    month: int = Field(ge=0, le=11)

    @property
    def label(self) -> str:
        return f"{MONTH_NAMES[self.month]} {self.year}"


def available_months(transactions: Iterable[Transaction]) -> list[MonthKey]:
    """Distinct months that have at least one transaction, newest first."""
    seen = {(t.local_date.year, t.local_date.month - 1) for t in transactions}
    return [
        MonthKey(year=year, month=month)
        for year, month in sorted(seen, reverse=True)
    ]


# =============================================================================
# CATEGORY AND TREND BREAKDOWNS
# =============================================================================

class CategoryTotal(BaseModel):
    category: str
    amount: float


def spending_by_category(
    transactions: Iterable[Transaction],
    limit: Optional[int] = 5,
) -> list[CategoryTotal]:
    """
    Total spent per user category, largest first.

    Ties keep the order in which categories were first seen.
    """
    totals: dict[str, float] = {}
    for transaction in transactions:
        totals[transaction.category] = totals.get(transaction.category, 0.0) + transaction.amount

    ranked = sorted(totals.items(), key=lambda item: item[1], reverse=True)
    if limit is not None:
        ranked = ranked[:limit]
    return [CategoryTotal(category=c, amount=a) for c, a in ranked]


def _shift_months(dt: datetime, months: int) -> datetime:
    """Move ``dt`` by whole months, clamping the day to the target month's length."""
    index = dt.year * 12 + (dt.month - 1) + months
    year, month = divmod(index, 12)
    day = min(dt.day, calendar.monthrange(year, month + 1)[1])
    return dt.replace(year=year, month=month + 1, day=day)


def period_start(period: ReportPeriod, now: datetime) -> datetime:
    """First instant included in a report for ``period`` ending at ``now``."""
    period = ReportPeriod(period)
    if period == ReportPeriod.WEEK:
        return now - timedelta(days=7)
    if period == ReportPeriod.MONTH:
        return _shift_months(now, -1)
    if period == ReportPeriod.QUARTER:
        return _shift_months(now, -3)
    return _shift_months(now, -12)


def filter_by_period(
    transactions: Iterable[Transaction],
    period: ReportPeriod,
    now: datetime,
) -> list[Transaction]:
    """Transactions dated on or after the start of ``period``."""
    start = _aware(period_start(period, now))
    return [t for t in transactions if _aware(t.date) >= start]


class TrendPoint(CamelModel):
    """Spending per tier for one bucket (a day or a month)."""
    date: str = Field(description="Bucket key: YYYY-MM-DD or YYYY-MM")
    needs: float = 0.0
    wants: float = 0.0
    not_important: float = 0.0


def spending_trends(
    transactions: Iterable[Transaction],
    period: ReportPeriod,
) -> list[TrendPoint]:
    """
    Spending per tier over time.

    Week and month reports bucket by day; quarter and year reports
    bucket by month. Buckets are sorted chronologically.
    """
    daily = ReportPeriod(period) in (ReportPeriod.WEEK, ReportPeriod.MONTH)
    buckets: dict[str, dict[SpendingTier, float]] = defaultdict(lambda: defaultdict(float))

    for transaction in transactions:
        when = transaction.local_date
        key = when.date().isoformat() if daily else f"{when.year}-{when.month:02d}"
        buckets[key][transaction.type] += transaction.amount

    return [
        TrendPoint(
            date=key,
            needs=values[SpendingTier.NEEDS],
            wants=values[SpendingTier.WANTS],
            not_important=values[SpendingTier.NOT_IMPORTANT],
        )
        for key, values in sorted(buckets.items())
    ]


# =============================================================================
# SAVINGS GOALS
# =============================================================================

class GoalProjection(CamelModel):
    """Where a savings goal stands and what it still needs."""
    goal_id: str
    progress_percent: float
    remaining_amount: float
    days_remaining: int
    monthly_savings_needed: float


def project_goal(goal: SavingsGoal, today: date) -> GoalProjection:
    """
    Progress and required monthly contribution for a goal.

    Fewer than 30 days left (or a past target date) counts as one month,
    so the whole remainder is due now.
    """
    days_remaining = (goal.target_date - today).days
    months_remaining = max(1.0, days_remaining / 30)
    return GoalProjection(
        goal_id=goal.id,
        progress_percent=goal.progress_percent,
        remaining_amount=goal.remaining_amount,
        days_remaining=days_remaining,
        monthly_savings_needed=goal.remaining_amount / months_remaining,
    )


# =============================================================================
# MONTHLY SUMMARY
# =============================================================================

class MonthlySummary(CamelModel):
    """Everything the monthly summary screen shows for one month."""
    year: int
    month: int
    label: str
    transaction_count: int
    spending: MonthlySpending
    monthly_income: float
    amount_saved: float
    savings_rate: float = Field(description="Percent of income not spent; 0 without income")
    needs_share: float
    wants_share: float
    not_important_share: float
    goals_target_total: float
    goals_saved_total: float
    goals_progress_percent: float


def monthly_summary(
    transactions: Iterable[Transaction],
    year: int,
    month: int,
    onboarding: Optional[OnboardingData] = None,
    goals: Iterable[SavingsGoal] = (),
) -> MonthlySummary:
    """Build the monthly summary from raw transactions, profile and goals."""
    in_month = transactions_in_month(transactions, year, month)
    spending = tier_totals(in_month)
    income = onboarding.monthly_income_amount if onboarding else 0.0

    goals = list(goals)
    target_total = sum(g.target_amount for g in goals)
    saved_total = sum(g.current_amount for g in goals)

    return MonthlySummary(
        year=year,
        month=month,
        label=MonthKey(year=year, month=month).label,
        transaction_count=len(in_month),
        spending=spending,
        monthly_income=income,
        amount_saved=income - spending.total,
        savings_rate=(income - spending.total) / income * 100 if income > 0 else 0.0,
        needs_share=spending.share_of(SpendingTier.NEEDS),
        wants_share=spending.share_of(SpendingTier.WANTS),
        not_important_share=spending.share_of(SpendingTier.NOT_IMPORTANT),
        goals_target_total=target_total,
        goals_saved_total=saved_total,
        goals_progress_percent=saved_total / target_total * 100 if target_total > 0 else 0.0,
    )
