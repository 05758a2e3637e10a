"""Spending aggregation package."""

from finance_ai.summaries.aggregation import (
    MONTH_NAMES,
    CategoryTotal,
    GoalProjection,
    MonthKey,
    MonthlySummary,
    ReportPeriod,
    TrendPoint,
    available_months,
    check_month,
    filter_by_period,
    monthly_spending,
    monthly_summary,
    period_start,
    project_goal,
    spending_by_category,
    spending_trends,
    tier_totals,
    transactions_in_month,
)

__all__ = [
    "MONTH_NAMES",
    "CategoryTotal",
    "GoalProjection",
    "MonthKey",
    "MonthlySummary",
    "ReportPeriod",
    "TrendPoint",
    "available_months",
    "check_month",
    "filter_by_period",
    "monthly_spending",
    "monthly_summary",
    "period_start",
    "project_goal",
    "spending_by_category",
    "spending_trends",
    "tier_totals",
    "transactions_in_month",
]
