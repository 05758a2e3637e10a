"""
Tests for spending aggregation and goal projections
"""

import pytest
from datetime import date, datetime, timezone

from finance_ai.models.finance import OnboardingData, SavingsGoal, Transaction
from finance_ai.summaries import (
    ReportPeriod,
    available_months,
    filter_by_period,
    monthly_spending,
    monthly_summary,
    period_start,
    project_goal,
    spending_by_category,
    spending_trends,
)


def txn(amount, tier, when, category="Misc", id="t"):
    return Transaction(id=id, amount=amount, type=tier, date=when, category=category)


def goal(target, current, target_date=date(2024, 12, 31)):
    return SavingsGoal(
        id="goal_1",
        name="Goal",
        target_amount=target,
        current_amount=current,
        target_date=target_date,
        created_at=datetime(2024, 1, 1, tzinfo=timezone.utc),
    )


class TestMonthlySpending:
    """Tests for per-month totals."""

    def test_only_requested_month_counted(self):
        """Test that other months and years are ignored."""
        transactions = [
            txn(100, "needs", datetime(2024, 3, 5)),
            txn(50, "wants", datetime(2024, 3, 31, 23, 59)),
            txn(70, "needs", datetime(2024, 4, 1)),
            txn(30, "wants", datetime(2023, 3, 5)),
        ]
        spending = monthly_spending(transactions, 2024, 2)
        assert (spending.needs, spending.wants, spending.not_important, spending.total) == (100, 50, 0, 150)

    def test_empty_month(self):
        """Test that a month without transactions is all zeros."""
        assert monthly_spending([], 2024, 0).total == 0

    @pytest.mark.parametrize("month", [-1, 12, 13])
    def test_rejects_invalid_month(self, month):
        """Test zero-based month validation."""
        with pytest.raises(ValueError):
            monthly_spending([], 2024, month)


class TestAvailableMonths:
    def test_distinct_newest_first(self):
        """Test months are unique and sorted newest first."""
        transactions = [
            txn(1, "needs", datetime(2024, 1, 2)),
            txn(1, "needs", datetime(2023, 12, 30)),
            txn(1, "needs", datetime(2024, 1, 20)),
            txn(1, "needs", datetime(2024, 5, 1)),
        ]
        months = available_months(transactions)
        assert [(m.year, m.month) for m in months] == [(2024, 4), (2024, 0), (2023, 11)]
        assert [m.label for m in months] == ["May 2024", "January 2024", "December 2023"]

    def test_utc_timestamp_uses_local_month(self, india_local_time):
        """Test that 20:30 UTC on 31 March is April at UTC+05:30."""
        transactions = [txn(40, "wants", datetime(2024, 3, 31, 20, 30, tzinfo=timezone.utc))]

        assert [(m.year, m.month) for m in available_months(transactions)] == [(2024, 3)]
        assert monthly_spending(transactions, 2024, 3).wants == 40
        assert monthly_spending(transactions, 2024, 2).total == 0


class TestCategoryBreakdown:
    """Tests for category totals."""

    def test_sorted_descending_with_limit(self):
        """Test ranking and the top-N cut."""
        transactions = [
            txn(10, "wants", datetime(2024, 3, 1), category="Dining"),
            txn(300, "needs", datetime(2024, 3, 1), category="Rent"),
            txn(25, "wants", datetime(2024, 3, 2), category="Dining"),
            txn(5, "notImportant", datetime(2024, 3, 2), category="Snacks"),
        ]
        ranked = spending_by_category(transactions, limit=2)
        assert [(c.category, c.amount) for c in ranked] == [("Rent", 300), ("Dining", 35)]

    def test_no_limit(self):
        """Test that limit=None keeps every category."""
        transactions = [txn(i + 1, "needs", datetime(2024, 3, 1), category=str(i)) for i in range(7)]
        assert len(spending_by_category(transactions, limit=None)) == 7

    def test_ties_keep_first_seen_order(self):
        """Test stable ordering for equal totals."""
        transactions = [
            txn(10, "needs", datetime(2024, 3, 1), category="B"),
            txn(10, "needs", datetime(2024, 3, 1), category="A"),
        ]
        assert [c.category for c in spending_by_category(transactions)] == ["B", "A"]


class TestPeriods:
    """Tests for report period windows and trends."""

    NOW = datetime(2024, 3, 31, 12, 0, tzinfo=timezone.utc)

    def test_period_starts(self):
        """Test the look-back window of each period."""
        assert period_start(ReportPeriod.WEEK, self.NOW) == datetime(2024, 3, 24, 12, 0, tzinfo=timezone.utc)
        assert period_start(ReportPeriod.MONTH, self.NOW) == datetime(2024, 2, 29, 12, 0, tzinfo=timezone.utc)
        assert period_start(ReportPeriod.QUARTER, self.NOW) == datetime(2023, 12, 31, 12, 0, tzinfo=timezone.utc)
        assert period_start(ReportPeriod.YEAR, self.NOW) == datetime(2023, 3, 31, 12, 0, tzinfo=timezone.utc)

    def test_period_accepts_plain_string(self):
        """Test that the period can be given by value."""
        assert period_start("week", self.NOW) == period_start(ReportPeriod.WEEK, self.NOW)

    def test_filter_by_period(self):
        """Test that only transactions in the window are kept."""
        recent = txn(1, "needs", datetime(2024, 3, 30, tzinfo=timezone.utc), id="recent")
        old = txn(1, "needs", datetime(2024, 1, 1, tzinfo=timezone.utc), id="old")
        kept = filter_by_period([recent, old], ReportPeriod.MONTH, self.NOW)
        assert [t.id for t in kept] == ["recent"]

    def test_daily_trends(self):
        """Test day buckets for short periods."""
        transactions = [
            txn(10, "needs", datetime(2024, 3, 2)),
            txn(5, "wants", datetime(2024, 3, 1)),
            txn(3, "needs", datetime(2024, 3, 2)),
        ]
        trends = spending_trends(transactions, ReportPeriod.WEEK)
        assert [p.date for p in trends] == ["2024-03-01", "2024-03-02"]
        assert trends[1].needs == 13
        assert trends[0].wants == 5

    def test_monthly_trends(self):
        """Test month buckets for long periods."""
        transactions = [
            txn(10, "notImportant", datetime(2024, 3, 2)),
            txn(5, "notImportant", datetime(2024, 1, 9)),
            txn(1, "needs", datetime(2024, 3, 20)),
        ]
        trends = spending_trends(transactions, ReportPeriod.YEAR)
        assert [p.date for p in trends] == ["2024-01", "2024-03"]
        assert trends[1].not_important == 10
        assert trends[1].needs == 1

    def test_trend_buckets_use_local_time(self, india_local_time):
        """Test that day and month buckets follow the local calendar."""
        transactions = [txn(40, "wants", datetime(2024, 3, 31, 20, 30, tzinfo=timezone.utc))]

        assert [p.date for p in spending_trends(transactions, ReportPeriod.WEEK)] == ["2024-04-01"]
        assert [p.date for p in spending_trends(transactions, ReportPeriod.YEAR)] == ["2024-04"]


class TestGoalProjection:
    """Tests for savings goal projections."""

    def test_monthly_savings_needed(self):
        """Test the required monthly contribution."""
        projection = project_goal(goal(1000, 400, date(2024, 7, 1)), today=date(2024, 4, 2))
        assert projection.days_remaining == 90
        assert projection.remaining_amount == 600
        assert projection.monthly_savings_needed == pytest.approx(200)
        assert projection.progress_percent == pytest.approx(40)

    def test_past_due_goal_needs_everything_now(self):
        """Test that fewer than 30 days counts as one month."""
        projection = project_goal(goal(1000, 400, date(2024, 1, 1)), today=date(2024, 4, 2))
        assert projection.days_remaining < 0
        assert projection.monthly_savings_needed == 600


class TestMonthlySummary:
    """Tests for the monthly summary."""

    def test_without_income(self):
        """Test that no onboarding data gives a zero savings rate."""
        summary = monthly_summary([txn(10, "needs", datetime(2024, 3, 1))], 2024, 2)
        assert summary.monthly_income == 0
        assert summary.savings_rate == 0
        assert summary.goals_progress_percent == 0
        assert summary.label == "March 2024"

    def test_with_income_and_goals(self):
        """Test income, shares and goal totals together."""
        onboarding = OnboardingData(monthly_income="1,000", savings_goal="200")
        transactions = [
            txn(300, "needs", datetime(2024, 3, 1)),
            txn(100, "wants", datetime(2024, 3, 2)),
            txn(100, "notImportant", datetime(2024, 3, 3)),
        ]
        summary = monthly_summary(
            transactions, 2024, 2, onboarding=onboarding, goals=[goal(500, 100), goal(500, 400)]
        )
        assert summary.monthly_income == 1000
        assert summary.amount_saved == 500
        assert summary.savings_rate == 50
        assert summary.needs_share == pytest.approx(60)
        assert summary.not_important_share == pytest.approx(20)
        assert summary.goals_target_total == 1000
        assert summary.goals_saved_total == 500
        assert summary.goals_progress_percent == 50


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
