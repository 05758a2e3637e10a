"""
Core Data Models for FinanceAI

These models define the schemas for everything kept in the finance
aggregate. They are designed to:
1. Validate data coming from imports and UI collaborators
2. Serialize to the exact JSON layout of the stored aggregate
3. Accept both camelCase (stored JSON) and snake_case (Python callers)

DESIGN DECISION: The stored JSON keeps camelCase keys (monthlyIncome,
savingsGoals, notImportant...). Python code uses snake_case attributes and
the alias generator bridges the two.
"""

from datetime import date, datetime
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel


def local_now() -> datetime:
    """Current wall-clock time with the local UTC offset attached."""
    return datetime.now().astimezone()


def as_local(dt: datetime) -> datetime:
    """Aware timestamps converted to local time; naive ones are already local."""
    return dt.astimezone() if dt.tzinfo is not None else dt


class CamelModel(BaseModel):
    """Base for every persisted model."""
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        str_strip_whitespace=True,
    )

    def to_json_dict(self) -> dict:
        """Dump with stored (camelCase) keys and JSON-safe values."""
        return self.model_dump(mode="json", by_alias=True)


# =============================================================================
# ENUMS - Finite set of valid values
# =============================================================================

class SpendingTier(str, Enum):
    """
    Spending classification of a transaction.

    Every transaction belongs to exactly one tier. Monthly spending is
    summed per tier.
    """
    NEEDS = "needs"
    WANTS = "wants"
    NOT_IMPORTANT = "notImportant"


class GoalPriority(str, Enum):
    """Priority of a savings goal."""
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


# =============================================================================
# TRANSACTIONS
# =============================================================================

class TransactionDraft(CamelModel):
    """
    A transaction as submitted by a caller, before the store assigns an ID.

    ``date`` may be omitted; the store then uses the current time.
    """
    amount: float = Field(
        ...,
        gt=0,
        description="Amount spent"
    )
    type: SpendingTier = Field(
        ...,
        description="Spending tier"
    )
    category: str = Field(
        default="",
        max_length=100,
        description="User category (e.g. Rent, Groceries)"
    )
    description: str = Field(
        default="",
        max_length=500
    )
    date: Optional[datetime] = None
    notes: Optional[str] = Field(
        default=None,
        max_length=1000
    )


class Transaction(CamelModel):
    """
    A recorded transaction.

    Owned by the aggregate's transaction list, which is kept newest-first.

    NOTE: Only the shape is checked here, because stored records are loaded
    through this model and a record written by an older version must not
    make the whole aggregate unreadable. Value rules live on
    TransactionDraft and are applied to every add and update.
    """
    id: str = Field(
        ...,
        description="Unique transaction ID"
    )
    amount: float = Field(
        ...,
        description="Amount spent"
    )
    category: str = ""
    type: SpendingTier
    description: str = ""
    date: datetime = Field(
        ...,
        description="When the money was spent (ISO-8601)"
    )
    notes: Optional[str] = None

    @property
    def local_date(self) -> datetime:
        """The transaction time on the local wall clock."""
        return as_local(self.date)

    def in_month(self, year: int, month: int) -> bool:
        """True if the transaction falls in zero-based ``month`` of ``year``, local time."""
        when = self.local_date
        return when.year == year and when.month == month + 1


# =============================================================================
# ONBOARDING
# =============================================================================

class SpendingCategories(CamelModel):
    """User-defined category names per spending tier."""
    needs: list[str] = Field(default_factory=list)
    wants: list[str] = Field(default_factory=list)
    not_important: list[str] = Field(default_factory=list)


class OnboardingData(CamelModel):
    """
    The user's profile, captured once during onboarding.

    Income and savings goal stay as text because that is how the
    onboarding form captures them.
    """
    monthly_income: str = Field(
        default="",
        description="Monthly income as entered (numeric text)"
    )
    savings_goal: str = Field(
        default="",
        description="Monthly savings target as entered (numeric text)"
    )
    currency: str = "INR"
    categories: SpendingCategories = Field(default_factory=SpendingCategories)

    @field_validator('monthly_income', 'savings_goal', mode='before')
    @classmethod
    def numbers_as_text(cls, v):
        """Older exports stored these as numbers."""
        if isinstance(v, (int, float)) and not isinstance(v, bool):
            return str(v)
        return v

    @property
    def monthly_income_amount(self) -> float:
        return _parse_amount(self.monthly_income)

    @property
    def savings_goal_amount(self) -> float:
        return _parse_amount(self.savings_goal)


def _parse_amount(text: str) -> float:
    try:
        return float(text.replace(",", ""))
    except ValueError:
        return 0.0


# =============================================================================
# SAVINGS GOALS
# =============================================================================

class SavingsGoalDraft(CamelModel):
    """A savings goal as submitted by a caller, before ID and createdAt."""
    name: str = Field(
        ...,
        min_length=1,
        max_length=200
    )
    target_amount: float = Field(
        ...,
        gt=0
    )
    current_amount: float = Field(
        default=0.0,
        ge=0
    )
    category: str = ""
    priority: GoalPriority = GoalPriority.MEDIUM
    target_date: date


class SavingsGoal(CamelModel):
    """
    A savings goal.

    NOTE: current_amount is allowed to exceed target_amount here. Only
    deposits made through the store are clamped at the target. As with
    Transaction, value rules live on the draft model.
    """
    id: str
    name: str
    target_amount: float
    current_amount: float = 0.0
    category: str = ""
    priority: GoalPriority = GoalPriority.MEDIUM
    target_date: date
    created_at: datetime

    @property
    def remaining_amount(self) -> float:
        return max(self.target_amount - self.current_amount, 0.0)

    @property
    def progress_percent(self) -> float:
        if self.target_amount <= 0:
            return 0.0
        return self.current_amount / self.target_amount * 100


# =============================================================================
# AGGREGATE ROOT
# =============================================================================

class UserData(CamelModel):
    """
    The whole persisted state of one user.

    CRITICAL: This is the only unit of persistence. Every mutation reads
    the full aggregate, changes it in memory and writes it back whole.
    """
    onboarding: Optional[OnboardingData] = None
    transactions: list[Transaction] = Field(default_factory=list)
    savings_goals: list[SavingsGoal] = Field(default_factory=list)
    last_updated: datetime = Field(default_factory=local_now)


class MonthlySpending(CamelModel):
    """Spending per tier for one calendar month."""
    needs: float = 0.0
    wants: float = 0.0
    not_important: float = 0.0
    total: float = 0.0

    def add(self, transaction: Transaction) -> None:
        if transaction.type == SpendingTier.NEEDS:
            self.needs += transaction.amount
        elif transaction.type == SpendingTier.WANTS:
            self.wants += transaction.amount
        else:
            self.not_important += transaction.amount
        self.total += transaction.amount

    def share_of(self, tier: SpendingTier) -> float:
        """Percentage of total spending that went to ``tier`` (0 when nothing was spent)."""
        if self.total <= 0:
            return 0.0
        amount = {
            SpendingTier.NEEDS: self.needs,
            SpendingTier.WANTS: self.wants,
            SpendingTier.NOT_IMPORTANT: self.not_important,
        }[tier]
        return amount / self.total * 100
