"""
AI Spending Advisor

DESIGN DECISION: The advisor is a thin request/response passthrough.
The numbers in the prompt are computed here, deterministically, from the
transactions the caller passes in. The LLM only turns them into advice.

BOUNDARIES:
- NEVER reads or writes the finance store (callers pass a snapshot)
- NEVER fails on a malformed answer - a fallback insight is returned
- A failed upstream call surfaces as one InsightsError, nothing more
"""

import json
from typing import Any, Optional

import google.generativeai as genai
from pydantic import Field, ValidationError

from finance_ai.audit import AuditLogger
from finance_ai.config import GeminiSettings, get_settings
from finance_ai.models.audit import AuditEventBuilder
from finance_ai.models.finance import (
    CamelModel,
    SpendingCategories,
    Transaction,
    UserData,
)
from finance_ai.reports.export import currency_symbol, format_amount
from finance_ai.summaries.aggregation import tier_totals


# Transactions quoted verbatim in the prompt
PROMPT_TRANSACTION_LIMIT = 10
FALLBACK_ASSESSMENT_CHARS = 200


class InsightsError(Exception):
    """The insights service could not produce an answer."""
    pass


class InsightRequest(CamelModel):
    """Snapshot of the data the advisor looks at."""
    transactions: list[Transaction] = Field(default_factory=list)
    monthly_income: float = Field(default=0.0, ge=0)
    savings_goal: float = Field(default=0.0, ge=0)
    currency: str = "INR"
    categories: SpendingCategories = Field(default_factory=SpendingCategories)

    @classmethod
    def from_user_data(
        cls,
        data: UserData,
        transactions: Optional[list[Transaction]] = None,
    ) -> "InsightRequest":
        """
        Build a request from the aggregate.

        ``transactions`` defaults to all of them; pass a month's worth to
        get advice for that month only.
        """
        onboarding = data.onboarding
        return cls(
            transactions=data.transactions if transactions is None else transactions,
            monthly_income=onboarding.monthly_income_amount if onboarding else 0.0,
            savings_goal=onboarding.savings_goal_amount if onboarding else 0.0,
            currency=onboarding.currency if onboarding else "INR",
            categories=onboarding.categories if onboarding else SpendingCategories(),
        )


class Recommendation(CamelModel):
    title: str
    description: str = ""
    impact: str = ""
    priority: str = "medium"


class FinancialInsights(CamelModel):
    """Advice returned to the UI."""
    overall_assessment: str = ""
    recommendations: list[Recommendation] = Field(default_factory=list)
    spending_patterns: list[str] = Field(default_factory=list)
    savings_tips: list[str] = Field(default_factory=list)


def _share(part: float, whole: float) -> str:
    return f"{part / whole * 100:.1f}%" if whole > 0 else "0.0%"


def build_analysis_context(request: InsightRequest) -> str:
    """The numeric picture of the user's finances, as prompt text."""
    symbol = currency_symbol(request.currency)
    spending = tier_totals(request.transactions)
    total = spending.total
    income = request.monthly_income

    def money(amount: float) -> str:
        return f"{symbol}{format_amount(amount)}"

    recent = "\n".join(
        f"- {t.description}: {money(t.amount)} ({t.type.value} - {t.category})"
        for t in request.transactions[:PROMPT_TRANSACTION_LIMIT]
    )

    return f"""Personal Finance Analysis Context:
- Monthly Income: {money(income)}
- Savings Goal: {money(request.savings_goal)}
- Total Spent: {money(total)} ({_share(total, income)} of income)
- Actual Savings: {money(income - total)}

Spending Breakdown:
- Needs: {money(spending.needs)} ({_share(spending.needs, total)})
- Wants: {money(spending.wants)} ({_share(spending.wants, total)})
- Not Important: {money(spending.not_important)} ({_share(spending.not_important, total)})

Recent Transactions (last {PROMPT_TRANSACTION_LIMIT}):
{recent or "- none"}

User Categories:
- Needs: {", ".join(request.categories.needs)}
- Wants: {", ".join(request.categories.wants)}
- Not Important: {", ".join(request.categories.not_important)}"""


def build_prompt(request: InsightRequest) -> str:
    symbol = currency_symbol(request.currency)
    return f"""You are a personal finance advisor AI. Analyze the following financial data and provide actionable insights.

{build_analysis_context(request)}

Please provide:
1. A brief overall assessment (2-3 sentences)
2. 3-4 specific actionable recommendations
3. Spending pattern observations
4. Savings optimization tips

Format your response as JSON with the following structure:
{{
  "overallAssessment": "Brief assessment text",
  "recommendations": [
    {{
      "title": "Recommendation title",
      "description": "Detailed recommendation",
      "impact": "potential savings amount or benefit",
      "priority": "high|medium|low"
    }}
  ],
  "spendingPatterns": [
    "Pattern observation 1",
    "Pattern observation 2"
  ],
  "savingsTips": [
    "Savings tip 1",
    "Savings tip 2"
  ]
}}

Keep recommendations practical and specific to their spending habits. Use the currency symbol {symbol} in monetary amounts."""


def fallback_insights(text: str) -> FinancialInsights:
    """Generic advice used when the model's answer is not the requested JSON."""
    return FinancialInsights(
        overall_assessment=text[:FALLBACK_ASSESSMENT_CHARS] + "...",
        recommendations=[
            Recommendation(
                title="Review Your Spending",
                description="Analyze your recent transactions to identify areas for improvement.",
                impact="Potential savings of 10-20%",
                priority="medium",
            )
        ],
        spending_patterns=["Unable to parse detailed patterns"],
        savings_tips=["Track your expenses regularly", "Set specific savings goals"],
    )


def parse_insights(text: str) -> FinancialInsights:
    """
    Parse the model's answer.

    Models often wrap JSON in prose or code fences, so the outermost
    ``{...}`` span is parsed. Anything unusable gives the fallback.
    """
    start = text.find("{")
    end = text.rfind("}") + 1
    if start >= 0 and end > start:
        try:
            data: Any = json.loads(text[start:end])
            if isinstance(data, dict):
                return FinancialInsights.model_validate(data)
        except (json.JSONDecodeError, ValidationError):
            pass
    return fallback_insights(text)


class InsightsAgent:
    """
    Asks Gemini for spending advice.

    RESPONSIBILITIES:
    - Build the prompt from a data snapshot
    - Call the model with a bounded timeout
    - Turn whatever comes back into FinancialInsights
    """

    def __init__(
        self,
        settings: Optional[GeminiSettings] = None,
        model: Optional[Any] = None,
        audit_logger: Optional[AuditLogger] = None,
    ):
        """
        Args:
            settings: Gemini settings; loaded from the environment if omitted
            model: Pre-built model object exposing ``generate_content_async``
            audit_logger: Where failed requests are reported
        """
        self._settings = settings or get_settings().gemini
        self._audit = audit_logger or AuditLogger()
        self._model = model if model is not None else self._configure_genai()

    def _configure_genai(self):
        """Configure Google Generative AI."""
        genai.configure(api_key=self._settings.api_key)
        return genai.GenerativeModel(
            model_name=self._settings.model_name,
            generation_config={
                "temperature": self._settings.temperature,
                "max_output_tokens": self._settings.max_tokens,
            }
        )

    async def generate_insights(self, request: InsightRequest) -> FinancialInsights:
        """
        Get advice for ``request``.

        Raises:
            InsightsError: If the model could not be reached or answered
                           with no text
        """
        prompt = build_prompt(request)
        try:
            response = await self._model.generate_content_async(
                prompt,
                request_options={"timeout": self._settings.request_timeout_seconds},
            )
            text = response.text
        except Exception as e:
            self._audit.log(
                AuditEventBuilder.insights_failed(self._settings.model_name, str(e))
            )
            raise InsightsError("Failed to generate insights") from e

        return parse_insights(text.strip())
