"""AI insights package."""

from finance_ai.insights.advisor import (
    FinancialInsights,
    InsightRequest,
    InsightsAgent,
    InsightsError,
    Recommendation,
    build_analysis_context,
    build_prompt,
    fallback_insights,
    parse_insights,
)

__all__ = [
    "FinancialInsights",
    "InsightRequest",
    "InsightsAgent",
    "InsightsError",
    "Recommendation",
    "build_analysis_context",
    "build_prompt",
    "fallback_insights",
    "parse_insights",
]
