"""
Tests for the AI spending advisor

The Gemini model is replaced by a fake exposing generate_content_async.
"""

import asyncio
import json
import pytest
from datetime import datetime

from finance_ai.audit import AuditLogger
from finance_ai.config import GeminiSettings
from finance_ai.models.audit import AuditEventType
from finance_ai.models.finance import OnboardingData, Transaction, UserData
from finance_ai.insights import (
    InsightRequest,
    InsightsAgent,
    InsightsError,
    build_analysis_context,
    build_prompt,
    parse_insights,
)


VALID_ANSWER = {
    "overallAssessment": "You save most of your income.",
    "recommendations": [
        {
            "title": "Cook at home",
            "description": "Dining is your largest want.",
            "impact": "₹2,000 per month",
            "priority": "high",
        }
    ],
    "spendingPatterns": ["Weekend dining"],
    "savingsTips": ["Automate transfers"],
}


class FakeResponse:
    def __init__(self, text):
        self.text = text


class FakeModel:
    """Records prompts and answers with canned text."""

    def __init__(self, text="", error=None):
        self.text = text
        self.error = error
        self.prompts = []
        self.request_options = None

    async def generate_content_async(self, prompt, request_options=None):
        self.prompts.append(prompt)
        self.request_options = request_options
        if self.error is not None:
            raise self.error
        return FakeResponse(self.text)


@pytest.fixture
def request_data():
    data = UserData(
        onboarding=OnboardingData(
            monthly_income="50000",
            savings_goal="10000",
            categories={"needs": ["Rent"], "wants": ["Dining"], "notImportant": ["Impulse"]},
        ),
        transactions=[
            Transaction(id="t1", amount=15000, type="needs", category="Rent",
                        description="March rent", date=datetime(2024, 3, 1)),
            Transaction(id="t2", amount=5000, type="wants", category="Dining",
                        description="Dinners", date=datetime(2024, 3, 8)),
        ],
    )
    return InsightRequest.from_user_data(data)


def _agent(model, audit=None):
    return InsightsAgent(
        settings=GeminiSettings(api_key="test-key", request_timeout_seconds=5),
        model=model,
        audit_logger=audit or AuditLogger(),
    )


class TestPrompt:
    """Tests for prompt construction."""

    def test_request_from_user_data(self, request_data):
        """Test that income and goal are parsed from onboarding text."""
        assert request_data.monthly_income == 50000
        assert request_data.savings_goal == 10000
        assert len(request_data.transactions) == 2

    def test_request_without_onboarding(self):
        """Test defaults when onboarding has not happened yet."""
        request = InsightRequest.from_user_data(UserData())
        assert request.monthly_income == 0
        assert request.currency == "INR"

    def test_context_numbers(self, request_data):
        """Test the computed totals in the analysis context."""
        context = build_analysis_context(request_data)
        assert "- Monthly Income: ₹50000" in context
        assert "- Total Spent: ₹20000 (40.0% of income)" in context
        assert "- Actual Savings: ₹30000" in context
        assert "- Needs: ₹15000 (75.0%)" in context
        assert "- March rent: ₹15000 (needs - Rent)" in context
        assert "- Wants: Dining" in context

    def test_context_without_income(self):
        """Test that zero income does not divide by zero."""
        context = build_analysis_context(InsightRequest())
        assert "(0.0% of income)" in context
        assert "- none" in context

    def test_prompt_asks_for_json(self, request_data):
        """Test that the prompt embeds the context and the answer format."""
        prompt = build_prompt(request_data)
        assert "Personal Finance Analysis Context:" in prompt
        assert '"overallAssessment"' in prompt
        assert "currency symbol ₹" in prompt


class TestParsing:
    """Tests for parsing model answers."""

    def test_plain_json(self):
        """Test a clean JSON answer."""
        insights = parse_insights(json.dumps(VALID_ANSWER))
        assert insights.overall_assessment == "You save most of your income."
        assert insights.recommendations[0].priority == "high"
        assert insights.savings_tips == ["Automate transfers"]

    def test_json_in_code_fence(self):
        """Test that surrounding prose and fences are ignored."""
        text = "Here you go:\n```json\n" + json.dumps(VALID_ANSWER) + "\n```"
        assert parse_insights(text).spending_patterns == ["Weekend dining"]

    def test_unparsable_answer_falls_back(self):
        """Test the fallback for non-JSON text."""
        text = "x" * 300
        insights = parse_insights(text)
        assert insights.overall_assessment == "x" * 200 + "..."
        assert insights.recommendations[0].title == "Review Your Spending"

    def test_broken_json_falls_back(self):
        """Test the fallback for truncated JSON."""
        insights = parse_insights('{"overallAssessment": "cut off')
        assert insights.spending_patterns == ["Unable to parse detailed patterns"]


class TestInsightsAgent:
    """Tests for the Gemini-backed agent."""

    def test_generate_insights(self, request_data):
        """Test a successful round trip through the model."""
        model = FakeModel(text="  " + json.dumps(VALID_ANSWER) + "\n")
        insights = asyncio.run(_agent(model).generate_insights(request_data))

        assert insights.recommendations[0].title == "Cook at home"
        assert model.request_options == {"timeout": 5}
        assert "March rent" in model.prompts[0]

    def test_model_failure_raises_insights_error(self, request_data):
        """Test that upstream failures surface as InsightsError."""
        audit = AuditLogger()
        model = FakeModel(error=TimeoutError("deadline exceeded"))

        with pytest.raises(InsightsError):
            asyncio.run(_agent(model, audit).generate_insights(request_data))

        assert audit.recent_events[-1].event_type == AuditEventType.INSIGHTS_FAILED

    def test_prose_answer_gives_fallback(self, request_data):
        """Test that a non-JSON answer still returns insights."""
        model = FakeModel(text="Spend less on dining.")
        insights = asyncio.run(_agent(model).generate_insights(request_data))
        assert insights.overall_assessment == "Spend less on dining...."


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
