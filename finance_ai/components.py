"""
Application Wiring

Builds the objects a UI needs from configuration: one FinanceStore and,
when Gemini is configured, one InsightsAgent. Both share a single
AuditLogger so store recoveries and insight failures land in one stream.
"""

import logging
from typing import Optional

from pydantic import ValidationError

from finance_ai.audit import AuditLogger, get_logger
from finance_ai.config import get_settings, validate_all_settings
from finance_ai.insights import InsightsAgent
from finance_ai.store import FinanceStore, create_finance_store


logger = get_logger(__name__)


def create_app_components(
    use_insights: bool = True,
) -> tuple[FinanceStore, Optional[InsightsAgent]]:
    """
    Factory function to create all application components.

    Args:
        use_insights: Whether to set up the Gemini advisor.
                      Set to False to run without an API key.

    Returns:
        (finance_store, insights_agent); the agent is None when disabled
        or not configured
    """
    settings = get_settings()
    logging.getLogger().setLevel(settings.app.log_level.upper())

    status = validate_all_settings()
    logger.debug("settings_checked", **status)

    audit_logger = AuditLogger()
    store = create_finance_store(settings.storage, audit_logger=audit_logger)

    agent = None
    if use_insights:
        try:
            agent = InsightsAgent(settings=settings.gemini, audit_logger=audit_logger)
        except ValidationError as e:
            # Gemini not configured - continue without insights
            logger.warning("insights_not_configured", error_count=e.error_count())

    logger.info(
        "components_ready",
        backend=type(store.backend).__name__,
        insights=agent is not None,
    )
    return store, agent
