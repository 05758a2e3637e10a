"""
Audit Logger

DESIGN DECISION: The store swallows storage failures so the UI never
crashes, which means a lost write would be invisible without a log.
Every mutation, failed write and automatic recovery is therefore emitted
as a structured log line.

The audit logger:
- Is synchronous, like the store it serves
- Maps event severity onto the log level
"""

import structlog

from finance_ai.models.audit import AuditEvent, AuditSeverity


# Configure structlog for local logging
structlog.configure(
    processors=[
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
        structlog.processors.JSONRenderer()
    ],
    wrapper_class=structlog.stdlib.BoundLogger,
    context_class=dict,
    logger_factory=structlog.stdlib.LoggerFactory(),
    cache_logger_on_first_use=True,
)


_LEVELS = {
    AuditSeverity.DEBUG: "debug",
    AuditSeverity.INFO: "info",
    AuditSeverity.WARNING: "warning",
    AuditSeverity.ERROR: "error",
    AuditSeverity.CRITICAL: "critical",
}


class AuditLogger:
    """
    Central audit logging service.

    Keeps the last events in memory as well, so callers (and tests) can
    see what the store did without parsing log output.
    """

    def __init__(self, logger_name: str = "finance_ai.audit", history_size: int = 100):
        self._logger = structlog.get_logger(logger_name)
        self._history: list[AuditEvent] = []
        self._history_size = history_size

    @property
    def recent_events(self) -> list[AuditEvent]:
        """Most recent events, oldest first."""
        return list(self._history)

    def log(self, event: AuditEvent) -> None:
        """Record an audit event."""
        self._history.append(event)
        if len(self._history) > self._history_size:
            del self._history[0]

        method = getattr(self._logger, _LEVELS[event.severity])
        method("audit_event", **event.to_log_dict())


def get_logger(name: str):
    """Plain structured logger for modules that do not emit audit events."""
    return structlog.get_logger(name)
