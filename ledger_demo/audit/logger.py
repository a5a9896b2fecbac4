"""
Audit Logger

DESIGN DECISION: Every step of the walkthrough is logged.
This provides:
1. A complete trace of a run
2. Debugging capability when the database refuses a request
3. One line per step on stdout, ready for log shippers

The audit logger:
- Emits at the level matching the event's severity
- Supports correlation IDs to trace the events of one run
"""

import logging
import sys
from uuid import UUID, uuid4

import structlog

from ledger_demo.models.audit import AuditEvent, AuditSeverity


def configure_logging(level: str = "INFO", log_format: str = "json") -> None:
    """
    Configure structlog on top of the stdlib logging module.

    Call once at process start. log_format is "json" or "console".
    """
    logging.basicConfig(
        format="%(message)s",
        stream=sys.stdout,
        level=getattr(logging, level.upper()),
        force=True,
    )

    if log_format == "console":
        renderer = structlog.dev.ConsoleRenderer()
    else:
        renderer = structlog.processors.JSONRenderer()

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
            renderer,
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


class AuditLogger:
    """
    Central audit logging service.

    Writes every event to the structured local log and keeps the
    events of the current process in memory for inspection.
    """

    def __init__(self):
        self._logger = structlog.get_logger("ledger_demo.audit")
        self._events: list[AuditEvent] = []

    @property
    def events(self) -> list[AuditEvent]:
        """Events logged so far, oldest first."""
        return list(self._events)

    def log(self, event: AuditEvent) -> None:
        """Log an audit event at the level its severity maps to."""
        self._events.append(event)
        log_dict = event.to_log_dict()

        if event.severity in (AuditSeverity.ERROR, AuditSeverity.CRITICAL):
            self._logger.error("audit_event", **log_dict)
        elif event.severity == AuditSeverity.WARNING:
            self._logger.warning("audit_event", **log_dict)
        elif event.severity == AuditSeverity.DEBUG:
            self._logger.debug("audit_event", **log_dict)
        else:
            self._logger.info("audit_event", **log_dict)


def create_correlation_id() -> UUID:
    """
    Create a new correlation ID for tracking related events.

    Use one per run and pass it to every step.
    """
    return uuid4()
