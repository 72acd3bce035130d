"""
Sync Audit Logger

DESIGN DECISION: Every local mutation and every remote call is logged.
Local saves are never rolled back when the mirror fails, so this trail
is how anyone finds out later which records the sheet is missing.

The audit logger:
- Always writes to the structured local log
- Optionally appends to a sink (for in-app history)
- Never crashes the app if the sink fails
"""

import logging
from typing import Optional

import structlog

from budget_sync.models.audit import SyncEvent, SyncEventBuilder
from budget_sync.services.store import AuditSinkInterface


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


def configure_logging(level: str = "INFO") -> None:
    """Route structlog's stdlib loggers to stderr at the given level."""
    logging.basicConfig(
        format="%(message)s",
        level=getattr(logging, level.upper(), logging.INFO),
    )


class SyncAuditLogger:
    """
    Central sync audit logging service.

    Logs events both to:
    1. Structured local log (for debugging)
    2. An audit sink (for the user-visible sync history)
    """

    def __init__(
        self,
        sink: Optional[AuditSinkInterface] = None,
    ):
        """
        Initialize audit logger.

        Args:
            sink: Where to persist events. If None, only logs locally.
        """
        self._sink = sink
        self._logger = structlog.get_logger("budget_sync.audit")

    def log(self, event: SyncEvent) -> bool:
        """
        Log a sync event.

        Returns True if the sink write succeeded (or no sink configured).
        """
        log_dict = event.to_log_dict()

        if event.severity.value == "error":
            self._logger.error("sync_event", **log_dict)
        elif event.severity.value == "warning":
            self._logger.warning("sync_event", **log_dict)
        elif event.severity.value == "debug":
            self._logger.debug("sync_event", **log_dict)
        else:
            self._logger.info("sync_event", **log_dict)

        if self._sink is not None:
            try:
                return self._sink.append_event(event)
            except Exception as e:
                # The sink is a convenience; losing it must not break a save
                self._logger.error(
                    "audit_sink_failed",
                    error=str(e),
                    event_id=str(event.event_id),
                )
                return False

        return True

    def log_post_result(
        self,
        entity_type: str,
        entity_id: str,
        status: int,
        body: str,
    ) -> None:
        """Log the outcome of a mirror POST."""
        if 200 <= status < 300:
            event = SyncEventBuilder.posted(entity_type, entity_id, status)
        else:
            event = SyncEventBuilder.post_failed(entity_type, entity_id, status, body)
        self.log(event)

    def log_fetch(self, action: str, count: int, dropped: int) -> None:
        """Log a successful read, plus a warning if rows were dropped."""
        self.log(SyncEventBuilder.fetched(action, count, dropped))
        if dropped:
            self.log(SyncEventBuilder.records_dropped(action, dropped))

    def log_fetch_failed(self, action: str, kind: str, error_message: str) -> None:
        self.log(SyncEventBuilder.fetch_failed(action, kind, error_message))
