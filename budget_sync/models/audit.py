"""
Sync Audit Models

Every local mutation and every remote call leaves an event behind.
Because the app is local first with no reconciliation, this trail is
the only way to tell afterwards which local records never reached the
sheet.

DESIGN DECISION: Sync events are append-only. We never delete or modify them.
"""

from datetime import datetime
from enum import Enum
from typing import Any, Optional
from uuid import UUID, uuid4

from pydantic import BaseModel, Field


class SyncEventType(str, Enum):
    """Types of events we record."""
    # Local store
    LOCAL_SAVED = "local_saved"
    LOCAL_DELETED = "local_deleted"
    DEFAULTS_SEEDED = "defaults_seeded"
    SORT_RENUMBERED = "sort_renumbered"

    # Remote writes
    REMOTE_POSTED = "remote_posted"
    REMOTE_POST_FAILED = "remote_post_failed"

    # Remote reads
    REMOTE_FETCHED = "remote_fetched"
    REMOTE_FETCH_FAILED = "remote_fetch_failed"
    RECORDS_DROPPED = "records_dropped"

    # Outbox
    OUTBOX_QUEUED = "outbox_queued"
    OUTBOX_FLUSHED = "outbox_flushed"


class SyncSeverity(str, Enum):
    """Severity level for sync events."""
    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"


class SyncEvent(BaseModel):
    """A single sync event."""

    event_id: UUID = Field(
        default_factory=uuid4,
        description="Unique event identifier"
    )
    timestamp: datetime = Field(
        default_factory=datetime.utcnow,
        description="When the event occurred (UTC)"
    )

    event_type: SyncEventType
    severity: SyncSeverity = SyncSeverity.INFO

    # What record is this about? entity_id is the record's remote_id
    entity_type: Optional[str] = Field(
        default=None,
        description="'transaction', 'category', 'paymentMethod' or None"
    )
    entity_id: Optional[str] = None

    description: str = Field(
        ...,
        max_length=500,
    )
    details: dict[str, Any] = Field(default_factory=dict)
    error_message: Optional[str] = None

    def to_log_dict(self) -> dict:
        """Convert to a dictionary suitable for structured logging."""
        return {
            "event_id": str(self.event_id),
            "timestamp": self.timestamp.isoformat(),
            "event_type": self.event_type.value,
            "severity": self.severity.value,
            "entity_type": self.entity_type,
            "entity_id": self.entity_id,
            "description": self.description,
            "details": self.details,
            "error_message": self.error_message,
        }


class SyncEventBuilder:
    """
    Helper class to build sync events with common patterns.

    Usage:
        event = SyncEventBuilder.local_saved("category", remote_id, "Food")
        event = SyncEventBuilder.post_failed("transaction", remote_id, -1, "timeout")
    """

    @staticmethod
    def local_saved(entity_type: str, entity_id: str, label: str) -> SyncEvent:
        return SyncEvent(
            event_type=SyncEventType.LOCAL_SAVED,
            entity_type=entity_type,
            entity_id=entity_id,
            description=f"Saved {entity_type} locally: {label}",
            details={"label": label},
        )

    @staticmethod
    def local_deleted(
        entity_type: str,
        entity_id: str,
        label: str,
        detached: int = 0,
    ) -> SyncEvent:
        return SyncEvent(
            event_type=SyncEventType.LOCAL_DELETED,
            entity_type=entity_type,
            entity_id=entity_id,
            description=f"Deleted {entity_type} locally: {label}",
            details={"label": label, "detached_transactions": detached},
        )

    @staticmethod
    def defaults_seeded(categories: int, payment_methods: int) -> SyncEvent:
        return SyncEvent(
            event_type=SyncEventType.DEFAULTS_SEEDED,
            description=(
                f"Seeded {categories} categories and "
                f"{payment_methods} payment methods"
            ),
            details={
                "categories": categories,
                "payment_methods": payment_methods,
            },
        )

    @staticmethod
    def sort_renumbered(entity_type: str, count: int) -> SyncEvent:
        return SyncEvent(
            event_type=SyncEventType.SORT_RENUMBERED,
            entity_type=entity_type,
            description=f"Renumbered {count} {entity_type} sort indices",
            details={"count": count},
        )

    @staticmethod
    def posted(entity_type: str, entity_id: str, status: int) -> SyncEvent:
        return SyncEvent(
            event_type=SyncEventType.REMOTE_POSTED,
            entity_type=entity_type,
            entity_id=entity_id,
            description=f"Posted {entity_type} to sheet (HTTP {status})",
            details={"status": status},
        )

    @staticmethod
    def post_failed(
        entity_type: str,
        entity_id: str,
        status: int,
        body: str,
    ) -> SyncEvent:
        return SyncEvent(
            event_type=SyncEventType.REMOTE_POST_FAILED,
            severity=SyncSeverity.WARNING,
            entity_type=entity_type,
            entity_id=entity_id,
            description=f"Could not post {entity_type} to sheet (status {status})",
            details={"status": status},
            error_message=body[:500],
        )

    @staticmethod
    def fetched(action: str, count: int, dropped: int) -> SyncEvent:
        return SyncEvent(
            event_type=SyncEventType.REMOTE_FETCHED,
            description=f"{action} returned {count} records",
            details={"action": action, "count": count, "dropped": dropped},
        )

    @staticmethod
    def fetch_failed(action: str, kind: str, error_message: str) -> SyncEvent:
        return SyncEvent(
            event_type=SyncEventType.REMOTE_FETCH_FAILED,
            severity=SyncSeverity.ERROR,
            description=f"{action} failed: {kind}",
            details={"action": action, "kind": kind},
            error_message=error_message,
        )

    @staticmethod
    def records_dropped(action: str, dropped: int) -> SyncEvent:
        return SyncEvent(
            event_type=SyncEventType.RECORDS_DROPPED,
            severity=SyncSeverity.WARNING,
            description=f"{action}: dropped {dropped} rows without identity fields",
            details={"action": action, "dropped": dropped},
        )

    @staticmethod
    def outbox_queued(entity_type: str, entity_id: str, pending: int) -> SyncEvent:
        return SyncEvent(
            event_type=SyncEventType.OUTBOX_QUEUED,
            severity=SyncSeverity.WARNING,
            entity_type=entity_type,
            entity_id=entity_id,
            description=f"Queued {entity_type} for a later sync ({pending} pending)",
            details={"pending": pending},
        )

    @staticmethod
    def outbox_flushed(sent: int, failed: int) -> SyncEvent:
        return SyncEvent(
            event_type=SyncEventType.OUTBOX_FLUSHED,
            severity=SyncSeverity.WARNING if failed else SyncSeverity.INFO,
            description=f"Outbox flush: {sent} sent, {failed} still pending",
            details={"sent": sent, "failed": failed},
        )
