"""
Outbox of Failed Remote Writes

The app saves locally first and mirrors to the sheet afterwards. When
the mirror POST fails, the local record stays. Without this outbox the
two sides would silently diverge for good.

The outbox only remembers. It never retries on its own; flush() is an
explicit caller action (a "retry sync" button, app start, etc.).

Entries are keyed by (kind, remote_id). A newer write for the same
record replaces the older one and moves to the back of the queue.
"""

from datetime import datetime
from typing import Any, Optional, Protocol

import structlog
from pydantic import BaseModel, Field

from budget_sync.services.sync.client import SyncResponse


logger = structlog.get_logger(__name__)


class PayloadSender(Protocol):
    async def post_payload(self, payload: dict[str, Any]) -> SyncResponse:
        ...


class PendingWrite(BaseModel):
    """A POST body that has not reached the sheet yet."""

    kind: str = Field(..., description="'transaction', 'category' or 'paymentMethod'")
    remote_id: str
    payload: dict[str, Any]
    queued_at: datetime = Field(default_factory=datetime.utcnow)
    attempts: int = Field(default=1, ge=1)
    last_status: int = -1
    last_error: str = ""

    @property
    def key(self) -> tuple[str, str]:
        return self.kind, self.remote_id


class FlushReport(BaseModel):
    """What one flush achieved."""

    sent: int = 0
    failed: int = 0

    @property
    def remaining(self) -> int:
        return self.failed


class Outbox:
    """In-memory, insertion-ordered queue of failed writes."""

    def __init__(self):
        self._pending: dict[tuple[str, str], PendingWrite] = {}

    def __len__(self) -> int:
        return len(self._pending)

    def __contains__(self, key: tuple[str, str]) -> bool:
        return key in self._pending

    def pending(self) -> list[PendingWrite]:
        """Pending writes, oldest first."""
        return list(self._pending.values())

    def get(self, kind: str, remote_id: str) -> Optional[PendingWrite]:
        return self._pending.get((kind, remote_id))

    def record(self, payload: dict[str, Any], response: SyncResponse) -> PendingWrite:
        """Remember a write whose response was not 2xx."""
        item = PendingWrite(
            kind=str(payload.get("type", "")),
            remote_id=str(payload.get("remoteID", "")),
            payload=dict(payload),
            last_status=response.status,
            last_error=response.body[:500],
        )
        previous = self._pending.pop(item.key, None)
        if previous is not None:
            item.attempts = previous.attempts + 1
        self._pending[item.key] = item
        logger.warning(
            "outbox_recorded",
            kind=item.kind,
            remote_id=item.remote_id,
            status=response.status,
            pending=len(self._pending),
        )
        return item

    def discard(self, kind: str, remote_id: str) -> bool:
        """Forget a pending write, e.g. after the record was deleted locally."""
        return self._pending.pop((kind, remote_id), None) is not None

    async def flush(self, sender: PayloadSender) -> FlushReport:
        """
        Replay every pending write once, oldest first.

        Successes are removed; failures stay with attempts incremented.
        """
        report = FlushReport()
        for key, item in list(self._pending.items()):
            response = await sender.post_payload(item.payload)
            if response.ok:
                # Only drop it if nothing newer replaced it meanwhile
                if self._pending.get(key) is item:
                    del self._pending[key]
                report.sent += 1
            else:
                item.attempts += 1
                item.last_status = response.status
                item.last_error = response.body[:500]
                report.failed += 1

        logger.info("outbox_flushed", sent=report.sent, failed=report.failed)
        return report
