"""
Tests for the outbox of failed remote writes.
"""

import asyncio

from budget_sync.services.sync import Outbox, SyncResponse


def _payload(remote_id: str, name: str = "Food") -> dict:
    return {"type": "category", "remoteID": remote_id, "name": name}


class ScriptedSender:
    """Answers post_payload with a fixed status per remoteID."""

    def __init__(self, statuses: dict[str, int]):
        self.statuses = statuses
        self.sent: list[dict] = []

    async def post_payload(self, payload: dict) -> SyncResponse:
        self.sent.append(payload)
        status = self.statuses.get(payload["remoteID"], 200)
        return SyncResponse(status=status, body="OK" if status == 200 else "fail")


class TestOutboxRecording:
    """Tests for remembering failed writes."""

    def test_record_failed_write(self):
        """A failed POST is kept with its status and error."""
        outbox = Outbox()

        item = outbox.record(_payload("c-1"), SyncResponse(status=-1, body="offline"))

        assert len(outbox) == 1
        assert ("category", "c-1") in outbox
        assert item.last_status == -1
        assert item.last_error == "offline"
        assert item.attempts == 1

    def test_newer_write_replaces_older(self):
        """Same record twice keeps only the latest payload, at the back."""
        outbox = Outbox()
        outbox.record(_payload("c-1", "Food"), SyncResponse(status=500, body="x"))
        outbox.record(_payload("c-2"), SyncResponse(status=500, body="x"))
        outbox.record(_payload("c-1", "Meals"), SyncResponse(status=500, body="x"))

        pending = outbox.pending()

        assert [p.remote_id for p in pending] == ["c-2", "c-1"]
        assert pending[1].payload["name"] == "Meals"
        assert pending[1].attempts == 2

    def test_discard(self):
        """Discarding forgets a pending write."""
        outbox = Outbox()
        outbox.record(_payload("c-1"), SyncResponse(status=500, body="x"))

        assert outbox.discard("category", "c-1") is True
        assert outbox.discard("category", "c-1") is False
        assert len(outbox) == 0


class TestOutboxFlush:
    """Tests for replaying pending writes."""

    def test_flush_sends_oldest_first_and_keeps_failures(self):
        """Successes leave the outbox, failures stay with attempts bumped."""
        outbox = Outbox()
        outbox.record(_payload("c-1"), SyncResponse(status=-1, body="offline"))
        outbox.record(_payload("c-2"), SyncResponse(status=-1, body="offline"))
        sender = ScriptedSender({"c-2": 503})

        report = asyncio.run(outbox.flush(sender))

        assert [p["remoteID"] for p in sender.sent] == ["c-1", "c-2"]
        assert report.sent == 1
        assert report.failed == 1
        assert report.remaining == 1
        remaining = outbox.get("category", "c-2")
        assert remaining.attempts == 2
        assert remaining.last_status == 503
        assert outbox.get("category", "c-1") is None

    def test_flush_empty_outbox(self):
        """Flushing nothing sends nothing."""
        sender = ScriptedSender({})

        report = asyncio.run(Outbox().flush(sender))

        assert report.sent == 0
        assert report.failed == 0
        assert sender.sent == []
