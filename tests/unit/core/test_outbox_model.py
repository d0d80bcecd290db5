"""Unit tests for the OutboxEvent model."""

import uuid

import pytest

from modules.core.models import EventStatus, OutboxEvent
from modules.orders.events import OrderStatusChanged

pytestmark = pytest.mark.unit


def _record(**kwargs) -> OutboxEvent:
    event = OrderStatusChanged(
        aggregate_id=kwargs.pop("aggregate_id", uuid.uuid4()),
        old_status="pending",
        new_status="accepted",
    )
    return OutboxEvent.record(event)


class TestRecord:
    def test_record_copies_event(self):
        aggregate_id = uuid.uuid4()
        outbox = _record(aggregate_id=aggregate_id)

        assert outbox.event_type == "OrderStatusChanged"
        assert outbox.topic == "orders"
        assert outbox.aggregate_id == str(aggregate_id)
        assert outbox.status == EventStatus.PENDING
        assert outbox.retry_count == 0
        assert outbox.payload["new_status"] == "accepted"
        assert outbox.payload["aggregate_id"] == str(aggregate_id)

    def test_channel_is_topic_and_aggregate(self):
        aggregate_id = uuid.uuid4()
        outbox = _record(aggregate_id=aggregate_id)
        assert outbox.channel == f"orders:{aggregate_id}"

    def test_as_message(self):
        outbox = _record()
        message = outbox.as_message()
        assert message["channel"] == outbox.channel
        assert message["event"] == "OrderStatusChanged"
        assert message["payload"] == outbox.payload


class TestStatusChanges:
    def test_mark_as_published(self):
        outbox = _record()
        outbox.mark_as_published()
        outbox.refresh_from_db()
        assert outbox.status == EventStatus.PUBLISHED
        assert outbox.processed_at is not None
        assert outbox.error_message is None

    def test_mark_as_failed_counts_retries(self):
        outbox = _record()
        outbox.mark_as_failed("timeout")
        outbox.mark_as_failed("timeout again")
        outbox.refresh_from_db()
        assert outbox.status == EventStatus.FAILED
        assert outbox.error_message == "timeout again"
        assert outbox.retry_count == 2

    def test_publishable_excludes_exhausted_and_published(self):
        pending = _record()
        retryable = _record()
        retryable.mark_as_failed("boom")
        exhausted = _record()
        for _ in range(3):
            exhausted.mark_as_failed("boom")
        done = _record()
        done.mark_as_published()

        ids = set(OutboxEvent.objects.publishable(3).values_list("id", flat=True))

        assert ids == {pending.id, retryable.id}

    def test_str(self):
        outbox = _record()
        assert str(outbox).startswith("OrderStatusChanged [PENDING]")
