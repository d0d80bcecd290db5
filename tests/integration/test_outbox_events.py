"""Outbox rows are written with the state change; the in-process bus only
sees events once the transaction commits."""

import pytest

from modules.core.models import EventStatus, OutboxEvent
from modules.orders.events import OrderAssigned, OrderCreated
from shared.infrastructure.bus import event_bus

pytestmark = pytest.mark.integration


class _Recorder:
    def __init__(self):
        self.events = []

    def handle(self, event):
        self.events.append(event)


@pytest.fixture()
def recorder():
    recorder = _Recorder()
    event_bus.subscribe(OrderCreated, recorder)
    event_bus.subscribe(OrderAssigned, recorder)
    yield recorder
    for handlers in event_bus._handlers.values():
        if recorder in handlers:
            handlers.remove(recorder)


def _place(client_for, customer, store, product):
    return client_for(customer).post(
        "/api/v1/orders/",
        {
            "store_id": str(store.id),
            "items": [{"product_id": str(product.id), "quantity": 1}],
        },
        format="json",
    ).json()


def test_created_order_writes_outbox_row(client_for, customer, store, product):
    order = _place(client_for, customer, store, product)

    row = OutboxEvent.objects.get(aggregate_id=order["id"])
    assert row.event_type == "OrderCreated"
    assert row.topic == "orders"
    assert row.channel == f"orders:{order['id']}"
    assert row.status == EventStatus.PENDING
    assert row.payload["order_number"] == order["order_number"]


def test_bus_publishes_after_commit(
    django_capture_on_commit_callbacks, recorder, client_for, customer, driver, store, product
):
    with django_capture_on_commit_callbacks(execute=True):
        order = _place(client_for, customer, store, product)
        client_for(driver).post(f"/api/v1/orders/{order['id']}/accept/")

    assert [type(event) for event in recorder.events] == [OrderCreated, OrderAssigned]
    assert recorder.events[1].driver_id == str(driver.pk)


def test_failed_creation_writes_nothing(client_for, customer, store, product):
    product.is_available = False
    product.save()
    _place(client_for, customer, store, product)
    assert OutboxEvent.objects.count() == 0
