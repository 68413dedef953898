"""Tests for the order lifecycle state machine"""

import asyncio
from datetime import timedelta

import pytest

from canteen_api.errors import (
    ConflictError,
    NotFoundError,
    OrderExpiredError,
    UpstreamUnavailable,
    ValidationError,
)
from canteen_api.models.order import OrderStatus
from canteen_api.services.events import ORDER_PAID


@pytest.mark.asyncio
async def test_create_order_starts_pending(lifecycle, clock):
    order = await lifecycle.create(
        "AZAD Hall",
        [{"id": "1", "name": "Roti", "qty": 2, "price": 10}],
        20,
    )

    assert order.status == OrderStatus.PENDING_PAYMENT.value
    assert order.created_at == clock.now
    assert order.expires_at - order.created_at == timedelta(minutes=5)
    assert order.total_amount_minor == 2000
    assert order.total_amount == 20
    assert order.paid_at is None
    assert order.items_json == [{"id": "1", "name": "Roti", "quantity": 2, "unit_price": 10}]
    assert len(order.short_code) == 6


@pytest.mark.asyncio
async def test_create_accepts_legacy_quantity_map(lifecycle):
    order = await lifecycle.create("AZAD Hall", {"roti": 2, "paneer_butter_masala": 0}, 20)

    assert order.items_json == [{"id": "roti", "name": "roti", "quantity": 2, "unit_price": None}]


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "canteen, items, total",
    [
        (None, [], 20),
        ("", [], 20),
        ("AZAD Hall", [], None),
        ("AZAD Hall", [{"id": "1", "name": "Roti", "qty": -1, "price": 10}], 20),
    ],
)
async def test_create_rejects_invalid_input(lifecycle, store, canteen, items, total):
    with pytest.raises(ValidationError):
        await lifecycle.create(canteen, items, total)

    assert await store.list_all() == []


@pytest.mark.asyncio
async def test_get_unknown_order(lifecycle):
    with pytest.raises(NotFoundError):
        await lifecycle.get_order("does-not-exist")


@pytest.mark.asyncio
async def test_order_still_pending_at_deadline(lifecycle, pending_order, clock):
    clock.advance(minutes=5)

    order = await lifecycle.get_order(pending_order.order_id)

    assert order.status == OrderStatus.PENDING_PAYMENT.value


@pytest.mark.asyncio
async def test_expiry_is_lazy_and_idempotent(lifecycle, pending_order, clock):
    clock.advance(minutes=5, seconds=1)

    for _ in range(3):
        order = await lifecycle.get_order(pending_order.order_id)
        assert order.status == OrderStatus.EXPIRED.value
        assert order.paid_at is None


@pytest.mark.asyncio
async def test_sweep_expires_only_overdue_orders(lifecycle, store, pending_order, clock):
    clock.advance(minutes=3)
    fresh = await lifecycle.create("AZAD Hall", [], 15)
    clock.advance(minutes=3)

    assert await lifecycle.sweep_expired() == 1
    assert await lifecycle.sweep_expired() == 0

    assert (await store.find_by_order_id(pending_order.order_id)).status == OrderStatus.EXPIRED.value
    assert (await store.find_by_order_id(fresh.order_id)).status == OrderStatus.PENDING_PAYMENT.value


@pytest.mark.asyncio
async def test_list_orders_newest_first(lifecycle, clock):
    first = await lifecycle.create("AZAD Hall", [], 10)
    clock.advance(seconds=30)
    second = await lifecycle.create("Nehru Hall", [], 12)

    orders = await lifecycle.list_orders()

    assert [order.order_id for order in orders] == [second.order_id, first.order_id]


@pytest.mark.asyncio
async def test_mark_paid_stamps_payment(lifecycle, pending_order, publisher, clock):
    clock.advance(minutes=2)

    order = await lifecycle.mark_paid(
        pending_order.order_id,
        "pay_001",
        provider_order_id="order_001",
        method="upi",
    )

    assert order.status == OrderStatus.PAID.value
    assert order.paid_at == clock.now
    assert order.payment_info == {
        "provider": "razorpay",
        "method": "upi",
        "intent_id": "order_001",
        "payment_id": "pay_001",
    }
    assert [event.name for event in publisher.events] == [ORDER_PAID]
    assert publisher.events[0].order_id == pending_order.order_id
    assert publisher.events[0].canteen == "AZAD Hall"


@pytest.mark.asyncio
async def test_mark_paid_replay_is_a_no_op(lifecycle, pending_order, publisher, clock):
    first = await lifecycle.mark_paid(pending_order.order_id, "pay_001")
    clock.advance(seconds=10)
    second = await lifecycle.mark_paid(pending_order.order_id, "pay_001")

    assert second.status == OrderStatus.PAID.value
    assert second.paid_at == first.paid_at
    assert len(publisher.events) == 1


@pytest.mark.asyncio
async def test_mark_paid_with_different_payment_conflicts(lifecycle, store, pending_order, publisher):
    await lifecycle.mark_paid(pending_order.order_id, "pay_001")

    with pytest.raises(ConflictError):
        await lifecycle.mark_paid(pending_order.order_id, "pay_002")

    order = await store.find_by_order_id(pending_order.order_id)
    assert order.provider_payment_id == "pay_001"
    assert len(publisher.events) == 1


@pytest.mark.asyncio
async def test_concurrent_payments_apply_once(lifecycle, store, pending_order, publisher):
    results = await asyncio.gather(
        lifecycle.mark_paid(pending_order.order_id, "pay_001"),
        lifecycle.mark_paid(pending_order.order_id, "pay_002"),
        return_exceptions=True,
    )

    successes = [result for result in results if not isinstance(result, Exception)]
    failures = [result for result in results if isinstance(result, Exception)]
    assert len(successes) == 1
    assert len(failures) == 1
    assert isinstance(failures[0], ConflictError)

    order = await store.find_by_order_id(pending_order.order_id)
    assert order.provider_payment_id == successes[0].provider_payment_id
    assert len(publisher.events) == 1


@pytest.mark.asyncio
async def test_late_payment_on_expired_order_is_recorded_not_applied(
    lifecycle, store, pending_order, publisher, clock
):
    clock.advance(minutes=6)

    with pytest.raises(OrderExpiredError):
        await lifecycle.mark_paid(pending_order.order_id, "pay_late")

    order = await store.find_by_order_id(pending_order.order_id)
    assert order.status == OrderStatus.EXPIRED.value
    assert order.paid_at is None
    assert order.provider_payment_id == "pay_late"
    assert publisher.events == []

    with pytest.raises(OrderExpiredError):
        await lifecycle.mark_paid(pending_order.order_id, "pay_other")

    order = await store.find_by_order_id(pending_order.order_id)
    assert order.provider_payment_id == "pay_late"


@pytest.mark.asyncio
async def test_mark_paid_unknown_order(lifecycle):
    with pytest.raises(NotFoundError):
        await lifecycle.mark_paid("does-not-exist", "pay_001")


@pytest.mark.asyncio
async def test_event_publish_failure_does_not_undo_payment(lifecycle, store, pending_order, publisher):
    def explode(event):
        raise RuntimeError("broker down")

    publisher.publish = explode

    order = await lifecycle.mark_paid(pending_order.order_id, "pay_001")

    assert order.status == OrderStatus.PAID.value
    assert (await store.find_by_order_id(pending_order.order_id)).status == OrderStatus.PAID.value


@pytest.mark.asyncio
async def test_manual_confirm_is_idempotent(lifecycle, pending_order, publisher):
    order = await lifecycle.confirm_manually(pending_order.order_id)
    again = await lifecycle.confirm_manually(pending_order.order_id)

    assert order.status == OrderStatus.PAID.value
    assert order.payment_method == "MANUAL_CONFIRM"
    assert order.payment_provider == "manual"
    assert again.paid_at == order.paid_at
    assert len(publisher.events) == 1


@pytest.mark.asyncio
async def test_manual_confirm_of_expired_order(lifecycle, pending_order, clock):
    clock.advance(minutes=10)

    with pytest.raises(OrderExpiredError):
        await lifecycle.confirm_manually(pending_order.order_id)


@pytest.mark.asyncio
async def test_payment_intent_recorded_on_order(lifecycle, store, pending_order, gateway):
    intent = await lifecycle.create_payment_intent(pending_order.order_id)

    assert gateway.calls == [
        {
            "amount_minor": 2000,
            "currency": "INR",
            "reference": pending_order.order_id,
            "metadata": {
                "orderId": pending_order.order_id,
                "code": pending_order.short_code,
                "canteen": "AZAD Hall",
            },
        }
    ]

    order = await store.find_by_order_id(pending_order.order_id)
    assert order.provider_intent_id == intent.intent_id
    assert order.payment_provider == "razorpay"
    assert order.status == OrderStatus.PENDING_PAYMENT.value


@pytest.mark.asyncio
async def test_payment_intent_for_expired_order(lifecycle, pending_order, gateway, clock):
    clock.advance(minutes=6)

    with pytest.raises(OrderExpiredError):
        await lifecycle.create_payment_intent(pending_order.order_id)

    assert gateway.calls == []


@pytest.mark.asyncio
async def test_payment_intent_for_paid_order(lifecycle, pending_order, gateway):
    await lifecycle.mark_paid(pending_order.order_id, "pay_001")

    with pytest.raises(ConflictError):
        await lifecycle.create_payment_intent(pending_order.order_id)

    assert gateway.calls == []


@pytest.mark.asyncio
async def test_gateway_failure_leaves_order_untouched(lifecycle, store, pending_order, gateway):
    gateway.fail = True

    with pytest.raises(UpstreamUnavailable):
        await lifecycle.create_payment_intent(pending_order.order_id)

    order = await store.find_by_order_id(pending_order.order_id)
    assert order.status == OrderStatus.PENDING_PAYMENT.value
    assert order.provider_intent_id is None
