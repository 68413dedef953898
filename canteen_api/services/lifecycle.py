"""Order lifecycle state machine"""

from datetime import datetime, timedelta
from typing import Any, Callable, List, Optional

import structlog

from canteen_api.errors import (
    ConflictError,
    NotFoundError,
    OrderExpiredError,
    UpstreamUnavailable,
    ValidationError,
)
from canteen_api.models.order import Order, OrderStatus
from canteen_api.repositories.orders import OrderStore
from canteen_api.services.events import EventPublisher, OrderEvent
from canteen_api.services.gateway import PaymentGateway, PaymentIntent
from canteen_api.services.identifiers import generate_short_code, new_order_id
from canteen_api.services.items import normalize_items, to_minor_units
from canteen_api.timeutils import utcnow

logger = structlog.get_logger()

PENDING = OrderStatus.PENDING_PAYMENT.value
PAID = OrderStatus.PAID.value
EXPIRED = OrderStatus.EXPIRED.value

MANUAL_PROVIDER = "manual"
MANUAL_METHOD = "MANUAL_CONFIRM"


class OrderLifecycleManager:
    """
    Sole writer of order status, paid_at and payment info.

    PENDING_PAYMENT -> PAID and PENDING_PAYMENT -> EXPIRED are the only
    transitions. Every write is a compare-and-set against the stored row, so
    decisions are never made on a stale copy.

    An order whose deadline has passed never becomes PAID: a late payment is
    recorded on the expired order for refund and rejected with
    OrderExpiredError.
    """

    # Compare-and-set retries; a lost race always lands in a terminal state
    MAX_ATTEMPTS = 3

    def __init__(
        self,
        store: OrderStore,
        gateway: Optional[PaymentGateway] = None,
        events: Optional[EventPublisher] = None,
        payment_window: timedelta = timedelta(minutes=5),
        currency: str = "INR",
        clock: Callable[[], datetime] = utcnow,
    ):
        self._store = store
        self._gateway = gateway
        self._events = events
        self.payment_window = payment_window
        self.currency = currency
        self._clock = clock

    async def create(self, canteen: Any, items: Any, total_amount: Any) -> Order:
        """Create a new order awaiting payment"""
        if not isinstance(canteen, str) or not canteen.strip() or total_amount is None:
            raise ValidationError("canteen and totalAmount required")

        total_minor = to_minor_units(total_amount)
        line_items = normalize_items(items)

        now = self._clock()
        order = Order(
            order_id=new_order_id(),
            short_code=generate_short_code(),
            canteen=canteen.strip(),
            items_json=[item.model_dump() for item in line_items],
            total_amount_minor=total_minor,
            currency=self.currency,
            status=PENDING,
            created_at=now,
            expires_at=now + self.payment_window,
            updated_at=now,
        )
        order = await self._store.save(order)

        logger.info(
            "Order created",
            order_id=order.order_id,
            canteen=order.canteen,
            total_amount_minor=total_minor,
            item_count=len(line_items),
        )
        return order

    async def get_order(self, order_id: str) -> Order:
        order = await self._store.find_by_order_id(order_id)
        if order is None:
            raise NotFoundError("Order not found", order_id=order_id)
        return await self.check_expiry(order)

    async def list_orders(self) -> List[Order]:
        """All orders, newest first"""
        orders = await self._store.list_all(newest_first=True)
        return [await self.check_expiry(order) for order in orders]

    async def check_expiry(self, order: Order) -> Order:
        """Lazily move an overdue pending order to EXPIRED"""
        now = self._clock()
        if order.status != PENDING or now <= order.expires_at:
            return order

        expired = await self._store.atomic_update(
            order.order_id,
            {"status": PENDING},
            {"status": EXPIRED, "updated_at": now},
        )
        if expired:
            logger.info("Order expired", order_id=order.order_id)

        return await self._store.find_by_order_id(order.order_id) or order

    async def sweep_expired(self) -> int:
        """Expire every overdue pending order"""
        count = await self._store.expire_overdue(self._clock())
        if count:
            logger.info("Expired overdue orders", count=count)
        return count

    async def mark_paid(
        self,
        order_id: str,
        provider_payment_id: str,
        provider_order_id: Optional[str] = None,
        provider: Optional[str] = None,
        method: Optional[str] = None,
    ) -> Order:
        """
        Apply a payment to an order.

        Replaying the same provider payment id is a no-op. A different payment
        id against a PAID order raises ConflictError.
        """
        if not provider_payment_id:
            raise ValidationError("provider payment id required", order_id=order_id)
        provider = provider or (self._gateway.name if self._gateway else None)

        for _ in range(self.MAX_ATTEMPTS):
            order = await self._store.find_by_order_id(order_id)
            if order is None:
                raise NotFoundError("Order not found", order_id=order_id)

            if order.status == PAID:
                if order.provider_payment_id == provider_payment_id:
                    logger.info(
                        "Payment already applied",
                        order_id=order_id,
                        provider_payment_id=provider_payment_id,
                    )
                    return order
                raise ConflictError(
                    "Order already paid with a different payment",
                    order_id=order_id,
                    provider_payment_id=provider_payment_id,
                )

            now = self._clock()
            if order.status == PENDING and now > order.expires_at:
                await self.check_expiry(order)
                continue

            if order.status == EXPIRED:
                await self._record_late_payment(
                    order, provider_payment_id, provider_order_id, provider, method, now
                )
                raise OrderExpiredError(
                    "Order expired before payment",
                    order_id=order_id,
                    provider_payment_id=provider_payment_id,
                )

            patch = {
                "status": PAID,
                "paid_at": now,
                "payment_provider": provider,
                "payment_method": method,
                "provider_payment_id": provider_payment_id,
                "updated_at": now,
            }
            if provider_order_id:
                patch["provider_intent_id"] = provider_order_id

            applied = await self._store.atomic_update(
                order_id,
                {"status": PENDING, "provider_payment_id": None},
                patch,
            )
            if applied:
                paid = await self._store.find_by_order_id(order_id)
                logger.info(
                    "Order paid",
                    order_id=order_id,
                    provider=provider,
                    provider_payment_id=provider_payment_id,
                )
                self._emit(OrderEvent.paid(paid))
                return paid

            logger.info("Order changed during payment, re-reading", order_id=order_id)

        raise ConflictError("Order changed concurrently", order_id=order_id)

    async def confirm_manually(self, order_id: str) -> Order:
        """Admin confirmation at the counter; repeat confirms are no-ops"""
        order = await self.get_order(order_id)
        if order.status == PAID:
            return order
        if order.status == EXPIRED:
            raise OrderExpiredError("Order expired", order_id=order_id)
        return await self.mark_paid(
            order_id,
            provider_payment_id=f"{MANUAL_PROVIDER}:{order_id}",
            provider=MANUAL_PROVIDER,
            method=MANUAL_METHOD,
        )

    async def create_payment_intent(self, order_id: str) -> PaymentIntent:
        """Create a provider payment intent and record its id on the order"""
        if self._gateway is None:
            raise UpstreamUnavailable("Payment gateway is not configured", order_id=order_id)

        order = await self.get_order(order_id)
        self._require_pending(order)

        intent = await self._gateway.create_intent(
            amount_minor=order.total_amount_minor,
            currency=order.currency,
            reference=order.order_id,
            metadata={
                "orderId": order.order_id,
                "code": order.short_code,
                "canteen": order.canteen,
            },
        )

        recorded = await self._store.atomic_update(
            order_id,
            {"status": PENDING},
            {
                "payment_provider": intent.provider,
                "provider_intent_id": intent.intent_id,
                "updated_at": self._clock(),
            },
        )
        if not recorded:
            self._require_pending(await self.get_order(order_id))

        logger.info(
            "Payment intent recorded",
            order_id=order_id,
            provider=intent.provider,
            intent_id=intent.intent_id,
        )
        return intent

    def _require_pending(self, order: Order) -> None:
        if order.status == EXPIRED:
            raise OrderExpiredError("Order expired", order_id=order.order_id)
        if order.status == PAID:
            raise ConflictError("Order already paid", order_id=order.order_id)

    async def _record_late_payment(
        self,
        order: Order,
        provider_payment_id: str,
        provider_order_id: Optional[str],
        provider: Optional[str],
        method: Optional[str],
        now: datetime,
    ) -> None:
        if order.provider_payment_id is None:
            patch = {
                "payment_provider": provider,
                "payment_method": method,
                "provider_payment_id": provider_payment_id,
                "updated_at": now,
            }
            if provider_order_id:
                patch["provider_intent_id"] = provider_order_id
            await self._store.atomic_update(
                order.order_id,
                {"status": EXPIRED, "provider_payment_id": None},
                patch,
            )

        logger.warning(
            "Payment received for expired order",
            order_id=order.order_id,
            provider_payment_id=provider_payment_id,
            recorded_payment_id=order.provider_payment_id or provider_payment_id,
        )

    def _emit(self, event: OrderEvent) -> None:
        if self._events is None:
            return
        try:
            self._events.publish(event)
        except Exception as e:
            logger.error(
                "Failed to publish order event",
                event_name=event.name,
                order_id=event.order_id,
                error=str(e),
            )
