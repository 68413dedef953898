"""Order events emitted after lifecycle transitions commit"""

import asyncio
from abc import ABC, abstractmethod
from dataclasses import asdict, dataclass
from typing import Any, Dict, Optional

import structlog

logger = structlog.get_logger()

ORDER_PAID = "order.paid"

# Celery task consuming each event kind
EVENT_TASKS = {
    ORDER_PAID: "notify_order_paid",
}


@dataclass
class OrderEvent:
    name: str
    order_id: str
    short_code: str
    canteen: str
    total_amount: float
    currency: str
    paid_at: Optional[str] = None
    provider_payment_id: Optional[str] = None

    @classmethod
    def paid(cls, order) -> "OrderEvent":
        return cls(
            name=ORDER_PAID,
            order_id=order.order_id,
            short_code=order.short_code,
            canteen=order.canteen,
            total_amount=order.total_amount,
            currency=order.currency,
            paid_at=order.paid_at.isoformat() if order.paid_at else None,
            provider_payment_id=order.provider_payment_id,
        )

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


class EventPublisher(ABC):
    """Hands events to whatever consumes them; must return promptly"""

    @abstractmethod
    def publish(self, event: OrderEvent) -> None:
        pass


class CeleryEventPublisher(EventPublisher):
    """Queues a Celery task per event without blocking the event loop"""

    def __init__(self, celery_app):
        self._celery = celery_app

    def publish(self, event: OrderEvent) -> None:
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            self._send(event)
            return
        loop.run_in_executor(None, self._send, event)

    def _send(self, event: OrderEvent) -> None:
        task_name = EVENT_TASKS.get(event.name)
        if task_name is None:
            logger.warning("No task registered for event", event_name=event.name)
            return
        try:
            self._celery.send_task(task_name, kwargs={"event": event.to_dict()})
            logger.info("Queued order event", event_name=event.name, order_id=event.order_id)
        except Exception as e:
            logger.error(
                "Failed to queue order event",
                event_name=event.name,
                order_id=event.order_id,
                error=str(e),
            )
