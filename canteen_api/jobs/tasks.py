"""Background job tasks"""

import asyncio
from typing import Any, Dict

import structlog

from canteen_api.errors import UpstreamUnavailable
from canteen_api.jobs.celery_app import celery_app
from canteen_api.notifications import Notifier

logger = structlog.get_logger()


def run_async(coro):
    """Helper to run async functions in sync context"""
    return asyncio.run(coro)


def format_paid_alert(event: Dict[str, Any]) -> str:
    message = f"New paid order! Pickup code {event['short_code']}. "
    message += f"Total: {event['currency']} {event['total_amount']:.2f}. "
    message += f"Order #{event['order_id'][:8]}."
    return message


async def dispatch_order_paid(event: Dict[str, Any], notifier: Notifier) -> bool:
    """Alert the canteen about a paid order. Best effort."""
    try:
        await notifier.send_canteen_alert(event["canteen"], format_paid_alert(event))
    except UpstreamUnavailable as e:
        logger.error(
            "Failed to alert canteen of paid order",
            order_id=event.get("order_id"),
            canteen=event.get("canteen"),
            error=e.message,
        )
        return False
    return True


async def expire_overdue_orders() -> int:
    from canteen_api.config import get_settings
    from canteen_api.database import create_engine, create_session_factory
    from canteen_api.repositories import OrderStore
    from canteen_api.services.lifecycle import OrderLifecycleManager

    settings = get_settings()
    engine = create_engine(settings.database_url)
    try:
        lifecycle = OrderLifecycleManager(OrderStore(create_session_factory(engine)))
        return await lifecycle.sweep_expired()
    finally:
        await engine.dispose()


@celery_app.task(name="notify_order_paid")
def notify_order_paid(event: Dict[str, Any]):
    """Send the canteen alert for a paid order"""
    from canteen_api.config import get_settings
    from canteen_api.container import build_notifier

    logger.info("Notifying canteen of paid order", order_id=event.get("order_id"))
    run_async(dispatch_order_paid(event, build_notifier(get_settings())))


@celery_app.task(name="expire_stale_orders")
def expire_stale_orders():
    """Expire pending orders past their payment deadline"""
    count = run_async(expire_overdue_orders())
    logger.info("Expiry sweep finished", expired_count=count)
