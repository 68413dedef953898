#!/usr/bin/env python3
"""
Seed script to create demo canteen orders
"""

import asyncio

DEMO_ORDERS = [
    (
        "AZAD Hall",
        [
            {"id": "roti", "name": "Roti", "qty": 4, "price": 10},
            {"id": "dal", "name": "Dal Makhani", "qty": 1, "price": 60},
        ],
        100,
    ),
    ("Nehru Hall", {"Maggi": 2, "Cold Coffee": 1, "Samosa": 0}, 90),
    ("RK Hall", [{"id": "thali", "name": "Veg Thali", "qty": 1, "price": 120}], 120),
]


async def seed_demo_data():
    """Seed demo orders for development; the first one is confirmed as paid"""
    from canteen_api.config import get_settings
    from canteen_api.container import build_services
    from canteen_api.database import create_tables
    from canteen_api.log_config import configure_logging
    from canteen_api.services.events import EventPublisher

    class NoEvents(EventPublisher):
        def publish(self, event):
            pass

    settings = get_settings()
    configure_logging(settings.log_level, "console")

    services = build_services(settings, events=NoEvents())
    await create_tables(services.engine)

    try:
        orders = []
        for canteen, items, total in DEMO_ORDERS:
            orders.append(await services.lifecycle.create(canteen, items, total))

        paid = await services.lifecycle.confirm_manually(orders[0].order_id)
    finally:
        await services.close()

    print("\nDemo data created successfully!\n")
    for order in orders:
        status = paid.status if order.order_id == paid.order_id else order.status
        print(f"  {order.canteen:<12} code {order.short_code}  {status:<16} {order.order_id}")
    print(f"\nPending orders expire after {settings.order_payment_window_minutes} minutes.")


if __name__ == "__main__":
    asyncio.run(seed_demo_data())
