"""Order persistence"""

from datetime import datetime
from typing import Any, Dict, List, Optional

from sqlalchemy import select, update, or_
from sqlalchemy.ext.asyncio import async_sessionmaker

from canteen_api.models.order import Order, OrderStatus


class OrderStore:
    """
    Passive persistence for orders.

    Every call runs in its own session so callers always observe committed
    state. Conditional writes go through atomic_update, which evaluates its
    precondition inside the UPDATE statement itself.
    """

    def __init__(self, session_factory: async_sessionmaker):
        self._session_factory = session_factory

    async def save(self, order: Order) -> Order:
        async with self._session_factory() as session:
            session.add(order)
            await session.commit()
            await session.refresh(order)
            return order

    async def find_by_order_id(self, order_id: str) -> Optional[Order]:
        async with self._session_factory() as session:
            return await session.get(Order, order_id)

    async def find_by_order_id_prefix(self, prefix: str, limit: int = 2) -> List[Order]:
        """Orders whose id starts with prefix, used for truncated references"""
        async with self._session_factory() as session:
            result = await session.execute(
                select(Order)
                .where(Order.order_id.startswith(prefix, autoescape=True))
                .limit(limit)
            )
            return list(result.scalars().all())

    async def find_by_provider_payment_ref(self, ref: str) -> Optional[Order]:
        """Find an order by the provider-side intent id or payment id"""
        async with self._session_factory() as session:
            result = await session.execute(
                select(Order).where(
                    or_(Order.provider_intent_id == ref, Order.provider_payment_id == ref)
                )
            )
            return result.scalars().first()

    async def list_all(self, newest_first: bool = True) -> List[Order]:
        order_by = Order.created_at.desc() if newest_first else Order.created_at.asc()
        async with self._session_factory() as session:
            result = await session.execute(select(Order).order_by(order_by))
            return list(result.scalars().all())

    async def atomic_update(
        self,
        order_id: str,
        precondition: Dict[str, Any],
        patch: Dict[str, Any],
    ) -> bool:
        """
        Apply patch to the order only if every precondition column still holds
        its expected value. Returns True when the row was updated.
        """
        conditions = [Order.order_id == order_id]
        for column, expected in precondition.items():
            attr = getattr(Order, column)
            conditions.append(attr.is_(None) if expected is None else attr == expected)

        async with self._session_factory() as session:
            async with session.begin():
                result = await session.execute(
                    update(Order)
                    .where(*conditions)
                    .values(**patch)
                    .execution_options(synchronize_session=False)
                )
        return (result.rowcount or 0) > 0

    async def expire_overdue(self, now: datetime) -> int:
        """Bulk-expire pending orders past their deadline"""
        async with self._session_factory() as session:
            async with session.begin():
                result = await session.execute(
                    update(Order)
                    .where(
                        Order.status == OrderStatus.PENDING_PAYMENT.value,
                        Order.expires_at < now,
                    )
                    .values(status=OrderStatus.EXPIRED.value, updated_at=now)
                    .execution_options(synchronize_session=False)
                )
        return result.rowcount or 0
