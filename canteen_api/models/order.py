"""Order model"""

import enum
from sqlalchemy import Column, String, DateTime, JSON, Integer, Index

from canteen_api.database import Base
from canteen_api.timeutils import utcnow


class OrderStatus(str, enum.Enum):
    """Order lifecycle states; PAID and EXPIRED are terminal"""
    PENDING_PAYMENT = "PENDING_PAYMENT"
    PAID = "PAID"
    EXPIRED = "EXPIRED"


class Order(Base):
    """Canteen order tracked through payment"""
    __tablename__ = "orders"

    order_id = Column(String(36), primary_key=True)
    short_code = Column(String(16), nullable=False)
    canteen = Column(String(255), nullable=False)

    # [{"id": "1", "name": "Roti", "quantity": 2, "unit_price": 10}, ...]
    items_json = Column(JSON, nullable=False, default=list)

    # Pricing, in minor currency units (paise)
    total_amount_minor = Column(Integer, nullable=False)
    currency = Column(String(3), nullable=False, default="INR")

    # Status
    status = Column(String(32), nullable=False, default=OrderStatus.PENDING_PAYMENT.value)

    # Timing
    created_at = Column(DateTime, nullable=False, default=utcnow)
    expires_at = Column(DateTime, nullable=False)
    paid_at = Column(DateTime)

    # Payment info
    payment_provider = Column(String(32))
    payment_method = Column(String(32))
    provider_intent_id = Column(String(64), index=True)
    provider_payment_id = Column(String(64))

    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)

    __table_args__ = (
        Index("ix_orders_created_at", "created_at"),
        Index("ix_orders_status_expires_at", "status", "expires_at"),
    )

    @property
    def total_amount(self) -> float:
        """Total in major currency units"""
        return self.total_amount_minor / 100

    @property
    def payment_info(self) -> dict:
        return {
            "provider": self.payment_provider,
            "method": self.payment_method,
            "intent_id": self.provider_intent_id,
            "payment_id": self.provider_payment_id,
        }

    def __repr__(self) -> str:
        return f"<Order {self.order_id} {self.status}>"
