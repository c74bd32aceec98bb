"""Order model"""

import enum
from sqlalchemy import Column, String, BigInteger, ForeignKey, JSON, Index
from sqlalchemy.orm import relationship

from app.database import Base


class OrderStatus(str, enum.Enum):
    # CREATED is part of the vocabulary but placement always lands on CONFIRMED.
    CREATED = "created"
    CONFIRMED = "confirmed"
    PREPARING = "preparing"
    OUT_FOR_DELIVERY = "out_for_delivery"
    DELIVERED = "delivered"
    CANCELLED = "cancelled"


TERMINAL_ORDER_STATUSES = frozenset({OrderStatus.DELIVERED.value, OrderStatus.CANCELLED.value})


class PaymentMethod(str, enum.Enum):
    RAZORPAY = "razorpay"
    WHATSAPP = "whatsapp"


class DeliveryFeeMode(str, enum.Enum):
    PREPAID = "prepaid"
    COLLECT_AT_DROP = "collect_at_drop"
    RESTAURANT_SETTLED = "restaurant_settled"


class SettlementStatus(str, enum.Enum):
    NOT_APPLICABLE = "not_applicable"
    PENDING_COLLECTION = "pending_collection"
    COLLECTED = "collected"
    RESTAURANT_SETTLED = "restaurant_settled"


class CollectionMethod(str, enum.Enum):
    CASH = "cash"
    UPI = "upi"


def default_settlement_status(mode: str) -> str:
    """Settlement a fee mode starts out in"""
    if mode == DeliveryFeeMode.COLLECT_AT_DROP.value:
        return SettlementStatus.PENDING_COLLECTION.value
    if mode == DeliveryFeeMode.RESTAURANT_SETTLED.value:
        return SettlementStatus.RESTAURANT_SETTLED.value
    return SettlementStatus.NOT_APPLICABLE.value


class Order(Base):
    """Customer delivery orders; never deleted"""
    __tablename__ = "orders"

    order_id = Column(String(64), primary_key=True)
    tenant_id = Column(String(64), ForeignKey("tenants.tenant_id"), nullable=False, index=True)
    status = Column(String(32), nullable=False, default=OrderStatus.CONFIRMED.value)

    # Customer information
    customer_name = Column(String(255), nullable=False)
    customer_phone = Column(String(32), nullable=False)
    customer_phone_last10 = Column(String(10), nullable=False)
    customer_email = Column(String(255))

    # {"line1": "...", "city": "...", "notes": "..."}
    address_json = Column(JSON, nullable=False)

    # [{"id": "...", "name": "...", "type": "...", "image": "...", "price": 129, "calories": "320", "quantity": 1}, ...]
    items_json = Column(JSON, nullable=False)

    # {"subtotal", "delivery_fee", "tax", "grand_total", "payable_now", "delivery_fee_due_at_drop"}
    totals_json = Column(JSON, nullable=False)

    # Payment
    payment_method = Column(String(20), nullable=False)
    payment_reference = Column(String(255), nullable=False)

    # Delivery fee settlement
    delivery_fee_mode = Column(String(32), nullable=False, default=DeliveryFeeMode.PREPAID.value)
    delivery_fee_settlement_status = Column(String(32), nullable=False)
    delivery_fee_collection_json = Column(JSON)
    delivery_confirmation_json = Column(JSON, nullable=False)

    # Epoch milliseconds
    created_at = Column(BigInteger, nullable=False)
    updated_at = Column(BigInteger, nullable=False)

    # Relationships
    tracking = relationship("Tracking", back_populates="order", uselist=False)

    __table_args__ = (
        Index("ix_orders_tenant_phone", "tenant_id", "customer_phone_last10"),
    )

    @property
    def customer(self) -> dict:
        return {
            "name": self.customer_name,
            "phone": self.customer_phone,
            "email": self.customer_email,
        }

    @property
    def address(self) -> dict:
        return self.address_json or {}

    @property
    def items(self) -> list:
        return self.items_json or []

    @property
    def totals(self) -> dict:
        return self.totals_json or {}

    @property
    def delivery_fee_collection(self):
        return self.delivery_fee_collection_json

    @property
    def delivery_confirmation(self) -> dict:
        return self.delivery_confirmation_json or {}

    @property
    def expected_otp(self) -> str:
        return (self.delivery_confirmation_json or {}).get("expected_otp") or ""
