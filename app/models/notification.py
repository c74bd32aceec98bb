"""Outbound customer notification model"""

from sqlalchemy import Column, String, BigInteger, Boolean, Text, ForeignKey

from app.database import Base


class Notification(Base):
    """Order confirmation queued to a customer messaging channel"""
    __tablename__ = "notifications"

    provider_message_id = Column(String(64), primary_key=True)
    tenant_id = Column(String(64), ForeignKey("tenants.tenant_id"), nullable=False, index=True)
    order_id = Column(String(64), ForeignKey("orders.order_id"), nullable=False, index=True)

    customer_name = Column(String(255), nullable=False)
    customer_phone = Column(String(32), nullable=False)
    message = Column(Text, nullable=False)
    channel = Column(String(16), nullable=False, default="whatsapp")
    queued = Column(Boolean, nullable=False, default=True)
    delivered_to_provider = Column(Boolean, nullable=False, default=False)

    # Epoch milliseconds
    created_at = Column(BigInteger, nullable=False)
