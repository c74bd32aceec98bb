"""Delivery tracking model"""

import enum
from sqlalchemy import Column, String, BigInteger, Integer, Float, ForeignKey, JSON
from sqlalchemy.orm import relationship

from app.database import Base


class DeliveryStatus(str, enum.Enum):
    ASSIGNED = "assigned"
    PICKED_UP = "picked_up"
    ON_THE_WAY = "on_the_way"
    NEARBY = "nearby"
    DELIVERED = "delivered"


DELIVERY_STATUS_LABELS = {
    DeliveryStatus.ASSIGNED.value: "Delivery agent assigned",
    DeliveryStatus.PICKED_UP.value: "Order picked up from kitchen",
    DeliveryStatus.ON_THE_WAY.value: "Rider is on the way",
    DeliveryStatus.NEARBY.value: "Rider is near your location",
    DeliveryStatus.DELIVERED.value: "Order delivered",
}


def delivery_status_label(status: str) -> str:
    return DELIVERY_STATUS_LABELS.get(status, "Tracking update")


class Tracking(Base):
    """Delivery-granular record derived one-to-one from an order"""
    __tablename__ = "tracking"

    order_id = Column(String(64), ForeignKey("orders.order_id"), primary_key=True)
    tenant_id = Column(String(64), ForeignKey("tenants.tenant_id"), nullable=False, index=True)
    status = Column(String(32), nullable=False, default=DeliveryStatus.ASSIGNED.value, index=True)

    # Rider, fixed for the order's lifetime
    agent_name = Column(String(255), nullable=False)
    agent_phone = Column(String(32), nullable=False)

    eta_minutes = Column(Integer, nullable=False, default=0)
    current_lat = Column(Float, nullable=False)
    current_lng = Column(Float, nullable=False)

    # Append-only: [{"status": "...", "label": "...", "time": 1700000000000}, ...]
    events_json = Column(JSON, nullable=False, default=list)

    updated_at = Column(BigInteger, nullable=False)

    # Relationships
    order = relationship("Order", back_populates="tracking")

    @property
    def current(self) -> dict:
        return {"lat": self.current_lat, "lng": self.current_lng}

    @property
    def events(self) -> list:
        return self.events_json or []

    @property
    def last_event_status(self):
        events = self.events_json or []
        return events[-1].get("status") if events else None

    def append_event(self, status: str, now: int) -> bool:
        """Append a status event unless it repeats the last one"""
        if self.last_event_status == status:
            return False
        # Reassign so the JSON column is flagged dirty
        self.events_json = [
            *(self.events_json or []),
            {"status": status, "label": delivery_status_label(status), "time": now},
        ]
        return True
