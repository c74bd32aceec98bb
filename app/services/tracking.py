"""Delivery tracking derivation and operator updates"""

import math
import random
from typing import Optional

import structlog
from sqlalchemy.ext.asyncio import AsyncSession

from app.config import settings
from app.errors import InvalidPayloadError, NotFoundError
from app.models.order import Order, OrderStatus
from app.models.tracking import Tracking, DeliveryStatus
from app.models.user import User
from app.services.access import can_access
from app.services.audit import record_audit
from app.services.subscriptions import ensure_operational
from app.stores import TrackingStore
from app.utils import now_ms

logger = structlog.get_logger()

DELIVERY_STATUS_VALUES = frozenset(status.value for status in DeliveryStatus)

# Canonical forward sequence of a delivery
DELIVERY_SEQUENCE = (
    DeliveryStatus.ASSIGNED.value,
    DeliveryStatus.PICKED_UP.value,
    DeliveryStatus.ON_THE_WAY.value,
    DeliveryStatus.NEARBY.value,
    DeliveryStatus.DELIVERED.value,
)

ORDER_TO_DELIVERY_STATUS = {
    OrderStatus.CONFIRMED.value: DeliveryStatus.ASSIGNED.value,
    OrderStatus.PREPARING.value: DeliveryStatus.PICKED_UP.value,
    OrderStatus.OUT_FOR_DELIVERY.value: DeliveryStatus.ON_THE_WAY.value,
    OrderStatus.DELIVERED.value: DeliveryStatus.DELIVERED.value,
}

DELIVERY_TO_ORDER_STATUS = {
    DeliveryStatus.ASSIGNED.value: OrderStatus.CONFIRMED.value,
    DeliveryStatus.PICKED_UP.value: OrderStatus.PREPARING.value,
    DeliveryStatus.ON_THE_WAY.value: OrderStatus.OUT_FOR_DELIVERY.value,
    DeliveryStatus.NEARBY.value: OrderStatus.OUT_FOR_DELIVERY.value,
    DeliveryStatus.DELIVERED.value: OrderStatus.DELIVERED.value,
}

CITY_CENTROIDS = {
    "hyderabad": {"lat": 17.385, "lng": 78.4867},
    "bengaluru": {"lat": 12.9716, "lng": 77.5946},
    "bangalore": {"lat": 12.9716, "lng": 77.5946},
    "chennai": {"lat": 13.0827, "lng": 80.2707},
    "mumbai": {"lat": 19.076, "lng": 72.8777},
    "delhi": {"lat": 28.6139, "lng": 77.209},
}
DEFAULT_CITY = "hyderabad"

DELIVERY_AGENTS = (
    {"name": "Ravi Kumar", "phone": "+91 90000 10021"},
    {"name": "Sneha Reddy", "phone": "+91 90000 10022"},
    {"name": "Arjun Patel", "phone": "+91 90000 10023"},
    {"name": "Aisha Khan", "phone": "+91 90000 10024"},
)

START_JITTER_DEGREES = 0.02


def resolve_city_point(city: Optional[str]) -> dict:
    key = str(city or "").strip().lower()
    return CITY_CENTROIDS.get(key, CITY_CENTROIDS[DEFAULT_CITY])


def round_coordinate(value: float) -> float:
    return round(value, 6)


def build_initial_tracking(
    order: Order,
    status: str = DeliveryStatus.ASSIGNED.value,
    now: Optional[int] = None,
) -> Tracking:
    """Fresh tracking with a simulated rider near the destination city"""
    now = now if now is not None else now_ms()
    city_point = resolve_city_point(order.address.get("city"))
    agent = random.choice(DELIVERY_AGENTS)

    tracking = Tracking(
        order_id=order.order_id,
        tenant_id=order.tenant_id,
        status=status,
        agent_name=agent["name"],
        agent_phone=agent["phone"],
        eta_minutes=0 if status == DeliveryStatus.DELIVERED.value else settings.tracking_initial_eta_minutes,
        current_lat=round_coordinate(city_point["lat"] + random.uniform(-START_JITTER_DEGREES, START_JITTER_DEGREES)),
        current_lng=round_coordinate(city_point["lng"] + random.uniform(-START_JITTER_DEGREES, START_JITTER_DEGREES)),
        events_json=[],
        updated_at=now,
    )
    tracking.append_event(status, now)
    return tracking


async def sync_tracking_with_order(
    db: AsyncSession,
    order: Order,
    tracking: Optional[Tracking] = None,
    now: Optional[int] = None,
) -> Optional[Tracking]:
    """Mirror the order's status onto its tracking record.

    Creates the tracking lazily if it does not exist yet. Statuses without a
    delivery counterpart (cancelled, created) leave tracking untouched.
    Does not commit.
    """
    delivery_status = ORDER_TO_DELIVERY_STATUS.get(order.status)
    if delivery_status is None:
        return tracking

    now = now if now is not None else now_ms()
    store = TrackingStore(db)
    if tracking is None:
        tracking = await store.get(order.order_id, for_update=True)

    if tracking is None:
        return store.add(build_initial_tracking(order, status=delivery_status, now=now))

    tracking.append_event(delivery_status, now)
    tracking.status = delivery_status
    if delivery_status == DeliveryStatus.DELIVERED.value:
        tracking.eta_minutes = 0
    tracking.updated_at = now
    return tracking


async def get_tracking(db: AsyncSession, order_id: str, actor: Optional[User] = None) -> Tracking:
    """Read tracking; anonymous callers may read by id, staff only within their tenant"""
    tracking = await TrackingStore(db).get(order_id)
    if tracking is None:
        raise NotFoundError("Tracking not found.")
    if actor is not None and not can_access(actor, tracking.tenant_id):
        raise NotFoundError("Tracking not found.")
    return tracking


def _is_number(value) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool) and math.isfinite(value)


async def update_tracking_location(
    db: AsyncSession,
    order_id: str,
    lat,
    lng,
    status: Optional[str],
    eta_minutes,
    actor: Optional[User],
) -> Tracking:
    """Operator/rider position push.

    Accepts any delivery status, including one earlier in the canonical
    sequence; only the order state machine guards transitions.
    """
    store = TrackingStore(db)
    tracking = await store.get(order_id, for_update=True)
    if tracking is None or not can_access(actor, tracking.tenant_id):
        raise NotFoundError("Tracking not found.")

    await ensure_operational(db, tracking.tenant_id)

    if not _is_number(lat) or not _is_number(lng):
        raise InvalidPayloadError("lat and lng are required.")
    if status not in DELIVERY_STATUS_VALUES:
        raise InvalidPayloadError("Invalid delivery status.")
    if not _is_number(eta_minutes) or eta_minutes < 0:
        raise InvalidPayloadError("etaMinutes must be >= 0.")

    now = now_ms()
    tracking.append_event(status, now)
    tracking.status = status
    tracking.eta_minutes = int(eta_minutes)
    tracking.current_lat = float(lat)
    tracking.current_lng = float(lng)
    tracking.updated_at = now
    await db.commit()

    await record_audit(
        db,
        action="tracking.location_update",
        entity_type="tracking",
        entity_id=order_id,
        tenant_id=tracking.tenant_id,
        actor=actor,
        details={"status": status, "etaMinutes": int(eta_minutes)},
    )
    return tracking
