"""Demo delivery simulator.

Each tick walks every in-flight tracking record one step: ETA drops by a
fixed decrement, the rider moves a fixed fraction of the remaining distance
toward the destination city centroid, and the delivery status advances along
the canonical sequence. ``nearby`` holds until delivery is confirmed.
"""

from typing import Optional

import structlog
from sqlalchemy.ext.asyncio import AsyncSession

from app.config import settings
from app.models.order import TERMINAL_ORDER_STATUSES
from app.models.tracking import DeliveryStatus
from app.services.tracking import (
    DELIVERY_SEQUENCE,
    DELIVERY_TO_ORDER_STATUS,
    resolve_city_point,
    round_coordinate,
)
from app.stores import OrderStore, TrackingStore
from app.utils import now_ms

logger = structlog.get_logger()


def resolve_simulated_status(current_status: str, eta_minutes: int) -> str:
    if current_status in (DeliveryStatus.ASSIGNED.value, DeliveryStatus.PICKED_UP.value):
        return DELIVERY_SEQUENCE[DELIVERY_SEQUENCE.index(current_status) + 1]
    if current_status == DeliveryStatus.ON_THE_WAY.value:
        if eta_minutes <= settings.tracking_nearby_eta_minutes:
            return DeliveryStatus.NEARBY.value
        return DeliveryStatus.ON_THE_WAY.value
    return current_status


def move_toward(origin: dict, target: dict, ratio: float) -> dict:
    """Linear interpolation from origin toward target"""
    lat = origin.get("lat")
    lng = origin.get("lng")
    if lat is None or lng is None:
        lat, lng = target["lat"], target["lng"]
    return {
        "lat": round_coordinate(lat + (target["lat"] - lat) * ratio),
        "lng": round_coordinate(lng + (target["lng"] - lng) * ratio),
    }


async def advance_delivery(db: AsyncSession, order_id: str, now: Optional[int] = None) -> bool:
    """Advance one delivery by a single tick and commit. Returns True if it moved."""
    # Order row first, then tracking, same as foreground writers
    order = await OrderStore(db).get(order_id, for_update=True)
    tracking = await TrackingStore(db).get(order_id, for_update=True)

    skip = (
        tracking is None
        or tracking.status == DeliveryStatus.DELIVERED.value
        or (order is not None and order.status in TERMINAL_ORDER_STATUSES)
    )
    if skip:
        # Nothing to write; just release the row locks
        await db.commit()
        return False

    now = now if now is not None else now_ms()
    current_eta = tracking.eta_minutes if tracking.eta_minutes is not None else settings.tracking_initial_eta_minutes
    next_eta = max(0, current_eta - settings.tracking_eta_decrement_minutes)
    next_status = resolve_simulated_status(tracking.status, next_eta)

    city = order.address.get("city") if order is not None else None
    moved = move_toward(tracking.current, resolve_city_point(city), settings.tracking_approach_ratio)

    tracking.append_event(next_status, now)
    tracking.status = next_status
    tracking.eta_minutes = next_eta
    tracking.current_lat = moved["lat"]
    tracking.current_lng = moved["lng"]
    tracking.updated_at = now

    if order is not None:
        mapped_status = DELIVERY_TO_ORDER_STATUS.get(next_status)
        if mapped_status and order.status != mapped_status:
            order.status = mapped_status
            order.updated_at = now

    await db.commit()
    return True


async def advance_in_flight_deliveries(db: AsyncSession, now: Optional[int] = None) -> int:
    """Run one simulator tick over all non-delivered tracking records"""
    order_ids = await TrackingStore(db).list_in_flight_ids()
    # Release the read transaction before taking per-order locks
    await db.commit()

    advanced = 0
    for order_id in order_ids:
        if await advance_delivery(db, order_id, now=now):
            advanced += 1

    if advanced:
        logger.info("Tracking simulation tick", advanced=advanced, in_flight=len(order_ids))
    return advanced
