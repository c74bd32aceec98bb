"""Tracking schemas"""

from typing import List, Optional

from app.schemas.base import CamelModel


class Coordinates(CamelModel):
    lat: float
    lng: float


class TrackingEvent(CamelModel):
    status: str
    label: str
    time: int


class TrackingResponse(CamelModel):
    order_id: str
    tenant_id: str
    status: str
    agent_name: str
    agent_phone: str
    eta_minutes: int
    current: Coordinates
    events: List[TrackingEvent]
    updated_at: int


class TrackingLocationUpdate(CamelModel):
    """Operator push; value checks happen in the service after access checks"""
    lat: Optional[float] = None
    lng: Optional[float] = None
    status: Optional[str] = None
    eta_minutes: Optional[int] = None


class Ack(CamelModel):
    ok: bool = True
