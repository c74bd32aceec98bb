"""Delivery tracking API endpoints"""

from typing import Optional

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.database import get_db
from app.models.user import User
from app.schemas.tracking import Ack, TrackingLocationUpdate, TrackingResponse
from app.api.auth import get_optional_user, require_roles
from app.services import tracking as tracking_service
from app.services.access import TRACKING_UPDATE_ROLES

router = APIRouter()


@router.get("/{order_id}", response_model=TrackingResponse)
async def get_tracking(
    order_id: str,
    current_user: Optional[User] = Depends(get_optional_user),
    db: AsyncSession = Depends(get_db),
):
    """Current rider position, ETA and event history"""
    return await tracking_service.get_tracking(db, order_id, current_user)


@router.post("/{order_id}/location", response_model=Ack)
async def update_tracking_location(
    order_id: str,
    update: TrackingLocationUpdate,
    current_user: User = Depends(require_roles(TRACKING_UPDATE_ROLES)),
    db: AsyncSession = Depends(get_db),
):
    """Rider or dispatcher position push"""
    await tracking_service.update_tracking_location(
        db,
        order_id,
        lat=update.lat,
        lng=update.lng,
        status=update.status,
        eta_minutes=update.eta_minutes,
        actor=current_user,
    )
    return Ack()
