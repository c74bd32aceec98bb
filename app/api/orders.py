"""Order management API endpoints"""

from typing import List, Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.database import get_db
from app.models.user import User
from app.schemas.lookup import LookupOtpRequest, LookupOtpResponse, LookupVerifyRequest
from app.schemas.order import (
    DeliveryConfirmationRequest,
    OrderCreate,
    OrderListFilters,
    OrderResponse,
    OrderStatusUpdate,
)
from app.api.auth import get_optional_user, require_roles
from app.services import lookup_otp, orders as order_service
from app.services.access import DELIVERY_CONFIRM_ROLES, ORDER_ADMIN_ROLES, STATUS_UPDATE_ROLES

router = APIRouter()


@router.post("", response_model=OrderResponse, status_code=status.HTTP_201_CREATED)
async def create_order(
    order_data: OrderCreate,
    current_user: Optional[User] = Depends(get_optional_user),
    db: AsyncSession = Depends(get_db),
):
    """Place an order"""
    return await order_service.create_order(db, order_data, current_user)


@router.post("/customer/request-otp", response_model=LookupOtpResponse, response_model_exclude_none=True)
async def request_lookup_otp(
    request: LookupOtpRequest,
    current_user: Optional[User] = Depends(get_optional_user),
    db: AsyncSession = Depends(get_db),
):
    """Start a customer order lookup by sending a one-time code"""
    return await lookup_otp.request_otp(db, request.phone, request.tenant_id, current_user)


@router.post("/customer/lookup", response_model=List[OrderResponse])
async def lookup_customer_orders(
    request: LookupVerifyRequest,
    current_user: Optional[User] = Depends(get_optional_user),
    db: AsyncSession = Depends(get_db),
):
    """Verify the code and return the customer's orders, newest first"""
    return await lookup_otp.verify_and_lookup(
        db, request.phone, request.request_id, request.otp_code, current_user
    )


@router.get("", response_model=List[OrderResponse])
async def list_orders(
    tenant_id: Optional[str] = Query(None, alias="tenantId"),
    order_status: Optional[str] = Query(None, alias="status"),
    from_time: Optional[str] = Query(None, alias="from"),
    to_time: Optional[str] = Query(None, alias="to"),
    offset: Optional[str] = Query(None),
    limit: Optional[str] = Query(None),
    current_user: User = Depends(require_roles(ORDER_ADMIN_ROLES)),
    db: AsyncSession = Depends(get_db),
):
    """List orders, newest first"""
    filters = OrderListFilters.from_query(tenant_id, order_status, from_time, to_time, offset, limit)
    return await order_service.list_orders(db, filters, current_user)


@router.get("/{order_id}", response_model=OrderResponse)
async def get_order(
    order_id: str,
    current_user: Optional[User] = Depends(get_optional_user),
    db: AsyncSession = Depends(get_db),
):
    """Get order by ID"""
    return await order_service.get_order(db, order_id, current_user)


@router.patch("/{order_id}/status", response_model=OrderResponse)
async def update_order_status(
    order_id: str,
    update_data: OrderStatusUpdate,
    current_user: User = Depends(require_roles(STATUS_UPDATE_ROLES)),
    db: AsyncSession = Depends(get_db),
):
    """Move an order to its next status"""
    return await order_service.update_order_status(db, order_id, update_data.status, current_user)


@router.post("/{order_id}/delivery-confirmation", response_model=OrderResponse)
async def confirm_delivery(
    order_id: str,
    confirmation: DeliveryConfirmationRequest,
    current_user: User = Depends(require_roles(DELIVERY_CONFIRM_ROLES)),
    db: AsyncSession = Depends(get_db),
):
    """Complete delivery at the doorstep"""
    return await order_service.confirm_delivery(db, order_id, confirmation, current_user)
