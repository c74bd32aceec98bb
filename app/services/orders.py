"""Order lifecycle: placement, status transitions and delivery confirmation"""

import math
from typing import List, Optional

import structlog
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.errors import (
    DuplicateOrderError,
    ForbiddenError,
    InvalidOtpError,
    InvalidPayloadError,
    InvalidTransitionError,
    NotFoundError,
)
from app.models.order import (
    CollectionMethod,
    DeliveryFeeMode,
    Order,
    OrderStatus,
    SettlementStatus,
    TERMINAL_ORDER_STATUSES,
    default_settlement_status,
)
from app.models.user import User
from app.schemas.order import DeliveryConfirmationRequest, OrderCreate, OrderListFilters
from app.services.access import can_access, is_platform_admin, resolve_tenant_id
from app.services.audit import record_audit
from app.services.subscriptions import ensure_operational
from app.services.tracking import build_initial_tracking, sync_tracking_with_order
from app.stores import OrderStore, TrackingStore
from app.utils import is_non_empty, mask_phone, now_ms, phone_last10

logger = structlog.get_logger()

ORDER_STATUS_VALUES = frozenset(status.value for status in OrderStatus)

# Whitelist of status-update transitions. Anything absent is illegal;
# out_for_delivery only completes through delivery confirmation.
ORDER_STATUS_TRANSITIONS = {
    OrderStatus.CONFIRMED.value: frozenset({OrderStatus.PREPARING.value, OrderStatus.CANCELLED.value}),
    OrderStatus.PREPARING.value: frozenset({OrderStatus.OUT_FOR_DELIVERY.value, OrderStatus.CANCELLED.value}),
    OrderStatus.OUT_FOR_DELIVERY.value: frozenset(),
}

COLLECTION_METHOD_VALUES = frozenset(method.value for method in CollectionMethod)


def is_transition_allowed(current: str, target: str) -> bool:
    return target in ORDER_STATUS_TRANSITIONS.get(current, frozenset())


async def _get_accessible_order(
    db: AsyncSession,
    order_id: str,
    actor: Optional[User],
    for_update: bool = False,
) -> Order:
    """Load an order the actor may act on; cross-tenant looks like missing"""
    order = await OrderStore(db).get(order_id, for_update=for_update)
    if order is None or not can_access(actor, order.tenant_id):
        raise NotFoundError("Order not found.")
    return order


async def create_order(db: AsyncSession, payload: OrderCreate, actor: Optional[User] = None) -> Order:
    """Place an order and open its delivery tracking.

    Placement always lands on ``confirmed``; ``created`` is never assigned.
    """
    store = OrderStore(db)
    if await store.exists(payload.order_id):
        raise DuplicateOrderError("orderId already exists.")

    tenant_id = resolve_tenant_id(actor, payload.tenant_id)
    if actor is not None:
        requested = (payload.tenant_id or "").strip()
        if not is_platform_admin(actor) and requested and requested != tenant_id:
            raise ForbiddenError("Tenant access denied.")
        if not can_access(actor, tenant_id):
            raise ForbiddenError("Tenant access denied.")

    await ensure_operational(db, tenant_id)

    now = now_ms()
    delivery_fee_mode = (
        payload.delivery_fee_mode.value if payload.delivery_fee_mode else DeliveryFeeMode.PREPAID.value
    )
    settlement_status = (
        payload.delivery_fee_settlement_status.value
        if payload.delivery_fee_settlement_status
        else default_settlement_status(delivery_fee_mode)
    )
    confirmation = payload.delivery_confirmation
    order = Order(
        order_id=payload.order_id,
        tenant_id=tenant_id,
        status=OrderStatus.CONFIRMED.value,
        customer_name=payload.customer.name,
        customer_phone=payload.customer.phone,
        customer_phone_last10=phone_last10(payload.customer.phone),
        customer_email=payload.customer.email,
        address_json=payload.address.model_dump(mode="json"),
        items_json=[item.model_dump(mode="json") for item in payload.items],
        totals_json=payload.totals.model_dump(mode="json"),
        payment_method=payload.payment_method.value,
        payment_reference=payload.payment_reference,
        delivery_fee_mode=delivery_fee_mode,
        delivery_fee_settlement_status=settlement_status,
        delivery_fee_collection_json=None,
        delivery_confirmation_json={
            "expected_otp": (confirmation.expected_otp if confirmation else None) or "",
            "otp_verified": bool(confirmation.otp_verified) if confirmation else False,
            "proof_note": confirmation.proof_note if confirmation else None,
        },
        created_at=now,
        updated_at=now,
    )
    store.add(order)

    tracking_store = TrackingStore(db)
    if await tracking_store.get(order.order_id) is None:
        tracking_store.add(build_initial_tracking(order, now=now))

    try:
        await db.commit()
    except IntegrityError:
        # Lost a race with a concurrent placement of the same orderId
        await db.rollback()
        raise DuplicateOrderError("orderId already exists.")

    logger.info(
        "Order created",
        order_id=order.order_id,
        tenant_id=tenant_id,
        customer_phone=mask_phone(order.customer_phone),
        item_count=len(order.items_json),
    )

    await record_audit(
        db,
        action="order.create",
        entity_type="order",
        entity_id=order.order_id,
        tenant_id=tenant_id,
        actor=actor,
        details={"paymentMethod": order.payment_method, "deliveryFeeMode": order.delivery_fee_mode},
    )
    return order


async def get_order(db: AsyncSession, order_id: str, actor: Optional[User] = None) -> Order:
    """Read an order; anonymous callers may read by id, staff only within their tenant.

    The response includes ``deliveryConfirmation.expectedOtp``, so anyone
    holding the order id can read the doorstep code.
    """
    order = await OrderStore(db).get(order_id)
    if order is None:
        raise NotFoundError("Order not found.")
    if actor is not None and not can_access(actor, order.tenant_id):
        raise NotFoundError("Order not found.")
    return order


async def list_orders(db: AsyncSession, filters: OrderListFilters, actor: User) -> List[Order]:
    """Platform admins see every tenant (optionally one); others only their own"""
    if is_platform_admin(actor):
        tenant_id = filters.tenant_id if is_non_empty(filters.tenant_id) else None
    else:
        tenant_id = actor.tenant_id
        if not is_non_empty(tenant_id):
            return []

    return await OrderStore(db).list(
        tenant_id=tenant_id,
        status=filters.status if is_non_empty(filters.status) else None,
        created_from=filters.created_from,
        created_to=filters.created_to,
        offset=filters.offset,
        limit=filters.limit,
    )


async def update_order_status(
    db: AsyncSession,
    order_id: str,
    next_status: Optional[str],
    actor: User,
) -> Order:
    """Apply one whitelisted transition and mirror it onto tracking"""
    order = await _get_accessible_order(db, order_id, actor, for_update=True)
    await ensure_operational(db, order.tenant_id)

    if next_status not in ORDER_STATUS_VALUES:
        raise InvalidPayloadError("Invalid order status.")

    if not is_transition_allowed(order.status, next_status):
        raise InvalidTransitionError(
            "Invalid status transition.",
            details={"from": order.status, "to": next_status},
        )

    previous_status = order.status
    now = now_ms()
    order.status = next_status
    order.updated_at = now
    await sync_tracking_with_order(db, order, now=now)
    await db.commit()

    logger.info(
        "Order status updated",
        order_id=order_id,
        tenant_id=order.tenant_id,
        from_status=previous_status,
        to_status=next_status,
    )

    await record_audit(
        db,
        action="order.status_update",
        entity_type="order",
        entity_id=order_id,
        tenant_id=order.tenant_id,
        actor=actor,
        details={"status": next_status},
    )
    return order


def _settle_delivery_fee(order: Order, request: DeliveryConfirmationRequest, now: int):
    """Resolve (settlement status, collection record) at drop time"""
    collection = order.delivery_fee_collection_json

    if order.delivery_fee_mode == DeliveryFeeMode.COLLECT_AT_DROP.value:
        if not request.collect_delivery_fee:
            return SettlementStatus.PENDING_COLLECTION.value, collection

        amount = request.collection_amount
        if amount is None or isinstance(amount, bool) or not math.isfinite(amount) or amount < 0:
            raise InvalidPayloadError("collectionAmount must be a non-negative number.")
        if request.collection_method not in COLLECTION_METHOD_VALUES:
            raise InvalidPayloadError("collectionMethod must be cash or upi.")

        collection = {
            "amount_collected": amount,
            "method": request.collection_method,
            "collected_at": now,
            "collected_by": request.confirmed_by,
            "notes": request.collection_notes if is_non_empty(request.collection_notes) else None,
        }
        return SettlementStatus.COLLECTED.value, collection

    if order.delivery_fee_mode == DeliveryFeeMode.RESTAURANT_SETTLED.value:
        return SettlementStatus.RESTAURANT_SETTLED.value, collection

    return SettlementStatus.NOT_APPLICABLE.value, collection


async def confirm_delivery(
    db: AsyncSession,
    order_id: str,
    request: DeliveryConfirmationRequest,
    actor: User,
) -> Order:
    """Complete an order at the doorstep and settle its delivery fee.

    An order placed without an expected OTP accepts any code. This bypass is
    deliberate and must not change without product sign-off. Delivered and
    cancelled orders are closed and cannot be confirmed again.
    """
    order = await _get_accessible_order(db, order_id, actor, for_update=True)
    await ensure_operational(db, order.tenant_id)

    if order.status in TERMINAL_ORDER_STATUSES:
        raise InvalidTransitionError(
            "Order is already closed.",
            details={"from": order.status, "to": OrderStatus.DELIVERED.value},
        )

    if not is_non_empty(request.otp_code):
        raise InvalidPayloadError("otpCode is required.")
    if not is_non_empty(request.confirmed_by):
        raise InvalidPayloadError("confirmedBy is required.")

    expected_otp = order.expected_otp
    if is_non_empty(expected_otp) and expected_otp != request.otp_code:
        logger.info("Delivery OTP mismatch", order_id=order_id, tenant_id=order.tenant_id)
        raise InvalidOtpError("Invalid delivery OTP.")

    now = now_ms()
    settlement_status, collection = _settle_delivery_fee(order, request, now)

    order.status = OrderStatus.DELIVERED.value
    order.delivery_fee_settlement_status = settlement_status
    order.delivery_fee_collection_json = collection
    order.delivery_confirmation_json = {
        **order.delivery_confirmation,
        "received_otp": request.otp_code,
        "otp_verified": True,
        "proof_note": request.proof_note if is_non_empty(request.proof_note) else None,
        "delivered_at": now,
        "confirmed_by": request.confirmed_by,
    }
    order.updated_at = now

    tracking = await TrackingStore(db).get(order_id, for_update=True)
    if tracking is not None:
        await sync_tracking_with_order(db, order, tracking=tracking, now=now)

    await db.commit()

    logger.info(
        "Delivery confirmed",
        order_id=order_id,
        tenant_id=order.tenant_id,
        settlement_status=settlement_status,
    )

    await record_audit(
        db,
        action="order.delivery_confirm",
        entity_type="order",
        entity_id=order_id,
        tenant_id=order.tenant_id,
        actor=actor,
        details={
            "settlementStatus": settlement_status,
            "collected": bool(request.collect_delivery_fee),
        },
    )
    return order
