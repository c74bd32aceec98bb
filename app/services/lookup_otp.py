"""Customer order lookup gated by a one-time code.

Unauthenticated customers prove control of a phone number before reading
their order history. Records are single-use, expire after a TTL and are
deleted once the attempt cap is reached, which bounds brute force against
the 4-digit keyspace. Phones are compared on their last ten digits so a
country-code prefix on either side still matches.
"""

import uuid
from typing import List, Optional

import structlog
from sqlalchemy.ext.asyncio import AsyncSession

from app.config import settings
from app.errors import (
    ForbiddenError,
    InvalidOtpError,
    InvalidPayloadError,
    NotFoundError,
    OtpAttemptsExceededError,
    OtpRequestInvalidError,
    PhoneMismatchError,
)
from app.models.order import Order
from app.models.otp import CustomerLookupOtp
from app.models.user import User
from app.services.access import resolve_public_tenant_id
from app.services.notifications import send_lookup_otp_sms
from app.stores import LookupOtpStore, OrderStore, TenantStore
from app.utils import generate_numeric_otp, is_non_empty, mask_phone, normalize_phone, now_ms, phone_last10

logger = structlog.get_logger()

MIN_PHONE_DIGITS = 10


def _require_phone(phone: Optional[str]) -> str:
    digits = normalize_phone(phone)
    if len(digits) < MIN_PHONE_DIGITS:
        raise InvalidPayloadError("phone must contain at least 10 digits.")
    return digits


async def prune_expired(db: AsyncSession, now: Optional[int] = None) -> int:
    """Delete expired challenges and commit"""
    removed = await LookupOtpStore(db).prune_expired(now if now is not None else now_ms())
    await db.commit()
    if removed:
        logger.info("Pruned expired lookup OTPs", removed=removed)
    return removed


async def request_otp(
    db: AsyncSession,
    phone: Optional[str],
    tenant_id: Optional[str] = None,
    actor: Optional[User] = None,
) -> dict:
    """Issue a challenge; the code itself is only returned in debug mode"""
    digits = _require_phone(phone)

    resolved_tenant_id = resolve_public_tenant_id(actor, tenant_id)
    if not await TenantStore(db).exists(resolved_tenant_id):
        raise NotFoundError("Tenant not found.")

    await prune_expired(db)

    now = now_ms()
    record = CustomerLookupOtp(
        request_id=f"otp_{uuid.uuid4().hex}",
        phone=digits,
        tenant_id=resolved_tenant_id,
        otp_code=generate_numeric_otp(),
        attempts=0,
        created_at=now,
        expires_at=now + settings.customer_lookup_otp_ttl_ms,
    )
    LookupOtpStore(db).add(record)
    await db.commit()

    logger.info(
        "Lookup OTP issued",
        request_id=record.request_id,
        tenant_id=resolved_tenant_id,
        phone=mask_phone(digits),
    )

    await send_lookup_otp_sms(digits, record.otp_code, settings.customer_lookup_otp_ttl_seconds)

    response = {"request_id": record.request_id, "expires_at": record.expires_at}
    if settings.enable_debug_otp:
        response["debug_otp"] = record.otp_code
    return response


async def verify_and_lookup(
    db: AsyncSession,
    phone: Optional[str],
    request_id: Optional[str],
    otp_code: Optional[str],
    actor: Optional[User] = None,
) -> List[Order]:
    """Consume a challenge and return the phone's orders, newest first"""
    digits = _require_phone(phone)
    if not is_non_empty(request_id) or not is_non_empty(otp_code):
        raise InvalidPayloadError("requestId and otpCode are required.")

    await prune_expired(db)

    store = LookupOtpStore(db)
    # Row lock keeps the attempt counter race-free
    record = await store.get(request_id, for_update=True)
    if record is None or record.is_expired(now_ms()):
        raise OtpRequestInvalidError("OTP request is invalid or expired.")

    resolved_tenant_id = resolve_public_tenant_id(actor, record.tenant_id)
    if record.tenant_id != resolved_tenant_id:
        raise ForbiddenError("Tenant access denied.")

    provided_last10 = phone_last10(digits)
    if phone_last10(record.phone) != provided_last10:
        raise PhoneMismatchError("phone does not match OTP request.")

    if record.otp_code != otp_code.strip():
        attempts = (record.attempts or 0) + 1
        max_attempts = settings.customer_lookup_otp_max_attempts
        if attempts >= max_attempts:
            await store.delete(record)
            await db.commit()
            logger.info("Lookup OTP attempts exhausted", request_id=request_id, tenant_id=record.tenant_id)
            raise OtpAttemptsExceededError("Maximum OTP attempts exceeded. Please request a new OTP.")

        record.attempts = attempts
        await db.commit()
        raise InvalidOtpError(
            "Invalid OTP. Please try again.",
            details={"attemptsRemaining": max_attempts - attempts},
        )

    tenant_id = record.tenant_id
    await store.delete(record)
    await db.commit()

    orders = await OrderStore(db).list_by_phone(tenant_id, provided_last10)
    logger.info(
        "Customer orders looked up",
        tenant_id=tenant_id,
        phone=mask_phone(digits),
        order_count=len(orders),
    )
    return orders
