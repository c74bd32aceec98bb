"""Outbound customer messages: lookup OTP by SMS, order confirmations on WhatsApp"""

import asyncio
import secrets
from typing import Optional

import structlog
from sqlalchemy.ext.asyncio import AsyncSession
from twilio.rest import Client as TwilioClient

from app.config import settings
from app.errors import NotFoundError
from app.models.notification import Notification
from app.models.user import User
from app.schemas.notification import WhatsAppConfirmationRequest
from app.services.access import can_access
from app.services.audit import record_audit
from app.services.subscriptions import ensure_operational
from app.stores import NotificationStore, OrderStore
from app.utils import mask_phone, normalize_phone, now_ms

logger = structlog.get_logger()

WHATSAPP_CHANNEL = "whatsapp"


def _send_sms(to: str, body: str) -> str:
    client = TwilioClient(settings.twilio_account_sid, settings.twilio_auth_token)
    message = client.messages.create(
        body=body,
        from_=settings.twilio_phone_number,
        to=to,
    )
    return message.sid


def _send_whatsapp(to: str, body: str) -> str:
    client = TwilioClient(settings.twilio_account_sid, settings.twilio_auth_token)
    message = client.messages.create(
        body=body,
        from_=f"whatsapp:{settings.twilio_whatsapp_number}",
        to=f"whatsapp:{to}",
    )
    return message.sid


def _e164(phone: str) -> str:
    return phone if phone.startswith("+") else f"+{phone}"


async def send_lookup_otp_sms(phone_digits: str, otp_code: str, ttl_seconds: int) -> bool:
    """Text the lookup code to the customer; failures are logged, never raised"""
    if not settings.sms_enabled:
        logger.debug("SMS disabled, skipping lookup OTP delivery", to=mask_phone(phone_digits))
        return False

    to = _e164(phone_digits)
    body = (
        f"Your order lookup code is {otp_code}. "
        f"It expires in {max(1, ttl_seconds // 60)} minutes."
    )

    try:
        # Twilio's client is blocking
        message_sid = await asyncio.to_thread(_send_sms, to, body)
        logger.info("Sent lookup OTP SMS", to=mask_phone(phone_digits), message_sid=message_sid)
        return True
    except Exception as e:
        logger.error("Failed to send lookup OTP SMS", to=mask_phone(phone_digits), error=str(e))
        return False


async def send_whatsapp_message(phone: str, body: str) -> Optional[str]:
    """Returns Twilio's message SID, or None when disabled or the send failed"""
    if not settings.whatsapp_enabled:
        logger.debug("WhatsApp disabled, message stays queued", to=mask_phone(phone))
        return None

    try:
        message_sid = await asyncio.to_thread(_send_whatsapp, _e164(normalize_phone(phone)), body)
        logger.info("Sent WhatsApp message", to=mask_phone(phone), message_sid=message_sid)
        return message_sid
    except Exception as e:
        logger.error("Failed to send WhatsApp message", to=mask_phone(phone), error=str(e))
        return None


async def queue_whatsapp_confirmation(
    db: AsyncSession,
    request: WhatsAppConfirmationRequest,
    actor: User,
) -> Notification:
    """Record an order confirmation for the customer and hand it to Twilio.

    A message that could not be sent still counts as queued and gets a
    local ``wamid.`` id.
    """
    order = await OrderStore(db).get(request.order_id)
    if order is None or not can_access(actor, order.tenant_id):
        raise NotFoundError("Order not found.")

    await ensure_operational(db, order.tenant_id)

    message_sid = await send_whatsapp_message(request.customer_phone, request.message)
    notification = Notification(
        provider_message_id=message_sid or f"wamid.{secrets.token_hex(8)}",
        tenant_id=order.tenant_id,
        order_id=order.order_id,
        customer_name=request.customer_name,
        customer_phone=request.customer_phone,
        message=request.message,
        channel=WHATSAPP_CHANNEL,
        queued=True,
        delivered_to_provider=message_sid is not None,
        created_at=now_ms(),
    )
    NotificationStore(db).add(notification)
    await db.commit()

    logger.info(
        "WhatsApp confirmation queued",
        order_id=order.order_id,
        tenant_id=order.tenant_id,
        provider_message_id=notification.provider_message_id,
        delivered_to_provider=notification.delivered_to_provider,
    )

    await record_audit(
        db,
        action="notification.whatsapp_confirmation",
        entity_type="notification",
        entity_id=notification.provider_message_id,
        tenant_id=order.tenant_id,
        actor=actor,
        details={"orderId": order.order_id, "channel": WHATSAPP_CHANNEL},
    )
    return notification
