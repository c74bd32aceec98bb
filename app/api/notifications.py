"""Customer notification API endpoints"""

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.database import get_db
from app.models.user import User
from app.schemas.notification import WhatsAppConfirmationRequest, WhatsAppConfirmationResponse
from app.api.auth import require_roles
from app.services import notifications as notification_service
from app.services.access import NOTIFICATION_ROLES

router = APIRouter()


@router.post("/whatsapp/confirmation", response_model=WhatsAppConfirmationResponse)
async def queue_whatsapp_confirmation(
    request: WhatsAppConfirmationRequest,
    current_user: User = Depends(require_roles(NOTIFICATION_ROLES)),
    db: AsyncSession = Depends(get_db),
):
    """Send the customer an order confirmation on WhatsApp"""
    notification = await notification_service.queue_whatsapp_confirmation(db, request, current_user)
    return WhatsAppConfirmationResponse(
        queued=notification.queued,
        channel=notification.channel,
        provider_message_id=notification.provider_message_id,
    )
