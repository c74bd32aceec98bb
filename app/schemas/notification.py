"""Customer notification schemas"""

from pydantic import Field

from app.schemas.base import CamelModel
from app.schemas.order import RequiredText


class WhatsAppConfirmationRequest(CamelModel):
    """Queue an order confirmation message"""
    order_id: RequiredText = Field(max_length=64)
    customer_name: RequiredText = Field(max_length=255)
    customer_phone: RequiredText = Field(max_length=32)
    message: RequiredText = Field(max_length=1600)


class WhatsAppConfirmationResponse(CamelModel):
    queued: bool = True
    channel: str = "whatsapp"
    provider_message_id: str
