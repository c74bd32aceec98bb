"""Customer order lookup (OTP challenge) schemas"""

from typing import Optional

from pydantic import Field

from app.schemas.base import CamelModel


class LookupOtpRequest(CamelModel):
    phone: Optional[str] = Field(None, max_length=32)
    tenant_id: Optional[str] = Field(None, max_length=64)


class LookupOtpResponse(CamelModel):
    request_id: str
    expires_at: int
    debug_otp: Optional[str] = None


class LookupVerifyRequest(CamelModel):
    phone: Optional[str] = Field(None, max_length=32)
    request_id: Optional[str] = None
    otp_code: Optional[str] = None
