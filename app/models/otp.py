"""Customer lookup OTP challenge model"""

from sqlalchemy import Column, String, BigInteger, Integer, ForeignKey

from app.database import Base


class CustomerLookupOtp(Base):
    """Short-lived, attempt-limited code gating phone-based order lookup"""
    __tablename__ = "customer_lookup_otps"

    request_id = Column(String(64), primary_key=True)
    phone = Column(String(32), nullable=False)  # digits only
    tenant_id = Column(String(64), ForeignKey("tenants.tenant_id"), nullable=False)
    otp_code = Column(String(8), nullable=False)
    attempts = Column(Integer, nullable=False, default=0)

    # Epoch milliseconds
    created_at = Column(BigInteger, nullable=False)
    expires_at = Column(BigInteger, nullable=False, index=True)

    def is_expired(self, now: int) -> bool:
        return self.expires_at is None or self.expires_at <= now
