"""Authentication schemas"""

from typing import Optional
from pydantic import BaseModel, EmailStr

from app.models.user import UserRole
from app.schemas.base import CamelModel


class Token(BaseModel):
    """JWT token response"""
    access_token: str
    token_type: str = "bearer"
    expires_in: int


class LoginRequest(BaseModel):
    """Login request"""
    email: EmailStr
    password: str


class UserResponse(CamelModel):
    """User response"""
    user_id: str
    email: str
    name: Optional[str]
    role: UserRole
    tenant_id: Optional[str]
    is_active: bool
