"""
Pydantic schemas for User entity.
"""
from pydantic import BaseModel, EmailStr
from typing import Optional
from datetime import datetime
from gatepass.core.permissions import Role


class UserBrief(BaseModel):
    """Minimal user view for pickers and assignment lists."""
    id: int
    full_name: str
    email: EmailStr
    
    class Config:
        from_attributes = True


class UserResponse(UserBrief):
    """Schema for user response."""
    username: str
    role: Role
    is_active: bool
    student_id: Optional[str] = None
    category: Optional[str] = None
    guardian_contact: Optional[str] = None
    created_at: datetime


class UserLogin(BaseModel):
    """Schema for user login."""
    username: str
    password: str


class Token(BaseModel):
    """Schema for JWT token response."""
    access_token: str
    token_type: str = "bearer"
