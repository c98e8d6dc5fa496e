"""
User model for authentication and role membership.
"""
from sqlalchemy import Column, String, Boolean, Enum as SQLEnum
from sqlalchemy.orm import relationship
from gatepass.db.base import BaseModel
from gatepass.core.permissions import Role


class User(BaseModel):
    """User model. Students additionally carry a category and guardian contact."""
    __tablename__ = "users"
    
    username = Column(String(50), unique=True, nullable=False, index=True)
    email = Column(String(100), unique=True, nullable=False, index=True)
    full_name = Column(String(150), nullable=False)
    hashed_password = Column(String(255), nullable=False)
    role = Column(
        SQLEnum(Role, values_callable=lambda roles: [r.value for r in roles]),
        default=Role.STUDENT,
        nullable=False,
        index=True
    )
    is_active = Column(Boolean, default=True, nullable=False)
    
    # Student fields
    student_id = Column(String(50), nullable=True, index=True)
    category = Column(String(20), nullable=True)  # hostelType: hostler / non-hostler
    guardian_contact = Column(String(20), nullable=True)  # Emergency contact phone
    
    # Relationships
    leave_requests = relationship(
        "LeaveRequest",
        foreign_keys="LeaveRequest.requester_id",
        back_populates="requester"
    )
