"""
Pydantic schemas for approver assignments.
"""
from pydantic import BaseModel
from typing import Any, List
from gatepass.schemas.user import UserBrief


class AssignmentUpdate(BaseModel):
    """Warden ids per category. Ids may be ints, strings or {"id": ...} objects."""
    hostler: List[Any] = []
    non_hostler: List[Any] = []


class AssignmentResponse(BaseModel):
    hostler: List[UserBrief] = []
    non_hostler: List[UserBrief] = []
