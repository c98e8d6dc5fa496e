"""
Visitor log routes.
"""
from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session
from typing import List, Optional
from gatepass.api.dependencies import require_capability
from gatepass.core.permissions import Capability
from gatepass.db.session import get_db
from gatepass.models.user import User
from gatepass.schemas.visitor import VisitorCreate, VisitorResponse, VisitorStatusUpdate
from gatepass.services import visitor_service

router = APIRouter(prefix="/guests", tags=["guests"])


@router.post("", response_model=VisitorResponse, status_code=status.HTTP_201_CREATED)
async def create_visitor(
    data: VisitorCreate,
    current_user: User = Depends(require_capability(Capability.LOG_VISITORS)),
    db: Session = Depends(get_db)
):
    """Log a visitor at the gate."""
    return visitor_service.create_visitor(
        db,
        current_user,
        name=data.name,
        cnic=data.cnic,
        visiting_office=data.visiting_office,
        vehicle_no=data.vehicle_no,
        created_at=data.created_at
    )


@router.get("", response_model=List[VisitorResponse])
async def list_visitors(
    q: Optional[str] = None,
    current_user: User = Depends(require_capability(Capability.LOG_VISITORS)),
    db: Session = Depends(get_db)
):
    """List or search visitors."""
    return visitor_service.search_visitors(db, q)


@router.put("/{visitor_id}", response_model=VisitorResponse)
async def update_visitor_status(
    visitor_id: int,
    data: VisitorStatusUpdate,
    current_user: User = Depends(require_capability(Capability.LOG_VISITORS)),
    db: Session = Depends(get_db)
):
    """Mark a visitor in or out."""
    return visitor_service.update_visitor_status(db, visitor_id, data.status)
