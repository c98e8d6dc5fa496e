"""
Cash settlement (challan) routes.
"""
from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session
from typing import List, Optional
from gatepass.api.dependencies import require_capability
from gatepass.core.permissions import Capability
from gatepass.db.session import get_db
from gatepass.models.settlement import SettlementStatus
from gatepass.models.user import User
from gatepass.schemas.lodging import CashPendingResponse
from gatepass.schemas.settlement import SettlementClose, SettlementCreate, SettlementResponse
from gatepass.services import settlement_service
from gatepass.services.lodging_service import pending_cash_total

router = APIRouter(prefix="/settlements", tags=["settlements"])


@router.get("/pending-total", response_model=CashPendingResponse)
async def get_pending_total(
    current_user: User = Depends(require_capability(Capability.MANAGE_SETTLEMENTS)),
    db: Session = Depends(get_db)
):
    """Unbanked cash available for a new settlement."""
    return {"pending": pending_cash_total(db)}


@router.get("", response_model=List[SettlementResponse])
async def list_settlements(
    status: Optional[SettlementStatus] = None,
    current_user: User = Depends(require_capability(Capability.MANAGE_SETTLEMENTS)),
    db: Session = Depends(get_db)
):
    """List settlements, optionally by status."""
    return settlement_service.list_settlements(db, status)


@router.post("", response_model=SettlementResponse, status_code=status.HTTP_201_CREATED)
async def create_settlement(
    data: SettlementCreate,
    current_user: User = Depends(require_capability(Capability.MANAGE_SETTLEMENTS)),
    db: Session = Depends(get_db)
):
    """Bundle unbanked cash bookings into a new deposit slip."""
    return settlement_service.create_settlement(
        db,
        due_date=data.due_date,
        depositor_cnic=data.depositor_cnic,
        depositor_name=data.depositor_name,
        amount=data.amount,
        created_by=current_user
    )


@router.patch("/{settlement_id}/close", response_model=SettlementResponse)
async def close_settlement(
    settlement_id: int,
    data: Optional[SettlementClose] = None,
    current_user: User = Depends(require_capability(Capability.MANAGE_SETTLEMENTS)),
    db: Session = Depends(get_db)
):
    """Attach proof of deposit and mark the settlement paid."""
    receipt_file = data.receipt_file if data else None
    return settlement_service.close_settlement(db, settlement_id, receipt_file)
