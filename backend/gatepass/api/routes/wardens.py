"""
Warden listing and approver assignment routes.
"""
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from typing import List
from gatepass.api.dependencies import require_capability
from gatepass.core.permissions import Capability, Role
from gatepass.db.session import get_db
from gatepass.models.user import User
from gatepass.schemas.assignment import AssignmentResponse, AssignmentUpdate
from gatepass.schemas.user import UserBrief
from gatepass.services import assignment_service

router = APIRouter(prefix="/wardens", tags=["wardens"])


def _users_in_order(db: Session, ids: List[int]) -> List[User]:
    if not ids:
        return []
    users = {u.id: u for u in db.query(User).filter(User.id.in_(ids)).all()}
    return [users[i] for i in ids if i in users]


@router.get("", response_model=List[UserBrief])
async def list_wardens(
    current_user: User = Depends(require_capability(Capability.MANAGE_ASSIGNMENTS)),
    db: Session = Depends(get_db)
):
    """List all wardens for the assignment picker."""
    return db.query(User).filter(User.role == Role.WARDEN).order_by(User.full_name).all()


@router.get("/assignments", response_model=AssignmentResponse)
async def get_assignments(
    current_user: User = Depends(require_capability(Capability.MANAGE_ASSIGNMENTS)),
    db: Session = Depends(get_db)
):
    """Current primary assignment."""
    config = assignment_service.get_current_assignments(db)
    return {
        "hostler": _users_in_order(db, assignment_service.normalize_approver_ids(config.hostler)),
        "non_hostler": _users_in_order(db, assignment_service.normalize_approver_ids(config.non_hostler)),
    }


@router.put("/assignments", response_model=AssignmentResponse)
async def update_assignments(
    data: AssignmentUpdate,
    current_user: User = Depends(require_capability(Capability.MANAGE_ASSIGNMENTS)),
    db: Session = Depends(get_db)
):
    """Save a new assignment. Requests already submitted keep their approvers."""
    config = assignment_service.update_assignments(db, data.hostler, data.non_hostler)
    return {
        "hostler": _users_in_order(db, config.hostler),
        "non_hostler": _users_in_order(db, config.non_hostler),
    }
