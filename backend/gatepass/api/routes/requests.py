"""
Leave request routes for students, wardens, gate staff and admins.
"""
from fastapi import APIRouter, BackgroundTasks, Depends, status
from sqlalchemy.orm import Session
from typing import List, Optional
from gatepass.api.dependencies import require_capability
from gatepass.core.permissions import Capability
from gatepass.db.session import get_db
from gatepass.models.leave_request import RequestStatus
from gatepass.models.user import User
from gatepass.schemas.leave_request import (
    GateEvent, LeaveRequestCreate, LeaveRequestResponse, RequestDecision
)
from gatepass.services import request_service
from gatepass.services.assignment_service import AssignmentResolver, get_resolver
from gatepass.services.notification_service import NotificationPort, get_notifier

router = APIRouter(prefix="/requests", tags=["requests"])


@router.post("", response_model=LeaveRequestResponse, status_code=status.HTTP_201_CREATED)
async def create_request(
    data: LeaveRequestCreate,
    background_tasks: BackgroundTasks,
    current_user: User = Depends(require_capability(Capability.SUBMIT_REQUEST)),
    db: Session = Depends(get_db),
    resolver: AssignmentResolver = Depends(get_resolver),
    notifier: NotificationPort = Depends(get_notifier)
):
    """Submit a leave request; approvers are resolved and frozen now."""
    request, notifications = request_service.create_request(
        db,
        current_user,
        leave_for=data.leave_for,
        pick_up_with=data.pick_up_with,
        transport=data.transport,
        scheduled_at=data.scheduled_at,
        vehicle_no=data.vehicle_no,
        driver_name=data.driver_name,
        resolver=resolver,
        notifier=notifier
    )
    for notify in notifications:
        background_tasks.add_task(notify)
    return request


@router.get("", response_model=List[LeaveRequestResponse])
async def list_own_requests(
    current_user: User = Depends(require_capability(Capability.SUBMIT_REQUEST)),
    db: Session = Depends(get_db)
):
    """List the current student's requests."""
    return request_service.list_own_requests(db, current_user)


@router.get("/approver", response_model=List[LeaveRequestResponse])
async def list_approver_requests(
    status: Optional[RequestStatus] = None,
    current_user: User = Depends(require_capability(Capability.DECIDE_REQUEST)),
    db: Session = Depends(get_db)
):
    """List requests frozen onto the current warden."""
    return request_service.list_approver_requests(db, current_user, status)


@router.put("/approver/{request_id}", response_model=LeaveRequestResponse)
async def decide_request(
    request_id: int,
    decision: RequestDecision,
    background_tasks: BackgroundTasks,
    current_user: User = Depends(require_capability(Capability.DECIDE_REQUEST)),
    db: Session = Depends(get_db),
    notifier: NotificationPort = Depends(get_notifier)
):
    """Approve or reject a pending request."""
    request, notifications = request_service.decide_request(
        db,
        request_id,
        current_user,
        decision.status,
        notifier=notifier,
        comment=decision.approver_comment
    )
    for notify in notifications:
        background_tasks.add_task(notify)
    return request


@router.get("/gate", response_model=List[LeaveRequestResponse])
async def list_gate_requests(
    current_user: User = Depends(require_capability(Capability.RECORD_GATE)),
    db: Session = Depends(get_db)
):
    """Requests awaiting exit or return."""
    return request_service.list_gate_requests(db)


@router.put("/gate/{request_id}", response_model=LeaveRequestResponse)
async def record_gate_event(
    request_id: int,
    event: GateEvent,
    background_tasks: BackgroundTasks,
    current_user: User = Depends(require_capability(Capability.RECORD_GATE)),
    db: Session = Depends(get_db),
    notifier: NotificationPort = Depends(get_notifier)
):
    """Mark a student out (approved → out) or back in (out → in)."""
    request, notifications = request_service.record_gate_event(
        db, request_id, event.status, notifier=notifier
    )
    for notify in notifications:
        background_tasks.add_task(notify)
    return request


@router.get("/admin", response_model=List[LeaveRequestResponse])
async def list_all_requests(
    current_user: User = Depends(require_capability(Capability.VIEW_ALL_REQUESTS)),
    db: Session = Depends(get_db)
):
    """List every request."""
    return request_service.list_all_requests(db)
