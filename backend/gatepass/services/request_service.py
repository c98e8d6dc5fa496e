"""
Leave request workflow.

    pending --(warden)--> approved | rejected
    approved --(gatekeeper)--> out
    out --(gatekeeper)--> in

The approver set is resolved once at creation and frozen on the request.
Notifications are returned as callables for the route to schedule after the
transition has committed.
"""
from datetime import datetime
from typing import Callable, List, Optional, Tuple
import logging
from sqlalchemy.orm import Session
from gatepass.core.exceptions import (
    ForbiddenError, InvalidTransitionError, NoApproversError, NotFoundError, ValidationError
)
from gatepass.core.permissions import Role
from gatepass.core.utils import format_timestamp
from gatepass.models.leave_request import (
    LeaveRequest, LeaveRequestApprover, RequestStatus, TransportMode
)
from gatepass.models.user import User
from gatepass.services.assignment_service import (
    AssignmentResolver, CATEGORIES, normalize_category
)
from gatepass.services.notification_service import NotificationPort, dispatch

logger = logging.getLogger(__name__)

# (from, to) -> role allowed to drive the transition
TRANSITIONS = {
    (RequestStatus.PENDING, RequestStatus.APPROVED): Role.WARDEN,
    (RequestStatus.PENDING, RequestStatus.REJECTED): Role.WARDEN,
    (RequestStatus.APPROVED, RequestStatus.OUT): Role.GATEKEEPER,
    (RequestStatus.OUT, RequestStatus.IN): Role.GATEKEEPER,
}

DECISION_STATUSES = (RequestStatus.APPROVED, RequestStatus.REJECTED)
GATE_STATUSES = (RequestStatus.OUT, RequestStatus.IN)

Notification = Callable[[], None]


def check_transition(current: RequestStatus, target: RequestStatus, role: Role) -> None:
    """Raise unless ``role`` may move a request from ``current`` to ``target``."""
    allowed_role = TRANSITIONS.get((RequestStatus(current), RequestStatus(target)))
    if allowed_role is None or allowed_role != role:
        raise InvalidTransitionError(
            RequestStatus(current).value,
            RequestStatus(target).value,
            f"Only {' / '.join(_describe(role))} allowed, request is '{RequestStatus(current).value}'"
        )


def _describe(role: Role) -> List[str]:
    return [f"{a.value} → {b.value}" for (a, b), r in TRANSITIONS.items() if r == role]


def format_details(request: LeaveRequest) -> str:
    """Plain-text summary used in notification bodies."""
    return "\n".join([
        f"Reason       : {request.leave_for}",
        f"Leaving with : {request.pick_up_with}",
        f"Transport    : {TransportMode(request.transport).value}",
        f"Vehicle No   : {request.vehicle_no}",
        f"Date & Time  : {format_timestamp(request.scheduled_at)}",
    ])


def get_request(db: Session, request_id: int) -> LeaveRequest:
    request = db.query(LeaveRequest).filter(LeaveRequest.id == request_id).first()
    if not request:
        raise NotFoundError("Request not found")
    return request


def create_request(
    db: Session,
    requester: User,
    leave_for: str,
    pick_up_with: str,
    transport: TransportMode,
    scheduled_at: datetime,
    resolver: AssignmentResolver,
    notifier: NotificationPort,
    vehicle_no: Optional[str] = None,
    driver_name: Optional[str] = None
) -> Tuple[LeaveRequest, List[Notification]]:
    """
    Create a leave request and freeze its approver set.

    Returns the request and the notifications to send once it is committed.
    """
    if not (leave_for or "").strip() or not (pick_up_with or "").strip() or not transport or not scheduled_at:
        raise ValidationError("Missing required fields")

    transport = TransportMode(transport)
    if transport == TransportMode.PRIVATE and not ((vehicle_no or "").strip() and (driver_name or "").strip()):
        raise ValidationError("Vehicle & driver required for private transport")

    category = normalize_category(requester.category)
    if category not in CATEGORIES:
        raise ValidationError("Your hostelType is not set (hostler / non-hostler).")

    resolution = resolver.resolve(db, category)
    if not resolution.approver_ids:
        raise NoApproversError(f"No wardens configured for {category}. Please contact admin.")
    if resolution.fallback:
        logger.warning(
            f"Request by user {requester.id} routed to all wardens: no assignment for '{category}'"
        )

    request = LeaveRequest(
        requester_id=requester.id,
        student_id=requester.student_id or "N/A",
        name=requester.full_name,
        email=requester.email,
        leave_for=leave_for.strip(),
        pick_up_with=pick_up_with.strip(),
        transport=transport,
        vehicle_no="-" if transport == TransportMode.PUBLIC else vehicle_no.strip(),
        driver_name="-" if transport == TransportMode.PUBLIC else driver_name.strip(),
        scheduled_at=scheduled_at,
        status=RequestStatus.PENDING,
        category=category,
    )
    request.approvers = [LeaveRequestApprover(approver_id=i) for i in resolution.approver_ids]
    db.add(request)
    db.commit()
    db.refresh(request)
    logger.info(f"Leave request {request.id} created, approvers={request.approver_ids} via {resolution.source}")

    approvers = db.query(User).filter(User.id.in_(request.approver_ids)).all()
    recipients = [a.email for a in approvers if a.email]
    notifications = []
    if recipients:
        body = (
            "Dear Warden,\n\n"
            "A student has submitted a new leave request.\n\n"
            f"Student  : {request.name} ({request.student_id})\n"
            f"E-mail   : {request.email}\n"
            f"Hostel   : {category}\n\n"
            f"{format_details(request)}\n\n"
            "Please log in to approve or reject.\n\nThank you."
        )
        notifications.append(
            lambda: dispatch(notifier.send_email, recipients, "New Leave Request Submitted", body)
        )
    return request, notifications


def list_own_requests(db: Session, requester: User) -> List[LeaveRequest]:
    return db.query(LeaveRequest).filter(
        LeaveRequest.requester_id == requester.id
    ).order_by(LeaveRequest.scheduled_at.desc()).all()


def list_approver_requests(
    db: Session,
    approver: User,
    status: Optional[RequestStatus] = None
) -> List[LeaveRequest]:
    """Requests whose frozen approver set includes ``approver``."""
    query = db.query(LeaveRequest).join(LeaveRequestApprover).filter(
        LeaveRequestApprover.approver_id == approver.id
    )
    if status:
        query = query.filter(LeaveRequest.status == status)
    return query.order_by(LeaveRequest.scheduled_at.desc()).all()


def list_gate_requests(db: Session) -> List[LeaveRequest]:
    """Requests gate staff act on: approved (awaiting exit) or out."""
    return db.query(LeaveRequest).filter(
        LeaveRequest.status.in_([RequestStatus.APPROVED, RequestStatus.OUT])
    ).order_by(LeaveRequest.scheduled_at.desc()).all()


def list_all_requests(db: Session) -> List[LeaveRequest]:
    return db.query(LeaveRequest).order_by(LeaveRequest.scheduled_at.desc()).all()


def decide_request(
    db: Session,
    request_id: int,
    approver: User,
    status: RequestStatus,
    notifier: NotificationPort,
    comment: Optional[str] = None
) -> Tuple[LeaveRequest, List[Notification]]:
    """Approve or reject a pending request. Only frozen approvers may decide."""
    request = get_request(db, request_id)

    if approver.id not in request.approver_ids:
        raise ForbiddenError("Not allowed for this request")

    status = RequestStatus(status)
    if status not in DECISION_STATUSES:
        raise ValidationError("Invalid status")
    check_transition(request.status, status, Role.WARDEN)

    request.status = status
    request.decided_by_id = approver.id
    request.decided_at = datetime.now()
    if comment is not None:
        request.approver_comment = str(comment)
    db.commit()
    db.refresh(request)
    logger.info(f"Leave request {request.id} {status.value} by warden {approver.id}")

    verdict = status.value.upper()
    body = (
        f"Dear {request.name},\n\n"
        f"Your leave request has been {verdict}.\n\n"
        f"{format_details(request)}\n\n"
        f"Warden's comment:\n{request.approver_comment or '-'}\n\nThank you."
    )
    subject = f"Your leave request has been {verdict}"
    recipient = request.email
    notifications = [lambda: dispatch(notifier.send_email, [recipient], subject, body)]
    return request, notifications


def record_gate_event(
    db: Session,
    request_id: int,
    status: RequestStatus,
    notifier: NotificationPort
) -> Tuple[LeaveRequest, List[Notification]]:
    """Record a physical exit (approved → out) or return (out → in)."""
    status = RequestStatus(status)
    if status not in GATE_STATUSES:
        raise ValidationError("Bad status")

    request = get_request(db, request_id)
    check_transition(request.status, status, Role.GATEKEEPER)

    now = datetime.now()
    request.status = status
    if status == RequestStatus.OUT:
        request.exited_at = now
    else:
        request.returned_at = now
    db.commit()
    db.refresh(request)
    logger.info(f"Leave request {request.id} marked {status.value} at gate")

    guardian = request.requester.guardian_contact if request.requester else None
    if not guardian:
        return request, []

    message = gate_message(request, status, now)
    return request, [lambda: dispatch(notifier.send_sms, guardian, message)]


def gate_message(request: LeaveRequest, status: RequestStatus, when: datetime) -> str:
    """SMS text sent to the guardian on exit or return."""
    stamp = format_timestamp(when)
    if status == RequestStatus.OUT:
        if request.transport == TransportMode.PRIVATE:
            transport = f"by Private Transport (Vehicle {request.vehicle_no}, Driver {request.driver_name})"
        else:
            transport = "by Public Transport"
        return (
            f"Dear Parent/Guardian, {request.name} ({request.student_id}) has LEFT the campus "
            f"{transport}. Reason: {request.leave_for}. on {stamp}"
        )
    return (
        f"Dear Parent/Guardian, {request.name} ({request.student_id}) has RETURNED and "
        f"CHECKED-IN at the campus on {stamp}."
    )
