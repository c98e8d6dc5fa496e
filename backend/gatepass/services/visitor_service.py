"""
Visitor log workflow: pending → in / out.

Both "in" and "out" are reachable directly from pending; "out" without a
prior "in" is a logging-only entry. Each timestamp is written only the first
time its status is reached.
"""
from datetime import datetime
from typing import List, Optional
import logging
from sqlalchemy import or_
from sqlalchemy.orm import Session
from gatepass.core.exceptions import NotFoundError, ValidationError
from gatepass.core.utils import is_valid_cnic
from gatepass.models.user import User
from gatepass.models.visitor import VisitorLog, VisitorStatus

logger = logging.getLogger(__name__)


def create_visitor(
    db: Session,
    recorded_by: User,
    name: str,
    cnic: str,
    visiting_office: str,
    vehicle_no: Optional[str] = None,
    created_at: Optional[datetime] = None
) -> VisitorLog:
    """Log a new visitor in pending state."""
    if not (name or "").strip() or not cnic or not (visiting_office or "").strip():
        raise ValidationError("name, cnic & visitingOffice are required")
    if not is_valid_cnic(cnic):
        raise ValidationError("CNIC must be 13 digits")

    visitor = VisitorLog(
        name=name.strip(),
        cnic=cnic,
        visiting_office=visiting_office.strip(),
        vehicle_no=(vehicle_no or "").strip() or "-",
        recorded_by_id=recorded_by.id,
        status=VisitorStatus.PENDING,
    )
    if created_at:
        # Back-dated entries typed in from a paper register
        visitor.created_at = created_at
    db.add(visitor)
    db.commit()
    db.refresh(visitor)
    return visitor


def search_visitors(db: Session, q: Optional[str] = None) -> List[VisitorLog]:
    """List visitors, newest first, optionally matching ``q`` case-insensitively."""
    query = db.query(VisitorLog)
    if q:
        pattern = f"%{q.lower()}%"
        query = query.filter(or_(
            VisitorLog.name.ilike(pattern),
            VisitorLog.cnic.ilike(pattern),
            VisitorLog.visiting_office.ilike(pattern),
            VisitorLog.vehicle_no.ilike(pattern),
        ))
    return query.order_by(VisitorLog.created_at.desc(), VisitorLog.id.desc()).all()


def update_visitor_status(db: Session, visitor_id: int, status: VisitorStatus) -> VisitorLog:
    """Mark a visitor in or out. Repeats are accepted; timestamps keep their first value."""
    status = VisitorStatus(status)
    if status not in (VisitorStatus.IN, VisitorStatus.OUT):
        raise ValidationError("Bad status value")

    visitor = db.query(VisitorLog).filter(VisitorLog.id == visitor_id).first()
    if not visitor:
        raise NotFoundError("Guest not found")

    now = datetime.now()
    if status == VisitorStatus.IN and visitor.in_at is None:
        visitor.in_at = now
    if status == VisitorStatus.OUT and visitor.out_at is None:
        visitor.out_at = now

    visitor.status = status
    db.commit()
    db.refresh(visitor)
    logger.debug(f"Visitor {visitor.id} marked {status.value}")
    return visitor
