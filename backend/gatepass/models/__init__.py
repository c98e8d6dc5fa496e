"""Models package - Import all models for SQLAlchemy registration."""
from gatepass.models.user import User
from gatepass.models.assignment import AssignmentConfig, HostelConfig, HostelConfigAlt
from gatepass.models.leave_request import (
    LeaveRequest, LeaveRequestApprover, RequestStatus, TransportMode
)
from gatepass.models.visitor import VisitorLog, VisitorStatus
from gatepass.models.lodging import LodgingBooking, BookingStatus, GuestType, PaymentMethod
from gatepass.models.settlement import CashSettlement, SettlementStatus

__all__ = [
    "User",
    "AssignmentConfig",
    "HostelConfig",
    "HostelConfigAlt",
    "LeaveRequest",
    "LeaveRequestApprover",
    "RequestStatus",
    "TransportMode",
    "VisitorLog",
    "VisitorStatus",
    "LodgingBooking",
    "BookingStatus",
    "GuestType",
    "PaymentMethod",
    "CashSettlement",
    "SettlementStatus",
]
