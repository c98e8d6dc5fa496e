"""
Cash settlement (challan) model bundling unbanked guest-house cash.
"""
from sqlalchemy import (
    Column, String, Date, DateTime, Numeric, ForeignKey, Integer,
    Enum as SQLEnum
)
from sqlalchemy.orm import relationship
from gatepass.db.base import BaseModel
import enum


class SettlementStatus(str, enum.Enum):
    """Settlement status enumeration."""
    PENDING = "pending"
    PAID = "paid"


class CashSettlement(BaseModel):
    """Numbered deposit slip covering one or more cash bookings."""
    __tablename__ = "cash_settlements"
    
    serial_no = Column(Integer, unique=True, nullable=False, index=True)
    
    depositor_name = Column(String(150), nullable=False, default="-")
    depositor_cnic = Column(String(13), nullable=False)
    
    amount = Column(Numeric(12, 2), nullable=False)  # Sum of bundled bills
    due_date = Column(Date, nullable=False)
    
    status = Column(
        SQLEnum(SettlementStatus, values_callable=lambda e: [s.value for s in e]),
        default=SettlementStatus.PENDING,
        nullable=False,
        index=True
    )
    method = Column(String(20), nullable=True)
    receipt_file = Column(String(255), nullable=True)  # Proof-of-deposit reference
    uploaded_at = Column(DateTime, nullable=True)
    created_by_id = Column(Integer, ForeignKey("users.id"), nullable=True)
    
    # Relationships
    bookings = relationship(
        "LodgingBooking",
        back_populates="settlement",
        order_by="LodgingBooking.id"
    )
    
    @property
    def booking_ids(self) -> list:
        return [b.id for b in self.bookings]
