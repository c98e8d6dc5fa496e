"""
Approver assignment configuration.

Three physical sources exist: the current ``assignment_configs`` table written
by the admin endpoints, and two legacy ``hostel_configs`` tables kept for older
deployments. Identity lists are stored as JSON and may hold ints, numeric
strings or embedded ``{"id": ...}`` objects.
"""
from sqlalchemy import Column, JSON
from gatepass.db.base import BaseModel


class AssignmentConfig(BaseModel):
    """Current approver assignment. Each edit appends a new record."""
    __tablename__ = "assignment_configs"
    
    hostler = Column(JSON, nullable=False, default=list)
    non_hostler = Column(JSON, nullable=False, default=list)


class LegacyConfigMixin:
    """Shape shared by the legacy hostel config tables."""
    hostler = Column(JSON, nullable=True)
    non_hostler = Column(JSON, nullable=True)
    
    # Back-compat field names from older releases
    hostler_warden_ids = Column(JSON, nullable=True)
    non_hostler_warden_ids = Column(JSON, nullable=True)


class HostelConfig(LegacyConfigMixin, BaseModel):
    """Legacy assignment source."""
    __tablename__ = "hostel_configs"


class HostelConfigAlt(LegacyConfigMixin, BaseModel):
    """Legacy mirror of ``hostel_configs`` kept under a separate table."""
    __tablename__ = "hostel_configs_alt"
