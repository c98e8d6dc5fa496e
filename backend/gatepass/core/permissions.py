"""
Roles and the capabilities each role holds.
"""
import enum
from typing import FrozenSet


class Role(str, enum.Enum):
    """User role enumeration."""
    STUDENT = "student"
    WARDEN = "warden"
    GATEKEEPER = "gatekeeper"
    VC_OFFICE = "vc-office"
    GUEST_HOUSE = "guest-house"
    ADMIN = "admin"
    SUPERADMIN = "superadmin"


class Capability(str, enum.Enum):
    """Actions a route may require of the current user."""
    SUBMIT_REQUEST = "submit_request"
    DECIDE_REQUEST = "decide_request"
    RECORD_GATE = "record_gate"
    VIEW_ALL_REQUESTS = "view_all_requests"
    LOG_VISITORS = "log_visitors"
    MANAGE_LODGING = "manage_lodging"
    MANAGE_SETTLEMENTS = "manage_settlements"
    MANAGE_ASSIGNMENTS = "manage_assignments"


ROLE_CAPABILITIES = {
    Role.STUDENT: frozenset({Capability.SUBMIT_REQUEST}),
    Role.WARDEN: frozenset({Capability.DECIDE_REQUEST}),
    Role.GATEKEEPER: frozenset({
        Capability.RECORD_GATE,
        Capability.LOG_VISITORS,
        Capability.MANAGE_SETTLEMENTS,
    }),
    Role.VC_OFFICE: frozenset({
        Capability.LOG_VISITORS,
        Capability.MANAGE_LODGING,
        Capability.MANAGE_SETTLEMENTS,
    }),
    Role.GUEST_HOUSE: frozenset({
        Capability.LOG_VISITORS,
        Capability.MANAGE_LODGING,
        Capability.MANAGE_SETTLEMENTS,
    }),
    Role.ADMIN: frozenset({
        Capability.VIEW_ALL_REQUESTS,
        Capability.LOG_VISITORS,
        Capability.MANAGE_SETTLEMENTS,
        Capability.MANAGE_ASSIGNMENTS,
    }),
    # Superadmin overrides every check
    Role.SUPERADMIN: frozenset(Capability),
}


def capabilities_for(role: Role) -> FrozenSet[Capability]:
    return ROLE_CAPABILITIES.get(Role(role), frozenset())


def has_capability(role: Role, capability: Capability) -> bool:
    """Check whether a role grants a capability."""
    return capability in capabilities_for(role)
