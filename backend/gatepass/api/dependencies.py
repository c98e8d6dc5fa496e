"""
Shared route dependencies: current user and capability checks.
"""
from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session
from gatepass.core.exceptions import AuthenticationError, ForbiddenError
from gatepass.core.permissions import Capability, has_capability
from gatepass.core.security import decode_access_token
from gatepass.db.session import get_db
from gatepass.models.user import User

bearer_scheme = HTTPBearer(auto_error=False)


def get_current_user(
    credentials: HTTPAuthorizationCredentials = Depends(bearer_scheme),
    db: Session = Depends(get_db)
) -> User:
    """Resolve the bearer token to an active user."""
    if credentials is None:
        raise AuthenticationError("No token, authorization denied")
    
    payload = decode_access_token(credentials.credentials)
    if not payload or "user_id" not in payload:
        raise AuthenticationError("Token is not valid")
    
    user = db.query(User).filter(User.id == payload["user_id"]).first()
    if not user:
        raise AuthenticationError("User no longer exists")
    if not user.is_active:
        raise ForbiddenError("User account is inactive")
    return user


def require_capability(capability: Capability):
    """Dependency factory: current user must hold ``capability``."""
    def checker(current_user: User = Depends(get_current_user)) -> User:
        if not has_capability(current_user.role, capability):
            raise ForbiddenError("Access forbidden: insufficient rights")
        return current_user
    return checker
