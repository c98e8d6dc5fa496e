"""
Authentication routes.
"""
import logging
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from gatepass.core.exceptions import AuthenticationError, ForbiddenError
from gatepass.core.security import create_user_token, verify_password
from gatepass.db.session import get_db
from gatepass.models.user import User
from gatepass.schemas.user import UserLogin, Token

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["auth"])


@router.post("/login", response_model=Token)
async def login(credentials: UserLogin, db: Session = Depends(get_db)):
    """Login and get JWT token."""
    user = db.query(User).filter(User.username == credentials.username).first()
    
    if not user or not verify_password(credentials.password, user.hashed_password):
        raise AuthenticationError("Incorrect username or password")
    
    if not user.is_active:
        raise ForbiddenError("User account is inactive")
    
    logger.info(f"User {user.id} ({user.role.value}) logged in")
    return {"access_token": create_user_token(user), "token_type": "bearer"}
