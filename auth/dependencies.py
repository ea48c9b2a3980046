"""
Authentication dependencies for FastAPI.
"""
from typing import Optional
from fastapi import Depends, HTTPException, status, Security
from fastapi.security import APIKeyCookie
from sqlalchemy.orm import Session

from database.models import User
from services.auth_service import AuthService
import config


session_cookie = APIKeyCookie(name=config.SESSION_COOKIE_NAME, auto_error=False)


def get_db_session():
    """Get database session."""
    if not config.db:
        raise HTTPException(status_code=503, detail="Database not initialized")
    with config.db.get_session() as session:
        yield session


async def get_current_user_optional(
    session_key: Optional[str] = Security(session_cookie),
    db: Session = Depends(get_db_session)
) -> Optional[User]:
    """
    Get current user if the session cookie is valid, otherwise None.

    Args:
        session_key: Session cookie value
        db: Database session

    Returns:
        Current user or None
    """
    if not session_key:
        return None
    return AuthService.get_session_user(db, session_key)


async def get_current_user(
    user: Optional[User] = Depends(get_current_user_optional)
) -> User:
    """
    Get current authenticated user from the session cookie.

    Raises:
        HTTPException: 401 if there is no valid session
    """
    if user is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Unauthorized",
        )
    return user


def require_role(allowed_roles: list[str]):
    """
    Dependency factory for role-based access control.

    Args:
        allowed_roles: List of allowed user types

    Returns:
        Dependency function
    """
    async def role_checker(
        current_user: User = Depends(get_current_user)
    ) -> User:
        if current_user.user_type.value not in allowed_roles:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="Forbidden"
            )
        return current_user

    return role_checker


require_student = require_role(["student"])
