"""
Authentication APIs: login, registration, session lookup and logout.
"""
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, status, Request, Response, Security
from sqlalchemy.orm import Session
from pydantic import BaseModel

from database.models import User
from database.schemas import InsertUser, user_to_dict
from auth.dependencies import get_db_session, get_current_user_optional, session_cookie
from services.auth_service import AuthService
from services.audit_service import AuditService
from core.logger import logger
import config


router = APIRouter(prefix="/api/auth", tags=["auth"])


class LoginRequest(BaseModel):
    """Login request."""
    username: str
    password: str


def _start_session(db: Session, request: Request, response: Response, user: User) -> None:
    """Create a server-side session and hand its key to the client as a cookie."""
    session_key, _ = AuthService.create_session(
        db=db,
        user_id=user.id,
        ip_address=request.client.host if request.client else None,
        user_agent=request.headers.get("user-agent")
    )
    response.set_cookie(
        key=config.SESSION_COOKIE_NAME,
        value=session_key,
        max_age=config.SESSION_EXPIRE_HOURS * 3600,
        httponly=True,
        samesite="lax",
        secure=config.SESSION_COOKIE_SECURE,
    )


@router.post("/login")
async def login(
    credentials: LoginRequest,
    request: Request,
    response: Response,
    db: Session = Depends(get_db_session)
):
    """Login with username + password. Sets the session cookie and returns the user."""
    user = AuthService.authenticate_user(db, credentials.username, credentials.password)

    if not user:
        AuditService.log_from_request(
            db=db,
            request=request,
            action="login_failed",
            resource_type="user",
            details={"username": credentials.username}
        )
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid username or password"
        )

    _start_session(db, request, response, user)
    AuditService.log_from_request(
        db=db,
        request=request,
        action="login",
        user_id=user.id,
        resource_type="user",
        resource_id=str(user.id)
    )
    return user_to_dict(user)


@router.post("/register", status_code=status.HTTP_201_CREATED)
async def register(
    user_data: InsertUser,
    request: Request,
    response: Response,
    db: Session = Depends(get_db_session)
):
    """
    Register a student, school administrator or authority account.
    The new user is logged in immediately.
    """
    try:
        user = AuthService.register_user(db, user_data)
    except ValueError as e:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=str(e)
        )

    _start_session(db, request, response, user)
    AuditService.log_from_request(
        db=db,
        request=request,
        action="register",
        user_id=user.id,
        resource_type="user",
        resource_id=str(user.id),
        details={"userType": user.user_type.value}
    )
    logger.info(f"Registered {user.user_type.value} account: {user.username}")
    return user_to_dict(user)


@router.get("/session")
async def get_session(current_user: Optional[User] = Depends(get_current_user_optional)):
    """Return the logged-in user, or 401."""
    if current_user is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated"
        )
    return user_to_dict(current_user)


@router.post("/logout")
async def logout(
    request: Request,
    response: Response,
    session_key: Optional[str] = Security(session_cookie),
    current_user: Optional[User] = Depends(get_current_user_optional),
    db: Session = Depends(get_db_session)
):
    """Invalidate the session (if any) and clear the cookie."""
    if session_key:
        AuthService.revoke_session(db, session_key)
    if current_user:
        AuditService.log_from_request(
            db=db,
            request=request,
            action="logout",
            user_id=current_user.id,
            resource_type="user",
            resource_id=str(current_user.id)
        )
    response.delete_cookie(config.SESSION_COOKIE_NAME)
    return {"message": "Logged out successfully"}
