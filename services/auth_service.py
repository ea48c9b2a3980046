"""
Authentication service: registration, credential checks and cookie sessions.
"""
from datetime import datetime, timedelta
from typing import Optional, Tuple
from sqlalchemy.orm import Session

from database.models import User, UserType, Session as DBSession
from database.schemas import InsertUser, InsertSchool
from auth.security import verify_password, generate_session_key, hash_session_key
from services.storage_service import StorageService
from core.logger import logger
import config


class AuthService:
    """Service for authentication operations."""

    @staticmethod
    def register_user(db: Session, data: InsertUser) -> User:
        """
        Register a new user.

        School administrators also get a School row linked through school_id.
        That step is best-effort: if it fails the error is logged and the user
        is still returned.

        Raises:
            ValueError: Duplicate username/email or missing role-specific field
        """
        if StorageService.get_user_by_username(db, data.username):
            raise ValueError("Username already exists")
        if StorageService.get_user_by_email(db, str(data.email)):
            raise ValueError("Email already registered")

        if data.userType == UserType.SCHOOL.value and not data.schoolName:
            raise ValueError("School name is required for school admin accounts")
        if data.userType == UserType.AUTHORITY.value and not data.district:
            raise ValueError("District is required for authority accounts")

        user = StorageService.create_user(db, data)

        if user.user_type == UserType.SCHOOL and user.school_name:
            try:
                school = StorageService.create_school(db, InsertSchool(
                    name=user.school_name,
                    district=user.district or "Unknown",
                    category="Government",  # Default; editable later
                    address="",
                    pincode="",
                    adminId=user.id,
                    contactPhone=user.phone_number,
                    contactEmail=user.email,
                ))
                user = StorageService.update_user(db, user.id, {"school_id": school.id})
            except Exception as e:
                db.rollback()
                logger.error(f"Error creating school for user {user.id}: {e}", exc_info=True)

        return user

    @staticmethod
    def authenticate_user(db: Session, username: str, password: str) -> Optional[User]:
        """
        Check a username/password pair.

        Returns:
            User if authenticated, None otherwise
        """
        user = StorageService.get_user_by_username(db, username)
        if not user:
            return None
        if not verify_password(password, user.password):
            logger.warning(f"Failed login for user: {username}")
            return None
        return user

    @staticmethod
    def create_session(
        db: Session,
        user_id: int,
        ip_address: Optional[str] = None,
        user_agent: Optional[str] = None
    ) -> Tuple[str, DBSession]:
        """
        Create a new session for user.

        Returns:
            Tuple of (session_key, DBSession object); the key goes in the cookie
        """
        session_key, session_hash = generate_session_key()
        expires_at = datetime.utcnow() + timedelta(hours=config.SESSION_EXPIRE_HOURS)

        session = DBSession(
            user_id=user_id,
            session_hash=session_hash,
            ip_address=ip_address,
            user_agent=user_agent,
            expires_at=expires_at,
            is_active=True
        )
        db.add(session)
        db.commit()
        db.refresh(session)

        logger.info(f"Created session for user: {user_id}")
        return session_key, session

    @staticmethod
    def get_session_user(db: Session, session_key: str) -> Optional[User]:
        """Resolve a session cookie value to its user, or None if unknown/expired."""
        session = db.query(DBSession).filter(
            DBSession.session_hash == hash_session_key(session_key),
            DBSession.is_active == True
        ).first()
        if not session:
            return None
        if session.expires_at < datetime.utcnow():
            session.is_active = False
            db.commit()
            return None

        session.last_activity = datetime.utcnow()
        db.commit()
        return StorageService.get_user_by_id(db, session.user_id)

    @staticmethod
    def revoke_session(db: Session, session_key: str) -> bool:
        """Revoke a session."""
        session = db.query(DBSession).filter(
            DBSession.session_hash == hash_session_key(session_key),
            DBSession.is_active == True
        ).first()

        if not session:
            return False

        session.is_active = False
        db.commit()
        return True
