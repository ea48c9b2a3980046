"""
Append-only audit trail of logins, registrations and complaint/mentorship writes.
"""
from typing import Optional, Dict, Any, List
from sqlalchemy.orm import Session
from fastapi import Request

from database.models import AuditLog
from core.logger import logger


class AuditService:
    """Writes and reads audit_logs rows."""

    @staticmethod
    def log_from_request(
        db: Session,
        request: Request,
        action: str,
        user_id: Optional[int] = None,
        resource_type: Optional[str] = None,
        resource_id: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None
    ) -> Optional[AuditLog]:
        """
        Record `action` with the caller's IP address and user agent.

        A failed audit write is logged and never fails the request that
        triggered it; the caller's own changes are already committed.

        Args:
            db: Database session
            request: Incoming request (source of IP and user agent)
            action: e.g. "login", "complaint_create", "complaint_status_update"
            user_id: Acting user, if known
            resource_type: "user", "complaint", "alumni" or "connection"
            resource_id: Primary key of the resource, as a string
            details: Extra JSON payload

        Returns:
            The stored AuditLog, or None when the write failed
        """
        entry = AuditLog(
            user_id=user_id,
            action=action,
            resource_type=resource_type,
            resource_id=resource_id,
            ip_address=request.client.host if request.client else None,
            user_agent=request.headers.get("user-agent"),
            details=details
        )
        try:
            db.add(entry)
            db.commit()
        except Exception as e:
            db.rollback()
            logger.error(f"Audit write failed for {action}: {e}", exc_info=True)
            return None
        return entry

    @staticmethod
    def get_logs_for_resource(db: Session, resource_type: str, resource_id: str) -> List[AuditLog]:
        """Audit entries for one resource, oldest first."""
        return db.query(AuditLog).filter(
            AuditLog.resource_type == resource_type,
            AuditLog.resource_id == resource_id
        ).order_by(AuditLog.id).all()
