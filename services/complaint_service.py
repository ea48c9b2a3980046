"""
Role-scoped complaint visibility.

Students see their own complaints, school administrators see complaints
against their school, authorities see everything (optionally narrowed to one
district).
"""
from typing import List, Optional
from sqlalchemy.orm import Session

from database.models import User, UserType, Complaint
from services.storage_service import StorageService


class ComplaintService:
    """Authorization rules over complaints."""

    @staticmethod
    def list_complaints(db: Session, actor: User, district: Optional[str] = None) -> List[Complaint]:
        """
        Complaints visible to `actor` in list views.

        Without a district filter, authorities get every district that has a
        stats row, in stats-row order; complaints from districts with no row
        are not listed.
        """
        if actor.user_type == UserType.STUDENT:
            return StorageService.get_complaints_by_user_id(db, actor.id)

        if actor.user_type == UserType.SCHOOL:
            return StorageService.get_complaints_by_school_id(db, actor.school_id)

        if actor.user_type == UserType.AUTHORITY:
            if district:
                return StorageService.get_complaints_by_district(db, district)
            complaints: List[Complaint] = []
            for stats in StorageService.get_all_district_stats(db):
                complaints.extend(StorageService.get_complaints_by_district(db, stats.district))
            return complaints

        return []

    @staticmethod
    def can_view(actor: User, complaint: Complaint) -> bool:
        """Detail, response and status access. Authorities may view any complaint."""
        if actor.user_type == UserType.AUTHORITY:
            return True
        if actor.user_type == UserType.STUDENT:
            return complaint.user_id == actor.id
        if actor.user_type == UserType.SCHOOL:
            return actor.school_id is not None and complaint.school_id == actor.school_id
        return False

    @staticmethod
    def can_update_status(actor: User, complaint: Complaint) -> bool:
        """Only school administrators (own school) and authorities change status."""
        if actor.user_type == UserType.STUDENT:
            return False
        return ComplaintService.can_view(actor, complaint)
