"""
Storage service: get/create/update for every entity, plus the district
aggregate recomputation that runs after each complaint mutation.
"""
import math
import random
import secrets
import string
from datetime import datetime
from typing import Any, Dict, Iterable, List, Optional

from sqlalchemy.orm import Session

from database.models import (
    User, School, Complaint, ComplaintResponse, Alumni, AlumniConnection,
    AlumniResponse, DistrictStats, UserType, ComplaintStatus,
)
from database.schemas import (
    InsertUser, InsertSchool, InsertComplaint, InsertComplaintResponse,
    InsertAlumni, InsertAlumniConnection, InsertAlumniResponse, InsertDistrictStats,
)
from auth.security import get_password_hash
from core.logger import logger
import config


TOKEN_ALPHABET = string.ascii_uppercase + string.digits
SECONDS_PER_DAY = 60 * 60 * 24


def generate_token_id(year: Optional[int] = None) -> str:
    """Human-readable complaint reference, e.g. KA2024-7QXD."""
    year = year or datetime.utcnow().year
    code = "".join(secrets.choice(TOKEN_ALPHABET) for _ in range(4))
    return f"KA{year}-{code}"


def compute_district_aggregates(complaints: Iterable[Complaint]) -> Dict[str, Any]:
    """
    Aggregate a district's complaints into the district_stats counters.

    Resolution time is updated_at - created_at of resolved complaints, in days,
    averaged and rounded half-up. Top categories keep first-seen order on ties.
    """
    complaints = list(complaints)
    total = len(complaints)
    resolved = [c for c in complaints if c.status == ComplaintStatus.RESOLVED]

    category_counts: Dict[str, int] = {}
    for complaint in complaints:
        category_counts[complaint.category] = category_counts.get(complaint.category, 0) + 1
    # sorted() is stable, so equal counts stay in first-encountered order
    ranked = sorted(category_counts.items(), key=lambda item: item[1], reverse=True)
    top_categories = [{"category": category, "count": count} for category, count in ranked[:3]]

    total_days = 0.0
    resolved_count = 0
    for complaint in resolved:
        if not complaint.created_at or not complaint.updated_at:
            continue
        total_days += (complaint.updated_at - complaint.created_at).total_seconds() / SECONDS_PER_DAY
        resolved_count += 1
    avg_resolution_time = int(math.floor(total_days / resolved_count + 0.5)) if resolved_count else 0

    return {
        "total_complaints": total,
        "resolved_complaints": len(resolved),
        "pending_complaints": total - len(resolved),
        "avg_resolution_time": avg_resolution_time,
        "top_categories": top_categories,
    }


class StorageService:
    """Repository over the SQLAlchemy session; every write commits."""

    # ------------------------------------------------------------------
    # Users
    # ------------------------------------------------------------------

    @staticmethod
    def get_user_by_id(db: Session, user_id: int) -> Optional[User]:
        return db.query(User).filter(User.id == user_id).first()

    @staticmethod
    def get_user_by_username(db: Session, username: str) -> Optional[User]:
        return db.query(User).filter(User.username == username).first()

    @staticmethod
    def get_user_by_email(db: Session, email: str) -> Optional[User]:
        return db.query(User).filter(User.email == email).first()

    @staticmethod
    def create_user(db: Session, data: InsertUser) -> User:
        """Create a user; the plain password in `data` is hashed here."""
        user = User(
            username=data.username,
            password=get_password_hash(data.password),
            email=str(data.email),
            name=data.name,
            user_type=UserType(data.userType),
            district=data.district or None,
            school_id=data.schoolId or None,
            school_name=data.schoolName or None,
            class_info=data.classInfo or None,
            designation=data.designation or None,
            phone_number=data.phoneNumber or None,
            profile_picture=data.profilePicture or None,
        )
        db.add(user)
        db.commit()
        db.refresh(user)
        logger.info(f"Created user: {user.username} (type: {user.user_type.value})")
        return user

    @staticmethod
    def update_user(db: Session, user_id: int, updates: Dict[str, Any]) -> Optional[User]:
        """Apply column updates (snake_case keys). Returns None if the user is missing."""
        user = StorageService.get_user_by_id(db, user_id)
        if not user:
            return None
        for field, value in updates.items():
            if field == "password":
                value = get_password_hash(value)
            setattr(user, field, value)
        db.commit()
        db.refresh(user)
        return user

    # ------------------------------------------------------------------
    # Schools
    # ------------------------------------------------------------------

    @staticmethod
    def get_school_by_id(db: Session, school_id: int) -> Optional[School]:
        return db.query(School).filter(School.id == school_id).first()

    @staticmethod
    def get_schools_by_district(db: Session, district: str) -> List[School]:
        return db.query(School).filter(School.district == district).order_by(School.id).all()

    @staticmethod
    def list_schools(db: Session) -> List[School]:
        return db.query(School).order_by(School.id).all()

    @staticmethod
    def create_school(db: Session, data: InsertSchool) -> School:
        school = School(
            name=data.name,
            district=data.district,
            address=data.address,
            pincode=data.pincode,
            category=data.category,
            admin_id=data.adminId,
            contact_phone=data.contactPhone,
            contact_email=data.contactEmail,
        )
        db.add(school)
        db.commit()
        db.refresh(school)
        logger.info(f"Created school: {school.name} ({school.district})")
        return school

    @staticmethod
    def update_school(db: Session, school_id: int, updates: Dict[str, Any]) -> Optional[School]:
        school = StorageService.get_school_by_id(db, school_id)
        if not school:
            return None
        for field, value in updates.items():
            setattr(school, field, value)
        db.commit()
        db.refresh(school)
        return school

    # ------------------------------------------------------------------
    # Complaints
    # ------------------------------------------------------------------

    @staticmethod
    def get_complaint_by_id(db: Session, complaint_id: int) -> Optional[Complaint]:
        return db.query(Complaint).filter(Complaint.id == complaint_id).first()

    @staticmethod
    def get_complaint_by_token(db: Session, token_id: str) -> Optional[Complaint]:
        return db.query(Complaint).filter(Complaint.token_id == token_id).first()

    @staticmethod
    def get_complaints_by_user_id(db: Session, user_id: int) -> List[Complaint]:
        return db.query(Complaint).filter(Complaint.user_id == user_id).order_by(Complaint.id).all()

    @staticmethod
    def get_complaints_by_school_id(db: Session, school_id: Optional[int]) -> List[Complaint]:
        if school_id is None:
            return []
        return db.query(Complaint).filter(Complaint.school_id == school_id).order_by(Complaint.id).all()

    @staticmethod
    def get_complaints_by_district(db: Session, district: str) -> List[Complaint]:
        return db.query(Complaint).filter(Complaint.district == district).order_by(Complaint.id).all()

    @staticmethod
    def new_token_id(db: Session) -> str:
        """Generate a token id not yet used by any complaint."""
        token_id = generate_token_id()
        while StorageService.get_complaint_by_token(db, token_id):
            token_id = generate_token_id()
        return token_id

    @staticmethod
    def create_complaint(db: Session, data: InsertComplaint) -> Complaint:
        """Insert a complaint and refresh its district's stats."""
        now = datetime.utcnow()
        complaint = Complaint(
            title=data.title,
            description=data.description,
            category=data.category,
            status=ComplaintStatus(data.status or ComplaintStatus.PENDING.value),
            user_id=data.userId,
            school_id=data.schoolId,
            token_id=data.tokenId,
            assigned_to_id=data.assignedToId,
            ai_analysis=data.aiAnalysis,
            district=data.district,
            evidence=data.evidence,
            created_at=now,
            updated_at=now,
        )
        db.add(complaint)
        db.commit()
        db.refresh(complaint)
        logger.info(f"Created complaint {complaint.token_id} in {complaint.district}")

        StorageService.recompute_district_stats(db, complaint.district)
        return complaint

    @staticmethod
    def update_complaint_status(db: Session, complaint_id: int, status: str) -> Optional[Complaint]:
        """
        Set a complaint's status and refresh its district's stats.

        No transition rules: any status may follow any other.
        """
        complaint = StorageService.get_complaint_by_id(db, complaint_id)
        if not complaint:
            return None
        complaint.status = ComplaintStatus(status)
        complaint.updated_at = datetime.utcnow()
        db.commit()
        db.refresh(complaint)

        StorageService.recompute_district_stats(db, complaint.district)
        return complaint

    # ------------------------------------------------------------------
    # Complaint responses
    # ------------------------------------------------------------------

    @staticmethod
    def get_responses_by_complaint_id(db: Session, complaint_id: int) -> List[ComplaintResponse]:
        return db.query(ComplaintResponse).filter(
            ComplaintResponse.complaint_id == complaint_id
        ).order_by(ComplaintResponse.id).all()

    @staticmethod
    def add_complaint_response(db: Session, data: InsertComplaintResponse) -> ComplaintResponse:
        response = ComplaintResponse(
            complaint_id=data.complaintId,
            user_id=data.userId,
            user_type=data.userType,
            response=data.response,
            attachments=data.attachments,
        )
        db.add(response)
        db.commit()
        db.refresh(response)
        return response

    # ------------------------------------------------------------------
    # Alumni
    # ------------------------------------------------------------------

    @staticmethod
    def get_alumni_by_id(db: Session, alumni_id: int) -> Optional[Alumni]:
        return db.query(Alumni).filter(Alumni.id == alumni_id).first()

    @staticmethod
    def get_alumni_by_user_id(db: Session, user_id: int) -> Optional[Alumni]:
        return db.query(Alumni).filter(Alumni.user_id == user_id).order_by(Alumni.id).first()

    @staticmethod
    def get_alumni_by_school_id(db: Session, school_id: int) -> List[Alumni]:
        return db.query(Alumni).filter(Alumni.school_id == school_id).order_by(Alumni.id).all()

    @staticmethod
    def list_alumni(
        db: Session,
        school_id: Optional[int] = None,
        expertise: Optional[str] = None,
        available_only: bool = False
    ) -> List[Alumni]:
        """List alumni with optional filters. Expertise is matched in Python (JSON column)."""
        query = db.query(Alumni)
        if school_id is not None:
            query = query.filter(Alumni.school_id == school_id)
        if available_only:
            query = query.filter(Alumni.is_available_for_mentoring == True)
        results = query.order_by(Alumni.id).all()
        if expertise:
            results = [a for a in results if expertise in (a.expertise_areas or [])]
        return results

    @staticmethod
    def create_alumni(db: Session, data: InsertAlumni) -> Alumni:
        alumni = Alumni(
            user_id=data.userId,
            school_id=data.schoolId,
            graduation_year=data.graduationYear,
            current_occupation=data.currentOccupation,
            organization=data.organization,
            expertise_areas=list(data.expertiseAreas),
            bio=data.bio,
            is_available_for_mentoring=data.isAvailableForMentoring,
        )
        db.add(alumni)
        db.commit()
        db.refresh(alumni)
        logger.info(f"Created alumni profile {alumni.id} for user {alumni.user_id}")
        return alumni

    @staticmethod
    def update_alumni(db: Session, alumni_id: int, updates: Dict[str, Any]) -> Optional[Alumni]:
        alumni = StorageService.get_alumni_by_id(db, alumni_id)
        if not alumni:
            return None
        for field, value in updates.items():
            setattr(alumni, field, value)
        db.commit()
        db.refresh(alumni)
        return alumni

    # ------------------------------------------------------------------
    # Alumni connections
    # ------------------------------------------------------------------

    @staticmethod
    def get_connection_by_id(db: Session, connection_id: int) -> Optional[AlumniConnection]:
        return db.query(AlumniConnection).filter(AlumniConnection.id == connection_id).first()

    @staticmethod
    def get_connections_by_student_id(db: Session, student_id: int) -> List[AlumniConnection]:
        return db.query(AlumniConnection).filter(
            AlumniConnection.student_id == student_id
        ).order_by(AlumniConnection.id).all()

    @staticmethod
    def get_connections_by_alumni_id(db: Session, alumni_id: int) -> List[AlumniConnection]:
        return db.query(AlumniConnection).filter(
            AlumniConnection.alumni_id == alumni_id
        ).order_by(AlumniConnection.id).all()

    @staticmethod
    def create_connection(db: Session, data: InsertAlumniConnection) -> AlumniConnection:
        connection = AlumniConnection(
            student_id=data.studentId,
            alumni_id=data.alumniId,
            question_title=data.questionTitle,
            question_details=data.questionDetails,
            category=data.category,
            is_public=data.isPublic,
            status=data.status or "pending",
            ai_recommendation=data.aiRecommendation,
        )
        db.add(connection)
        db.commit()
        db.refresh(connection)
        return connection

    @staticmethod
    def update_connection_status(db: Session, connection_id: int, status: str) -> Optional[AlumniConnection]:
        connection = StorageService.get_connection_by_id(db, connection_id)
        if not connection:
            return None
        connection.status = status
        db.commit()
        db.refresh(connection)
        return connection

    # ------------------------------------------------------------------
    # Alumni responses
    # ------------------------------------------------------------------

    @staticmethod
    def get_responses_by_connection_id(db: Session, connection_id: int) -> List[AlumniResponse]:
        return db.query(AlumniResponse).filter(
            AlumniResponse.connection_id == connection_id
        ).order_by(AlumniResponse.id).all()

    @staticmethod
    def add_alumni_response(db: Session, data: InsertAlumniResponse) -> AlumniResponse:
        response = AlumniResponse(connection_id=data.connectionId, response=data.response)
        db.add(response)
        db.commit()
        db.refresh(response)
        return response

    # ------------------------------------------------------------------
    # District statistics
    # ------------------------------------------------------------------

    @staticmethod
    def get_district_stats(db: Session, district: str) -> Optional[DistrictStats]:
        return db.query(DistrictStats).filter(DistrictStats.district == district).first()

    @staticmethod
    def get_all_district_stats(db: Session) -> List[DistrictStats]:
        return db.query(DistrictStats).order_by(DistrictStats.id).all()

    @staticmethod
    def create_district_stats(db: Session, data: InsertDistrictStats) -> DistrictStats:
        stats = DistrictStats(
            district=data.district,
            total_schools=data.totalSchools,
            total_complaints=data.totalComplaints,
            resolved_complaints=data.resolvedComplaints,
            pending_complaints=data.pendingComplaints,
            avg_resolution_time=data.avgResolutionTime,
            top_categories=data.topCategories or [],
            updated_at=datetime.utcnow(),
        )
        db.add(stats)
        db.commit()
        db.refresh(stats)
        return stats

    @staticmethod
    def update_district_stats(db: Session, district: str, updates: Dict[str, Any]) -> Optional[DistrictStats]:
        """Overwrite stats columns (snake_case keys). Returns None when the district has no row."""
        stats = StorageService.get_district_stats(db, district)
        if not stats:
            return None
        for field, value in updates.items():
            setattr(stats, field, value)
        stats.updated_at = datetime.utcnow()
        db.commit()
        db.refresh(stats)
        return stats

    @staticmethod
    def recompute_district_stats(db: Session, district: str) -> Optional[DistrictStats]:
        """
        Recompute a district's rollup from its current complaints.

        Districts without a stats row are skipped; rows are only created by
        seeding.
        """
        if not StorageService.get_district_stats(db, district):
            logger.debug(f"No stats row for district '{district}', skipping recomputation")
            return None
        aggregates = compute_district_aggregates(StorageService.get_complaints_by_district(db, district))
        return StorageService.update_district_stats(db, district, aggregates)

    @staticmethod
    def seed_district_stats(db: Session, districts: Optional[List[str]] = None) -> int:
        """
        Create zeroed stats rows for the seeded districts when the table is empty.

        Returns the number of rows created.
        """
        if db.query(DistrictStats).first():
            return 0
        districts = districts if districts is not None else config.SEEDED_DISTRICTS
        for district in districts:
            StorageService.create_district_stats(db, InsertDistrictStats(
                district=district,
                totalSchools=random.randint(50, 99),
            ))
        logger.info(f"Seeded district stats for {len(districts)} districts")
        return len(districts)
