"""
Database models for the EduAudit grievance portal.
"""
from datetime import datetime
from sqlalchemy import (
    Column, Integer, String, Boolean, DateTime, Text,
    ForeignKey, JSON, Index, TypeDecorator
)
from sqlalchemy.orm import declarative_base
import enum

Base = declarative_base()


# ============================================================================
# Custom Type Decorator for Enum Values
# ============================================================================

class EnumValue(TypeDecorator):
    """Type decorator to ensure enum values (not names) are stored."""
    impl = String
    cache_ok = True

    def __init__(self, enum_class, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.enum_class = enum_class

    def process_bind_param(self, value, dialect):
        """Convert enum to its value when writing to database."""
        if value is None:
            return None
        if isinstance(value, enum.Enum):
            return value.value
        return value

    def process_result_value(self, value, dialect):
        """Convert database value back to enum when reading."""
        if value is None:
            return None
        if isinstance(value, str):
            try:
                return self.enum_class(value)
            except ValueError:
                return value
        return value


# ============================================================================
# Enums and reference data
# ============================================================================

class UserType(str, enum.Enum):
    """User roles for authorization."""
    STUDENT = "student"
    SCHOOL = "school"
    AUTHORITY = "authority"


class ComplaintStatus(str, enum.Enum):
    """Complaint lifecycle status. Any value may follow any other."""
    PENDING = "pending"
    IN_PROGRESS = "in_progress"
    RESOLVED = "resolved"
    REJECTED = "rejected"
    UNDER_REVIEW = "under_review"


KARNATAKA_DISTRICTS = [
    "Bagalkot", "Ballari", "Belagavi", "Bengaluru Rural", "Bengaluru Urban",
    "Bidar", "Chamarajanagar", "Chikballapur", "Chikkamagaluru", "Chitradurga",
    "Dakshina Kannada", "Davanagere", "Dharwad", "Gadag", "Hassan",
    "Haveri", "Kalaburagi", "Kodagu", "Kolar", "Koppal",
    "Mandya", "Mysuru", "Raichur", "Ramanagara", "Shivamogga",
    "Tumakuru", "Udupi", "Uttara Kannada", "Vijayapura", "Yadgir",
]

COMPLAINT_CATEGORIES = [
    "Infrastructure",
    "Teaching Staff",
    "Basic Amenities",
    "Educational Materials",
    "Administrative Issues",
    "Transportation",
    "Mid-day Meal",
    "Others",
]

ALUMNI_EXPERTISE_AREAS = [
    "Career Guidance",
    "Higher Education",
    "Technology",
    "Medicine",
    "Engineering",
    "Arts & Humanities",
    "Government Services",
    "Entrepreneurship",
    "Science",
    "Sports",
]

SCHOOL_CATEGORIES = ["Government", "Aided", "Private"]


# ============================================================================
# Models
# ============================================================================

class User(Base):
    """Registered account: student, school administrator or education authority."""
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    username = Column(String(100), unique=True, index=True, nullable=False)
    password = Column(String(255), nullable=False)  # bcrypt hash
    email = Column(String(255), unique=True, index=True, nullable=False)
    name = Column(String(255), nullable=False)
    user_type = Column(EnumValue(UserType), nullable=False)

    # Role-specific attributes
    district = Column(String(100), nullable=True)  # Required for authority
    school_id = Column(Integer, nullable=True)  # schools.id, not constrained (schools.admin_id points back)
    school_name = Column(String(255), nullable=True)  # Required for school
    class_info = Column(String(100), nullable=True)  # Students
    designation = Column(String(255), nullable=True)  # Authority / school staff
    phone_number = Column(String(50), nullable=True)
    profile_picture = Column(String(512), nullable=True)

    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    __table_args__ = (
        Index('idx_user_type', 'user_type'),
        Index('idx_user_school', 'school_id'),
    )


class School(Base):
    """School record, optionally administered by a school-role user."""
    __tablename__ = "schools"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(255), nullable=False)
    district = Column(String(100), nullable=False)
    address = Column(Text, nullable=False, default="")
    pincode = Column(String(20), nullable=False, default="")
    category = Column(String(50), nullable=False)  # Government, Aided, Private
    admin_id = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    contact_phone = Column(String(50), nullable=True)
    contact_email = Column(String(255), nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    __table_args__ = (
        Index('idx_school_district', 'district'),
    )


class Complaint(Base):
    """Grievance filed by a student against a school."""
    __tablename__ = "complaints"

    id = Column(Integer, primary_key=True, index=True)
    title = Column(String(255), nullable=False)
    description = Column(Text, nullable=False)
    category = Column(String(100), nullable=False)
    status = Column(EnumValue(ComplaintStatus), default=ComplaintStatus.PENDING, nullable=False)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    school_id = Column(Integer, nullable=False)
    token_id = Column(String(20), unique=True, index=True, nullable=False)  # KA2024-AB12
    assigned_to_id = Column(Integer, nullable=True)
    ai_analysis = Column(JSON, nullable=True)
    district = Column(String(100), nullable=False)  # Snapshot of the submitter's district
    evidence = Column(String(512), nullable=True)  # Filename only
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, nullable=True)

    __table_args__ = (
        Index('idx_complaint_user', 'user_id'),
        Index('idx_complaint_school', 'school_id'),
        Index('idx_complaint_district', 'district'),
        Index('idx_complaint_status', 'status'),
    )


class ComplaintResponse(Base):
    """Append-only reply on a complaint."""
    __tablename__ = "complaint_responses"

    id = Column(Integer, primary_key=True, index=True)
    complaint_id = Column(Integer, ForeignKey("complaints.id", ondelete="CASCADE"), nullable=False)
    user_id = Column(Integer, nullable=False)
    user_type = Column(String(20), nullable=False)
    response = Column(Text, nullable=False)
    attachments = Column(Text, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    __table_args__ = (
        Index('idx_complaint_response_complaint', 'complaint_id'),
    )


class Alumni(Base):
    """Alumni profile layered on a user. One per user by convention only."""
    __tablename__ = "alumni"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    school_id = Column(Integer, nullable=False)
    graduation_year = Column(Integer, nullable=False)
    current_occupation = Column(String(255), nullable=False)
    organization = Column(String(255), nullable=True)
    expertise_areas = Column(JSON, nullable=False, default=list)
    bio = Column(Text, nullable=True)
    is_available_for_mentoring = Column(Boolean, default=True, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    __table_args__ = (
        Index('idx_alumni_user', 'user_id'),
        Index('idx_alumni_school', 'school_id'),
    )


class AlumniConnection(Base):
    """A student's mentorship request to one alumnus."""
    __tablename__ = "alumni_connections"

    id = Column(Integer, primary_key=True, index=True)
    student_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    alumni_id = Column(Integer, ForeignKey("alumni.id", ondelete="CASCADE"), nullable=False)
    question_title = Column(String(255), nullable=False)
    question_details = Column(Text, nullable=False)
    category = Column(String(100), nullable=False)
    is_public = Column(Boolean, default=False, nullable=True)
    status = Column(String(50), default="pending", nullable=False)  # Free-form
    ai_recommendation = Column(JSON, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    __table_args__ = (
        Index('idx_connection_student', 'student_id'),
        Index('idx_connection_alumni', 'alumni_id'),
    )


class AlumniResponse(Base):
    """Append-only reply from the alumnus on a connection."""
    __tablename__ = "alumni_responses"

    id = Column(Integer, primary_key=True, index=True)
    connection_id = Column(Integer, ForeignKey("alumni_connections.id", ondelete="CASCADE"), nullable=False)
    response = Column(Text, nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    __table_args__ = (
        Index('idx_alumni_response_connection', 'connection_id'),
    )


class DistrictStats(Base):
    """Materialized per-district rollup, recomputed on complaint mutations."""
    __tablename__ = "district_stats"

    id = Column(Integer, primary_key=True, index=True)
    district = Column(String(100), unique=True, index=True, nullable=False)
    total_schools = Column(Integer, default=0, nullable=False)
    total_complaints = Column(Integer, default=0, nullable=False)
    resolved_complaints = Column(Integer, default=0, nullable=False)
    pending_complaints = Column(Integer, default=0, nullable=False)
    avg_resolution_time = Column(Integer, default=0, nullable=True)  # Whole days
    top_categories = Column(JSON, nullable=True)  # [{"category": str, "count": int}]
    updated_at = Column(DateTime, default=datetime.utcnow, nullable=False)


class Session(Base):
    """Server-side login session referenced by the session cookie."""
    __tablename__ = "sessions"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    session_hash = Column(String(255), unique=True, index=True, nullable=False)  # SHA-256 of the cookie value
    ip_address = Column(String(45), nullable=True)
    user_agent = Column(String(500), nullable=True)
    is_active = Column(Boolean, default=True, nullable=False)
    expires_at = Column(DateTime, nullable=False, index=True)
    last_activity = Column(DateTime, default=datetime.utcnow, nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    __table_args__ = (
        Index('idx_session_user', 'user_id'),
    )


class AuditLog(Base):
    """Audit log for security and compliance."""
    __tablename__ = "audit_logs"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, nullable=True)
    action = Column(String(100), nullable=False)  # e.g., "login", "complaint_create"
    resource_type = Column(String(50), nullable=True)  # e.g., "complaint", "user"
    resource_id = Column(String(100), nullable=True)
    ip_address = Column(String(45), nullable=True)  # IPv6 compatible
    user_agent = Column(String(500), nullable=True)
    details = Column(JSON, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False, index=True)

    __table_args__ = (
        Index('idx_audit_user', 'user_id'),
        Index('idx_audit_action', 'action'),
    )
