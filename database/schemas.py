"""
Insert validators and JSON serializers for the database models.

Each Insert* model mirrors its table minus the generated columns (id and
timestamps) and is the only shape the storage layer accepts on create.
Field names are camelCase to match the JSON the API speaks.
"""
from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator

from database.models import (
    User, School, Complaint, ComplaintResponse, Alumni, AlumniConnection,
    AlumniResponse, DistrictStats, UserType, ComplaintStatus, COMPLAINT_CATEGORIES, SCHOOL_CATEGORIES,
)


def _iso(value: Optional[datetime]) -> Optional[str]:
    return value.isoformat() if value else None


# ============================================================================
# Insert validators
# ============================================================================

class InsertUser(BaseModel):
    """Validated user row (password still in plain text; hashed on create)."""
    username: str = Field(..., min_length=1, max_length=100)
    password: str = Field(..., min_length=1)
    email: EmailStr
    name: str = Field(..., min_length=1)
    userType: str
    district: Optional[str] = None
    schoolId: Optional[int] = None
    schoolName: Optional[str] = None
    classInfo: Optional[str] = None
    designation: Optional[str] = None
    phoneNumber: Optional[str] = None
    profilePicture: Optional[str] = None

    @field_validator("userType")
    @classmethod
    def check_user_type(cls, v: str) -> str:
        if v not in [t.value for t in UserType]:
            raise ValueError(f"Invalid user type: {v}")
        return v


class InsertSchool(BaseModel):
    """Validated school row."""
    name: str = Field(..., min_length=1)
    district: str = Field(..., min_length=1)
    address: str = ""
    pincode: str = ""
    category: str = "Government"
    adminId: Optional[int] = None
    contactPhone: Optional[str] = None
    contactEmail: Optional[str] = None

    @field_validator("category")
    @classmethod
    def check_category(cls, v: str) -> str:
        if v not in SCHOOL_CATEGORIES:
            raise ValueError(f"Invalid school category: {v}")
        return v


class InsertComplaint(BaseModel):
    """Validated complaint row."""
    title: str = Field(..., min_length=1)
    description: str = Field(..., min_length=1)
    category: str
    status: str = ComplaintStatus.PENDING.value
    userId: int
    schoolId: int
    tokenId: str
    assignedToId: Optional[int] = None
    aiAnalysis: Optional[Dict[str, Any]] = None
    district: str = Field(..., min_length=1)
    evidence: Optional[str] = None

    @field_validator("category")
    @classmethod
    def check_category(cls, v: str) -> str:
        if v not in COMPLAINT_CATEGORIES:
            raise ValueError(f"Invalid category: {v}")
        return v

    @field_validator("status")
    @classmethod
    def check_status(cls, v: str) -> str:
        if v not in [s.value for s in ComplaintStatus]:
            raise ValueError(f"Invalid status: {v}")
        return v


class InsertComplaintResponse(BaseModel):
    """Validated complaint response row."""
    complaintId: int
    userId: int
    userType: str
    response: str = Field(..., min_length=1)
    attachments: Optional[str] = None


class InsertAlumni(BaseModel):
    """Validated alumni profile row."""
    userId: int
    schoolId: int
    graduationYear: int
    currentOccupation: str = Field(..., min_length=1)
    organization: Optional[str] = None
    expertiseAreas: List[str]
    bio: Optional[str] = None
    isAvailableForMentoring: Optional[bool] = True


class InsertAlumniConnection(BaseModel):
    """Validated mentorship request row."""
    studentId: int
    alumniId: int
    questionTitle: str = Field(..., min_length=1)
    questionDetails: str = Field(..., min_length=1)
    category: str = Field(..., min_length=1)
    isPublic: Optional[bool] = False
    status: str = "pending"
    aiRecommendation: Optional[Dict[str, Any]] = None


class InsertAlumniResponse(BaseModel):
    """Validated alumni response row."""
    connectionId: int
    response: str = Field(..., min_length=1)


class InsertDistrictStats(BaseModel):
    """Validated district stats row."""
    model_config = ConfigDict(extra="forbid")

    district: str = Field(..., min_length=1)
    totalSchools: int = 0
    totalComplaints: int = 0
    resolvedComplaints: int = 0
    pendingComplaints: int = 0
    avgResolutionTime: Optional[int] = 0
    topCategories: Optional[List[Dict[str, Any]]] = Field(default_factory=list)


# ============================================================================
# Serializers
# ============================================================================

def user_to_dict(user: User) -> dict:
    """Public view of a user. The password hash is never included."""
    return {
        "id": user.id,
        "username": user.username,
        "email": user.email,
        "name": user.name,
        "userType": user.user_type.value if isinstance(user.user_type, UserType) else user.user_type,
        "district": user.district,
        "schoolId": user.school_id,
        "schoolName": user.school_name,
        "classInfo": user.class_info,
        "designation": user.designation,
        "phoneNumber": user.phone_number,
        "profilePicture": user.profile_picture,
        "createdAt": _iso(user.created_at),
    }


def school_to_dict(school: School) -> dict:
    return {
        "id": school.id,
        "name": school.name,
        "district": school.district,
        "address": school.address,
        "pincode": school.pincode,
        "category": school.category,
        "adminId": school.admin_id,
        "contactPhone": school.contact_phone,
        "contactEmail": school.contact_email,
        "createdAt": _iso(school.created_at),
    }


def complaint_to_dict(complaint: Complaint) -> dict:
    return {
        "id": complaint.id,
        "title": complaint.title,
        "description": complaint.description,
        "category": complaint.category,
        "status": complaint.status.value if isinstance(complaint.status, ComplaintStatus) else complaint.status,
        "userId": complaint.user_id,
        "schoolId": complaint.school_id,
        "tokenId": complaint.token_id,
        "assignedToId": complaint.assigned_to_id,
        "aiAnalysis": complaint.ai_analysis,
        "district": complaint.district,
        "evidence": complaint.evidence,
        "createdAt": _iso(complaint.created_at),
        "updatedAt": _iso(complaint.updated_at),
    }


def complaint_response_to_dict(response: ComplaintResponse) -> dict:
    return {
        "id": response.id,
        "complaintId": response.complaint_id,
        "userId": response.user_id,
        "userType": response.user_type,
        "response": response.response,
        "attachments": response.attachments,
        "createdAt": _iso(response.created_at),
    }


def alumni_to_dict(alumni: Alumni) -> dict:
    return {
        "id": alumni.id,
        "userId": alumni.user_id,
        "schoolId": alumni.school_id,
        "graduationYear": alumni.graduation_year,
        "currentOccupation": alumni.current_occupation,
        "organization": alumni.organization,
        "expertiseAreas": list(alumni.expertise_areas or []),
        "bio": alumni.bio,
        "isAvailableForMentoring": alumni.is_available_for_mentoring,
        "createdAt": _iso(alumni.created_at),
    }


def connection_to_dict(connection: AlumniConnection) -> dict:
    return {
        "id": connection.id,
        "studentId": connection.student_id,
        "alumniId": connection.alumni_id,
        "questionTitle": connection.question_title,
        "questionDetails": connection.question_details,
        "category": connection.category,
        "isPublic": connection.is_public,
        "status": connection.status,
        "aiRecommendation": connection.ai_recommendation,
        "createdAt": _iso(connection.created_at),
    }


def alumni_response_to_dict(response: AlumniResponse) -> dict:
    return {
        "id": response.id,
        "connectionId": response.connection_id,
        "response": response.response,
        "createdAt": _iso(response.created_at),
    }


def district_stats_to_dict(stats: DistrictStats) -> dict:
    return {
        "id": stats.id,
        "district": stats.district,
        "totalSchools": stats.total_schools,
        "totalComplaints": stats.total_complaints,
        "resolvedComplaints": stats.resolved_complaints,
        "pendingComplaints": stats.pending_complaints,
        "avgResolutionTime": stats.avg_resolution_time,
        "topCategories": stats.top_categories or [],
        "updatedAt": _iso(stats.updated_at),
    }


def validation_message(errors: List[Dict[str, Any]]) -> str:
    """Flatten pydantic error dicts into one readable line."""
    parts = []
    for err in errors:
        loc = ".".join(str(p) for p in err.get("loc", ()) if p != "body")
        parts.append(f"{loc}: {err.get('msg')}" if loc else str(err.get("msg")))
    return "; ".join(parts) or "Invalid request"
