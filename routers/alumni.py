"""
Alumni directory APIs and AI mentor matching.
"""
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, status, Request, Query
from sqlalchemy.orm import Session
from pydantic import BaseModel, Field

from database.models import User
from database.schemas import InsertAlumni, alumni_to_dict
from auth.dependencies import get_db_session, get_current_user
from services.storage_service import StorageService
from services.audit_service import AuditService
from services.ai_service import find_alumni_matches


router = APIRouter(prefix="/api/alumni", tags=["alumni"])


class AlumniCreate(BaseModel):
    """Alumni profile for the logged-in user."""
    schoolId: int
    graduationYear: int
    currentOccupation: str = Field(..., min_length=1)
    organization: Optional[str] = None
    expertiseAreas: List[str]
    bio: Optional[str] = None
    isAvailableForMentoring: Optional[bool] = True


class AlumniUpdate(BaseModel):
    graduationYear: Optional[int] = None
    currentOccupation: Optional[str] = Field(None, min_length=1)
    organization: Optional[str] = None
    expertiseAreas: Optional[List[str]] = None
    bio: Optional[str] = None
    isAvailableForMentoring: Optional[bool] = None


class MatchRequest(BaseModel):
    questionTitle: str = Field(..., min_length=1)
    questionDetails: str = Field(..., min_length=1)
    category: str = Field(..., min_length=1)


ALUMNI_UPDATE_COLUMNS = {
    "graduationYear": "graduation_year",
    "currentOccupation": "current_occupation",
    "organization": "organization",
    "expertiseAreas": "expertise_areas",
    "bio": "bio",
    "isAvailableForMentoring": "is_available_for_mentoring",
}


@router.get("")
async def list_alumni(
    schoolId: Optional[int] = Query(None),
    expertise: Optional[str] = Query(None),
    available: bool = Query(False, description="Only alumni open to mentoring"),
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db_session)
):
    alumni = StorageService.list_alumni(
        db,
        school_id=schoolId,
        expertise=expertise,
        available_only=available
    )
    return [alumni_to_dict(a) for a in alumni]


@router.post("/match")
async def match_alumni(
    match_data: MatchRequest,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db_session)
):
    """Suggest mentors for a question from the alumni currently open to mentoring."""
    available = [alumni_to_dict(a) for a in StorageService.list_alumni(db, available_only=True)]
    return await find_alumni_matches(
        match_data.questionTitle,
        match_data.questionDetails,
        match_data.category,
        available
    )


@router.get("/{alumni_id}")
async def get_alumni(
    alumni_id: int,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db_session)
):
    alumni = StorageService.get_alumni_by_id(db, alumni_id)
    if not alumni:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Alumni not found"
        )
    return alumni_to_dict(alumni)


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_alumni(
    alumni_data: AlumniCreate,
    request: Request,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db_session)
):
    """Create an alumni profile owned by the caller."""
    alumni = StorageService.create_alumni(db, InsertAlumni(
        userId=current_user.id,
        **alumni_data.model_dump()
    ))
    AuditService.log_from_request(
        db=db,
        request=request,
        action="alumni_create",
        user_id=current_user.id,
        resource_type="alumni",
        resource_id=str(alumni.id)
    )
    return alumni_to_dict(alumni)


@router.put("/{alumni_id}")
async def update_alumni(
    alumni_id: int,
    alumni_data: AlumniUpdate,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db_session)
):
    """Update an alumni profile. Owner only."""
    alumni = StorageService.get_alumni_by_id(db, alumni_id)
    if not alumni:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Alumni not found"
        )
    if alumni.user_id != current_user.id:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="You can only update your own alumni profile"
        )

    updates = {
        ALUMNI_UPDATE_COLUMNS[field]: value
        for field, value in alumni_data.model_dump(exclude_unset=True).items()
        if value is not None or field in ("organization", "bio")
    }
    alumni = StorageService.update_alumni(db, alumni_id, updates)
    return alumni_to_dict(alumni)
