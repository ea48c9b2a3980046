"""
Complaint APIs: filing, role-scoped listing, status changes and the response thread.
"""
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, status, Request, Query
from sqlalchemy.orm import Session
from pydantic import BaseModel, Field, ValidationError

from database.models import User, Complaint, ComplaintStatus
from database.schemas import (
    InsertComplaint, InsertComplaintResponse, validation_message,
    complaint_to_dict, complaint_response_to_dict,
)
from auth.dependencies import get_db_session, get_current_user, require_student
from services.storage_service import StorageService
from services.complaint_service import ComplaintService
from services.audit_service import AuditService
from services.ai_service import analyze_complaint
from core.logger import logger


router = APIRouter(prefix="/api/complaints", tags=["complaints"])


class ComplaintCreate(BaseModel):
    """Complaint submission. Owner, school, district and token are filled in server-side."""
    title: str = Field(..., min_length=1)
    description: str = Field(..., min_length=1)
    category: str
    evidence: Optional[str] = None


class StatusUpdate(BaseModel):
    status: str


class ResponseCreate(BaseModel):
    response: str = Field(..., min_length=1)
    attachments: Optional[str] = None


def _get_visible_complaint(db: Session, complaint_id: int, user: User) -> Complaint:
    complaint = StorageService.get_complaint_by_id(db, complaint_id)
    if not complaint:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Complaint not found"
        )
    if not ComplaintService.can_view(user, complaint):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Forbidden"
        )
    return complaint


@router.get("")
async def list_complaints(
    district: Optional[str] = Query(None, description="Authority only: narrow to one district"),
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db_session)
):
    """Complaints visible to the caller."""
    complaints = ComplaintService.list_complaints(db, current_user, district)
    return [complaint_to_dict(c) for c in complaints]


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_complaint(
    complaint_data: ComplaintCreate,
    request: Request,
    current_user: User = Depends(require_student),
    db: Session = Depends(get_db_session)
):
    """
    File a complaint against the student's own school.

    A token id is issued and the AI triage result is stored alongside.
    """
    if current_user.school_id is None or not current_user.district:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Your profile must have a school and district before filing a complaint"
        )

    token_id = StorageService.new_token_id(db)
    ai_analysis = await analyze_complaint(
        complaint_data.title,
        complaint_data.description,
        complaint_data.category
    )

    try:
        insert = InsertComplaint(
            title=complaint_data.title,
            description=complaint_data.description,
            category=complaint_data.category,
            evidence=complaint_data.evidence,
            userId=current_user.id,
            schoolId=current_user.school_id,
            district=current_user.district,
            tokenId=token_id,
            aiAnalysis=ai_analysis,
        )
    except ValidationError as e:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=validation_message(e.errors())
        )

    complaint = StorageService.create_complaint(db, insert)
    AuditService.log_from_request(
        db=db,
        request=request,
        action="complaint_create",
        user_id=current_user.id,
        resource_type="complaint",
        resource_id=str(complaint.id),
        details={"tokenId": complaint.token_id, "category": complaint.category}
    )
    return complaint_to_dict(complaint)


@router.get("/{complaint_id}")
async def get_complaint(
    complaint_id: int,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db_session)
):
    complaint = _get_visible_complaint(db, complaint_id, current_user)
    return complaint_to_dict(complaint)


@router.put("/{complaint_id}/status")
async def update_complaint_status(
    complaint_id: int,
    status_data: StatusUpdate,
    request: Request,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db_session)
):
    """Change a complaint's status. Any status may follow any other."""
    if status_data.status not in [s.value for s in ComplaintStatus]:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Invalid status: {status_data.status}"
        )

    complaint = StorageService.get_complaint_by_id(db, complaint_id)
    if not complaint:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Complaint not found"
        )
    if not ComplaintService.can_update_status(current_user, complaint):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Forbidden"
        )

    old_status = complaint.status.value
    complaint = StorageService.update_complaint_status(db, complaint_id, status_data.status)
    AuditService.log_from_request(
        db=db,
        request=request,
        action="complaint_status_update",
        user_id=current_user.id,
        resource_type="complaint",
        resource_id=str(complaint_id),
        details={"from": old_status, "to": status_data.status}
    )
    logger.info(f"Complaint {complaint.token_id} status {old_status} -> {status_data.status}")
    return complaint_to_dict(complaint)


@router.get("/{complaint_id}/responses")
async def list_complaint_responses(
    complaint_id: int,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db_session)
):
    _get_visible_complaint(db, complaint_id, current_user)
    responses = StorageService.get_responses_by_complaint_id(db, complaint_id)
    return [complaint_response_to_dict(r) for r in responses]


@router.post("/{complaint_id}/responses", status_code=status.HTTP_201_CREATED)
async def add_complaint_response(
    complaint_id: int,
    response_data: ResponseCreate,
    request: Request,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db_session)
):
    """Add a message to the complaint's thread, tagged with the author's role."""
    _get_visible_complaint(db, complaint_id, current_user)

    response = StorageService.add_complaint_response(db, InsertComplaintResponse(
        complaintId=complaint_id,
        userId=current_user.id,
        userType=current_user.user_type.value,
        response=response_data.response,
        attachments=response_data.attachments,
    ))
    AuditService.log_from_request(
        db=db,
        request=request,
        action="complaint_response",
        user_id=current_user.id,
        resource_type="complaint",
        resource_id=str(complaint_id)
    )
    return complaint_response_to_dict(response)
