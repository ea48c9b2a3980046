"""
Student-to-alumni mentorship requests and their reply threads.
"""
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, status, Request
from sqlalchemy.orm import Session
from pydantic import BaseModel, Field

from database.models import User, UserType, AlumniConnection
from database.schemas import (
    InsertAlumniConnection, InsertAlumniResponse,
    connection_to_dict, alumni_response_to_dict,
)
from auth.dependencies import get_db_session, get_current_user, require_student
from services.storage_service import StorageService
from services.audit_service import AuditService


router = APIRouter(prefix="/api/connections", tags=["connections"])


class ConnectionCreate(BaseModel):
    alumniId: int
    questionTitle: str = Field(..., min_length=1)
    questionDetails: str = Field(..., min_length=1)
    category: str = Field(..., min_length=1)
    isPublic: Optional[bool] = False


class ConnectionStatusUpdate(BaseModel):
    status: str = Field(..., min_length=1)


class AlumniReply(BaseModel):
    response: str = Field(..., min_length=1)


def _is_addressed_alumnus(db: Session, user: User, connection: AlumniConnection) -> bool:
    profile = StorageService.get_alumni_by_user_id(db, user.id)
    return profile is not None and profile.id == connection.alumni_id


def _get_connection(db: Session, connection_id: int, user: User) -> AlumniConnection:
    """Fetch a connection the caller takes part in (requesting student or addressed alumnus)."""
    connection = StorageService.get_connection_by_id(db, connection_id)
    if not connection:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Connection not found"
        )
    if connection.student_id != user.id and not _is_addressed_alumnus(db, user, connection):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Forbidden"
        )
    return connection


@router.get("")
async def list_connections(
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db_session)
):
    """Students see their own requests; everyone else sees requests addressed to their alumni profile."""
    if current_user.user_type == UserType.STUDENT:
        connections = StorageService.get_connections_by_student_id(db, current_user.id)
    else:
        profile = StorageService.get_alumni_by_user_id(db, current_user.id)
        connections = StorageService.get_connections_by_alumni_id(db, profile.id) if profile else []
    return [connection_to_dict(c) for c in connections]


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_connection(
    connection_data: ConnectionCreate,
    request: Request,
    current_user: User = Depends(require_student),
    db: Session = Depends(get_db_session)
):
    """Ask an alumnus a question."""
    if not StorageService.get_alumni_by_id(db, connection_data.alumniId):
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Alumni not found"
        )

    connection = StorageService.create_connection(db, InsertAlumniConnection(
        studentId=current_user.id,
        **connection_data.model_dump()
    ))
    AuditService.log_from_request(
        db=db,
        request=request,
        action="connection_create",
        user_id=current_user.id,
        resource_type="connection",
        resource_id=str(connection.id),
        details={"alumniId": connection.alumni_id}
    )
    return connection_to_dict(connection)


@router.get("/{connection_id}")
async def get_connection(
    connection_id: int,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db_session)
):
    return connection_to_dict(_get_connection(db, connection_id, current_user))


@router.put("/{connection_id}/status")
async def update_connection_status(
    connection_id: int,
    status_data: ConnectionStatusUpdate,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db_session)
):
    """Free-form status set by the addressed alumnus (e.g. accepted, answered)."""
    connection = _get_connection(db, connection_id, current_user)
    if not _is_addressed_alumnus(db, current_user, connection):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Only the addressed alumnus can change the status"
        )
    connection = StorageService.update_connection_status(db, connection_id, status_data.status)
    return connection_to_dict(connection)


@router.get("/{connection_id}/responses")
async def list_connection_responses(
    connection_id: int,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db_session)
):
    _get_connection(db, connection_id, current_user)
    responses = StorageService.get_responses_by_connection_id(db, connection_id)
    return [alumni_response_to_dict(r) for r in responses]


@router.post("/{connection_id}/responses", status_code=status.HTTP_201_CREATED)
async def add_connection_response(
    connection_id: int,
    reply: AlumniReply,
    request: Request,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db_session)
):
    connection = _get_connection(db, connection_id, current_user)
    if not _is_addressed_alumnus(db, current_user, connection):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Only the addressed alumnus can reply"
        )

    response = StorageService.add_alumni_response(db, InsertAlumniResponse(
        connectionId=connection_id,
        response=reply.response
    ))
    AuditService.log_from_request(
        db=db,
        request=request,
        action="connection_response",
        user_id=current_user.id,
        resource_type="connection",
        resource_id=str(connection_id)
    )
    return alumni_response_to_dict(response)
