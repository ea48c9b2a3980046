"""
School directory APIs.
"""
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, status, Query
from sqlalchemy.orm import Session

from database.models import User
from database.schemas import school_to_dict
from auth.dependencies import get_db_session, get_current_user
from services.storage_service import StorageService


router = APIRouter(prefix="/api/schools", tags=["schools"])


@router.get("")
async def list_schools(
    district: Optional[str] = Query(None),
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db_session)
):
    if district:
        schools = StorageService.get_schools_by_district(db, district)
    else:
        schools = StorageService.list_schools(db)
    return [school_to_dict(s) for s in schools]


@router.get("/{school_id}")
async def get_school(
    school_id: int,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db_session)
):
    school = StorageService.get_school_by_id(db, school_id)
    if not school:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="School not found"
        )
    return school_to_dict(school)
