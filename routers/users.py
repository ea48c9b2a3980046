"""
User profile APIs (all authenticated users).
"""
from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session
from pydantic import BaseModel, EmailStr, Field
from typing import Optional

from database.models import User, UserType
from database.schemas import user_to_dict
from auth.dependencies import get_db_session, get_current_user
from services.storage_service import StorageService


router = APIRouter(prefix="/api/user", tags=["users"])


class UserUpdate(BaseModel):
    """Profile update request. The account type cannot be changed."""
    name: Optional[str] = Field(None, min_length=1)
    email: Optional[EmailStr] = None
    password: Optional[str] = Field(None, min_length=1)
    district: Optional[str] = None
    schoolId: Optional[int] = None
    schoolName: Optional[str] = None
    classInfo: Optional[str] = None
    designation: Optional[str] = None
    phoneNumber: Optional[str] = None
    profilePicture: Optional[str] = None


# camelCase request field -> users column
USER_UPDATE_COLUMNS = {
    "name": "name",
    "email": "email",
    "password": "password",
    "district": "district",
    "schoolId": "school_id",
    "schoolName": "school_name",
    "classInfo": "class_info",
    "designation": "designation",
    "phoneNumber": "phone_number",
    "profilePicture": "profile_picture",
}

# Columns that may be left out of an update but never cleared
REQUIRED_FIELDS = {"name", "email", "password"}


@router.get("/{user_id}")
async def get_user(
    user_id: int,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db_session)
):
    """Get user by ID (password never included)."""
    user = StorageService.get_user_by_id(db, user_id)
    if not user:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="User not found"
        )
    return user_to_dict(user)


@router.put("/{user_id}")
async def update_user(
    user_id: int,
    user_data: UserUpdate,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db_session)
):
    """Update own profile."""
    if current_user.id != user_id:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="You can only update your own profile"
        )

    updates = {
        USER_UPDATE_COLUMNS[field]: value
        for field, value in user_data.model_dump(exclude_unset=True).items()
        if value is not None or field not in REQUIRED_FIELDS
    }
    # Same role requirements as registration
    if current_user.user_type == UserType.SCHOOL and not updates.get("school_name", current_user.school_name):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="School name is required for school admin accounts"
        )
    if current_user.user_type == UserType.AUTHORITY and not updates.get("district", current_user.district):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="District is required for authority accounts"
        )

    if "email" in updates:
        existing = StorageService.get_user_by_email(db, updates["email"])
        if existing and existing.id != user_id:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Email already registered"
            )

    try:
        user = StorageService.update_user(db, user_id, updates)
    except ValueError as e:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=str(e)
        )
    if not user:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="User not found"
        )
    return user_to_dict(user)
