"""
District statistics (public) and AI insights.
"""
from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from database.models import User
from database.schemas import district_stats_to_dict
from auth.dependencies import get_db_session, get_current_user
from services.storage_service import StorageService
from services.ai_service import generate_district_insights


router = APIRouter(prefix="/api/districts", tags=["districts"])


def _get_stats_or_404(db: Session, district: str):
    stats = StorageService.get_district_stats(db, district)
    if not stats:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="District stats not found"
        )
    return stats


@router.get("/stats")
async def list_district_stats(db: Session = Depends(get_db_session)):
    return [district_stats_to_dict(s) for s in StorageService.get_all_district_stats(db)]


@router.get("/{district}/stats")
async def get_district_stats(district: str, db: Session = Depends(get_db_session)):
    return district_stats_to_dict(_get_stats_or_404(db, district))


@router.get("/{district}/insights")
async def get_district_insights(
    district: str,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db_session)
):
    """Short AI commentary on the district's current rollup."""
    stats = district_stats_to_dict(_get_stats_or_404(db, district))
    insights = await generate_district_insights(district, stats)
    return {"district": district, "insights": insights}
