"""
Reference lists for the client and the translation helper.
"""
from typing import Literal

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field

from database.models import (
    User, ComplaintStatus, KARNATAKA_DISTRICTS, COMPLAINT_CATEGORIES, ALUMNI_EXPERTISE_AREAS,
)
from auth.dependencies import get_current_user
from services.ai_service import translate_text


router = APIRouter(prefix="/api", tags=["metadata"])


class TranslateRequest(BaseModel):
    text: str = Field(..., min_length=1)
    targetLanguage: Literal["en", "kn"]


@router.get("/metadata")
async def get_metadata():
    return {
        "districts": KARNATAKA_DISTRICTS,
        "complaintCategories": COMPLAINT_CATEGORIES,
        "expertiseAreas": ALUMNI_EXPERTISE_AREAS,
        "complaintStatus": [s.value for s in ComplaintStatus],
    }


@router.post("/translate")
async def translate(
    translate_data: TranslateRequest,
    current_user: User = Depends(get_current_user)
):
    """English <-> Kannada. Falls back to the input text when translation fails."""
    translated = await translate_text(translate_data.text, translate_data.targetLanguage)
    return {"translatedText": translated}
