"""
Review Report Route

Produces the weekly or monthly AI review. Signed-in users get cached
reports; guests send their own items and are never cached.
"""

from typing import Any, Optional

from fastapi import APIRouter, Depends, Header, HTTPException
from pydantic import BaseModel
from sqlalchemy.orm import Session

from daily_review.auth import get_user_from_authorization
from daily_review.database import get_db
from daily_review.services.review_service import ReviewReportGenerator, generate_review
from daily_review.services.validators import validate_period

router = APIRouter(prefix="/api/review", tags=["review"])


class GenerateRequest(BaseModel):
    type: Optional[str] = None
    startDate: Optional[str] = None
    endDate: Optional[str] = None
    items: Optional[Any] = None
    isGuest: bool = False


def get_report_generator() -> ReviewReportGenerator:
    return ReviewReportGenerator()


@router.post("/generate")
def generate(
    payload: GenerateRequest,
    authorization: Optional[str] = Header(None),
    db: Session = Depends(get_db),
    generator: ReviewReportGenerator = Depends(get_report_generator),
):
    validation = validate_period(payload.type, payload.startDate, payload.endDate)
    if not validation.is_valid:
        raise HTTPException(status_code=400, detail=validation.errors[0])

    if payload.isGuest:
        items = payload.items if isinstance(payload.items, list) else []
        items = [item for item in items if isinstance(item, dict)]
        content, cached = generate_review(
            db, generator, payload.type, payload.startDate, payload.endDate,
            guest_items=items,
        )
        return {"content": content, "cached": cached}

    user = get_user_from_authorization(db, authorization)
    if not user:
        raise HTTPException(status_code=401, detail="Unauthorized")

    content, cached = generate_review(
        db, generator, payload.type, payload.startDate, payload.endDate,
        user_id=user.id,
    )
    return {"content": content, "cached": cached}
