from typing import Any

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel
from sqlalchemy.orm import Session

from daily_review.auth import require_admin_key
from daily_review.database import get_db
from daily_review.services import invite_service
from daily_review.services.validators import validate_invite_request

router = APIRouter(
    prefix="/api/invite",
    tags=["invite"],
    dependencies=[Depends(require_admin_key)],
)


class CreateInviteRequest(BaseModel):
    count: Any = 1
    length: Any = invite_service.DEFAULT_CODE_LENGTH


@router.post("/create")
def create_codes(payload: CreateInviteRequest, db: Session = Depends(get_db)):
    """Bulk-generate invite codes. May return fewer than requested."""
    validation = validate_invite_request(payload.count, payload.length)
    if not validation.is_valid:
        raise HTTPException(status_code=400, detail=validation.errors[0])

    codes = invite_service.create_invite_codes(db, payload.count, payload.length)
    return {
        "success": True,
        "count": len(codes),
        "codes": [
            {"id": c.id, "code": c.code, "created_at": c.created_at.isoformat()}
            for c in codes
        ],
    }


@router.get("/list")
def list_codes(db: Session = Depends(get_db)):
    codes = invite_service.list_invite_codes(db)
    return {"success": True, "codes": [c.to_dict() for c in codes]}


@router.delete("/{invite_id}")
def delete_code(invite_id: str, db: Session = Depends(get_db)):
    try:
        deleted = invite_service.delete_invite_code(db, invite_id)
    except invite_service.InviteCodeInUse as e:
        raise HTTPException(status_code=400, detail=str(e))

    if not deleted:
        raise HTTPException(status_code=404, detail="Invite code not found")

    return {"success": True, "message": "Invite code deleted successfully"}
