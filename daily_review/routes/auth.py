from typing import Optional

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from pydantic import BaseModel
from sqlalchemy.orm import Session

from daily_review.auth import build_session, get_current_user
from daily_review.database import get_db
from daily_review.models import User
from daily_review.services import login_service

router = APIRouter(prefix="/api/auth", tags=["auth"])


class LoginRequest(BaseModel):
    username: Optional[str] = None
    password: Optional[str] = None
    inviteCode: Optional[str] = None


@router.post("/login")
def login(payload: LoginRequest, db: Session = Depends(get_db)):
    """Sign in, or register when the account is new and an invite code is given."""
    outcome = login_service.login(db, payload.username, payload.password, payload.inviteCode)

    if not outcome.ok:
        return JSONResponse(
            status_code=400,
            content={"error": outcome.message, "reason": outcome.status.value},
        )

    return {
        "success": True,
        "session": build_session(outcome.user),
        "isNewUser": outcome.is_new_user,
    }


@router.get("/me")
def me(user: User = Depends(get_current_user)):
    """Verify a stored session and return who it belongs to."""
    profile = user.profile
    return {
        "user": {
            "id": user.id,
            "username": user.username,
            "email": user.email,
            "displayName": profile.display_name if profile else user.username,
            "guestMigratedAt": (
                profile.guest_migrated_at.isoformat()
                if profile and profile.guest_migrated_at else None
            ),
        }
    }
