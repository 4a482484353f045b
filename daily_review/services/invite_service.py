"""
Invite Code Service

Issues, lists and deletes one-time registration codes.
"""

import logging
import secrets
from typing import List, Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from daily_review.models import InviteCode

logger = logging.getLogger(__name__)

# No 0/O or 1/I: codes are read off screens and typed by hand
CODE_ALPHABET = "ABCDEFGHJKLMNPQRSTUVWXYZ23456789"
DEFAULT_CODE_LENGTH = 8
MAX_INSERT_ATTEMPTS = 10


class InviteCodeInUse(Exception):
    """Raised when deleting an invite code that has already been consumed."""


def generate_random_code(length: int = DEFAULT_CODE_LENGTH) -> str:
    return "".join(secrets.choice(CODE_ALPHABET) for _ in range(length))


def _insert_unique_code(db: Session, length: int, created_by: Optional[str]) -> Optional[InviteCode]:
    """Insert one fresh code, redrawing on uniqueness conflicts."""
    for attempt in range(1, MAX_INSERT_ATTEMPTS + 1):
        invite = InviteCode(code=generate_random_code(length), created_by=created_by)
        db.add(invite)
        try:
            db.commit()
        except IntegrityError:
            db.rollback()
            logger.debug(f"Invite code collision on attempt {attempt}")
            continue
        db.refresh(invite)
        return invite

    logger.error(f"Failed to generate code after {MAX_INSERT_ATTEMPTS} attempts")
    return None


def create_invite_codes(
    db: Session,
    count: int = 1,
    length: int = DEFAULT_CODE_LENGTH,
    created_by: Optional[str] = None,
) -> List[InviteCode]:
    """
    Create up to ``count`` invite codes.

    A unit that keeps colliding is skipped rather than failing the batch, so
    the result may be shorter than requested.
    """
    codes = []
    for _ in range(count):
        invite = _insert_unique_code(db, length, created_by)
        if invite is not None:
            codes.append(invite)

    logger.info(f"Created {len(codes)}/{count} invite codes")
    return codes


def list_invite_codes(db: Session) -> List[InviteCode]:
    return db.query(InviteCode).order_by(InviteCode.created_at.desc()).all()


def delete_invite_code(db: Session, invite_id: str) -> bool:
    """
    Delete an unused invite code.

    Returns:
        False if no such code exists.

    Raises:
        InviteCodeInUse: the code has already been used
    """
    invite = db.query(InviteCode).filter(InviteCode.id == invite_id).first()
    if not invite:
        return False

    if invite.is_used:
        raise InviteCodeInUse("Cannot delete a used invite code")

    db.delete(invite)
    db.commit()
    return True
