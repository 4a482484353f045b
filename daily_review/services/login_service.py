"""
Login Service

Username + password login that doubles as invite-gated registration.

Each attempt walks a fixed sequence:

1. Try to sign in with the username-derived email and password.
2. On failure, check whether the account exists. If it does, the password
   was wrong.
3. Otherwise an invite code is required. Without one the caller is told to
   collect it; with one it must match an unused code.
4. Register: create the user, create the profile (best-effort), and consume
   the invite code in the same transaction as the user row.
"""

import logging
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Optional

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from daily_review.auth import authenticate_user, hash_password, username_to_email
from daily_review.models import InviteCode, User, UserProfile
from daily_review.services.validators import normalize_invite_code, validate_credentials

logger = logging.getLogger(__name__)


class LoginStatus(str, Enum):
    LOGGED_IN = "logged_in"
    INVALID_INPUT = "invalid_input"
    WRONG_CREDENTIAL = "wrong_credential"
    NEEDS_INVITE_CODE = "needs_invite_code"
    INVALID_INVITE = "invalid_invite"


@dataclass
class LoginOutcome:
    status: LoginStatus
    message: str = ""
    user: Optional[User] = None
    is_new_user: bool = False

    @property
    def ok(self) -> bool:
        return self.status == LoginStatus.LOGGED_IN


def account_exists(db: Session, email: str) -> bool:
    return db.query(User.id).filter(User.email == email).first() is not None


def find_unused_invite(db: Session, code: str) -> Optional[InviteCode]:
    """Exact match on the normalized code, unused only."""
    return (
        db.query(InviteCode)
        .filter(InviteCode.code == code, InviteCode.is_used.is_(False))
        .first()
    )


def consume_invite_code(db: Session, invite_id: str, user_id: str) -> bool:
    """Mark an invite used if it is still unused.

    The ``is_used = false`` guard makes the update conditional, so of two
    concurrent consumers only one sees a row count of 1. Does not commit.
    """
    updated = (
        db.query(InviteCode)
        .filter(InviteCode.id == invite_id, InviteCode.is_used.is_(False))
        .update(
            {"is_used": True, "used_by": user_id, "used_at": datetime.utcnow()},
            synchronize_session=False,
        )
    )
    return updated == 1


def _create_profile(db: Session, user: User) -> None:
    """Profile rows are optional; a failure here must not undo the account."""
    try:
        with db.begin_nested():
            db.add(UserProfile(
                id=user.id,
                display_name=user.username,
                username=user.username.lower(),
                is_guest=False,
            ))
    except SQLAlchemyError as e:
        logger.error(f"Profile creation failed for {user.email}: {e}")


def register_user(db: Session, username: str, password: str, invite: InviteCode) -> LoginOutcome:
    """Create an account and consume ``invite`` atomically."""
    user = User(
        email=username_to_email(username),
        username=username,
        password_hash=hash_password(password),
        is_active=True,
    )
    db.add(user)
    try:
        db.flush()
    except IntegrityError:
        # Same username registered by a concurrent request
        db.rollback()
        return LoginOutcome(LoginStatus.WRONG_CREDENTIAL, "密码错误")

    _create_profile(db, user)

    if not consume_invite_code(db, invite.id, user.id):
        db.rollback()
        logger.info(f"Invite {invite.code} was consumed concurrently; registration of {username} rolled back")
        return LoginOutcome(LoginStatus.INVALID_INVITE, "邀请码无效或已被使用")

    db.commit()
    db.refresh(user)
    logger.info(f"Registered {user.email} with invite {invite.code}")
    return LoginOutcome(LoginStatus.LOGGED_IN, user=user, is_new_user=True)


def login(
    db: Session,
    username: Optional[str],
    password: Optional[str],
    invite_code: Optional[str] = None,
) -> LoginOutcome:
    """Run one login attempt and return its terminal outcome."""
    validation = validate_credentials(username, password)
    if not validation.is_valid:
        return LoginOutcome(LoginStatus.INVALID_INPUT, validation.errors[0])

    email = username_to_email(username)

    user = authenticate_user(db, email, password)
    if user:
        return LoginOutcome(LoginStatus.LOGGED_IN, user=user, is_new_user=False)

    if account_exists(db, email):
        return LoginOutcome(LoginStatus.WRONG_CREDENTIAL, "密码错误")

    code = normalize_invite_code(invite_code)
    if not code:
        return LoginOutcome(LoginStatus.NEEDS_INVITE_CODE, "该账号不存在，请输入邀请码进行注册")

    invite = find_unused_invite(db, code)
    if not invite:
        return LoginOutcome(LoginStatus.INVALID_INVITE, "邀请码无效或已被使用")

    return register_user(db, username, password, invite)
