"""
Authentication utilities for bearer-token auth.

Tokens are signed and time-limited. Every protected handler verifies the
signature and the expiry, then loads the user, so a client cannot pick its
own identity by editing the token payload.
"""

import secrets
from datetime import datetime
from typing import Optional

from fastapi import Depends, Header, HTTPException, status
from itsdangerous import URLSafeTimedSerializer, BadSignature, SignatureExpired
from passlib.context import CryptContext
from sqlalchemy.orm import Session

from daily_review.config import SECRET_KEY, SESSION_EXPIRE_MINUTES, USER_EMAIL_DOMAIN, get_admin_api_key
from daily_review.database import get_db
from daily_review.models import User

# pbkdf2_sha256 is pure Python and avoids compiled bcrypt issues
pwd_context = CryptContext(schemes=["pbkdf2_sha256"], deprecated="auto")

serializer = URLSafeTimedSerializer(SECRET_KEY, salt="daily-review-session")


def hash_password(password: str) -> str:
    """Hash a password for storing."""
    return pwd_context.hash(password)


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """Verify a stored password against one provided by user."""
    try:
        return pwd_context.verify(plain_password, hashed_password)
    except (ValueError, TypeError):
        # Malformed hash
        return False


def username_to_email(username: str) -> str:
    """Accounts are keyed by an email derived from the username."""
    return f"{username.lower()}@{USER_EMAIL_DOMAIN}"


def create_session_token(user_id: str) -> str:
    """Create a session token for a user."""
    data = {
        "sub": user_id,
        "created": datetime.utcnow().isoformat(),
    }
    return serializer.dumps(data)


def decode_session_token(token: str) -> Optional[dict]:
    """Decode and validate a session token."""
    try:
        return serializer.loads(token, max_age=SESSION_EXPIRE_MINUTES * 60)
    except (BadSignature, SignatureExpired):
        return None


def build_session(user: User) -> dict:
    """Session payload returned to clients after login."""
    return {
        "access_token": create_session_token(user.id),
        "token_type": "bearer",
        "expires_in": SESSION_EXPIRE_MINUTES * 60,
        "user": {
            "id": user.id,
            "username": user.username,
            "email": user.email,
        },
    }


def _bearer_token(authorization: Optional[str]) -> Optional[str]:
    if not authorization or not authorization.startswith("Bearer "):
        return None
    token = authorization[len("Bearer "):].strip()
    return token or None


def get_user_from_authorization(db: Session, authorization: Optional[str]) -> Optional[User]:
    """Resolve an ``Authorization`` header to an active user, or None."""
    token = _bearer_token(authorization)
    if not token:
        return None

    data = decode_session_token(token)
    if not data or not data.get("sub"):
        return None

    return db.query(User).filter(User.id == data["sub"], User.is_active.is_(True)).first()


def get_current_user(
    authorization: Optional[str] = Header(None),
    db: Session = Depends(get_db),
) -> User:
    """
    Get the current user from the bearer token.
    Raises HTTPException if not authenticated.
    """
    user = get_user_from_authorization(db, authorization)
    if not user:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Unauthorized")
    return user


def require_admin_key(x_admin_key: Optional[str] = Header(None)) -> None:
    """Guard for the invite admin API."""
    expected = get_admin_api_key()
    if not expected or not x_admin_key or not secrets.compare_digest(x_admin_key, expected):
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Unauthorized")


def authenticate_user(db: Session, email: str, password: str) -> Optional[User]:
    """Authenticate a user by email and password."""
    user = db.query(User).filter(User.email == email).first()
    if not user or not user.is_active:
        return None
    if not verify_password(password, user.password_hash):
        return None
    return user
