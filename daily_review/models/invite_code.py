"""
Invite Code Model

One-time registration tokens. A code moves from unused to used exactly once,
in the same transaction that creates the account consuming it. Used codes
are never deleted.
"""

import uuid
from datetime import datetime
from sqlalchemy import Column, String, Boolean, DateTime, ForeignKey
from sqlalchemy.orm import relationship
from daily_review.database import Base


class InviteCode(Base):
    __tablename__ = "invite_codes"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    code = Column(String(32), unique=True, nullable=False, index=True)
    is_used = Column(Boolean, nullable=False, default=False, index=True)
    used_by = Column(String(36), ForeignKey("users.id"), nullable=True)
    used_at = Column(DateTime, nullable=True)
    created_at = Column(DateTime, nullable=False, default=datetime.utcnow)
    created_by = Column(String(36), ForeignKey("users.id"), nullable=True)

    used_by_user = relationship("User", foreign_keys=[used_by])

    def to_dict(self):
        return {
            "id": self.id,
            "code": self.code,
            "is_used": self.is_used,
            "used_by": self.used_by,
            "used_at": self.used_at.isoformat() if self.used_at else None,
            "created_at": self.created_at.isoformat() if self.created_at else None,
            "created_by": self.created_by,
        }

    def __repr__(self):
        return f"<InviteCode {self.code} used={self.is_used}>"
