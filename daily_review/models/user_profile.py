"""
User Profile Model

Display data that sits beside the auth record. Created best-effort at
registration, so a user may exist without one.
"""

from datetime import datetime
from sqlalchemy import Column, String, Boolean, DateTime, ForeignKey
from sqlalchemy.orm import relationship
from daily_review.database import Base


class UserProfile(Base):
    __tablename__ = "user_profiles"

    id = Column(String(36), ForeignKey("users.id", ondelete="CASCADE"), primary_key=True)
    display_name = Column(String(100), nullable=True)
    username = Column(String(50), unique=True, nullable=True, index=True)
    is_guest = Column(Boolean, nullable=False, default=False)
    guest_migrated_at = Column(DateTime, nullable=True)
    created_at = Column(DateTime, nullable=False, default=datetime.utcnow)

    user = relationship("User", back_populates="profile")

    def __repr__(self):
        return f"<UserProfile {self.username}>"
