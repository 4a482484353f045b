import uuid
from datetime import datetime
from sqlalchemy import Column, String, Text, Date, DateTime, ForeignKey, Index, UniqueConstraint
from sqlalchemy.orm import relationship
from daily_review.config import to_epoch_ms
from daily_review.database import Base


class ReviewItem(Base):
    """One journal entry attributed to a calendar date.

    The category is not a column: it is parsed from the content prefix when
    the item is read (see ``daily_review.categories``).
    """
    __tablename__ = "review_items"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    user_id = Column(String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    content = Column(Text, nullable=False)
    record_date = Column(Date, nullable=False)
    # Guest-mode id the row was migrated from
    source_id = Column(String(64), nullable=True)
    created_at = Column(DateTime, nullable=False, default=datetime.utcnow)
    updated_at = Column(
        DateTime, nullable=False, default=datetime.utcnow, onupdate=datetime.utcnow
    )

    user = relationship("User", back_populates="items")

    __table_args__ = (
        Index("ix_review_items_user_date", "user_id", "record_date"),
        UniqueConstraint("user_id", "source_id", name="uq_review_items_user_source"),
    )

    def to_dict(self):
        return {
            "id": self.id,
            "content": self.content,
            "date": self.record_date.isoformat(),
            "createdAt": to_epoch_ms(self.created_at),
            "user_id": self.user_id,
        }

    def __repr__(self):
        return f"<ReviewItem {self.record_date} {self.content[:20]!r}>"
