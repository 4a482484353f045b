"""
Review Report Model

Caches the AI-generated summary for a user and period. One row per
(user, report_type, start_date, end_date); served verbatim once written.
"""

import uuid
from datetime import datetime
from sqlalchemy import Column, String, Text, Date, DateTime, ForeignKey, Index, UniqueConstraint
from sqlalchemy.orm import relationship
from daily_review.database import Base


class ReviewReport(Base):
    __tablename__ = "review_reports"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    user_id = Column(String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    report_type = Column(String(10), nullable=False)
    start_date = Column(Date, nullable=False)
    end_date = Column(Date, nullable=False)
    content = Column(Text, nullable=False)
    created_at = Column(DateTime, nullable=False, default=datetime.utcnow)

    user = relationship("User", back_populates="reports")

    __table_args__ = (
        UniqueConstraint("user_id", "report_type", "start_date", "end_date", name="unique_user_period"),
        Index("ix_review_reports_user_type", "user_id", "report_type"),
    )

    def __repr__(self):
        return f"<ReviewReport {self.report_type} {self.start_date}..{self.end_date}>"
