from daily_review.models.user import User
from daily_review.models.user_profile import UserProfile
from daily_review.models.review_item import ReviewItem
from daily_review.models.invite_code import InviteCode
from daily_review.models.review_report import ReviewReport

__all__ = [
    "User",
    "UserProfile",
    "ReviewItem",
    "InviteCode",
    "ReviewReport",
]
