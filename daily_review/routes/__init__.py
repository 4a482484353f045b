from daily_review.routes.auth import router as auth_router
from daily_review.routes.items import router as items_router
from daily_review.routes.review import router as review_router
from daily_review.routes.invite import router as invite_router

__all__ = [
    'auth_router',
    'items_router',
    'review_router',
    'invite_router',
]
