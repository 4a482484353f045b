from daily_review.services.validators import (
    ValidationResult,
    validate_credentials,
    validate_item,
    validate_period,
    validate_invite_request,
)
from daily_review.services.invite_service import (
    generate_random_code,
    create_invite_codes,
    list_invite_codes,
    delete_invite_code,
)
from daily_review.services.review_service import (
    ReviewReportGenerator,
    build_fallback_report,
    generate_review,
)
from daily_review.services.item_service import migrate_items

__all__ = [
    'ValidationResult',
    'validate_credentials',
    'validate_item',
    'validate_period',
    'validate_invite_request',
    'generate_random_code',
    'create_invite_codes',
    'list_invite_codes',
    'delete_invite_code',
    'ReviewReportGenerator',
    'build_fallback_report',
    'generate_review',
    'migrate_items',
]
