"""
Input Validators

Centralized validation for login credentials, review items, report periods
and invite requests. Validation runs before any database or upstream call.
All validation functions raise ValueError with human-readable messages.
"""

import re
from datetime import date, datetime
from typing import Any, List, Optional

USERNAME_PATTERN = re.compile(r"^[a-zA-Z0-9_]{3,20}$")
MIN_PASSWORD_LENGTH = 6

MAX_INVITE_BATCH = 100
MIN_CODE_LENGTH = 4
MAX_CODE_LENGTH = 32

PERIOD_TYPES = ("week", "month")


class ValidationResult:
    """Container for validation errors."""
    def __init__(self):
        self.errors: List[str] = []

    def add_error(self, msg: str):
        self.errors.append(msg)

    @property
    def is_valid(self) -> bool:
        return len(self.errors) == 0

    def raise_if_invalid(self):
        """Raise ValueError if there are blocking errors."""
        if self.errors:
            raise ValueError("; ".join(self.errors))


def _is_empty(value: Any) -> bool:
    """Check if value is None or empty string."""
    if value is None:
        return True
    if isinstance(value, str) and value.strip() == "":
        return True
    return False


def parse_date(value: Any) -> Optional[date]:
    """Parse a ``YYYY-MM-DD`` string, returning None when malformed."""
    if isinstance(value, date):
        return value
    try:
        return datetime.strptime(str(value).strip(), "%Y-%m-%d").date()
    except (TypeError, ValueError):
        return None


# ============================================================
# LOGIN VALIDATION
# ============================================================

def validate_credentials(username: Optional[str], password: Optional[str]) -> ValidationResult:
    """
    Validate login input.

    Checks run in order and stop at the first failure, so the user sees the
    most basic problem first.
    """
    result = ValidationResult()

    if _is_empty(username) or _is_empty(password):
        result.add_error("请输入账号名和密码")
        return result

    if not USERNAME_PATTERN.match(username):
        result.add_error("账号名格式不正确（3-20位字母、数字或下划线）")
        return result

    if len(password) < MIN_PASSWORD_LENGTH:
        result.add_error(f"密码长度至少{MIN_PASSWORD_LENGTH}位")

    return result


def normalize_invite_code(code: Optional[str]) -> Optional[str]:
    """Invite codes are stored and compared upper-cased."""
    if _is_empty(code):
        return None
    return code.strip().upper()


# ============================================================
# ITEM VALIDATION
# ============================================================

def validate_item(content: Any, record_date: Any) -> date:
    """
    Validate item input and return the parsed date.

    Raises:
        ValueError: content or date missing, or the date is malformed
    """
    result = ValidationResult()

    if _is_empty(content) or _is_empty(record_date):
        result.add_error("Content and date are required")
        result.raise_if_invalid()

    parsed = parse_date(record_date)
    if parsed is None:
        result.add_error("Date must be in YYYY-MM-DD format")
    result.raise_if_invalid()
    return parsed


# ============================================================
# REPORT VALIDATION
# ============================================================

def validate_period(period_type: Any, start_date: Any, end_date: Any) -> ValidationResult:
    """Validate a report period request."""
    result = ValidationResult()

    if _is_empty(period_type) or _is_empty(start_date) or _is_empty(end_date):
        result.add_error("Type, startDate, and endDate are required")
        return result

    if period_type not in PERIOD_TYPES:
        result.add_error("Type must be 'week' or 'month'")

    start = parse_date(start_date)
    end = parse_date(end_date)
    if start is None or end is None:
        result.add_error("startDate and endDate must be in YYYY-MM-DD format")
    elif start > end:
        result.add_error("startDate must not be after endDate")

    return result


# ============================================================
# INVITE VALIDATION
# ============================================================

def validate_invite_request(count: Any, length: Any) -> ValidationResult:
    """Validate a bulk invite-code request."""
    result = ValidationResult()

    if not isinstance(count, int) or isinstance(count, bool) or count < 1 or count > MAX_INVITE_BATCH:
        result.add_error(f"Count must be between 1 and {MAX_INVITE_BATCH}")

    if not isinstance(length, int) or isinstance(length, bool) or not MIN_CODE_LENGTH <= length <= MAX_CODE_LENGTH:
        result.add_error(f"Length must be between {MIN_CODE_LENGTH} and {MAX_CODE_LENGTH}")

    return result
