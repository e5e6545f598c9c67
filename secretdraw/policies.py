from __future__ import annotations

from datetime import timedelta

from .errors import ValidationError

MAX_ACTIVE_EVENTS = 1000
MIN_PARTICIPANTS = 3
MAX_PARTICIPANTS = 50
MAX_NAME_LENGTH = 100
MAX_WISH_LENGTH = 500
RETENTION = timedelta(days=30)


def clean_name(value: str | None, field: str = "Name") -> str:
    name = (value or "").strip()
    if not name:
        raise ValidationError(f"{field} cannot be empty.")
    if len(name) > MAX_NAME_LENGTH:
        raise ValidationError(f"{field} is too long (max {MAX_NAME_LENGTH} characters).")
    return name


def clean_wish(value: str | None) -> str:
    wish = (value or "").strip()
    if len(wish) > MAX_WISH_LENGTH:
        raise ValidationError(f"Wish is too long (max {MAX_WISH_LENGTH} characters).")
    return wish


def clean_expected(value: int | str | None) -> int:
    try:
        expected = int(value)
    except (TypeError, ValueError):
        expected = 0
    if not MIN_PARTICIPANTS <= expected <= MAX_PARTICIPANTS:
        raise ValidationError(
            f"Expected participants must be between {MIN_PARTICIPANTS} and {MAX_PARTICIPANTS}."
        )
    return expected
