# Overview: UTC timestamp helpers for shift and sale records.

from __future__ import annotations

from datetime import datetime, timezone
from typing import Optional, Union

from .validation import ValidationError


def utcnow() -> datetime:
    """Server-side 'now' in UTC. Stored naive; every column is UTC."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def parse_sale_timestamp(value: Union[str, datetime, None], field: str = "occurred_at") -> Optional[datetime]:
    """
    Normalize a checkout-supplied sale time to UTC-naive.

    Accepts a datetime or an ISO-8601 string ("...Z" and "+HH:MM" offsets
    are converted; naive values are taken as UTC). Blank means "not given".
    """
    if value is None:
        return None

    if isinstance(value, datetime):
        dt = value
    elif isinstance(value, str):
        text = value.strip()
        if not text:
            return None
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        try:
            dt = datetime.fromisoformat(text)
        except ValueError:
            raise ValidationError(f"{field} must be an ISO-8601 datetime")
    else:
        raise ValidationError(f"{field} must be an ISO-8601 datetime")

    if dt.tzinfo is not None:
        dt = dt.astimezone(timezone.utc).replace(tzinfo=None)
    return dt


def shift_duration_seconds(opened_at: Optional[datetime], closed_at: Optional[datetime]) -> Optional[int]:
    # Open shifts have no duration yet
    if opened_at is None or closed_at is None:
        return None
    return max(0, int((closed_at - opened_at).total_seconds()))


def to_utc_z(dt: Optional[datetime]) -> Optional[str]:
    """Serialize to ISO-8601 with a trailing 'Z', to the second."""
    if dt is None:
        return None
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc).replace(microsecond=0).isoformat().replace("+00:00", "Z")
