"""Centralized Timezone Utilities - All datetime operations should use these functions."""

from datetime import datetime, timezone
from typing import Optional, Union

UTC = timezone.utc


def utc_now() -> datetime:
    """Return timezone-aware UTC datetime."""
    return datetime.now(UTC)


def ensure_utc(value: Optional[Union[datetime, str]]) -> Optional[datetime]:
    """Normalize a stored timestamp (naive, aware or ISO string) to aware UTC."""
    if value is None:
        return None
    if isinstance(value, str):
        value = datetime.fromisoformat(value.replace("Z", "+00:00"))
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value.astimezone(UTC)
