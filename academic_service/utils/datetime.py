# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""DateTime utilities.

All timestamps are stored in UTC and all Python datetimes are
timezone-aware (timezone.utc).

Usage:
    from academic_service.utils.datetime import utc_now

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utc_now)
"""

from datetime import datetime, timedelta, timezone


def utc_now() -> datetime:
    """Get current UTC time as timezone-aware datetime."""
    return datetime.now(timezone.utc)


def ensure_utc(dt: datetime | None) -> datetime | None:
    """Ensure a datetime is timezone-aware UTC.

    Args:
        dt: A datetime object (naive or aware) or None.

    Returns:
        Timezone-aware UTC datetime or None. Naive values are assumed UTC.
    """
    if dt is None:
        return None

    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)

    return dt.astimezone(timezone.utc)


def minutes_from_now(minutes: int) -> datetime:
    """Get UTC datetime N minutes in the future."""
    return utc_now() + timedelta(minutes=minutes)


def is_expired(expiry: datetime | None) -> bool:
    """Check if a datetime has passed.

    Args:
        expiry: The expiry datetime, or None for "never expires".

    Returns:
        True if expiry is in the past.
    """
    if expiry is None:
        return False
    return ensure_utc(expiry) < utc_now()
