"""UTC clock adapter."""

from datetime import UTC, datetime


class UtcClockAdapter:
    """Clock returning the current UTC time."""

    def now(self) -> datetime:
        return datetime.now(UTC)
