from datetime import datetime
from zoneinfo import ZoneInfo

UTC = ZoneInfo("UTC")


def get_utc_now() -> datetime:
    """
    Get the current date and time in UTC.

    Returns:
        datetime: The current date and time in UTC with tzinfo set to ZoneInfo("UTC").
    """
    return datetime.now(UTC)


def from_unix_seconds(seconds: int | float) -> datetime:
    """Offset-aware UTC datetime for a unix timestamp."""
    return datetime.fromtimestamp(seconds, UTC)
