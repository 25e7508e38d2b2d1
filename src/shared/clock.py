"""Timezone helpers; all stored datetimes are wall-clock in the workshop zone."""

from datetime import datetime
from zoneinfo import ZoneInfo

from src.core.config import settings


def workshop_tz() -> ZoneInfo:
    return ZoneInfo(settings.default_timezone)


def now() -> datetime:
    return datetime.now(tz=workshop_tz())


def localize(value: datetime, tz: ZoneInfo | None = None) -> datetime:
    """Attach (naive) or convert (aware) a datetime into the workshop zone."""
    target = tz or workshop_tz()
    if value.tzinfo is None:
        return value.replace(tzinfo=target)
    return value.astimezone(target)
