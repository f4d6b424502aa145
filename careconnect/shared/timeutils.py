"""Timezone helpers shared by services."""

from datetime import datetime, tzinfo
from zoneinfo import ZoneInfo

from careconnect.core.config import settings


def default_tz() -> ZoneInfo:
    return ZoneInfo(settings.default_timezone)


def now() -> datetime:
    return datetime.now(tz=default_tz())


def localize(value: datetime, tz: tzinfo | None = None) -> datetime:
    """Attach or convert to the service timezone.

    Naive values come back from SQLite and are taken to be in the default zone.
    """
    target = tz or default_tz()
    if value.tzinfo is None:
        return value.replace(tzinfo=target)
    return value.astimezone(target)
