from datetime import datetime, timezone
from typing import Callable, Optional

# Mongo hands back naive datetimes, so everything stored is naive UTC.
Clock = Callable[[], datetime]


def utc_now() -> datetime:
    return datetime.now(timezone.utc).replace(tzinfo=None)


def to_naive_utc(value: Optional[datetime]) -> Optional[datetime]:
    if value is None or value.tzinfo is None:
        return value
    return value.astimezone(timezone.utc).replace(tzinfo=None)


def to_timestamp(value: datetime) -> int:
    return int(value.replace(tzinfo=timezone.utc).timestamp())


def isoformat(value: Optional[datetime]) -> Optional[str]:
    return value.isoformat() if value else None
