"""Server clock helpers. All stored datetimes are naive UTC."""
import calendar
from datetime import datetime, timedelta, timezone

EPOCH = datetime(1970, 1, 1)

def utcnow() -> datetime:
    return datetime.utcnow()

def to_unix(moment: datetime) -> int:
    """Naive UTC datetime to whole unix seconds."""
    return calendar.timegm(moment.utctimetuple())

def from_unix(seconds: int) -> datetime:
    return EPOCH + timedelta(seconds=seconds)

def parse_iso(value: str) -> datetime:
    """Parse an ISO-8601 timestamp into naive UTC.

    Offset-aware input is converted to UTC first.
    """
    if value.endswith('Z'):
        value = value[:-1] + '+00:00'
    moment = datetime.fromisoformat(value)
    if moment.tzinfo is not None:
        moment = moment.astimezone(timezone.utc).replace(tzinfo=None)
    return moment
