import re
from datetime import UTC, date, datetime

# "2024-05-01 3:14pm GMT" (query_plugins / plugin_information) or "2024-05-01"
_CATALOG_DATE_RE = re.compile(r"^\s*(\d{4})-(\d{1,2})-(\d{1,2})")


def _utc_now() -> datetime:
    """Return current UTC time as timezone-aware datetime."""
    return datetime.now(UTC)


def parse_catalog_date(value: object) -> date | None:
    """Parse a catalog date field, returning None when it is missing or unparseable."""
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if not isinstance(value, str):
        return None

    match = _CATALOG_DATE_RE.match(value)
    if match is None:
        return None
    try:
        return date(int(match.group(1)), int(match.group(2)), int(match.group(3)))
    except ValueError:
        return None


def days_since(day: date, now: datetime) -> int:
    """Whole days elapsed between a calendar date and now (never negative)."""
    return max(0, (now.date() - day).days)
