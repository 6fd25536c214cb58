# blockvote/elections/status.py

# Election lifecycle derived from the voting window and the wall clock.
# Status is never stored: every read recomputes it.

from datetime import datetime, timezone
from enum import Enum

from blockvote.errors import ValidationError


class ElectionStatus(Enum):
    UPCOMING = "upcoming"
    ACTIVE = "active"
    COMPLETED = "completed"


def utcnow() -> datetime:
    """Current time as naive UTC, the form every stored timestamp uses."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def parse_timestamp(value) -> datetime:
    """Accept a datetime or an ISO-8601 string and return naive UTC."""
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, str) and value.strip():
        text = value.strip()
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        try:
            parsed = datetime.fromisoformat(text)
        except ValueError:
            raise ValidationError(f"Invalid timestamp format: {value}")
    else:
        raise ValidationError("Timestamp is required")

    if parsed.tzinfo is not None:
        parsed = parsed.astimezone(timezone.utc).replace(tzinfo=None)
    return parsed


def status_for_window(start: datetime, end: datetime, now: datetime = None) -> ElectionStatus:
    if now is None:
        now = utcnow()
    if now < start:
        return ElectionStatus.UPCOMING
    if now > end:
        return ElectionStatus.COMPLETED
    return ElectionStatus.ACTIVE


def election_status(election, now: datetime = None) -> ElectionStatus:
    return status_for_window(election.start_date, election.end_date, now)
