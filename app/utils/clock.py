# app/utils/clock.py
from datetime import datetime, timezone


def utcnow() -> datetime:
    # naive UTC, matching what the DateTime columns hand back
    return datetime.now(timezone.utc).replace(tzinfo=None)
