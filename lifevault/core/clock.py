from datetime import datetime, timezone


def utcnow() -> datetime:
    """Naive UTC timestamp; SQLite drops tzinfo on the round trip so we never store it."""
    return datetime.now(timezone.utc).replace(tzinfo=None)
