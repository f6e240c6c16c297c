# nocram/utils/time.py
from datetime import datetime, timezone


def utcnow() -> datetime:
    """Current UTC instant as a naive datetime, the form every stored timestamp uses."""
    return datetime.now(timezone.utc).replace(tzinfo=None)
