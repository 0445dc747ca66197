"""
Timestamp source for persisted rows.

Session recency and message order are compared by timestamp, so stamps handed
out by this process never repeat and never go backwards, even when the system
clock is coarse or steps back.
"""
import threading
from datetime import datetime, timedelta, timezone
from typing import Optional

_lock = threading.Lock()
_last: Optional[datetime] = None


def utcnow() -> datetime:
    """Return a naive UTC timestamp strictly greater than the previous one."""
    global _last
    with _lock:
        now = datetime.now(timezone.utc).replace(tzinfo=None)
        if _last is not None and now <= _last:
            now = _last + timedelta(microseconds=1)
        _last = now
        return now
