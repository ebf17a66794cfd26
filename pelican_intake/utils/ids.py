"""Id and clock helpers.

Components that stamp ids or timestamps take a Clock so tests can pin time.
"""

from datetime import datetime, timezone
from typing import Callable
from uuid import uuid4

Clock = Callable[[], datetime]


def utc_now() -> datetime:
    """Default wall clock (timezone-aware UTC)."""
    return datetime.now(timezone.utc)


def now_iso(clock: Clock = utc_now) -> str:
    """ISO-8601 timestamp from a clock."""
    return clock().isoformat()


def new_id(prefix: str) -> str:
    """Generate a prefixed id, e.g. ``item-3f9a1c2b``."""
    return f"{prefix}-{uuid4().hex[:8]}"
