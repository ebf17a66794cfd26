"""Utility modules for Pelican intake."""

from pelican_intake.utils.ids import Clock, new_id, now_iso, utc_now
from pelican_intake.utils.log_config import configure_logging

__all__ = [
    "Clock",
    "new_id",
    "now_iso",
    "utc_now",
    "configure_logging",
]
