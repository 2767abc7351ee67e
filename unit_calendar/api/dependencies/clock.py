from __future__ import annotations

from collections.abc import Callable
from datetime import datetime

from unit_calendar.calendar.clock import now_local


def get_clock() -> Callable[[], datetime]:
    """FastAPI dependency supplying the wall clock used for schedule decisions."""
    return now_local
