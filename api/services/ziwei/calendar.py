"""Solar to lunar conversion backed by ``lunar-python``.

The normalizer only depends on the ``CalendarOracle`` call shape, so any
callable with the same signature can be injected instead (tests do this).
"""

from __future__ import annotations

import logging
from datetime import date, timedelta
from typing import Any, Callable, Dict

from lunar_python import Solar

from .constants import ganzhi, zodiac_animal

logger = logging.getLogger(__name__)

CalendarOracle = Callable[[int, int, int, int, int], Dict[str, Any]]


def solar_to_lunar(year: int, month: int, day: int, hour: int, minute: int) -> Dict[str, Any]:
    """Convert a civil (solar) date/time into the lunar record used by the chart.

    ``lunar-python`` encodes leap months as negative month numbers; the
    record exposes the absolute month plus ``is_leap_month``. Impossible
    civil dates raise ``ValueError``; ``Solar`` would roll them forward.
    """
    date(year, month, day)
    lunar = Solar.fromYmdHms(year, month, day, hour, minute, 0).getLunar()
    lunar_month = lunar.getMonth()
    record = {
        "lunar_year": lunar.getYear(),
        "lunar_month": abs(lunar_month),
        "lunar_day": lunar.getDay(),
        "is_leap_month": lunar_month < 0,
        "hour": hour,
        "minute": minute,
        "day_branch_index": lunar.getDayZhiIndex(),
    }
    record["year_ganzhi"] = ganzhi(record["lunar_year"])
    record["zodiac"] = zodiac_animal(record["lunar_year"])
    logger.debug("ziwei.calendar.converted", extra={"solar": (year, month, day), "lunar": record})
    return record


def next_civil_day(year: int, month: int, day: int) -> tuple[int, int, int]:
    """Civil date one day later; used when births at 23:xx start the next day."""
    nxt = date(year, month, day) + timedelta(days=1)
    return nxt.year, nxt.month, nxt.day
