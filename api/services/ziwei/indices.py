"""Shared indices derived once per request and consumed by several sections."""

from __future__ import annotations

from typing import Any, Dict, Mapping, Optional

from .constants import DEFAULT_LEAP_MONTH_HANDLING

MASTER_STARS = ("貪狼", "巨門", "祿存", "文曲", "廉貞", "武曲", "破軍", "武曲", "廉貞", "文曲", "祿存", "巨門")
BODY_STARS = ("火星", "天相", "天梁", "天同", "文昌", "天機") * 2


def _to_int(value: Any, fallback: int = 0) -> int:
    if value is None or value == "":
        return fallback
    try:
        return int(float(value))
    except (TypeError, ValueError):
        return fallback


def time_index(hour: Any, minute: Any) -> int:
    """Two-hour slot (0..11) for a clock time; 23:00-00:59 is slot 0.

    A minute value of 60 or more rolls the hour forward, so ``(23, 60)``
    lands on the same slot as ``(0, 0)``.
    """
    h = _to_int(hour)
    m = _to_int(minute)
    effective = (h + 1) % 24 if m >= 60 else h
    if effective >= 23 or effective < 1:
        return 0
    return (effective + 1) // 2


def month_index(month: int, day: int, is_leap_month: bool, handling: str = DEFAULT_LEAP_MONTH_HANDLING) -> int:
    index = month - 1
    if is_leap_month:
        if handling == "nextMonth" or (handling == "monthMid" and day >= 15):
            index = month
    return index % 12


def year_stem_index(lunar_year: int) -> int:
    return (lunar_year - 4) % 10


def year_branch_index(lunar_year: int) -> int:
    return (lunar_year - 4) % 12


def is_clockwise(gender: str, lunar_year: int) -> bool:
    """Yang-year men and yin-year women count forward around the board."""
    yang = year_branch_index(lunar_year) % 2 == 0
    return (gender == "M" and yang) or (gender == "F" and not yang)


def master_palace(lunar_year: int) -> Dict[str, Any]:
    branch = year_branch_index(lunar_year)
    return {"branch_index": branch, "star_name": MASTER_STARS[branch], "type": "master"}


def body_palace(lunar_year: int) -> Dict[str, Any]:
    branch = year_branch_index(lunar_year)
    return {"branch_index": branch, "star_name": BODY_STARS[branch], "type": "body"}


def gender_classification(gender: str, lunar_year: int) -> Optional[str]:
    if gender not in ("M", "F"):
        return None
    yang = (lunar_year - 1864) % 10 % 2 == 0
    return ("陽" if yang else "陰") + ("男" if gender == "M" else "女")


def derive_indices(
    meta: Mapping[str, Any],
    lunar: Mapping[str, Any],
    solar: Mapping[str, Any],
) -> Dict[str, Any]:
    lunar_year = lunar["lunar_year"]
    slot = lunar.get("time_index")
    if slot is None:
        slot = time_index(solar.get("hour"), solar.get("minute"))
    indices: Dict[str, Any] = {
        "year_stem_index": year_stem_index(lunar_year),
        "year_branch_index": year_branch_index(lunar_year),
        "month_index": month_index(
            lunar["lunar_month"],
            lunar["lunar_day"],
            bool(lunar.get("is_leap_month")),
            meta.get("leap_month_handling") or DEFAULT_LEAP_MONTH_HANDLING,
        ),
        "time_index": slot,
        "body_palace": body_palace(lunar_year),
        "master_palace": master_palace(lunar_year),
        "gender_classification": gender_classification(meta.get("gender", ""), lunar_year),
    }
    if lunar.get("day_branch_index") is not None:
        indices["day_branch_index"] = lunar["day_branch_index"]
    return indices
