"""Palace placement: Ming/Shen positions, palace names and palace stems."""

from __future__ import annotations

from typing import Any, Dict, List, Mapping, Optional

from .constants import BRANCH_NAMES, DEFAULT_PALACE_SCHOOL, STEM_NAMES
from .indices import month_index as _month_index, year_stem_index

PALACE_NAMES: Dict[str, List[str]] = {
    "standard": ["命宮", "父母", "福德", "田宅", "事業", "交友", "遷移", "疾厄", "財帛", "子女", "夫妻", "兄弟"],
}

SHEN_COMBINED_NAMES: Dict[str, Dict[str, str]] = {
    "standard": {
        "命宮": "身命",
        "福德": "身福",
        "事業": "身事",
        "官祿": "身官",
        "夫妻": "身夫",
        "財帛": "身財",
        "遷移": "身遷",
    },
}

# Yin-palace stem for each year stem group (five-tiger rule).
_YIN_START_STEM = (2, 4, 6, 8, 0)


def ming_position(month_index: int, time_index: int) -> int:
    return (14 + month_index - time_index) % 12


def shen_position(month_index: int, time_index: int) -> int:
    return (14 + month_index + time_index) % 12


def palace_stem_index(palace_index: int, lunar_year: int) -> int:
    start = _YIN_START_STEM[year_stem_index(lunar_year) % 5]
    return (start + (palace_index - 2) % 12) % 10


def build_palace_table(
    ming: int,
    shen: int,
    lunar_year: Optional[int],
    school: str = DEFAULT_PALACE_SCHOOL,
) -> Dict[int, Dict[str, Any]]:
    names = PALACE_NAMES.get(school)
    if names is None:
        raise ValueError(f"Unknown palace school: {school}")
    combined = SHEN_COMBINED_NAMES.get(school, {})

    palaces: Dict[int, Dict[str, Any]] = {}
    for offset, base_name in enumerate(names):
        index = (ming + offset) % 12
        is_shen = index == shen
        stem_index = palace_stem_index(index, lunar_year) if lunar_year else -1
        palaces[index] = {
            "index": index,
            "name": combined.get(base_name, base_name) if is_shen else base_name,
            "is_ming": index == ming,
            "is_shen": is_shen,
            "stem": STEM_NAMES[stem_index] if stem_index >= 0 else "",
            "stem_index": stem_index,
            "branch_zhi": BRANCH_NAMES[index],
            "branch_index": index,
        }
    return palaces


def calculate_palaces(
    lunar: Mapping[str, Any],
    gender: str,
    month_index: Optional[int] = None,
    school: str = DEFAULT_PALACE_SCHOOL,
) -> Dict[int, Dict[str, Any]]:
    """Twelve-entry palace table keyed by branch index.

    ``month_index`` is the leap-adjusted index from the index deriver; when
    omitted it is recomputed with the mid-month rule. Returns an empty table
    when the lunar record lacks month, day or time slot.
    """
    month = lunar.get("lunar_month")
    day = lunar.get("lunar_day")
    slot = lunar.get("time_index")
    if not month or not day or slot is None:
        return {}
    if month_index is None:
        month_index = _month_index(month, day, bool(lunar.get("is_leap_month")))
    ming = ming_position(month_index, slot)
    shen = shen_position(month_index, slot)
    return build_palace_table(ming, shen, lunar.get("lunar_year"), school)


def palace_list(palaces: Mapping[int, Mapping[str, Any]]) -> List[Dict[str, Any]]:
    return [dict(palaces[i]) for i in range(12) if i in palaces]
