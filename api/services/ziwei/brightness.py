"""Star brightness (廟旺利陷) lookup by palace branch.

Tables list one level per earthly branch, 子 through 亥. ``-`` marks a branch
where the star has no rating; such placements are left out of the result.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Mapping, Sequence

logger = logging.getLogger(__name__)

SHUOSHU_TABLE: Dict[str, Sequence[str]] = {
    "紫微": ("平", "廟", "廟", "旺", "陷", "旺", "廟", "廟", "旺", "平", "閒", "旺"),
    "天機": ("廟", "陷", "地", "旺", "利", "平", "廟", "陷", "地", "旺", "利", "平"),
    "太陽": ("陷", "失", "旺", "廟", "旺", "旺", "旺", "地", "地", "平", "失", "陷"),
    "武曲": ("旺", "廟", "地", "利", "廟", "平", "旺", "廟", "地", "利", "廟", "平"),
    "天同": ("旺", "失", "利", "平", "平", "廟", "陷", "失", "旺", "平", "平", "廟"),
    "廉貞": ("平", "利", "廟", "平", "利", "陷", "平", "利", "廟", "平", "利", "陷"),
    "天府": ("廟", "廟", "廟", "地", "廟", "地", "旺", "廟", "地", "旺", "廟", "地"),
    "太陰": ("廟", "廟", "旺", "陷", "陷", "陷", "失", "失", "利", "旺", "旺", "廟"),
    "貪狼": ("旺", "廟", "平", "利", "廟", "陷", "旺", "廟", "平", "利", "廟", "陷"),
    "巨門": ("旺", "失", "廟", "廟", "陷", "旺", "旺", "失", "廟", "廟", "陷", "旺"),
    "天相": ("廟", "廟", "廟", "陷", "地", "地", "廟", "廟", "廟", "陷", "地", "地"),
    "天梁": ("廟", "旺", "廟", "廟", "廟", "陷", "廟", "旺", "陷", "地", "廟", "陷"),
    "七殺": ("旺", "廟", "廟", "旺", "廟", "平", "旺", "廟", "廟", "旺", "廟", "平"),
    "破軍": ("廟", "旺", "地", "陷", "旺", "平", "廟", "旺", "地", "陷", "旺", "平"),
    "天魁": ("旺", "旺", "-", "廟", "-", "-", "廟", "-", "-", "-", "-", "旺"),
    "天鉞": ("-", "-", "旺", "-", "-", "旺", "-", "旺", "廟", "廟", "-", "-"),
    "左輔": ("旺", "廟", "廟", "陷", "廟", "平", "旺", "廟", "平", "陷", "廟", "閒"),
    "右弼": ("廟", "廟", "旺", "陷", "廟", "平", "旺", "廟", "閒", "陷", "廟", "平"),
    "文昌": ("地", "廟", "陷", "利", "地", "廟", "陷", "利", "地", "廟", "陷", "利"),
    "文曲": ("地", "廟", "平", "旺", "地", "廟", "陷", "旺", "地", "廟", "陷", "旺"),
    "火星": ("陷", "地", "廟", "利", "陷", "地", "廟", "利", "陷", "地", "廟", "利"),
    "鈴星": ("陷", "地", "廟", "利", "陷", "地", "廟", "利", "陷", "地", "廟", "利"),
    "祿存": ("廟", "-", "廟", "廟", "-", "廟", "廟", "-", "廟", "廟", "-", "廟"),
    "擎羊": ("陷", "廟", "-", "陷", "廟", "-", "平", "廟", "-", "陷", "廟", "-"),
    "陀羅": ("-", "廟", "陷", "-", "廟", "陷", "-", "廟", "陷", "-", "廟", "陷"),
    "地空": ("平", "陷", "陷", "平", "陷", "廟", "廟", "平", "廟", "廟", "陷", "陷"),
    "地劫": ("陷", "陷", "平", "平", "陷", "閒", "廟", "平", "廟", "平", "平", "旺"),
}

SCHOOL_TABLES: Dict[str, Dict[str, Sequence[str]]] = {"shuoshu": SHUOSHU_TABLE}

NO_RATING = "-"


def brightness_table(school: str) -> Dict[str, Sequence[str]]:
    return SCHOOL_TABLES.get(school, {})


def lookup(star: str, branch_index: int, school: str = "shuoshu") -> str:
    levels = brightness_table(school).get(star)
    if not levels or not 0 <= branch_index <= 11:
        return ""
    level = levels[branch_index]
    return "" if level == NO_RATING else level


def calculate_brightness(
    stars: Mapping[str, Any],
    palaces: Mapping[int, Mapping[str, Any]],
    school: str = "shuoshu",
) -> Dict[str, Dict[str, Any]]:
    """Rate every star in ``stars`` (name -> palace index) against its palace branch."""
    if not brightness_table(school):
        logger.warning("ziwei.brightness.unknown_school", extra={"school": school})
        return {}
    out: Dict[str, Dict[str, Any]] = {}
    for star, palace_index in (stars or {}).items():
        if not isinstance(palace_index, int):
            continue
        palace = palaces.get(palace_index)
        if not palace:
            continue
        level = lookup(star, palace["branch_index"], school)
        if not level:
            continue
        out[star] = {
            "brightness": level,
            "palace_index": palace_index,
            "branch_index": palace["branch_index"],
            "stem": palace.get("stem", ""),
            "branch_zhi": palace.get("branch_zhi", ""),
        }
    return out
