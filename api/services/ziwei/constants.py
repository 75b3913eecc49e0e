"""Static lookup tables shared by the Zi Wei Dou Shu pipeline.

All tables are read-only module constants; nothing here is mutated at
runtime, so they are safe to share across concurrent requests.
"""

from __future__ import annotations

import re
from typing import Dict, List, Tuple

STEM_NAMES: Tuple[str, ...] = ("甲", "乙", "丙", "丁", "戊", "己", "庚", "辛", "壬", "癸")
BRANCH_NAMES: Tuple[str, ...] = ("子", "丑", "寅", "卯", "辰", "巳", "午", "未", "申", "酉", "戌", "亥")
ZODIAC_ANIMALS: Tuple[str, ...] = ("鼠", "牛", "虎", "兔", "龍", "蛇", "馬", "羊", "猴", "雞", "狗", "豬")

LUNAR_YEAR_MIN = 1900
LUNAR_YEAR_MAX = 2100

# 4x4 board layout; -1 marks the centre cells.
GRID_BRANCH_MAP: Tuple[Tuple[int, ...], ...] = (
    (5, 6, 7, 8),
    (4, -1, -1, 9),
    (3, -1, -1, 10),
    (2, 1, 0, 11),
)

TRI_SQUARE_MAP: Tuple[Dict[str, int], ...] = tuple(
    {
        "self": i,
        "opposition": (i + 6) % 12,
        "trine1": (i + 4) % 12,
        "trine2": (i + 8) % 12,
    }
    for i in range(12)
)

FIELD_PATTERNS: Dict[str, "re.Pattern[str]"] = {
    "year": re.compile(r"^\d{4}$"),
    "month": re.compile(r"^(0?[1-9]|1[0-2])$"),
    "day": re.compile(r"^(0?[1-9]|[12]\d|3[01])$"),
    "hour": re.compile(r"^([01]?\d|2[0-3])$"),
    "minute": re.compile(r"^[0-5]?\d$"),
}

CALENDAR_TYPES = ("solar", "lunar")
LEAP_MONTH_HANDLING = ("monthMid", "currentMonth", "nextMonth")
ZI_HOUR_HANDLING = ("midnightChange", "ziChange")
BRIGHTNESS_SCHOOLS = ("shuoshu",)
PALACE_SCHOOLS = ("standard",)

DEFAULT_NAME = "unknown"
DEFAULT_CALENDAR_TYPE = "solar"
DEFAULT_LEAP_MONTH_HANDLING = "monthMid"
DEFAULT_ZI_HOUR_HANDLING = "midnightChange"
DEFAULT_BRIGHTNESS_SCHOOL = "shuoshu"
DEFAULT_PALACE_SCHOOL = "standard"

MUTATION_TYPES: Tuple[str, ...] = ("祿", "權", "科", "忌")

# Star names whose positions feed the minor-star and attribute sections.
STAR_LU_CUN = "祿存"
STAR_WEN_QU = "文曲"
STAR_WEN_CHANG = "文昌"
STAR_ZUO_FU = "左輔"
STAR_YOU_BI = "右弼"

MIGRATION_PALACE_NAMES = ("遷移", "身遷")

SECTION_NAMES: List[str] = [
    "palaces",
    "primary_stars",
    "secondary_stars",
    "mutations",
    "minor_stars",
    "attributes",
    "life_cycles",
    "brightness",
]


def ganzhi(year: int) -> str:
    """Sexagenary label of a lunar year, e.g. 1990 -> 庚午."""
    offset = (year - 1864) % 60
    return STEM_NAMES[offset % 10] + BRANCH_NAMES[offset % 12]


def zodiac_animal(year: int) -> str:
    return ZODIAC_ANIMALS[(year - 4) % 12]
