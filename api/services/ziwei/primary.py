"""Fourteen primary stars, seeded from the 紫微 position."""

from __future__ import annotations

import math
from typing import Dict, Optional

ZIWEI_GROUP_OFFSETS = {"廉貞": 4, "天同": 7, "武曲": 8, "太陽": 9, "天機": 11}
TIANFU_GROUP_OFFSETS = {"太陰": 1, "貪狼": 2, "巨門": 3, "天相": 4, "天梁": 5, "七殺": 6, "破軍": 10}

VALID_LOCI = (2, 3, 4, 5, 6)


def ziwei_position(lunar_day: int, loci: int) -> Optional[int]:
    if not lunar_day or not (1 <= lunar_day <= 30) or loci not in VALID_LOCI:
        return None
    step = math.ceil(lunar_day / loci)
    remainder = step * loci - lunar_day
    if remainder % 2 == 0:
        total = step + remainder - 1
    else:
        total = step - remainder - 1
    return (2 + total) % 12


def tianfu_position(ziwei_index: int) -> int:
    return (4 - ziwei_index) % 12


def place_primary_stars(lunar_day: Optional[int], loci: Optional[int]) -> Dict[str, int]:
    """Map each primary star to its palace index; empty when inputs are unusable."""
    if lunar_day is None or loci is None:
        return {}
    ziwei = ziwei_position(lunar_day, loci)
    if ziwei is None:
        return {}

    stars = {"紫微": ziwei}
    for name, offset in ZIWEI_GROUP_OFFSETS.items():
        stars[name] = (ziwei + offset) % 12

    tianfu = tianfu_position(ziwei)
    stars["天府"] = tianfu
    for name, offset in TIANFU_GROUP_OFFSETS.items():
        stars[name] = (tianfu + offset) % 12
    return stars
