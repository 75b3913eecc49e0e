"""Thirteen secondary (assistant and malefic) stars."""

from __future__ import annotations

from typing import Dict, Tuple

TIAN_KUI = (1, 0, 11, 11, 1, 0, 1, 6, 3, 3)
TIAN_YUE = (7, 8, 9, 9, 7, 8, 7, 2, 5, 5)
LU_CUN = (2, 3, 5, 6, 5, 6, 8, 9, 11, 0)

# year-branch triad -> (火星 start, 鈴星 start)
_FIRE_BELL_STARTS: Tuple[Tuple[frozenset, Tuple[int, int]], ...] = (
    (frozenset({8, 0, 4}), (2, 10)),
    (frozenset({2, 6, 10}), (1, 3)),
    (frozenset({5, 9, 1}), (3, 10)),
    (frozenset({11, 3, 7}), (9, 10)),
)


def fire_bell_starts(branch_index: int) -> Tuple[int, int]:
    for group, starts in _FIRE_BELL_STARTS:
        if branch_index in group:
            return starts
    raise ValueError(f"Invalid branch index for 火星/鈴星: {branch_index}")


def lu_cun_group(stem_index: int) -> Dict[str, int]:
    """祿存 with 擎羊 one palace ahead and 陀羅 one behind."""
    lu = LU_CUN[stem_index]
    return {"祿存": lu, "擎羊": (lu + 1) % 12, "陀羅": (lu - 1) % 12}


def calculate_secondary_stars(month_index: int, time_index: int, stem_index: int, branch_index: int) -> Dict[str, int]:
    fire_start, bell_start = fire_bell_starts(branch_index)
    stars = {
        "左輔": (4 + month_index) % 12,
        "右弼": (10 - month_index) % 12,
        "文昌": (10 - time_index) % 12,
        "文曲": (4 + time_index) % 12,
        "地空": (11 - time_index) % 12,
        "地劫": (11 + time_index) % 12,
        "天魁": TIAN_KUI[stem_index],
        "天鉞": TIAN_YUE[stem_index],
    }
    stars.update(lu_cun_group(stem_index))
    stars["火星"] = (fire_start + time_index) % 12
    stars["鈴星"] = (bell_start + time_index) % 12
    return stars
