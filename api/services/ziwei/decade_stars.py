"""Decade (大限) flying stars, placed from the decade palace's stem and branch."""

from __future__ import annotations

from typing import Dict, Optional

from .secondary import LU_CUN, TIAN_KUI, TIAN_YUE, fire_bell_starts

DA_CHANG = (5, 6, 8, 9, 8, 9, 11, 0, 2, 3)
DA_QU = (9, 8, 6, 5, 6, 5, 3, 2, 0, 11)


def decade_stars(stem_index: int, branch_index: Optional[int] = None, time_index: Optional[int] = None) -> Dict[str, int]:
    s = stem_index % 10
    lu = LU_CUN[s]
    stars = {
        "大昌": DA_CHANG[s],
        "大曲": DA_QU[s],
        "大魁": TIAN_KUI[s],
        "大鉞": TIAN_YUE[s],
        "大祿": lu,
        "大羊": (lu + 1) % 12,
        "大陀": (lu - 1) % 12,
    }
    if branch_index is None or time_index is None:
        return stars
    fire_start, bell_start = fire_bell_starts(branch_index)
    stars.update({
        "大火": (fire_start + time_index) % 12,
        "大鈴": (bell_start + time_index) % 12,
        "大馬": (2, 11, 8, 5)[branch_index % 4],
        "大鸞": (3 - branch_index) % 12,
        "大喜": (9 - branch_index) % 12,
    })
    return stars
