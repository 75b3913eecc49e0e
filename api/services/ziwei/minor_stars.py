"""Minor (miscellaneous) stars.

The placement rules take a fixed record of inputs gathered from the indices,
the palace table and four secondary-star positions; ``MinorStarsInput``
carries that record so the oracle call stays a single argument.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, List, Optional, Union

from .indices import is_clockwise

TIAN_GUAN = (7, 4, 5, 2, 3, 9, 11, 9, 10, 6)
TIAN_FU = (9, 8, 0, 11, 3, 2, 6, 5, 6, 5)
TIAN_CHU = (5, 6, 0, 5, 6, 8, 2, 6, 9, 11)
GU_CHEN = (2, 2, 5, 5, 5, 8, 8, 8, 11, 11, 11, 2)
GUA_SU = (10, 10, 1, 1, 1, 4, 4, 4, 7, 7, 7, 10)
DA_HAO = (7, 6, 9, 8, 11, 10, 1, 0, 3, 2, 5, 4)
TIAN_YUE = (10, 5, 4, 2, 7, 3, 11, 7, 2, 6, 10, 2)


@dataclass(frozen=True)
class MinorStarsInput:
    month_index: int
    time_index: int
    year_branch_index: int
    day_branch_index: Optional[int]
    year_stem_index: int
    ming_palace_index: Optional[int]
    shen_palace_index: Optional[int]
    gender: str
    lunar_year: int
    migration_palace_index: Optional[int]
    wen_qu_index: int
    zuo_fu_index: int
    you_bi_index: int
    wen_chang_index: int
    lunar_day: int


Placement = Union[int, List[int]]


def calculate_minor_stars(data: MinorStarsInput) -> Dict[str, Placement]:
    if None in (data.ming_palace_index, data.shen_palace_index, data.migration_palace_index):
        raise ValueError("minor stars need resolved Ming, Shen and migration palaces")
    s = data.year_stem_index
    b = data.year_branch_index
    m = data.month_index
    day = data.lunar_day

    stars: Dict[str, Placement] = {
        "天官": TIAN_GUAN[s],
        "天福": TIAN_FU[s],
        "天廚": TIAN_CHU[s],
    }

    jie_kong = (8 - (s % 5) * 2) % 12
    stars["截空"] = [jie_kong, (jie_kong + 1) % 12]
    # 旬空: the two branches left over after the stem cycle reaches 癸
    xun_base = (b + 9 - s) % 12
    stars["旬空"] = [(xun_base + 1) % 12, (xun_base + 2) % 12]

    stars.update({
        "天馬": (2, 11, 8, 5)[b % 4],
        "天空": (b + 1) % 12,
        "天哭": (6 - b) % 12,
        "天虛": (6 + b) % 12,
        "紅鸞": (3 - b) % 12,
        "天喜": (9 - b) % 12,
        "孤辰": GU_CHEN[b],
        "寡宿": GUA_SU[b],
        "劫殺": (5, 2, 11, 8)[b % 4],
        "大耗": DA_HAO[b],
        "蜚廉": ((b // 3 * 3 + 8) % 12 + b % 3) % 12,
        "破碎": (5, 1, 9)[b % 3],
        "華蓋": (4, 1, 10, 7)[b % 4],
        "咸池": (9, 6, 3, 0)[b % 4],
        "龍德": (7 + b) % 12,
        "月德": (5 + b) % 12,
        "天德": (9 + b) % 12,
        "年解": (10 - b) % 12,
        "天才": (data.ming_palace_index + b) % 12,
        "天壽": (data.shen_palace_index + b) % 12,
        "龍池": (4 + b) % 12,
        "鳳閣": (10 - b) % 12,
    })

    stars.update({
        "天刑": (9 + m) % 12,
        "天姚": (1 + m) % 12,
        "解神": (8 + (m // 2) * 2) % 12,
        "天巫": (5, 8, 2, 11)[m % 4],
        "天月": TIAN_YUE[m],
        "陰煞": (2 - (m % 6) * 2) % 12,
    })

    offset = -1 if is_clockwise(data.gender, data.lunar_year) else 1
    stars["天傷"] = (data.migration_palace_index + offset) % 12
    stars["天使"] = (data.migration_palace_index - offset) % 12

    stars.update({
        "台輔": (data.wen_qu_index + 2) % 12,
        "封誥": (data.wen_qu_index - 2) % 12,
        "三台": (data.zuo_fu_index + day - 1) % 12,
        "八座": (data.you_bi_index - (day - 1)) % 12,
        "恩光": (data.wen_chang_index + day - 2) % 12,
        "天貴": (data.wen_qu_index + day - 2) % 12,
    })
    return stars
