"""Year-based attribute rings (太歲, 將前 and 博士 twelve-star cycles)."""

from __future__ import annotations

from typing import Dict, List

TAI_SUI_STARS = ("太歲", "晦氣", "喪門", "貫索", "官符", "小耗", "歲破", "龍德", "白虎", "天德", "吊客", "病符")
JIANG_QIAN_STARS = ("將星", "攀鞍", "歲驛", "息神", "華蓋", "劫煞", "災煞", "天煞", "指背", "咸池", "月煞", "亡神")
BO_SHI_STARS = ("博士", "力士", "青龍", "小耗", "將軍", "奏書", "飛廉", "喜神", "病符", "大耗", "伏兵", "官符")

_JIANG_QIAN_START = (0, 9, 6, 3)


def tai_sui_ring(year_branch_index: int) -> Dict[str, int]:
    return {name: (year_branch_index + i) % 12 for i, name in enumerate(TAI_SUI_STARS)}


def jiang_qian_ring(year_branch_index: int) -> Dict[str, int]:
    start = _JIANG_QIAN_START[year_branch_index % 4]
    return {name: (start + i) % 12 for i, name in enumerate(JIANG_QIAN_STARS)}


def bo_shi_ring(reference_index: int, clockwise: bool) -> Dict[str, int]:
    step = 1 if clockwise else -1
    return {name: (reference_index + step * i) % 12 for i, name in enumerate(BO_SHI_STARS)}


def calculate_attributes(year_branch_index: int, reference_index: int, clockwise: bool) -> Dict[int, List[str]]:
    """Names of the ring stars sitting in each palace, keyed 0..11.

    ``reference_index`` is the 祿存 palace that anchors the 博士 ring.
    """
    by_palace: Dict[int, List[str]] = {i: [] for i in range(12)}
    for ring in (tai_sui_ring(year_branch_index), jiang_qian_ring(year_branch_index),
                 bo_shi_ring(reference_index, clockwise)):
        for name, palace in ring.items():
            by_palace[palace].append(name)
    return by_palace
