"""Major (decade) cycles and the twelve long-life stages."""

from __future__ import annotations

from typing import Any, Dict, List, Optional

from .indices import is_clockwise

TWELVE_LIFE_STAGES = ("長生", "沐浴", "冠帶", "臨官", "帝旺", "衰", "病", "死", "墓", "絕", "胎", "養")

# nayin loci -> palace where 長生 starts
LONG_LIFE_START = {2: 8, 3: 11, 4: 5, 5: 8, 6: 2}


def _walk(start: int, step_index: int, clockwise: bool) -> int:
    return (start + step_index) % 12 if clockwise else (start - step_index) % 12


def twelve_long_life(loci: int, gender: str, lunar_year: int) -> Dict[int, str]:
    start = LONG_LIFE_START.get(loci)
    if start is None:
        raise ValueError(f"Invalid nayin loci: {loci!r}")
    clockwise = is_clockwise(gender, lunar_year)
    return {_walk(start, i, clockwise): stage for i, stage in enumerate(TWELVE_LIFE_STAGES)}


def major_cycles(loci: int, gender: str, lunar_year: int, ming_palace_index: int) -> List[Dict[str, Any]]:
    if not isinstance(loci, int) or loci not in LONG_LIFE_START:
        raise ValueError(f"Invalid nayin loci: {loci!r}")
    clockwise = is_clockwise(gender, lunar_year)
    cycles = []
    for i in range(12):
        start_age = loci + i * 10
        end_age = start_age + 9
        cycles.append({
            "start_age": start_age,
            "end_age": end_age,
            "age_range": f"{start_age}-{end_age}",
            "palace_index": _walk(ming_palace_index, i, clockwise),
            "cycle_index": i,
        })
    return cycles


def calculate_life_cycles(
    loci: Optional[int],
    gender: str,
    lunar_year: int,
    ming_palace_index: Optional[int],
) -> Dict[str, Any]:
    if loci is None or ming_palace_index is None:
        raise ValueError("life cycles need a nayin loci and a Ming palace")
    return {
        "major_cycles": major_cycles(loci, gender, lunar_year, ming_palace_index),
        "twelve_long_life": twelve_long_life(loci, gender, lunar_year),
    }
