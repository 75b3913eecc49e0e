"""Decade (大限) and annual (流年) overlays on a computed chart."""

from __future__ import annotations

from typing import Any, Dict

from ...schemas.ziwei import ChartSnapshot
from .constants import BRANCH_NAMES, STEM_NAMES
from .decade_stars import decade_stars
from .errors import AdapterError, ErrorKind
from .indices import year_branch_index, year_stem_index
from .mutations import calculate_mutations


def decade_overlay(snapshot: ChartSnapshot, cycle_index: int) -> Dict[str, Any]:
    cycles = snapshot.sections.get("life_cycles", {}).get("major_cycles") or []
    cycle = next((c for c in cycles if c["cycle_index"] == cycle_index), None)
    if cycle is None:
        raise AdapterError(
            ErrorKind.OUTPUT_SECTION_FAILED,
            f"major cycle {cycle_index} is not available",
            {"cycle_index": cycle_index, "cycles": len(cycles)},
            section="life_cycles",
        )
    palace = snapshot.derived.palaces.get(cycle["palace_index"])
    if palace is None or palace.stem_index < 0:
        raise AdapterError(
            ErrorKind.OUTPUT_SECTION_FAILED,
            f"palace {cycle['palace_index']} has no stem",
            {"palace_index": cycle["palace_index"]},
            section="palaces",
        )
    interpretations = snapshot.meta.get("stem_interpretations") or {}
    return {
        "cycle_index": cycle_index,
        "palace_index": palace.index,
        "stem": palace.stem,
        "stem_index": palace.stem_index,
        "branch_zhi": palace.branch_zhi,
        "age_range": cycle.get("age_range"),
        "stars": decade_stars(palace.stem_index, palace.branch_index, snapshot.indices.get("time_index")),
        "mutations": calculate_mutations(palace.stem_index, interpretations),
    }


def annual_overlay(snapshot: ChartSnapshot, year: int) -> Dict[str, Any]:
    """Year stem/branch and mutations; the annual Ming sits on the year branch."""
    stem_index = year_stem_index(year)
    branch_index = year_branch_index(year)
    interpretations = snapshot.meta.get("stem_interpretations") or {}
    return {
        "year": year,
        "stem": STEM_NAMES[stem_index],
        "stem_index": stem_index,
        "branch_zhi": BRANCH_NAMES[branch_index],
        "branch_index": branch_index,
        "ming_palace_index": branch_index,
        "mutations": calculate_mutations(stem_index, interpretations),
    }
