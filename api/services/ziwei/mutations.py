"""Four Mutations (四化) by heavenly stem, Zhongzhou school.

Six stems have competing traditions; callers select an alternative per stem
through ``interpretations`` (``{"庚": "interpretation_3"}``). Unknown
selections fall back to ``interpretation_1``, the Zhongzhou default.
"""

from __future__ import annotations

import logging
from typing import Dict, Mapping, Optional, Union

from .constants import MUTATION_TYPES, STEM_NAMES

logger = logging.getLogger(__name__)

ZHONGZHOU_TABLE: Dict[str, Dict[str, str]] = {
    "甲": {"祿": "廉貞", "權": "破軍", "科": "武曲", "忌": "太陽"},
    "乙": {"祿": "天機", "權": "天梁", "科": "紫微", "忌": "太陰"},
    "丙": {"祿": "天同", "權": "天機", "科": "文昌", "忌": "廉貞"},
    "丁": {"祿": "太陰", "權": "天同", "科": "天機", "忌": "巨門"},
    "戊": {"祿": "貪狼", "權": "太陰", "科": "太陽", "忌": "天機"},
    "己": {"祿": "武曲", "權": "貪狼", "科": "天梁", "忌": "文曲"},
    "庚": {"祿": "太陽", "權": "武曲", "科": "天府", "忌": "天同"},
    "辛": {"祿": "巨門", "權": "太陽", "科": "文曲", "忌": "文昌"},
    "壬": {"祿": "天梁", "權": "紫微", "科": "天府", "忌": "武曲"},
    "癸": {"祿": "破軍", "權": "巨門", "科": "太陰", "忌": "貪狼"},
}

# Only the codes that differ from the Zhongzhou row are listed.
CONTROVERSIAL_VARIANTS: Dict[str, Dict[str, Dict[str, str]]] = {
    "甲": {"interpretation_2": {"科": "文曲"}},
    "戊": {"interpretation_2": {"科": "右弼"}},
    "庚": {
        "interpretation_2": {"科": "太陰"},
        "interpretation_3": {"科": "天同", "忌": "太陰"},
        "interpretation_4": {"科": "天同", "忌": "天相"},
    },
    "辛": {"interpretation_2": {"科": "武曲"}},
    "壬": {"interpretation_2": {"科": "左輔"}},
    "癸": {"interpretation_2": {"科": "太陽"}},
}

DEFAULT_INTERPRETATION = "interpretation_1"

Stem = Union[int, str]


def resolve_stem(stem: Stem) -> Optional[str]:
    if isinstance(stem, str):
        return stem if stem in ZHONGZHOU_TABLE else None
    if isinstance(stem, int) and not isinstance(stem, bool) and 0 <= stem <= 9:
        return STEM_NAMES[stem]
    return None


def mutation_table(stem: str, interpretation: Optional[str] = None) -> Dict[str, str]:
    row = dict(ZHONGZHOU_TABLE[stem])
    if interpretation and interpretation != DEFAULT_INTERPRETATION:
        variant = CONTROVERSIAL_VARIANTS.get(stem, {}).get(interpretation)
        if variant is None:
            logger.warning("ziwei.mutations.unknown_interpretation", extra={"stem": stem, "interpretation": interpretation})
        else:
            row.update(variant)
    return row


def calculate_mutations(stem: Stem, interpretations: Optional[Mapping[str, str]] = None) -> Dict[str, Dict[str, str]]:
    """Return ``{"by_type": {code: star}, "by_star": {star: code}}`` for a stem.

    ``stem`` may be an index (0-9) or a stem character, so the same oracle
    serves birth-year, decade and annual mutations.
    """
    name = resolve_stem(stem)
    if name is None:
        return {"by_type": {}, "by_star": {}}
    by_type = mutation_table(name, (interpretations or {}).get(name))
    by_type = {code: by_type[code] for code in MUTATION_TYPES}
    return {"by_type": by_type, "by_star": {star: code for code, star in by_type.items()}}
