from __future__ import annotations

from typing import Optional

# rows: branch // 2, cols: stem // 2
NAYIN_MATRIX = (
    (4, 2, 6, 5, 3),
    (2, 6, 5, 3, 4),
    (6, 5, 3, 4, 2),
    (4, 2, 6, 5, 3),
    (2, 6, 5, 3, 4),
    (6, 5, 3, 4, 2),
)

NAYIN_NAMES = {2: "水二局", 3: "木三局", 4: "金四局", 5: "土五局", 6: "火六局"}


def nayin_loci(stem_index: int, branch_index: int) -> Optional[int]:
    """Five-element bureau number for a stem/branch pair, or None when out of range."""
    if not (0 <= stem_index <= 9 and 0 <= branch_index <= 11):
        return None
    return NAYIN_MATRIX[branch_index // 2][stem_index // 2]


def nayin_name(loci: Optional[int]) -> str:
    return NAYIN_NAMES.get(loci, "") if loci is not None else ""
