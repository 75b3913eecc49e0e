"""Merge normalized input and section results into a frozen ``ChartSnapshot``."""

from __future__ import annotations

import copy
import logging
from typing import Any, Dict, Optional

from ...schemas.ziwei import ChartSnapshot, NormalizedInput
from .constants import GRID_BRANCH_MAP, TRI_SQUARE_MAP
from .errors import AdapterError, ErrorKind
from .orchestrator import OrchestrationResult

logger = logging.getLogger(__name__)

# fields a calculation payload may correct on the snapshot meta
META_OVERRIDE_FIELDS = ("name", "gender", "birthdate", "birthtime", "birthplace", "lunar", "day_branch_index")


def chart_constants() -> Dict[str, Any]:
    return {
        "grid": [list(row) for row in GRID_BRANCH_MAP],
        "tri_square": [dict(entry) for entry in TRI_SQUARE_MAP],
    }


def _merge_meta(normalized: NormalizedInput, calculation: Optional[Dict[str, Any]]) -> Dict[str, Any]:
    meta = normalized.meta.model_dump()
    meta["birthdate"] = normalized.strings.birthdate
    meta["birthtime"] = normalized.strings.birthtime
    meta["lunar"] = normalized.lunar.model_dump()
    if normalized.lunar.day_branch_index is not None:
        meta["day_branch_index"] = normalized.lunar.day_branch_index
    for key in META_OVERRIDE_FIELDS:
        if calculation and calculation.get(key) is not None:
            meta[key] = copy.deepcopy(calculation[key])
    return meta


def assemble(normalized: NormalizedInput, result: OrchestrationResult) -> ChartSnapshot:
    """Build the immutable snapshot for one computation.

    Section values are deep-copied, so later changes to the orchestration
    result do not leak into the snapshot.
    """
    calculation = copy.deepcopy(result.calculation) if result.calculation else {}
    snapshot = ChartSnapshot(
        meta=_merge_meta(normalized, calculation),
        lunar=normalized.lunar.model_dump(),
        indices=normalized.indices.model_dump(),
        derived=copy.deepcopy(result.derived),
        sections=copy.deepcopy(result.sections),
        constants=chart_constants(),
        errors={name: err.to_dict() for name, err in result.errors.items()},
        raw={"calculation": calculation, "normalized_input": normalized.model_dump()},
    )
    if snapshot.degraded:
        logger.info("ziwei.snapshot.degraded", extra={"errors": sorted(snapshot.errors)})
    return snapshot


def hand_out(snapshot: ChartSnapshot) -> ChartSnapshot:
    return snapshot.model_copy(deep=True)


def raise_for_errors(snapshot: ChartSnapshot) -> None:
    """Raise the first recorded section error, for callers that reject partial charts."""
    if not snapshot.errors:
        return
    section, first = next(iter(snapshot.errors.items()))
    raise AdapterError(
        ErrorKind(first.kind),
        f"chart has {len(snapshot.errors)} failed section(s); first: {section}",
        {"errors": {name: err.model_dump() for name, err in snapshot.errors.items()}},
        section=section,
    )
