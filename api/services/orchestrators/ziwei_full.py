"""Build a Zi Wei Dou Shu chart snapshot from raw birth data.

normalize -> orchestrate -> assemble, with a small in-process FIFO cache
keyed by the normalized input and the active rule settings. The same key
provides the public ``chart_id``.
"""

from __future__ import annotations

import hashlib
import json
import logging
import os
import threading
from collections import OrderedDict
from typing import Any, Dict, Optional, Tuple

from ...schemas.ziwei import ChartSnapshot, NormalizedInput
from ..ziwei.assembler import assemble, hand_out
from ..ziwei.calendar import CalendarOracle, solar_to_lunar
from ..ziwei.normalizer import normalize
from ..ziwei.oracles import SectionOracles
from ..ziwei.orchestrator import ChartOrchestrator

logger = logging.getLogger(__name__)

CACHE: "OrderedDict[str, ChartSnapshot]" = OrderedDict()
_CACHE_LOCK = threading.Lock()
CHART_ID_PREFIX = "zw_"


def _cache_max() -> int:
    try:
        return max(0, int(os.getenv("ZIWEI_CACHE_MAX", "50")))
    except ValueError:
        return 50


def clear_cache() -> None:
    with _CACHE_LOCK:
        CACHE.clear()


def _build_cache_key(normalized: NormalizedInput, orchestrator: ChartOrchestrator, calculation: Optional[Dict[str, Any]]) -> str:
    seed = {
        "input": normalized.model_dump(exclude={"raw"}),
        "brightness_school": orchestrator.brightness_school,
        "palace_school": orchestrator.palace_school,
        "calculation": calculation or {},
    }
    encoded = json.dumps(seed, sort_keys=True, ensure_ascii=False, default=str)
    return hashlib.sha256(encoded.encode()).hexdigest()


def chart_id_for(key: str) -> str:
    return CHART_ID_PREFIX + key[:24]


def build_chart(
    raw: Any,
    calculation: Optional[Dict[str, Any]] = None,
    calendar: Optional[CalendarOracle] = solar_to_lunar,
    oracles: Optional[SectionOracles] = None,
) -> Tuple[str, ChartSnapshot]:
    """Return ``(chart_id, snapshot)``; the snapshot is a private deep copy.

    Fatal input problems propagate as ``AdapterError``. Custom ``oracles``
    bypass the cache.
    """
    orchestrator = ChartOrchestrator(oracles)
    normalized = normalize(raw, calendar=calendar)
    key = _build_cache_key(normalized, orchestrator, calculation)
    chart_id = chart_id_for(key)
    use_cache = oracles is None and _cache_max() > 0

    if use_cache:
        with _CACHE_LOCK:
            cached = CACHE.get(key)
        if cached is not None:
            logger.debug("ziwei.chart.cache_hit", extra={"chart_id": chart_id})
            return chart_id, hand_out(cached)

    result = orchestrator.compute(normalized, calculation)
    snapshot = assemble(normalized, result)

    if use_cache:
        with _CACHE_LOCK:
            CACHE[key] = snapshot
            while len(CACHE) > _cache_max():
                CACHE.popitem(last=False)

    logger.info(
        "ziwei.chart.built",
        extra={"chart_id": chart_id, "errors": sorted(snapshot.errors), "cached": use_cache},
    )
    return chart_id, hand_out(snapshot)
