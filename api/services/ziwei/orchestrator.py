"""Run the chart sections in dependency order with per-section isolation.

Every section yields a ``SectionResult``. A failing section contributes its
neutral default and an ``AdapterError`` under ``errors[section]``; the
sections after it still run on the degraded inputs.

Dependency branches::

    palaces -> nayin -> primary_stars
    secondary_stars
    mutations
        \\-> minor_stars, attributes, life_cycles, brightness

The first three branches are independent and run on a thread pool when
``ZIWEI_PARALLEL_SECTIONS=true``.
"""

from __future__ import annotations

import copy
import dataclasses
import logging
import os
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Mapping, Optional

from pydantic import ValidationError

from ...schemas.ziwei import NormalizedInput, PalaceOut
from .constants import (
    DEFAULT_BRIGHTNESS_SCHOOL,
    DEFAULT_PALACE_SCHOOL,
    MIGRATION_PALACE_NAMES,
    SECTION_NAMES,
    STAR_LU_CUN,
    STAR_WEN_CHANG,
    STAR_WEN_QU,
    STAR_YOU_BI,
    STAR_ZUO_FU,
)
from .errors import AdapterError, ErrorKind
from .indices import is_clockwise
from .minor_stars import MinorStarsInput
from .nayin import NAYIN_NAMES, nayin_name
from .oracles import SectionOracles, default_oracles
from .palaces import palace_list

logger = logging.getLogger(__name__)


def _empty_defaults() -> Dict[str, Any]:
    return {
        "palaces": {},
        "primary_stars": {},
        "secondary_stars": {},
        "mutations": {"by_type": {}, "by_star": {}},
        "minor_stars": {},
        "attributes": {},
        "life_cycles": {"major_cycles": [], "twelve_long_life": {}},
        "brightness": {"primary": {}, "secondary": {}},
    }


def parallel_enabled() -> bool:
    return os.getenv("ZIWEI_PARALLEL_SECTIONS", "false").lower() == "true"


def _is_index(value: Any, size: int = 12) -> bool:
    return isinstance(value, int) and not isinstance(value, bool) and 0 <= value < size


def _palace_problem(value: Any) -> Optional[str]:
    if not isinstance(value, Mapping):
        return "expected a mapping of board position to palace"
    for key, palace in value.items():
        if not _is_index(key):
            return f"palace key {key!r} is not a board position"
        if not isinstance(palace, Mapping):
            return f"palace {key} is not a mapping"
        try:
            PalaceOut.model_validate(dict(palace))
        except ValidationError as exc:
            bad = ", ".join(".".join(str(part) for part in e["loc"]) for e in exc.errors())
            return f"palace {key} has invalid fields: {bad}"
        if palace["index"] != key or not _is_index(palace["branch_index"]):
            return f"palace {key} has an inconsistent index"
    return None


def _star_map_problem(value: Any, allow_groups: bool = False) -> Optional[str]:
    if not isinstance(value, Mapping):
        return "expected a mapping of star name to board position"
    for star, position in value.items():
        if allow_groups and isinstance(position, (list, tuple)):
            ok = all(_is_index(p) for p in position)
        else:
            ok = _is_index(position)
        if not ok:
            return f"star {star!r} has no valid board position"
    return None


def _nayin_problem(value: Any) -> Optional[str]:
    if value is None or (isinstance(value, int) and not isinstance(value, bool) and value in NAYIN_NAMES):
        return None
    return f"unknown bureau {value!r}"


def _mutations_problem(value: Any) -> Optional[str]:
    if not isinstance(value, Mapping) or not all(isinstance(value.get(k), Mapping) for k in ("by_type", "by_star")):
        return "expected by_type and by_star mappings"
    return None


def _attributes_problem(value: Any) -> Optional[str]:
    if not isinstance(value, Mapping):
        return "expected a mapping of board position to star names"
    if not all(_is_index(k) and isinstance(v, (list, tuple)) for k, v in value.items()):
        return "attribute entries must map board positions to name lists"
    return None


def _life_cycles_problem(value: Any) -> Optional[str]:
    if not isinstance(value, Mapping):
        return "expected major_cycles and twelve_long_life"
    cycles = value.get("major_cycles")
    if not isinstance(cycles, (list, tuple)) or not isinstance(value.get("twelve_long_life"), Mapping):
        return "expected major_cycles and twelve_long_life"
    for cycle in cycles:
        if not isinstance(cycle, Mapping) or not _is_index(cycle.get("cycle_index")) \
                or not _is_index(cycle.get("palace_index")):
            return "major cycle entries need cycle_index and palace_index"
    return None


def _brightness_problem(value: Any) -> Optional[str]:
    if not isinstance(value, Mapping) or not all(isinstance(value.get(k), Mapping) for k in ("primary", "secondary")):
        return "expected primary and secondary mappings"
    return None


# value checks applied before a section result is accepted
SHAPE_CHECKS: Dict[str, Callable[[Any], Optional[str]]] = {
    "palaces": _palace_problem,
    "nayin": _nayin_problem,
    "primary_stars": _star_map_problem,
    "secondary_stars": _star_map_problem,
    "mutations": _mutations_problem,
    "minor_stars": lambda value: _star_map_problem(value, allow_groups=True),
    "attributes": _attributes_problem,
    "life_cycles": _life_cycles_problem,
    "brightness": _brightness_problem,
}


@dataclass(slots=True)
class SectionResult:
    value: Any
    error: Optional[AdapterError] = None

    @property
    def ok(self) -> bool:
        return self.error is None


@dataclass
class OrchestrationResult:
    sections: Dict[str, Any]
    derived: Dict[str, Any]
    errors: Dict[str, AdapterError] = field(default_factory=dict)
    calculation: Optional[Dict[str, Any]] = None

    @property
    def degraded(self) -> bool:
        return bool(self.errors)


def run_section(
    section: str,
    compute: Callable[[], Any],
    empty_kind: Optional[ErrorKind] = None,
    wrap_kind: ErrorKind = ErrorKind.OUTPUT_SECTION_FAILED,
    context: Optional[Dict[str, Any]] = None,
) -> SectionResult:
    """Call ``compute`` and convert any failure into a ``SectionResult`` error.

    ``empty_kind`` turns an empty result into an error of that kind.
    Exceptions that are not ``AdapterError`` are wrapped as ``wrap_kind``.
    A value that fails the section's entry in ``SHAPE_CHECKS`` is rejected
    as ``empty_kind`` when given, otherwise ``wrap_kind``.
    """
    default = _empty_defaults().get(section)
    try:
        value = compute()
        check = SHAPE_CHECKS.get(section)
        problem = check(value) if check is not None else None
        if problem:
            raise AdapterError(
                empty_kind or wrap_kind,
                f"{section} returned a malformed value: {problem}",
                {"section": section, "value_type": type(value).__name__},
                section=section,
            )
        if empty_kind is not None and not value:
            raise AdapterError(empty_kind, f"{section} produced no result", {"section": section}, section=section)
        return SectionResult(value)
    except AdapterError as err:
        if err.section is None:
            err.section = section
        error = err
    except Exception as exc:
        ctx = {"section": section}
        ctx.update(context or {})
        error = AdapterError(wrap_kind, f"{section} failed: {exc}", ctx, cause=exc, section=section)
    logger.warning(
        "ziwei.section.failed",
        extra={"section": section, "kind": error.kind.value, "error": error.message},
    )
    return SectionResult(default, error)


def _find_palace(palaces: Mapping[int, Mapping[str, Any]], predicate: Callable[[Mapping[str, Any]], bool]):
    return next((p for p in palaces.values() if predicate(p)), None)


class ChartOrchestrator:
    """Compute every chart section for one ``NormalizedInput``.

    The orchestrator holds no per-request state; a single instance can serve
    concurrent requests.
    """

    def __init__(
        self,
        oracles: Optional[SectionOracles] = None,
        brightness_school: Optional[str] = None,
        palace_school: Optional[str] = None,
        parallel: Optional[bool] = None,
    ) -> None:
        oracles = oracles if oracles is not None else default_oracles()
        missing = oracles.missing()
        if missing:
            raise AdapterError(
                ErrorKind.MODULE_MISSING,
                f"missing section oracles: {', '.join(missing)}",
                {"missing": missing},
            )
        self.oracles = oracles
        self.brightness_school = brightness_school or os.getenv("ZIWEI_BRIGHTNESS_SCHOOL", DEFAULT_BRIGHTNESS_SCHOOL)
        self.palace_school = palace_school or os.getenv("ZIWEI_PALACE_SCHOOL", DEFAULT_PALACE_SCHOOL)
        self.parallel = parallel_enabled() if parallel is None else parallel

    # branch 1: palaces -> nayin -> primary stars
    def _palace_branch(self, ctx: Dict[str, Any]) -> Dict[str, Any]:
        lunar, indices, meta = ctx["lunar"], ctx["indices"], ctx["meta"]
        palaces = run_section(
            "palaces",
            lambda: self.oracles.palaces(
                lunar, meta["gender"], month_index=indices["month_index"], school=self.palace_school
            ),
            empty_kind=ErrorKind.PALACE_CALC_FAILED,
        )
        table = palaces.value or {}
        ming = _find_palace(table, lambda p: p.get("is_ming"))
        shen = _find_palace(table, lambda p: p.get("is_shen"))

        loci = None
        nayin_error = None
        if ming is not None:
            nayin = run_section("nayin", lambda: self.oracles.nayin(ming["stem_index"], ming["index"]))
            loci, nayin_error = nayin.value, nayin.error

        primary = run_section(
            "primary_stars",
            lambda: self.oracles.primary_stars(lunar["lunar_day"], loci),
            empty_kind=ErrorKind.PRIMARY_STARS_FAILED,
        )
        return {
            "palaces": palaces,
            "primary_stars": primary,
            "ming": ming,
            "shen": shen,
            "loci": loci,
            "nayin_error": nayin_error,
        }

    def _secondary_branch(self, ctx: Dict[str, Any]) -> Dict[str, Any]:
        indices = ctx["indices"]
        return {
            "secondary_stars": run_section(
                "secondary_stars",
                lambda: self.oracles.secondary_stars(
                    indices["month_index"],
                    indices["time_index"],
                    indices["year_stem_index"],
                    indices["year_branch_index"],
                ),
                empty_kind=ErrorKind.SECONDARY_STARS_FAILED,
            )
        }

    def _mutation_branch(self, ctx: Dict[str, Any]) -> Dict[str, Any]:
        return {
            "mutations": run_section(
                "mutations",
                lambda: self.oracles.mutations(
                    ctx["indices"]["year_stem_index"], ctx["meta"].get("stem_interpretations") or {}
                ),
            )
        }

    def _run_branches(self, ctx: Dict[str, Any]) -> Dict[str, Any]:
        branches = (self._palace_branch, self._secondary_branch, self._mutation_branch)
        merged: Dict[str, Any] = {}
        if self.parallel:
            with ThreadPoolExecutor(max_workers=len(branches)) as executor:
                futures = [executor.submit(branch, ctx) for branch in branches]
                for future in futures:
                    merged.update(future.result())
        else:
            for branch in branches:
                merged.update(branch(ctx))
        return merged

    def compute(
        self,
        normalized: Optional[NormalizedInput],
        calculation: Optional[Dict[str, Any]] = None,
    ) -> OrchestrationResult:
        if normalized is None:
            raise AdapterError(ErrorKind.INPUT_CONTEXT_REQUIRED, "normalized input is required")

        ctx = {
            "meta": normalized.meta.model_dump(),
            "lunar": normalized.lunar.model_dump(),
            "indices": normalized.indices.model_dump(),
        }
        meta, lunar, indices = ctx["meta"], ctx["lunar"], ctx["indices"]
        results: Dict[str, SectionResult] = {}
        errors: Dict[str, AdapterError] = {}

        branch = self._run_branches(ctx)
        for name in ("palaces", "primary_stars", "secondary_stars", "mutations"):
            results[name] = branch[name]
        if branch["nayin_error"] is not None:
            errors["nayin"] = branch["nayin_error"]

        palaces = results["palaces"].value
        primary = results["primary_stars"].value
        secondary = results["secondary_stars"].value
        ming, shen, loci = branch["ming"], branch["shen"], branch["loci"]
        clockwise = is_clockwise(meta["gender"], lunar["lunar_year"])

        migration = _find_palace(palaces, lambda p: p.get("name") in MIGRATION_PALACE_NAMES)
        minor_payload: Dict[str, Any] = {}

        def minor() -> Any:
            data = MinorStarsInput(
                month_index=indices["month_index"],
                time_index=indices["time_index"],
                year_branch_index=indices["year_branch_index"],
                day_branch_index=indices.get("day_branch_index"),
                year_stem_index=indices["year_stem_index"],
                ming_palace_index=ming["index"] if ming else None,
                shen_palace_index=shen["index"] if shen else None,
                gender=meta["gender"],
                lunar_year=lunar["lunar_year"],
                migration_palace_index=migration["index"] if migration else None,
                wen_qu_index=secondary.get(STAR_WEN_QU, 0),
                zuo_fu_index=secondary.get(STAR_ZUO_FU, 0),
                you_bi_index=secondary.get(STAR_YOU_BI, 0),
                wen_chang_index=secondary.get(STAR_WEN_CHANG, 0),
                lunar_day=lunar["lunar_day"],
            )
            minor_payload.update(dataclasses.asdict(data))
            return self.oracles.minor_stars(data)

        results["minor_stars"] = run_section(
            "minor_stars", minor, wrap_kind=ErrorKind.MINOR_STARS_FAILED, context={"payload": minor_payload}
        )

        results["attributes"] = run_section(
            "attributes",
            lambda: self.oracles.attributes(
                indices["year_branch_index"], secondary.get(STAR_LU_CUN, indices["month_index"]), clockwise
            ),
            wrap_kind=ErrorKind.ATTRIBUTES_FAILED,
        )
        results["life_cycles"] = run_section(
            "life_cycles",
            lambda: self.oracles.life_cycles(loci, meta["gender"], lunar["lunar_year"], ming["index"] if ming else None),
        )
        results["brightness"] = run_section(
            "brightness",
            lambda: {
                "primary": self.oracles.brightness(primary, palaces, self.brightness_school),
                "secondary": self.oracles.brightness(secondary, palaces, self.brightness_school),
            },
        )

        sections = {name: results[name].value for name in SECTION_NAMES}
        errors.update({name: result.error for name, result in results.items() if not result.ok})
        derived = {
            "palaces": palaces,
            "palace_list": palace_list(palaces),
            "ming_palace": copy.deepcopy(ming),
            "shen_palace": copy.deepcopy(shen),
            "nayin": {"loci": loci, "name": nayin_name(loci)},
        }
        logger.info(
            "ziwei.orchestrate.done",
            extra={"failed_sections": sorted(errors), "parallel": self.parallel},
        )
        return OrchestrationResult(sections=sections, derived=derived, errors=errors, calculation=calculation)
