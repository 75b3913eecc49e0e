from dataclasses import replace

import pytest

from api.services.orchestrators import ziwei_full
from api.services.ziwei.assembler import assemble, hand_out, raise_for_errors
from api.services.ziwei.errors import AdapterError, ErrorKind
from api.services.ziwei.normalizer import normalize
from api.services.ziwei.oracles import SectionOracles, default_oracles
from api.services.ziwei.orchestrator import ChartOrchestrator, SectionResult, run_section


def fake_calendar(year, month, day, hour, minute):
    return {"lunar_year": 1990, "lunar_month": 4, "lunar_day": 21, "is_leap_month": False, "day_branch_index": 3}


RAW = {"name": "Chen", "gender": "M", "year": 1990, "month": 5, "day": 15, "hour": 14, "minute": 30}


def _snapshot(oracles=None, calculation=None, parallel=False):
    normalized = normalize(RAW, calendar=fake_calendar)
    result = ChartOrchestrator(oracles, parallel=parallel).compute(normalized, calculation)
    return assemble(normalized, result)


def _boom(*args, **kwargs):
    raise RuntimeError("boom")


def _strip_timestamps(snapshot):
    data = snapshot.model_dump()
    for err in data["errors"].values():
        err.pop("timestamp")
    return data


def test_full_chart_sections():
    snap = _snapshot()
    assert snap.errors == {}
    assert not snap.degraded
    palaces = snap.derived.palaces
    assert sorted(palaces) == list(range(12))
    assert sum(1 for p in palaces.values() if p.is_ming) == 1
    assert sum(1 for p in palaces.values() if p.is_shen) <= 1
    assert snap.derived.ming_palace.index == 10
    assert snap.derived.shen_palace.index == 0
    assert snap.derived.nayin.loci == 5
    assert snap.derived.nayin.name == "土五局"
    assert snap.sections["primary_stars"]["紫微"] == 10
    assert snap.sections["mutations"]["by_type"]["祿"] == "太陽"
    assert snap.sections["minor_stars"]["天傷"] == 3
    assert snap.sections["attributes"][8][-1] == "博士"
    assert snap.sections["life_cycles"]["major_cycles"][0]["age_range"] == "5-14"
    assert snap.sections["brightness"]["primary"]["紫微"]["brightness"] == "閒"
    assert snap.sections["brightness"]["secondary"]["祿存"]["brightness"] == "廟"
    assert len(snap.constants["grid"]) == 4
    assert snap.constants["tri_square"][0] == {"self": 0, "opposition": 6, "trine1": 4, "trine2": 8}


def test_meta_merge_and_raw_echo():
    snap = _snapshot(calculation={"name": "Override", "birthplace": None})
    assert snap.meta["name"] == "Override"
    assert snap.meta["birthplace"] == ""
    assert snap.meta["birthdate"] == "1990-05-15"
    assert snap.meta["birthtime"] == "14:30"
    assert snap.meta["day_branch_index"] == 3
    assert snap.raw["calculation"] == {"name": "Override", "birthplace": None}
    assert snap.raw["normalized_input"]["strings"]["birthdate"] == "1990-05-15"


def test_idempotent():
    assert _strip_timestamps(_snapshot()) == _strip_timestamps(_snapshot())


def test_parallel_matches_sequential():
    assert _strip_timestamps(_snapshot(parallel=True)) == _strip_timestamps(_snapshot(parallel=False))
    broken = replace(default_oracles(), secondary_stars=_boom)
    assert _strip_timestamps(_snapshot(broken, parallel=True)) == _strip_timestamps(_snapshot(broken, parallel=False))


def test_secondary_failure_is_isolated():
    snap = _snapshot(replace(default_oracles(), secondary_stars=_boom))
    assert snap.sections["secondary_stars"] == {}
    err = snap.errors["secondary_stars"]
    assert err.kind == ErrorKind.OUTPUT_SECTION_FAILED.value
    assert err.section == "secondary_stars"
    assert "boom" in err.cause
    assert len(snap.sections["palaces"]) == 12
    assert snap.sections["primary_stars"]
    assert snap.sections["mutations"]["by_type"]
    # attributes fall back to the month index when 祿存 is unavailable
    assert "attributes" not in snap.errors
    assert "博士" in snap.sections["attributes"][3]
    assert snap.sections["brightness"]["secondary"] == {}


def test_empty_secondary_result_is_reported():
    snap = _snapshot(replace(default_oracles(), secondary_stars=lambda *a: {}))
    assert snap.errors["secondary_stars"].kind == ErrorKind.SECONDARY_STARS_FAILED.value


def test_palace_failure_degrades_dependents():
    snap = _snapshot(replace(default_oracles(), palaces=lambda *a, **k: {}))
    assert snap.errors["palaces"].kind == ErrorKind.PALACE_CALC_FAILED.value
    assert snap.errors["primary_stars"].kind == ErrorKind.PRIMARY_STARS_FAILED.value
    assert snap.errors["minor_stars"].kind == ErrorKind.MINOR_STARS_FAILED.value
    assert snap.errors["life_cycles"].kind == ErrorKind.OUTPUT_SECTION_FAILED.value
    assert snap.sections["life_cycles"] == {"major_cycles": [], "twelve_long_life": {}}
    assert snap.sections["secondary_stars"]["祿存"] == 8
    assert snap.derived.ming_palace is None
    assert snap.derived.nayin.loci is None


EMPTY_SECTIONS = {
    "palaces": {},
    "primary_stars": {},
    "secondary_stars": {},
    "mutations": {"by_type": {}, "by_star": {}},
    "minor_stars": {},
    "attributes": {},
    "life_cycles": {"major_cycles": [], "twelve_long_life": {}},
    "brightness": {"primary": {}, "secondary": {}},
}


def _palaces_without(key):
    def oracle(*args, **kwargs):
        table = default_oracles().palaces(*args, **kwargs)
        return {i: {k: v for k, v in p.items() if k != key} for i, p in table.items()}
    return oracle


def test_palace_table_missing_fields_degrades_instead_of_aborting():
    snap = _snapshot(replace(default_oracles(), palaces=_palaces_without("branch_index")))
    err = snap.errors["palaces"]
    assert err.kind == ErrorKind.PALACE_CALC_FAILED.value
    assert "branch_index" in err.message
    assert snap.sections["palaces"] == {}
    assert snap.derived.palaces == {}
    assert snap.derived.ming_palace is None
    assert snap.sections["secondary_stars"]["祿存"] == 8


@pytest.mark.parametrize(
    "section, oracle, kind",
    [
        ("palaces", lambda *a, **k: [{"index": 0}], ErrorKind.PALACE_CALC_FAILED),
        ("palaces", lambda *a, **k: {0: "命宮"}, ErrorKind.PALACE_CALC_FAILED),
        ("secondary_stars", lambda *a: [1, 2, 3], ErrorKind.SECONDARY_STARS_FAILED),
        ("secondary_stars", lambda *a: {"祿存": "午"}, ErrorKind.SECONDARY_STARS_FAILED),
        ("primary_stars", lambda *a: ["紫微"], ErrorKind.PRIMARY_STARS_FAILED),
        ("mutations", lambda *a: "祿權科忌", ErrorKind.OUTPUT_SECTION_FAILED),
        ("minor_stars", lambda *a: None, ErrorKind.MINOR_STARS_FAILED),
        ("attributes", lambda *a: {"太歲": 6}, ErrorKind.ATTRIBUTES_FAILED),
        ("life_cycles", lambda *a: {"major_cycles": [{"age_range": "5-14"}]}, ErrorKind.OUTPUT_SECTION_FAILED),
        ("brightness", lambda *a: ["廟"], ErrorKind.OUTPUT_SECTION_FAILED),
    ],
)
def test_malformed_section_values_fall_back_to_defaults(section, oracle, kind):
    snap = _snapshot(replace(default_oracles(), **{section: oracle}))
    err = snap.errors[section]
    assert err.kind == kind.value
    assert "malformed" in err.message
    assert snap.sections[section] == EMPTY_SECTIONS[section]


def test_malformed_nayin_is_recorded():
    snap = _snapshot(replace(default_oracles(), nayin=lambda *a: "土"))
    assert snap.errors["nayin"].kind == ErrorKind.OUTPUT_SECTION_FAILED.value
    assert snap.derived.nayin.loci is None
    assert snap.errors["primary_stars"].kind == ErrorKind.PRIMARY_STARS_FAILED.value


def test_minor_and_attribute_failures_use_their_kinds():
    snap = _snapshot(replace(default_oracles(), minor_stars=_boom, attributes=_boom))
    minor = snap.errors["minor_stars"]
    assert minor.kind == ErrorKind.MINOR_STARS_FAILED.value
    assert minor.context["payload"]["migration_palace_index"] == 4
    assert snap.errors["attributes"].kind == ErrorKind.ATTRIBUTES_FAILED.value
    assert snap.sections["minor_stars"] == {}
    assert snap.sections["attributes"] == {}


def test_missing_oracle_fails_at_construction():
    with pytest.raises(AdapterError) as exc:
        ChartOrchestrator(replace(default_oracles(), brightness=None))
    assert exc.value.kind == ErrorKind.MODULE_MISSING
    assert exc.value.context["missing"] == ["brightness"]

    with pytest.raises(AdapterError):
        ChartOrchestrator(SectionOracles())


def test_compute_requires_normalized_input():
    with pytest.raises(AdapterError) as exc:
        ChartOrchestrator().compute(None)
    assert exc.value.kind == ErrorKind.INPUT_CONTEXT_REQUIRED


def test_run_section_result_shape():
    ok = run_section("primary_stars", lambda: {"紫微": 1})
    assert isinstance(ok, SectionResult) and ok.ok
    failed = run_section("mutations", _boom)
    assert not failed.ok
    assert failed.value == {"by_type": {}, "by_star": {}}
    assert failed.error.context == {"section": "mutations"}


def test_snapshot_is_frozen_and_handed_out_as_copy():
    snap = _snapshot()
    with pytest.raises(Exception):
        snap.meta = {}
    copy = hand_out(snap)
    copy.sections["primary_stars"]["紫微"] = 0
    assert snap.sections["primary_stars"]["紫微"] == 10


def test_raise_for_errors():
    raise_for_errors(_snapshot())
    with pytest.raises(AdapterError) as exc:
        raise_for_errors(_snapshot(replace(default_oracles(), secondary_stars=_boom)))
    assert exc.value.section == "secondary_stars"
    assert "secondary_stars" in exc.value.context["errors"]


def test_build_chart_cache_and_chart_id(monkeypatch):
    ziwei_full.clear_cache()
    chart_id, first = ziwei_full.build_chart(RAW, calendar=fake_calendar)
    again_id, second = ziwei_full.build_chart(RAW, calendar=fake_calendar)
    assert chart_id == again_id
    assert chart_id.startswith("zw_") and len(chart_id) == 27
    assert first == second
    assert first is not second
    assert len(ziwei_full.CACHE) == 1

    monkeypatch.setenv("ZIWEI_CACHE_MAX", "1")
    other_id, _ = ziwei_full.build_chart({**RAW, "hour": 3}, calendar=fake_calendar)
    assert other_id != chart_id
    assert len(ziwei_full.CACHE) == 1
    ziwei_full.clear_cache()
    assert len(ziwei_full.CACHE) == 0


def test_build_chart_propagates_fatal_errors():
    with pytest.raises(AdapterError) as exc:
        ziwei_full.build_chart({**RAW, "gender": "?"}, calendar=fake_calendar)
    assert exc.value.fatal
