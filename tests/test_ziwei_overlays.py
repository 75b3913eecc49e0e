from dataclasses import replace

import pytest

from api.services.ziwei.assembler import assemble
from api.services.ziwei.errors import AdapterError
from api.services.ziwei.normalizer import normalize
from api.services.ziwei.oracles import default_oracles
from api.services.ziwei.orchestrator import ChartOrchestrator
from api.services.ziwei.overlays import annual_overlay, decade_overlay


def fake_calendar(year, month, day, hour, minute):
    return {"lunar_year": 1990, "lunar_month": 4, "lunar_day": 21, "is_leap_month": False}


RAW = {"gender": "M", "year": 1990, "month": 5, "day": 15, "hour": 14, "minute": 30}


def _snapshot(oracles=None, raw=RAW):
    normalized = normalize(raw, calendar=fake_calendar)
    return assemble(normalized, ChartOrchestrator(oracles).compute(normalized))


def test_first_decade_sits_on_ming_palace():
    overlay = decade_overlay(_snapshot(), 0)
    assert overlay["palace_index"] == 10
    assert overlay["stem"] == "丙"
    assert overlay["branch_zhi"] == "戌"
    assert overlay["age_range"] == "5-14"
    assert overlay["stars"]["大昌"] == 8
    assert overlay["stars"]["大祿"] == 5
    assert overlay["mutations"]["by_type"]["祿"] == "天同"
    assert overlay["mutations"]["by_type"]["忌"] == "廉貞"


def test_decade_follows_chart_direction():
    second = decade_overlay(_snapshot(), 1)
    assert second["palace_index"] == 11
    assert second["age_range"] == "15-24"
    assert second["stem"] == "丁"


def test_decade_unavailable_when_life_cycles_failed():
    snap = _snapshot(replace(default_oracles(), life_cycles=lambda *a: 1 / 0))
    with pytest.raises(AdapterError) as exc:
        decade_overlay(snap, 0)
    assert exc.value.section == "life_cycles"
    assert not exc.value.fatal


def test_annual_overlay():
    overlay = annual_overlay(_snapshot(), 2024)
    assert overlay["stem"] == "甲"
    assert overlay["branch_zhi"] == "辰"
    assert overlay["ming_palace_index"] == 4
    assert overlay["mutations"]["by_type"]["祿"] == "廉貞"


def test_overlays_apply_stem_interpretations():
    snap = _snapshot(raw={**RAW, "stemInterpretations": {"甲": "interpretation_2"}})
    assert annual_overlay(snap, 2024)["mutations"]["by_type"]["科"] == "文曲"
