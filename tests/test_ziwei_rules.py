"""Rule-table checks for the default section oracles.

Reference chart: male, lunar 1990 (庚午) fourth month day 21, 未 hour
(time index 7). Ming sits in 戌, Shen in 子, bureau 土五局.
"""

from dataclasses import replace

import pytest

from api.services.ziwei.attributes import calculate_attributes
from api.services.ziwei.brightness import calculate_brightness, lookup
from api.services.ziwei.decade_stars import decade_stars
from api.services.ziwei.life_cycle import calculate_life_cycles
from api.services.ziwei.minor_stars import MinorStarsInput, calculate_minor_stars
from api.services.ziwei.mutations import calculate_mutations
from api.services.ziwei.nayin import nayin_loci, nayin_name
from api.services.ziwei.palaces import calculate_palaces, palace_list
from api.services.ziwei.primary import place_primary_stars, ziwei_position
from api.services.ziwei.secondary import calculate_secondary_stars, fire_bell_starts

LUNAR = {"lunar_year": 1990, "lunar_month": 4, "lunar_day": 21, "is_leap_month": False, "time_index": 7}


def _palaces():
    return calculate_palaces(LUNAR, "M", month_index=3)


def test_palace_table_layout():
    palaces = _palaces()
    assert sorted(palaces) == list(range(12))
    assert [p["index"] for p in palaces.values() if p["is_ming"]] == [10]
    ming = palaces[10]
    assert ming["name"] == "命宮"
    assert ming["stem"] == "丙"
    assert ming["branch_zhi"] == "戌"
    assert palaces[0]["is_shen"] is True
    assert palaces[0]["name"] == "身福"
    assert palaces[4]["name"] == "遷移"
    assert palaces[2]["stem"] == "戊"  # 乙庚之歲戊為頭
    assert [p["index"] for p in palace_list(palaces)] == list(range(12))


def test_palace_table_empty_without_time_slot():
    assert calculate_palaces({"lunar_year": 1990, "lunar_month": 4, "lunar_day": 21}, "M") == {}


def test_palace_table_unknown_school():
    with pytest.raises(ValueError):
        calculate_palaces(LUNAR, "M", month_index=3, school="unknown")


def test_nayin():
    assert nayin_loci(2, 10) == 5
    assert nayin_name(5) == "土五局"
    assert nayin_loci(0, 0) == 4
    assert nayin_loci(10, 0) is None
    assert nayin_name(None) == ""


def test_primary_stars():
    stars = place_primary_stars(21, 5)
    assert len(stars) == 14
    assert stars["紫微"] == 10
    assert stars["天府"] == 6
    assert stars["天機"] == 9
    assert stars["七殺"] == 0
    assert stars["破軍"] == 4
    assert ziwei_position(1, 2) == 1
    assert place_primary_stars(21, None) == {}
    assert place_primary_stars(31, 5) == {}


def test_secondary_stars():
    stars = calculate_secondary_stars(3, 7, 6, 6)
    assert len(stars) == 13
    assert stars["左輔"] == 7
    assert stars["右弼"] == 7
    assert stars["文昌"] == 3
    assert stars["文曲"] == 11
    assert stars["地空"] == 4
    assert stars["地劫"] == 6
    assert (stars["天魁"], stars["天鉞"]) == (1, 7)
    assert (stars["祿存"], stars["擎羊"], stars["陀羅"]) == (8, 9, 7)
    assert (stars["火星"], stars["鈴星"]) == (8, 10)


def test_fire_bell_rejects_bad_branch():
    with pytest.raises(ValueError):
        fire_bell_starts(12)


def test_mutations_default_and_variants():
    result = calculate_mutations(6)
    assert result["by_type"] == {"祿": "太陽", "權": "武曲", "科": "天府", "忌": "天同"}
    assert result["by_star"]["天同"] == "忌"

    variant = calculate_mutations("庚", {"庚": "interpretation_3"})
    assert variant["by_type"]["科"] == "天同"
    assert variant["by_type"]["忌"] == "太陰"
    assert variant["by_star"]["天同"] == "科"

    assert calculate_mutations("甲", {"甲": "interpretation_9"})["by_type"]["科"] == "武曲"
    assert calculate_mutations(11) == {"by_type": {}, "by_star": {}}
    assert calculate_mutations("子") == {"by_type": {}, "by_star": {}}


MINOR_INPUT = MinorStarsInput(
    month_index=3,
    time_index=7,
    year_branch_index=6,
    day_branch_index=None,
    year_stem_index=6,
    ming_palace_index=10,
    shen_palace_index=0,
    gender="M",
    lunar_year=1990,
    migration_palace_index=4,
    wen_qu_index=11,
    zuo_fu_index=7,
    you_bi_index=7,
    wen_chang_index=3,
    lunar_day=21,
)


def test_minor_stars():
    stars = calculate_minor_stars(MINOR_INPUT)
    assert len(stars) == 41
    assert stars["旬空"] == [10, 11]
    assert stars["截空"] == [6, 7]
    assert stars["天傷"] == 3
    assert stars["天使"] == 5
    assert stars["三台"] == 3
    assert stars["八座"] == 11
    assert stars["恩光"] == 10
    assert stars["天貴"] == 6
    assert stars["台輔"] == 1
    assert stars["封誥"] == 9
    assert stars["紅鸞"] == 9
    assert stars["天喜"] == 3


def test_minor_stars_need_palace_positions():
    with pytest.raises(ValueError):
        calculate_minor_stars(replace(MINOR_INPUT, migration_palace_index=None))


def test_attributes_rings():
    attrs = calculate_attributes(6, 8, True)
    assert sorted(attrs) == list(range(12))
    assert sum(len(names) for names in attrs.values()) == 36
    assert attrs[6] == ["太歲", "將星", "伏兵"]
    assert attrs[8] == ["喪門", "歲驛", "博士"]

    reversed_ring = calculate_attributes(6, 8, False)
    assert "力士" in reversed_ring[7]


def test_life_cycles_direction():
    forward = calculate_life_cycles(5, "M", 1990, 10)
    cycles = forward["major_cycles"]
    assert len(cycles) == 12
    assert cycles[0] == {"start_age": 5, "end_age": 14, "age_range": "5-14", "palace_index": 10, "cycle_index": 0}
    assert cycles[1]["palace_index"] == 11
    assert forward["twelve_long_life"][8] == "長生"
    assert forward["twelve_long_life"][9] == "沐浴"

    backward = calculate_life_cycles(5, "F", 1990, 10)
    assert backward["major_cycles"][1]["palace_index"] == 9
    assert backward["twelve_long_life"][7] == "沐浴"


def test_life_cycles_invalid_loci():
    with pytest.raises(ValueError):
        calculate_life_cycles(7, "M", 1990, 10)
    with pytest.raises(ValueError):
        calculate_life_cycles(None, "M", 1990, 10)


def test_brightness_lookup_skips_unrated():
    palaces = _palaces()
    rated = calculate_brightness({"紫微": 10, "天魁": 2, "未知": 3}, palaces)
    assert rated == {
        "紫微": {"brightness": "閒", "palace_index": 10, "branch_index": 10, "stem": "丙", "branch_zhi": "戌"}
    }
    assert lookup("天魁", 2) == ""
    assert lookup("天魁", 12) == ""


def test_brightness_unknown_school_yields_empty():
    palaces = _palaces()
    assert calculate_brightness({"紫微": 10, "祿存": 8}, palaces, school="nope") == {}
    assert calculate_brightness({}, palaces) == {}


def test_decade_stars():
    stars = decade_stars(2, 10, 7)
    assert stars == {
        "大昌": 8,
        "大曲": 6,
        "大魁": 11,
        "大鉞": 9,
        "大祿": 5,
        "大羊": 6,
        "大陀": 4,
        "大火": 8,
        "大鈴": 10,
        "大馬": 8,
        "大鸞": 5,
        "大喜": 11,
    }
    assert set(decade_stars(2)) == {"大昌", "大曲", "大魁", "大鉞", "大祿", "大羊", "大陀"}
