from pydantic import BaseModel, ConfigDict, Field
from typing import Optional, List, Literal, Dict, Any, Union

CalendarType = Literal["solar", "lunar"]
LeapMonthHandling = Literal["monthMid", "currentMonth", "nextMonth"]
ZiHourHandling = Literal["midnightChange", "ziChange"]

_FROZEN = ConfigDict(frozen=True)


# ---------------------------------------------------------------------------
# Request models (loose: the normalizer owns validation)
# ---------------------------------------------------------------------------

class ChartInput(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    name: Optional[str] = None
    gender: Optional[str] = None
    year: Optional[Union[int, str]] = None
    month: Optional[Union[int, str]] = None
    day: Optional[Union[int, str]] = None
    hour: Optional[Union[int, str]] = None
    minute: Optional[Union[int, str]] = None
    birthplace: Optional[str] = None
    calendar_type: Optional[str] = Field(default=None, alias="calendarType")
    leap_month: Optional[Union[bool, int, str]] = Field(default=None, alias="leapMonth")
    leap_month_handling: Optional[str] = Field(default=None, alias="leapMonthHandling")
    zi_hour_handling: Optional[str] = Field(default=None, alias="ziHourHandling")
    timezone: Optional[str] = None
    lunar: Optional[Dict[str, Any]] = None
    stem_interpretations: Optional[Dict[str, str]] = Field(default=None, alias="stemInterpretations")

    def to_raw(self) -> Dict[str, Any]:
        return self.model_dump(exclude_none=True)


class DecadeOverlayRequest(BaseModel):
    chart_input: ChartInput
    cycle_index: int = Field(ge=0, le=11)


class AnnualOverlayRequest(BaseModel):
    chart_input: ChartInput
    year: int = Field(ge=1900, le=2100)


# ---------------------------------------------------------------------------
# Normalized input (immutable value type)
# ---------------------------------------------------------------------------

class ChartMeta(BaseModel):
    model_config = _FROZEN

    name: str
    gender: Literal["M", "F"]
    birthplace: str = ""
    calendar_type: CalendarType = "solar"
    leap_month: bool = False
    leap_month_handling: LeapMonthHandling = "monthMid"
    zi_hour_handling: ZiHourHandling = "midnightChange"
    timezone: Optional[str] = None
    stem_interpretations: Dict[str, str] = Field(default_factory=dict)


class SolarFields(BaseModel):
    model_config = _FROZEN

    year: int
    month: int
    day: int
    hour: int
    minute: int


class LunarRecord(BaseModel):
    model_config = ConfigDict(frozen=True, extra="allow")

    lunar_year: int
    lunar_month: int
    lunar_day: int
    is_leap_month: bool = False
    hour: Optional[int] = None
    minute: Optional[int] = None
    time_index: Optional[int] = None
    day_branch_index: Optional[int] = None


class PalaceRef(BaseModel):
    model_config = _FROZEN

    branch_index: int
    star_name: str
    type: Literal["master", "body"]


class ChartIndices(BaseModel):
    model_config = _FROZEN

    year_stem_index: int = Field(ge=0, le=9)
    year_branch_index: int = Field(ge=0, le=11)
    month_index: int = Field(ge=0, le=11)
    time_index: int = Field(ge=0, le=11)
    body_palace: Optional[PalaceRef] = None
    master_palace: Optional[PalaceRef] = None
    gender_classification: Optional[str] = None
    day_branch_index: Optional[int] = None


class BirthStrings(BaseModel):
    model_config = _FROZEN

    birthdate: str  # YYYY-MM-DD
    birthtime: str  # HH:MM


class NormalizedInput(BaseModel):
    model_config = _FROZEN

    meta: ChartMeta
    solar: SolarFields
    lunar: LunarRecord
    indices: ChartIndices
    strings: BirthStrings
    raw: Dict[str, Any] = Field(default_factory=dict)


# ---------------------------------------------------------------------------
# Chart snapshot
# ---------------------------------------------------------------------------

class PalaceOut(BaseModel):
    model_config = _FROZEN

    index: int
    name: str
    is_ming: bool
    is_shen: bool
    stem: str
    stem_index: int
    branch_zhi: str
    branch_index: int


class NayinOut(BaseModel):
    model_config = _FROZEN

    loci: Optional[int] = None
    name: str = ""


class DerivedOut(BaseModel):
    model_config = _FROZEN

    palaces: Dict[int, PalaceOut] = Field(default_factory=dict)
    palace_list: List[PalaceOut] = Field(default_factory=list)
    ming_palace: Optional[PalaceOut] = None
    shen_palace: Optional[PalaceOut] = None
    nayin: NayinOut = Field(default_factory=NayinOut)


class ErrorOut(BaseModel):
    model_config = _FROZEN

    kind: str
    message: str
    context: Dict[str, Any] = Field(default_factory=dict)
    cause: Optional[str] = None
    section: Optional[str] = None
    timestamp: float


class ChartSnapshot(BaseModel):
    model_config = _FROZEN

    meta: Dict[str, Any]
    lunar: Dict[str, Any]
    indices: Dict[str, Any]
    derived: DerivedOut
    sections: Dict[str, Any]
    constants: Dict[str, Any]
    errors: Dict[str, ErrorOut] = Field(default_factory=dict)
    raw: Dict[str, Any] = Field(default_factory=dict)

    @property
    def degraded(self) -> bool:
        return bool(self.errors)


class ComputeResponse(BaseModel):
    chart_id: str
    snapshot: ChartSnapshot


class DecadeOverlayOut(BaseModel):
    cycle_index: int
    palace_index: int
    stem: str
    stem_index: int
    branch_zhi: str
    age_range: Optional[str] = None
    stars: Dict[str, int]
    mutations: Dict[str, Dict[str, str]]


class AnnualOverlayOut(BaseModel):
    year: int
    stem: str
    stem_index: int
    branch_zhi: str
    branch_index: int
    ming_palace_index: int
    mutations: Dict[str, Dict[str, str]]
