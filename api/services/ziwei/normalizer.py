"""Validate raw birth data and build the canonical ``NormalizedInput``.

Every failure raised here is fatal: the caller receives an ``AdapterError``
and no chart computation starts. Field-level problems are collected and
reported together under ``INPUT_VALIDATION_FAILED``.
"""

from __future__ import annotations

import copy
import logging
import os
from typing import Any, Dict, Mapping, Optional

from pydantic import ValidationError

from ...schemas.ziwei import NormalizedInput
from .calendar import CalendarOracle, next_civil_day, solar_to_lunar
from .constants import (
    DEFAULT_CALENDAR_TYPE,
    DEFAULT_LEAP_MONTH_HANDLING,
    DEFAULT_NAME,
    DEFAULT_ZI_HOUR_HANDLING,
    FIELD_PATTERNS,
    LEAP_MONTH_HANDLING,
    LUNAR_YEAR_MAX,
    LUNAR_YEAR_MIN,
    ZI_HOUR_HANDLING,
)
from .errors import AdapterError, ErrorKind
from .indices import derive_indices, time_index

logger = logging.getLogger(__name__)

# snake_case field -> accepted camelCase alias
_ALIASES = {
    "calendar_type": "calendarType",
    "leap_month": "leapMonth",
    "leap_month_handling": "leapMonthHandling",
    "zi_hour_handling": "ziHourHandling",
    "stem_interpretations": "stemInterpretations",
}

_REQUIRED_MESSAGES = {
    "gender": "gender is required (M or F)",
    "year": "year is required",
    "month": "month is required",
    "day": "day is required",
    "hour": "hour is required",
    "minute": "minute is required",
}

# inclusive bounds for integer fields of a lunar record
_LUNAR_RANGES = {
    "lunar_month": (1, 12),
    "lunar_day": (1, 30),
    "hour": (0, 23),
    "minute": (0, 59),
    "time_index": (0, 11),
    "day_branch_index": (0, 11),
}


def _field(raw: Mapping[str, Any], name: str) -> Any:
    value = raw.get(name)
    if value is None and name in _ALIASES:
        value = raw.get(_ALIASES[name])
    return value


def normalize_gender(value: Any) -> str:
    if value is None:
        return ""
    normalized = str(value).strip().upper()
    return normalized if normalized in ("M", "F") else ""


def sanitize_name(value: Any) -> str:
    if not isinstance(value, str):
        return DEFAULT_NAME
    return value.strip() or DEFAULT_NAME


def sanitize_text(value: Any) -> str:
    return value.strip() if isinstance(value, str) else ""


def normalize_calendar_type(value: Any) -> str:
    return "lunar" if str(value or "").strip().lower() == "lunar" else DEFAULT_CALENDAR_TYPE


def to_boolean(value: Any) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        return value.strip().lower() in ("1", "true", "yes")
    return bool(value)


def parse_integer(value: Any, fallback: Optional[int] = None) -> Optional[int]:
    if value is None or isinstance(value, bool):
        return fallback
    if isinstance(value, str):
        value = value.strip()
        if not value:
            return fallback
    try:
        return int(float(value))
    except (TypeError, ValueError, OverflowError):
        return fallback


def _choice(value: Any, allowed: tuple, env_name: str, default: str) -> str:
    if value in allowed:
        return value
    configured = os.getenv(env_name, default)
    return configured if configured in allowed else default


def format_birthdate(year: int, month: int, day: int) -> str:
    return f"{year:04d}-{month:02d}-{day:02d}"


def format_birthtime(hour: int, minute: int) -> str:
    return f"{hour:02d}:{minute:02d}"


def _validate(raw: Mapping[str, Any]) -> tuple[Dict[str, Any], Dict[str, str]]:
    values: Dict[str, Any] = {"gender": normalize_gender(raw.get("gender"))}
    errors: Dict[str, str] = {}
    if not values["gender"]:
        errors["gender"] = _REQUIRED_MESSAGES["gender"]

    for name in ("year", "month", "day", "hour", "minute"):
        source = raw.get(name)
        parsed = parse_integer(source)
        values[name] = parsed
        if parsed is None:
            if source is None or (isinstance(source, str) and not source.strip()):
                errors[name] = _REQUIRED_MESSAGES[name]
            else:
                errors[name] = f"{name} must be an integer"
            continue
        if not FIELD_PATTERNS[name].match(str(parsed)):
            errors[name] = f"{name} has an invalid format"

    year = values["year"]
    if year is not None and "year" not in errors and not (LUNAR_YEAR_MIN <= year <= LUNAR_YEAR_MAX):
        errors["year"] = f"year must be between {LUNAR_YEAR_MIN}-{LUNAR_YEAR_MAX}"
    return values, errors


def _convert(calendar: Optional[CalendarOracle], solar: Dict[str, int], zi_hour_handling: str) -> Dict[str, Any]:
    if calendar is None or not callable(calendar):
        raise AdapterError(ErrorKind.LUNAR_CONVERTER_MISSING, "no solar-to-lunar converter is configured")
    try:
        year, month, day = solar["year"], solar["month"], solar["day"]
        if zi_hour_handling == "ziChange" and solar["hour"] >= 23:
            year, month, day = next_civil_day(year, month, day)
        converted = calendar(year, month, day, solar["hour"], solar["minute"])
    except AdapterError:
        raise
    except Exception as exc:
        raise AdapterError(
            ErrorKind.LUNAR_CONVERSION_FAILED,
            "solar to lunar conversion failed",
            {"solar": dict(solar)},
            cause=exc,
        ) from exc
    return dict(converted) if isinstance(converted, Mapping) else converted


def _ensure_lunar(lunar: Any, solar: Dict[str, int], leap_month: bool) -> Dict[str, Any]:
    context = {"solar": dict(solar)}
    if not isinstance(lunar, Mapping) or not lunar:
        raise AdapterError(ErrorKind.LUNAR_MISSING, "lunar date is unavailable", context)
    record = dict(lunar)
    for legacy, key in (("lunarYear", "lunar_year"), ("lunarMonth", "lunar_month"), ("lunarDay", "lunar_day"),
                        ("isLeapMonth", "is_leap_month"), ("timeIndex", "time_index")):
        if key not in record and legacy in record:
            record[key] = record.pop(legacy)
    lunar_year = parse_integer(record.get("lunar_year"))
    if lunar_year is None or parse_integer(record.get("lunar_month")) is None or parse_integer(record.get("lunar_day")) is None:
        raise AdapterError(ErrorKind.LUNAR_MISSING, "lunar date is incomplete", {**context, "lunar": record})
    if not (LUNAR_YEAR_MIN <= lunar_year <= LUNAR_YEAR_MAX):
        raise AdapterError(
            ErrorKind.LUNAR_YEAR_OUT_OF_RANGE,
            f"lunar year {lunar_year} is outside {LUNAR_YEAR_MIN}-{LUNAR_YEAR_MAX}",
            {**context, "lunar_year": lunar_year},
        )
    record["lunar_year"] = lunar_year

    errors: Dict[str, str] = {}
    for key, (low, high) in _LUNAR_RANGES.items():
        if record.get(key) is None:
            continue
        parsed = parse_integer(record[key])
        if parsed is None:
            errors[f"lunar.{key}"] = f"{key} must be an integer"
        elif not (low <= parsed <= high):
            errors[f"lunar.{key}"] = f"{key} must be between {low}-{high}"
        else:
            record[key] = parsed
    if errors:
        raise AdapterError(
            ErrorKind.INPUT_VALIDATION_FAILED,
            "lunar record validation failed",
            {**context, "errors": errors, "lunar": record},
        )

    if record.get("is_leap_month") is None:
        record["is_leap_month"] = to_boolean(record.pop("isleap", leap_month))
    else:
        record["is_leap_month"] = to_boolean(record["is_leap_month"])
        record.pop("isleap", None)

    if record.get("hour") is None:
        record["hour"] = solar["hour"]
    if record.get("minute") is None:
        record["minute"] = solar["minute"]
    if record.get("time_index") is None:
        record["time_index"] = time_index(solar["hour"], solar["minute"])
    return record


def normalize(raw: Any, calendar: Optional[CalendarOracle] = solar_to_lunar) -> NormalizedInput:
    """Validate ``raw`` and return the canonical, immutable ``NormalizedInput``.

    ``calendar`` defaults to the ``lunar-python`` converter; pass ``None`` to
    model a host without a converter.
    """
    if not isinstance(raw, Mapping):
        raise AdapterError(ErrorKind.INPUT_INVALID, "raw input must be a mapping", {"raw_type": type(raw).__name__})

    values, errors = _validate(raw)
    if errors:
        raise AdapterError(
            ErrorKind.INPUT_VALIDATION_FAILED,
            "input validation failed",
            {"errors": errors, "raw_data": copy.deepcopy(dict(raw))},
        )

    calendar_type = normalize_calendar_type(_field(raw, "calendar_type"))
    leap_month = to_boolean(_field(raw, "leap_month"))
    leap_handling = _choice(_field(raw, "leap_month_handling"), LEAP_MONTH_HANDLING,
                            "ZIWEI_LEAP_MONTH_HANDLING", DEFAULT_LEAP_MONTH_HANDLING)
    zi_handling = _choice(_field(raw, "zi_hour_handling"), ZI_HOUR_HANDLING,
                          "ZIWEI_ZI_HOUR_HANDLING", DEFAULT_ZI_HOUR_HANDLING)
    interpretations = _field(raw, "stem_interpretations")

    solar = {name: values[name] for name in ("year", "month", "day", "hour", "minute")}

    if calendar_type == "solar":
        lunar = _convert(calendar, solar, zi_handling)
    else:
        lunar = _field(raw, "lunar")
    lunar = _ensure_lunar(lunar, solar, leap_month)

    meta = {
        "name": sanitize_name(raw.get("name")),
        "gender": values["gender"],
        "birthplace": sanitize_text(raw.get("birthplace")),
        "calendar_type": calendar_type,
        "leap_month": leap_month,
        "leap_month_handling": leap_handling,
        "zi_hour_handling": zi_handling,
        "timezone": sanitize_text(raw.get("timezone")) or None,
        "stem_interpretations": {str(k): str(v) for k, v in interpretations.items()}
        if isinstance(interpretations, Mapping) else {},
    }
    strings = {
        "birthdate": format_birthdate(solar["year"], solar["month"], solar["day"]),
        "birthtime": format_birthtime(solar["hour"], solar["minute"]),
    }
    indices = derive_indices(meta, lunar, solar)

    logger.debug("ziwei.normalize.done", extra={"meta": meta, "indices": indices})
    try:
        return NormalizedInput(
            meta=meta,
            solar=solar,
            lunar=lunar,
            indices=indices,
            strings=strings,
            raw=copy.deepcopy(dict(raw)),
        )
    except ValidationError as exc:
        errors = {".".join(str(part) for part in e["loc"]): e["msg"] for e in exc.errors()}
        raise AdapterError(
            ErrorKind.INPUT_VALIDATION_FAILED,
            "normalized input failed validation",
            {"errors": errors},
            cause=exc,
        ) from exc
