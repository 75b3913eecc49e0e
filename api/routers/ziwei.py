"""Zi Wei Dou Shu chart endpoints."""

from __future__ import annotations

import logging
from typing import Any, Dict

from fastapi import APIRouter, Body, HTTPException

from ..schemas.ziwei import (
    AnnualOverlayOut,
    AnnualOverlayRequest,
    ChartInput,
    ComputeResponse,
    DecadeOverlayOut,
    DecadeOverlayRequest,
    NormalizedInput,
)
from ..services.orchestrators.ziwei_full import build_chart
from ..services.ziwei import constants as zc
from ..services.ziwei.assembler import chart_constants
from ..services.ziwei.errors import AdapterError
from ..services.ziwei.mutations import CONTROVERSIAL_VARIANTS
from ..services.ziwei.normalizer import normalize
from ..services.ziwei.overlays import annual_overlay, decade_overlay

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/v1/ziwei", tags=["ziwei"])

_EXAMPLE = {
    "name": "Chen",
    "gender": "M",
    "year": 1990,
    "month": 5,
    "day": 15,
    "hour": 14,
    "minute": 30,
    "calendarType": "solar",
}


def _http_error(err: AdapterError) -> HTTPException:
    status = 422 if err.fatal else 409
    logger.info("ziwei.request.rejected", extra={"kind": err.kind.value, "status": status})
    return HTTPException(status_code=status, detail=err.to_dict())


@router.post("/compute", response_model=ComputeResponse, summary="Compute a full chart snapshot")
def ziwei_compute(req: ChartInput = Body(..., examples=[_EXAMPLE])):
    try:
        chart_id, snapshot = build_chart(req.to_raw())
    except AdapterError as err:
        raise _http_error(err) from err
    return ComputeResponse(chart_id=chart_id, snapshot=snapshot)


@router.post("/normalize", response_model=NormalizedInput, summary="Validate and normalize birth data")
def ziwei_normalize(req: ChartInput = Body(..., examples=[_EXAMPLE])):
    try:
        return normalize(req.to_raw())
    except AdapterError as err:
        raise _http_error(err) from err


@router.post("/overlay/decade", response_model=DecadeOverlayOut)
def ziwei_decade_overlay(req: DecadeOverlayRequest):
    try:
        _, snapshot = build_chart(req.chart_input.to_raw())
        return decade_overlay(snapshot, req.cycle_index)
    except AdapterError as err:
        raise _http_error(err) from err


@router.post("/overlay/annual", response_model=AnnualOverlayOut)
def ziwei_annual_overlay(req: AnnualOverlayRequest):
    try:
        _, snapshot = build_chart(req.chart_input.to_raw())
        return annual_overlay(snapshot, req.year)
    except AdapterError as err:
        raise _http_error(err) from err


@router.get("/constants")
def ziwei_constants() -> Dict[str, Any]:
    payload = chart_constants()
    payload.update({
        "stems": list(zc.STEM_NAMES),
        "branches": list(zc.BRANCH_NAMES),
        "mutation_types": list(zc.MUTATION_TYPES),
        "options": {
            "calendar_type": list(zc.CALENDAR_TYPES),
            "leap_month_handling": list(zc.LEAP_MONTH_HANDLING),
            "zi_hour_handling": list(zc.ZI_HOUR_HANDLING),
            "brightness_school": list(zc.BRIGHTNESS_SCHOOLS),
            "palace_school": list(zc.PALACE_SCHOOLS),
            "stem_interpretations": {stem: ["interpretation_1", *variants] for stem, variants in CONTROVERSIAL_VARIANTS.items()},
        },
    })
    return payload
