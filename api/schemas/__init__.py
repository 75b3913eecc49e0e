from .ziwei import (
    ChartInput,
    DecadeOverlayRequest,
    AnnualOverlayRequest,
    NormalizedInput,
    ChartSnapshot,
    ComputeResponse,
    DecadeOverlayOut,
    AnnualOverlayOut,
)
