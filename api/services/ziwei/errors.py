"""Typed error taxonomy for chart normalization and orchestration."""

from __future__ import annotations

import time
from enum import Enum
from typing import Any, Dict, Optional


class ErrorKind(str, Enum):
    INPUT_INVALID = "INPUT_INVALID"
    INPUT_VALIDATION_FAILED = "INPUT_VALIDATION_FAILED"
    LUNAR_MISSING = "LUNAR_MISSING"
    LUNAR_CONVERSION_FAILED = "LUNAR_CONVERSION_FAILED"
    LUNAR_CONVERTER_MISSING = "LUNAR_CONVERTER_MISSING"
    LUNAR_YEAR_OUT_OF_RANGE = "LUNAR_YEAR_OUT_OF_RANGE"
    INPUT_CONTEXT_REQUIRED = "INPUT_CONTEXT_REQUIRED"
    MODULE_MISSING = "MODULE_MISSING"
    PALACE_CALC_FAILED = "PALACE_CALC_FAILED"
    PRIMARY_STARS_FAILED = "PRIMARY_STARS_FAILED"
    SECONDARY_STARS_FAILED = "SECONDARY_STARS_FAILED"
    MINOR_STARS_FAILED = "MINOR_STARS_FAILED"
    ATTRIBUTES_FAILED = "ATTRIBUTES_FAILED"
    OUTPUT_SECTION_FAILED = "OUTPUT_SECTION_FAILED"


FATAL_KINDS = frozenset(
    {
        ErrorKind.INPUT_INVALID,
        ErrorKind.INPUT_VALIDATION_FAILED,
        ErrorKind.LUNAR_MISSING,
        ErrorKind.LUNAR_CONVERSION_FAILED,
        ErrorKind.LUNAR_CONVERTER_MISSING,
        ErrorKind.LUNAR_YEAR_OUT_OF_RANGE,
        ErrorKind.INPUT_CONTEXT_REQUIRED,
        ErrorKind.MODULE_MISSING,
    }
)


class AdapterError(Exception):
    """Pipeline error carrying a kind, a structured context and an optional cause.

    Kinds in ``FATAL_KINDS`` are raised to the caller. The rest are captured
    per section by the orchestrator and reported in the snapshot's ``errors``.
    """

    def __init__(
        self,
        kind: ErrorKind | str,
        message: str,
        context: Optional[Dict[str, Any]] = None,
        cause: Optional[BaseException] = None,
        section: Optional[str] = None,
    ) -> None:
        super().__init__(message)
        self.kind = ErrorKind(kind)
        self.message = message
        self.context: Dict[str, Any] = dict(context or {})
        self.cause = cause
        self.section = section
        self.timestamp = time.time()
        if cause is not None:
            self.__cause__ = cause

    @property
    def fatal(self) -> bool:
        return self.kind in FATAL_KINDS

    def to_dict(self) -> Dict[str, Any]:
        return {
            "kind": self.kind.value,
            "message": self.message,
            "context": self.context,
            "cause": f"{type(self.cause).__name__}: {self.cause}" if self.cause is not None else None,
            "section": self.section,
            "timestamp": self.timestamp,
        }

    def __repr__(self) -> str:
        return f"AdapterError({self.kind.value!r}, {self.message!r})"
