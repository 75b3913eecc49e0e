"""The set of section rule functions injected into the orchestrator.

Each field is a plain callable. ``default_oracles()`` wires in the rule
modules of this package; tests and alternative rule sets pass their own
callables through ``dataclasses.replace``.
"""

from __future__ import annotations

from dataclasses import dataclass, fields
from typing import Any, Callable, Dict, List, Optional

from .attributes import calculate_attributes
from .brightness import calculate_brightness
from .life_cycle import calculate_life_cycles
from .minor_stars import calculate_minor_stars
from .mutations import calculate_mutations
from .nayin import nayin_loci
from .palaces import calculate_palaces
from .primary import place_primary_stars
from .secondary import calculate_secondary_stars


@dataclass(frozen=True)
class SectionOracles:
    palaces: Optional[Callable[..., Dict[int, Dict[str, Any]]]] = None
    nayin: Optional[Callable[[int, int], Optional[int]]] = None
    primary_stars: Optional[Callable[..., Dict[str, int]]] = None
    secondary_stars: Optional[Callable[..., Dict[str, int]]] = None
    mutations: Optional[Callable[..., Dict[str, Dict[str, str]]]] = None
    minor_stars: Optional[Callable[..., Dict[str, Any]]] = None
    attributes: Optional[Callable[..., Dict[int, List[str]]]] = None
    life_cycles: Optional[Callable[..., Dict[str, Any]]] = None
    brightness: Optional[Callable[..., Dict[str, Dict[str, Any]]]] = None

    def missing(self) -> List[str]:
        return [f.name for f in fields(self) if not callable(getattr(self, f.name))]


def default_oracles() -> SectionOracles:
    return SectionOracles(
        palaces=calculate_palaces,
        nayin=nayin_loci,
        primary_stars=place_primary_stars,
        secondary_stars=calculate_secondary_stars,
        mutations=calculate_mutations,
        minor_stars=calculate_minor_stars,
        attributes=calculate_attributes,
        life_cycles=calculate_life_cycles,
        brightness=calculate_brightness,
    )
