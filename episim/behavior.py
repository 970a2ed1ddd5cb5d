"""Behavior (choice) model: where a Person goes during each Phase.

The map is keyed by (Demographic, PlaceCategory) and holds a candidate
set of (LandUse, max_distance) pairs. Destination search:

  1. Draw a candidate land use uniformly from the registered set.
  2. Keep the places of that land use within max_distance of the
     person's primary place.
  3. Pick uniformly among them; if none qualify, drop that land use and
     redraw. After max_attempts draws (or when no candidate is left) fall
     back to the primary place and emit a LookupMiss warning.

Each phase has a nominal PlaceCategory. During apply() a person may be
diverted to a TERTIARY place with an "anomaly" probability, and a
diverted person returns to the nominal category with a "recovery"
probability. Both are per-phase Rates scaled by Δt / phase duration, so
excursions are bounded in expectation regardless of the tick size. A
phase change always ends the excursion.
"""

from __future__ import annotations

import warnings
from typing import Dict, List, Mapping, Optional, Sequence, Tuple

import numpy as np

from episim.entities import Person, Place
from episim.errors import LookupMiss
from episim.temporal import Rate, Time
from episim.types import (
    DEFAULT_PHASE_CATEGORY,
    MAX_PLACE_ATTEMPTS,
    Demographic,
    LandUse,
    Phase,
    PlaceCategory,
)

PlacesByUse = Mapping[LandUse, Sequence[Place]]


class BehaviorMap:
    """Maps (Demographic × PlaceCategory) to eligible destinations."""

    def __init__(
        self,
        phase_categories: Optional[Mapping[Phase, PlaceCategory]] = None,
        anomaly_rates: Optional[Mapping[Phase, Rate]] = None,
        recovery_rates: Optional[Mapping[Phase, Rate]] = None,
        max_attempts: int = MAX_PLACE_ATTEMPTS,
    ):
        self._map: Dict[Tuple[Demographic, PlaceCategory], List[Tuple[LandUse, float]]] = {}
        self.phase_categories: Dict[Phase, PlaceCategory] = dict(DEFAULT_PHASE_CATEGORY)
        if phase_categories:
            self.phase_categories.update(phase_categories)
        self.anomaly_rates: Dict[Phase, Rate] = dict(anomaly_rates or {})
        self.recovery_rates: Dict[Phase, Rate] = dict(recovery_rates or {})
        if max_attempts < 1:
            raise ValueError(f"max_attempts must be >= 1, got {max_attempts}")
        self.max_attempts = max_attempts

    # ── Registration ─────────────────────────────────────────────────

    def set_map(
        self,
        demographic: Demographic,
        category: PlaceCategory,
        land_use: LandUse,
        max_distance: float,
    ) -> None:
        """Register one eligible (land_use, max_distance) for a key."""
        self._map.setdefault((demographic, category), []).append(
            (land_use, float(max_distance))
        )

    def get_candidates(
        self, demographic: Demographic, category: PlaceCategory,
    ) -> List[Tuple[LandUse, float]]:
        return list(self._map.get((demographic, category), []))

    def get_category(self, phase: Phase) -> PlaceCategory:
        return self.phase_categories[phase]

    def set_anomaly_rate(self, phase: Phase, rate: Rate) -> None:
        self.anomaly_rates[phase] = rate

    def set_recovery_rate(self, phase: Phase, rate: Rate) -> None:
        self.recovery_rates[phase] = rate

    # ── Destination search ───────────────────────────────────────────

    def get_random_place(
        self,
        host: Person,
        category: PlaceCategory,
        places_by_use: PlacesByUse,
        rng: np.random.Generator,
    ) -> Place:
        """Pick a destination of *category* for *host*.

        Never fails: any miss degrades to ``host.primary_place``.
        """
        candidates = self.get_candidates(host.demographic, category)
        if not candidates:
            warnings.warn(
                f"No {category.name} land use registered for "
                f"{host.demographic.name}; using primary place",
                LookupMiss,
                stacklevel=2,
            )
            return host.primary_place

        origin = host.primary_place.coordinate
        for _ in range(self.max_attempts):
            if not candidates:
                break
            idx = int(rng.integers(len(candidates)))
            land_use, max_distance = candidates[idx]
            eligible = [
                place for place in places_by_use.get(land_use, ())
                if place.coordinate.distance_to(origin) <= max_distance
            ]
            if eligible:
                return eligible[int(rng.integers(len(eligible)))]
            del candidates[idx]

        warnings.warn(
            f"No {category.name} place within range for {host.demographic.name} "
            f"host {host.uid}; using primary place",
            LookupMiss,
            stacklevel=2,
        )
        return host.primary_place

    def resolve(
        self,
        host: Person,
        category: PlaceCategory,
        places_by_use: PlacesByUse,
        rng: np.random.Generator,
    ) -> Place:
        """Concrete place for *category* from the host's own relations."""
        if category is PlaceCategory.PRIMARY:
            return host.primary_place
        if category is PlaceCategory.SECONDARY:
            return host.secondary_place or host.primary_place
        if category is PlaceCategory.TERTIARY:
            if host.tertiary_place is None:
                host.tertiary_place = self.get_random_place(
                    host, PlaceCategory.TERTIARY, places_by_use, rng,
                )
            return host.tertiary_place
        raise ValueError(f"Unhandled place category {category!r}")

    # ── Per-tick movement decision ───────────────────────────────────

    def apply(
        self,
        host: Person,
        phase: Phase,
        dt: Time,
        places_by_use: PlacesByUse,
        rng: np.random.Generator,
        phase_duration: Optional[Time] = None,
    ) -> Place:
        """Destination of *host* for this tick.

        Args:
            host: Person to move.
            phase: Current schedule phase.
            dt: Tick length.
            places_by_use: Places indexed by land use.
            rng: Behavior random stream.
            phase_duration: Length of the current phase occurrence. Anomaly
                and recovery rates are per phase and get scaled by
                dt / phase_duration; None applies them unscaled per tick.

        Returns:
            The place the host should occupy after this tick.
        """
        if host.is_admitted and host.hospital_place is not None:
            return host.hospital_place

        nominal = self.get_category(phase)
        # An excursion ends with the phase it started in
        if phase is not host.last_phase:
            host.last_phase = phase
            host.diverted = False
            host.tertiary_place = None

        scale = dt.ratio(phase_duration) if phase_duration is not None else 1.0
        if host.diverted:
            recovery = self.recovery_rates.get(phase, Rate(0.0))
            if recovery.scaled(scale).roll(rng):
                host.diverted = False
                host.tertiary_place = None
        elif nominal is not PlaceCategory.TERTIARY:
            anomaly = self.anomaly_rates.get(phase, Rate(0.0))
            if anomaly.scaled(scale).roll(rng):
                host.diverted = True
                host.tertiary_place = None

        category = PlaceCategory.TERTIARY if host.diverted else nominal
        return self.resolve(host, category, places_by_use, rng)


def default_behavior_map() -> BehaviorMap:
    """Children go to school, adults to offices, seniors to public places.

    Everyone shops and plays at nearby retail and public places. Distances
    are in the same units as place coordinates.
    """
    behavior = BehaviorMap(
        anomaly_rates={
            Phase.WORK: Rate(0.2),
            Phase.HOME: Rate(0.1),
        },
        recovery_rates={
            Phase.WORK: Rate(0.9),
            Phase.HOME: Rate(0.9),
            Phase.LEISURE: Rate(0.9),
        },
    )
    behavior.set_map(Demographic.CHILD, PlaceCategory.SECONDARY, LandUse.SCHOOL, 500.0)
    behavior.set_map(Demographic.ADULT, PlaceCategory.SECONDARY, LandUse.OFFICE, 1000.0)
    behavior.set_map(Demographic.SENIOR, PlaceCategory.SECONDARY, LandUse.PUBLIC, 250.0)
    behavior.set_map(Demographic.SENIOR, PlaceCategory.SECONDARY, LandUse.RETAIL, 250.0)
    for demographic in Demographic:
        behavior.set_map(demographic, PlaceCategory.TERTIARY, LandUse.RETAIL, 500.0)
        behavior.set_map(demographic, PlaceCategory.TERTIARY, LandUse.PUBLIC, 500.0)
    return behavior
