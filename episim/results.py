"""Per-tick outcome recording.

A ResultSeries is fed once per tick (``record(model)``) and keeps one
TickResult per call. Recorded categories:
  - compartment counts per pathogen
  - hospitalized (admitted) count
  - symptom counts per pathogen (currently infectious hosts only)
  - encounters, trips, new infections, recoveries, deaths, admissions

After a run, the series are available as numpy arrays for analysis or
plotting, and ``report()`` renders a plain-text summary table.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Dict, List, Optional

import numpy as np

from episim.temporal import Time
from episim.types import Compartment, Phase, Symptom, TimeUnit

if TYPE_CHECKING:
    from episim.model import CityModel, TickStats


@dataclass
class TickResult:
    """Snapshot of aggregate counts after one tick."""
    tick: int
    time: Time
    phase: Phase
    compartments: Dict[str, Dict[Compartment, int]]   # pathogen name → counts
    symptoms: Dict[str, Dict[Symptom, int]]           # pathogen name → counts
    hospitalized: int = 0
    encounters: int = 0
    trips: int = 0
    new_infections: int = 0
    recoveries: int = 0
    deaths: int = 0
    admissions: int = 0


@dataclass
class ResultSeries:
    """Time series of TickResults for one run."""
    ticks: List[TickResult] = field(default_factory=list)

    def __len__(self) -> int:
        return len(self.ticks)

    def record(self, model: 'CityModel') -> TickResult:
        """Append counts for the model's current state."""
        stats: 'TickStats' = model.last_tick
        compartments = {}
        symptoms = {}
        for pathogen in model.get_pathogens():
            compartments[pathogen.name] = model.compartment_counts(pathogen)
            counts = {s: 0 for s in Symptom}
            for host in model.get_hosts():
                effect = host.statuses.get(pathogen)
                if effect is None or effect.compartment is not Compartment.INFECTIOUS:
                    continue
                for symptom in effect.symptoms:
                    counts[symptom] += 1
            symptoms[pathogen.name] = counts

        result = TickResult(
            tick=model.tick_count,
            time=model.get_current_time(),
            phase=model.get_current_phase(),
            compartments=compartments,
            symptoms=symptoms,
            hospitalized=model.hospitalized_count(),
            encounters=stats.encounters,
            trips=stats.trips,
            new_infections=stats.new_infections,
            recoveries=stats.recoveries,
            deaths=stats.deaths,
            admissions=stats.admissions,
        )
        self.ticks.append(result)
        return result

    # ── Array views ──────────────────────────────────────────────────

    def times(self, unit: TimeUnit = TimeUnit.HOUR) -> np.ndarray:
        return np.array([r.time.in_units(unit) for r in self.ticks], dtype=np.float64)

    def compartment_series(self, pathogen_name: str) -> Dict[Compartment, np.ndarray]:
        """Compartment → int array of length len(self)."""
        return {
            c: np.array([r.compartments[pathogen_name][c] for r in self.ticks],
                        dtype=np.int64)
            for c in Compartment
        }

    def symptom_series(self, pathogen_name: str) -> Dict[Symptom, np.ndarray]:
        return {
            s: np.array([r.symptoms[pathogen_name][s] for r in self.ticks],
                        dtype=np.int64)
            for s in Symptom
        }

    def series(self, name: str) -> np.ndarray:
        """Scalar per-tick counter by attribute name (e.g. 'encounters')."""
        return np.array([getattr(r, name) for r in self.ticks], dtype=np.int64)

    # ── Summary ──────────────────────────────────────────────────────

    def peak(self, pathogen_name: str,
             compartment: Compartment = Compartment.INFECTIOUS) -> Optional[TickResult]:
        """TickResult with the highest count in *compartment* (first on ties)."""
        if not self.ticks:
            return None
        counts = self.compartment_series(pathogen_name)[compartment]
        return self.ticks[int(np.argmax(counts))]

    def report(self, every: int = 1) -> str:
        """Formatted text table, one row per *every* ticks, per pathogen."""
        if not self.ticks:
            return "(no ticks recorded)"
        lines = []
        for pathogen_name in self.ticks[0].compartments:
            lines.append(f"Pathogen: {pathogen_name}")
            lines.append(
                f"{'Tick':>6} {'Hour':>8} {'Phase':<11} {'S':>6} {'E':>6} {'I':>6} "
                f"{'R':>6} {'D(t)':>6} {'D(u)':>6} {'Hosp':>5} {'Enc':>6}"
            )
            lines.append("-" * 84)
            for i, r in enumerate(self.ticks):
                if i % every != 0 and i != len(self.ticks) - 1:
                    continue
                c = r.compartments[pathogen_name]
                lines.append(
                    f"{r.tick:>6} {r.time.in_units(TimeUnit.HOUR):>8.1f} "
                    f"{r.phase.name:<11} "
                    f"{c[Compartment.SUSCEPTIBLE]:>6} {c[Compartment.INCUBATING]:>6} "
                    f"{c[Compartment.INFECTIOUS]:>6} {c[Compartment.RECOVERED]:>6} "
                    f"{c[Compartment.DEAD_TREATED]:>6} {c[Compartment.DEAD_UNTREATED]:>6} "
                    f"{r.hospitalized:>5} {r.encounters:>6}"
                )
            final = self.ticks[-1].compartments[pathogen_name]
            peak = self.peak(pathogen_name)
            lines.append("-" * 84)
            lines.append(
                f"Attack: {sum(final[c] for c in Compartment if c > Compartment.SUSCEPTIBLE)}"
                f" infected, "
                f"{final[Compartment.DEAD_TREATED] + final[Compartment.DEAD_UNTREATED]} dead; "
                f"peak infectious {peak.compartments[pathogen_name][Compartment.INFECTIOUS]}"
                f" at tick {peak.tick}"
            )
            lines.append("")
        return "\n".join(lines).rstrip() + "\n"
