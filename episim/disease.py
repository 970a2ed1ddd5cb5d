"""Disease progression for one host and one pathogen.

Compartments (one-way, no reinfection):

    SUSCEPTIBLE → INCUBATING → INFECTIOUS → RECOVERED
                                          → DEAD_TREATED
                                          → DEAD_UNTREATED

Implements:
  - infect_host: idempotent infection primitive (creates the
    PathogenEffect once, samples the incubation duration)
  - seed_infectious: patient-zero seeding straight into INFECTIOUS
  - progress_effect: at most one transition per tick, driven by elapsed
    time since onset versus the sampled durations
  - draw_outcome: categorical {die treated, die untreated, recover} draw
    expressed as conditional Rate rolls
  - exposure_rate: per-tick infection probability adjusted for the
    target's resilience

Reinfection (RECOVERED → SUSCEPTIBLE after waning immunity) is not
modelled; PathogenEffect records are never recreated.
"""

from __future__ import annotations

from typing import Dict, Optional

import numpy as np

from episim.entities import PathogenEffect, Person
from episim.pathogen import Pathogen
from episim.temporal import Rate, Time
from episim.types import Compartment, Demographic


def exposure_rate(pathogen: Pathogen, target: Person, factor: float) -> Rate:
    """attack_rate × factor × (1 − resilience), clamped to [0, 1]."""
    p = pathogen.attack_rate.value * factor * (1.0 - target.resilience.value)
    return Rate.clamped(p)


# ═══════════════════════════════════════════════════════════════════════
# INFECTION
# ═══════════════════════════════════════════════════════════════════════

def infect_host(
    host: Person,
    pathogen: Pathogen,
    now: Time,
    rng: np.random.Generator,
) -> Optional[PathogenEffect]:
    """Infect *host* with *pathogen* at time *now*.

    No-op if the host already has a status for this pathogen or is dead.

    Returns:
        The new PathogenEffect, or None if nothing changed.
    """
    if pathogen in host.statuses or not host.is_alive:
        return None
    effect = PathogenEffect(
        pathogen=pathogen,
        compartment=Compartment.INCUBATING,
        onset_time=now.copy(),
        incubation=pathogen.incubation.sample(rng),
    )
    host.statuses[pathogen] = effect
    return effect


def seed_infectious(
    host: Person,
    pathogen: Pathogen,
    now: Time,
    rng: np.random.Generator,
) -> Optional[PathogenEffect]:
    """Seed an already-infectious case (patient zero).

    The onset is back-dated by the sampled incubation so the usual
    elapsed-time rules keep holding for the rest of the infection.
    """
    effect = infect_host(host, pathogen, now, rng)
    if effect is None:
        return None
    effect.onset_time = now - effect.incubation
    begin_infectious(effect, host.demographic, rng)
    return effect


def begin_infectious(
    effect: PathogenEffect,
    demographic: Demographic,
    rng: np.random.Generator,
) -> None:
    """INCUBATING → INFECTIOUS: sample duration, care need and symptoms."""
    pathogen = effect.pathogen
    effect.compartment = Compartment.INFECTIOUS
    effect.infectious = pathogen.infectious.sample(rng)
    effect.needs_hospital = pathogen.get_hospitalization_rate(demographic).roll(rng)
    effect.symptoms = frozenset(
        symptom
        for symptom, rate in pathogen.get_symptom_expression(demographic).items()
        if rate.roll(rng)
    )


# ═══════════════════════════════════════════════════════════════════════
# OUTCOME
# ═══════════════════════════════════════════════════════════════════════

def outcome_probabilities(
    effect: PathogenEffect,
    demographic: Demographic,
) -> Dict[Compartment, float]:
    """Categorical distribution over terminal compartments.

    Treated cases die at the treated mortality rate; cases that needed a
    hospital bed and did not get one die at the untreated rate.
    """
    pathogen = effect.pathogen
    if effect.treated:
        p_treated = pathogen.get_mortality_treated(demographic).value
        p_untreated = 0.0
    else:
        p_treated = 0.0
        p_untreated = pathogen.get_mortality_untreated(demographic).value
    return {
        Compartment.DEAD_TREATED: p_treated,
        Compartment.DEAD_UNTREATED: p_untreated,
        Compartment.RECOVERED: max(0.0, 1.0 - p_treated - p_untreated),
    }


def draw_outcome(
    effect: PathogenEffect,
    demographic: Demographic,
    rng: np.random.Generator,
) -> Compartment:
    """One categorical draw as a chain of conditional Rate rolls."""
    remaining = 1.0
    probs = outcome_probabilities(effect, demographic)
    for compartment in (Compartment.DEAD_TREATED, Compartment.DEAD_UNTREATED):
        p = probs[compartment]
        if p <= 0.0:
            continue
        if Rate.clamped(p / remaining).roll(rng):
            return compartment
        remaining -= p
        if remaining <= 0.0:
            break
    return Compartment.RECOVERED


# ═══════════════════════════════════════════════════════════════════════
# PROGRESSION
# ═══════════════════════════════════════════════════════════════════════

# Slack for float residue when the onset is back-dated (milliseconds)
_ELAPSED_SLACK_MS = 1e-6


def _reached(elapsed: Time, threshold: Time) -> bool:
    return elapsed.to_ms() + _ELAPSED_SLACK_MS >= threshold.to_ms()


def progress_effect(
    effect: PathogenEffect,
    demographic: Demographic,
    now: Time,
    rng: np.random.Generator,
) -> Optional[Compartment]:
    """Advance *effect* by at most one compartment.

    Returns:
        The compartment entered this tick, or None if unchanged.
    """
    if effect.is_terminal:
        return None
    elapsed = effect.elapsed(now)
    if effect.compartment is Compartment.INCUBATING:
        if _reached(elapsed, effect.incubation):
            begin_infectious(effect, demographic, rng)
            return Compartment.INFECTIOUS
        return None
    if effect.compartment is Compartment.INFECTIOUS:
        if _reached(elapsed, effect.incubation + effect.infectious):
            outcome = draw_outcome(effect, demographic, rng)
            effect.compartment = outcome
            effect.resolved_time = now.copy()
            return outcome
        return None
    return None
