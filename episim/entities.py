"""Spatial and epidemiological entities.

Entities are flat dataclasses tagged with a kind enum rather than a
class hierarchy:
  - Place   (EnvironmentKind.PLACE): located container with land use
  - Person  (HostKind.PERSON):       infectable host with a demographic
  - Agent   (VesselKind of its vessel): finite-life unit of pathogen presence
  - PathogenEffect: per (Person, Pathogen) infection record

Ownership: every entity belongs to exactly one CityModel, which mints its
uid. References between entities (Person → Place, Agent → vessel) are
relations, not ownership. Occupancy (Place.occupants) and agent membership
(Place.agents, Person.carried_agents) are written only by CityModel.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Dict, FrozenSet, List, NamedTuple, Optional, Union

from episim.temporal import Rate, Time
from episim.types import (
    DEAD_COMPARTMENTS,
    TERMINAL_COMPARTMENTS,
    Compartment,
    Demographic,
    EnvironmentKind,
    HostKind,
    LandUse,
    Phase,
    Symptom,
    VesselKind,
)

if TYPE_CHECKING:
    from episim.pathogen import Pathogen


class Coordinate(NamedTuple):
    x: float
    y: float
    z: float = 0.0

    def distance_to(self, other: 'Coordinate') -> float:
        """Euclidean distance in the x-y plane."""
        return math.hypot(self.x - other.x, self.y - other.y)


# ═══════════════════════════════════════════════════════════════════════
# PATHOGEN EFFECT
# ═══════════════════════════════════════════════════════════════════════

@dataclass(eq=False)
class PathogenEffect:
    """Infection status of one Person with respect to one Pathogen.

    Created exactly once per (Person, Pathogen) pair, at infection.
    Durations are measured from onset_time:
      INCUBATING → INFECTIOUS  when elapsed ≥ incubation
      INFECTIOUS → terminal    when elapsed ≥ incubation + infectious
    """
    pathogen: 'Pathogen'
    compartment: Compartment
    onset_time: Time
    incubation: Time
    infectious: Optional[Time] = None     # sampled when incubation ends
    needs_hospital: bool = False
    admitted: bool = False
    symptoms: FrozenSet[Symptom] = frozenset()
    resolved_time: Optional[Time] = None

    @property
    def is_terminal(self) -> bool:
        return self.compartment in TERMINAL_COMPARTMENTS

    @property
    def treated(self) -> bool:
        """Care was adequate: no hospital needed, or a bed was given."""
        return (not self.needs_hospital) or self.admitted

    def elapsed(self, now: Time) -> Time:
        return now - self.onset_time


# ═══════════════════════════════════════════════════════════════════════
# PLACE
# ═══════════════════════════════════════════════════════════════════════

@dataclass(eq=False)
class Place:
    """A located environment with a land use."""
    uid: int
    name: str
    coordinate: Coordinate
    size: float
    land_use: LandUse
    kind: EnvironmentKind = EnvironmentKind.PLACE
    occupants: Dict[int, 'Person'] = field(default_factory=dict, repr=False)
    agents: Dict[int, 'Agent'] = field(default_factory=dict, repr=False)

    def get_use(self) -> LandUse:
        return self.land_use

    def get_occupants(self) -> List['Person']:
        return list(self.occupants.values())

    def get_density(self) -> float:
        """Occupants per unit size."""
        if self.size <= 0.0:
            return 0.0
        return len(self.occupants) / self.size

    def agent_for(self, pathogen: 'Pathogen') -> Optional['Agent']:
        for agent in self.agents.values():
            if agent.pathogen is pathogen:
                return agent
        return None

    def __hash__(self):
        return hash(('place', self.uid))


# ═══════════════════════════════════════════════════════════════════════
# PERSON
# ═══════════════════════════════════════════════════════════════════════

@dataclass(eq=False)
class Person:
    """A human host that may carry and transmit pathogens."""
    uid: int
    name: str
    demographic: Demographic
    primary_place: Place
    secondary_place: Optional[Place] = None
    resilience: Rate = field(default_factory=Rate)
    kind: HostKind = HostKind.PERSON

    current_environment: Optional[Place] = field(default=None, repr=False)
    statuses: Dict['Pathogen', PathogenEffect] = field(default_factory=dict, repr=False)
    carried_agents: Dict[int, 'Agent'] = field(default_factory=dict, repr=False)

    # Behavior state, written only by BehaviorMap.apply
    diverted: bool = field(default=False, repr=False)
    tertiary_place: Optional[Place] = field(default=None, repr=False)
    last_phase: Optional[Phase] = field(default=None, repr=False)
    hospital_place: Optional[Place] = field(default=None, repr=False)

    @property
    def coordinate(self) -> Coordinate:
        env = self.current_environment or self.primary_place
        return env.coordinate

    @property
    def is_alive(self) -> bool:
        return not any(
            effect.compartment in DEAD_COMPARTMENTS
            for effect in self.statuses.values()
        )

    @property
    def is_admitted(self) -> bool:
        """Currently occupying a hospital bed for some pathogen."""
        return any(
            effect.admitted and effect.compartment is Compartment.INFECTIOUS
            for effect in self.statuses.values()
        )

    def get_compartment(self, pathogen: 'Pathogen') -> Compartment:
        effect = self.statuses.get(pathogen)
        if effect is None:
            return Compartment.SUSCEPTIBLE
        return effect.compartment

    def carried_agent_for(self, pathogen: 'Pathogen') -> Optional['Agent']:
        for agent in self.carried_agents.values():
            if agent.pathogen is pathogen:
                return agent
        return None

    def __hash__(self):
        return hash(('person', self.uid))


# ═══════════════════════════════════════════════════════════════════════
# AGENT
# ═══════════════════════════════════════════════════════════════════════

Vessel = Union[Person, Place]


@dataclass(eq=False)
class Agent:
    """Finite-life unit of pathogen presence inside exactly one vessel."""
    uid: int
    pathogen: 'Pathogen'
    life: Time
    vessel: Vessel
    vessel_kind: VesselKind

    @property
    def is_alive(self) -> bool:
        return self.life.amount > 0.0

    @property
    def coordinate(self) -> Coordinate:
        return self.vessel.coordinate

    def __hash__(self):
        return hash(('agent', self.uid))


def vessel_kind_of(vessel: Vessel) -> VesselKind:
    """Tag a vessel; raises TypeError for anything else."""
    if isinstance(vessel, Person):
        return VesselKind.HOST
    if isinstance(vessel, Place):
        return VesselKind.ENVIRONMENT
    raise TypeError(f"Agent vessel must be a Person or Place, got {type(vessel).__name__}")
