"""City epidemic simulation engine.

CityModel is the aggregate root: it owns the clock, schedule, behavior
map, pathogens, places, persons and the agent registry, mints every
entity uid, and is the single writer of occupancy and agent membership.

Per-tick update, update(Δt):
  1. Advance clock; resolve the current Phase from the Schedule
  2. Move persons (BehaviorMap.apply), maintaining occupant sets
  3. Host transmission, for each INFECTIOUS (person, pathogen):
       a. carry an Agent if none is carried
       b. deposit an Agent in the current place,   p = attack × hours
       c. infect each co-located susceptible,       p = attack × hours × density
  4. Environment transmission, for each Agent in a place:
       infect each susceptible occupant,           p = attack × hours / size
  5. Compartment progression (at most one transition per effect), with
     hospital admission gated by bed capacity
  6. Agent decay: life −= Δt; agents with life ≤ 0 leave the registry
     and their vessel

Every probability is an independent draw per (target, pathogen, tick)
scaled by the target's resilience. Collections are insertion-ordered
dicts keyed by uid, and uids are minted monotonically, so iteration is
in uid order and a fixed seed gives an identical run.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Iterable, List, Mapping, Optional, Tuple, Union

import numpy as np

from episim.behavior import BehaviorMap, default_behavior_map
from episim.disease import exposure_rate, infect_host, progress_effect, seed_infectious
from episim.entities import (
    Agent,
    Coordinate,
    PathogenEffect,
    Person,
    Place,
    vessel_kind_of,
)
from episim.errors import ConfigurationError, InvalidDurationError
from episim.pathogen import Pathogen
from episim.rng import create_rng_hierarchy, restore_rng_state, rng_state_snapshot
from episim.schedule import Schedule, default_schedule
from episim.temporal import Rate, Time
from episim.types import (
    DEAD_COMPARTMENTS,
    Compartment,
    Day,
    Demographic,
    LandUse,
    Phase,
    PlaceCategory,
    TimeUnit,
    VesselKind,
)


@dataclass
class TickStats:
    """Event counts for one tick."""
    trips: int = 0            # persons whose place changed
    encounters: int = 0       # infectious → susceptible co-locations
    new_infections: int = 0
    recoveries: int = 0
    deaths: int = 0
    admissions: int = 0


class CityModel:
    """Agent-based epidemic in a synthetic city.

    Args:
        time_step: Default tick length for update().
        schedule: Daily phase schedule; default_schedule() if None.
        behavior: Destination policy; default_behavior_map() if None.
        seed: Master seed for the RNG hierarchy (ignored if rngs given).
        rngs: Pre-built RNG streams (see episim.rng).
        hospital_beds: Concurrent admission capacity; None = unlimited.
        start_time: Initial clock value; 0 in the time step's unit if None.
    """

    def __init__(
        self,
        time_step: Optional[Time] = None,
        schedule: Optional[Schedule] = None,
        behavior: Optional[BehaviorMap] = None,
        seed: int = 42,
        rngs: Optional[Dict[str, np.random.Generator]] = None,
        hospital_beds: Optional[int] = None,
        start_time: Optional[Time] = None,
    ):
        self.time_step = time_step if time_step is not None else Time(1.0, TimeUnit.HOUR)
        _require_positive(self.time_step, "time_step")
        if hospital_beds is not None and hospital_beds < 0:
            raise ConfigurationError(f"hospital_beds must be >= 0, got {hospital_beds}")

        self.schedule = schedule if schedule is not None else default_schedule()
        self.behavior = behavior if behavior is not None else default_behavior_map()
        self.rngs = rngs if rngs is not None else create_rng_hierarchy(seed)
        self.hospital_beds = hospital_beds

        self.current_time = (start_time.copy() if start_time is not None
                             else Time(0.0, self.time_step.unit))
        self.current_phase: Phase = self.schedule.get_phase(self.current_time)
        self.tick_count = 0
        self.last_tick = TickStats()

        self.pathogens: Dict[str, Pathogen] = {}
        self.places: Dict[int, Place] = {}
        self.hosts: Dict[int, Person] = {}
        self.agents: Dict[int, Agent] = {}
        self._places_by_use: Dict[LandUse, List[Place]] = {}
        self._next_uid = 0
        self._admitted = 0

    def _mint_uid(self) -> int:
        uid = self._next_uid
        self._next_uid += 1
        return uid

    # ═══════════════════════════════════════════════════════════════════
    # QUERY SURFACE (read-only)
    # ═══════════════════════════════════════════════════════════════════

    def get_hosts(self) -> List[Person]:
        return list(self.hosts.values())

    def get_environments(self) -> List[Place]:
        return list(self.places.values())

    get_places = get_environments

    def get_agents(self) -> List[Agent]:
        return list(self.agents.values())

    def get_pathogens(self) -> List[Pathogen]:
        return list(self.pathogens.values())

    def get_pathogen(self, name: str) -> Pathogen:
        try:
            return self.pathogens[name]
        except KeyError:
            raise KeyError(
                f"Unknown pathogen '{name}'. Known: {sorted(self.pathogens)}"
            ) from None

    def get_current_time(self) -> Time:
        return self.current_time.copy()

    def get_current_phase(self) -> Phase:
        return self.current_phase

    def get_current_day(self) -> Day:
        """Day of week; simulation day 0 is MONDAY."""
        days = int(np.floor(self.current_time.in_units(TimeUnit.DAY)))
        return Day(days % 7)

    def get_places_by_use(self, land_use: LandUse) -> List[Place]:
        return list(self._places_by_use.get(land_use, ()))

    def hospitalized_count(self) -> int:
        return self._admitted

    def compartment_counts(self, pathogen: Pathogen) -> Dict[Compartment, int]:
        """Persons per compartment for *pathogen*.

        Dead persons are counted only in the compartment that killed them;
        any other infection they carried is frozen and not counted.
        """
        counts = {c: 0 for c in Compartment}
        for host in self.hosts.values():
            compartment = host.get_compartment(pathogen)
            if host.is_alive or compartment in DEAD_COMPARTMENTS:
                counts[compartment] += 1
        return counts

    def rng_state(self) -> Dict[str, dict]:
        return rng_state_snapshot(self.rngs)

    def restore_rng_state(self, states: Dict[str, dict]) -> None:
        restore_rng_state(self.rngs, states)

    # ═══════════════════════════════════════════════════════════════════
    # SCENARIO CONSTRUCTION
    # ═══════════════════════════════════════════════════════════════════

    def add_pathogen(self, pathogen: Pathogen) -> Pathogen:
        if self.tick_count > 0:
            raise ConfigurationError("Pathogens cannot be added after the simulation starts")
        if pathogen.name in self.pathogens:
            raise ConfigurationError(f"Duplicate pathogen name '{pathogen.name}'")
        self.pathogens[pathogen.name] = pathogen
        return pathogen

    def add_place(
        self,
        name: str,
        land_use: LandUse,
        coordinate: Union[Coordinate, Tuple[float, ...]],
        size: float,
    ) -> Place:
        if size <= 0.0:
            raise ConfigurationError(f"Place '{name}' size must be > 0, got {size}")
        place = Place(
            uid=self._mint_uid(),
            name=name,
            coordinate=Coordinate(*coordinate),
            size=float(size),
            land_use=land_use,
        )
        self.places[place.uid] = place
        self._places_by_use.setdefault(land_use, []).append(place)
        return place

    def random_places(
        self,
        count: int,
        land_use: LandUse,
        min_size: float,
        max_size: float,
        extent: Tuple[float, float] = (1000.0, 1000.0),
    ) -> List[Place]:
        """Scatter *count* places uniformly over [0, width] × [0, height]."""
        if min_size <= 0.0 or min_size > max_size:
            raise ConfigurationError(
                f"Need 0 < min_size <= max_size, got {min_size}, {max_size}"
            )
        rng = self.rngs['setup']
        width, height = extent
        created = []
        for _ in range(count):
            n = len(self._places_by_use.get(land_use, ()))
            created.append(self.add_place(
                name=f"{land_use.name.title()} {n + 1}",
                land_use=land_use,
                coordinate=(float(rng.uniform(0.0, width)),
                            float(rng.uniform(0.0, height))),
                size=float(rng.uniform(min_size, max_size)),
            ))
        return created

    def add_person(
        self,
        demographic: Demographic,
        primary_place: Place,
        secondary_place: Optional[Place] = None,
        resilience: Optional[Rate] = None,
        name: Optional[str] = None,
    ) -> Person:
        """Create a Person located at its primary place."""
        uid = self._mint_uid()
        person = Person(
            uid=uid,
            name=name or f"Person {uid}",
            demographic=demographic,
            primary_place=primary_place,
            secondary_place=secondary_place,
            resilience=resilience if resilience is not None else Rate(0.0),
        )
        self.hosts[uid] = person
        self._move(person, primary_place)
        return person

    def populate(
        self,
        min_per_dwelling: int = 1,
        max_per_dwelling: int = 4,
        demographic_weights: Optional[Mapping[Demographic, float]] = None,
        resilience_range: Tuple[float, float] = (0.0, 0.0),
    ) -> List[Person]:
        """Fill every DWELLING with a household.

        Household size is uniform in [min, max]; demographics are drawn
        with *demographic_weights*; resilience is uniform in
        *resilience_range*. Each person's SECONDARY place comes from the
        behavior map, or stays unset if none is registered.
        """
        if min_per_dwelling < 0 or min_per_dwelling > max_per_dwelling:
            raise ConfigurationError(
                f"Need 0 <= min_per_dwelling <= max_per_dwelling, "
                f"got {min_per_dwelling}, {max_per_dwelling}"
            )
        lo, hi = resilience_range
        Rate(lo), Rate(hi)  # validate bounds
        if lo > hi:
            raise ConfigurationError(f"resilience_range min > max: {resilience_range}")

        weights = demographic_weights or {
            Demographic.CHILD: 0.25,
            Demographic.ADULT: 0.55,
            Demographic.SENIOR: 0.20,
        }
        demographics = list(weights)
        probs = np.array([weights[d] for d in demographics], dtype=np.float64)
        if probs.sum() <= 0.0 or np.any(probs < 0.0):
            raise ConfigurationError(f"Invalid demographic weights: {weights}")
        probs /= probs.sum()

        rng = self.rngs['setup']
        created = []
        for dwelling in self.get_places_by_use(LandUse.DWELLING):
            n = int(rng.integers(min_per_dwelling, max_per_dwelling + 1))
            for _ in range(n):
                demographic = demographics[int(rng.choice(len(demographics), p=probs))]
                person = self.add_person(
                    demographic=demographic,
                    primary_place=dwelling,
                    resilience=Rate(float(rng.uniform(lo, hi)) if hi > lo else lo),
                )
                if self.behavior.get_candidates(demographic, PlaceCategory.SECONDARY):
                    person.secondary_place = self.behavior.get_random_place(
                        person, PlaceCategory.SECONDARY, self._places_by_use, rng,
                    )
                created.append(person)
        return created

    # ═══════════════════════════════════════════════════════════════════
    # COMMANDS
    # ═══════════════════════════════════════════════════════════════════

    def patient_zero(self, pathogen: Union[Pathogen, str], count: int = 1) -> List[Person]:
        """Seed *count* random susceptible persons as infectious cases."""
        if isinstance(pathogen, str):
            pathogen = self.get_pathogen(pathogen)
        elif pathogen.name not in self.pathogens:
            self.add_pathogen(pathogen)
        elif self.pathogens[pathogen.name] is not pathogen:
            raise ConfigurationError(
                f"A different pathogen named '{pathogen.name}' is already registered"
            )
        candidates = [
            host for host in self.hosts.values()
            if host.is_alive and pathogen not in host.statuses
        ]
        if count <= 0 or not candidates:
            return []
        rng = self.rngs['setup']
        chosen = rng.choice(len(candidates), size=min(count, len(candidates)), replace=False)
        seeded = []
        for idx in sorted(int(i) for i in chosen):
            host = candidates[idx]
            effect = seed_infectious(host, pathogen, self.current_time,
                                     self.rngs['progression'])
            if effect is not None:
                self._try_admit(host, effect)
                seeded.append(host)
        return seeded

    def put_agent(self, vessel: Union[Person, Place], pathogen: Pathogen) -> Agent:
        """Create an Agent of *pathogen* inside *vessel*."""
        kind = vessel_kind_of(vessel)
        agent = Agent(
            uid=self._mint_uid(),
            pathogen=pathogen,
            life=pathogen.agent_life.copy(),
            vessel=vessel,
            vessel_kind=kind,
        )
        self.agents[agent.uid] = agent
        if kind is VesselKind.HOST:
            vessel.carried_agents[agent.uid] = agent
        elif kind is VesselKind.ENVIRONMENT:
            vessel.agents[agent.uid] = agent
        return agent

    def infect(self, host: Person, pathogen: Pathogen) -> Optional[PathogenEffect]:
        """Infect *host* now; idempotent."""
        return infect_host(host, pathogen, self.current_time, self.rngs['progression'])

    def all_to_primary(self) -> None:
        self._force_all(PlaceCategory.PRIMARY)

    def all_to_secondary(self) -> None:
        self._force_all(PlaceCategory.SECONDARY)

    def all_to_tertiary(self) -> None:
        self._force_all(PlaceCategory.TERTIARY)

    def _force_all(self, category: PlaceCategory) -> None:
        rng = self.rngs['behavior']
        for host in self._alive_hosts():
            host.diverted = False
            if category is PlaceCategory.TERTIARY:
                host.tertiary_place = None
            destination = self.behavior.resolve(host, category, self._places_by_use, rng)
            self._move(host, destination)

    def update(self, dt: Optional[Time] = None) -> TickStats:
        """Advance the simulation by one tick of length *dt*."""
        dt = dt if dt is not None else self.time_step
        _require_positive(dt, "tick duration")
        stats = TickStats()
        hours = dt.in_units(TimeUnit.HOUR)

        self.current_time = self.current_time + dt
        interval, self.current_phase = self.schedule.get_interval(self.current_time)

        self._move_hosts(dt, interval.duration, stats)
        self._transmit_from_hosts(hours, stats)
        self._transmit_from_environments(hours, stats)
        self._progress_compartments(stats)
        self._decay_agents(dt)

        self.tick_count += 1
        self.last_tick = stats
        return stats

    def run(self, n_ticks: int, results=None, recorder=None) -> None:
        """Call update() *n_ticks* times, feeding optional observers.

        Args:
            n_ticks: Number of ticks.
            results: Optional ResultSeries; record(model) after each tick.
            recorder: Optional SnapshotRecorder; capture(model) after each tick.
        """
        for _ in range(n_ticks):
            self.update()
            if results is not None:
                results.record(self)
            if recorder is not None:
                recorder.capture(self)

    # ═══════════════════════════════════════════════════════════════════
    # TICK PASSES
    # ═══════════════════════════════════════════════════════════════════

    def _alive_hosts(self) -> Iterable[Person]:
        return [host for host in self.hosts.values() if host.is_alive]

    def _move(self, host: Person, destination: Optional[Place]) -> bool:
        """Relocate *host*; the only writer of Place.occupants."""
        origin = host.current_environment
        if origin is destination:
            return False
        if origin is not None:
            origin.occupants.pop(host.uid, None)
        if destination is not None:
            destination.occupants[host.uid] = host
        host.current_environment = destination
        return True

    def _move_hosts(self, dt: Time, phase_duration: Time, stats: TickStats) -> None:
        rng = self.rngs['behavior']
        for host in self._alive_hosts():
            destination = self.behavior.apply(
                host, self.current_phase, dt, self._places_by_use, rng,
                phase_duration=phase_duration,
            )
            if self._move(host, destination):
                stats.trips += 1

    def _transmit_from_hosts(self, hours: float, stats: TickStats) -> None:
        rng = self.rngs['transmission']
        for host in self._alive_hosts():
            place = host.current_environment
            infectious = [
                pathogen for pathogen, effect in host.statuses.items()
                if effect.compartment is Compartment.INFECTIOUS
            ]
            for pathogen in infectious:
                if host.carried_agent_for(pathogen) is None:
                    self.put_agent(host, pathogen)
                if place is None:
                    continue
                if (place.agent_for(pathogen) is None
                        and pathogen.attack_rate.scaled(hours).roll(rng)):
                    self.put_agent(place, pathogen)

                factor = hours * place.get_density()
                for other in place.get_occupants():
                    if other is host or other.get_compartment(pathogen) is not Compartment.SUSCEPTIBLE:
                        continue
                    stats.encounters += 1
                    if exposure_rate(pathogen, other, factor).roll(rng):
                        if self.infect(other, pathogen) is not None:
                            stats.new_infections += 1

    def _transmit_from_environments(self, hours: float, stats: TickStats) -> None:
        rng = self.rngs['transmission']
        for agent in list(self.agents.values()):
            if agent.vessel_kind is not VesselKind.ENVIRONMENT or not agent.is_alive:
                continue
            place = agent.vessel
            pathogen = agent.pathogen
            factor = hours / place.size
            for occupant in place.get_occupants():
                if occupant.get_compartment(pathogen) is not Compartment.SUSCEPTIBLE:
                    continue
                if exposure_rate(pathogen, occupant, factor).roll(rng):
                    if self.infect(occupant, pathogen) is not None:
                        stats.new_infections += 1

    def _progress_compartments(self, stats: TickStats) -> None:
        rng = self.rngs['progression']
        for host in self._alive_hosts():
            for effect in list(host.statuses.values()):
                if effect.is_terminal:
                    continue
                if self._try_admit(host, effect):
                    stats.admissions += 1
                entered = progress_effect(effect, host.demographic, self.current_time, rng)
                if entered is None:
                    continue
                if entered is Compartment.INFECTIOUS:
                    if self._try_admit(host, effect):
                        stats.admissions += 1
                    continue
                self._discharge(host, effect)
                if entered is Compartment.RECOVERED:
                    stats.recoveries += 1
                else:
                    stats.deaths += 1
                    break
            if not host.is_alive:
                self._remove_dead(host)

    def _try_admit(self, host: Person, effect: PathogenEffect) -> bool:
        """Give *host* a bed if it needs one and capacity allows."""
        if (effect.compartment is not Compartment.INFECTIOUS
                or not effect.needs_hospital or effect.admitted):
            return False
        if self.hospital_beds is not None and self._admitted >= self.hospital_beds:
            return False
        effect.admitted = True
        self._admitted += 1
        if host.hospital_place is None:
            host.hospital_place = self._nearest_hospital(host)
        return True

    def _discharge(self, host: Person, effect: PathogenEffect) -> None:
        if effect.admitted:
            self._admitted -= 1
            if not host.is_admitted:
                host.hospital_place = None

    def _remove_dead(self, host: Person) -> None:
        """Dead persons leave the city; admitted beds for other infections free up."""
        for effect in host.statuses.values():
            if effect.admitted and effect.compartment is Compartment.INFECTIOUS:
                self._admitted -= 1
                effect.admitted = False
        host.hospital_place = None
        self._move(host, None)

    def _nearest_hospital(self, host: Person) -> Optional[Place]:
        hospitals = self._places_by_use.get(LandUse.HOSPITAL, ())
        if not hospitals:
            return None
        origin = host.primary_place.coordinate
        return min(hospitals, key=lambda p: (p.coordinate.distance_to(origin), p.uid))

    def _decay_agents(self, dt: Time) -> None:
        expired = []
        for agent in self.agents.values():
            agent.life = agent.life - dt
            if not agent.is_alive:
                expired.append(agent)
        for agent in expired:
            self._remove_agent(agent)

    def _remove_agent(self, agent: Agent) -> None:
        self.agents.pop(agent.uid, None)
        if agent.vessel_kind is VesselKind.HOST:
            agent.vessel.carried_agents.pop(agent.uid, None)
        elif agent.vessel_kind is VesselKind.ENVIRONMENT:
            agent.vessel.agents.pop(agent.uid, None)
        else:
            raise ValueError(f"Unhandled vessel kind {agent.vessel_kind!r}")


def _require_positive(duration: Time, label: str) -> None:
    if not duration.amount > 0.0:
        raise InvalidDurationError(f"{label} must be > 0, got {duration!r}")
