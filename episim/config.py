"""Configuration system for EpiSim.

Hierarchical YAML configuration with deep-merge support:
  base.yaml → scenario override → programmatic overrides

Each top-level YAML key maps to one dataclass section (unknown keys are
ignored); list-valued keys (schedule, pathogens, seeding) become lists of
small dataclasses. validate_config() fails fast with ConfigurationError,
so a config that loads cleanly builds a model that runs without errors.

Enum-valued fields are written in YAML by name (case-insensitive), e.g.
``land_use: dwelling`` or ``unit: HOUR``.
"""

from __future__ import annotations

import copy
import dataclasses
import warnings
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple, Union

import yaml

from episim.behavior import BehaviorMap, default_behavior_map
from episim.errors import ConfigurationError, UnitMismatchError
from episim.model import CityModel
from episim.pathogen import Pathogen
from episim.results import ResultSeries
from episim.schedule import Schedule, default_schedule
from episim.temporal import Rate, Time, TimeDistribution, as_unit
from episim.types import (
    Demographic,
    LandUse,
    PathogenType,
    Phase,
    PlaceCategory,
    Symptom,
)


# ═══════════════════════════════════════════════════════════════════════
# CONFIGURATION DATACLASSES
# ═══════════════════════════════════════════════════════════════════════

@dataclass
class SimulationSection:
    """Clock, run length and global controls."""
    seed: int = 42
    time_step: float = 1.0
    time_step_unit: str = 'HOUR'
    n_ticks: int = 24 * 60            # 60 days at hourly steps
    hospital_beds: Optional[int] = 10  # None = unlimited
    max_place_attempts: int = 1000


@dataclass
class PhaseEntry:
    """One schedule phase: ``{phase: WORK, duration: 4, unit: HOUR}``."""
    phase: str
    duration: float
    unit: str = 'HOUR'


@dataclass
class BehaviorSection:
    """Destination policy.

    An empty ``destinations`` list keeps the built-in destinations of
    default_behavior_map(); a non-empty one replaces them. Rate maps
    left as None keep the built-in anomaly/recovery rates.
    """
    destinations: List[Dict[str, Any]] = field(default_factory=list)
    phase_categories: Dict[str, str] = field(default_factory=dict)
    anomaly_rates: Optional[Dict[str, float]] = None
    recovery_rates: Optional[Dict[str, float]] = None


@dataclass
class PathogenSpec:
    """Disease parameters for one pathogen.

    ``by_demographic`` maps a demographic name to overrides of
    mortality_treated, mortality_untreated, hospitalization_rate and
    symptoms for that group.
    """
    name: str = 'influenza'
    type: str = 'INFLUENZA'
    attack_rate: float = 0.3
    agent_life: float = 1.0
    agent_life_unit: str = 'DAY'
    incubation_mean: float = 2.0
    incubation_stddev: float = 0.5
    infectious_mean: float = 5.0
    infectious_stddev: float = 1.0
    duration_unit: str = 'DAY'
    mortality_treated: float = 0.001
    mortality_untreated: float = 0.01
    hospitalization_rate: float = 0.02
    symptoms: Dict[str, float] = field(default_factory=lambda: {
        'FEVER': 0.6, 'COUGH': 0.5, 'FATIGUE': 0.4, 'MUSCLE_ACHE': 0.3,
    })
    by_demographic: Dict[str, Dict[str, Any]] = field(default_factory=lambda: {
        'SENIOR': {
            'mortality_treated': 0.01,
            'mortality_untreated': 0.08,
            'hospitalization_rate': 0.15,
        },
        'CHILD': {'hospitalization_rate': 0.005},
    })


@dataclass
class PopulateSection:
    """Household generation for every DWELLING."""
    hosts_per_dwelling: Tuple[int, int] = (1, 4)
    demographic_weights: Dict[str, float] = field(default_factory=lambda: {
        'CHILD': 0.25, 'ADULT': 0.55, 'SENIOR': 0.20,
    })
    resilience_range: Tuple[float, float] = (0.0, 0.3)


@dataclass
class CitySection:
    """City layout: explicit places, random place blocks and population."""
    extent: Tuple[float, float] = (1000.0, 1000.0)
    places: List[Dict[str, Any]] = field(default_factory=list)
    random_places: List[Dict[str, Any]] = field(default_factory=lambda: [
        {'land_use': 'DWELLING', 'count': 120, 'min_size': 50.0, 'max_size': 150.0},
        {'land_use': 'OFFICE', 'count': 8, 'min_size': 400.0, 'max_size': 1500.0},
        {'land_use': 'SCHOOL', 'count': 4, 'min_size': 500.0, 'max_size': 1200.0},
        {'land_use': 'RETAIL', 'count': 12, 'min_size': 100.0, 'max_size': 600.0},
        {'land_use': 'PUBLIC', 'count': 6, 'min_size': 200.0, 'max_size': 1000.0},
        {'land_use': 'HOSPITAL', 'count': 1, 'min_size': 1000.0, 'max_size': 2000.0},
    ])
    populate: PopulateSection = field(default_factory=PopulateSection)


@dataclass
class SeedEntry:
    """Patient-zero seeding: ``{pathogen: influenza, count: 3}``."""
    pathogen: str
    count: int = 1


@dataclass
class EpiSimConfig:
    """Complete simulation configuration.

    Load from YAML via `load_config()`. Fields map 1:1 to YAML top-level keys.
    """
    simulation: SimulationSection = field(default_factory=SimulationSection)
    schedule: List[PhaseEntry] = field(default_factory=list)   # empty = default day
    behavior: BehaviorSection = field(default_factory=BehaviorSection)
    pathogens: List[PathogenSpec] = field(default_factory=lambda: [PathogenSpec()])
    city: CitySection = field(default_factory=CitySection)
    seeding: List[SeedEntry] = field(default_factory=lambda: [
        SeedEntry(pathogen='influenza', count=3),
    ])


# ═══════════════════════════════════════════════════════════════════════
# YAML LOADING & MERGING
# ═══════════════════════════════════════════════════════════════════════

def deep_merge(base: Dict, override: Dict) -> Dict:
    """Recursively merge override into base. Modifies base in place.

    - Dict values are merged recursively
    - Non-dict values (including lists) are replaced
    - Keys in override but not base are added

    Args:
        base: Base dictionary (modified in place).
        override: Override dictionary.

    Returns:
        The merged base dictionary.
    """
    for key, value in override.items():
        if (
            key in base
            and isinstance(base[key], dict)
            and isinstance(value, dict)
        ):
            deep_merge(base[key], value)
        else:
            base[key] = value
    return base


def _dict_to_section(section_cls, data: Dict) -> Any:
    """Convert a dict to a dataclass, ignoring unknown keys."""
    valid_fields = {f.name for f in dataclasses.fields(section_cls)}
    filtered = {k: v for k, v in data.items() if k in valid_fields}
    try:
        return section_cls(**filtered)
    except TypeError as exc:
        raise ConfigurationError(f"{section_cls.__name__}: {exc}") from None


def _list_of(entry_cls, data: Any, key: str) -> List[Any]:
    if data is None:
        return []
    if not isinstance(data, list):
        raise ConfigurationError(f"'{key}' must be a list, got {type(data).__name__}")
    entries = []
    for i, item in enumerate(data):
        if not isinstance(item, dict):
            raise ConfigurationError(f"{key}[{i}] must be a mapping, got {item!r}")
        entries.append(_dict_to_section(entry_cls, item))
    return entries


def _yaml_to_config(data: Dict) -> EpiSimConfig:
    """Convert a merged YAML dict to an EpiSimConfig."""
    config = EpiSimConfig()
    if isinstance(data.get('simulation'), dict):
        config.simulation = _dict_to_section(SimulationSection, data['simulation'])
    if isinstance(data.get('behavior'), dict):
        config.behavior = _dict_to_section(BehaviorSection, data['behavior'])
    if isinstance(data.get('city'), dict):
        city = dict(data['city'])  # don't mutate original
        populate = city.pop('populate', None)
        config.city = _dict_to_section(CitySection, city)
        if isinstance(populate, dict):
            config.city.populate = _dict_to_section(PopulateSection, populate)
        config.city.extent = tuple(config.city.extent)
    pop = config.city.populate
    pop.hosts_per_dwelling = tuple(pop.hosts_per_dwelling)
    pop.resilience_range = tuple(pop.resilience_range)

    if 'schedule' in data:
        config.schedule = _list_of(PhaseEntry, data['schedule'], 'schedule')
    if 'pathogens' in data:
        config.pathogens = _list_of(PathogenSpec, data['pathogens'], 'pathogens')
    if 'seeding' in data:
        config.seeding = _list_of(SeedEntry, data['seeding'], 'seeding')
    return config


# ═══════════════════════════════════════════════════════════════════════
# VALIDATION
# ═══════════════════════════════════════════════════════════════════════

def _enum(enum_cls, name: Any, where: str):
    """Look up an enum member by (case-insensitive) name."""
    try:
        return enum_cls[str(name).strip().upper()]
    except KeyError:
        valid = [m.name for m in enum_cls]
        raise ConfigurationError(
            f"{where}: unknown {enum_cls.__name__} '{name}', expected one of {valid}"
        ) from None


def _unit(name: Any, where: str):
    try:
        return as_unit(name)
    except UnitMismatchError as exc:
        raise ConfigurationError(f"{where}: {exc}") from None


def _rate(value: Any, where: str) -> Rate:
    try:
        return Rate(float(value))
    except (TypeError, ValueError) as exc:
        raise ConfigurationError(f"{where}: {exc}") from None


def _number(value: Any, where: str) -> float:
    """A plain int/float config value; strings like "4h" are rejected."""
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ConfigurationError(f"{where} must be a number, got {value!r}")
    return float(value)


def _mapping(value: Any, where: str) -> Dict:
    if not isinstance(value, dict):
        raise ConfigurationError(f"{where} must be a mapping, got {value!r}")
    return value


def _range(pair: Any, where: str) -> Tuple[float, float]:
    if len(pair) != 2 or _number(pair[0], where) > _number(pair[1], where):
        raise ConfigurationError(f"{where} must be (min, max) with min <= max, got {pair}")
    return pair[0], pair[1]


def validate_config(config: EpiSimConfig) -> None:
    """Validate configuration constraints. Raises ConfigurationError on failure.

    Checks:
      - Enum names (phases, land uses, demographics, symptoms, units)
      - Positive time step, phase durations and place sizes
      - Rates in [0, 1]
      - Non-negative seed and bed count; ordered (min, max) ranges
      - Seeding refers to configured pathogens
    """
    sim = config.simulation
    if _number(sim.seed, 'simulation.seed') < 0:
        raise ConfigurationError(f"simulation.seed must be >= 0, got {sim.seed}")
    if _number(sim.time_step, 'simulation.time_step') <= 0:
        raise ConfigurationError(f"simulation.time_step must be > 0, got {sim.time_step}")
    _unit(sim.time_step_unit, 'simulation.time_step_unit')
    if _number(sim.n_ticks, 'simulation.n_ticks') < 0:
        raise ConfigurationError(f"simulation.n_ticks must be >= 0, got {sim.n_ticks}")
    if (sim.hospital_beds is not None
            and _number(sim.hospital_beds, 'simulation.hospital_beds') < 0):
        raise ConfigurationError(
            f"simulation.hospital_beds must be >= 0 or null, got {sim.hospital_beds}"
        )
    if _number(sim.max_place_attempts, 'simulation.max_place_attempts') < 1:
        raise ConfigurationError(
            f"simulation.max_place_attempts must be >= 1, got {sim.max_place_attempts}"
        )

    for i, entry in enumerate(config.schedule):
        _enum(Phase, entry.phase, f"schedule[{i}].phase")
        _unit(entry.unit, f"schedule[{i}].unit")
        if _number(entry.duration, f"schedule[{i}].duration") <= 0:
            raise ConfigurationError(
                f"schedule[{i}].duration must be > 0, got {entry.duration}"
            )

    beh = config.behavior
    for i, dest in enumerate(beh.destinations):
        where = f"behavior.destinations[{i}]"
        for key in ('demographic', 'category', 'land_use', 'max_distance'):
            if key not in dest:
                raise ConfigurationError(f"{where} is missing '{key}'")
        _enum(Demographic, dest['demographic'], where)
        _enum(PlaceCategory, dest['category'], where)
        _enum(LandUse, dest['land_use'], where)
        if _number(dest['max_distance'], f"{where}.max_distance") < 0:
            raise ConfigurationError(f"{where}.max_distance must be >= 0")
    phase_categories = _mapping(beh.phase_categories, 'behavior.phase_categories')
    for phase, category in phase_categories.items():
        _enum(Phase, phase, 'behavior.phase_categories')
        _enum(PlaceCategory, category, f"behavior.phase_categories[{phase}]")
    for label, rates in (('anomaly_rates', beh.anomaly_rates),
                         ('recovery_rates', beh.recovery_rates)):
        for phase, value in _mapping(rates or {}, f"behavior.{label}").items():
            _enum(Phase, phase, f"behavior.{label}")
            _rate(value, f"behavior.{label}[{phase}]")

    names = set()
    for i, spec in enumerate(config.pathogens):
        where = f"pathogens[{i}]"
        if not spec.name:
            raise ConfigurationError(f"{where}.name must be non-empty")
        if spec.name in names:
            raise ConfigurationError(f"{where}: duplicate pathogen name '{spec.name}'")
        names.add(spec.name)
        _enum(PathogenType, spec.type, f"{where}.type")
        _unit(spec.agent_life_unit, f"{where}.agent_life_unit")
        _unit(spec.duration_unit, f"{where}.duration_unit")
        if _number(spec.agent_life, f"{where}.agent_life") <= 0:
            raise ConfigurationError(f"{where}.agent_life must be > 0, got {spec.agent_life}")
        for key in ('incubation_mean', 'incubation_stddev',
                    'infectious_mean', 'infectious_stddev'):
            if _number(getattr(spec, key), f"{where}.{key}") < 0:
                raise ConfigurationError(f"{where}.{key} must be >= 0")
        for key in ('attack_rate', 'mortality_treated', 'mortality_untreated',
                    'hospitalization_rate'):
            _rate(getattr(spec, key), f"{where}.{key}")
        for symptom, value in _mapping(spec.symptoms, f"{where}.symptoms").items():
            _enum(Symptom, symptom, f"{where}.symptoms")
            _rate(value, f"{where}.symptoms[{symptom}]")
        by_demographic = _mapping(spec.by_demographic, f"{where}.by_demographic")
        for demo, overrides in by_demographic.items():
            _enum(Demographic, demo, f"{where}.by_demographic")
            for key, value in _mapping(overrides, f"{where}.by_demographic[{demo}]").items():
                if key == 'symptoms':
                    value = _mapping(value, f"{where}.by_demographic[{demo}].symptoms")
                    for symptom, v in value.items():
                        _enum(Symptom, symptom, f"{where}.by_demographic[{demo}].symptoms")
                        _rate(v, f"{where}.by_demographic[{demo}].symptoms[{symptom}]")
                elif key in ('mortality_treated', 'mortality_untreated',
                             'hospitalization_rate'):
                    _rate(value, f"{where}.by_demographic[{demo}].{key}")
                else:
                    raise ConfigurationError(
                        f"{where}.by_demographic[{demo}]: unknown override '{key}'"
                    )

    city = config.city
    if len(city.extent) != 2 or min(city.extent) <= 0:
        raise ConfigurationError(f"city.extent must be (width, height) > 0, got {city.extent}")
    for i, place in enumerate(city.places):
        where = f"city.places[{i}]"
        for key in ('land_use', 'x', 'y', 'size'):
            if key not in place:
                raise ConfigurationError(f"{where} is missing '{key}'")
        _enum(LandUse, place['land_use'], where)
        if _number(place['size'], f"{where}.size") <= 0:
            raise ConfigurationError(f"{where}.size must be > 0, got {place['size']}")
    for i, block in enumerate(city.random_places):
        where = f"city.random_places[{i}]"
        _enum(LandUse, block.get('land_use'), where)
        if _number(block.get('count', 0), f"{where}.count") < 0:
            raise ConfigurationError(f"{where}.count must be >= 0")
        lo, hi = _range((block.get('min_size', 1.0), block.get('max_size', 1.0)),
                        f"{where} size range")
        if lo <= 0:
            raise ConfigurationError(f"{where}.min_size must be > 0, got {lo}")
    pop = city.populate
    lo, _ = _range(pop.hosts_per_dwelling, 'city.populate.hosts_per_dwelling')
    if lo < 0:
        raise ConfigurationError("city.populate.hosts_per_dwelling min must be >= 0")
    r_lo, r_hi = _range(pop.resilience_range, 'city.populate.resilience_range')
    _rate(r_lo, 'city.populate.resilience_range')
    _rate(r_hi, 'city.populate.resilience_range')
    if not pop.demographic_weights:
        raise ConfigurationError("city.populate.demographic_weights must be non-empty")
    weights = _mapping(pop.demographic_weights, 'city.populate.demographic_weights')
    for demo, weight in weights.items():
        _enum(Demographic, demo, 'city.populate.demographic_weights')
        if _number(weight, f"city.populate.demographic_weights[{demo}]") < 0:
            raise ConfigurationError(
                f"city.populate.demographic_weights[{demo}] must be >= 0, got {weight}"
            )
    if sum(pop.demographic_weights.values()) <= 0:
        raise ConfigurationError("city.populate.demographic_weights must not all be zero")

    for i, seed in enumerate(config.seeding):
        if seed.pathogen not in names:
            raise ConfigurationError(
                f"seeding[{i}]: unknown pathogen '{seed.pathogen}', "
                f"configured: {sorted(names)}"
            )
        if _number(seed.count, f"seeding[{i}].count") < 0:
            raise ConfigurationError(f"seeding[{i}].count must be >= 0, got {seed.count}")


def load_config(
    base_path: Union[str, Path],
    scenario_path: Optional[Union[str, Path]] = None,
    overrides: Optional[Dict] = None,
) -> EpiSimConfig:
    """Load and merge hierarchical YAML configuration.

    Merge order: base → scenario → overrides.
    Each layer overrides only the fields it specifies.

    Args:
        base_path: Path to base configuration YAML.
        scenario_path: Optional scenario override YAML. A missing file is
            skipped with a UserWarning.
        overrides: Optional dict of programmatic overrides (e.g. a sweep).

    Returns:
        Validated EpiSimConfig.

    Raises:
        FileNotFoundError: If base_path doesn't exist.
        ConfigurationError: If validation fails.
    """
    base_path = Path(base_path)
    if not base_path.exists():
        raise FileNotFoundError(f"Config file not found: {base_path}")

    with open(base_path) as f:
        config_dict = yaml.safe_load(f) or {}

    if scenario_path is not None:
        scenario_path = Path(scenario_path)
        if scenario_path.exists():
            with open(scenario_path) as f:
                scenario = yaml.safe_load(f) or {}
            deep_merge(config_dict, scenario)
        else:
            warnings.warn(
                f"Scenario file '{scenario_path}' not found; using base config only",
                UserWarning,
                stacklevel=2,
            )

    if overrides is not None:
        deep_merge(config_dict, copy.deepcopy(overrides))

    config = _yaml_to_config(config_dict)
    validate_config(config)
    return config


def default_config() -> EpiSimConfig:
    """Return an EpiSimConfig with all default values."""
    config = EpiSimConfig()
    validate_config(config)
    return config


# ═══════════════════════════════════════════════════════════════════════
# MODEL CONSTRUCTION
# ═══════════════════════════════════════════════════════════════════════

def build_schedule(entries: List[PhaseEntry]) -> Schedule:
    if not entries:
        return default_schedule()
    schedule = Schedule()
    for entry in entries:
        schedule.add_phase(_enum(Phase, entry.phase, 'schedule'),
                           Time(entry.duration, _unit(entry.unit, 'schedule')))
    return schedule


def build_behavior(section: BehaviorSection, max_attempts: int = 1000) -> BehaviorMap:
    base = default_behavior_map()
    anomaly = base.anomaly_rates
    recovery = base.recovery_rates
    if section.anomaly_rates is not None:
        anomaly = {_enum(Phase, k, 'anomaly'): Rate(float(v))
                   for k, v in section.anomaly_rates.items()}
    if section.recovery_rates is not None:
        recovery = {_enum(Phase, k, 'recovery'): Rate(float(v))
                    for k, v in section.recovery_rates.items()}
    behavior = BehaviorMap(
        phase_categories={
            _enum(Phase, k, 'phase_categories'): _enum(PlaceCategory, v, 'phase_categories')
            for k, v in section.phase_categories.items()
        },
        anomaly_rates=anomaly,
        recovery_rates=recovery,
        max_attempts=max_attempts,
    )
    if section.destinations:
        for dest in section.destinations:
            behavior.set_map(
                _enum(Demographic, dest['demographic'], 'destinations'),
                _enum(PlaceCategory, dest['category'], 'destinations'),
                _enum(LandUse, dest['land_use'], 'destinations'),
                float(dest['max_distance']),
            )
    else:
        for demographic in Demographic:
            for category in PlaceCategory:
                for land_use, max_distance in base.get_candidates(demographic, category):
                    behavior.set_map(demographic, category, land_use, max_distance)
    return behavior


def build_pathogen(spec: PathogenSpec) -> Pathogen:
    unit = _unit(spec.duration_unit, spec.name)
    overrides = {
        _enum(Demographic, demo, spec.name): values
        for demo, values in spec.by_demographic.items()
    }

    def by(key):
        return {demo: Rate(float(values[key]))
                for demo, values in overrides.items() if key in values}

    return Pathogen(
        name=spec.name,
        type=_enum(PathogenType, spec.type, spec.name),
        attack_rate=Rate(float(spec.attack_rate)),
        agent_life=Time(spec.agent_life, _unit(spec.agent_life_unit, spec.name)),
        incubation=TimeDistribution(Time(spec.incubation_mean, unit),
                                    Time(spec.incubation_stddev, unit)),
        infectious=TimeDistribution(Time(spec.infectious_mean, unit),
                                    Time(spec.infectious_stddev, unit)),
        mortality_treated=Rate(float(spec.mortality_treated)),
        mortality_untreated=Rate(float(spec.mortality_untreated)),
        hospitalization_rate=Rate(float(spec.hospitalization_rate)),
        symptom_expression={_enum(Symptom, k, spec.name): Rate(float(v))
                            for k, v in spec.symptoms.items()},
        mortality_treated_by=by('mortality_treated'),
        mortality_untreated_by=by('mortality_untreated'),
        hospitalization_by=by('hospitalization_rate'),
        symptom_expression_by={
            demo: {_enum(Symptom, k, spec.name): Rate(float(v))
                   for k, v in values['symptoms'].items()}
            for demo, values in overrides.items() if 'symptoms' in values
        },
    )


def build_model(config: EpiSimConfig) -> CityModel:
    """Construct a populated, seeded CityModel from *config*."""
    sim = config.simulation
    model = CityModel(
        time_step=Time(sim.time_step, _unit(sim.time_step_unit, 'simulation')),
        schedule=build_schedule(config.schedule),
        behavior=build_behavior(config.behavior, sim.max_place_attempts),
        seed=sim.seed,
        hospital_beds=sim.hospital_beds,
    )
    for spec in config.pathogens:
        model.add_pathogen(build_pathogen(spec))

    city = config.city
    for i, place in enumerate(city.places):
        land_use = _enum(LandUse, place['land_use'], 'city.places')
        model.add_place(
            name=place.get('name', f"{land_use.name.title()} {i + 1}"),
            land_use=land_use,
            coordinate=(float(place['x']), float(place['y'])),
            size=float(place['size']),
        )
    for block in city.random_places:
        model.random_places(
            count=int(block.get('count', 0)),
            land_use=_enum(LandUse, block['land_use'], 'city.random_places'),
            min_size=float(block.get('min_size', 1.0)),
            max_size=float(block.get('max_size', 1.0)),
            extent=tuple(city.extent),
        )
    pop = city.populate
    model.populate(
        min_per_dwelling=int(pop.hosts_per_dwelling[0]),
        max_per_dwelling=int(pop.hosts_per_dwelling[1]),
        demographic_weights={
            _enum(Demographic, k, 'demographic_weights'): float(v)
            for k, v in pop.demographic_weights.items()
        },
        resilience_range=(float(pop.resilience_range[0]), float(pop.resilience_range[1])),
    )
    for seed in config.seeding:
        model.patient_zero(seed.pathogen, seed.count)
    return model


def run_simulation(config: EpiSimConfig, n_ticks: Optional[int] = None, recorder=None):
    """Build a model from *config* and run it.

    Args:
        config: Validated configuration.
        n_ticks: Number of ticks (default: config.simulation.n_ticks).
        recorder: Optional SnapshotRecorder.

    Returns:
        (model, ResultSeries) after the run.
    """
    model = build_model(config)
    results = ResultSeries()
    model.run(config.simulation.n_ticks if n_ticks is None else n_ticks,
              results=results, recorder=recorder)
    return model, results
