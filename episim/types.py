"""Core enumerations and constants for EpiSim.

This module is the SINGLE SOURCE OF TRUTH for:
  - Closed enums: TimeUnit, Phase, Day, LandUse, PlaceCategory,
    Demographic, Compartment, Symptom, PathogenType
  - Entity kind tags: EnvironmentKind, HostKind, VesselKind
  - Time unit conversion table (milliseconds as the common base)
  - Terminal compartment set and the default Phase → PlaceCategory map

All modules import these types from here. No other module defines enums.
"""

from enum import Enum, IntEnum
from typing import Dict


# ═══════════════════════════════════════════════════════════════════════
# TIME
# ═══════════════════════════════════════════════════════════════════════

class TimeUnit(Enum):
    """Units a Time amount can be expressed in."""
    MILLISECOND = 'MILLISECOND'
    SECOND      = 'SECOND'
    MINUTE      = 'MINUTE'
    HOUR        = 'HOUR'
    DAY         = 'DAY'
    WEEK        = 'WEEK'
    MONTH       = 'MONTH'
    YEAR        = 'YEAR'


# Fixed ratios between adjacent units
_SEC_PER_MIN = 60.0
_MIN_PER_HOUR = 60.0
_HOUR_PER_DAY = 24.0
_DAY_PER_WEEK = 7.0
_WEEK_PER_MONTH = 4.34524
_MONTH_PER_YEAR = 12.0

# Milliseconds per unit
MS_PER_UNIT: Dict[TimeUnit, float] = {
    TimeUnit.MILLISECOND: 1.0,
    TimeUnit.SECOND:      1000.0,
}
MS_PER_UNIT[TimeUnit.MINUTE] = MS_PER_UNIT[TimeUnit.SECOND] * _SEC_PER_MIN
MS_PER_UNIT[TimeUnit.HOUR] = MS_PER_UNIT[TimeUnit.MINUTE] * _MIN_PER_HOUR
MS_PER_UNIT[TimeUnit.DAY] = MS_PER_UNIT[TimeUnit.HOUR] * _HOUR_PER_DAY
MS_PER_UNIT[TimeUnit.WEEK] = MS_PER_UNIT[TimeUnit.DAY] * _DAY_PER_WEEK
MS_PER_UNIT[TimeUnit.MONTH] = MS_PER_UNIT[TimeUnit.WEEK] * _WEEK_PER_MONTH
MS_PER_UNIT[TimeUnit.YEAR] = MS_PER_UNIT[TimeUnit.MONTH] * _MONTH_PER_YEAR


class Phase(Enum):
    """Named period of the day that drives host movement."""
    SLEEP      = 'SLEEP'
    HOME       = 'HOME'
    GO_WORK    = 'GO_WORK'
    WORK       = 'WORK'
    WORK_LUNCH = 'WORK_LUNCH'
    LEISURE    = 'LEISURE'
    GO_HOME    = 'GO_HOME'


class Day(IntEnum):
    """Day of week. Simulation day 0 is a MONDAY."""
    MONDAY    = 0
    TUESDAY   = 1
    WEDNESDAY = 2
    THURSDAY  = 3
    FRIDAY    = 4
    SATURDAY  = 5
    SUNDAY    = 6


# ═══════════════════════════════════════════════════════════════════════
# CITY
# ═══════════════════════════════════════════════════════════════════════

class LandUse(Enum):
    DWELLING = 'DWELLING'
    OFFICE   = 'OFFICE'
    RETAIL   = 'RETAIL'
    SCHOOL   = 'SCHOOL'
    PUBLIC   = 'PUBLIC'
    HOSPITAL = 'HOSPITAL'


class PlaceCategory(Enum):
    """How a Place relates to a given Person.

    PRIMARY:   residence (a dwelling, often shared by a household)
    SECONDARY: where the person spends the working day (office, school)
    TERTIARY:  everything else (shopping, dining, leisure)
    """
    PRIMARY   = 'PRIMARY'
    SECONDARY = 'SECONDARY'
    TERTIARY  = 'TERTIARY'


class Demographic(Enum):
    """Host attributes that affect behavior and susceptibility."""
    CHILD  = 'CHILD'
    ADULT  = 'ADULT'
    SENIOR = 'SENIOR'


# ═══════════════════════════════════════════════════════════════════════
# DISEASE
# ═══════════════════════════════════════════════════════════════════════

class Compartment(IntEnum):
    """Host disease stage with respect to one pathogen.

    Values are ordered along the one-way walk
      SUSCEPTIBLE → INCUBATING → INFECTIOUS → {RECOVERED, DEAD_*}
    so that progression can be checked with ``>=``. The three terminal
    states share the highest rank conceptually; their relative order is
    arbitrary.
    """
    SUSCEPTIBLE    = 0
    INCUBATING     = 1
    INFECTIOUS     = 2
    RECOVERED      = 3
    DEAD_TREATED   = 4
    DEAD_UNTREATED = 5


TERMINAL_COMPARTMENTS = frozenset({
    Compartment.RECOVERED,
    Compartment.DEAD_TREATED,
    Compartment.DEAD_UNTREATED,
})

DEAD_COMPARTMENTS = frozenset({
    Compartment.DEAD_TREATED,
    Compartment.DEAD_UNTREATED,
})


class Symptom(Enum):
    FEVER               = 'FEVER'
    COUGH               = 'COUGH'
    SHORTNESS_OF_BREATH = 'SHORTNESS_OF_BREATH'
    FATIGUE             = 'FATIGUE'
    MUSCLE_ACHE         = 'MUSCLE_ACHE'
    DIARRHEA            = 'DIARRHEA'


class PathogenType(Enum):
    RHINOVIRUS  = 'RHINOVIRUS'
    CORONAVIRUS = 'CORONAVIRUS'
    INFLUENZA   = 'INFLUENZA'


# ═══════════════════════════════════════════════════════════════════════
# ENTITY KIND TAGS
# ═══════════════════════════════════════════════════════════════════════

class EnvironmentKind(Enum):
    PLACE = 'PLACE'


class HostKind(Enum):
    PERSON = 'PERSON'


class VesselKind(Enum):
    """What an Agent currently sits in."""
    HOST        = 'HOST'
    ENVIRONMENT = 'ENVIRONMENT'


# ═══════════════════════════════════════════════════════════════════════
# BEHAVIOR DEFAULTS
# ═══════════════════════════════════════════════════════════════════════

DEFAULT_PHASE_CATEGORY: Dict[Phase, PlaceCategory] = {
    Phase.SLEEP:      PlaceCategory.PRIMARY,
    Phase.HOME:       PlaceCategory.PRIMARY,
    Phase.GO_WORK:    PlaceCategory.SECONDARY,
    Phase.WORK:       PlaceCategory.SECONDARY,
    Phase.WORK_LUNCH: PlaceCategory.TERTIARY,
    Phase.LEISURE:    PlaceCategory.TERTIARY,
    Phase.GO_HOME:    PlaceCategory.PRIMARY,
}

# Bounded rejection search before falling back to the primary place
MAX_PLACE_ATTEMPTS = 1000
