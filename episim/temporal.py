"""Unit-aware time arithmetic and the two stochastic primitives.

Time arithmetic reconciles units before operating: the right-hand
operand is converted to the left operand's unit, and the result is a new
Time in the left operand's unit. Conversion goes through milliseconds
using the fixed ratios in types.MS_PER_UNIT.

Every probabilistic decision in the engine is a composition of
  - Rate.roll(rng):              Bernoulli draw with p = value
  - TimeDistribution.sample(rng): Box–Muller Gaussian duration, clamped ≥ 0
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Union

import numpy as np

from episim.errors import ConfigurationError, DivideByZeroError, UnitMismatchError
from episim.types import MS_PER_UNIT, TimeUnit

Number = Union[int, float]

# Short names accepted wherever a unit is parsed from text (YAML, CLI)
_UNIT_ALIASES = {
    'MS': TimeUnit.MILLISECOND,
    'SEC': TimeUnit.SECOND,
    'MIN': TimeUnit.MINUTE,
}


def as_unit(unit) -> TimeUnit:
    """Coerce a TimeUnit or its (case-insensitive) name to a TimeUnit.

    Raises:
        UnitMismatchError: If the unit is not in the conversion table.
    """
    if isinstance(unit, TimeUnit):
        if unit not in MS_PER_UNIT:
            raise UnitMismatchError(f"No conversion ratio for unit {unit!r}")
        return unit
    if isinstance(unit, str):
        key = unit.strip().upper()
        if key in _UNIT_ALIASES:
            return _UNIT_ALIASES[key]
        try:
            return TimeUnit[key]
        except KeyError:
            pass
    raise UnitMismatchError(f"Unknown time unit {unit!r}")


# ═══════════════════════════════════════════════════════════════════════
# TIME
# ═══════════════════════════════════════════════════════════════════════

class Time:
    """A scalar amount of time in a given unit.

    Amounts may be negative as an intermediate value (e.g. "incubation
    ago"); durations used for scheduling must be positive.
    """

    __slots__ = ('amount', 'unit')

    def __init__(self, amount: Number, unit=TimeUnit.HOUR):
        self.amount = float(amount)
        self.unit = as_unit(unit)

    # ── Conversion ───────────────────────────────────────────────────

    def to_ms(self) -> float:
        return self.amount * MS_PER_UNIT[self.unit]

    def convert(self, unit) -> 'Time':
        """Return the same duration expressed in another unit."""
        unit = as_unit(unit)
        if unit is self.unit:
            return Time(self.amount, unit)
        return Time(self.to_ms() / MS_PER_UNIT[unit], unit)

    def in_units(self, unit) -> float:
        """Amount of this time expressed in *unit*."""
        return self.convert(unit).amount

    def _rhs_amount(self, other: 'Time') -> float:
        return other.convert(self.unit).amount

    # ── Arithmetic (always returns a new Time in self.unit) ─────────

    def __add__(self, other):
        if not isinstance(other, Time):
            return NotImplemented
        return Time(self.amount + self._rhs_amount(other), self.unit)

    def __sub__(self, other):
        if not isinstance(other, Time):
            return NotImplemented
        return Time(self.amount - self._rhs_amount(other), self.unit)

    def __mul__(self, other):
        if isinstance(other, Time):
            return Time(self.amount * self._rhs_amount(other), self.unit)
        if isinstance(other, (int, float, np.integer, np.floating)):
            return Time(self.amount * float(other), self.unit)
        return NotImplemented

    def __rmul__(self, other):
        if isinstance(other, (int, float, np.integer, np.floating)):
            return Time(self.amount * float(other), self.unit)
        return NotImplemented

    def __truediv__(self, other):
        if isinstance(other, Time):
            divisor = self._rhs_amount(other)
        elif isinstance(other, (int, float, np.integer, np.floating)):
            divisor = float(other)
        else:
            return NotImplemented
        if divisor == 0.0:
            raise DivideByZeroError(f"Cannot divide {self!r} by zero-amount {other!r}")
        return Time(self.amount / divisor, self.unit)

    def __mod__(self, other):
        if not isinstance(other, Time):
            return NotImplemented
        divisor = self._rhs_amount(other)
        if divisor == 0.0:
            raise DivideByZeroError(f"Cannot take {self!r} modulo zero-amount {other!r}")
        return Time(self.amount % divisor, self.unit)

    def __neg__(self):
        return Time(-self.amount, self.unit)

    def ratio(self, other: 'Time') -> float:
        """Dimensionless self / other."""
        return (self / other).amount

    # ── Comparison (unit-independent) ────────────────────────────────

    def __eq__(self, other):
        if not isinstance(other, Time):
            return NotImplemented
        return self.to_ms() == other.to_ms()

    def __hash__(self):
        return hash(self.to_ms())

    def __lt__(self, other):
        if not isinstance(other, Time):
            return NotImplemented
        return self.to_ms() < other.to_ms()

    def __le__(self, other):
        if not isinstance(other, Time):
            return NotImplemented
        return self.to_ms() <= other.to_ms()

    def __gt__(self, other):
        if not isinstance(other, Time):
            return NotImplemented
        return self.to_ms() > other.to_ms()

    def __ge__(self, other):
        if not isinstance(other, Time):
            return NotImplemented
        return self.to_ms() >= other.to_ms()

    def isclose(self, other: 'Time', rel_tol: float = 1e-9, abs_tol: float = 1e-9) -> bool:
        return math.isclose(self.amount, self._rhs_amount(other),
                            rel_tol=rel_tol, abs_tol=abs_tol)

    def copy(self) -> 'Time':
        return Time(self.amount, self.unit)

    def __repr__(self):
        return f"Time({self.amount:g}, {self.unit.name})"


@dataclass(frozen=True)
class TimeInterval:
    """Half-open interval [start, end)."""
    start: Time
    end: Time

    @property
    def duration(self) -> Time:
        """end − start, in the unit of start."""
        return self.end - self.start

    def contains(self, t: Time) -> bool:
        return self.start <= t < self.end


# ═══════════════════════════════════════════════════════════════════════
# STOCHASTIC PRIMITIVES
# ═══════════════════════════════════════════════════════════════════════

def _standard_normal(rng: np.random.Generator) -> float:
    """One standard-normal variate via the Box–Muller transform."""
    u1 = 1.0 - rng.random()   # (0, 1]; avoids log(0)
    u2 = rng.random()
    return math.sqrt(-2.0 * math.log(u1)) * math.cos(2.0 * math.pi * u2)


@dataclass(frozen=True)
class TimeDistribution:
    """Gaussian distribution of durations.

    sample() = mean + stddev × z, with z ~ N(0, 1) drawn by Box–Muller,
    clamped to zero so the result is usable as a duration. The result is
    in the unit of *mean*.
    """
    mean: Time
    stddev: Time

    def sample(self, rng: np.random.Generator) -> Time:
        sd = self.stddev.in_units(self.mean.unit)
        if sd == 0.0:
            return Time(max(0.0, self.mean.amount), self.mean.unit)
        value = self.mean.amount + sd * _standard_normal(rng)
        return Time(max(0.0, value), self.mean.unit)


@dataclass(frozen=True)
class Rate:
    """A probability in [0, 1].

    Construction with a value outside [0, 1] (or NaN) is rejected with
    ConfigurationError. Derived per-tick probabilities that may exceed 1
    (rate × hours × density) go through ``Rate.clamped``.
    """
    value: float = 0.0

    def __post_init__(self):
        v = float(self.value)
        if not (0.0 <= v <= 1.0):
            raise ConfigurationError(f"Rate must be in [0, 1], got {self.value!r}")
        object.__setattr__(self, 'value', v)

    @classmethod
    def clamped(cls, p: float) -> 'Rate':
        if p != p:  # NaN
            return cls(0.0)
        return cls(min(1.0, max(0.0, float(p))))

    def scaled(self, factor: float) -> 'Rate':
        return Rate.clamped(self.value * factor)

    def roll(self, rng: np.random.Generator) -> bool:
        """True with probability ``value``."""
        if self.value <= 0.0:
            return False
        return rng.random() < self.value
