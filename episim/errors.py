"""Error taxonomy for EpiSim.

Setup-time misconfiguration raises one of the exceptions below
immediately. Per-tick degradations (no eligible destination for a host)
are not errors: they emit a LookupMiss warning and fall back to a safe
default so a running simulation is never aborted.
"""


class EpiSimError(Exception):
    """Base class for all EpiSim errors."""


class ConfigurationError(EpiSimError, ValueError):
    """Invalid model setup: bad rate, bad schedule, bad config value."""


class InvalidDurationError(ConfigurationError):
    """A phase or time-step duration was not strictly positive."""


class EmptyScheduleError(ConfigurationError):
    """A Schedule was queried before any phase was added."""


class UnitMismatchError(EpiSimError, TypeError):
    """A Time unit could not be reconciled through the conversion table."""


class DivideByZeroError(EpiSimError, ZeroDivisionError):
    """Time division or modulo by a zero-amount Time."""


class LookupMiss(UserWarning):
    """BehaviorMap could not resolve a destination; primary place used."""
