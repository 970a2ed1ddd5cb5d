"""Pathogen: static disease parameter bundle.

A Pathogen is configured once before the simulation starts and is shared
by reference from every Host status, Environment and Agent that refers to
it. Mortality, hospitalization and symptom-expression rates have a
population-wide default and optional per-demographic overrides.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, Mapping, Optional

from episim.temporal import Rate, Time, TimeDistribution
from episim.types import Demographic, PathogenType, Symptom, TimeUnit


def _zero_distribution() -> TimeDistribution:
    return TimeDistribution(Time(0.0, TimeUnit.DAY), Time(0.0, TimeUnit.DAY))


@dataclass(eq=False)
class Pathogen:
    """Disease parameters for one pathogen.

    Identity is by object, not by value: two pathogens with the same
    parameters are still distinct diseases.
    """
    name: str
    type: PathogenType = PathogenType.CORONAVIRUS
    attack_rate: Rate = field(default_factory=Rate)
    agent_life: Time = field(default_factory=lambda: Time(1.0, TimeUnit.DAY))
    incubation: TimeDistribution = field(default_factory=_zero_distribution)
    infectious: TimeDistribution = field(default_factory=_zero_distribution)

    mortality_treated: Rate = field(default_factory=Rate)
    mortality_untreated: Rate = field(default_factory=Rate)
    hospitalization_rate: Rate = field(default_factory=Rate)
    symptom_expression: Dict[Symptom, Rate] = field(default_factory=dict)

    # Per-demographic overrides of the rates above
    mortality_treated_by: Dict[Demographic, Rate] = field(default_factory=dict)
    mortality_untreated_by: Dict[Demographic, Rate] = field(default_factory=dict)
    hospitalization_by: Dict[Demographic, Rate] = field(default_factory=dict)
    symptom_expression_by: Dict[Demographic, Dict[Symptom, Rate]] = field(
        default_factory=dict
    )

    def get_mortality_treated(self, demographic: Optional[Demographic] = None) -> Rate:
        return self.mortality_treated_by.get(demographic, self.mortality_treated)

    def get_mortality_untreated(self, demographic: Optional[Demographic] = None) -> Rate:
        return self.mortality_untreated_by.get(demographic, self.mortality_untreated)

    def get_hospitalization_rate(self, demographic: Optional[Demographic] = None) -> Rate:
        return self.hospitalization_by.get(demographic, self.hospitalization_rate)

    def get_symptom_expression(
        self, demographic: Optional[Demographic] = None,
    ) -> Mapping[Symptom, Rate]:
        """Symptom → Rate for *demographic*, overrides layered on defaults."""
        rates = dict(self.symptom_expression)
        rates.update(self.symptom_expression_by.get(demographic, {}))
        return rates

    def __repr__(self):
        return f"Pathogen({self.name!r}, {self.type.name})"
