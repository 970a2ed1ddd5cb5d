"""Tests for episim.pathogen — per-demographic rate lookup."""

from episim.pathogen import Pathogen
from episim.temporal import Rate, Time
from episim.types import Demographic, PathogenType, Symptom, TimeUnit


def make_flu() -> Pathogen:
    return Pathogen(
        name='flu',
        type=PathogenType.INFLUENZA,
        attack_rate=Rate(0.3),
        mortality_treated=Rate(0.001),
        mortality_untreated=Rate(0.01),
        hospitalization_rate=Rate(0.02),
        symptom_expression={Symptom.FEVER: Rate(0.6), Symptom.COUGH: Rate(0.5)},
        mortality_untreated_by={Demographic.SENIOR: Rate(0.1)},
        hospitalization_by={Demographic.SENIOR: Rate(0.2)},
        symptom_expression_by={Demographic.CHILD: {Symptom.FEVER: Rate(0.9),
                                                   Symptom.DIARRHEA: Rate(0.2)}},
    )


class TestPathogenDefaults:
    def test_minimal(self):
        p = Pathogen(name='x')
        assert p.attack_rate.value == 0.0
        assert p.agent_life == Time(1, TimeUnit.DAY)
        assert p.get_symptom_expression() == {}

    def test_identity_not_value(self):
        assert Pathogen(name='x') != Pathogen(name='x')
        a = Pathogen(name='x')
        assert {a: 1}[a] == 1

    def test_repr(self):
        assert repr(make_flu()) == "Pathogen('flu', INFLUENZA)"


class TestDemographicOverrides:
    def test_default_used_without_override(self):
        flu = make_flu()
        assert flu.get_mortality_untreated(Demographic.ADULT).value == 0.01
        assert flu.get_hospitalization_rate(Demographic.CHILD).value == 0.02
        assert flu.get_mortality_treated(Demographic.SENIOR).value == 0.001

    def test_override_applies(self):
        flu = make_flu()
        assert flu.get_mortality_untreated(Demographic.SENIOR).value == 0.1
        assert flu.get_hospitalization_rate(Demographic.SENIOR).value == 0.2

    def test_symptoms_layered(self):
        rates = make_flu().get_symptom_expression(Demographic.CHILD)
        assert rates[Symptom.FEVER].value == 0.9
        assert rates[Symptom.COUGH].value == 0.5
        assert rates[Symptom.DIARRHEA].value == 0.2

    def test_symptom_lookup_does_not_mutate(self):
        flu = make_flu()
        flu.get_symptom_expression(Demographic.CHILD)
        assert Symptom.DIARRHEA not in flu.symptom_expression
