"""Tests for episim.entities — places, persons, agents and statuses."""

import pytest

from episim.entities import (
    Agent,
    Coordinate,
    PathogenEffect,
    Person,
    Place,
    vessel_kind_of,
)
from episim.pathogen import Pathogen
from episim.temporal import Time
from episim.types import (
    Compartment,
    Demographic,
    EnvironmentKind,
    HostKind,
    LandUse,
    TimeUnit,
    VesselKind,
)

H = TimeUnit.HOUR


@pytest.fixture
def home() -> Place:
    return Place(uid=0, name='Home', coordinate=Coordinate(0.0, 0.0),
                 size=50.0, land_use=LandUse.DWELLING)


@pytest.fixture
def person(home) -> Person:
    return Person(uid=1, name='Ann', demographic=Demographic.ADULT, primary_place=home)


class TestCoordinate:
    def test_distance(self):
        assert Coordinate(0, 0).distance_to(Coordinate(3, 4)) == 5.0

    def test_z_ignored(self):
        assert Coordinate(0, 0, 10).distance_to(Coordinate(0, 0, -5)) == 0.0


class TestPlace:
    def test_kind_and_use(self, home):
        assert home.kind is EnvironmentKind.PLACE
        assert home.get_use() is LandUse.DWELLING

    def test_density(self, home, person):
        assert home.get_density() == 0.0
        home.occupants[person.uid] = person
        assert home.get_density() == pytest.approx(1 / 50)
        assert home.get_occupants() == [person]

    def test_agent_for(self, home):
        flu, cold = Pathogen(name='flu'), Pathogen(name='cold')
        agent = Agent(uid=5, pathogen=flu, life=Time(1, H), vessel=home,
                      vessel_kind=VesselKind.ENVIRONMENT)
        home.agents[agent.uid] = agent
        assert home.agent_for(flu) is agent
        assert home.agent_for(cold) is None


class TestPerson:
    def test_defaults(self, person, home):
        assert person.kind is HostKind.PERSON
        assert person.resilience.value == 0.0
        assert person.secondary_place is None
        assert person.coordinate == home.coordinate

    def test_compartment_defaults_to_susceptible(self, person):
        assert person.get_compartment(Pathogen(name='flu')) is Compartment.SUSCEPTIBLE

    def test_alive_until_dead_compartment(self, person):
        flu = Pathogen(name='flu')
        effect = PathogenEffect(pathogen=flu, compartment=Compartment.INFECTIOUS,
                                onset_time=Time(0, H), incubation=Time(0, H))
        person.statuses[flu] = effect
        assert person.is_alive
        effect.compartment = Compartment.RECOVERED
        assert person.is_alive
        effect.compartment = Compartment.DEAD_UNTREATED
        assert not person.is_alive

    def test_is_admitted_only_while_infectious(self, person):
        flu = Pathogen(name='flu')
        effect = PathogenEffect(pathogen=flu, compartment=Compartment.INFECTIOUS,
                                onset_time=Time(0, H), incubation=Time(0, H),
                                needs_hospital=True, admitted=True)
        person.statuses[flu] = effect
        assert person.is_admitted
        effect.compartment = Compartment.RECOVERED
        assert not person.is_admitted


class TestPathogenEffect:
    def _effect(self, **kwargs):
        return PathogenEffect(pathogen=Pathogen(name='flu'),
                              compartment=Compartment.INFECTIOUS,
                              onset_time=Time(10, H), incubation=Time(2, H), **kwargs)

    def test_treated_flag(self):
        assert self._effect().treated
        assert not self._effect(needs_hospital=True).treated
        assert self._effect(needs_hospital=True, admitted=True).treated

    def test_elapsed(self):
        assert self._effect().elapsed(Time(1, TimeUnit.DAY)) == Time(14, H)

    def test_terminal(self):
        effect = self._effect()
        assert not effect.is_terminal
        effect.compartment = Compartment.DEAD_TREATED
        assert effect.is_terminal


class TestAgent:
    def test_alive_and_coordinate(self, person):
        agent = Agent(uid=9, pathogen=Pathogen(name='flu'), life=Time(1, H),
                      vessel=person, vessel_kind=VesselKind.HOST)
        assert agent.is_alive
        assert agent.coordinate == person.coordinate
        agent.life = agent.life - Time(1, H)
        assert not agent.is_alive

    def test_vessel_kind_of(self, person, home):
        assert vessel_kind_of(person) is VesselKind.HOST
        assert vessel_kind_of(home) is VesselKind.ENVIRONMENT
        with pytest.raises(TypeError):
            vessel_kind_of("nowhere")
