"""Tests for episim.behavior — destination search and excursions."""

import warnings

import numpy as np
import pytest

from episim.behavior import BehaviorMap, default_behavior_map
from episim.entities import Coordinate, Person, Place
from episim.errors import LookupMiss
from episim.temporal import Rate, Time
from episim.types import Demographic, LandUse, Phase, PlaceCategory, TimeUnit

H = TimeUnit.HOUR


def make_place(uid, land_use, x, y=0.0) -> Place:
    return Place(uid=uid, name=f"P{uid}", coordinate=Coordinate(x, y),
                 size=100.0, land_use=land_use)


@pytest.fixture
def home() -> Place:
    return make_place(0, LandUse.DWELLING, 0.0)


@pytest.fixture
def adult(home) -> Person:
    return Person(uid=100, name='A', demographic=Demographic.ADULT, primary_place=home)


@pytest.fixture
def rng():
    return np.random.default_rng(42)


class TestRegistration:
    def test_candidate_set(self):
        behavior = BehaviorMap()
        behavior.set_map(Demographic.ADULT, PlaceCategory.TERTIARY, LandUse.RETAIL, 100)
        behavior.set_map(Demographic.ADULT, PlaceCategory.TERTIARY, LandUse.PUBLIC, 200)
        assert behavior.get_candidates(Demographic.ADULT, PlaceCategory.TERTIARY) == [
            (LandUse.RETAIL, 100.0), (LandUse.PUBLIC, 200.0),
        ]
        assert behavior.get_candidates(Demographic.CHILD, PlaceCategory.TERTIARY) == []

    def test_phase_category_override(self):
        behavior = BehaviorMap(phase_categories={Phase.LEISURE: PlaceCategory.PRIMARY})
        assert behavior.get_category(Phase.LEISURE) is PlaceCategory.PRIMARY
        assert behavior.get_category(Phase.WORK) is PlaceCategory.SECONDARY

    def test_max_attempts_validated(self):
        with pytest.raises(ValueError):
            BehaviorMap(max_attempts=0)


class TestGetRandomPlace:
    def test_distance_bound(self, adult, rng):
        near = make_place(1, LandUse.OFFICE, 50.0)
        far = make_place(2, LandUse.OFFICE, 5000.0)
        behavior = BehaviorMap()
        behavior.set_map(Demographic.ADULT, PlaceCategory.SECONDARY, LandUse.OFFICE, 100)
        by_use = {LandUse.OFFICE: [near, far]}
        for _ in range(200):
            assert behavior.get_random_place(adult, PlaceCategory.SECONDARY, by_use, rng) is near

    def test_uniform_among_eligible(self, adult, rng):
        offices = [make_place(i, LandUse.OFFICE, 10.0 * i) for i in range(1, 5)]
        behavior = BehaviorMap()
        behavior.set_map(Demographic.ADULT, PlaceCategory.SECONDARY, LandUse.OFFICE, 1000)
        by_use = {LandUse.OFFICE: offices}
        picks = [behavior.get_random_place(adult, PlaceCategory.SECONDARY, by_use, rng).uid
                 for _ in range(4000)]
        counts = np.bincount(picks, minlength=5)[1:]
        assert np.all(np.abs(counts / 4000 - 0.25) < 0.03)

    def test_falls_through_to_other_land_use(self, adult, rng):
        shop = make_place(1, LandUse.RETAIL, 20.0)
        behavior = BehaviorMap()
        behavior.set_map(Demographic.ADULT, PlaceCategory.TERTIARY, LandUse.PUBLIC, 500)
        behavior.set_map(Demographic.ADULT, PlaceCategory.TERTIARY, LandUse.RETAIL, 500)
        by_use = {LandUse.RETAIL: [shop]}
        with warnings.catch_warnings():
            warnings.simplefilter("error", LookupMiss)
            for _ in range(50):
                assert behavior.get_random_place(adult, PlaceCategory.TERTIARY,
                                                 by_use, rng) is shop

    def test_no_candidates_falls_back(self, adult, home, rng):
        with pytest.warns(LookupMiss):
            place = BehaviorMap().get_random_place(adult, PlaceCategory.TERTIARY, {}, rng)
        assert place is home

    def test_nothing_in_range_falls_back(self, adult, home, rng):
        behavior = BehaviorMap()
        behavior.set_map(Demographic.ADULT, PlaceCategory.SECONDARY, LandUse.OFFICE, 10)
        by_use = {LandUse.OFFICE: [make_place(1, LandUse.OFFICE, 100.0)]}
        with pytest.warns(LookupMiss):
            place = behavior.get_random_place(adult, PlaceCategory.SECONDARY, by_use, rng)
        assert place is home


class TestResolve:
    def test_primary_and_secondary(self, adult, home, rng):
        office = make_place(1, LandUse.OFFICE, 10.0)
        behavior = BehaviorMap()
        assert behavior.resolve(adult, PlaceCategory.SECONDARY, {}, rng) is home
        adult.secondary_place = office
        assert behavior.resolve(adult, PlaceCategory.SECONDARY, {}, rng) is office
        assert behavior.resolve(adult, PlaceCategory.PRIMARY, {}, rng) is home

    def test_tertiary_cached_within_phase(self, adult, rng):
        shops = [make_place(i, LandUse.RETAIL, 10.0 * i) for i in range(1, 20)]
        behavior = BehaviorMap()
        behavior.set_map(Demographic.ADULT, PlaceCategory.TERTIARY, LandUse.RETAIL, 1000)
        by_use = {LandUse.RETAIL: shops}
        first = behavior.apply(adult, Phase.LEISURE, Time(1, H), by_use, rng)
        for _ in range(10):
            assert behavior.apply(adult, Phase.LEISURE, Time(1, H), by_use, rng) is first


class TestApply:
    def test_follows_phase_category(self, adult, home, rng):
        office = make_place(1, LandUse.OFFICE, 10.0)
        adult.secondary_place = office
        behavior = BehaviorMap()
        assert behavior.apply(adult, Phase.SLEEP, Time(1, H), {}, rng) is home
        assert behavior.apply(adult, Phase.WORK, Time(1, H), {}, rng) is office
        assert behavior.apply(adult, Phase.GO_HOME, Time(1, H), {}, rng) is home

    def test_anomaly_diverts_to_tertiary(self, adult, rng):
        office = make_place(1, LandUse.OFFICE, 10.0)
        shop = make_place(2, LandUse.RETAIL, 20.0)
        adult.secondary_place = office
        behavior = BehaviorMap(anomaly_rates={Phase.WORK: Rate(1.0)})
        behavior.set_map(Demographic.ADULT, PlaceCategory.TERTIARY, LandUse.RETAIL, 100)
        dest = behavior.apply(adult, Phase.WORK, Time(4, H), {LandUse.RETAIL: [shop]}, rng,
                              phase_duration=Time(4, H))
        assert dest is shop
        assert adult.diverted

    def test_recovery_returns_to_nominal(self, adult, rng):
        office = make_place(1, LandUse.OFFICE, 10.0)
        adult.secondary_place = office
        adult.diverted = True
        behavior = BehaviorMap(recovery_rates={Phase.WORK: Rate(1.0)})
        dest = behavior.apply(adult, Phase.WORK, Time(4, H), {}, rng,
                              phase_duration=Time(4, H))
        assert dest is office
        assert not adult.diverted

    def test_excursion_ends_with_phase(self, adult, home, rng):
        shop = make_place(2, LandUse.RETAIL, 20.0)
        behavior = BehaviorMap(anomaly_rates={Phase.HOME: Rate(1.0)})
        behavior.set_map(Demographic.ADULT, PlaceCategory.TERTIARY, LandUse.RETAIL, 100)
        by_use = {LandUse.RETAIL: [shop]}
        assert behavior.apply(adult, Phase.HOME, Time(1, H), by_use, rng) is shop
        assert adult.diverted
        # SLEEP has no recovery rate; the excursion still must not carry over
        assert behavior.apply(adult, Phase.SLEEP, Time(1, H), by_use, rng) is home
        assert not adult.diverted
        assert adult.tertiary_place is None

    def test_excursion_rate_scaled_by_tick(self, home, rng):
        office = make_place(1, LandUse.OFFICE, 10.0)
        shop = make_place(2, LandUse.RETAIL, 20.0)
        behavior = BehaviorMap(anomaly_rates={Phase.WORK: Rate(0.8)})
        behavior.set_map(Demographic.ADULT, PlaceCategory.TERTIARY, LandUse.RETAIL, 100)
        by_use = {LandUse.RETAIL: [shop]}
        diverted = 0
        n = 20_000
        for i in range(n):
            host = Person(uid=i, name='', demographic=Demographic.ADULT,
                          primary_place=home, secondary_place=office)
            behavior.apply(host, Phase.WORK, Time(1, H), by_use, rng,
                           phase_duration=Time(8, H))
            diverted += host.diverted
        assert diverted / n == pytest.approx(0.1, abs=0.01)

    def test_admitted_host_goes_to_hospital(self, adult, rng):
        from episim.entities import PathogenEffect
        from episim.pathogen import Pathogen
        from episim.types import Compartment

        hospital = make_place(1, LandUse.HOSPITAL, 300.0)
        flu = Pathogen(name='flu')
        adult.statuses[flu] = PathogenEffect(
            pathogen=flu, compartment=Compartment.INFECTIOUS, onset_time=Time(0, H),
            incubation=Time(0, H), needs_hospital=True, admitted=True,
        )
        adult.hospital_place = hospital
        assert BehaviorMap().apply(adult, Phase.SLEEP, Time(1, H), {}, rng) is hospital


class TestDefaultBehaviorMap:
    def test_secondary_destinations(self):
        behavior = default_behavior_map()
        assert behavior.get_candidates(Demographic.CHILD, PlaceCategory.SECONDARY) == [
            (LandUse.SCHOOL, 500.0),
        ]
        uses = {u for u, _ in behavior.get_candidates(Demographic.SENIOR,
                                                      PlaceCategory.SECONDARY)}
        assert uses == {LandUse.PUBLIC, LandUse.RETAIL}

    def test_everyone_has_tertiary(self):
        behavior = default_behavior_map()
        for demographic in Demographic:
            assert behavior.get_candidates(demographic, PlaceCategory.TERTIARY)
