"""Tests for episim.snapshots — host snapshot capture and npz round trip."""

import numpy as np
import pytest

from episim.behavior import BehaviorMap
from episim.model import CityModel
from episim.pathogen import Pathogen
from episim.snapshots import NO_ENVIRONMENT, SnapshotRecorder
from episim.temporal import Rate
from episim.types import Compartment, Demographic, LandUse


@pytest.fixture
def model() -> CityModel:
    model = CityModel(behavior=BehaviorMap())
    a = model.add_place("A", LandUse.DWELLING, (10, 20), 5)
    b = model.add_place("B", LandUse.DWELLING, (30, 40), 5)
    model.add_person(Demographic.ADULT, a)
    model.add_person(Demographic.CHILD, b)
    model.add_pathogen(Pathogen(name='flu', attack_rate=Rate(0.1)))
    return model


class TestCapture:
    def test_disabled_is_noop(self, model):
        recorder = SnapshotRecorder(enabled=False)
        model.run(3, recorder=recorder)
        assert recorder.get_ticks() == []

    def test_interval(self, model):
        recorder = SnapshotRecorder(enabled=True, interval_ticks=2)
        model.run(6, recorder=recorder)
        assert recorder.get_ticks() == [2, 4, 6]

    def test_window(self, model):
        recorder = SnapshotRecorder(enabled=True, start_tick=2, end_tick=3)
        model.run(5, recorder=recorder)
        assert recorder.get_ticks() == [2, 3]

    def test_invalid_interval(self):
        with pytest.raises(ValueError):
            SnapshotRecorder(interval_ticks=0)

    def test_contents(self, model):
        recorder = SnapshotRecorder(enabled=True)
        model.run(1, recorder=recorder)
        snap = recorder.get_snapshot(1)
        hosts = model.get_hosts()
        np.testing.assert_array_equal(snap.host_uid, [h.uid for h in hosts])
        np.testing.assert_array_equal(snap.environment,
                                      [h.current_environment.uid for h in hosts])
        np.testing.assert_allclose(snap.x, [10, 30])
        np.testing.assert_allclose(snap.y, [20, 40])
        assert np.all(snap.compartment == int(Compartment.SUSCEPTIBLE))
        assert snap.hour == pytest.approx(1.0)
        assert snap.n_hosts == 2

    def test_evicted_host(self, model):
        recorder = SnapshotRecorder(enabled=True)
        host = model.get_hosts()[0]
        model._move(host, None)
        recorder.capture(model)
        assert recorder.get_snapshot(0).environment[0] == NO_ENVIRONMENT

    def test_named_pathogen(self, model):
        recorder = SnapshotRecorder(enabled=True, pathogen='flu')
        model.patient_zero('flu', 2)
        recorder.capture(model)
        assert np.all(recorder.get_snapshot(0).compartment == int(Compartment.INFECTIOUS))


class TestSaveLoad:
    def test_round_trip(self, model, tmp_path):
        recorder = SnapshotRecorder(enabled=True, interval_ticks=2)
        model.run(4, recorder=recorder)
        path = tmp_path / "out" / "snaps.npz"
        recorder.save(str(path))
        assert path.exists()

        loaded = SnapshotRecorder.load(str(path))
        assert loaded.get_ticks() == [2, 4]
        for tick in (2, 4):
            a, b = recorder.get_snapshot(tick), loaded.get_snapshot(tick)
            np.testing.assert_array_equal(a.host_uid, b.host_uid)
            np.testing.assert_array_equal(a.environment, b.environment)
            np.testing.assert_array_equal(a.compartment, b.compartment)
            assert a.hour == b.hour

    def test_save_empty_writes_nothing(self, tmp_path):
        path = tmp_path / "empty.npz"
        SnapshotRecorder(enabled=True).save(str(path))
        assert not path.exists()

    def test_memory_estimate(self, model):
        recorder = SnapshotRecorder(enabled=True)
        model.run(2, recorder=recorder)
        assert recorder.memory_estimate_mb() > 0
