"""Tests for episim.rng — seeded RNG streams and checkpointing."""

import numpy as np
import pytest

from episim.rng import (
    STREAMS,
    create_rng_hierarchy,
    restore_rng_state,
    rng_state_snapshot,
)


class TestCreateRngHierarchy:
    def test_returns_named_streams(self):
        rngs = create_rng_hierarchy(42)
        assert tuple(rngs) == STREAMS
        assert set(rngs) == {'setup', 'behavior', 'transmission', 'progression'}

    def test_generators_are_independent(self):
        """Different streams produce different sequences."""
        rngs = create_rng_hierarchy(42)
        vals = {name: rng.random() for name, rng in rngs.items()}
        assert len(set(vals.values())) == len(vals), "RNG streams produced duplicate values"

    def test_reproducibility(self):
        """Same seed produces identical sequences."""
        rngs1 = create_rng_hierarchy(42)
        rngs2 = create_rng_hierarchy(42)
        for name in rngs1:
            np.testing.assert_array_equal(rngs1[name].random(100), rngs2[name].random(100))

    def test_different_seeds_differ(self):
        rngs1 = create_rng_hierarchy(42)
        rngs2 = create_rng_hierarchy(43)
        assert not np.array_equal(rngs1['setup'].random(10), rngs2['setup'].random(10))

    def test_draws_in_one_stream_do_not_shift_another(self):
        rngs1 = create_rng_hierarchy(42)
        rngs2 = create_rng_hierarchy(42)
        rngs1['behavior'].random(1000)
        np.testing.assert_array_equal(
            rngs1['progression'].random(20), rngs2['progression'].random(20),
        )

    def test_negative_seed(self):
        with pytest.raises(ValueError):
            create_rng_hierarchy(-1)


class TestCheckpoint:
    def test_snapshot_and_restore(self):
        rngs = create_rng_hierarchy(42)
        for rng in rngs.values():
            rng.random(5)
        state = rng_state_snapshot(rngs)
        expected = {name: rng.random(10) for name, rng in rngs.items()}

        restore_rng_state(rngs, state)
        for name, rng in rngs.items():
            np.testing.assert_array_equal(rng.random(10), expected[name])

    def test_restore_unknown_stream(self):
        rngs = create_rng_hierarchy(42)
        state = rng_state_snapshot(rngs)
        state['weather'] = state['setup']
        with pytest.raises(KeyError):
            restore_rng_state(rngs, state)
