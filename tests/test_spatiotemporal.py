"""
Tests for the spatiotemporal decomposition of cellular-automaton style data.
"""

import numpy as np
import pytest

from pidlattice import (
    ConstructionError,
    LatticeRangeError,
    ObservationRangeError,
    SpatiotemporalPID,
)


def _entropy(p):
    p = p[p > 0]
    return float(-(p * np.log2(p)).sum())


@pytest.fixture
def shift_ca(rng):
    """Rule 170: every cell copies its left neighbour."""
    rows = [rng.integers(0, 2, size=16)]
    for _ in range(29):
        rows.append(np.roll(rows[-1], 1))
    return np.array(rows)


@pytest.fixture
def periodic_columns():
    """Each cell repeats 0, 0, 1, 1 with its own phase."""
    sequence = np.array([0, 0, 1, 1] * 5)
    return np.column_stack([np.roll(sequence, phase) for phase in range(3)])


# ============================================================================
# Construction
# ============================================================================

class TestConstruction:

    def test_source_bases(self):
        pid = SpatiotemporalPID(base=2, offsets=[1, -1], k=3)
        assert pid.num_sources == 3
        assert pid.source_bases == (8, 2, 2)
        assert pid.target_base == 2

    def test_memory_only(self):
        pid = SpatiotemporalPID(base=3, offsets=[], k=2)
        assert pid.num_sources == 1
        assert pid.source_bases == (9,)

    @pytest.mark.parametrize("base,k", [(2, 0), (0, 1)])
    def test_invalid_parameters(self, base, k):
        with pytest.raises(ConstructionError):
            SpatiotemporalPID(base=base, offsets=[1], k=k)


# ============================================================================
# Observations
# ============================================================================

class TestObservations:

    def test_observation_count(self, shift_ca):
        pid = SpatiotemporalPID(2, [1], k=2)
        pid.add_lattice_observations(shift_ca)
        assert pid.num_observations == (30 - 2) * 16

    def test_too_few_rows(self):
        pid = SpatiotemporalPID(2, [1], k=3)
        pid.add_lattice_observations(np.zeros((3, 5), dtype=int))
        assert pid.num_observations == 0

    def test_out_of_range_values(self):
        pid = SpatiotemporalPID(2, [1])
        with pytest.raises(ObservationRangeError):
            pid.add_lattice_observations([[0, 1], [2, 0]])
        with pytest.raises(ObservationRangeError):
            pid.add_lattice_observations([0, 1, 0])
        with pytest.raises(ObservationRangeError):
            pid.add_lattice_observations([[0, 1], [0.5, 0]])
        assert pid.num_observations == 0


# ============================================================================
# Storage and transfer
# ============================================================================

class TestStorageAndTransfer:

    def test_shift_is_all_transfer(self, shift_ca):
        pid = SpatiotemporalPID(2, [1], k=1)
        pid.add_lattice_observations(shift_ca)
        h_target = _entropy(pid.target_probabilities())
        ais = pid.average_active_info_storage()
        te = pid.average_apparent_transfer_entropy(0)
        assert ais + te == pytest.approx(h_target, abs=1e-9)
        assert pid.imin(pid.lattice.get_node("{1}")) == pytest.approx(h_target, abs=1e-9)

    def test_history_length_changes_storage(self, periodic_columns):
        short = SpatiotemporalPID(2, [], k=1)
        short.add_lattice_observations(periodic_columns[:17])
        assert short.average_active_info_storage() == pytest.approx(0.0, abs=1e-12)

        long = SpatiotemporalPID(2, [], k=2)
        long.add_lattice_observations(periodic_columns[:18])
        assert long.average_active_info_storage() == pytest.approx(1.0)

    def test_transfer_entropy_source_out_of_range(self, shift_ca):
        pid = SpatiotemporalPID(2, [1], k=1)
        pid.add_lattice_observations(shift_ca)
        with pytest.raises(LatticeRangeError):
            pid.average_apparent_transfer_entropy(1)
        with pytest.raises(LatticeRangeError):
            pid.average_apparent_transfer_entropy(-1)


# ============================================================================
# Local series
# ============================================================================

class TestLocalSeries:

    def test_local_pi_matches_pointwise(self, shift_ca):
        pid = SpatiotemporalPID(2, [1], k=1)
        pid.add_lattice_observations(shift_ca)
        node = pid.lattice.get_node("{1}")
        series = pid.local_pi_series(shift_ca, node)

        assert series.shape == shift_ca.shape
        assert np.all(series[0] == 0.0)
        cells = shift_ca.shape[1]
        for n in (1, 7, 29):
            for c in (0, 5, 15):
                sources = [shift_ca[n - 1, c], shift_ca[n - 1, (c - 1) % cells]]
                assert series[n, c] == pytest.approx(pid.local_pi(shift_ca[n, c], sources, node))

    def test_memory_encoding(self, periodic_columns):
        grid = periodic_columns[:10]
        pid = SpatiotemporalPID(2, [1], k=2)
        pid.add_lattice_observations(grid)
        node = pid.lattice.top_node
        series = pid.local_pi_series(grid, node)
        n, c = 5, 1
        memory = grid[n - 2, c] * 2 + grid[n - 1, c]
        sources = [memory, grid[n - 1, (c - 1) % 3]]
        assert series[n, c] == pytest.approx(pid.local_pi(grid[n, c], sources, node))
        assert np.all(series[:2] == 0.0)

    def test_each_order_series(self, shift_ca):
        pid = SpatiotemporalPID(2, [1], k=1)
        pid.add_lattice_observations(shift_ca)
        stacked = pid.local_pi_at_each_interaction_order_series(shift_ca)
        assert stacked.shape == (2,) + shift_ca.shape
        np.testing.assert_allclose(
            stacked[1], pid.local_pi_at_interaction_order_series(shift_ca, 2)
        )
        n, c = 4, 3
        sources = [shift_ca[n - 1, c], shift_ca[n - 1, c - 1]]
        assert stacked[0, n, c] == pytest.approx(
            pid.local_pi_at_interaction_order(shift_ca[n, c], sources, 1)
        )

    def test_foreign_node_rejected(self, shift_ca):
        from pidlattice import OwnershipError, RedundancyLattice

        pid = SpatiotemporalPID(2, [1], k=1)
        with pytest.raises(OwnershipError):
            pid.local_pi_series(shift_ca, RedundancyLattice(2).top_node)
