# PIDLattice: Partial Information Decomposition over Redundancy Lattices
# Copyright (C) 2026 Leonardo Sebastian Goodall
#
# This program is free software: you can redistribute it and/or modify
# it under the terms of the GNU Affero General Public License as published by
# the Free Software Foundation, either version 3 of the License, or
# (at your option) any later version.
#
# This program is distributed in the hope that it will be useful,
# but WITHOUT ANY WARRANTY; without even the implied warranty of
# MERCHANTABILITY or FITNESS FOR A PARTICULAR PURPOSE.  See the
# GNU Affero General Public License for more details.
#
# You should have received a copy of the GNU Affero General Public License
# along with this program.  If not, see <https://www.gnu.org/licenses/>.

import logging
from typing import Sequence, Tuple

import numpy as np

from .errors import ConstructionError, LatticeRangeError, ObservationRangeError
from .lattice import LatticeNode
from .pid import PartialInfoDecomposer, _as_codes

logger = logging.getLogger(__name__)


class SpatiotemporalPID(PartialInfoDecomposer):
    """
    PID over a homogeneous spatiotemporal system such as a 1D cellular automaton.

    Values are a (time, cell) integer array with periodic boundaries. The
    target is each cell at time n. Source 0 is the memory: the cell's own
    past ``k`` values (most recent least significant). Source ``s + 1`` is
    the cell at ``offsets[s]`` to the left at time n - 1, i.e. column
    ``(c - offsets[s]) mod C``.

    All cells are pooled into one set of counts.
    """

    def __init__(self, base: int, offsets: Sequence[int], k: int = 1):
        """
        Args:
            base: Number of values every cell can take
            offsets: Offset of the destination from each non-memory source
                (an offset of 1 means the destination is one column to the right)
            k: History length of the memory source
        """
        if int(k) < 1:
            raise ConstructionError(f"History length k must be 1 or greater, got {k}")
        if int(base) < 1:
            raise ConstructionError(f"base must be >= 1, got {base}")
        self.base = int(base)
        self.k = int(k)
        self.offsets: Tuple[int, ...] = tuple(int(o) for o in offsets)

        super().__init__(self.base, [self.base ** self.k] + [self.base] * len(self.offsets))

    def _lattice_observations(self, values) -> Tuple[np.ndarray, np.ndarray, np.ndarray]:
        """
        Split a (time, cell) array into targets of shape (T - k, C) and source
        values of shape (T - k, C, num_sources), for rows k onwards.
        """
        grid = _as_codes(values, "Lattice values")
        if grid.ndim != 2:
            raise ObservationRangeError(f"Expected a (time, cell) array, got shape {grid.shape}")
        if np.any(grid < 0) or np.any(grid >= self.base):
            raise ObservationRangeError(f"Lattice values outside alphabet [0, {self.base})")

        steps, cells = grid.shape
        if steps <= self.k:
            return (
                grid,
                np.empty((0, cells), dtype=np.int64),
                np.empty((0, cells, self.num_sources), dtype=np.int64),
            )

        memory = np.zeros((steps - self.k, cells), dtype=np.int64)
        for j in range(self.k):
            memory = memory * self.base + grid[j:steps - self.k + j]

        previous = grid[self.k - 1:steps - 1]
        columns = [memory] + [np.roll(previous, offset, axis=1) for offset in self.offsets]
        return grid, grid[self.k:], np.stack(columns, axis=-1)

    def add_lattice_observations(self, values) -> None:
        """Add an observation for every cell at every time step from k onwards."""
        _, targets, sources = self._lattice_observations(values)
        self.add_observations(targets.reshape(-1), sources.reshape(-1, self.num_sources))

    def _local_series(self, values, local_fn) -> np.ndarray:
        grid, targets, sources = self._lattice_observations(values)
        out = np.zeros(grid.shape, dtype=float)
        for i, c in np.ndindex(targets.shape):
            out[self.k + i, c] = local_fn(int(targets[i, c]), sources[i, c])
        return out

    def local_pi_series(self, values, node: LatticeNode) -> np.ndarray:
        """Local PI of ``node`` at every space-time point; rows before k are 0."""
        self._check_node(node)
        return self._local_series(values, lambda t, s: self._local_pi(t, s, node))

    def local_pi_at_interaction_order_series(self, values, order: int) -> np.ndarray:
        return self._local_series(
            values, lambda t, s: self._local_pi_at_interaction_order(t, s, order)
        )

    def local_pi_at_each_interaction_order_series(self, values) -> np.ndarray:
        """Array of shape (num_sources, T, C); index 0 holds order 1."""
        return np.stack(
            [
                self.local_pi_at_interaction_order_series(values, order)
                for order in range(1, self.num_sources + 1)
            ]
        )

    def average_active_info_storage(self) -> float:
        """Active information storage: I(next value; past k values)."""
        ais = self._imin(self.lattice.get_node("{0}"))
        logger.debug(f"Active information storage (k={self.k}): {ais:.6f} bits")
        return ais

    def average_apparent_transfer_entropy(self, source_index: int) -> float:
        """
        Apparent transfer entropy from the non-memory source ``source_index``
        (0-based into ``offsets``), conditioned on the memory.
        """
        if not 0 <= source_index < len(self.offsets):
            raise LatticeRangeError(
                f"Source index {source_index} out of range for {len(self.offsets)} non-memory sources"
            )
        joint = self._imin(self.lattice.get_node(f"{{0,{source_index + 1}}}"))
        te = joint - self._imin(self.lattice.get_node("{0}"))
        logger.debug(f"Apparent transfer entropy from offset {self.offsets[source_index]}: {te:.6f} bits")
        return te
