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
from typing import Any, Dict, List, NamedTuple, Optional, Sequence, Tuple, Union

import numpy as np
import pandas as pd

from .errors import ConstructionError, ObservationRangeError, OwnershipError
from .lattice import LatticeNode, RedundancyLattice, SourceElement, shared_lattice

logger = logging.getLogger(__name__)

DECOMPOSITION_COLUMNS = ["node_id", "node", "interaction_order", "imin_bits", "pi_bits"]


def _as_codes(values, what: str) -> np.ndarray:
    """Observation codes as an int64 array; non-integral values are rejected before the cast."""
    arr = np.asarray(values)
    if arr.size and not np.issubdtype(arr.dtype, np.integer):
        integral = np.issubdtype(arr.dtype, np.floating) and np.all(np.isfinite(arr) & (arr == np.floor(arr)))
        if not integral:
            raise ObservationRangeError(f"{what} must be integer codes, got {values!r}")
    return arr.astype(np.int64)


class MinimisingElement(NamedTuple):
    """Which element attains an extremum of specific information, and that value.

    ``element`` is None only for the max over the children of a childless
    node, in which case ``value`` is 0.
    """
    element: Optional[SourceElement]
    value: float


class PartialInfoDecomposer:
    """
    Partial Information Decomposition of Williams & Beer (arXiv:1004.2515)
    for discrete variables, estimated from observation counts.

    Usage:
        1. Construct with the target alphabet size and either the number of
           sources or their alphabet sizes.
        2. Add observations (they accumulate): add_observation(),
           add_observations().
        3. Query quantities in bits: imin(), pi(), their local variants and
           the per-interaction-order sums. Nodes come from ``self.lattice``.
        4. Call initialise() to start again with new observations.

    Every derived quantity is cached per target value and node or element id,
    and all caches are cleared whenever an observation is added.
    """

    def __init__(
        self,
        target_base: int,
        sources: Union[int, Sequence[int]],
        lattice: Optional[RedundancyLattice] = None,
    ):
        """
        Args:
            target_base: Number of values the target can take
            sources: Number of sources (each then has ``target_base`` values),
                or a sequence giving the number of values of each source
            lattice: Redundancy lattice to use; defaults to the shared lattice
                for this number of sources
        """
        if int(target_base) < 1:
            raise ConstructionError(f"target_base must be >= 1, got {target_base}")
        self.target_base = int(target_base)

        if isinstance(sources, (int, np.integer)):
            num_sources = int(sources)
            source_bases = [self.target_base] * max(num_sources, 0)
        else:
            try:
                source_bases = [int(b) for b in sources]
            except (TypeError, ValueError) as err:
                raise ConstructionError(
                    f"sources must be an int or a sequence of alphabet sizes, got {sources!r}"
                ) from err
            num_sources = len(source_bases)

        if lattice is None:
            lattice = shared_lattice(num_sources)
        elif lattice.num_sources != num_sources:
            raise ConstructionError(
                f"Lattice is built for {lattice.num_sources} sources but {num_sources} were configured"
            )
        if any(b < 1 for b in source_bases):
            raise ConstructionError(f"Source bases must all be >= 1, got {source_bases}")

        self._lattice = lattice
        self.source_bases: Tuple[int, ...] = tuple(source_bases)
        self._source_bases_array = np.asarray(source_bases, dtype=np.int64)

        # Number of joint values of each element, indexed by element id
        self._num_joint_states = []
        for element in lattice.elements:
            states = 1
            for s in element.members:
                states *= self.source_bases[s]
            self._num_joint_states.append(states)

        num_nodes = lattice.num_nodes
        self._num_observations = 0
        self._target_count = np.zeros(self.target_base, dtype=np.int64)
        self._joint_counts = [
            np.zeros((self.target_base, states), dtype=np.int64) for states in self._num_joint_states
        ]
        self._element_counts = [np.zeros(states, dtype=np.int64) for states in self._num_joint_states]

        # Specific information may be negative in principle, so NaN marks an
        # entry that has not been computed yet.
        self._stored_specific_infos = np.full((self.target_base, lattice.num_elements), np.nan)
        self._stored_local_specific_infos = [
            np.full((self.target_base, states), np.nan) for states in self._num_joint_states
        ]
        self._stored_min_of_is: List[List[Optional[MinimisingElement]]] = [
            [None] * num_nodes for _ in range(self.target_base)
        ]
        self._stored_max_over_children: List[List[Optional[MinimisingElement]]] = [
            [None] * num_nodes for _ in range(self.target_base)
        ]
        self._stored_any = False

    @property
    def lattice(self) -> RedundancyLattice:
        return self._lattice

    @property
    def num_sources(self) -> int:
        return self._lattice.num_sources

    @property
    def num_observations(self) -> int:
        return self._num_observations

    def initialise(self) -> None:
        """Clear all observations and cached values; the lattice is kept."""
        self._num_observations = 0
        self._target_count.fill(0)
        for counts in self._joint_counts:
            counts.fill(0)
        for counts in self._element_counts:
            counts.fill(0)
        self._clear_stored_values()

    def _clear_stored_values(self) -> None:
        self._stored_specific_infos.fill(np.nan)
        for table in self._stored_local_specific_infos:
            table.fill(np.nan)
        for row in self._stored_min_of_is:
            row[:] = [None] * len(row)
        for row in self._stored_max_over_children:
            row[:] = [None] * len(row)
        self._stored_any = False

    # ------------------------------------------------------------------
    # Validation
    # ------------------------------------------------------------------

    def _check_target(self, target_value: int) -> int:
        codes = _as_codes(target_value, "Target value")
        if codes.ndim != 0:
            raise ObservationRangeError(f"Target value must be a scalar, got {target_value!r}")
        t = int(codes)
        if not 0 <= t < self.target_base:
            raise ObservationRangeError(
                f"Target value {target_value} outside alphabet [0, {self.target_base})"
            )
        return t

    def _check_sources(self, source_values: Sequence[int]) -> np.ndarray:
        values = _as_codes(source_values, "Source values")
        if values.shape != (self.num_sources,):
            raise ObservationRangeError(
                f"Expected {self.num_sources} source values, got array of shape {values.shape}"
            )
        if np.any(values < 0) or np.any(values >= self._source_bases_array):
            raise ObservationRangeError(
                f"Source values {values.tolist()} outside alphabets {list(self.source_bases)}"
            )
        return values

    def _check_rows(self, target_values, source_values) -> Tuple[np.ndarray, np.ndarray]:
        targets = _as_codes(target_values, "Target values").reshape(-1)
        sources = _as_codes(source_values, "Source values")
        if targets.size == 0:
            return targets, np.empty((0, self.num_sources), dtype=np.int64)
        if sources.shape != (targets.size, self.num_sources):
            raise ObservationRangeError(
                f"Expected source values of shape ({targets.size}, {self.num_sources}), "
                f"got {sources.shape}"
            )
        if targets.min() < 0 or targets.max() >= self.target_base:
            raise ObservationRangeError(f"Target values outside alphabet [0, {self.target_base})")
        if np.any(sources < 0) or np.any(sources >= self._source_bases_array):
            raise ObservationRangeError(f"Source values outside alphabets {list(self.source_bases)}")
        return targets, sources

    def _check_node(self, node: LatticeNode) -> None:
        if not self._lattice.owns(node):
            raise OwnershipError(f"Node {node} does not belong to the redundancy lattice of this decomposer")

    def _check_element(self, element: SourceElement) -> None:
        if not self._lattice.owns(element):
            raise OwnershipError(
                f"Element {element} does not belong to the redundancy lattice of this decomposer"
            )

    # ------------------------------------------------------------------
    # Observations
    # ------------------------------------------------------------------

    def add_observation(self, target_value: int, source_values: Sequence[int]) -> None:
        """
        Update the counts with a single observation.

        Args:
            target_value: Target value, in [0, target_base)
            source_values: One value per source, in the order of source_bases
        """
        t = self._check_target(target_value)
        values = self._check_sources(source_values)

        self._target_count[t] += 1
        for element in self._lattice.elements:
            joint = self._joint_value(values, element)
            self._joint_counts[element.id][t, joint] += 1
            self._element_counts[element.id][joint] += 1
        self._num_observations += 1

        if self._stored_any:
            self._clear_stored_values()

    def add_observations(self, target_values: Sequence[int], source_values: Sequence[Sequence[int]]) -> None:
        """
        Update the counts with a time series of observations.

        The whole batch is validated before any count changes.

        Args:
            target_values: Target value at each time step
            source_values: Array of shape (time, num_sources)
        """
        targets, sources = self._check_rows(target_values, source_values)
        if targets.size == 0:
            return

        self._target_count += np.bincount(targets, minlength=self.target_base)
        for element in self._lattice.elements:
            joint = self._joint_values(sources, element)
            np.add.at(self._joint_counts[element.id], (targets, joint), 1)
            self._element_counts[element.id] += np.bincount(
                joint, minlength=self._num_joint_states[element.id]
            )
        self._num_observations += int(targets.size)

        if self._stored_any:
            self._clear_stored_values()

    def joint_value(self, source_values: Sequence[int], element: Union[SourceElement, int]) -> int:
        """
        Joint value of the sources in ``element`` for one instantiation of all sources.

        Mixed-radix encoding over ``element.members``, first member most significant.
        """
        if isinstance(element, (int, np.integer)):
            element = self._lattice.element_by_id(int(element))
        self._check_element(element)
        return self._joint_value(self._check_sources(source_values), element)

    def _joint_value(self, values: np.ndarray, element: SourceElement) -> int:
        joint = 0
        for s in element.members:
            joint = joint * self.source_bases[s] + int(values[s])
        return joint

    def _joint_values(self, rows: np.ndarray, element: SourceElement) -> np.ndarray:
        joint = np.zeros(rows.shape[0], dtype=np.int64)
        for s in element.members:
            joint = joint * self.source_bases[s] + rows[:, s]
        return joint

    # ------------------------------------------------------------------
    # Specific information
    # ------------------------------------------------------------------

    def specific_information(self, target_value: int, element: SourceElement) -> float:
        """
        Specific information (Williams & Beer eq. 2) that ``element`` carries
        about the target taking ``target_value``, in bits.
        """
        t = self._check_target(target_value)
        self._check_element(element)
        return self._specific_information(t, element)

    def _specific_information(self, t: int, element: SourceElement) -> float:
        stored = self._stored_specific_infos[t, element.id]
        if not np.isnan(stored):
            return float(stored)

        joint = self._joint_counts[element.id][t]
        seen = joint > 0
        if np.any(seen):
            # p(t|v)/p(t) == p(v|t) * N / n(v)
            p_source_given_target = joint[seen] / self._target_count[t]
            ratio = p_source_given_target * self._num_observations / self._element_counts[element.id][seen]
            value = float(np.sum(p_source_given_target * np.log2(ratio)))
        else:
            value = 0.0

        self._stored_specific_infos[t, element.id] = value
        self._stored_any = True
        return value

    def local_specific_information(
        self, target_value: int, source_values: Sequence[int], element: SourceElement
    ) -> float:
        """
        The term of the specific information for the joint value of ``element``
        induced by ``source_values``. Zero when that (target, joint value)
        pair has never been observed.
        """
        t = self._check_target(target_value)
        values = self._check_sources(source_values)
        self._check_element(element)
        return self._local_specific_information(t, values, element)

    def _local_specific_information(self, t: int, values: np.ndarray, element: SourceElement) -> float:
        v = self._joint_value(values, element)
        stored = self._stored_local_specific_infos[element.id][t, v]
        if not np.isnan(stored):
            return float(stored)

        joint = self._joint_counts[element.id][t, v]
        if joint == 0:
            return 0.0
        p_source_given_target = joint / self._target_count[t]
        value = float(np.log2(p_source_given_target * self._num_observations / self._element_counts[element.id][v]))

        self._stored_local_specific_infos[element.id][t, v] = value
        self._stored_any = True
        return value

    def mutual_information(self, element: SourceElement) -> float:
        """I(target; element) in bits, i.e. Imin of the node holding only ``element``."""
        self._check_element(element)
        return self._mutual_information(element)

    def _mutual_information(self, element: SourceElement) -> float:
        total = 0.0
        for t, p in self._weighted_targets():
            total += p * self._specific_information(t, element)
        return total

    def local_mutual_information(
        self, target_value: int, source_values: Sequence[int], element: SourceElement
    ) -> float:
        return self.local_specific_information(target_value, source_values, element)

    def target_probabilities(self) -> np.ndarray:
        if self._num_observations == 0:
            return np.zeros(self.target_base)
        return self._target_count / self._num_observations

    def _weighted_targets(self):
        """(target value, p(target value)) for every observed target value."""
        if self._num_observations == 0:
            return []
        return [
            (t, self._target_count[t] / self._num_observations)
            for t in range(self.target_base)
            if self._target_count[t] > 0
        ]

    # ------------------------------------------------------------------
    # Minimum and maximum specific information over the lattice
    # ------------------------------------------------------------------

    def minimising_element(self, target_value: int, node: LatticeNode) -> MinimisingElement:
        """
        The element of ``node`` with the least specific information about
        ``target_value``. Ties go to the first such element in ``node.elements``.
        """
        t = self._check_target(target_value)
        self._check_node(node)
        return self._minimising_element(t, node)

    def _minimising_element(self, t: int, node: LatticeNode) -> MinimisingElement:
        stored = self._stored_min_of_is[t][node.id]
        if stored is not None:
            return stored

        best = None
        for element in node.elements:
            value = self._specific_information(t, element)
            if best is None or value < best.value:
                best = MinimisingElement(element, value)

        self._stored_min_of_is[t][node.id] = best
        self._stored_any = True
        return best

    def min_of_is(self, target_value: int, node: LatticeNode) -> float:
        """Minimum specific information over the elements of ``node``, in bits."""
        return self.minimising_element(target_value, node).value

    def max_over_children(self, target_value: int, node: LatticeNode) -> MinimisingElement:
        """
        Over the direct children of ``node``, the largest minimum specific
        information and the element attaining it. Ties go to the first child.
        A childless node gives ``MinimisingElement(None, 0.0)``.
        """
        t = self._check_target(target_value)
        self._check_node(node)
        return self._max_over_children(t, node)

    def _max_over_children(self, t: int, node: LatticeNode) -> MinimisingElement:
        stored = self._stored_max_over_children[t][node.id]
        if stored is not None:
            return stored

        best = MinimisingElement(None, 0.0)
        for child in node.children:
            candidate = self._minimising_element(t, child)
            if best.element is None or candidate.value > best.value:
                best = candidate

        self._stored_max_over_children[t][node.id] = best
        self._stored_any = True
        return best

    # ------------------------------------------------------------------
    # Imin and PI
    # ------------------------------------------------------------------

    def imin(self, node: LatticeNode) -> float:
        """Redundancy Imin of ``node`` (Williams & Beer eq. 3), in bits."""
        self._check_node(node)
        return self._imin(node)

    def _imin(self, node: LatticeNode) -> float:
        total = 0.0
        for t, p in self._weighted_targets():
            total += p * self._minimising_element(t, node).value
        return float(total)

    def local_imin(self, target_value: int, source_values: Sequence[int], node: LatticeNode) -> float:
        """Local Imin: the local specific information of the minimising element."""
        t = self._check_target(target_value)
        values = self._check_sources(source_values)
        self._check_node(node)
        return self._local_imin(t, values, node)

    def _local_imin(self, t: int, values: np.ndarray, node: LatticeNode) -> float:
        element = self._minimising_element(t, node).element
        return self._local_specific_information(t, values, element)

    def pi(self, node: LatticeNode) -> float:
        """Partial information of ``node`` (Williams & Beer eq. 8), in bits."""
        self._check_node(node)
        return self._pi(node)

    def _pi(self, node: LatticeNode) -> float:
        total = 0.0
        for t, p in self._weighted_targets():
            total += p * (self._minimising_element(t, node).value - self._max_over_children(t, node).value)
        logger.debug(f"PI for node {node}: {total:.6f} bits")
        return float(total)

    def local_pi(self, target_value: int, source_values: Sequence[int], node: LatticeNode) -> float:
        """Local partial information of ``node`` for one observation, in bits."""
        t = self._check_target(target_value)
        values = self._check_sources(source_values)
        self._check_node(node)
        return self._local_pi(t, values, node)

    def _local_pi(self, t: int, values: np.ndarray, node: LatticeNode) -> float:
        local = self._local_imin(t, values, node)
        witness = self._max_over_children(t, node).element
        if witness is not None:
            local -= self._local_specific_information(t, values, witness)
        return local

    def pi_at_interaction_order(self, order: int) -> float:
        """Sum of PI over the nodes at ``order``; 0 for an order with no nodes."""
        return float(sum(self._pi(node) for node in self._lattice.nodes_at_order(order)))

    def pi_at_each_interaction_order(self) -> np.ndarray:
        """PI summed at each interaction order; index 0 holds order 1."""
        return np.array(
            [self.pi_at_interaction_order(order) for order in range(1, self.num_sources + 1)]
        )

    def local_pi_at_interaction_order(
        self, target_value: int, source_values: Sequence[int], order: int
    ) -> float:
        t = self._check_target(target_value)
        values = self._check_sources(source_values)
        return self._local_pi_at_interaction_order(t, values, order)

    def _local_pi_at_interaction_order(self, t: int, values: np.ndarray, order: int) -> float:
        return float(sum(self._local_pi(t, values, node) for node in self._lattice.nodes_at_order(order)))

    def local_pi_at_each_interaction_order(
        self, target_value: int, source_values: Sequence[int]
    ) -> np.ndarray:
        t = self._check_target(target_value)
        values = self._check_sources(source_values)
        return np.array(
            [
                self._local_pi_at_interaction_order(t, values, order)
                for order in range(1, self.num_sources + 1)
            ]
        )

    # ------------------------------------------------------------------
    # Tabular output
    # ------------------------------------------------------------------

    def decomposition_rows(self) -> List[Dict[str, Any]]:
        """One row per lattice node with its Imin and PI, in node id order."""
        rows = []
        for node in self._lattice.nodes:
            rows.append(
                {
                    "node_id": node.id,
                    "node": str(node),
                    "interaction_order": node.interaction_order,
                    "imin_bits": self._imin(node),
                    "pi_bits": self._pi(node),
                }
            )
        return rows

    def decomposition_frame(self) -> pd.DataFrame:
        return pd.DataFrame(self.decomposition_rows(), columns=DECOMPOSITION_COLUMNS)

    def summary(self) -> Dict[str, float]:
        """
        Total mutual information, PI at each interaction order and, for two
        sources, the redundant, unique and synergistic atoms.
        """
        out = {
            "i_y_joint_bits": self._imin(self._lattice.top_node),
            "num_observations": float(self._num_observations),
        }
        for order, value in enumerate(self.pi_at_each_interaction_order(), start=1):
            out[f"pi_order_{order}_bits"] = float(value)

        if self.num_sources == 2:
            lattice = self._lattice
            out.update(
                {
                    "red_bits": self._pi(lattice.get_node("{0}{1}")),
                    "unq_x1_bits": self._pi(lattice.get_node("{0}")),
                    "unq_x2_bits": self._pi(lattice.get_node("{1}")),
                    "syn_bits": self._pi(lattice.get_node("{0,1}")),
                }
            )
        return out
