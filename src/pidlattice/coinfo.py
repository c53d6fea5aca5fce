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

from typing import Callable, Dict, List, Sequence, Tuple

import numpy as np

from .lattice import SourceElement
from .pid import PartialInfoDecomposer


class CoInfo(PartialInfoDecomposer):
    """Co-information (interaction information) for arbitrary n sources.

    Computes the inclusion-exclusion co-information between n sources and a
    target from the same counts the decomposition uses, providing a scalar
    summary of the redundancy-synergy balance without summing PI atoms.

    For n sources X_1, ..., X_n and target Y:

        CI(X_1; ...; X_n; Y) = sum over non-empty S of (-1)^{|S|+1} I(Y; X_S)

    Every non-empty S is one element of the redundancy lattice, so the terms
    are the element-level mutual informations. Positive co-information
    indicates redundancy dominance; negative indicates synergy dominance.
    """

    def _empty_result(self) -> Dict[str, float]:
        out = {
            "coinfo_bits": 0.0,
            "i_y_joint_bits": 0.0,
        }
        for i in range(self.num_sources):
            out[f"i_y_x{i + 1}_bits"] = 0.0
        return out

    def _inclusion_exclusion(self, mi_of: Callable[[SourceElement], float]) -> Dict[str, float]:
        out = self._empty_result()
        n = self.num_sources

        coinfo = 0.0
        for element in self.lattice.elements:
            sign = (-1) ** (element.size + 1)  # +1 for singletons, -1 for pairs, +1 for triples, ...
            mi = mi_of(element)
            coinfo += sign * mi

            # Per-source MI: I(Y; X_i)
            if element.size == 1:
                out[f"i_y_x{element.members[0] + 1}_bits"] = float(mi)
            # Joint MI: I(Y; X_1, ..., X_n)
            if element.size == n:
                out["i_y_joint_bits"] = float(mi)

        out["coinfo_bits"] = float(coinfo)
        return out

    def coinformation(self) -> Dict[str, float]:
        """Average co-information over the observations added so far.

        Returns:
            Dictionary with co-information, joint MI and per-source MI values,
            all in bits. Every value is 0 before the first observation.
        """
        if self.num_observations == 0:
            return self._empty_result()
        return self._inclusion_exclusion(self._mutual_information)

    def local_coinformation(self, target_value: int, source_values: Sequence[int]) -> Dict[str, float]:
        """Pointwise co-information for a single observation.

        Args:
            target_value: Target value of the observation.
            source_values: One value per source.

        Returns:
            The same keys as coinformation(), from local mutual informations.
        """
        t = self._check_target(target_value)
        values = self._check_sources(source_values)
        if self.num_observations == 0:
            return self._empty_result()
        return self._inclusion_exclusion(
            lambda element: self._local_specific_information(t, values, element)
        )

    def local_coinformation_rows(
        self,
        target_values: Sequence[int],
        source_values: Sequence[Sequence[int]],
    ) -> Tuple[Dict[str, float], List[Dict]]:
        """Pointwise co-information over a time series of observations.

        The series is evaluated against the counts already held; it is not
        added to them.

        Args:
            target_values: Target value at each time step.
            source_values: Array of shape (time, num_sources).

        Returns:
            (summary, rows) where summary is the mean over time steps and
            rows is a list of per-step pointwise results.
        """
        targets, sources = self._check_rows(target_values, source_values)
        rows: List[Dict] = []

        if targets.size == 0 or self.num_observations == 0:
            return self._empty_result(), rows

        for step, (t, values) in enumerate(zip(targets, sources)):
            point = self._inclusion_exclusion(
                lambda element: self._local_specific_information(int(t), values, element)
            )
            rows.append(
                {
                    "step": step,
                    "target_value": int(t),
                    "source_values": values.tolist(),
                    **point,
                }
            )

        summary = {key: float(np.mean([row[key] for row in rows])) for key in self._empty_result()}
        return summary, rows
