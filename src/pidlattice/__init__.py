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

"""
PIDLattice: Partial Information Decomposition over Redundancy Lattices

A Python package for computing the Williams & Beer Partial Information
Decomposition of a discrete target with respect to any number of discrete
sources, estimated from observation counts.

Main components:
- RedundancyLattice: Antichains of source subsets ordered by redundancy
- PartialInfoDecomposer: Imin and PI, average and local, over the lattice
- CoInfo: Co-information (interaction information) for n sources
- SpatiotemporalPID: PID of cellular-automaton style (time, cell) data
Example:
    >>> from pidlattice import PartialInfoDecomposer
    >>> pid = PartialInfoDecomposer(target_base=2, sources=2)
    >>> for x1, x2 in [(0, 0), (0, 1), (1, 0), (1, 1)]:
    ...     pid.add_observation(x1 ^ x2, [x1, x2])
    >>> pid.pi(pid.lattice.get_node("{0,1}"))
    1.0
"""

__version__ = "0.1.0"

from .errors import (
    PIDError,
    ConstructionError,
    LatticeConstructionError,
    SpecificationParseError,
    LatticeRangeError,
    ObservationRangeError,
    OwnershipError,
)
from .lattice import (
    SourceElement,
    LatticeNode,
    RedundancyLattice,
    shared_lattice,
    element_spec_from_string,
    node_spec_from_string,
)
from .pid import PartialInfoDecomposer, MinimisingElement
from .coinfo import CoInfo
from .spatiotemporal import SpatiotemporalPID

__all__ = [
    # Version
    "__version__",
    # Core classes
    "RedundancyLattice",
    "PartialInfoDecomposer",
    "CoInfo",
    "SpatiotemporalPID",
    # Data structures
    "SourceElement",
    "LatticeNode",
    "MinimisingElement",
    # Helpers
    "shared_lattice",
    "element_spec_from_string",
    "node_spec_from_string",
    # Errors
    "PIDError",
    "ConstructionError",
    "LatticeConstructionError",
    "SpecificationParseError",
    "LatticeRangeError",
    "ObservationRangeError",
    "OwnershipError",
]
