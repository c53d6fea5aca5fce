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
Exceptions raised by PIDLattice.

Lookups of unknown node or element specifications are not errors: they
return ``None``. Everything below is raised synchronously to the caller.
"""


class PIDError(Exception):
    """Base class for all PIDLattice errors."""
    pass


class ConstructionError(PIDError, ValueError):
    """Raised when a lattice or decomposer cannot be built from its parameters."""
    pass


class LatticeConstructionError(ConstructionError):
    """Raised for an unsupported number of sources."""
    pass


class SpecificationParseError(PIDError, ValueError):
    """Raised when a string node or element specification is malformed."""

    def __init__(self, spec: str, reason: str):
        self.spec = spec
        self.reason = reason
        super().__init__(f"Invalid specification {spec!r}: {reason}")


class LatticeRangeError(PIDError, IndexError):
    """Raised when a node, element or source index is out of range."""
    pass


class ObservationRangeError(PIDError, ValueError):
    """Raised when a target or source value lies outside its declared alphabet."""
    pass


class OwnershipError(PIDError, ValueError):
    """Raised when a node or element does not belong to the lattice in use."""
    pass
