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
import re
from dataclasses import dataclass, field
from functools import lru_cache
from itertools import combinations
from typing import Dict, FrozenSet, Iterable, List, Optional, Tuple, Union

from .errors import LatticeConstructionError, LatticeRangeError, SpecificationParseError

logger = logging.getLogger(__name__)

ElementSpec = FrozenSet[int]
NodeSpec = FrozenSet[FrozenSet[int]]

# Number of distinct source counts whose lattices are kept by shared_lattice()
LATTICE_CACHE_SIZE = 8

_ELEMENT_BODY = re.compile(r"\s*\d+\s*(?:,\s*\d+\s*)*")
_NODE_SPEC = re.compile(r"(?:\s*\{[^{}]*\}\s*)+")
_NODE_ELEMENT = re.compile(r"\{([^{}]*)\}")


@dataclass(frozen=True, eq=False)
class SourceElement:
    """A non-empty set of sources, treated as a single joint variable."""
    id: int
    members: Tuple[int, ...]

    @property
    def sources(self) -> ElementSpec:
        return frozenset(self.members)

    @property
    def size(self) -> int:
        return len(self.members)

    def describe(self, with_id: bool = False) -> str:
        text = "{" + ",".join(str(m) for m in self.members) + "}"
        return f"id:{self.id}{text}" if with_id else text

    def __str__(self) -> str:
        return self.describe()


@dataclass(frozen=True, eq=False)
class LatticeNode:
    """An antichain of source elements: one point of the redundancy lattice.

    ``elements`` is ordered by element id and ``children`` (the nodes directly
    below this one) by node id, so iteration over either is stable.
    """
    id: int
    elements: Tuple[SourceElement, ...]
    children: Tuple["LatticeNode", ...] = field(default=(), repr=False)

    @property
    def spec(self) -> NodeSpec:
        return frozenset(element.sources for element in self.elements)

    @property
    def interaction_order(self) -> int:
        return min(element.size for element in self.elements)

    def __str__(self) -> str:
        return "".join(str(element) for element in self.elements)

    def format_tree(self, tabs: int = 0, with_children: bool = True) -> str:
        """Render this node and, optionally, every node below it.

        One node per line, indented by one tab per level below this node.
        Shared descendants are repeated under each parent, so the output for
        the full lattice grows quickly with the number of sources.
        """
        text = "\t" * tabs + str(self) + "\n"
        if with_children:
            text += "".join(child.format_tree(tabs + 1) for child in self.children)
        return text


def _mask(members: Iterable[int]) -> int:
    result = 0
    for m in members:
        result |= 1 << m
    return result


def _popcount(x: int) -> int:
    return bin(x).count("1")


def _comparable(a: int, b: int) -> bool:
    common = a & b
    return common == a or common == b


def _antichains(masks: List[int]) -> List[Tuple[int, ...]]:
    """Every non-empty antichain of the subsets in ``masks``, as index tuples."""
    found: List[Tuple[int, ...]] = []

    def extend(chain: Tuple[int, ...], start: int) -> None:
        for i in range(start, len(masks)):
            if any(_comparable(masks[i], masks[j]) for j in chain):
                continue
            grown = chain + (i,)
            found.append(grown)
            extend(grown, i + 1)

    extend((), 0)
    return found


def element_spec_from_string(spec: str) -> ElementSpec:
    """Parse ``"0,1"`` or ``"{0,1}"`` into a set of source indices."""
    body = spec.strip()
    if body.startswith("{") or body.endswith("}"):
        if not (body.startswith("{") and body.endswith("}")) or len(body) < 2:
            raise SpecificationParseError(spec, "unbalanced curly braces")
        body = body[1:-1]
    if not body.strip():
        raise SpecificationParseError(spec, "empty elements are not allowed")
    if not _ELEMENT_BODY.fullmatch(body):
        raise SpecificationParseError(spec, "expected a comma-separated list of source indices")
    return frozenset(int(token) for token in body.split(","))


def node_spec_from_string(spec: str) -> NodeSpec:
    """Parse ``"{0}{1,2}"`` into a set of sets of source indices.

    Every element must be wrapped in its own pair of curly braces, with no
    separator between elements.
    """
    text = spec.strip()
    if not (text.startswith("{") and text.endswith("}")):
        raise SpecificationParseError(spec, "does not start and end with curly braces")
    if not _NODE_SPEC.fullmatch(text):
        raise SpecificationParseError(spec, "each element must be wrapped in curly braces")
    bodies = _NODE_ELEMENT.findall(text)
    if any(not body.strip() for body in bodies):
        raise SpecificationParseError(spec, "empty elements are not allowed")
    return frozenset(element_spec_from_string(body) for body in bodies)


class RedundancyLattice:
    """
    The Williams & Beer redundancy lattice for a given number of sources.

    Nodes are all non-empty antichains of non-empty source subsets. Node
    alpha lies below node beta when every element of beta is a superset of
    some element of alpha; equivalently, when the up-set of beta (all
    elements containing an element of beta) is contained in the up-set of
    alpha. Node ids follow a linear extension of that order from the bottom
    node (every source on its own) to the top node (all sources jointly), so
    every node is created after all of its children.

    The number of nodes grows with the Dedekind numbers: 1, 4, 18, 166 and
    7579 nodes for 1 to 5 sources. Six or more sources are not practical.
    """

    def __init__(self, num_sources: int):
        """
        Args:
            num_sources: Number of source variables (at least 1)
        """
        if isinstance(num_sources, bool) or not isinstance(num_sources, int) or num_sources < 1:
            raise LatticeConstructionError(
                f"Redundancy lattice requires an integer number of sources >= 1, got {num_sources!r}"
            )
        self.num_sources = num_sources

        self._elements_by_id: Tuple[SourceElement, ...] = self._build_elements(num_sources)
        self._elements: Dict[ElementSpec, SourceElement] = {
            element.sources: element for element in self._elements_by_id
        }

        self._nodes_by_id: Tuple[LatticeNode, ...] = self._build_nodes(self._elements_by_id)
        self._nodes: Dict[NodeSpec, LatticeNode] = {node.spec: node for node in self._nodes_by_id}

        buckets: List[List[LatticeNode]] = [[] for _ in range(num_sources)]
        for node in self._nodes_by_id:
            buckets[node.interaction_order - 1].append(node)
        self._nodes_by_order: Tuple[Tuple[LatticeNode, ...], ...] = tuple(tuple(b) for b in buckets)

        self.bottom_node = self._nodes_by_id[0]
        self.top_node = self._nodes_by_id[-1]

        logger.debug(
            f"Built redundancy lattice for {num_sources} sources: "
            f"{len(self._elements_by_id)} elements, {len(self._nodes_by_id)} nodes, "
            f"{[len(b) for b in self._nodes_by_order]} nodes per interaction order"
        )

    @staticmethod
    def _build_elements(num_sources: int) -> Tuple[SourceElement, ...]:
        elements: List[SourceElement] = []
        for size in range(1, num_sources + 1):
            for members in combinations(range(num_sources), size):
                elements.append(SourceElement(id=len(elements), members=members))
        return tuple(elements)

    @staticmethod
    def _build_nodes(elements: Tuple[SourceElement, ...]) -> Tuple[LatticeNode, ...]:
        masks = [_mask(element.members) for element in elements]
        # Bitset over element ids of every element containing element i
        supersets = [
            _mask(j for j, other in enumerate(masks) if other & mask == mask)
            for mask in masks
        ]

        antichains = _antichains(masks)
        up_sets = []
        for chain in antichains:
            up = 0
            for i in chain:
                up |= supersets[i]
            up_sets.append(up)

        # Larger up-sets lie lower in the lattice
        ordering = sorted(
            range(len(antichains)),
            key=lambda a: (-_popcount(up_sets[a]), antichains[a]),
        )

        built: List[Tuple[LatticeNode, int]] = []
        for a in ordering:
            up = up_sets[a]
            below = [
                (node, node_up) for node, node_up in built
                if node_up != up and node_up & up == up
            ]
            # Nearest nodes first: anything below an accepted child is not a child
            below.sort(key=lambda pair: (_popcount(pair[1]), pair[0].id))
            children: List[Tuple[LatticeNode, int]] = []
            for node, node_up in below:
                if not any(node_up & child_up == child_up for _, child_up in children):
                    children.append((node, node_up))

            node = LatticeNode(
                id=len(built),
                elements=tuple(elements[i] for i in antichains[a]),
                children=tuple(sorted((child for child, _ in children), key=lambda c: c.id)),
            )
            built.append((node, up))

        return tuple(node for node, _ in built)

    @staticmethod
    def _node_key(spec: Union[str, Iterable[Iterable[int]]]) -> NodeSpec:
        if isinstance(spec, str):
            return node_spec_from_string(spec)
        try:
            return frozenset(frozenset(int(s) for s in element) for element in spec)
        except (TypeError, ValueError) as err:
            raise SpecificationParseError(spec, "expected an iterable of iterables of source indices") from err

    @staticmethod
    def _element_key(spec: Union[str, Iterable[int]]) -> ElementSpec:
        if isinstance(spec, str):
            return element_spec_from_string(spec)
        try:
            return frozenset(int(s) for s in spec)
        except (TypeError, ValueError) as err:
            raise SpecificationParseError(spec, "expected an iterable of source indices") from err

    def get_node(self, spec: Union[str, Iterable[Iterable[int]]]) -> Optional[LatticeNode]:
        """Look up a node by specification, e.g. ``"{0}{1,2}"`` or ``[[0], [1, 2]]``.

        Returns None when no such node exists in this lattice.
        """
        return self._nodes.get(self._node_key(spec))

    def get_element(self, spec: Union[str, Iterable[int]]) -> Optional[SourceElement]:
        """Look up a source element by specification, e.g. ``"{0,1}"`` or ``(0, 1)``."""
        return self._elements.get(self._element_key(spec))

    def children_of(self, spec: Union[str, Iterable[Iterable[int]]]) -> Optional[Tuple[LatticeNode, ...]]:
        node = self.get_node(spec)
        if node is None:
            return None
        return node.children

    def node_by_id(self, node_id: int) -> LatticeNode:
        if not 0 <= node_id < len(self._nodes_by_id):
            raise LatticeRangeError(
                f"Node id {node_id} out of range for a lattice of {len(self._nodes_by_id)} nodes"
            )
        return self._nodes_by_id[node_id]

    def element_by_id(self, element_id: int) -> SourceElement:
        if not 0 <= element_id < len(self._elements_by_id):
            raise LatticeRangeError(
                f"Element id {element_id} out of range for a lattice of {len(self._elements_by_id)} elements"
            )
        return self._elements_by_id[element_id]

    def nodes_at_order(self, order: int) -> Tuple[LatticeNode, ...]:
        """Nodes whose smallest element has ``order`` sources; empty when out of range."""
        if order < 1 or order > len(self._nodes_by_order):
            return ()
        return self._nodes_by_order[order - 1]

    def owns(self, entity: Union[LatticeNode, SourceElement]) -> bool:
        """Whether ``entity`` is the very node or element this lattice holds at its id."""
        if isinstance(entity, LatticeNode):
            table = self._nodes_by_id
        elif isinstance(entity, SourceElement):
            table = self._elements_by_id
        else:
            return False
        return 0 <= entity.id < len(table) and table[entity.id] is entity

    @property
    def elements(self) -> Tuple[SourceElement, ...]:
        return self._elements_by_id

    @property
    def nodes(self) -> Tuple[LatticeNode, ...]:
        return self._nodes_by_id

    @property
    def num_elements(self) -> int:
        return len(self._elements_by_id)

    @property
    def num_nodes(self) -> int:
        return len(self._nodes_by_id)

    def format_tree(self) -> str:
        return self.top_node.format_tree()

    def __repr__(self) -> str:
        return f"RedundancyLattice(num_sources={self.num_sources}, num_nodes={self.num_nodes})"


@lru_cache(maxsize=LATTICE_CACHE_SIZE)
def shared_lattice(num_sources: int) -> RedundancyLattice:
    """Return a cached lattice for ``num_sources``; safe to share since lattices are read-only."""
    return RedundancyLattice(num_sources)
