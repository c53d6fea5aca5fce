"""
Shared fixtures for PIDLattice tests.

These fixtures provide lattices, logic-gate data and random observation sets.
"""

import numpy as np
import pytest

from pidlattice import PartialInfoDecomposer, shared_lattice


# ============================================================================
# Logic gates
# ============================================================================

# Inputs in the order (x0, x1) = (0,0), (0,1), (1,0), (1,1)
GATE_INPUTS = [(0, 0), (0, 1), (1, 0), (1, 1)]

GATES = {
    "OR": [0, 1, 1, 1],
    "AND": [0, 0, 0, 1],
    "XOR": [0, 1, 1, 0],
    "COPY_X0": [0, 0, 1, 1],
}


def build_gate(outputs, repeats: int = 1) -> PartialInfoDecomposer:
    """A binary two-source decomposer fed each gate row ``repeats`` times."""
    pid = PartialInfoDecomposer(target_base=2, sources=2)
    for _ in range(repeats):
        for (x0, x1), y in zip(GATE_INPUTS, outputs):
            pid.add_observation(y, [x0, x1])
    return pid


@pytest.fixture
def gate():
    """Factory fixture: gate("OR") returns a decomposer fed the OR truth table."""
    def _make(name: str, repeats: int = 1) -> PartialInfoDecomposer:
        return build_gate(GATES[name], repeats=repeats)
    return _make


# ============================================================================
# Lattices
# ============================================================================

@pytest.fixture
def lattice_1():
    return shared_lattice(1)


@pytest.fixture
def lattice_2():
    return shared_lattice(2)


@pytest.fixture
def lattice_3():
    return shared_lattice(3)


# ============================================================================
# Random observations
# ============================================================================

@pytest.fixture
def rng():
    return np.random.default_rng(1234)


@pytest.fixture
def random_three_source_data(rng):
    """200 observations of three sources with bases (2, 3, 2) and a ternary target."""
    sources = np.column_stack(
        [
            rng.integers(0, 2, size=200),
            rng.integers(0, 3, size=200),
            rng.integers(0, 2, size=200),
        ]
    )
    noise = rng.integers(0, 3, size=200)
    targets = (sources[:, 0] + sources[:, 1] * sources[:, 2] + (noise == 0)) % 3
    return targets, sources
