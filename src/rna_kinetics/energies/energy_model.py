from __future__ import annotations
from dataclasses import dataclass
from typing import Optional, Protocol, Sequence, runtime_checkable

from rna_kinetics.energies.energy_types import IndexPair, NearestNeighborParams
from rna_kinetics.energies.energy_ops import (
    hairpin_energy,
    internal_loop_energy,
    loop_energy,
    multiloop_energy,
    stack_energy,
)
from rna_kinetics.utils.energy_utils import DEFAULT_T_K


@runtime_checkable
class EnergyModelProtocol(Protocol):
    """
    Interface every free energy model must implement to drive the kinetics.

    Structure energies are computed as a sum over loops, so a model only has
    to evaluate one loop at a time: the loop closed by `closing` (or the
    exterior loop when `closing` is None) that directly encloses `branches`.
    """
    temp_k: float

    def loop_energy(self, seq: str, closing: Optional[IndexPair],
                    branches: Sequence[IndexPair]) -> float: ...


@dataclass(frozen=True, slots=True)
class NearestNeighborEnergyModel:
    """
    Nearest-neighbor (Turner-style) loop energy model.

    Holds the loaded parameter tables and the temperature, and dispatches to
    the per-motif functions in `energy_ops`.

    Attributes
    ----------
    params : NearestNeighborParams
        Parsed thermodynamic parameter tables.
    temp_k : float
        Temperature in Kelvin for free energy evaluation. Defaults to 310.15 K (37 °C).
    """
    params: NearestNeighborParams
    temp_k: float = DEFAULT_T_K

    def loop_energy(self, seq: str, closing: Optional[IndexPair],
                    branches: Sequence[IndexPair]) -> float:
        return loop_energy(seq, closing, branches, self.params, self.temp_k)

    def hairpin(self, base_i: int, base_j: int, seq: str) -> float:
        """Free energy of a hairpin loop closed by the pair (i, j)."""
        return hairpin_energy(base_i, base_j, seq, self.params, self.temp_k)

    def stack(self, base_i: int, base_j: int, seq: str) -> float:
        """Free energy of pair (i, j) stacked on (i + 1, j - 1)."""
        return stack_energy(base_i, base_j, seq, self.params, self.temp_k)

    def internal(self, base_i: int, base_j: int, base_k: int, base_l: int, seq: str) -> float:
        """Free energy of the bulge/internal loop between (i, j) and (k, l)."""
        return internal_loop_energy(base_i, base_j, base_k, base_l, seq, self.params, self.temp_k)

    def multiloop(self, closing: IndexPair, branches: Sequence[IndexPair], seq: str) -> float:
        """Free energy of a multiloop closed by `closing` around `branches`."""
        return multiloop_energy(closing, branches, seq, self.params)
