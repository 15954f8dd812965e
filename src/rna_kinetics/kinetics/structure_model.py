from __future__ import annotations
import logging
from typing import Dict, FrozenSet, List, Optional, Tuple

from rna_kinetics.energies.energy_loader import NearestNeighborParamLoader
from rna_kinetics.energies.energy_model import EnergyModelProtocol, NearestNeighborEnergyModel
from rna_kinetics.errors import StructureError
from rna_kinetics.kinetics.neighbors import enumerate_moves
from rna_kinetics.rules.constraints import MIN_HAIRPIN_UNPAIRED, can_pair, pairable_positions
from rna_kinetics.structures.loop_decomposition import LoopDecomposition
from rna_kinetics.structures.moves import Move
from rna_kinetics.structures.secondary_structure import SecondaryStructure
from rna_kinetics.utils.nucleotide_utils import normalize_sequence

logger = logging.getLogger(__name__)


class StructureModel:
    """
    Validity rules, free energy and neighborhood of secondary structures on one sequence.

    A structure is valid when its length equals the sequence length, its pairs
    do not cross, every pair is AU, GC or GU, and every hairpin loop has at
    least `MIN_HAIRPIN_UNPAIRED` unpaired nucleotides.

    Parameters
    ----------
    sequence : str
        RNA sequence (case-insensitive, `T` accepted as `U`).
    energy_model : EnergyModelProtocol, optional
        Loop energy model. Defaults to `NearestNeighborEnergyModel` with the
        bundled parameter set at 37 °C.

    Raises
    ------
    SequenceError
        If the sequence is empty or contains invalid symbols.
    """

    def __init__(self, sequence: str, energy_model: Optional[EnergyModelProtocol] = None) -> None:
        self.sequence = normalize_sequence(sequence)
        if energy_model is None:
            energy_model = NearestNeighborEnergyModel(NearestNeighborParamLoader().load())
        self.energy_model = energy_model
        self._partner_candidates: Dict[int, FrozenSet[int]] = {
            i: frozenset(js) for i, js in pairable_positions(self.sequence).items()
        }

    def __len__(self) -> int:
        return len(self.sequence)

    @property
    def temp_k(self) -> float:
        return self.energy_model.temp_k

    def partner_candidates(self, pos: int) -> FrozenSet[int]:
        """Downstream positions `pos` may pair with (chemistry and hairpin size only)."""
        return self._partner_candidates[pos]

    # --- Validity ---
    def validate(self, structure: SecondaryStructure) -> LoopDecomposition:
        """
        Check every validity rule and return the loop decomposition.

        Raises
        ------
        StructureError
            Naming the first violated rule.
        """
        if structure.length != len(self.sequence):
            raise StructureError(
                f"Structure length {structure.length} does not match sequence length {len(self.sequence)}."
            )

        for base_i, base_j in structure.sorted_pairs():
            if not can_pair(self.sequence[base_i], self.sequence[base_j]):
                raise StructureError(
                    f"Pair ({base_i}, {base_j}) {self.sequence[base_i]}-{self.sequence[base_j]} cannot pair."
                )

        decomposition = LoopDecomposition(structure)
        for hairpin in decomposition.hairpins():
            if len(hairpin.unpaired) < MIN_HAIRPIN_UNPAIRED:
                raise StructureError(
                    f"Hairpin closed by {hairpin.closing} has {len(hairpin.unpaired)} unpaired "
                    f"nucleotide(s); at least {MIN_HAIRPIN_UNPAIRED} required."
                )

        return decomposition

    def is_valid(self, structure: SecondaryStructure) -> bool:
        try:
            self.validate(structure)
        except StructureError:
            return False
        return True

    def parse(self, dot_bracket: str) -> SecondaryStructure:
        """Parse and validate a dot-bracket string, caching its energy."""
        structure = SecondaryStructure.from_dot_bracket(dot_bracket.strip())
        self.energy(structure, self.validate(structure))
        return structure

    # --- Energy ---
    def loop_energies(self, decomposition: LoopDecomposition) -> List[float]:
        """Free energy of every loop, indexed by loop id."""
        return [
            self.energy_model.loop_energy(self.sequence, loop.closing, loop.branches)
            for loop in decomposition.loops
        ]

    def energy(self, structure: SecondaryStructure,
               decomposition: Optional[LoopDecomposition] = None) -> float:
        """
        Free energy of `structure` in kcal/mol as the sum of its loop energies.

        The result is cached on the structure instance.
        """
        if structure.energy is not None:
            return structure.energy

        if decomposition is None:
            decomposition = LoopDecomposition(structure)
        total = sum(self.loop_energies(decomposition))
        object.__setattr__(structure, "energy", total)
        return total

    # --- Neighborhood ---
    def moves(self, structure: SecondaryStructure) -> List[Move]:
        """All single-pair insertions and removals, in canonical order."""
        return enumerate_moves(self, structure)

    def neighbors(self, structure: SecondaryStructure) -> List[Tuple[Move, SecondaryStructure]]:
        """Moves paired with the structures they lead to (energies pre-filled)."""
        self.energy(structure)
        return [(move, structure.apply(move)) for move in self.moves(structure)]
