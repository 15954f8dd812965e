"""
Neighbor generation for the folding Markov chain.

Two structures are neighbors when they differ by exactly one base pair. The
energy change of a move is computed locally from the loop decomposition:

* inserting `(i, j)` into loop `L` splits `L` into the new loop closed by
  `(i, j)` and what remains of `L`;
* removing `(i, j)` merges the loop it closes with its parent loop.

Only the loops involved are re-evaluated.
"""
from __future__ import annotations
from typing import TYPE_CHECKING, List, Optional, Sequence, Tuple

from rna_kinetics.structures.loop_decomposition import LoopDecomposition
from rna_kinetics.structures.moves import Move, MoveKind
from rna_kinetics.structures.secondary_structure import SecondaryStructure

if TYPE_CHECKING:
    from rna_kinetics.kinetics.structure_model import StructureModel

IndexPair = Tuple[int, int]


def removal_move(
    model: "StructureModel",
    pair: IndexPair,
    outer_closing: Optional[IndexPair],
    outer_branches: Sequence[IndexPair],
    inner_branches: Sequence[IndexPair],
    outer_energy: float,
    inner_energy: float,
) -> Move:
    """`DEL` move of `pair`, merging the loop it closes into its parent loop."""
    merged_branches = sorted([b for b in outer_branches if b != pair] + list(inner_branches))
    merged = model.energy_model.loop_energy(model.sequence, outer_closing, merged_branches)
    return Move(MoveKind.DEL, pair[0], pair[1], merged - outer_energy - inner_energy)


def loop_insertions(
    model: "StructureModel",
    closing: Optional[IndexPair],
    branches: Sequence[IndexPair],
    unpaired: Sequence[int],
    loop_energy: float,
) -> List[Move]:
    """
    `ADD` moves between unpaired positions of one loop, in `(i, j)` order.

    Both positions being unpaired members of the same loop is exactly the
    non-crossing condition; the pair must also be allowed by the pairing rules
    (including the minimum hairpin size).
    """
    seq = model.sequence
    energy_model = model.energy_model
    moves: List[Move] = []

    for idx, base_i in enumerate(unpaired):
        candidates = model.partner_candidates(base_i)
        if not candidates:
            continue
        for base_j in unpaired[idx + 1:]:
            if base_j not in candidates:
                continue
            inside = [b for b in branches if base_i < b[0] and b[1] < base_j]
            outside = sorted(
                [b for b in branches if b[1] < base_i or b[0] > base_j] + [(base_i, base_j)]
            )
            delta = (
                energy_model.loop_energy(seq, (base_i, base_j), inside)
                + energy_model.loop_energy(seq, closing, outside)
                - loop_energy
            )
            moves.append(Move(MoveKind.ADD, base_i, base_j, delta))

    return moves


def removal_moves(model: "StructureModel", decomposition: LoopDecomposition,
                  loop_energies: List[float]) -> List[Move]:
    """One `DEL` move per existing pair, sorted by `(i, j)`."""
    moves: List[Move] = []
    for pair in sorted(decomposition.inner_of):
        inner_id = decomposition.inner_of[pair]
        outer_id = decomposition.parent_of[pair]
        outer = decomposition.loops[outer_id]
        moves.append(removal_move(
            model, pair, outer.closing, outer.branches, decomposition.loops[inner_id].branches,
            loop_energies[outer_id], loop_energies[inner_id],
        ))
    return moves


def insertion_moves(model: "StructureModel", decomposition: LoopDecomposition,
                    loop_energies: List[float]) -> List[Move]:
    """Every pair that can be added without crossing, sorted by `(i, j)`."""
    moves: List[Move] = []
    for loop_id, loop in enumerate(decomposition.loops):
        moves.extend(loop_insertions(model, loop.closing, loop.branches, loop.unpaired,
                                     loop_energies[loop_id]))

    moves.sort(key=lambda m: (m.base_i, m.base_j))
    return moves


def enumerate_moves(model: "StructureModel", structure: SecondaryStructure,
                    decomposition: Optional[LoopDecomposition] = None) -> List[Move]:
    """
    All moves out of `structure` in canonical order: removals by `(i, j)`,
    then insertions by `(i, j)`.

    The structure's energy is cached as a side effect.
    """
    if decomposition is None:
        decomposition = LoopDecomposition(structure)
    loop_energies = model.loop_energies(decomposition)
    if structure.energy is None:
        object.__setattr__(structure, "energy", sum(loop_energies))

    return removal_moves(model, decomposition, loop_energies) + insertion_moves(
        model, decomposition, loop_energies
    )
