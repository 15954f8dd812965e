"""
Incremental move bookkeeping for the SSA engine.

A move only changes the loops it touches: inserting `(i, j)` splits one loop
in two, removing `(i, j)` merges two loops into one. The cache keeps, per
loop, its energy and its insertion moves, and per pair its removal move, and
after each step recomputes only what depends on the changed loops:

* the insertion moves of the changed loops;
* the removal moves of the pairs closing or branching off a changed loop.

Loops are keyed by their closing pair (`None` for the exterior loop), so the
key of a loop that survives a move does not change.
"""
from __future__ import annotations
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Dict, List, Optional, Tuple

import numpy as np

from rna_kinetics.kinetics.neighbors import loop_insertions, removal_move
from rna_kinetics.kinetics.rate_models import RateModelProtocol
from rna_kinetics.structures.loop_decomposition import LoopDecomposition
from rna_kinetics.structures.moves import Move, MoveKind
from rna_kinetics.structures.secondary_structure import SecondaryStructure

if TYPE_CHECKING:
    from rna_kinetics.kinetics.structure_model import StructureModel

IndexPair = Tuple[int, int]
LoopKey = Optional[IndexPair]
RatedMove = Tuple[Move, float]


@dataclass(slots=True)
class _LoopState:
    closing: LoopKey
    branches: List[IndexPair]
    unpaired: List[int]
    energy: float = 0.0
    insertions: List[RatedMove] = field(default_factory=list)


class LoopMoveCache:
    """
    Moves and rates out of the current structure, updated loop by loop.

    Parameters
    ----------
    model : StructureModel
        Sequence, pairing rules and energy model.
    rate_model : RateModelProtocol
        Converts energy changes into rates; rates are cached with the moves.
    structure : SecondaryStructure
        Starting structure (assumed valid).
    decomposition : LoopDecomposition, optional
        Precomputed decomposition of `structure`.
    """

    def __init__(
        self,
        model: "StructureModel",
        rate_model: RateModelProtocol,
        structure: SecondaryStructure,
        decomposition: Optional[LoopDecomposition] = None,
    ) -> None:
        self.model = model
        self.rate_model = rate_model
        if decomposition is None:
            decomposition = LoopDecomposition(structure)

        self._loops: Dict[LoopKey, _LoopState] = {}
        self._loop_of: Dict[int, LoopKey] = {}
        self._parent_of: Dict[IndexPair, LoopKey] = {}
        self._removals: Dict[IndexPair, RatedMove] = {}

        for loop in decomposition.loops:
            self._loops[loop.closing] = _LoopState(loop.closing, list(loop.branches), list(loop.unpaired))
            for pos in loop.unpaired:
                self._loop_of[pos] = loop.closing
        for pair, parent_id in decomposition.parent_of.items():
            self._parent_of[pair] = decomposition.loops[parent_id].closing

        for key in self._loops:
            self._refresh_loop(key)
        for pair in self._parent_of:
            self._refresh_removal(pair)

    # --- Queries ---
    @property
    def energy(self) -> float:
        """Free energy of the current structure (sum of cached loop energies)."""
        return sum(state.energy for state in self._loops.values())

    def transitions(self) -> Tuple[List[Move], np.ndarray]:
        """Moves in canonical order (removals, then insertions, each by `(i, j)`) and their rates."""
        rated = [self._removals[pair] for pair in sorted(self._removals)]
        rated.extend(sorted(
            (item for state in self._loops.values() for item in state.insertions),
            key=lambda item: (item[0].base_i, item[0].base_j),
        ))
        moves = [move for move, _ in rated]
        rates = np.fromiter((rate for _, rate in rated), dtype=np.float64, count=len(rated))
        return moves, rates

    def moves(self) -> List[Move]:
        return self.transitions()[0]

    # --- Updates ---
    def apply(self, move: Move) -> None:
        """Update the cache after `move` was applied to the structure."""
        if move.kind is MoveKind.ADD:
            self._insert(move.pair)
        else:
            self._remove(move.pair)

    def _insert(self, pair: IndexPair) -> None:
        base_i, base_j = pair
        key = self._loop_of.pop(base_i)
        del self._loop_of[base_j]
        outer = self._loops[key]

        inside = [b for b in outer.branches if base_i < b[0] and b[1] < base_j]
        enclosed = [p for p in outer.unpaired if base_i < p < base_j]
        outer.branches = sorted([b for b in outer.branches if b[1] < base_i or b[0] > base_j] + [pair])
        outer.unpaired = [p for p in outer.unpaired if p < base_i or p > base_j]

        self._loops[pair] = _LoopState(pair, inside, enclosed)
        for pos in enclosed:
            self._loop_of[pos] = pair
        for branch in inside:
            self._parent_of[branch] = pair
        self._parent_of[pair] = key

        self._refresh_loop(key)
        self._refresh_loop(pair)
        self._refresh_removals_around(key)
        for branch in inside:
            self._refresh_removal(branch)

    def _remove(self, pair: IndexPair) -> None:
        inner = self._loops.pop(pair)
        key = self._parent_of.pop(pair)
        del self._removals[pair]
        outer = self._loops[key]

        outer.branches = sorted([b for b in outer.branches if b != pair] + inner.branches)
        freed = inner.unpaired + list(pair)
        outer.unpaired = sorted(outer.unpaired + freed)
        for pos in freed:
            self._loop_of[pos] = key
        for branch in inner.branches:
            self._parent_of[branch] = key

        self._refresh_loop(key)
        self._refresh_removals_around(key)

    def _refresh_loop(self, key: LoopKey) -> None:
        state = self._loops[key]
        state.energy = self.model.energy_model.loop_energy(self.model.sequence, state.closing, state.branches)
        rate = self.rate_model.rate
        state.insertions = [
            (move, rate(move.delta_energy))
            for move in loop_insertions(self.model, state.closing, state.branches, state.unpaired, state.energy)
        ]

    def _refresh_removal(self, pair: IndexPair) -> None:
        inner = self._loops[pair]
        outer = self._loops[self._parent_of[pair]]
        move = removal_move(self.model, pair, outer.closing, outer.branches, inner.branches,
                            outer.energy, inner.energy)
        self._removals[pair] = (move, self.rate_model.rate(move.delta_energy))

    def _refresh_removals_around(self, key: LoopKey) -> None:
        # Pairs whose inner or parent loop is `key`.
        if key is not None:
            self._refresh_removal(key)
        for branch in self._loops[key].branches:
            self._refresh_removal(branch)
