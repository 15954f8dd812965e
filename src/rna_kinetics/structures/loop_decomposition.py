from __future__ import annotations
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple

from rna_kinetics.errors import StructureError
from rna_kinetics.structures.secondary_structure import UNPAIRED, SecondaryStructure

IndexPair = Tuple[int, int]

# Loop id of the exterior loop.
EXTERIOR = 0


@dataclass(slots=True)
class Loop:
    """
    One loop of a secondary structure.

    Attributes
    ----------
    closing : (int, int) or None
        Pair closing the loop; None for the exterior loop.
    branches : list of (int, int)
        Pairs directly enclosed by the loop, 5'→3'.
    unpaired : list of int
        Unpaired positions belonging to the loop, ascending.
    """
    closing: Optional[IndexPair]
    branches: List[IndexPair] = field(default_factory=list)
    unpaired: List[int] = field(default_factory=list)


class LoopDecomposition:
    """
    Decompose a non-crossing structure into its loops.

    Every pair `(i, j)` closes exactly one loop and is a branch of exactly one
    enclosing loop (its parent). Every unpaired position belongs to exactly one
    loop. Loop 0 is the exterior loop; the remaining loops are numbered in the
    order their closing pairs appear from 5' to 3'.

    Parameters
    ----------
    structure : SecondaryStructure
        The structure to decompose.

    Raises
    ------
    StructureError
        If the structure has crossing pairs.
    """

    def __init__(self, structure: SecondaryStructure) -> None:
        self.structure = structure
        self.loops: List[Loop] = [Loop(closing=None)]
        # Unpaired position -> loop id.
        self.loop_of: Dict[int, int] = {}
        # Pair -> id of the loop it closes.
        self.inner_of: Dict[IndexPair, int] = {}
        # Pair -> id of the loop it is a branch of.
        self.parent_of: Dict[IndexPair, int] = {}
        self._build()

    def _build(self) -> None:
        partners = self.structure.partners
        open_loops = [EXTERIOR]

        for pos, partner in enumerate(partners):
            current = open_loops[-1]
            if partner == UNPAIRED:
                self.loops[current].unpaired.append(pos)
                self.loop_of[pos] = current
            elif partner > pos:
                pair = (pos, partner)
                self.loops[current].branches.append(pair)
                self.parent_of[pair] = current
                self.inner_of[pair] = len(self.loops)
                open_loops.append(len(self.loops))
                self.loops.append(Loop(closing=pair))
            else:
                closing = self.loops[current].closing
                if closing is None or closing != (partner, pos):
                    raise StructureError(
                        f"Crossing pair ({partner}, {pos}) in {self.structure.to_dot_bracket()!r}."
                    )
                open_loops.pop()

    def __len__(self) -> int:
        return len(self.loops)

    def __iter__(self):
        return iter(self.loops)

    def loop(self, loop_id: int) -> Loop:
        return self.loops[loop_id]

    def hairpins(self) -> List[Loop]:
        """Loops closed by a pair that enclose no other pair."""
        return [lp for lp in self.loops if lp.closing is not None and not lp.branches]
