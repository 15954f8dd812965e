from __future__ import annotations
from dataclasses import dataclass, field
from typing import Optional, Tuple

from rna_kinetics.errors import StructureError
from rna_kinetics.structures.moves import Move, MoveKind

UNPAIRED = -1


@dataclass(frozen=True, slots=True)
class SecondaryStructure:
    """
    Immutable set of non-overlapping base pairs over a sequence of fixed length.

    Two structures are equal when they have the same length and the same pair
    set. The pair table and the cached free energy do not take part in
    equality or hashing.

    Parameters
    ----------
    length : int
        Number of nucleotides.
    pairs : frozenset of (int, int)
        Base pairs as zero-based `(i, j)` with `i < j`.
    energy : float, optional
        Cached free energy in kcal/mol, filled by the structure model.

    Raises
    ------
    StructureError
        If a pair is out of range, not ordered, or shares an index with another pair.
    """
    length: int
    pairs: frozenset = frozenset()
    energy: Optional[float] = field(default=None, compare=False, hash=False, repr=False)
    partners: Tuple[int, ...] = field(init=False, compare=False, hash=False, repr=False)

    def __post_init__(self) -> None:
        if self.length < 0:
            raise StructureError(f"Negative structure length {self.length}.")

        table = [UNPAIRED] * self.length
        for pair in self.pairs:
            base_i, base_j = pair
            if not (0 <= base_i < base_j < self.length):
                raise StructureError(f"Pair {pair} out of range for length {self.length}.")
            if table[base_i] != UNPAIRED or table[base_j] != UNPAIRED:
                raise StructureError(f"Pair {pair} shares a position with another pair.")
            table[base_i] = base_j
            table[base_j] = base_i

        object.__setattr__(self, "pairs", frozenset(self.pairs))
        object.__setattr__(self, "partners", tuple(table))

    # --- Constructors ---
    @classmethod
    def open_chain(cls, length: int) -> "SecondaryStructure":
        """The structure with no base pairs."""
        return cls(length, frozenset())

    @classmethod
    def from_dot_bracket(cls, dot_bracket: str) -> "SecondaryStructure":
        """
        Parse dot-bracket notation (`.`, `(`, `)`).

        Raises
        ------
        StructureError
            On unbalanced brackets or characters other than `.()`.
        """
        stack: list[int] = []
        pairs: set[Tuple[int, int]] = set()
        for pos, char in enumerate(dot_bracket):
            if char == "(":
                stack.append(pos)
            elif char == ")":
                if not stack:
                    raise StructureError(f"Unbalanced ')' at position {pos} in {dot_bracket!r}.")
                pairs.add((stack.pop(), pos))
            elif char != ".":
                raise StructureError(f"Invalid character {char!r} at position {pos} in {dot_bracket!r}.")

        if stack:
            raise StructureError(f"Unbalanced '(' at position {stack[-1]} in {dot_bracket!r}.")

        return cls(len(dot_bracket), frozenset(pairs))

    # --- Views ---
    def to_dot_bracket(self) -> str:
        """
        Render as dot-bracket. Only meaningful for non-crossing structures;
        crossing pairs are still written as `(`/`)` and will not round-trip.
        """
        chars = ["."] * self.length
        for base_i, base_j in self.pairs:
            chars[base_i] = "("
            chars[base_j] = ")"
        return "".join(chars)

    def sorted_pairs(self) -> list[Tuple[int, int]]:
        return sorted(self.pairs)

    def __len__(self) -> int:
        return self.length

    def __str__(self) -> str:
        return self.to_dot_bracket()

    # --- Transitions ---
    def with_pair(self, base_i: int, base_j: int, energy: Optional[float] = None) -> "SecondaryStructure":
        """Return a copy with pair (i, j) added."""
        if (base_i, base_j) in self.pairs:
            raise StructureError(f"Pair {(base_i, base_j)} already present.")
        return SecondaryStructure(self.length, self.pairs | {(base_i, base_j)}, energy)

    def without_pair(self, base_i: int, base_j: int, energy: Optional[float] = None) -> "SecondaryStructure":
        """Return a copy with pair (i, j) removed."""
        if (base_i, base_j) not in self.pairs:
            raise StructureError(f"Pair {(base_i, base_j)} not present.")
        return SecondaryStructure(self.length, self.pairs - {(base_i, base_j)}, energy)

    def apply(self, move: Move) -> "SecondaryStructure":
        """
        Apply a move. When this structure's energy is cached, the result's
        energy is pre-filled with `energy + move.delta_energy`.
        """
        energy = None if self.energy is None else self.energy + move.delta_energy
        if move.kind is MoveKind.ADD:
            return self.with_pair(move.base_i, move.base_j, energy)
        return self.without_pair(move.base_i, move.base_j, energy)
