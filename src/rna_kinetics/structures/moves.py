from __future__ import annotations
from dataclasses import dataclass
from enum import Enum


class MoveKind(str, Enum):
    """Elementary transitions between secondary structures."""
    # Removals sort before insertions in the canonical move order.
    DEL = "DEL"
    ADD = "ADD"


@dataclass(frozen=True, slots=True)
class Move:
    """
    A single base-pair insertion (`ADD`) or removal (`DEL`).

    Parameters
    ----------
    kind : MoveKind
        Insertion or removal.
    base_i, base_j : int
        The pair being added or removed, `base_i < base_j`.
    delta_energy : float
        Free energy change of the move in kcal/mol (target minus source).
    """
    kind: MoveKind
    base_i: int
    base_j: int
    delta_energy: float = 0.0

    @property
    def pair(self) -> tuple[int, int]:
        return self.base_i, self.base_j

    def inverse(self) -> "Move":
        """The move that undoes this one (ADD <-> DEL, negated ΔE)."""
        kind = MoveKind.DEL if self.kind is MoveKind.ADD else MoveKind.ADD
        return Move(kind, self.base_i, self.base_j, -self.delta_energy)

    def sort_key(self) -> tuple[int, int, int]:
        return 0 if self.kind is MoveKind.DEL else 1, self.base_i, self.base_j
