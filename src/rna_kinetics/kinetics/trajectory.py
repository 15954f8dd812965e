from __future__ import annotations
from dataclasses import dataclass, field
from enum import Enum
from typing import Iterator, List, Optional

from rna_kinetics.structures.secondary_structure import SecondaryStructure


class TrajectoryStatus(str, Enum):
    """How a trajectory ended."""
    COMPLETED = "completed"   # reached the end time
    ABSORBED = "absorbed"     # zero outgoing flux
    CANCELLED = "cancelled"   # stop request or wall-clock budget


@dataclass(frozen=True, slots=True)
class TrajectoryRecord:
    """
    One visited structure.

    Attributes
    ----------
    structure : SecondaryStructure
        The structure occupied.
    energy : float
        Its free energy (kcal/mol).
    arrival_time : float
        Simulated time the structure was entered.
    waiting_time : float
        Time spent in it. For the last record of a completed trajectory this is
        truncated at the end time.
    mean_waiting_time : float or None
        `1 / flux` of the structure; `inf` when the flux is zero, `None` when
        the flux was never evaluated (end time 0, cancellation).
    """
    structure: SecondaryStructure
    energy: float
    arrival_time: float
    waiting_time: float
    mean_waiting_time: Optional[float]

    @property
    def dot_bracket(self) -> str:
        return self.structure.to_dot_bracket()

    @property
    def departure_time(self) -> float:
        return self.arrival_time + self.waiting_time


@dataclass(slots=True)
class Trajectory:
    """Records of one simulation run, in visitation order."""
    sequence: str
    t_end: float
    records: List[TrajectoryRecord] = field(default_factory=list)
    status: TrajectoryStatus = TrajectoryStatus.COMPLETED

    def __len__(self) -> int:
        return len(self.records)

    def __iter__(self) -> Iterator[TrajectoryRecord]:
        return iter(self.records)

    @property
    def final(self) -> TrajectoryRecord:
        return self.records[-1]

    @property
    def covered_time(self) -> float:
        """Total time spanned by the records."""
        return sum(r.waiting_time for r in self.records)
