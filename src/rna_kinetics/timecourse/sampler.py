from __future__ import annotations
from dataclasses import dataclass
from typing import Optional

import numpy as np

from rna_kinetics.kinetics.trajectory import TrajectoryRecord, TrajectoryStatus
from rna_kinetics.timecourse.macrostates import MacrostateRegistry


@dataclass(frozen=True, slots=True)
class OccupancySample:
    """
    Macro-state occupancy of one trajectory at every checkpoint.

    Attributes
    ----------
    indicators : numpy.ndarray
        `uint8` array of shape (checkpoints, columns); 1 when the structure
        occupied at that checkpoint belongs to the column's macro-state.
    sampled : numpy.ndarray
        `bool` array of shape (checkpoints,); False for checkpoints the
        trajectory never reached (absorbed or cancelled early).
    status : TrajectoryStatus
        How the trajectory ended.
    """
    indicators: np.ndarray
    sampled: np.ndarray
    status: TrajectoryStatus


class CheckpointSampler:
    """
    Assign streamed trajectory records to checkpoint times.

    Checkpoint `t` belongs to record `r` when `r.arrival <= t < r.arrival + r.waiting`.
    On `finish`, the last record of a completed trajectory also takes every
    checkpoint left (including `t_end`); an absorbed or cancelled trajectory's
    last record only takes the checkpoints at or before its arrival.

    Parameters
    ----------
    times : numpy.ndarray
        Ascending checkpoint times.
    registry : MacrostateRegistry
        Classifier for the occupied structures.
    """

    def __init__(self, times: np.ndarray, registry: MacrostateRegistry) -> None:
        self.times = np.asarray(times, dtype=np.float64)
        self.registry = registry
        self.reset()

    def reset(self) -> None:
        self._next = 0
        self._last: Optional[TrajectoryRecord] = None
        self._indicators = np.zeros((len(self.times), len(self.registry.columns)), dtype=np.uint8)
        self._sampled = np.zeros(len(self.times), dtype=bool)

    def _assign(self, record: TrajectoryRecord, upto: int) -> None:
        if upto <= self._next:
            return
        row = self.registry.indicator(record.structure)
        self._indicators[self._next:upto] = row
        self._sampled[self._next:upto] = True
        self._next = upto

    def observe(self, record: TrajectoryRecord) -> None:
        """Assign the checkpoints strictly before this record's departure."""
        upto = int(np.searchsorted(self.times, record.departure_time, side="left"))
        self._assign(record, upto)
        self._last = record

    def finish(self, status: TrajectoryStatus) -> OccupancySample:
        """Close the trajectory and return its occupancy sample."""
        if self._last is not None:
            if status is TrajectoryStatus.COMPLETED:
                upto = len(self.times)
            else:
                upto = int(np.searchsorted(self.times, self._last.arrival_time, side="right"))
            self._assign(self._last, upto)

        sample = OccupancySample(self._indicators, self._sampled, status)
        self.reset()
        return sample
