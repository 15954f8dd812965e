"""
Gillespie stochastic simulation of secondary-structure folding.

Each step reads the moves out of the current structure and their rates from a
per-loop cache (updated only where the last move changed the loops), draws an
exponential waiting time with rate equal to the total flux, and picks the next
move with probability proportional to its rate.
"""
from __future__ import annotations
import logging
import math
import time
from typing import Callable, Generator, List, Optional, Tuple

import numpy as np

from rna_kinetics.kinetics.move_cache import LoopMoveCache
from rna_kinetics.kinetics.rate_models import Metropolis, RateModelProtocol
from rna_kinetics.kinetics.structure_model import StructureModel
from rna_kinetics.kinetics.trajectory import Trajectory, TrajectoryRecord, TrajectoryStatus
from rna_kinetics.structures.moves import Move
from rna_kinetics.structures.secondary_structure import SecondaryStructure

logger = logging.getLogger(__name__)

RecordCallback = Callable[[TrajectoryRecord], None]
StopPredicate = Callable[[], bool]


def select_move(rates: np.ndarray, rng: np.random.Generator) -> int:
    """
    Pick an index with probability proportional to `rates`.

    Draws `u` uniformly in `[0, flux)` and returns the first index whose
    cumulative rate exceeds `u`. Zero-rate entries are never returned.

    Raises
    ------
    ValueError
        If the rates sum to zero.
    """
    cumulative = np.cumsum(rates)
    flux = float(cumulative[-1]) if cumulative.size else 0.0
    if flux <= 0.0:
        raise ValueError("Cannot select from zero total flux.")

    u = rng.random() * flux
    idx = int(np.searchsorted(cumulative, u, side="right"))
    if idx >= len(rates):
        # u rounded up to flux; fall back to the last move with a positive rate.
        idx = int(np.flatnonzero(rates > 0)[-1])
    return idx


class SSAEngine:
    """
    Kinetic Monte Carlo engine over the structures of one sequence.

    Parameters
    ----------
    structure_model : StructureModel
        Validity, energy and neighborhood of structures.
    rate_model : RateModelProtocol, optional
        Rate law, by default Metropolis at the energy model's temperature.
    """

    def __init__(self, structure_model: StructureModel,
                 rate_model: Optional[RateModelProtocol] = None) -> None:
        self.structure_model = structure_model
        self.rate_model = rate_model if rate_model is not None else Metropolis(temp_k=structure_model.temp_k)

    def transition_rates(self, structure: SecondaryStructure) -> Tuple[List[Move], np.ndarray]:
        """Moves out of `structure` in canonical order and their rates."""
        moves = self.structure_model.moves(structure)
        rates = np.fromiter(
            (self.rate_model.rate(m.delta_energy) for m in moves), dtype=np.float64, count=len(moves)
        )
        return moves, rates

    def iter_records(
        self,
        initial: SecondaryStructure,
        t_end: float,
        rng: np.random.Generator,
        should_stop: Optional[StopPredicate] = None,
        max_wall_seconds: Optional[float] = None,
    ) -> Generator[TrajectoryRecord, None, TrajectoryStatus]:
        """
        Yield trajectory records lazily; the generator's return value is the
        `TrajectoryStatus`.

        Raises
        ------
        StructureError
            If `initial` is not valid for the sequence (before any step).
        ValueError
            If `t_end` is negative.
        """
        if t_end < 0 or math.isnan(t_end):
            raise ValueError(f"End time must be >= 0, got {t_end}.")

        model = self.structure_model
        decomposition = model.validate(initial)
        structure = initial
        energy = model.energy(structure, decomposition)
        now = 0.0

        if t_end == 0:
            yield TrajectoryRecord(structure, energy, 0.0, 0.0, None)
            return TrajectoryStatus.COMPLETED

        cache = LoopMoveCache(model, self.rate_model, structure, decomposition)
        started = time.monotonic()
        steps = 0
        while True:
            if (should_stop is not None and should_stop()) or (
                max_wall_seconds is not None and time.monotonic() - started >= max_wall_seconds
            ):
                logger.info("Trajectory cancelled at t=%.6e after %d steps", now, steps)
                yield TrajectoryRecord(structure, energy, now, 0.0, None)
                return TrajectoryStatus.CANCELLED

            moves, rates = cache.transitions()
            flux = float(rates.sum())
            if flux <= 0.0:
                logger.warning(
                    "Zero outgoing flux from %s at t=%.6e; trajectory absorbed",
                    structure.to_dot_bracket(), now,
                )
                yield TrajectoryRecord(structure, energy, now, 0.0, math.inf)
                return TrajectoryStatus.ABSORBED

            waiting = float(rng.exponential(1.0 / flux))
            if now + waiting >= t_end:
                yield TrajectoryRecord(structure, energy, now, t_end - now, 1.0 / flux)
                logger.debug("Trajectory completed after %d steps", steps)
                return TrajectoryStatus.COMPLETED

            move = moves[select_move(rates, rng)]
            yield TrajectoryRecord(structure, energy, now, waiting, 1.0 / flux)

            now += waiting
            structure = structure.apply(move)
            cache.apply(move)
            energy = model.energy(structure)
            steps += 1

    def run(
        self,
        initial: SecondaryStructure,
        t_end: float,
        rng: np.random.Generator,
        callback: Optional[RecordCallback] = None,
        should_stop: Optional[StopPredicate] = None,
        max_wall_seconds: Optional[float] = None,
        keep_records: bool = True,
    ) -> Trajectory:
        """
        Simulate one trajectory from `initial` until `t_end`.

        Parameters
        ----------
        initial : SecondaryStructure
            Starting structure, validated before the first step.
        t_end : float
            Simulated end time (s).
        rng : numpy.random.Generator
            Private random stream of this trajectory.
        callback : callable, optional
            Called with every record as soon as it is produced.
        should_stop : callable, optional
            Checked between steps; returning True cancels the trajectory.
        max_wall_seconds : float, optional
            Wall-clock budget; exceeding it cancels the trajectory.
        keep_records : bool, optional
            When False only the last record is kept (for callers that consume
            records through `callback`).

        Returns
        -------
        Trajectory
            All records plus the termination status.
        """
        trajectory = Trajectory(sequence=self.structure_model.sequence, t_end=t_end)
        records = self.iter_records(initial, t_end, rng, should_stop, max_wall_seconds)
        while True:
            try:
                record = next(records)
            except StopIteration as stop:
                trajectory.status = stop.value
                break
            if keep_records or not trajectory.records:
                trajectory.records.append(record)
            else:
                trajectory.records[-1] = record
            if callback is not None:
                callback(record)

        return trajectory
