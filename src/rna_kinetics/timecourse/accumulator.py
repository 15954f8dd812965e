"""
Run many independent trajectories and accumulate their macro-state occupancy.

Trajectory `k` (counted over the whole lifetime of a timeline, not just this
invocation) draws from its own random stream derived from `(seed, k)`.
Continuing a saved timeline with the same seed therefore gives exactly the
same statistics as running all trajectories at once.
"""
from __future__ import annotations
import logging
from concurrent.futures import FIRST_COMPLETED, Future, ProcessPoolExecutor, wait
from dataclasses import dataclass
from typing import Dict, List, Optional, Tuple

import numpy as np
from tqdm import tqdm

from rna_kinetics.kinetics.rate_models import RateModelProtocol
from rna_kinetics.kinetics.ssa import SSAEngine
from rna_kinetics.kinetics.structure_model import StructureModel
from rna_kinetics.structures.secondary_structure import SecondaryStructure
from rna_kinetics.timecourse.macrostates import MacrostateRegistry
from rna_kinetics.timecourse.sampler import CheckpointSampler, OccupancySample
from rna_kinetics.timecourse.schedule import CheckpointSchedule
from rna_kinetics.timecourse.timeline import Timeline

logger = logging.getLogger(__name__)


def trajectory_rng(seed: int, index: int) -> np.random.Generator:
    """Private random stream of trajectory `index` under `seed`."""
    return np.random.default_rng(np.random.SeedSequence(seed, spawn_key=(index,)))


def simulate_occupancy(
    engine: SSAEngine,
    registry: MacrostateRegistry,
    schedule: CheckpointSchedule,
    initial: SecondaryStructure,
    rng: np.random.Generator,
    max_wall_seconds: Optional[float] = None,
) -> OccupancySample:
    """Run one trajectory and sample it at every checkpoint."""
    sampler = CheckpointSampler(schedule.times, registry)
    trajectory = engine.run(
        initial, schedule.t_end, rng,
        callback=sampler.observe, max_wall_seconds=max_wall_seconds, keep_records=False,
    )
    return sampler.finish(trajectory.status)


@dataclass(frozen=True)
class _WorkerContext:
    """Everything a worker needs to simulate a range of trajectories."""
    structure_model: StructureModel
    rate_model: RateModelProtocol
    registry: MacrostateRegistry
    schedule: CheckpointSchedule
    initial: str
    seed: int
    max_wall_seconds: Optional[float]

    def simulate(self, start: int, stop: int) -> Timeline:
        engine = SSAEngine(self.structure_model, self.rate_model)
        initial = self.structure_model.parse(self.initial)
        timeline = Timeline(self.structure_model.sequence, self.schedule.times, self.registry.columns)
        for index in range(start, stop):
            sample = simulate_occupancy(
                engine, self.registry, self.schedule, initial,
                trajectory_rng(self.seed, index), self.max_wall_seconds,
            )
            timeline.record_trajectory(sample)
        return timeline


_CONTEXT: Optional[_WorkerContext] = None


def _init_worker(context: _WorkerContext) -> None:
    global _CONTEXT
    _CONTEXT = context


def _run_chunk(start: int, stop: int) -> Timeline:
    return _CONTEXT.simulate(start, stop)


class TimecourseAccumulator:
    """
    Orchestrate independent trajectories and merge their occupancy samples.

    Parameters
    ----------
    structure_model : StructureModel
        Sequence, validity rules and energy model.
    rate_model : RateModelProtocol
        Rate law.
    registry : MacrostateRegistry
        Macro-states to report.
    schedule : CheckpointSchedule
        Checkpoint times; `schedule.t_end` is the simulation end time.
    initial : SecondaryStructure, optional
        Starting structure of every trajectory, by default the open chain.
    seed : int, optional
        Root seed. A fresh one is drawn (and logged) when omitted.
    workers : int
        Worker processes; 1 runs everything in the calling process.
    max_wall_seconds : float, optional
        Wall-clock budget per trajectory.
    progress : bool
        Show a tqdm progress bar.
    """

    def __init__(
        self,
        structure_model: StructureModel,
        rate_model: RateModelProtocol,
        registry: MacrostateRegistry,
        schedule: CheckpointSchedule,
        initial: Optional[SecondaryStructure] = None,
        seed: Optional[int] = None,
        workers: int = 1,
        max_wall_seconds: Optional[float] = None,
        progress: bool = False,
    ) -> None:
        if initial is None:
            initial = SecondaryStructure.open_chain(len(structure_model.sequence))
        structure_model.validate(initial)

        if seed is None:
            seed = int(np.random.SeedSequence().generate_state(1, dtype=np.uint64)[0])
            logger.info("No seed given; using seed %d", seed)
        if seed < 0:
            raise ValueError(f"Seed must be non-negative, got {seed}.")

        self.structure_model = structure_model
        self.rate_model = rate_model
        self.registry = registry
        self.schedule = schedule
        self.initial = initial
        self.seed = int(seed)
        self.workers = max(1, int(workers))
        self.max_wall_seconds = max_wall_seconds
        self.progress = progress

    def new_timeline(self) -> Timeline:
        return Timeline(self.structure_model.sequence, self.schedule.times, self.registry.columns)

    def _context(self) -> _WorkerContext:
        return _WorkerContext(
            structure_model=self.structure_model,
            rate_model=self.rate_model,
            registry=self.registry,
            schedule=self.schedule,
            initial=self.initial.to_dot_bracket(),
            seed=self.seed,
            max_wall_seconds=self.max_wall_seconds,
        )

    def _chunks(self, start: int, n: int) -> List[Tuple[int, int]]:
        size = max(1, n // (self.workers * 4))
        return [(lo, min(lo + size, start + n)) for lo in range(start, start + n, size)]

    def run(self, n: int, timeline: Optional[Timeline] = None) -> Timeline:
        """
        Simulate `n` more trajectories and merge them into `timeline`.

        Parameters
        ----------
        n : int
            Number of trajectories to add.
        timeline : Timeline, optional
            Existing timeline to extend (modified in place). A new one is
            created when omitted.

        Returns
        -------
        Timeline
            The extended timeline. On KeyboardInterrupt the trajectories of
            the longest finished prefix are kept and the rest discarded.

        Raises
        ------
        TimelineMismatchError
            If `timeline` was built for another sequence, schedule or macro-state set.
        """
        fresh = self.new_timeline()
        if timeline is None:
            timeline = fresh
        else:
            timeline.check_compatible(fresh)

        if n <= 0:
            return timeline

        start = timeline.n_trajectories
        chunks = self._chunks(start, n)
        logger.info(
            "Simulating trajectories %d..%d in %d chunk(s) with %d worker(s)",
            start, start + n - 1, len(chunks), self.workers,
        )

        context = self._context()
        done: Dict[int, Timeline] = {}
        with tqdm(total=n, desc="Trajectories", unit="traj", disable=not self.progress) as pbar:
            try:
                if self.workers == 1:
                    self._run_inline(context, chunks, done, pbar)
                else:
                    try:
                        self._run_pool(context, chunks, done, pbar)
                    except (PermissionError, OSError) as exc:
                        logger.warning("Process pool unavailable (%s); running sequentially", exc)
                        self._run_inline(context, chunks, done, pbar)
            except KeyboardInterrupt:
                logger.warning("Interrupted; keeping finished trajectories")

        # Only a contiguous prefix keeps trajectory indices gap-free for later runs.
        for idx in range(len(chunks)):
            if idx not in done:
                dropped = sum(part.n_trajectories for i, part in done.items() if i > idx)
                if dropped:
                    logger.warning("Discarding %d trajectories after the first unfinished chunk", dropped)
                break
            timeline.merge(done[idx])

        logger.info("Timeline now holds %d trajectories", timeline.n_trajectories)
        return timeline

    @staticmethod
    def _run_inline(context: _WorkerContext, chunks, done: Dict[int, Timeline], pbar) -> None:
        for idx, (lo, hi) in enumerate(chunks):
            if idx in done:
                continue
            done[idx] = context.simulate(lo, hi)
            pbar.update(hi - lo)

    def _run_pool(self, context: _WorkerContext, chunks, done: Dict[int, Timeline], pbar) -> None:
        with ProcessPoolExecutor(
            max_workers=min(self.workers, len(chunks)),
            initializer=_init_worker,
            initargs=(context,),
        ) as executor:
            futures: Dict[Future, int] = {
                executor.submit(_run_chunk, lo, hi): idx for idx, (lo, hi) in enumerate(chunks)
            }
            pending = set(futures)
            try:
                while pending:
                    finished, pending = wait(pending, return_when=FIRST_COMPLETED)
                    for future in finished:
                        idx = futures[future]
                        done[idx] = future.result()
                        pbar.update(chunks[idx][1] - chunks[idx][0])
            except BaseException:
                for future in pending:
                    future.cancel()
                raise
