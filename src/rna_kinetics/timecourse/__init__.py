from rna_kinetics.timecourse.schedule import CheckpointSchedule
from rna_kinetics.timecourse.macrostates import (
    UNASSIGNED,
    Macrostate,
    MacrostateRegistry,
    load_macrostate,
)
from rna_kinetics.timecourse.sampler import CheckpointSampler, OccupancySample
from rna_kinetics.timecourse.timeline import Timeline
from rna_kinetics.timecourse.accumulator import TimecourseAccumulator, simulate_occupancy, trajectory_rng

__all__ = [
    "CheckpointSchedule",
    "UNASSIGNED",
    "Macrostate",
    "MacrostateRegistry",
    "load_macrostate",
    "CheckpointSampler",
    "OccupancySample",
    "Timeline",
    "TimecourseAccumulator",
    "simulate_occupancy",
    "trajectory_rng",
]
