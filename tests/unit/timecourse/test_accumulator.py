"""
Unit tests for the timecourse accumulator.
"""
import numpy as np
import pytest

from rna_kinetics.errors import TimelineMismatchError
from rna_kinetics.kinetics import Metropolis, StructureModel
from rna_kinetics.timecourse import (
    CheckpointSchedule,
    Macrostate,
    MacrostateRegistry,
    TimecourseAccumulator,
    Timeline,
    trajectory_rng,
)
from rna_kinetics.timecourse.accumulator import _WorkerContext

SEQ = "GGGAAACCC"


@pytest.fixture(scope="module")
def model():
    return StructureModel(SEQ)


@pytest.fixture(scope="module")
def registry(model):
    return MacrostateRegistry([
        Macrostate("folded", SEQ, (model.parse("(((...)))"),)),
        Macrostate("open", SEQ, (model.parse("........."),)),
    ])


@pytest.fixture(scope="module")
def schedule():
    return CheckpointSchedule(t_end=1e-4, t_ext=1e-6, t_lin=2, t_log=4)


def accumulator(model, registry, schedule, seed=11):
    return TimecourseAccumulator(model, Metropolis(), registry, schedule, seed=seed, workers=1)


def test_trajectory_rng_is_deterministic():
    """
    The stream of trajectory k depends only on (seed, k).
    """
    assert trajectory_rng(5, 3).random() == trajectory_rng(5, 3).random()
    assert trajectory_rng(5, 3).random() != trajectory_rng(5, 4).random()
    assert trajectory_rng(5, 3).random() != trajectory_rng(6, 3).random()


def test_run_builds_timeline(model, registry, schedule):
    """
    Every trajectory starts in the open chain and is sampled at every checkpoint.
    """
    timeline = accumulator(model, registry, schedule).run(6)
    assert timeline.n_trajectories == 6
    assert timeline.columns == ["folded", "open", "unassigned"]
    assert np.array_equal(timeline.times, schedule.times)
    assert (timeline.counts == 6).all()
    # At t=0 everything is open.
    assert timeline.mean()[0].tolist() == [0.0, 1.0, 0.0]


def test_incremental_runs_equal_one_run(model, registry, schedule):
    """
    Adding 3 then 4 trajectories gives the same timeline as adding 7 at once.
    """
    once = accumulator(model, registry, schedule).run(7)

    acc = accumulator(model, registry, schedule)
    partial = acc.run(3)
    reloaded = Timeline.from_dict(partial.to_dict())
    twice = acc.run(4, timeline=reloaded)

    assert twice == once


def test_same_seed_same_statistics(model, registry, schedule):
    first = accumulator(model, registry, schedule, seed=3).run(4)
    second = accumulator(model, registry, schedule, seed=3).run(4)
    assert first == second


def test_zero_trajectories_returns_empty_timeline(model, registry, schedule):
    timeline = accumulator(model, registry, schedule).run(0)
    assert timeline.n_trajectories == 0
    assert (timeline.counts == 0).all()


def test_mismatched_timeline_is_rejected(model, registry, schedule):
    """
    A timeline from another schedule cannot be extended.
    """
    other = Timeline(SEQ, CheckpointSchedule().times, registry.columns)
    with pytest.raises(TimelineMismatchError):
        accumulator(model, registry, schedule).run(2, timeline=other)


def test_absorbed_trajectories_stop_sampling():
    """
    A sequence with no possible pair is absorbed at t=0, so only the first
    checkpoint ever gets samples.
    """
    model = StructureModel("AAAAAAA")
    registry = MacrostateRegistry([Macrostate("open", "AAAAAAA", (model.parse("......."),))])
    schedule = CheckpointSchedule(t_end=1.0, t_ext=1e-3, t_lin=1, t_log=3)
    timeline = TimecourseAccumulator(model, Metropolis(), registry, schedule, seed=1).run(3)

    assert timeline.n_trajectories == 3
    assert timeline.counts[0].tolist() == [3, 3]
    assert (timeline.counts[1:] == 0).all()
    assert timeline.mean()[0].tolist() == [1.0, 0.0]


# ------------------------------
# Parallel and interrupted runs
# ------------------------------
def test_pool_matches_inline(model, registry, schedule):
    """
    Chunks simulated in worker processes merge into the same timeline as
    simulating them in the calling process.
    """
    inline = accumulator(model, registry, schedule, seed=4).run(20)
    pooled = TimecourseAccumulator(model, Metropolis(), registry, schedule, seed=4, workers=3).run(20)

    assert pooled.n_trajectories == 20
    assert pooled == inline


def test_unavailable_pool_falls_back_to_inline(model, registry, schedule, monkeypatch):
    def no_pool(self, context, chunks, done, pbar):
        raise OSError("no semaphores")

    monkeypatch.setattr(TimecourseAccumulator, "_run_pool", no_pool)
    timeline = TimecourseAccumulator(model, Metropolis(), registry, schedule, seed=4, workers=3).run(6)

    assert timeline == accumulator(model, registry, schedule, seed=4).run(6)


def test_interrupt_keeps_finished_prefix(model, registry, schedule, monkeypatch):
    """
    Ctrl-C during the third chunk of 4 keeps the first two chunks, and a later
    run continues from trajectory 4 as if nothing had happened.
    """
    simulate = _WorkerContext.simulate

    def interrupted(self, start, stop):
        if start == 4:
            raise KeyboardInterrupt
        return simulate(self, start, stop)

    acc = accumulator(model, registry, schedule)
    monkeypatch.setattr(_WorkerContext, "simulate", interrupted)
    partial = acc.run(8)
    monkeypatch.undo()

    assert partial.n_trajectories == 4
    assert partial == accumulator(model, registry, schedule).run(4)

    resumed = acc.run(4, timeline=partial)
    assert resumed == accumulator(model, registry, schedule).run(8)


def test_interrupt_discards_chunks_after_gap(model, registry, schedule, monkeypatch):
    """
    Chunks finished out of order after an unfinished one are dropped so that
    trajectory indices stay gap-free.
    """
    def out_of_order(context, chunks, done, pbar):
        done[0] = context.simulate(*chunks[0])
        done[2] = context.simulate(*chunks[2])
        raise KeyboardInterrupt

    monkeypatch.setattr(TimecourseAccumulator, "_run_inline", staticmethod(out_of_order))
    timeline = accumulator(model, registry, schedule).run(8)
    monkeypatch.undo()

    assert timeline.n_trajectories == 2
    assert timeline == accumulator(model, registry, schedule).run(2)
