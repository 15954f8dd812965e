"""
Unit tests for the Gillespie SSA engine.
"""
import logging
import math

import numpy as np
import pytest

from rna_kinetics.errors import StructureError
from rna_kinetics.kinetics import (
    Kawasaki,
    SSAEngine,
    StructureModel,
    TrajectoryStatus,
    select_move,
)
from rna_kinetics.structures import SecondaryStructure


@pytest.fixture(scope="module")
def hairpin_engine():
    return SSAEngine(StructureModel("GGGAAACCC"))


# ------------------------------
# select_move
# ------------------------------
def test_select_move_frequencies_converge():
    """
    Indices are drawn in proportion to their rates; zero rates never win.
    """
    rng = np.random.default_rng(1234)
    rates = np.array([1.0, 0.0, 3.0])
    draws = np.array([select_move(rates, rng) for _ in range(20000)])
    counts = np.bincount(draws, minlength=3) / len(draws)
    assert counts[1] == 0.0
    assert counts[0] == pytest.approx(0.25, abs=0.02)
    assert counts[2] == pytest.approx(0.75, abs=0.02)


def test_select_move_rejects_zero_flux():
    """
    There is nothing to select when all rates are zero.
    """
    with pytest.raises(ValueError):
        select_move(np.zeros(3), np.random.default_rng(0))
    with pytest.raises(ValueError):
        select_move(np.zeros(0), np.random.default_rng(0))


# ------------------------------
# Engine edge cases
# ------------------------------
def test_end_time_zero_yields_single_record(hairpin_engine):
    """
    With t_end = 0 the initial structure is reported once and the flux is never
    evaluated.
    """
    initial = hairpin_engine.structure_model.parse("(((...)))")
    trajectory = hairpin_engine.run(initial, 0.0, np.random.default_rng(0))
    assert len(trajectory) == 1
    record = trajectory.final
    assert record.dot_bracket == "(((...)))"
    assert record.energy == pytest.approx(-1.12)
    assert record.arrival_time == 0.0
    assert record.waiting_time == 0.0
    assert record.mean_waiting_time is None
    assert trajectory.status is TrajectoryStatus.COMPLETED


def test_end_time_zero_from_open_chain(hairpin_engine):
    """
    The open chain at t_end = 0 is reported with zero energy and no mean waiting time.
    """
    trajectory = hairpin_engine.run(SecondaryStructure.open_chain(9), 0.0, np.random.default_rng(0))
    assert len(trajectory) == 1
    record = trajectory.final
    assert record.dot_bracket == "........."
    assert record.energy == 0.0
    assert record.waiting_time == 0.0
    assert record.mean_waiting_time is None


def test_absorbing_sequence_stops_immediately(caplog):
    """
    A chain that cannot form any pair has zero flux: one record, infinite mean
    waiting time, status ABSORBED and a warning.
    """
    caplog.set_level(logging.WARNING, logger="rna_kinetics")
    engine = SSAEngine(StructureModel("AAAA"))
    trajectory = engine.run(SecondaryStructure.open_chain(4), 1.0, np.random.default_rng(0))
    assert trajectory.status is TrajectoryStatus.ABSORBED
    assert len(trajectory) == 1
    assert trajectory.final.waiting_time == 0.0
    assert math.isinf(trajectory.final.mean_waiting_time)
    assert any("absorbed" in rec.getMessage() for rec in caplog.records)


def test_first_move_of_short_hairpin_is_forced():
    """
    From the open chain of GAAAC the only possible move closes G0-C4.
    """
    engine = SSAEngine(StructureModel("GAAAC"))
    for seed in range(10):
        trajectory = engine.run(SecondaryStructure.open_chain(5), 1.0, np.random.default_rng(seed))
        assert trajectory.records[0].dot_bracket == "....."
        if len(trajectory) > 1:
            assert trajectory.records[1].dot_bracket == "(...)"


def test_invalid_initial_structure_raises_before_simulating(hairpin_engine):
    """
    An invalid start is rejected before any step; a negative end time too.
    """
    with pytest.raises(StructureError):
        hairpin_engine.run(SecondaryStructure(9, frozenset({(0, 5)})), 1.0, np.random.default_rng(0))
    with pytest.raises(ValueError):
        hairpin_engine.run(SecondaryStructure.open_chain(9), -1.0, np.random.default_rng(0))


# ------------------------------
# Trajectory invariants
# ------------------------------
def test_records_tile_the_time_axis(hairpin_engine):
    """
    Arrivals chain through the waiting times and the waiting times add up to t_end.
    """
    t_end = 1e-3
    trajectory = hairpin_engine.run(SecondaryStructure.open_chain(9), t_end, np.random.default_rng(7))
    assert trajectory.status is TrajectoryStatus.COMPLETED
    assert trajectory.records[0].arrival_time == 0.0
    for prev, nxt in zip(trajectory.records, trajectory.records[1:]):
        assert nxt.arrival_time == pytest.approx(prev.arrival_time + prev.waiting_time)
    assert trajectory.covered_time == pytest.approx(t_end, rel=1e-9)
    assert trajectory.final.departure_time == pytest.approx(t_end, rel=1e-9)


def test_record_energies_and_mean_waiting_times(hairpin_engine):
    """
    Every record's energy equals a fresh evaluation, and its mean waiting time
    is the inverse of the total outgoing rate.
    """
    model = hairpin_engine.structure_model
    trajectory = hairpin_engine.run(SecondaryStructure.open_chain(9), 1e-3, np.random.default_rng(3))
    for record in trajectory:
        fresh = SecondaryStructure(record.structure.length, record.structure.pairs)
        assert record.energy == pytest.approx(model.energy(fresh), abs=1e-9)
        _, rates = hairpin_engine.transition_rates(fresh)
        assert record.mean_waiting_time == pytest.approx(1.0 / rates.sum())


def test_same_seed_same_trajectory(hairpin_engine):
    """
    The engine is deterministic given the random stream.
    """
    start = SecondaryStructure.open_chain(9)
    first = hairpin_engine.run(start, 1e-3, np.random.default_rng(42))
    second = hairpin_engine.run(start, 1e-3, np.random.default_rng(42))
    assert [r.dot_bracket for r in first] == [r.dot_bracket for r in second]
    assert [r.arrival_time for r in first] == [r.arrival_time for r in second]


def test_cancellation_between_steps(hairpin_engine):
    """
    A stop request ends the trajectory with a zero-waiting CANCELLED record.
    """
    calls = {"n": 0}

    def should_stop():
        calls["n"] += 1
        return calls["n"] > 3

    trajectory = hairpin_engine.run(
        SecondaryStructure.open_chain(9), 10.0, np.random.default_rng(0), should_stop=should_stop
    )
    assert trajectory.status is TrajectoryStatus.CANCELLED
    assert len(trajectory) == 4
    assert trajectory.final.waiting_time == 0.0
    assert trajectory.final.mean_waiting_time is None


def test_callback_and_keep_records(hairpin_engine):
    """
    The callback sees every record even when only the last one is kept.
    """
    seen = []
    trajectory = hairpin_engine.run(
        SecondaryStructure.open_chain(9), 1e-3, np.random.default_rng(5),
        callback=seen.append, keep_records=False,
    )
    assert len(trajectory) == 1
    assert trajectory.final == seen[-1]
    assert sum(r.waiting_time for r in seen) == pytest.approx(1e-3, rel=1e-9)


def test_iter_records_returns_status():
    """
    The generator's return value is the termination status.
    """
    engine = SSAEngine(StructureModel("AAAA"))
    gen = engine.iter_records(SecondaryStructure.open_chain(4), 1.0, np.random.default_rng(0))
    records = []
    with pytest.raises(StopIteration) as stop:
        while True:
            records.append(next(gen))
    assert stop.value.value is TrajectoryStatus.ABSORBED
    assert len(records) == 1


def test_rate_model_is_pluggable():
    """
    Swapping in Kawasaki changes the rates but not the move set.
    """
    model = StructureModel("GGGAAACCC")
    metropolis = SSAEngine(model)
    kawasaki = SSAEngine(model, Kawasaki(temp_k=model.temp_k))
    start = SecondaryStructure.open_chain(9)
    moves_m, rates_m = metropolis.transition_rates(start)
    moves_k, rates_k = kawasaki.transition_rates(start)
    assert moves_m == moves_k
    # All moves from the open chain are uphill, where Kawasaki is faster.
    assert np.all(rates_k > rates_m)


def test_first_move_frequencies_follow_rates():
    """
    From ((....)) only the two pairs can be removed; the first step picks each
    with probability rate / flux.
    """
    model = StructureModel("GGAAAACC")
    engine = SSAEngine(model)
    start = model.parse("((....))")
    moves, rates = engine.transition_rates(start)
    assert [m.pair for m in moves] == [(0, 7), (1, 6)]
    expected = {
        start.apply(move).to_dot_bracket(): rate / rates.sum() for move, rate in zip(moves, rates)
    }

    n = 4000
    seen = {key: 0 for key in expected}
    for seed in range(n):
        records = engine.iter_records(start, 1.0, np.random.default_rng(seed))
        next(records)
        seen[next(records).dot_bracket] += 1

    for key, probability in expected.items():
        assert seen[key] / n == pytest.approx(probability, abs=0.03)
