"""
Unit tests for the per-loop move cache: after any sequence of moves it must
agree with a full re-enumeration of the current structure.
"""
import numpy as np
import pytest

from rna_kinetics.kinetics import LoopMoveCache, Metropolis, SSAEngine, StructureModel, enumerate_moves
from rna_kinetics.kinetics.ssa import select_move
from rna_kinetics.structures import MoveKind, SecondaryStructure

SEQUENCES = ["GGGAAACCC", "GGGAAAUCCCAGGGAAACCCA", "GCAUAGCUAAGCUAUGC", "GGGGAAACCCCAGGGAAACCCAGGGAAACCC"]


@pytest.fixture(scope="module", params=SEQUENCES)
def model(request):
    return StructureModel(request.param)


def assert_matches_full(cache, model, structure, rate_model):
    moves, rates = cache.transitions()
    expected = enumerate_moves(model, SecondaryStructure.from_dot_bracket(structure.to_dot_bracket()))
    assert [(m.kind, m.pair) for m in moves] == [(m.kind, m.pair) for m in expected]
    assert [m.delta_energy for m in moves] == pytest.approx([m.delta_energy for m in expected], abs=1e-9)
    assert rates.tolist() == pytest.approx([rate_model.rate(m.delta_energy) for m in expected], rel=1e-9)


@pytest.mark.parametrize("seed", [0, 1, 2, 3])
def test_cache_agrees_with_enumeration_along_random_walk(model, seed):
    """
    Uniformly random moves exercise splits and merges of every loop type.
    """
    rng = np.random.default_rng(seed)
    rate_model = Metropolis(temp_k=model.temp_k)
    structure = SecondaryStructure.open_chain(len(model))
    cache = LoopMoveCache(model, rate_model, structure)
    assert_matches_full(cache, model, structure, rate_model)

    for _ in range(60):
        moves = cache.moves()
        if not moves:
            break
        move = moves[int(rng.integers(len(moves)))]
        structure = structure.apply(move)
        cache.apply(move)
        assert_matches_full(cache, model, structure, rate_model)
        assert cache.energy == pytest.approx(model.energy(structure), abs=1e-9)


def test_cache_from_folded_start_handles_unzipping():
    """
    Starting from three adjacent helices, removing every pair one by one.
    """
    model = StructureModel("GGGGAAACCCCAGGGAAACCCAGGGAAACCC")
    structure = model.parse("((((...)))).(((...))).(((...)))")
    rate_model = Metropolis(temp_k=model.temp_k)
    cache = LoopMoveCache(model, rate_model, structure)

    while True:
        removals = [m for m in cache.moves() if m.kind is MoveKind.DEL]
        if not removals:
            break
        move = removals[-1]
        structure = structure.apply(move)
        cache.apply(move)
        assert_matches_full(cache, model, structure, rate_model)

    assert structure.to_dot_bracket() == "." * len(model)


def test_engine_trajectory_equals_full_recompute():
    """
    The cached engine draws the same random numbers against the same rates as
    a step loop that re-enumerates every structure.
    """
    model = StructureModel("GGGAAAUCCCAGGGAAACCCA")
    engine = SSAEngine(model)
    start = SecondaryStructure.open_chain(len(model))
    t_end = 1e-4

    trajectory = engine.run(start, t_end, np.random.default_rng(21))

    rng = np.random.default_rng(21)
    structure, now, expected = start, 0.0, []
    while True:
        moves, rates = engine.transition_rates(structure)
        waiting = float(rng.exponential(1.0 / rates.sum()))
        expected.append(structure.to_dot_bracket())
        if now + waiting >= t_end:
            break
        structure = structure.apply(moves[select_move(rates, rng)])
        now += waiting

    assert [r.structure.to_dot_bracket() for r in trajectory.records] == expected
