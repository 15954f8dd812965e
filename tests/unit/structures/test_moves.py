"""
Unit tests for the elementary Move value.
"""
from rna_kinetics.structures import Move, MoveKind


def test_inverse_swaps_kind_and_negates_delta():
    """
    The inverse of ADD(i, j) is DEL(i, j) with the opposite energy change.
    """
    add = Move(MoveKind.ADD, 1, 7, delta_energy=-2.5)
    inverse = add.inverse()
    assert inverse.kind is MoveKind.DEL
    assert inverse.pair == (1, 7)
    assert inverse.delta_energy == 2.5
    assert inverse.inverse() == add


def test_sort_key_orders_removals_before_insertions():
    """
    The canonical order is removals by (i, j), then insertions by (i, j).
    """
    moves = [
        Move(MoveKind.ADD, 0, 5),
        Move(MoveKind.DEL, 2, 8),
        Move(MoveKind.ADD, 0, 4),
        Move(MoveKind.DEL, 1, 9),
    ]
    ordered = sorted(moves, key=Move.sort_key)
    assert [(m.kind, m.pair) for m in ordered] == [
        (MoveKind.DEL, (1, 9)),
        (MoveKind.DEL, (2, 8)),
        (MoveKind.ADD, (0, 4)),
        (MoveKind.ADD, (0, 5)),
    ]
