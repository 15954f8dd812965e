from __future__ import annotations
from typing import Final

from rna_kinetics.utils.nucleotide_utils import pair_key

# Minimum number of unpaired nucleotides required in a hairpin loop.
# Insertions that would close a smaller hairpin are never proposed.
MIN_HAIRPIN_UNPAIRED: Final[int] = 3

# ---- Pairing rules (RNA) -----------------------------------------------------

# Allowed canonical pairs (including wobble) for RNA.
# Accept both orientations (e.g., "AU" and "UA") for quick membership checks.
_RNA_ALLOWED_PAIRS: Final[frozenset[str]] = frozenset(
    {"AU", "UA", "GC", "CG", "GU", "UG"}
)


def can_pair(base_i: str, base_j: str) -> bool:
    """
    Return True if nucleotides `base_i` and `base_j` can form an RNA base pair.

    Canonical Watson-Crick pairs (AU, GC) and GU wobble pairs are allowed.

    Parameters
    ----------
    base_i, base_j : str
        Single-character nucleotides, case-insensitive. Expected in {A, U, G, C}.

    Returns
    -------
    bool
        True if (a,b) is in {AU, UA, GC, CG, GU, UG}; False otherwise.
    """
    if not isinstance(base_i, str) or not isinstance(base_j, str):
        return False

    if len(base_i) != 1 or len(base_j) != 1:
        return False

    return pair_key(base_i, base_j) in _RNA_ALLOWED_PAIRS


def hairpin_size(i: int, j: int) -> int:
    """
    Number of unpaired nucleotides inside a hairpin closed by (i, j), i.e. `j - i - 1`.
    """
    return j - i - 1


def is_min_hairpin_size(i: int, j: int, min_unpaired: int = MIN_HAIRPIN_UNPAIRED) -> bool:
    """
    Check whether a candidate closing pair (i, j) satisfies the minimum hairpin size.

    Parameters
    ----------
    i, j : int
        Zero-based indices with i < j.
    min_unpaired : int, optional
        Minimum allowed unpaired nucleotides in the loop. Defaults to 3.

    Returns
    -------
    bool
        True if `j - i - 1 >= min_unpaired`, else False.
    """
    return hairpin_size(i, j) >= min_unpaired


def pairable_positions(seq: str) -> dict[int, tuple[int, ...]]:
    """
    Precompute, for every position, the downstream positions it may pair with.

    Only chemical compatibility and the minimum hairpin size are considered;
    whether a pair fits into a given structure is decided by the neighbor
    generator.

    Parameters
    ----------
    seq : str
        Normalized RNA sequence.

    Returns
    -------
    dict[int, tuple[int, ...]]
        Mapping `i -> (j, ...)` with `j > i + MIN_HAIRPIN_UNPAIRED`, sorted ascending.
    """
    n = len(seq)
    table: dict[int, tuple[int, ...]] = {}
    for i in range(n):
        table[i] = tuple(
            j for j in range(i + MIN_HAIRPIN_UNPAIRED + 1, n) if can_pair(seq[i], seq[j])
        )
    return table
