from __future__ import annotations
from typing import Optional, Sequence

from rna_kinetics.energies.energy_types import IndexPair, NearestNeighborParams
from rna_kinetics.utils.energy_utils import DEFAULT_T_K, calculate_delta_g, lookup_loop_baseline_js
from rna_kinetics.utils.nucleotide_utils import dimer_key, mismatch_key, pair_key
from rna_kinetics.rules.constraints import MIN_HAIRPIN_UNPAIRED


def terminal_au_penalty(seq: str, base_i: int, base_j: int, energies: NearestNeighborParams) -> float:
    """
    Penalty for a helix terminated by the pair `(base_i, base_j)` when it is AU or GU.

    Parameters
    ----------
    seq : str
        The RNA sequence.
    base_i, base_j : int
        Positions of the terminal pair.
    energies : NearestNeighborParams
        Parameter tables (provides `TERMINAL_AU`).

    Returns
    -------
    float
        `energies.TERMINAL_AU` for AU/UA/GU/UG pairs, 0.0 otherwise.
    """
    pair = pair_key(seq[base_i], seq[base_j])
    if pair in ("AU", "UA", "GU", "UG"):
        return energies.TERMINAL_AU

    return 0.0


def hairpin_energy(
    base_i: int,
    base_j: int,
    seq: str,
    energies: NearestNeighborParams,
    temp_k: float = DEFAULT_T_K
) -> float:
    """
    Calculates the free energy (ΔG) of a hairpin loop closed by `(base_i, base_j)`.

    The loop sequence (closing pair included) is first looked up among the
    special hairpins. Otherwise the energy is the length-dependent baseline,
    plus the terminal mismatch on the closing pair for loops longer than three,
    plus the terminal AU/GU penalty.

    Parameters
    ----------
    base_i : int
        The 0-based 5' index of the closing base pair.
    base_j : int
        The 0-based 3' index of the closing base pair.
    seq : str
        The RNA sequence.
    energies : NearestNeighborParams
        Thermodynamic parameter tables.
    temp_k : float, optional
        Temperature in Kelvin, by default 37 °C.

    Returns
    -------
    float
        ΔG of the hairpin in kcal/mol; `+inf` if the loop is too small.
    """
    # --- 1. Validate Geometry ---
    if base_i < 0 or base_j >= len(seq) or base_i >= base_j:
        return float("inf")
    hairpin_len = base_j - base_i - 1
    if hairpin_len < MIN_HAIRPIN_UNPAIRED:
        return float("inf")

    # --- 2. Special Hairpins ---
    special = energies.SPECIAL_HAIRPINS.get(seq[base_i:base_j + 1])
    if special is not None:
        return calculate_delta_g(special, temp_k)

    # --- 3. Baseline Energy ---
    delta_g = calculate_delta_g(lookup_loop_baseline_js(energies.HAIRPIN, hairpin_len), temp_k)

    # --- 4. Terminal Mismatch ---
    # Triloops get no mismatch term.
    if hairpin_len > 3:
        key = mismatch_key(seq, base_i, base_j)
        mismatch_dh_ds = energies.TERMINAL_MISMATCH.get(key) if key else None
        if mismatch_dh_ds is not None:
            delta_g += calculate_delta_g(mismatch_dh_ds, temp_k)

    # --- 5. Terminal AU/GU Penalty ---
    delta_g += terminal_au_penalty(seq, base_i, base_j, energies)

    return delta_g


def stack_energy(
    base_i: int,
    base_j: int,
    seq: str,
    energies: NearestNeighborParams,
    temp_k: float = DEFAULT_T_K
) -> float:
    """
    Stacking free energy of pair `(base_i, base_j)` on `(base_i + 1, base_j - 1)`.

    Returns `+inf` when no stacking parameter exists for the dimer.
    """
    key = dimer_key(seq, base_i, base_j)
    if key is None:
        return float("inf")

    return calculate_delta_g(energies.NN_STACK.get(key), temp_k)


def internal_loop_energy(
    base_i: int,
    base_j: int,
    base_k: int,
    base_l: int,
    seq: str,
    energies: NearestNeighborParams,
    temp_k: float = DEFAULT_T_K
) -> float:
    """
    Calculates the free energy (ΔG) of a bulge or internal loop.

    The loop is enclosed by the outer pair `(base_i, base_j)` and the inner
    pair `(base_k, base_l)` with `base_i < base_k < base_l < base_j`. A direct
    stack (no unpaired nucleotide on either side) is delegated to
    `stack_energy`.

    Parameters
    ----------
    base_i, base_j : int
        The outer closing pair.
    base_k, base_l : int
        The inner closing pair.
    seq : str
        The RNA sequence.
    energies : NearestNeighborParams
        Thermodynamic parameter tables.
    temp_k : float, optional
        Temperature in Kelvin.

    Returns
    -------
    float
        ΔG of the loop in kcal/mol, `+inf` for invalid geometry.
    """
    # --- 1. Validate Geometry and Calculate Loop Sizes ---
    if not (0 <= base_i < base_k < base_l < base_j < len(seq)):
        return float("inf")

    unpaired_len_5 = base_k - base_i - 1
    unpaired_len_3 = base_j - base_l - 1

    if unpaired_len_5 == 0 and unpaired_len_3 == 0:
        return stack_energy(base_i, base_j, seq, energies, temp_k)

    penalties = (
        terminal_au_penalty(seq, base_i, base_j, energies)
        + terminal_au_penalty(seq, base_k, base_l, energies)
    )

    # --- 2. Bulge Loop Case ---
    if unpaired_len_5 == 0 or unpaired_len_3 == 0:
        bulge_size = unpaired_len_5 + unpaired_len_3
        delta_g = calculate_delta_g(lookup_loop_baseline_js(energies.BULGE, bulge_size), temp_k)
        if bulge_size == 1:
            # A single-nucleotide bulge keeps the helix stacked across it.
            stacked = energies.NN_STACK.get(
                f"{seq[base_i]}{seq[base_j]}/{seq[base_l]}{seq[base_k]}"
            )
            if stacked is not None:
                return delta_g + calculate_delta_g(stacked, temp_k)
        return delta_g + penalties

    # --- 3. Internal Loop Case ---
    if unpaired_len_5 == 1 and unpaired_len_3 == 1:
        left_motif = seq[base_i + 1] + seq[base_k - 1]
        right_motif = seq[base_j - 1] + seq[base_l + 1]
        one_by_one = energies.INTERNAL_MISMATCH.get(f"{left_motif}/{right_motif}")
        if one_by_one is not None:
            return calculate_delta_g(one_by_one, temp_k)

    loop_size = unpaired_len_5 + unpaired_len_3
    delta_g = calculate_delta_g(lookup_loop_baseline_js(energies.INTERNAL, loop_size), temp_k)

    return delta_g + penalties


def multiloop_energy(
    closing: IndexPair,
    branches: Sequence[IndexPair],
    seq: str,
    energies: NearestNeighborParams,
) -> float:
    """
    Linear multiloop energy for a loop closed by `closing` with >= 2 branches.

    `a + b * (branches + 1) + c * unpaired` (plus `d` when no nucleotide is
    unpaired), plus one terminal AU/GU penalty for every helix entering the loop.
    """
    coeff_a, coeff_b, coeff_c, coeff_d = energies.MULTILOOP
    base_p, base_q = closing

    unpaired = (base_q - base_p - 1) - sum(base_l - base_k + 1 for base_k, base_l in branches)
    helices = len(branches) + 1

    delta_g = coeff_a + coeff_b * helices + coeff_c * unpaired
    if unpaired == 0:
        delta_g += coeff_d

    delta_g += terminal_au_penalty(seq, base_p, base_q, energies)
    for base_k, base_l in branches:
        delta_g += terminal_au_penalty(seq, base_k, base_l, energies)

    return delta_g


def exterior_loop_energy(
    branches: Sequence[IndexPair],
    seq: str,
    energies: NearestNeighborParams,
) -> float:
    """Exterior loop: terminal AU/GU penalties of the outermost helices."""
    return sum(terminal_au_penalty(seq, base_k, base_l, energies) for base_k, base_l in branches)


def loop_energy(
    seq: str,
    closing: Optional[IndexPair],
    branches: Sequence[IndexPair],
    energies: NearestNeighborParams,
    temp_k: float = DEFAULT_T_K,
) -> float:
    """
    Free energy of one loop, dispatched on its shape.

    Parameters
    ----------
    seq : str
        The RNA sequence.
    closing : (int, int) or None
        Closing pair of the loop, `None` for the exterior loop.
    branches : sequence of (int, int)
        Pairs directly enclosed by the loop, in 5'→3' order.
    energies : NearestNeighborParams
        Thermodynamic parameter tables.
    temp_k : float, optional
        Temperature in Kelvin.

    Returns
    -------
    float
        ΔG of the loop in kcal/mol.
    """
    if closing is None:
        return exterior_loop_energy(branches, seq, energies)

    base_p, base_q = closing
    if not branches:
        return hairpin_energy(base_p, base_q, seq, energies, temp_k)

    if len(branches) == 1:
        base_k, base_l = branches[0]
        return internal_loop_energy(base_p, base_q, base_k, base_l, seq, energies, temp_k)

    return multiloop_energy(closing, branches, seq, energies)
