from __future__ import annotations
from math import exp, log
from typing import Iterable, Mapping, Optional, Tuple

# Gas constant in kcal mol⁻¹ K⁻¹
# 8.3145112 J K-1 mol-1 = 1.9872159e-3 kcal mol⁻¹ K⁻¹
R_CAL = 1.98720425864083e-3

# 0 °C in Kelvin
K0 = 273.15

# Default simulation temperature (37 °C)
DEFAULT_T_K = 310.15


def celsius_to_kelvin(temp_c: float) -> float:
    return temp_c + K0


def thermal_energy(temp_k: float) -> float:
    """kT in kcal/mol at absolute temperature `temp_k`."""
    return R_CAL * temp_k


def calculate_delta_g(delta_h_delta_s: Optional[tuple[float, float]], temp_k: float) -> float:
    """
    Compute Gibbs free energy change, ΔG, from enthalpy/entropy at a temperature.

    Uses the thermodynamic relation `ΔG = ΔH − T * (ΔS / 1000)`
    Where:
        - ΔH is in kcal/mol
        - ΔS is in cal/(K·mol)
        - T is in Kelvin.

    Parameters
    ----------
    delta_h_delta_s : tuple[float, float] or None
        Two-tuple `(ΔH, ΔS)`. If `None`, the value is considered unavailable
        and `+∞` is returned.
    temp_k : float
        Absolute temperature in Kelvin.

    Returns
    -------
    float
        Free energy change in `kcal/mol`.
    """
    if delta_h_delta_s is None:
        return float("inf")
    delta_h, delta_s = delta_h_delta_s

    return delta_h - temp_k * (delta_s / 1000.0)


def lookup_loop_baseline_js(
    table: Mapping[int, Tuple[float, float]],
    size: int,
    *,
    alpha: float = 1.75,
) -> Optional[Tuple[float, float]]:
    """
    Fetch a loop baseline (ΔH, ΔS) for a given loop size, using Jacobson–Stockmayer
    (JS) extrapolation when `size` is not tabulated.

      - Returns the exact (ΔH, ΔS) if `size` is present;
      - Else anchor at the largest key `a` such that a <= size and extrapolate:
                ΔH(n) = ΔH(a)
                ΔS(n) = ΔS(a) − α · R · ln(n/a)        (R in cal/(K·mol))
      - Return `None` if `size` is smaller than the smallest key, or if the
        table is empty.

    Parameters
    ----------
    table : Mapping[int, tuple[float, float]]
        Loop baseline table keyed by integer loop size (nt).
    size : int
        Requested loop size.
    alpha : float
        Jacobson–Stockmayer loop-entropy coefficient.
    """
    if not table:
        return None

    if size in table:
        return table[size]

    anchor = max((k for k in table.keys() if k <= size), default=None)
    if anchor is None:
        return None

    delta_h_a, delta_s_a = table[anchor]
    delta_s_n = delta_s_a - alpha * R_CAL * 1000.0 * log(size / anchor)

    return delta_h_a, delta_s_n


def boltzmann_free_energy(energies: Iterable[float], temp_k: float) -> float:
    """
    Ensemble free energy `-kT ln Σ exp(-E/kT)` of a set of structure energies.

    Evaluated with the log-sum-exp shift so large |E|/kT do not overflow.
    Returns `+inf` for an empty input.
    """
    values = list(energies)
    if not values:
        return float("inf")

    kt = thermal_energy(temp_k)
    e_min = min(values)
    acc = sum(exp(-(e - e_min) / kt) for e in values)

    return e_min - kt * log(acc)
