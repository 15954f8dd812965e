from rna_kinetics.utils.energy_utils import (
    R_CAL,
    DEFAULT_T_K,
    boltzmann_free_energy,
    calculate_delta_g,
    celsius_to_kelvin,
    lookup_loop_baseline_js,
    thermal_energy,
)
from rna_kinetics.utils.nucleotide_utils import (
    dimer_key,
    mismatch_key,
    normalize_base,
    normalize_sequence,
    pair_key,
)

__all__ = [
    "R_CAL",
    "DEFAULT_T_K",
    "boltzmann_free_energy",
    "calculate_delta_g",
    "celsius_to_kelvin",
    "lookup_loop_baseline_js",
    "thermal_energy",
    "dimer_key",
    "mismatch_key",
    "normalize_base",
    "normalize_sequence",
    "pair_key",
]
