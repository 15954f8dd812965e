from rna_kinetics.rules.constraints import (
    MIN_HAIRPIN_UNPAIRED,
    can_pair,
    hairpin_size,
    is_min_hairpin_size,
    pairable_positions,
)

__all__ = [
    "MIN_HAIRPIN_UNPAIRED",
    "can_pair",
    "hairpin_size",
    "is_min_hairpin_size",
    "pairable_positions",
]
