from __future__ import annotations
from dataclasses import dataclass, field
from typing import Mapping, Dict, Optional, Tuple

# A mapping from a base to its canonical complement, e.g., {"A": "U", "C": "G"}.
BasePairMap = Mapping[str, str]

# The four linear model coefficients (a, b, c, d) for multiloop energy.
MultiLoopCoeffs = Tuple[float, float, float, float]

# A dictionary mapping a key (e.g., a stacking dimer "AU/UA") to its (ΔH, ΔS) values.
PairEnergies = Dict[str, Tuple[float, float]]

# A dictionary mapping a loop length (integer) to its (ΔH, ΔS) values.
LoopEnergies = Dict[int, Tuple[float, float]]

# A base pair given by its two zero-based positions (i, j), i < j.
IndexPair = Tuple[int, int]

# Penalty (kcal/mol) for helices terminated by an AU or GU pair.
DEFAULT_TERMINAL_AU_PENALTY = 0.45


@dataclass(frozen=True, slots=True)
class NearestNeighborParams:
    """
    Immutable container for the nearest-neighbor loop parameters.

    The parameters are loaded from a YAML file and stored as enthalpy (ΔH) and
    entropy (ΔS) pairs so the free energy can be evaluated at any temperature.

    Energies are (ΔH [kcal/mol], ΔS [cal/(K·mol)]).

    Parameters
    ----------
    COMPLEMENT_BASES : BasePairMap
        Map of canonical complements.
    NN_STACK : PairEnergies
        Stacking table using `"XY/ZW"` keys (outer pair `"XY"`, inner pair read
        3'→5' as `"ZW"`), e.g. `"GC/CG"`.
    HAIRPIN : LoopEnergies
        Hairpin loop baseline by number of unpaired nucleotides.
    BULGE : LoopEnergies
        Bulge loop baseline by number of unpaired nucleotides.
    INTERNAL : LoopEnergies
        Internal loop baseline by total number of unpaired nucleotides.
    MULTILOOP : MultiLoopCoeffs
        Linear multiloop coefficients `(a, b, c, d)`:
        `a + b * (#helices) + c * (#unpaired)`, plus `d` when nothing is unpaired.
    INTERNAL_MISMATCH : PairEnergies
        1×1 internal loop terms keyed `"W Z'/Z W'"` around the mismatch.
    TERMINAL_MISMATCH : PairEnergies
        Terminal mismatch terms on the inside of a hairpin closing pair.
    SPECIAL_HAIRPINS : PairEnergies
        Sequence-specific hairpin overrides keyed by the full loop sequence
        including the closing pair (e.g. `"CGAAAG"`).
    TERMINAL_AU : float
        Terminal AU/GU penalty in kcal/mol, temperature independent.
    """
    COMPLEMENT_BASES: BasePairMap
    NN_STACK: PairEnergies
    HAIRPIN: LoopEnergies
    BULGE: LoopEnergies
    INTERNAL: LoopEnergies
    MULTILOOP: MultiLoopCoeffs
    INTERNAL_MISMATCH: PairEnergies = field(default_factory=dict)
    TERMINAL_MISMATCH: PairEnergies = field(default_factory=dict)
    SPECIAL_HAIRPINS: PairEnergies = field(default_factory=dict)
    TERMINAL_AU: float = DEFAULT_TERMINAL_AU_PENALTY
    SOURCE: Optional[str] = None
