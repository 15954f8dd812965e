from rna_kinetics.structures.moves import Move, MoveKind
from rna_kinetics.structures.secondary_structure import SecondaryStructure
from rna_kinetics.structures.loop_decomposition import EXTERIOR, Loop, LoopDecomposition

__all__ = [
    "Move",
    "MoveKind",
    "SecondaryStructure",
    "EXTERIOR",
    "Loop",
    "LoopDecomposition",
]
