from rna_kinetics.kinetics.structure_model import StructureModel
from rna_kinetics.kinetics.neighbors import enumerate_moves
from rna_kinetics.kinetics.move_cache import LoopMoveCache
from rna_kinetics.kinetics.rate_models import Kawasaki, Metropolis, RateModelProtocol, make_rate_model
from rna_kinetics.kinetics.trajectory import Trajectory, TrajectoryRecord, TrajectoryStatus
from rna_kinetics.kinetics.ssa import SSAEngine, select_move

__all__ = [
    "StructureModel",
    "enumerate_moves",
    "LoopMoveCache",
    "Kawasaki",
    "Metropolis",
    "RateModelProtocol",
    "make_rate_model",
    "Trajectory",
    "TrajectoryRecord",
    "TrajectoryStatus",
    "SSAEngine",
    "select_move",
]
