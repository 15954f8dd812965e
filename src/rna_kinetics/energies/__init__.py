from rna_kinetics.energies.energy_types import NearestNeighborParams
from rna_kinetics.energies.energy_loader import NearestNeighborParamLoader, default_params_path
from rna_kinetics.energies.energy_model import EnergyModelProtocol, NearestNeighborEnergyModel

__all__ = [
    "NearestNeighborParams",
    "NearestNeighborParamLoader",
    "default_params_path",
    "EnergyModelProtocol",
    "NearestNeighborEnergyModel",
]
