from __future__ import annotations
import math
from dataclasses import dataclass
from typing import Protocol, runtime_checkable

from rna_kinetics.utils.energy_utils import DEFAULT_T_K, thermal_energy

# Default attempt frequency (1/s).
DEFAULT_K0 = 1e6

# Largest exponent passed to math.exp.
_MAX_EXPONENT = 500.0


@runtime_checkable
class RateModelProtocol(Protocol):
    """A rate law: transition rate (1/s) as a function of ΔE (kcal/mol)."""

    def rate(self, delta_energy: float) -> float: ...


@dataclass(frozen=True, slots=True)
class Metropolis:
    """
    Metropolis rate law: `k0` for downhill moves, `k0 * exp(-ΔE/kT)` uphill.

    Satisfies detailed balance: `rate(ΔE) / rate(-ΔE) = exp(-ΔE/kT)`.
    """
    k0: float = DEFAULT_K0
    temp_k: float = DEFAULT_T_K

    @property
    def kt(self) -> float:
        return thermal_energy(self.temp_k)

    def rate(self, delta_energy: float) -> float:
        if math.isnan(delta_energy):
            return 0.0
        if delta_energy <= 0:
            return self.k0
        return self.k0 * math.exp(-delta_energy / self.kt)


@dataclass(frozen=True, slots=True)
class Kawasaki:
    """
    Kawasaki (symmetric) rate law: `k0 * exp(-ΔE / 2kT)`.
    """
    k0: float = DEFAULT_K0
    temp_k: float = DEFAULT_T_K

    @property
    def kt(self) -> float:
        return thermal_energy(self.temp_k)

    def rate(self, delta_energy: float) -> float:
        if math.isnan(delta_energy):
            return 0.0
        exponent = min(-delta_energy / (2.0 * self.kt), _MAX_EXPONENT)
        return self.k0 * math.exp(exponent)


RATE_MODELS = {"metropolis": Metropolis, "kawasaki": Kawasaki}


def make_rate_model(name: str, k0: float = DEFAULT_K0, temp_k: float = DEFAULT_T_K) -> RateModelProtocol:
    """Build a rate model by name ("metropolis" or "kawasaki")."""
    try:
        cls = RATE_MODELS[name.lower()]
    except KeyError:
        raise ValueError(f"Unknown rate model {name!r}; choose from {sorted(RATE_MODELS)}.") from None
    if k0 <= 0:
        raise ValueError(f"Rate constant k0 must be positive, got {k0}.")
    return cls(k0=k0, temp_k=temp_k)
