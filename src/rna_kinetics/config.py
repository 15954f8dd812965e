"""
Run configuration for the command-line front ends.

Defaults can be overridden by a YAML file with `kinetics` and `simulation`
sections, and command-line flags override both:

    kinetics:
      rate_model: kawasaki
      k0: 1.0e+6
      temp_c: 25.0
    simulation:
      t_end: 0.1
      num_sims: 500
      seed: 42
"""
from __future__ import annotations
import logging
from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Any, Dict, Mapping, Optional, Union, get_args, get_origin, get_type_hints

import yaml

from rna_kinetics.energies.data.yaml_io import read_yaml
from rna_kinetics.errors import InputError
from rna_kinetics.kinetics.rate_models import DEFAULT_K0, RATE_MODELS
from rna_kinetics.timecourse.schedule import (
    DEFAULT_T_END,
    DEFAULT_T_EXT,
    DEFAULT_T_LIN,
    DEFAULT_T_LOG,
    CheckpointSchedule,
)
from rna_kinetics.utils.energy_utils import celsius_to_kelvin

logger = logging.getLogger(__name__)

DEFAULT_TEMP_C = 37.0


@dataclass(slots=True)
class KineticsConfig:
    """
    Energy and rate settings.

    Attributes
    ----------
    rate_model : str
        `"metropolis"` or `"kawasaki"`.
    k0 : float
        Rate constant (1/s).
    temp_c : float
        Temperature in Celsius.
    params : str, optional
        Energy parameter YAML; the bundled set when omitted.
    """
    rate_model: str = "metropolis"
    k0: float = DEFAULT_K0
    temp_c: float = DEFAULT_TEMP_C
    params: Optional[str] = None

    @property
    def temp_k(self) -> float:
        return celsius_to_kelvin(self.temp_c)


@dataclass(slots=True)
class SimulationConfig:
    """
    Time and sampling settings.

    Attributes
    ----------
    t_end, t_ext : float
        End time and end of the linear checkpoint segment (s).
    t_lin, t_log : int
        Linear and logarithmic checkpoint counts.
    num_sims : int
        Trajectories to add in timecourse mode.
    seed : int, optional
        Root random seed.
    workers : int
        Worker processes for timecourse mode.
    max_wall_seconds : float, optional
        Wall-clock budget per trajectory.
    timeline : str, optional
        Timeline file to extend and save.
    plot : str, optional
        Occupancy plot output path.
    """
    t_end: float = DEFAULT_T_END
    t_ext: float = DEFAULT_T_EXT
    t_lin: int = DEFAULT_T_LIN
    t_log: int = DEFAULT_T_LOG
    num_sims: int = 1
    seed: Optional[int] = None
    workers: int = 1
    max_wall_seconds: Optional[float] = None
    timeline: Optional[str] = None
    plot: Optional[str] = None

    def schedule(self) -> CheckpointSchedule:
        return CheckpointSchedule(t_end=self.t_end, t_ext=self.t_ext, t_lin=self.t_lin, t_log=self.t_log)


@dataclass(slots=True)
class RunConfig:
    kinetics: KineticsConfig = field(default_factory=KineticsConfig)
    simulation: SimulationConfig = field(default_factory=SimulationConfig)

    def override(self, **values: Any) -> "RunConfig":
        """Set every non-None keyword on whichever section declares it."""
        for key, value in values.items():
            if value is None:
                continue
            section = _section_for(self, key)
            if section is None:
                raise InputError(f"Unknown configuration option {key!r}.")
            setattr(section, key, value)
        _check(self)
        return self


def _section_for(config: RunConfig, key: str):
    for section in (config.kinetics, config.simulation):
        if key in {f.name for f in fields(section)}:
            return section
    return None


def _check(config: RunConfig) -> None:
    kin, sim = config.kinetics, config.simulation
    if kin.rate_model.lower() not in RATE_MODELS:
        raise InputError(f"Unknown rate model {kin.rate_model!r}; choose from {sorted(RATE_MODELS)}.")
    if kin.k0 <= 0:
        raise InputError(f"k0 must be positive (got {kin.k0}).")
    if sim.num_sims < 0:
        raise InputError(f"num_sims must be >= 0 (got {sim.num_sims}).")
    if sim.workers < 1:
        raise InputError(f"workers must be >= 1 (got {sim.workers}).")
    if sim.seed is not None and sim.seed < 0:
        raise InputError(f"seed must be >= 0 (got {sim.seed}).")
    if sim.max_wall_seconds is not None and sim.max_wall_seconds <= 0:
        raise InputError(f"max_wall_seconds must be positive (got {sim.max_wall_seconds}).")


def _scalar_type(hint: Any) -> Optional[type]:
    """`X` for a field annotated `X` or `Optional[X]` with `X` one of int, float, str."""
    if get_origin(hint) is Union:
        args = [arg for arg in get_args(hint) if arg is not type(None)]
        hint = args[0] if len(args) == 1 else None
    return hint if hint in (int, float, str) else None


def _coerce(section, values: Mapping[str, Any], source: str) -> None:
    hints = get_type_hints(type(section))
    known = {f.name for f in fields(section)}
    for key, value in values.items():
        if key not in known:
            raise InputError(f"{source}: unknown option {key!r} in section {type(section).__name__}.")
        target = _scalar_type(hints[key])
        if value is not None and target is not None:
            if isinstance(value, bool) and target is not str:
                raise InputError(f"{source}: invalid value for {key!r}: {value!r}")
            try:
                value = target(value)
            except (TypeError, ValueError) as exc:
                raise InputError(f"{source}: invalid value for {key!r}: {value!r}") from exc
        setattr(section, key, value)


def load_config(path: str | Path | None = None) -> RunConfig:
    """
    Build a run configuration from defaults and an optional YAML file.

    Raises
    ------
    InputError
        If the file cannot be read, has unknown sections or options, or holds
        invalid values.
    """
    config = RunConfig()
    if path is None:
        return config

    try:
        data: Dict[str, Any] = read_yaml(path)
    except (OSError, ValueError) as exc:
        raise InputError(f"Cannot read config {path}: {exc}") from exc
    except yaml.YAMLError as exc:
        raise InputError(f"Malformed config {path}: {exc}") from exc

    unknown = set(data) - {"kinetics", "simulation"}
    if unknown:
        raise InputError(f"{path}: unknown config section(s) {sorted(unknown)}.")

    for name in ("kinetics", "simulation"):
        values = data.get(name) or {}
        if not isinstance(values, dict):
            raise InputError(f"{path}: section {name!r} must be a mapping.")
        _coerce(getattr(config, name), values, str(path))

    _check(config)
    logger.info("Loaded configuration from %s", path)
    return config
