"""
Pieces shared by the `ff-trajectory` and `ff-timecourse` front ends:
logging setup, common flags, and building the structure and rate models
from a run configuration.
"""
from __future__ import annotations
import argparse
import logging
from typing import Optional, Tuple

from rna_kinetics.config import RunConfig, load_config
from rna_kinetics.energies import NearestNeighborEnergyModel, NearestNeighborParamLoader
from rna_kinetics.kinetics.rate_models import RateModelProtocol, make_rate_model
from rna_kinetics.kinetics.structure_model import StructureModel
from rna_kinetics.utils.logging_utils import DEFAULT_LOG_DIR, setup_logger, verbosity_to_level

logger = logging.getLogger(__name__)

# Exit codes
EXIT_OK = 0
EXIT_FAILURE = 1
EXIT_INPUT_ERROR = 2


# --------------------------
# Logging Configuration
# --------------------------
def setup_cli_logging(verbose_level: int, log_file: Optional[str] = None, quiet: bool = False) -> None:
    """
    Configure the package logger from the command-line flags.

    Parameters
    ----------
    verbose_level : int
        The `-v` count: 0 for WARNING, 1 for INFO, 2 for DEBUG.
    log_file : Optional[str]
        Explicit log file. Without it, a timestamped file is created under
        `var/log/` when `verbose_level > 0`.
    quiet : bool
        Only report errors on the console.
    """
    level = verbosity_to_level(verbose_level, quiet=quiet)
    should_log_to_file = (verbose_level > 0 and not quiet) or (log_file is not None)

    # Module loggers propagate to the package logger.
    setup_logger(
        "rna_kinetics",
        level=min(level, logging.INFO) if should_log_to_file else level,
        log_file=log_file,
        enable_file_logging=should_log_to_file,
        console_level=level,
    )

    if should_log_to_file and log_file is None:
        logger.info(f"Logs will be saved to: {DEFAULT_LOG_DIR.resolve()}")


def add_common_arguments(parser: argparse.ArgumentParser) -> None:
    """Input, energy, rate and logging flags used by both front ends."""
    parser.add_argument("input", nargs="?", default="-",
                        help="FASTA-like input: optional >header, sequence, optional "
                             "initial structure. '-' reads stdin (default).")
    parser.add_argument("--config", default=None,
                        help="YAML run configuration; command-line flags override it.")
    parser.add_argument("--params", default=None,
                        help="Energy parameter YAML (defaults to package data).")
    parser.add_argument("--temp-c", type=float, default=None,
                        help="Temperature in °C (default: 37.0).")
    parser.add_argument("--rate-model", choices=["metropolis", "kawasaki"], default=None,
                        help="Rate law (default: metropolis).")
    parser.add_argument("--k0", type=float, default=None,
                        help="Rate constant in 1/s (default: 1e6).")
    parser.add_argument("--t-end", type=float, default=None,
                        help="Simulated end time in seconds (default: 1.0).")
    parser.add_argument("--seed", type=int, default=None,
                        help="Random seed (default: drawn and logged).")
    parser.add_argument("--max-wall-seconds", type=float, default=None,
                        help="Wall-clock budget per trajectory.")

    # Logging arguments
    parser.add_argument("-v", "--verbose", action="count", default=0,
                        help="Increase verbosity (-v=INFO, -vv=DEBUG)")
    parser.add_argument("--log-file", default=None,
                        help="Path to log file (default: var/log/<name>_TIMESTAMP.log if verbose)")
    parser.add_argument("--quiet", action="store_true",
                        help="Suppress all output except errors and the result")


def build_config(cli_args: argparse.Namespace, **extra) -> RunConfig:
    """Defaults, then `--config`, then explicit flags."""
    config = load_config(cli_args.config)
    return config.override(
        params=cli_args.params,
        temp_c=cli_args.temp_c,
        rate_model=cli_args.rate_model,
        k0=cli_args.k0,
        t_end=cli_args.t_end,
        seed=cli_args.seed,
        max_wall_seconds=cli_args.max_wall_seconds,
        **extra,
    )


def build_models(sequence: str, config: RunConfig) -> Tuple[StructureModel, RateModelProtocol]:
    """
    Load the energy parameters and create the structure and rate models.

    Raises
    ------
    InputError
        If the parameter file or the sequence is invalid.
    """
    kinetics = config.kinetics
    temp_k = kinetics.temp_k
    logger.info(f"Temperature: {kinetics.temp_c}°C ({temp_k:.2f}K)")

    params = NearestNeighborParamLoader().load(kind="RNA", yaml_path=kinetics.params)
    energy_model = NearestNeighborEnergyModel(params=params, temp_k=temp_k)
    structure_model = StructureModel(sequence, energy_model)

    rate_model = make_rate_model(kinetics.rate_model, k0=kinetics.k0, temp_k=temp_k)
    logger.info(f"Rate model: {type(rate_model).__name__} (k0={kinetics.k0:g}/s)")

    return structure_model, rate_model
