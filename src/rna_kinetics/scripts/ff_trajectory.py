#!/usr/bin/env python3
"""
Simulate one folding trajectory and print every visited structure.

The input is a FASTA-like record: an optional `>header`, the sequence, and
optionally an initial dot-bracket structure (the open chain otherwise).
Each output line is `dot-bracket energy arrival waiting mean_waiting`.

Examples:
  - echo GGGGAAAACCCC | ff-trajectory --t-end 1e-4 --seed 1
  - ff-trajectory hairpin.fa --rate-model kawasaki --temp-c 25 --t-end 0.01
  - ff-trajectory -vv --params /path/to/params.yaml hairpin.fa
"""

# --- Standard Library Imports ---
from __future__ import annotations
import argparse
import logging
import signal
import sys
import time
from typing import Optional, Sequence

# --- Third-Party Imports ---
import numpy as np

# --- Local Application Imports ---
from rna_kinetics.errors import InputError, TimelineError
from rna_kinetics.io import read_fasta_like, write_trajectory
from rna_kinetics.kinetics.ssa import SSAEngine
from rna_kinetics.kinetics.trajectory import Trajectory, TrajectoryStatus
from rna_kinetics.scripts.cli_common import (
    EXIT_FAILURE,
    EXIT_INPUT_ERROR,
    EXIT_OK,
    add_common_arguments,
    build_config,
    build_models,
    setup_cli_logging,
)
from rna_kinetics.structures.secondary_structure import SecondaryStructure

# Set up module logger
logger = logging.getLogger(__name__)


class StopFlag:
    """Set by SIGINT so the running trajectory ends cleanly between steps."""

    def __init__(self) -> None:
        self.requested = False

    def __call__(self) -> bool:
        return self.requested

    def request(self, signum=None, frame=None) -> None:
        self.requested = True


def simulate(
    sequence: str,
    initial: Optional[str],
    cli_config,
    should_stop: Optional[StopFlag] = None,
) -> Trajectory:
    """
    Build the models and run one trajectory.

    Parameters
    ----------
    sequence : str
        Normalized RNA sequence.
    initial : Optional[str]
        Initial dot-bracket structure, or None for the open chain.
    cli_config : RunConfig
        Kinetics and simulation settings.
    should_stop : Optional[StopFlag]
        Cooperative cancellation flag.

    Returns
    -------
    Trajectory
        The simulated records and their termination status.
    """
    structure_model, rate_model = build_models(sequence, cli_config)
    if initial is None:
        start = SecondaryStructure.open_chain(len(structure_model.sequence))
    else:
        start = structure_model.parse(initial)

    seed = cli_config.simulation.seed
    if seed is None:
        seed = int(np.random.SeedSequence().entropy % (2 ** 63))
        logger.info(f"No seed given; using seed {seed}")

    engine = SSAEngine(structure_model, rate_model)
    start_time = time.perf_counter()
    trajectory = engine.run(
        start,
        cli_config.simulation.t_end,
        np.random.default_rng(seed),
        should_stop=should_stop,
        max_wall_seconds=cli_config.simulation.max_wall_seconds,
    )
    elapsed = time.perf_counter() - start_time
    logger.info(f"Trajectory {trajectory.status.value}: {len(trajectory)} records in {elapsed:.2f}s")
    return trajectory


# --------------------------
# Command-Line Interface
# --------------------------
def main(argv: Optional[Sequence[str]] = None) -> int:
    """
    Parses command-line arguments and simulates one trajectory.
    """
    # --- Argument Parsing ---
    parser = argparse.ArgumentParser(description="Simulate one RNA folding trajectory (Gillespie SSA).")
    add_common_arguments(parser)
    cli_args = parser.parse_args(argv)

    # --- Setup ---
    setup_cli_logging(cli_args.verbose, cli_args.log_file, quiet=cli_args.quiet)

    logger.info("=" * 60)
    logger.info("RNA Folding Trajectory CLI")
    logger.info("=" * 60)

    stop_flag = StopFlag()
    previous_handler = signal.signal(signal.SIGINT, stop_flag.request)
    try:
        config = build_config(cli_args)
        header, sequence, initial = read_fasta_like(cli_args.input)
        trajectory = simulate(sequence, initial, config, should_stop=stop_flag)
    except (InputError, TimelineError) as e:
        logger.error(f"Invalid input: {e}")
        print(f"Error: {e}", file=sys.stderr)
        return EXIT_INPUT_ERROR
    except Exception as e:
        logger.error(f"Simulation failed: {e}", exc_info=True)
        print(f"Simulation failed: {e}", file=sys.stderr)
        return EXIT_FAILURE
    finally:
        signal.signal(signal.SIGINT, previous_handler)

    # --- Output ---
    write_trajectory(trajectory, sys.stdout, header=header)
    if trajectory.status is not TrajectoryStatus.COMPLETED:
        logger.warning(f"Trajectory ended early ({trajectory.status.value}) "
                       f"at t={trajectory.final.arrival_time:.6e}")

    return EXIT_OK


if __name__ == "__main__":
    raise SystemExit(main())
