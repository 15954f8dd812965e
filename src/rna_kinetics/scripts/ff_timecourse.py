#!/usr/bin/env python3
"""
Estimate macro-state occupancy over time from many folding trajectories.

Trajectories start from the input structure (the open chain otherwise), are
sampled at a lin/log checkpoint schedule and classified into the macro-states
given with `--macrostates`. With `--timeline`, statistics are added to an
existing timeline file (created if missing) and saved back atomically.

Examples:
  - ff-timecourse hairpin.fa --macrostates hp.ms open.ms -n 1000 --seed 7
  - ff-timecourse hairpin.fa --macrostates hp.ms -n 500 --timeline hp.json --workers 4
  - ff-timecourse hairpin.fa --macrostates hp.ms --t-ext 1e-6 --t-end 0.1 --plot hp.png
"""

# --- Standard Library Imports ---
from __future__ import annotations
import argparse
import logging
import sys
import time
from pathlib import Path
from typing import List, Optional, Sequence

# --- Local Application Imports ---
from rna_kinetics.config import RunConfig
from rna_kinetics.errors import InputError, TimelineError
from rna_kinetics.io import read_fasta_like
from rna_kinetics.kinetics.structure_model import StructureModel
from rna_kinetics.scripts.cli_common import (
    EXIT_FAILURE,
    EXIT_INPUT_ERROR,
    EXIT_OK,
    add_common_arguments,
    build_config,
    build_models,
    setup_cli_logging,
)
from rna_kinetics.timecourse import MacrostateRegistry, TimecourseAccumulator, Timeline

# Set up module logger
logger = logging.getLogger(__name__)


def load_or_create_timeline(path: Optional[str]) -> Optional[Timeline]:
    """Load `path` when it exists; None means start a fresh timeline."""
    if path is None or not Path(path).exists():
        return None
    return Timeline.load(path)


def format_summary(
    header: Optional[str],
    structure_model: StructureModel,
    registry: MacrostateRegistry,
    timeline: Timeline,
    precision: int = 3,
) -> str:
    """Header, sequence, macro-state free energies and the occupancy table."""
    lines: List[str] = []
    if header:
        lines.append(f">{header}")
    lines.append(structure_model.sequence)
    for macrostate in registry:
        lines.append(
            f"# {macrostate.name}: {len(macrostate)} structure(s), "
            f"G = {macrostate.free_energy(structure_model):.2f} kcal/mol"
        )
    lines.append(f"# trajectories: {timeline.n_trajectories}")
    lines.append(timeline.to_table(precision=precision))
    return "\n".join(lines)


def run_timecourse(
    sequence: str,
    initial: Optional[str],
    macrostate_paths: Sequence[str],
    config: RunConfig,
    progress: bool = False,
):
    """
    Build every component, extend the timeline and persist it.

    Returns
    -------
    (StructureModel, MacrostateRegistry, Timeline)

    Raises
    ------
    InputError
        For invalid sequences, structures, macro-states, schedules or parameters.
    TimelineError
        If the timeline file cannot be read, does not match or cannot be saved.
    """
    sim = config.simulation
    structure_model, rate_model = build_models(sequence, config)
    schedule = sim.schedule()
    logger.info(f"Checkpoints: {len(schedule)} (t_ext={sim.t_ext:g}s, t_end={sim.t_end:g}s)")

    registry = MacrostateRegistry.from_files(macrostate_paths, structure_model.sequence, structure_model)
    logger.info(f"Macro-states: {', '.join(registry.names) or '(none)'}")

    start = structure_model.parse(initial) if initial is not None else None

    # Load before simulating so a bad file fails fast.
    timeline = load_or_create_timeline(sim.timeline)

    accumulator = TimecourseAccumulator(
        structure_model,
        rate_model,
        registry,
        schedule,
        initial=start,
        seed=sim.seed,
        workers=sim.workers,
        max_wall_seconds=sim.max_wall_seconds,
        progress=progress,
    )

    start_time = time.perf_counter()
    timeline = accumulator.run(sim.num_sims, timeline=timeline)
    elapsed = time.perf_counter() - start_time
    logger.info(f"Simulation completed in {elapsed:.2f}s")

    if sim.timeline is not None:
        timeline.save(sim.timeline)

    return structure_model, registry, timeline


# --------------------------
# Command-Line Interface
# --------------------------
def main(argv: Optional[Sequence[str]] = None) -> int:
    """
    Parses command-line arguments and runs the timecourse.
    """
    # --- Argument Parsing ---
    parser = argparse.ArgumentParser(
        description="Macro-state occupancy over time from many RNA folding trajectories."
    )
    add_common_arguments(parser)
    parser.add_argument("-m", "--macrostates", nargs="+", default=[],
                        help="Macro-state files (>name, sequence, one structure per line).")
    parser.add_argument("-n", "--num-sims", type=int, default=None,
                        help="Trajectories to add (default: 1).")
    parser.add_argument("--t-ext", type=float, default=None,
                        help="End of the linear checkpoint segment (default: 1e-5).")
    parser.add_argument("--t-lin", type=int, default=None,
                        help="Checkpoints on the linear segment (default: 1).")
    parser.add_argument("--t-log", type=int, default=None,
                        help="Intervals on the log segment (default: 20).")
    parser.add_argument("--timeline", default=None,
                        help="Timeline JSON to extend and save (created if missing).")
    parser.add_argument("--plot", default=None,
                        help="Write an occupancy plot (.png, .svg) after the run.")
    parser.add_argument("--workers", type=int, default=None,
                        help="Worker processes (default: 1).")
    parser.add_argument("--precision", type=int, default=3,
                        help="Decimals in the occupancy table (default: 3).")
    cli_args = parser.parse_args(argv)

    # --- Setup ---
    setup_cli_logging(cli_args.verbose, cli_args.log_file, quiet=cli_args.quiet)

    logger.info("=" * 60)
    logger.info("RNA Folding Timecourse CLI")
    logger.info("=" * 60)

    try:
        config = build_config(
            cli_args,
            num_sims=cli_args.num_sims,
            t_ext=cli_args.t_ext,
            t_lin=cli_args.t_lin,
            t_log=cli_args.t_log,
            timeline=cli_args.timeline,
            plot=cli_args.plot,
            workers=cli_args.workers,
        )
        header, sequence, initial = read_fasta_like(cli_args.input)
        structure_model, registry, timeline = run_timecourse(
            sequence, initial, cli_args.macrostates, config,
            progress=not cli_args.quiet and sys.stderr.isatty(),
        )
    except (InputError, TimelineError) as e:
        logger.error(f"Invalid input: {e}")
        print(f"Error: {e}", file=sys.stderr)
        return EXIT_INPUT_ERROR
    except Exception as e:
        logger.error(f"Timecourse failed: {e}", exc_info=True)
        print(f"Timecourse failed: {e}", file=sys.stderr)
        return EXIT_FAILURE

    # --- Output ---
    print(format_summary(header, structure_model, registry, timeline, precision=cli_args.precision))

    if config.simulation.plot is not None:
        # Imported lazily; matplotlib is only needed for plots.
        from rna_kinetics.scripts.occupancy_plot import plot_occupancy
        try:
            plot_occupancy(timeline, config.simulation.plot, title=header)
        except OSError as e:
            logger.error(f"Cannot write plot: {e}")
            print(f"Cannot write plot: {e}", file=sys.stderr)
            return EXIT_FAILURE

    return EXIT_OK


if __name__ == "__main__":
    raise SystemExit(main())
