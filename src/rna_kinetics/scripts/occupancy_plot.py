"""
Plot macro-state occupancy over time from a timeline.

Examples:
  - python -m rna_kinetics.scripts.occupancy_plot hairpin.timeline.json occupancy.png
"""
from __future__ import annotations
import argparse
import logging
import sys
from pathlib import Path
from typing import Optional, Sequence

import matplotlib

matplotlib.use("Agg")
import matplotlib.pyplot as plt  # noqa: E402
import numpy as np  # noqa: E402

from rna_kinetics.errors import TimelineError  # noqa: E402
from rna_kinetics.timecourse.macrostates import UNASSIGNED  # noqa: E402
from rna_kinetics.timecourse.timeline import Timeline  # noqa: E402

logger = logging.getLogger(__name__)


def plot_occupancy(
    timeline: Timeline,
    path: str | Path,
    title: Optional[str] = None,
    include_unassigned: bool = True,
) -> Path:
    """
    Save a mean ± standard-error occupancy plot, one curve per macro-state.

    The time axis is logarithmic, so the checkpoint at `t = 0` is left out.
    The file format follows the suffix of `path` (e.g. `.png`, `.svg`).

    Parameters
    ----------
    timeline : Timeline
        Accumulated statistics.
    path : str or Path
        Output file.
    title : str, optional
        Plot title; defaults to the sequence and trajectory count.
    include_unassigned : bool, optional
        Also draw the `"unassigned"` column.

    Returns
    -------
    Path
        The written file.
    """
    path = Path(path)
    mean, err = timeline.mean(), timeline.stderr()
    positive = timeline.times > 0
    times = timeline.times[positive]

    fig, ax = plt.subplots(figsize=(8, 5))
    for col, name in enumerate(timeline.columns):
        if name == UNASSIGNED and not include_unassigned:
            continue
        yerr = np.nan_to_num(err[positive, col], nan=0.0)
        ax.errorbar(times, mean[positive, col], yerr=yerr, fmt='o--' if name == UNASSIGNED else 'o-', capsize=3,
                    label=name, linewidth=1.5, markersize=4)

    ax.set_xscale('log')
    ax.set_ylim(-0.02, 1.02)
    ax.set_xlabel('Time (s)', fontsize=12)
    ax.set_ylabel('Occupancy', fontsize=12)
    if title is None:
        title = f"{timeline.sequence} ({timeline.n_trajectories} trajectories)"
    ax.set_title(title, fontsize=12, fontweight='bold')
    ax.legend(fontsize=9)
    ax.grid(True, alpha=0.3)
    fig.tight_layout()

    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        fig.savefig(path, dpi=300, bbox_inches='tight')
    finally:
        plt.close(fig)

    logger.info("Occupancy plot saved to %s", path)
    return path


def main(argv: Optional[Sequence[str]] = None) -> int:
    """Plot a saved timeline."""
    parser = argparse.ArgumentParser(description="Plot macro-state occupancy from a timeline file.")
    parser.add_argument("timeline", help="Timeline JSON written by ff-timecourse.")
    parser.add_argument("output", help="Image file (.png, .svg, .pdf).")
    parser.add_argument("--title", default=None, help="Plot title.")
    parser.add_argument("--no-unassigned", action="store_true",
                        help="Leave out the 'unassigned' column.")
    cli_args = parser.parse_args(argv)

    try:
        timeline = Timeline.load(cli_args.timeline)
    except TimelineError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 2

    try:
        plot_occupancy(timeline, cli_args.output, title=cli_args.title,
                       include_unassigned=not cli_args.no_unassigned)
    except OSError as e:
        logger.error(f"Cannot write plot: {e}")
        print(f"Cannot write plot: {e}", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
