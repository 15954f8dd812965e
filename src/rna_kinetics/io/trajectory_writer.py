from __future__ import annotations
import math
from typing import Optional, TextIO

from rna_kinetics.kinetics.trajectory import Trajectory, TrajectoryRecord

MISSING = "NA"


def format_mean_waiting(value: Optional[float]) -> str:
    """`NA` when the flux was never evaluated, `inf` for an absorbing structure."""
    if value is None:
        return MISSING
    if math.isinf(value):
        return "inf"
    return f"{value:.6e}"


def format_record(record: TrajectoryRecord) -> str:
    """
    Render one record as `dot-bracket energy arrival waiting mean_waiting`.

    Examples
    --------
    >>> format_record(record)  # doctest: +SKIP
    '(((...)))    -1.20 0.000000e+00 1.000000e+00 NA'
    """
    return (
        f"{record.dot_bracket} {record.energy:8.2f} "
        f"{record.arrival_time:.6e} {record.waiting_time:.6e} "
        f"{format_mean_waiting(record.mean_waiting_time)}"
    )


def write_trajectory(trajectory: Trajectory, stream: TextIO, header: Optional[str] = None) -> int:
    """
    Write the sequence line followed by one line per record.

    Parameters
    ----------
    trajectory : Trajectory
        The simulated trajectory.
    stream : TextIO
        Destination, e.g. `sys.stdout`.
    header : str, optional
        Written as a `>header` line before the sequence.

    Returns
    -------
    int
        Number of records written.
    """
    if header:
        stream.write(f">{header}\n")
    stream.write(f"{trajectory.sequence}\n")

    written = 0
    for record in trajectory:
        stream.write(format_record(record) + "\n")
        written += 1
    return written
