"""
Timeline: mergeable macro-state occupancy statistics over a checkpoint schedule.

Per (checkpoint, macro-state) cell the timeline keeps the number of samples,
the sum and the sum of squares of the 0/1 occupancy indicator. Merging two
timelines adds these cell-wise, so merging is commutative and associative and
a reloaded timeline can keep accumulating.
"""
from __future__ import annotations
import json
import logging
import math
import os
import tempfile
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence

import numpy as np

from rna_kinetics.errors import TimelineError, TimelineFormatError, TimelineMismatchError
from rna_kinetics.timecourse.sampler import OccupancySample

logger = logging.getLogger(__name__)

TIMELINE_FORMAT = "rna_kinetics.timeline"
TIMELINE_VERSION = 1


class Timeline:
    """
    Accumulated occupancy statistics.

    Parameters
    ----------
    sequence : str
        The simulated sequence.
    times : sequence of float
        Checkpoint times.
    columns : sequence of str
        Macro-state names followed by the implicit `"unassigned"` column.
    counts, sums, sumsq : numpy.ndarray, optional
        Existing statistics of shape (len(times), len(columns)); zeros if omitted.
    n_trajectories : int
        Number of trajectories accumulated so far.
    """

    def __init__(
        self,
        sequence: str,
        times: Sequence[float],
        columns: Sequence[str],
        counts: Optional[np.ndarray] = None,
        sums: Optional[np.ndarray] = None,
        sumsq: Optional[np.ndarray] = None,
        n_trajectories: int = 0,
    ) -> None:
        self.sequence = sequence
        self.times = np.asarray(times, dtype=np.float64)
        self.columns: List[str] = list(columns)
        shape = (len(self.times), len(self.columns))

        self.counts = np.zeros(shape, dtype=np.int64) if counts is None else np.asarray(counts, dtype=np.int64)
        self.sums = np.zeros(shape, dtype=np.float64) if sums is None else np.asarray(sums, dtype=np.float64)
        self.sumsq = np.zeros(shape, dtype=np.float64) if sumsq is None else np.asarray(sumsq, dtype=np.float64)
        self.n_trajectories = int(n_trajectories)

        for name, array in (("counts", self.counts), ("sums", self.sums), ("sumsq", self.sumsq)):
            if array.shape != shape:
                raise TimelineFormatError(f"Timeline {name} has shape {array.shape}, expected {shape}.")

    @property
    def shape(self) -> tuple:
        return self.counts.shape

    def copy(self) -> "Timeline":
        return Timeline(
            self.sequence, self.times.copy(), list(self.columns),
            self.counts.copy(), self.sums.copy(), self.sumsq.copy(), self.n_trajectories,
        )

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Timeline):
            return NotImplemented
        return (
            self.sequence == other.sequence
            and self.columns == other.columns
            and np.array_equal(self.times, other.times)
            and np.array_equal(self.counts, other.counts)
            and np.array_equal(self.sums, other.sums)
            and np.array_equal(self.sumsq, other.sumsq)
            and self.n_trajectories == other.n_trajectories
        )

    __hash__ = None

    # --- Accumulation ---
    def record_trajectory(self, sample: OccupancySample) -> None:
        """Add one trajectory's occupancy sample."""
        indicators = np.asarray(sample.indicators, dtype=np.float64)
        if indicators.shape != self.shape:
            raise TimelineMismatchError(
                f"Occupancy sample has shape {indicators.shape}, timeline expects {self.shape}."
            )
        sampled = np.asarray(sample.sampled, dtype=bool)[:, None]

        self.counts += np.broadcast_to(sampled, self.shape).astype(np.int64)
        self.sums += indicators
        self.sumsq += indicators * indicators
        self.n_trajectories += 1

    def check_compatible(self, other: "Timeline") -> None:
        """
        Raises
        ------
        TimelineMismatchError
            If the sequence, checkpoint schedule or macro-state columns differ.
        """
        if self.sequence != other.sequence:
            raise TimelineMismatchError(
                f"Timeline sequences differ: {self.sequence!r} vs {other.sequence!r}."
            )
        if self.times.shape != other.times.shape or not np.allclose(
            self.times, other.times, rtol=1e-12, atol=0.0
        ):
            raise TimelineMismatchError("Timeline checkpoint schedules differ.")
        if self.columns != other.columns:
            raise TimelineMismatchError(
                f"Timeline macro-states differ: {self.columns} vs {other.columns}."
            )

    def merge(self, other: "Timeline") -> "Timeline":
        """Add `other` cell-wise into this timeline and return self."""
        self.check_compatible(other)
        self.counts += other.counts
        self.sums += other.sums
        self.sumsq += other.sumsq
        self.n_trajectories += other.n_trajectories
        return self

    # --- Statistics ---
    def mean(self) -> np.ndarray:
        """Mean occupancy per cell; NaN where no sample was taken."""
        with np.errstate(invalid="ignore", divide="ignore"):
            return np.where(self.counts > 0, self.sums / self.counts, np.nan)

    def stderr(self) -> np.ndarray:
        """Standard error of the mean per cell; NaN with fewer than two samples."""
        n = self.counts.astype(np.float64)
        with np.errstate(invalid="ignore", divide="ignore"):
            mean = self.sums / n
            variance = (self.sumsq - n * mean * mean) / (n - 1.0)
            variance = np.maximum(variance, 0.0)
            return np.where(self.counts > 1, np.sqrt(variance / n), np.nan)

    # --- Persistence ---
    def to_dict(self) -> Dict[str, Any]:
        return {
            "format": TIMELINE_FORMAT,
            "version": TIMELINE_VERSION,
            "sequence": self.sequence,
            "times": self.times.tolist(),
            "macrostates": list(self.columns),
            "counts": self.counts.tolist(),
            "sums": self.sums.tolist(),
            "sumsq": self.sumsq.tolist(),
            "n_trajectories": self.n_trajectories,
        }

    @classmethod
    def from_dict(cls, data: Any) -> "Timeline":
        """
        Raises
        ------
        TimelineFormatError
            If the mapping is not a valid serialized timeline.
        """
        if not isinstance(data, dict):
            raise TimelineFormatError("Timeline file must contain a JSON object.")
        if data.get("format") != TIMELINE_FORMAT:
            raise TimelineFormatError(f"Not a timeline file (format={data.get('format')!r}).")
        if data.get("version") != TIMELINE_VERSION:
            raise TimelineFormatError(f"Unsupported timeline version {data.get('version')!r}.")

        missing = [k for k in ("sequence", "times", "macrostates", "counts", "sums", "sumsq",
                               "n_trajectories") if k not in data]
        if missing:
            raise TimelineFormatError(f"Timeline file lacks {', '.join(missing)}.")

        try:
            times = np.asarray(data["times"], dtype=np.float64).reshape(-1)
            shape = (len(times), len(data["macrostates"]))
            counts = np.asarray(data["counts"], dtype=np.int64).reshape(shape)
            sums = np.asarray(data["sums"], dtype=np.float64).reshape(shape)
            sumsq = np.asarray(data["sumsq"], dtype=np.float64).reshape(shape)
            n_trajectories = int(data["n_trajectories"])
        except (TypeError, ValueError) as exc:
            raise TimelineFormatError(f"Corrupt timeline data: {exc}") from exc

        if (counts < 0).any() or n_trajectories < 0:
            raise TimelineFormatError("Timeline counts must be non-negative.")

        return cls(str(data["sequence"]), times, [str(c) for c in data["macrostates"]],
                   counts, sums, sumsq, n_trajectories)

    def save(self, path: str | Path) -> Path:
        """
        Write the timeline as JSON, atomically.

        The data goes to a temporary file in the target directory that then
        replaces `path`, so readers see either the old or the new file.

        Raises
        ------
        TimelineError
            If the file cannot be written. An existing file is left untouched.
        """
        path = Path(path)
        payload = json.dumps(self.to_dict())
        tmp_name = None
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            with tempfile.NamedTemporaryFile(
                "w", encoding="utf-8", dir=path.parent, prefix=f".{path.name}.", suffix=".tmp", delete=False
            ) as handle:
                tmp_name = handle.name
                handle.write(payload)
                handle.flush()
                os.fsync(handle.fileno())
            os.replace(tmp_name, path)
            tmp_name = None
        except OSError as exc:
            raise TimelineError(f"Cannot write timeline {path}: {exc}") from exc
        finally:
            if tmp_name is not None and os.path.exists(tmp_name):
                os.unlink(tmp_name)

        logger.info("Saved timeline (%d trajectories) to %s", self.n_trajectories, path)
        return path

    @classmethod
    def load(cls, path: str | Path) -> "Timeline":
        """
        Raises
        ------
        TimelineFormatError
            If the file is unreadable or corrupt.
        """
        path = Path(path)
        try:
            data = json.loads(path.read_text(encoding="utf-8"))
        except (OSError, UnicodeDecodeError, json.JSONDecodeError) as exc:
            raise TimelineFormatError(f"Cannot read timeline {path}: {exc}") from exc

        timeline = cls.from_dict(data)
        logger.info("Loaded timeline (%d trajectories) from %s", timeline.n_trajectories, path)
        return timeline

    # --- Rendering ---
    def to_table(self, precision: int = 3) -> str:
        """Plain-text table: one row per checkpoint, `mean±stderr` per macro-state."""
        mean, err = self.mean(), self.stderr()
        width = max(precision + 2 + precision + 3, *(len(c) for c in self.columns))
        header = f"{'time':>12}  {'n':>6}  " + "  ".join(f"{c:>{width}}" for c in self.columns)
        lines = [header]
        for t_idx, t in enumerate(self.times):
            cells = []
            for c_idx in range(len(self.columns)):
                m, e = mean[t_idx, c_idx], err[t_idx, c_idx]
                if math.isnan(m):
                    cell = "NA"
                elif math.isnan(e):
                    cell = f"{m:.{precision}f}"
                else:
                    cell = f"{m:.{precision}f}±{e:.{precision}f}"
                cells.append(f"{cell:>{width}}")
            n = int(self.counts[t_idx].max()) if self.counts.size else 0
            lines.append(f"{t:>12.4e}  {n:>6d}  " + "  ".join(cells))
        return "\n".join(lines)

    def __str__(self) -> str:
        return self.to_table()

    def __repr__(self) -> str:
        return (f"Timeline(sequence={self.sequence!r}, checkpoints={len(self.times)}, "
                f"columns={self.columns}, n_trajectories={self.n_trajectories})")
