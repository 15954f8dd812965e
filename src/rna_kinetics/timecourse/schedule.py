from __future__ import annotations
import math
from dataclasses import dataclass, field

import numpy as np

from rna_kinetics.errors import ScheduleError

DEFAULT_T_EXT = 1e-5
DEFAULT_T_END = 1.0
DEFAULT_T_LIN = 1
DEFAULT_T_LOG = 20


@dataclass(frozen=True, slots=True)
class CheckpointSchedule:
    """
    Fixed checkpoint times at which trajectories are sampled.

    The schedule is `0`, then `t_lin` evenly spaced points up to `t_ext`, then
    `t_log - 1` log-spaced points between `t_ext` and `t_end`, then `t_end`.

    Parameters
    ----------
    t_end : float
        Simulation stop time, last checkpoint.
    t_ext : float
        End of the linear segment.
    t_lin : int
        Number of points on the linear segment `(0, t_ext]`.
    t_log : int
        Number of intervals on the logarithmic segment `[t_ext, t_end]`.

    Raises
    ------
    ScheduleError
        If `t_end <= t_ext`, `t_ext <= 0`, a count is negative, or `t_lin == 0`
        while `t_log > 1`.
    """
    t_end: float = DEFAULT_T_END
    t_ext: float = DEFAULT_T_EXT
    t_lin: int = DEFAULT_T_LIN
    t_log: int = DEFAULT_T_LOG
    times: np.ndarray = field(init=False, compare=False, repr=False)

    def __post_init__(self) -> None:
        if not (math.isfinite(self.t_end) and math.isfinite(self.t_ext)):
            raise ScheduleError("t_end and t_ext must be finite.")
        if self.t_ext <= 0:
            raise ScheduleError(f"t_ext must be > 0 (got {self.t_ext}).")
        if self.t_end <= self.t_ext:
            raise ScheduleError(f"t_end ({self.t_end}) must be greater than t_ext ({self.t_ext}).")
        if self.t_lin < 0 or self.t_log < 0:
            raise ScheduleError(f"t_lin and t_log must be >= 0 (got {self.t_lin}, {self.t_log}).")
        if self.t_lin == 0 and self.t_log > 1:
            raise ScheduleError(
                f"t_lin must be > 0 if t_log > 1 (got t_lin={self.t_lin}, t_log={self.t_log})."
            )

        times = [0.0]
        step = self.t_ext / self.t_lin if self.t_lin else 0.0
        times.extend(k * step for k in range(1, self.t_lin + 1))

        log_start = math.log(times[-1]) if times[-1] > 0 else 0.0
        log_end = math.log(self.t_end)
        times.extend(
            math.exp(log_start + (k / self.t_log) * (log_end - log_start)) for k in range(1, self.t_log)
        )
        times.append(self.t_end)

        array = np.asarray(times, dtype=np.float64)
        array.setflags(write=False)
        object.__setattr__(self, "times", array)

    def __len__(self) -> int:
        return len(self.times)

    def matches(self, times: np.ndarray) -> bool:
        """True when `times` equals this schedule (relative tolerance 1e-12)."""
        other = np.asarray(times, dtype=np.float64)
        return other.shape == self.times.shape and bool(np.allclose(other, self.times, rtol=1e-12, atol=0.0))
