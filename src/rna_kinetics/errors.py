"""
Exception hierarchy for rna_kinetics.

Input errors derive from `ValueError` and are raised before any simulation
starts. Timeline errors derive from `RuntimeError` and are raised by the
accumulation step when a persisted aggregate cannot be used.
"""
from __future__ import annotations


class InputError(ValueError):
    """Malformed or inconsistent user input (fatal, raised before simulation)."""


class SequenceError(InputError):
    """The nucleotide sequence is empty or contains symbols outside A, C, G, U (T)."""


class StructureError(InputError):
    """A secondary structure is malformed or violates the validity rules."""


class MacrostateError(InputError):
    """A macro-state definition is malformed or does not match the simulated sequence."""


class ScheduleError(InputError):
    """The checkpoint schedule parameters are inconsistent."""


class TimelineError(RuntimeError):
    """Base class for failures of the timeline accumulation step."""


class TimelineFormatError(TimelineError):
    """A persisted timeline file is unreadable or corrupt."""


class TimelineMismatchError(TimelineError):
    """Two timelines do not share checkpoint schedule, macro-state set or sequence."""
