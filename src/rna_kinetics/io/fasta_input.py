from __future__ import annotations
import logging
import sys
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, Optional, Tuple

from rna_kinetics.errors import InputError, SequenceError
from rna_kinetics.utils.nucleotide_utils import normalize_sequence

logger = logging.getLogger(__name__)

STDIN = "-"


@dataclass(frozen=True, slots=True)
class FastaLikeRecord:
    """
    A FASTA-like text record: optional `>header`, one sequence line, then zero
    or more structure lines.

    Attributes
    ----------
    header : str or None
        Header text without the leading `>`.
    sequence : str
        Normalized RNA sequence.
    structures : tuple of str
        First whitespace-separated token of each further line (trailing
        tokens such as energies are dropped).
    source : str
        Where the record came from, for error messages.
    """
    header: Optional[str]
    sequence: str
    structures: Tuple[str, ...]
    source: str = "<input>"


def parse_fasta_like(lines: Iterable[str], source: str = "<input>") -> FastaLikeRecord:
    """
    Parse a FASTA-like record. Blank lines and lines starting with `#` are skipped.

    Raises
    ------
    SequenceError
        If there is no sequence line or the sequence is invalid.
    """
    header: Optional[str] = None
    sequence: Optional[str] = None
    structures = []

    for raw in lines:
        line = raw.strip()
        if not line or line.startswith("#"):
            continue
        if line.startswith(">"):
            if sequence is not None:
                raise InputError(f"{source}: only one record per file is supported.")
            header = line[1:].strip() or None
            continue

        token = line.split()[0]
        if sequence is None:
            sequence = normalize_sequence(token)
        else:
            structures.append(token)

    if sequence is None:
        raise SequenceError(f"{source}: no sequence found.")

    return FastaLikeRecord(header=header, sequence=sequence, structures=tuple(structures), source=source)


def read_text(path_or_dash: str | Path) -> Tuple[str, str]:
    """
    Read a whole text file, or stdin for `"-"`.

    Returns
    -------
    (str, str)
        The text and a display name for error messages.

    Raises
    ------
    InputError
        If the file cannot be read.
    """
    if str(path_or_dash) == STDIN:
        return sys.stdin.read(), "<stdin>"

    path = Path(path_or_dash)
    try:
        return path.read_text(encoding="utf-8"), str(path)
    except OSError as exc:
        raise InputError(f"Cannot read {path}: {exc}") from exc


def read_fasta_like(path_or_dash: str | Path) -> Tuple[Optional[str], str, Optional[str]]:
    """
    Read the simulation input: `(header, sequence, structure or None)`.

    A missing structure line means the simulation starts from the open chain.
    Lines after the first structure are ignored.
    """
    text, source = read_text(path_or_dash)
    record = parse_fasta_like(text.splitlines(), source=source)
    if len(record.structures) > 1:
        logger.warning("%s: ignoring %d extra structure line(s)", source, len(record.structures) - 1)

    structure = record.structures[0] if record.structures else None
    return record.header, record.sequence, structure
