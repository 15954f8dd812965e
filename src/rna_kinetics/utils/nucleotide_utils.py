from typing import Optional

from rna_kinetics.errors import SequenceError

# Symbols accepted in a normalized RNA sequence.
RNA_ALPHABET = frozenset("ACGU")


def normalize_base(base_raw: str) -> str:
    """
    Upper-case a nucleotide base and map T->U so RNA logic can be applied uniformly.

    Parameters
    ----------
    base_raw : str
        Raw single-character nucleotide base.

    Returns
    -------
    str
        Normalized base in {A, U, G, C, N}.
    """
    if not isinstance(base_raw, str) or len(base_raw) != 1:
        return base_raw

    base_norm = base_raw.upper()
    return "U" if base_norm == "T" else base_norm


def normalize_sequence(seq_raw: str) -> str:
    """
    Normalize and validate a nucleotide sequence.

    Whitespace is stripped, letters are upper-cased and DNA `T` is mapped to `U`.
    Anything that is not one of A, C, G, U after normalization is rejected.

    Parameters
    ----------
    seq_raw : str
        Raw sequence as read from a file or the command line.

    Returns
    -------
    str
        Normalized RNA sequence.

    Raises
    ------
    SequenceError
        If the sequence is empty or contains symbols outside the RNA alphabet.
    """
    seq = "".join(seq_raw.split()).upper().replace("T", "U")
    if not seq:
        raise SequenceError("Empty sequence.")

    bad = sorted(set(seq) - RNA_ALPHABET)
    if bad:
        raise SequenceError(f"Invalid nucleotide(s) {''.join(bad)!r}; allowed: A, C, G, U (T).")

    return seq


def dimer_key(seq: str, base_i: int, base_j: int) -> Optional[str]:
    """
    Build the nearest-neighbor stack key "XY/ZW" for pairs (i,j) and (i+1,j-1).

    - Left dimer "XY" (outer pair across strands): X = seq[i], Y = seq[j]
    - Right dimer "ZW" (inner pair, reversed across strands): Z = seq[j-1], W = seq[i+1]

    Example
    -------
    seq = "GGGAAAUCCC", i=0, j=9 -> "GC/CG"

    Returns
    -------
    str or None
        The key, or `None` if the indices do not enclose an inner pair.
    """
    if base_i < 0 or base_j >= len(seq) or base_i >= base_j:
        return None

    if base_i + 1 > base_j - 1:
        return None

    base_x = normalize_base(seq[base_i])
    base_y = normalize_base(seq[base_j])
    base_z = normalize_base(seq[base_j - 1])
    base_w = normalize_base(seq[base_i + 1])

    return f"{base_x}{base_y}/{base_z}{base_w}"


def pair_key(base_a: str, base_b: str) -> str:
    """Two-letter base-pair key (RNA-normalized), e.g. ``"AU"`` or ``"GU"``."""
    return normalize_base(base_a) + normalize_base(base_b)


def mismatch_key(seq: str, base_i: int, base_j: int) -> Optional[str]:
    """
    Key for the terminal mismatch stacked on the inside of pair (i, j).

    Same "XY/ZW" layout as `dimer_key`: the closing pair is `X = seq[i]`,
    `Y = seq[j]` and the unpaired neighbours are `Z = seq[j-1]`, `W = seq[i+1]`.
    Unlike `dimer_key`, the inner bases are not required to pair.
    """
    if base_i < 0 or base_j >= len(seq) or base_j - base_i < 3:
        return None
    return dimer_key(seq, base_i, base_j)
