from __future__ import annotations
from typing import Any, Iterable, Mapping, Optional, Tuple

from rna_kinetics.energies.energy_types import (
    BasePairMap,
    DEFAULT_TERMINAL_AU_PENALTY,
    LoopEnergies,
    MultiLoopCoeffs,
    PairEnergies,
)
from rna_kinetics.energies.data.thermo_math import resolve_dh_ds


# ---------- Top-level config helpers ----------

def get_temperature_kelvin(data: Mapping[str, Any]) -> float:
    """
    Return the temperature (Kelvin) at which the file's ΔG values were measured.

    Prefers `metadata.temperature_kelvin`, then top-level `temperature_kelvin`,
    else 310.15 K.
    """
    metadata = data.get("metadata") or {}
    temp_k = metadata.get("temperature_kelvin") or data.get("temperature_kelvin") or 310.15

    return float(temp_k)


def parse_complements(data: Mapping[str, Any]) -> BasePairMap:
    """
    Parse and upper-case the base complement map.

    Raises
    ------
    ValueError
        If the complements mapping is missing or empty.
    """
    complements_data = data.get("complements")
    if not isinstance(complements_data, dict) or not complements_data:
        raise ValueError("YAML must contain a non-empty 'complements' mapping.")

    return {str(k).upper(): str(v).upper() for k, v in complements_data.items()}


def validate_rna_complements(complements: BasePairMap) -> None:
    """
    Check that an RNA complement map mentions U and never T.

    Raises
    ------
    ValueError
        If 'U' is absent or 'T' is present.
    """
    if "U" not in complements.keys() and "U" not in complements.values():
        raise ValueError("RNA complements must include uracil ('U').")
    if "T" in complements.keys() or "T" in complements.values():
        raise ValueError("RNA complements must not contain thymine ('T') (DNA-specific).")


def parse_terminal_au(data: Mapping[str, Any]) -> float:
    """Terminal AU/GU penalty (kcal/mol); falls back to the Turner value."""
    value = data.get("terminal_au_penalty")
    return DEFAULT_TERMINAL_AU_PENALTY if value is None else float(value)


# ---------- Generic cell helpers ----------

def _cell(matrix: Any, idx_i: int, idx_j: int) -> Optional[float]:
    """Fetch `matrix[idx_i][idx_j]` as float, or None when absent or out of range."""
    if matrix is None:
        return None
    try:
        cell_value = matrix[idx_i][idx_j]
    except (IndexError, KeyError, TypeError):
        return None

    return None if cell_value is None else float(cell_value)


def _dg_of(node: Mapping[str, Any]) -> Any:
    return node.get("dg") if "dg" in node else node.get("dg_37")


def _resolve_entry(entry: Mapping[str, Any], temp_k: float) -> Optional[Tuple[float, float]]:
    dh, ds, dg = entry.get("dh"), entry.get("ds"), _dg_of(entry)
    if dh is None and ds is None and dg is None:
        return None
    return resolve_dh_ds(dh=dh, ds=ds, dg=dg, temp_k=temp_k)


def _parse_matrix(node: Mapping[str, Any], temp_k: float) -> PairEnergies:
    """
    Flatten a `rows` × `cols` thermo matrix into `"row/col"` keys.

    Any two of `dh`, `ds`, `dg` (or `dg_37`) may be given as parallel 2D lists;
    cells with all three missing are skipped.
    """
    rows = [str(r) for r in node.get("rows", [])]
    cols = [str(c) for c in node.get("cols", [])]
    dh_rows, ds_rows, dg_rows = node.get("dh"), node.get("ds"), _dg_of(node)

    energies: PairEnergies = {}
    for i, row in enumerate(rows):
        for j, col in enumerate(cols):
            dh = _cell(dh_rows, i, j)
            ds = _cell(ds_rows, i, j)
            dg = _cell(dg_rows, i, j)
            if dh is None and ds is None and dg is None:
                continue
            energies[f"{row}/{col}"] = resolve_dh_ds(dh=dh, ds=ds, dg=dg, temp_k=temp_k)

    return energies


# ---------- Multiloop ----------

def parse_multiloop(data: Mapping[str, Any]) -> MultiLoopCoeffs:
    """
    Parse multiloop coefficients `(a, b, c, d)`.

    Scoring uses ``a + b * helices + c * unpaired``, adding ``d`` when the
    multiloop encloses no unpaired nucleotide.

    Raises
    ------
    ValueError
        If the `multiloop` section is missing or not a mapping.
    """
    multiloop_data = data.get("multiloop")
    if not isinstance(multiloop_data, dict):
        raise ValueError("Missing 'multiloop' section.")

    return (
        float(multiloop_data.get("a", 0.0)),
        float(multiloop_data.get("b", 0.0)),
        float(multiloop_data.get("c", 0.0)),
        float(multiloop_data.get("d", 0.0)),
    )


# ---------- Loop length tables ----------

def parse_loop_table(
    data: Mapping[str, Any],
    keys: Iterable[str],
    temp_k: float,
) -> LoopEnergies:
    """
    Parse baseline loop energies indexed by loop length (nt).

    The first key of `keys` present in `data` is used (e.g.
    ``("hairpin_loops", "hairpin_loop")``); its value maps a length to
    ``{dh|ds|dg}``, any two of which suffice.

    Returns
    -------
    LoopEnergies
        Mapping `length -> (ΔH, ΔS)`. Empty if no table is present.
    """
    loop = None
    for loop_type in keys:
        if loop_type in data:
            loop = data[loop_type]
            break

    if not isinstance(loop, dict):
        return {}

    loop_energies: LoopEnergies = {}
    for length_str, entry in loop.items():
        if not isinstance(entry, dict):
            continue
        delta_h_delta_s = _resolve_entry(entry, temp_k)
        if delta_h_delta_s is not None:
            loop_energies[int(length_str)] = delta_h_delta_s

    return loop_energies


# ---------- Stacks and mismatches ----------

def parse_stacks_matrix(data: Mapping[str, Any], temp_k: float) -> PairEnergies:
    """
    Parse the nearest-neighbor stacking matrix into flat "XY/ZW" keys.

    The `stacks_matrix` section lists outer pairs in `rows` and inner pairs
    (read 3'→5') in `cols`.
    """
    node = data.get("stacks_matrix")
    if not isinstance(node, dict):
        return {}
    return _parse_matrix(node, temp_k)


def parse_mismatch(data: Mapping[str, Any], section: str, temp_k: float) -> PairEnergies:
    """
    Parse a `rows`/`cols` mismatch table (e.g. `terminal_mismatches`) into
    flat `"XY/ZW"` keys. Missing sections yield an empty table.
    """
    node = data.get(section)
    if not isinstance(node, dict) or "rows" not in node or "cols" not in node:
        return {}
    return _parse_matrix(node, temp_k)


# ---------- Special hairpins (optional) ----------

def parse_special_hairpins(data: Mapping[str, Any], temp_k: float) -> PairEnergies:
    """
    Parse sequence-specific hairpin overrides (loop sequence → {dh|ds|dg}).
    """
    node = data.get("special_hairpins")
    if not isinstance(node, dict):
        return {}

    special: PairEnergies = {}
    for loop_seq, entry in node.items():
        if not isinstance(entry, dict):
            continue
        delta_h_delta_s = _resolve_entry(entry, temp_k)
        if delta_h_delta_s is not None:
            special[str(loop_seq).upper().replace("T", "U")] = delta_h_delta_s

    return special
