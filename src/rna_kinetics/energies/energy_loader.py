from __future__ import annotations
import logging
from importlib.resources import files as importlib_files
from pathlib import Path
from typing import Literal

import yaml

from rna_kinetics.energies.data.yaml_io import read_yaml
from rna_kinetics.energies.data.parsers import (
    get_temperature_kelvin, parse_complements, validate_rna_complements,
    parse_multiloop, parse_loop_table, parse_stacks_matrix,
    parse_mismatch, parse_special_hairpins, parse_terminal_au,
)
from rna_kinetics.energies.energy_types import NearestNeighborParams
from rna_kinetics.errors import InputError

logger = logging.getLogger(__name__)

Kind = Literal["RNA"]

DEFAULT_PARAMS_FILE = "turner2004_min.yaml"


def default_params_path() -> Path:
    """Location of the bundled demonstration parameter set."""
    return Path(str(importlib_files("rna_kinetics") / "data" / DEFAULT_PARAMS_FILE))


class NearestNeighborParamLoader:
    """
    Loads nearest-neighbor thermodynamic parameters from a YAML file.

    The file stores (ΔH, ΔS) or any two of (ΔH, ΔS, ΔG) per entry; everything
    is normalized to (ΔH [kcal/mol], ΔS [cal/(K·mol)]) so that the model can be
    evaluated at any temperature.
    """
    def load(self, kind: Kind = "RNA", yaml_path: str | Path | None = None) -> NearestNeighborParams:
        """
        Load the parameter bundle for a nucleic acid type.

        Parameters
        ----------
        kind : {"RNA"}, optional
            Parameter set type. Only "RNA" is supported.
        yaml_path : str | Path | None
            Path to the YAML file. Defaults to the bundled demonstration set.

        Returns
        -------
        NearestNeighborParams
            Immutable parameter tables.

        Raises
        ------
        InputError
            If `kind` is unsupported, or the file is unreadable or malformed.
        """
        if kind.upper() != "RNA":
            raise InputError("Only 'RNA' is supported for now.")

        path = default_params_path() if yaml_path is None else Path(yaml_path)
        try:
            return self._build_rna(path)
        except (OSError, yaml.YAMLError, ValueError, TypeError) as exc:
            raise InputError(f"Cannot load energy parameters from {path}: {exc}") from exc

    @staticmethod
    def _build_rna(yaml_path: Path) -> NearestNeighborParams:
        """
        Constructs the RNA parameter tables from a YAML file.

        References
        ----------
        1. Xia, T. et al. (1998). Thermodynamic parameters for an expanded nearest
          neighbor model for formation of RNA duplexes with Watson–Crick base pairs.
          Biochemistry, 37(42), 14719–14735.
        2. Mathews, D. H. et al. (2004). Incorporating chemical modification
          constraints into a dynamic programming algorithm for prediction of RNA
          secondary structure. PNAS, 101(19), 7287–7292.
        """
        logger.debug("Reading energy parameters from %s", yaml_path)
        data = read_yaml(yaml_path)
        temp_k = get_temperature_kelvin(data)

        complements = parse_complements(data)
        validate_rna_complements(complements)

        params = NearestNeighborParams(
            COMPLEMENT_BASES=complements,
            NN_STACK=parse_stacks_matrix(data, temp_k),
            HAIRPIN=parse_loop_table(data, ("hairpin_loops", "hairpin_loop"), temp_k),
            BULGE=parse_loop_table(data, ("bulge_loops", "bulge_loop"), temp_k),
            INTERNAL=parse_loop_table(data, ("internal_loops", "internal_loop"), temp_k),
            MULTILOOP=parse_multiloop(data),
            INTERNAL_MISMATCH=parse_mismatch(data, "internal_mismatches", temp_k),
            TERMINAL_MISMATCH=parse_mismatch(data, "terminal_mismatches", temp_k),
            SPECIAL_HAIRPINS=parse_special_hairpins(data, temp_k),
            TERMINAL_AU=parse_terminal_au(data),
            SOURCE=str(yaml_path),
        )

        if not params.NN_STACK or not params.HAIRPIN:
            raise ValueError("parameter file needs at least 'stacks_matrix' and 'hairpin_loops'")

        logger.debug(
            "Loaded %d stacks, %d hairpin, %d bulge, %d internal loop entries",
            len(params.NN_STACK), len(params.HAIRPIN), len(params.BULGE), len(params.INTERNAL),
        )
        return params
