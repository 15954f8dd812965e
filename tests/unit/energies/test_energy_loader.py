"""
Tests for the NearestNeighborParamLoader to ensure correct parsing and
structuring of thermodynamic parameters from YAML files.
"""
from __future__ import annotations

# --- Standard Library Imports ---
import math
from importlib.resources import files as ir_files

# --- Third-Party Imports ---
import pytest

# --- Local Application Imports ---
import rna_kinetics
from rna_kinetics.energies.energy_loader import NearestNeighborParamLoader, default_params_path
from rna_kinetics.energies.energy_types import NearestNeighborParams
from rna_kinetics.errors import InputError
from rna_kinetics.utils.energy_utils import calculate_delta_g


@pytest.fixture(scope="module")
def yaml_path() -> str:
    """
    Path to the bundled demonstration parameter file.

    Returns
    -------
    str
        The absolute file path to the packaged YAML data file.
    """
    # Locate the parameter file within the installed package's data directory.
    return str(ir_files(rna_kinetics) / "data" / "turner2004_min.yaml")


@pytest.fixture(scope="module")
def bundle(yaml_path) -> NearestNeighborParams:
    return NearestNeighborParamLoader().load("RNA", yaml_path=yaml_path)


def test_load_returns_rna_bundle(bundle):
    """
    Tests that loading "RNA" parameters returns a correctly structured object.

    The core tables must be populated dictionaries and the multiloop
    coefficients a 4-tuple.
    """
    # Assert that the loaded object is of the correct dataclass type.
    assert isinstance(bundle, NearestNeighborParams)

    # Assert that the core thermodynamic tables are present and have the correct type.
    assert bundle.NN_STACK and isinstance(bundle.NN_STACK, dict)
    assert bundle.HAIRPIN and isinstance(bundle.HAIRPIN, dict)
    assert bundle.BULGE and isinstance(bundle.BULGE, dict)
    assert bundle.INTERNAL and isinstance(bundle.INTERNAL, dict)
    assert isinstance(bundle.COMPLEMENT_BASES, dict)
    # Assert that the multiloop parameters are a tuple of four numeric coefficients.
    assert isinstance(bundle.MULTILOOP, tuple) and len(bundle.MULTILOOP) == 4


def test_default_path_is_bundled_file(yaml_path):
    """
    Without an explicit path the loader falls back to the packaged data file.
    """
    assert str(default_params_path()) == yaml_path
    default_bundle = NearestNeighborParamLoader().load()
    assert default_bundle.NN_STACK == NearestNeighborParamLoader().load(yaml_path=yaml_path).NN_STACK


def test_stack_matrix_is_complete_and_symmetric(bundle):
    """
    The 6×6 stack matrix yields 36 entries and the stack `XY/ZW` equals `ZW/XY`
    (the same duplex read from the other strand).
    """
    assert len(bundle.NN_STACK) == 36
    for key, value in bundle.NN_STACK.items():
        outer, inner = key.split("/")
        assert bundle.NN_STACK[f"{inner}/{outer}"] == pytest.approx(value)


def test_delta_g_at_37C_matches_known_stack(bundle):
    """
    Checks that (ΔH, ΔS) were resolved so that ΔG at 37 °C reproduces the file.
    5'GG3'/3'CC5' is -3.26 kcal/mol in Turner 2004.
    """
    dg = calculate_delta_g(bundle.NN_STACK["GC/CG"], 310.15)
    assert math.isclose(dg, -3.26, abs_tol=1e-9)


def test_multiloop_and_terminal_penalty_values(bundle):
    """
    Verifies the scalar parameters copied straight from the file.
    """
    assert bundle.MULTILOOP == (3.4, 0.4, 0.0, 0.0)
    assert bundle.TERMINAL_AU == pytest.approx(0.45)
    # Optional tables are empty when the file does not define them.
    assert bundle.SPECIAL_HAIRPINS == {}


def test_only_rna_supported(yaml_path):
    """
    Tests that the loader rejects unsupported nucleic acid types.
    """
    with pytest.raises(InputError):
        NearestNeighborParamLoader().load("DNA", yaml_path=yaml_path)


def test_missing_file_and_wrong_suffix_raise_input_error(tmp_path):
    """
    Unreadable or non-YAML files are reported as input errors.
    """
    with pytest.raises(InputError):
        NearestNeighborParamLoader().load(yaml_path=tmp_path / "missing.yaml")

    not_yaml = tmp_path / "params.json"
    not_yaml.write_text("{}")
    with pytest.raises(InputError):
        NearestNeighborParamLoader().load(yaml_path=not_yaml)


def test_file_without_required_tables_is_rejected(tmp_path):
    """
    A parameter file needs at least stacks and hairpin loops.
    """
    path = tmp_path / "empty.yaml"
    path.write_text("complements: {A: U, U: A, G: C, C: G}\nmultiloop: {a: 3.4, b: 0.4, c: 0.0}\n")
    with pytest.raises(InputError):
        NearestNeighborParamLoader().load(yaml_path=path)
