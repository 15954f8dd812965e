from __future__ import annotations
from pathlib import Path
from typing import Any, Dict
import yaml


def read_yaml(path: str | Path) -> Dict[str, Any]:
    """
    Read and parse a YAML file into a mapping.

    Raises
    ------
    ValueError
        If the file does not have a YAML suffix or its top level is not a mapping.
    """
    path_obj = Path(path)
    if path_obj.suffix.lower() not in {".yml", ".yaml"}:
        raise ValueError(f"Only YAML files are supported: {path_obj}")

    data = yaml.safe_load(path_obj.read_text(encoding="utf-8")) or {}
    if not isinstance(data, dict):
        raise ValueError(f"Top level of {path_obj} must be a mapping.")

    return data
