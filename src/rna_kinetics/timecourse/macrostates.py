"""
Macro-states: named sets of secondary structures used to summarize trajectories.
"""
from __future__ import annotations
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, FrozenSet, Iterable, Iterator, List, Tuple

from rna_kinetics.errors import InputError, MacrostateError, StructureError
from rna_kinetics.io.fasta_input import parse_fasta_like, read_text
from rna_kinetics.kinetics.structure_model import StructureModel
from rna_kinetics.structures.secondary_structure import SecondaryStructure
from rna_kinetics.utils.energy_utils import boltzmann_free_energy

logger = logging.getLogger(__name__)

# Column for checkpoints whose structure belongs to no macro-state.
UNASSIGNED = "unassigned"


@dataclass(frozen=True, slots=True)
class Macrostate:
    """
    A named set of member structures on one sequence.

    Attributes
    ----------
    name : str
        Unique name, used as a timeline column.
    sequence : str
        The sequence the members are defined on.
    members : tuple of SecondaryStructure
        Member structures, duplicates removed, file order kept.
    """
    name: str
    sequence: str
    members: Tuple[SecondaryStructure, ...]

    def __len__(self) -> int:
        return len(self.members)

    def __contains__(self, structure: SecondaryStructure) -> bool:
        return structure in self.members

    def free_energy(self, structure_model: StructureModel) -> float:
        """Ensemble free energy `-kT ln Σ exp(-E/kT)` over the members (kcal/mol)."""
        return boltzmann_free_energy(
            (structure_model.energy(s) for s in self.members), structure_model.temp_k
        )


def load_macrostate(path: str | Path, sequence: str, structure_model: StructureModel) -> Macrostate:
    """
    Load one macro-state definition file.

    The name is the `>header` when present, else the file stem. The sequence
    line must equal the simulation sequence and every member must be a valid
    structure on it.

    Raises
    ------
    MacrostateError
        On an unreadable file, sequence mismatch, missing members or an invalid member.
    """
    path = Path(path)
    try:
        text, source = read_text(path)
        record = parse_fasta_like(text.splitlines(), source=source)
    except InputError as exc:
        raise MacrostateError(f"Macro-state {path}: {exc}") from exc

    name = record.header.split()[0] if record.header else path.stem
    if record.sequence != sequence:
        raise MacrostateError(
            f"Macro-state {name!r} ({path}) is defined on {record.sequence!r}, "
            f"but the simulation sequence is {sequence!r}."
        )
    if not record.structures:
        raise MacrostateError(f"Macro-state {name!r} ({path}) lists no structures.")

    members: List[SecondaryStructure] = []
    seen = set()
    for line_no, dot_bracket in enumerate(record.structures, start=1):
        try:
            structure = structure_model.parse(dot_bracket)
        except StructureError as exc:
            raise MacrostateError(f"Macro-state {name!r} ({path}), structure {line_no}: {exc}") from exc
        if structure in seen:
            logger.debug("Macro-state %s: duplicate member %s ignored", name, dot_bracket)
            continue
        seen.add(structure)
        members.append(structure)

    logger.info("Loaded macro-state %s with %d structure(s) from %s", name, len(members), path)
    return Macrostate(name=name, sequence=sequence, members=tuple(members))


class MacrostateRegistry:
    """
    Ordered collection of macro-states with O(1) structure classification.

    Macro-states may overlap; `classify` reports every macro-state containing
    the structure.

    Raises
    ------
    MacrostateError
        On duplicate names, the reserved name `"unassigned"`, or members on a
        different sequence.
    """

    def __init__(self, macrostates: Iterable[Macrostate] = (), sequence: str | None = None) -> None:
        self.sequence = sequence
        self._macrostates: Dict[str, Macrostate] = {}
        self._index: Dict[str, FrozenSet[str]] = {}
        for macrostate in macrostates:
            self.add(macrostate)

    def add(self, macrostate: Macrostate) -> None:
        if macrostate.name in self._macrostates or macrostate.name == UNASSIGNED:
            raise MacrostateError(f"Duplicate or reserved macro-state name {macrostate.name!r}.")
        if self.sequence is None:
            self.sequence = macrostate.sequence
        elif macrostate.sequence != self.sequence:
            raise MacrostateError(f"Macro-state {macrostate.name!r} is defined on another sequence.")

        self._macrostates[macrostate.name] = macrostate
        for member in macrostate.members:
            key = member.to_dot_bracket()
            self._index[key] = self._index.get(key, frozenset()) | {macrostate.name}

    @classmethod
    def from_files(cls, paths: Iterable[str | Path], sequence: str,
                   structure_model: StructureModel) -> "MacrostateRegistry":
        return cls((load_macrostate(p, sequence, structure_model) for p in paths), sequence=sequence)

    def __len__(self) -> int:
        return len(self._macrostates)

    def __iter__(self) -> Iterator[Macrostate]:
        return iter(self._macrostates.values())

    def __getitem__(self, name: str) -> Macrostate:
        return self._macrostates[name]

    @property
    def names(self) -> List[str]:
        return list(self._macrostates)

    @property
    def columns(self) -> List[str]:
        """Timeline columns: macro-state names in registry order, then `"unassigned"`."""
        return self.names + [UNASSIGNED]

    def classify(self, structure: SecondaryStructure) -> FrozenSet[str]:
        """Names of all macro-states containing `structure` (possibly empty)."""
        return self.classify_dot_bracket(structure.to_dot_bracket())

    def classify_dot_bracket(self, dot_bracket: str) -> FrozenSet[str]:
        return self._index.get(dot_bracket, frozenset())

    def indicator(self, structure: SecondaryStructure) -> List[int]:
        """0/1 occupancy per column of `columns`."""
        found = self.classify(structure)
        row = [1 if name in found else 0 for name in self._macrostates]
        row.append(0 if found else 1)
        return row
