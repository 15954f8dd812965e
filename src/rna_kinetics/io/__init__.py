from rna_kinetics.io.fasta_input import (
    STDIN,
    FastaLikeRecord,
    parse_fasta_like,
    read_fasta_like,
    read_text,
)
from rna_kinetics.io.trajectory_writer import format_mean_waiting, format_record, write_trajectory

__all__ = [
    "STDIN",
    "FastaLikeRecord",
    "parse_fasta_like",
    "read_fasta_like",
    "read_text",
    "format_mean_waiting",
    "format_record",
    "write_trajectory",
]
