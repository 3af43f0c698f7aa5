"""I/O utilities for gene-concentration.

Provides run logging and CSV/TSV I/O utilities.
"""

from .logging import get_logger, get_timestamped_log_path, log_yaml, run_record
from .csv import (
    ensure_output_dir,
    load_gene_list,
    read_table,
    write_dataframe,
)

__all__ = [
    # Logging
    "get_logger",
    "get_timestamped_log_path",
    "log_yaml",
    "run_record",
    # CSV I/O
    "ensure_output_dir",
    "load_gene_list",
    "read_table",
    "write_dataframe",
]
