"""Export functions for summary results.

Writes the summary table and intermediate results to CSV and the run
provenance to JSON.
"""

import json
from pathlib import Path
from typing import Dict

from ...io.csv import ensure_output_dir, write_dataframe
from .engine import SummaryResult


def _name(prefix: str, filename: str) -> str:
    return f"{prefix}{filename}" if prefix else filename


def export_summary(result: SummaryResult, output_dir: Path, prefix: str = "") -> Path:
    """Export the final per-gene summary table."""
    return write_dataframe(result.summary, Path(output_dir) / _name(prefix, "summary_table.csv"))


def export_concentration(result: SummaryResult, output_dir: Path, prefix: str = "") -> Path:
    """Export concentration scores with per-gene diagnostics."""
    return write_dataframe(
        result.concentration.table,
        Path(output_dir) / _name(prefix, "concentration_scores.csv"),
    )


def export_differential(result: SummaryResult, output_dir: Path, prefix: str = "") -> Path:
    """Export every per-cluster DE record."""
    return write_dataframe(
        result.induction.de.to_dataframe(),
        Path(output_dir) / _name(prefix, "differential_records.csv"),
    )


def export_max_induction(result: SummaryResult, output_dir: Path, prefix: str = "") -> Path:
    """Export the selected cluster of maximal induction per gene."""
    return write_dataframe(
        result.induction.table,
        Path(output_dir) / _name(prefix, "max_induction.csv"),
    )


def export_provenance(result: SummaryResult, output_dir: Path, prefix: str = "") -> Path:
    """Export run provenance as JSON."""
    output_dir = ensure_output_dir(output_dir)
    path = output_dir / _name(prefix, "provenance.json")
    with open(path, "w") as f:
        json.dump(result.provenance, f, indent=2, default=str)
    return path


def export_all(result: SummaryResult, output_dir: Path, prefix: str = "") -> Dict[str, Path]:
    """Export all result tables.

    Parameters
    ----------
    result : SummaryResult
        Summary result
    output_dir : Path
        Output directory
    prefix : str
        File prefix

    Returns
    -------
    Dict[str, Path]
        Mapping of output name to file path
    """
    output_dir = ensure_output_dir(output_dir)
    return {
        "summary": export_summary(result, output_dir, prefix),
        "concentration": export_concentration(result, output_dir, prefix),
        "differential": export_differential(result, output_dir, prefix),
        "max_induction": export_max_induction(result, output_dir, prefix),
        "provenance": export_provenance(result, output_dir, prefix),
    }
