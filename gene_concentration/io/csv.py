"""CSV/TSV I/O utilities for gene-concentration.

Provides functions for loading gene lists and category tables and for
writing result tables.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import List, Optional, Union

import pandas as pd

logger = logging.getLogger(__name__)

PathLike = Union[str, Path]

TSV_SUFFIXES = {".tsv", ".tab", ".txt"}


def ensure_output_dir(path: PathLike) -> Path:
    """Create the directory at path if it does not exist and return it."""
    directory = Path(path)
    directory.mkdir(parents=True, exist_ok=True)
    return directory


def _separator_for(path: Path) -> str:
    """Pick the column separator from the file suffix."""
    suffixes = [s.lower() for s in path.suffixes if s.lower() != ".gz"]
    if suffixes and suffixes[-1] in TSV_SUFFIXES:
        return "\t"
    return ","


def read_table(path: PathLike, **kwargs) -> pd.DataFrame:
    """Read a CSV or TSV table, choosing the separator from the suffix.

    Parameters
    ----------
    path : PathLike
        Path to a .csv, .tsv, .tab or .txt file (optionally gzipped).
    **kwargs
        Forwarded to ``pandas.read_csv``.

    Returns
    -------
    pd.DataFrame
        Loaded table.

    Raises
    ------
    FileNotFoundError
        If the file does not exist.
    """
    table_path = Path(path)
    if not table_path.exists():
        raise FileNotFoundError(f"Table not found: {table_path}")
    kwargs.setdefault("sep", _separator_for(table_path))
    df = pd.read_csv(table_path, **kwargs)
    logger.debug("Read %d rows x %d columns from %s", len(df), df.shape[1], table_path)
    return df


def load_gene_list(path: PathLike, column: Optional[str] = None) -> List[str]:
    """Load an ordered, de-duplicated gene list.

    Plain text files hold one gene per line (blank lines and ``#`` comments
    are skipped). Tables are read with :func:`read_table` and the gene names
    taken from ``column`` (default: the first column).

    Parameters
    ----------
    path : PathLike
        Gene list file.
    column : str, optional
        Column holding gene names for tabular files.

    Returns
    -------
    List[str]
        Gene identifiers in file order, first occurrence kept.
    """
    list_path = Path(path)
    if not list_path.exists():
        raise FileNotFoundError(f"Gene list not found: {list_path}")

    if column is None and list_path.suffix.lower() in {".txt", ""}:
        lines = list_path.read_text(encoding="utf-8").splitlines()
        raw = [line.strip() for line in lines]
        raw = [g for g in raw if g and not g.startswith("#")]
    else:
        df = read_table(list_path)
        col = column or df.columns[0]
        if col not in df.columns:
            raise ValueError(f"Column '{col}' not found in {list_path}")
        raw = df[col].dropna().astype(str).str.strip().tolist()

    return list(dict.fromkeys(raw))


def write_dataframe(df: pd.DataFrame, path: PathLike, *, index: bool = False) -> Path:
    """Write DataFrame to path ensuring the parent directory exists.

    Parameters
    ----------
    df : pd.DataFrame
        DataFrame to write.
    path : PathLike
        Output path. A .tsv suffix writes tab-separated output.
    index : bool
        Whether to write row index (default: False).

    Returns
    -------
    Path
        The output path.
    """
    output_path = Path(path)
    output_path.parent.mkdir(parents=True, exist_ok=True)
    df.to_csv(output_path, index=index, sep=_separator_for(output_path))
    return output_path
