"""Run logging for gene-concentration.

Each command writes one timestamped log file per run. The run record
(summary size, exclusion counts, join misses, written outputs) is appended
to that log as a YAML document so runs can be compared after the fact.
"""

from __future__ import annotations

import logging
import sys
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, Mapping, Optional, Tuple, Union

import yaml

PathLike = Union[str, Path]

LOG_FORMAT = "%(asctime)s | %(levelname)s | %(message)s"
LOG_DATEFMT = "%Y-%m-%d %H:%M:%S"


def get_timestamped_log_path(log_path: PathLike) -> Path:
    """Insert a run timestamp before the suffix.

    Example: gene_concentration.log -> gene_concentration_20261018_080530.log
    """
    log_path = Path(log_path)
    timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
    return log_path.parent / f"{log_path.stem}_{timestamp}{log_path.suffix or '.log'}"


def get_logger(
    name: str,
    log_path: PathLike,
    level: int = logging.INFO,
    timestamped: bool = True,
    console_level: Optional[int] = None,
) -> Tuple[logging.Logger, Path]:
    """Return a run logger writing to a file and optionally to stdout.

    Parameters
    ----------
    name : str
        Logger name (typically the command name).
    log_path : PathLike
        Base path for the log file.
    level : int
        File logging level (default: INFO).
    timestamped : bool
        If True, add a timestamp to the filename so earlier runs are kept.
        If False, overwrite an existing log file.
    console_level : int, optional
        If given, also echo records at this level or above to stdout.

    Returns
    -------
    Tuple[logging.Logger, Path]
        Tuple of (logger, actual_log_path).
    """
    log_path = Path(log_path)
    if timestamped:
        actual_log_path = get_timestamped_log_path(log_path)
    else:
        actual_log_path = log_path
        actual_log_path.unlink(missing_ok=True)
    actual_log_path.parent.mkdir(parents=True, exist_ok=True)

    logger = logging.getLogger(name)
    logger.setLevel(min(level, console_level) if console_level is not None else level)
    logger.propagate = False
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    formatter = logging.Formatter(fmt=LOG_FORMAT, datefmt=LOG_DATEFMT)
    file_handler = logging.FileHandler(actual_log_path, mode="a", encoding="utf-8")
    file_handler.setLevel(level)
    file_handler.setFormatter(formatter)
    logger.addHandler(file_handler)

    if console_level is not None:
        console_handler = logging.StreamHandler(sys.stdout)
        console_handler.setLevel(console_level)
        console_handler.setFormatter(formatter)
        logger.addHandler(console_handler)

    return logger, actual_log_path


def log_yaml(
    log_path: PathLike,
    record: Mapping[str, Any],
    *,
    logger: logging.Logger | None = None,
) -> None:
    """Append a YAML document to log_path, or emit it through logger."""
    yaml_text = yaml.safe_dump(dict(record), sort_keys=False).rstrip("\n")
    message = f"{yaml_text}\n---"
    if logger is not None:
        logger.info("%s", message)
        return

    path = Path(log_path)
    path.parent.mkdir(parents=True, exist_ok=True)
    with path.open("a", encoding="utf-8") as handle:
        handle.write(message)
        handle.write("\n")


def run_record(
    provenance: Mapping[str, Any],
    outputs: Optional[Mapping[str, PathLike]] = None,
) -> Dict[str, Any]:
    """Condense run provenance into the record written at the end of a log.

    Parameters
    ----------
    provenance : Mapping[str, Any]
        Provenance dict of a summary run.
    outputs : Mapping[str, PathLike], optional
        Written files by output name.

    Returns
    -------
    Dict[str, Any]
        Plain, YAML-safe dict.
    """
    record: Dict[str, Any] = {
        "n_genes": int(provenance.get("n_genes", 0)),
        "n_genes_summary": int(provenance.get("n_genes_summary", 0)),
        "exclusions": {k: int(v) for k, v in provenance.get("exclusions", {}).items()},
        "join_missing": {k: int(v) for k, v in provenance.get("join_missing", {}).items()},
        "missing_clusters": [str(c) for c in provenance.get("missing_clusters", [])],
    }
    if outputs:
        record["outputs"] = {k: str(v) for k, v in outputs.items()}
    return record
