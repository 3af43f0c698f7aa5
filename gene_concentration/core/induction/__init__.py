"""Induction module: per-cluster differential expression and selection.

Example Usage
-------------
>>> from gene_concentration.core.induction import InductionConfig, InductionEngine
>>> engine = InductionEngine(InductionConfig(fold_change_threshold=0.5))
>>> result = engine.execute(store, genes, clusters, "treated", "control")
>>> result.table.head()
"""

from .config import InductionConfig
from .de import DERunner, DEResult, DifferentialRecord, compute_cluster_de
from .engine import InductionEngine, InductionResult
from .selection import (
    MaxInductionRecord,
    max_induction_table,
    passes_induction_filter,
    select_max_induction,
)

__all__ = [
    "InductionConfig",
    "DERunner",
    "DEResult",
    "DifferentialRecord",
    "compute_cluster_de",
    "InductionEngine",
    "InductionResult",
    "MaxInductionRecord",
    "max_induction_table",
    "passes_induction_filter",
    "select_max_induction",
]
