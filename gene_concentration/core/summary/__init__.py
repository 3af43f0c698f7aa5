"""Summary module: category lookup, join, export and figures.

Key Features:
- CategoryAssignment: gene -> category lookup loaded from tables or YAML
- join_summary: inner join of scores, induction records and categories
- SummaryEngine: end-to-end run over an ExpressionStore
- export_all / plot_concentration_by_category: persisted outputs

Example Usage
-------------
    >>> from gene_concentration.core.summary import (
    ...     CategoryAssignment, SummaryConfig, SummaryEngine, export_all,
    ... )
    >>> config = SummaryConfig.from_yaml("summary.yaml")
    >>> categories = CategoryAssignment.load(config.category_table)
    >>> result = SummaryEngine(config).execute_adata(adata, categories)
    >>> export_all(result, "out/")
"""

from .categories import CategoryAssignment
from .config import SummaryConfig
from .engine import SummaryEngine, SummaryResult
from .export import export_all
from .join import SUMMARY_COLUMNS, JoinResult, join_summary
from .viz import plot_concentration_by_category

__all__ = [
    "CategoryAssignment",
    "SummaryConfig",
    "SummaryEngine",
    "SummaryResult",
    "export_all",
    "SUMMARY_COLUMNS",
    "JoinResult",
    "join_summary",
    "plot_concentration_by_category",
]
