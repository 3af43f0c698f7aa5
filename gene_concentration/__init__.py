"""gene-concentration: Cluster concentration scoring for induced genes.

This package provides tools for:
- Aggregating log-normalized single-cell expression into per-cluster means
- Scoring how concentrated each gene is across clusters (HHI)
- Per-cluster differential expression between two conditions
- Selecting each gene's cluster of maximal induction
- Joining scores, induction evidence and gene categories into one table

Example usage:
    >>> from gene_concentration.core.store import AnnDataExpressionStore
    >>> from gene_concentration.core.summary import (
    ...     CategoryAssignment, SummaryConfig, SummaryEngine,
    ... )
    >>>
    >>> store = AnnDataExpressionStore(adata, cluster_key="cluster",
    ...                                condition_key="condition")
    >>> config = SummaryConfig(condition_a="treated", condition_b="control")
    >>> categories = CategoryAssignment.from_table("categories.csv")
    >>> result = SummaryEngine(config).execute(store, categories)
    >>> result.summary.head()
"""

__version__ = "0.1.0"
