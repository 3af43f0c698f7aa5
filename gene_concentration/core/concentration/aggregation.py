"""Per-cluster aggregation of cell-level expression.

Reduces a cells x genes matrix within one condition to the mean
natural-scale expression of each gene in each cluster. Log-normalized
values are de-logged with ``expm1`` before averaging; averaging log values
and de-logging afterwards gives a different (geometric-style) mean.
"""

from dataclasses import dataclass
from typing import Any, Dict, Mapping, Optional, Sequence

import numpy as np
import pandas as pd
from scipy import sparse

from ..validation import MalformedInputError


@dataclass(frozen=True)
class ExpressionProfile:
    """Mean natural-scale expression per gene and cluster in one condition.

    Attributes
    ----------
    means : pd.DataFrame
        Genes (index) x clusters (columns), non-negative. A gene absent
        from a cluster has 0, never NaN.
    condition : str, optional
        Condition label the means were computed in.
    """

    means: pd.DataFrame
    condition: Optional[str] = None

    def __post_init__(self):
        values = self.means.to_numpy(dtype=float)
        invalid = ~np.isfinite(values) | (values < 0)
        if invalid.any():
            bad_genes = self.means.index[
                invalid.any(axis=1)
            ].astype(str).tolist()
            raise MalformedInputError(
                "Mean expression must be finite and non-negative",
                error_code="E007_NEGATIVE_EXPRESSION",
                expected="finite natural-scale means >= 0",
                found=bad_genes[:10],
                suggestion=(
                    "Pass log1p-normalized (not scaled/centered) values, "
                    "or set log_transformed=False for natural-scale input."
                ),
            )

    @property
    def genes(self) -> list:
        return self.means.index.astype(str).tolist()

    @property
    def clusters(self) -> list:
        return self.means.columns.astype(str).tolist()

    @property
    def n_clusters(self) -> int:
        return self.means.shape[1]

    def vector(self, gene: str) -> np.ndarray:
        """Per-cluster means for one gene, in cluster order."""
        return self.means.loc[gene].to_numpy(dtype=float)

    @classmethod
    def from_mapping(
        cls,
        mapping: Mapping[str, Mapping[str, float]],
        clusters: Sequence[str],
        condition: Optional[str] = None,
    ) -> "ExpressionProfile":
        """Build from ``gene -> (cluster -> mean)``; absent clusters become 0."""
        clusters = [str(c) for c in clusters]
        rows: Dict[str, Dict[str, float]] = {
            str(gene): {str(c): float(v) for c, v in per_cluster.items()}
            for gene, per_cluster in mapping.items()
        }
        means = pd.DataFrame.from_dict(rows, orient="index", dtype=float)
        means = means.reindex(index=list(rows), columns=clusters).fillna(0.0).astype(float)
        means.index.name = "gene"
        means.columns.name = "cluster"
        return cls(means=means, condition=condition)


def _delog(values: Any, log_transformed: bool) -> Any:
    """Convert to float, undoing log1p if requested. Keeps sparsity."""
    if sparse.issparse(values):
        values = sparse.csr_matrix(values, dtype=float)
        return values.expm1() if log_transformed else values
    values = np.asarray(values, dtype=float)
    return np.expm1(values) if log_transformed else values


def aggregate_expression(
    values: Any,
    cluster_labels: Sequence[str],
    clusters: Sequence[str],
    genes: Sequence[str],
    log_transformed: bool = True,
    condition: Optional[str] = None,
) -> ExpressionProfile:
    """Compute per-cluster mean expression on the natural scale.

    Parameters
    ----------
    values : array-like or scipy.sparse matrix
        Cells x genes matrix restricted to one condition, columns in
        ``genes`` order.
    cluster_labels : Sequence[str]
        Cluster id per cell (row).
    clusters : Sequence[str]
        Cluster set of the run. Every cluster gets a column, clusters with
        no cells get 0.
    genes : Sequence[str]
        Gene ids of the columns.
    log_transformed : bool
        If True, values are log1p-normalized and are de-logged before
        averaging.
    condition : str, optional
        Condition label recorded on the profile.

    Returns
    -------
    ExpressionProfile
        Genes x clusters mean expression.
    """
    labels = np.asarray([str(c) for c in cluster_labels])
    clusters = [str(c) for c in clusters]
    genes = [str(g) for g in genes]

    if values.shape[0] != len(labels):
        raise MalformedInputError(
            "Cluster labels do not match the number of cells",
            error_code="E006_EMPTY_INPUT",
            expected=values.shape[0],
            found=len(labels),
        )
    if values.shape[1] != len(genes):
        raise MalformedInputError(
            "Gene names do not match the number of matrix columns",
            error_code="E006_EMPTY_INPUT",
            expected=values.shape[1],
            found=len(genes),
        )

    natural = _delog(values, log_transformed)
    means = np.zeros((len(genes), len(clusters)), dtype=float)

    for j, cluster in enumerate(clusters):
        rows = labels == cluster
        if not rows.any():
            continue
        means[:, j] = np.asarray(natural[rows].mean(axis=0)).ravel()

    frame = pd.DataFrame(
        means,
        index=pd.Index(genes, name="gene"),
        columns=pd.Index(clusters, name="cluster"),
    )
    return ExpressionProfile(means=frame, condition=condition)
