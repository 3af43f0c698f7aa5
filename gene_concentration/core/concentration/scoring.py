"""Concentration (HHI) scoring of per-cluster expression.

For one gene with per-cluster means x_1..x_k:

    share_c = x_c / sum(x)
    HHI     = sum(share_c ** 2)

HHI is 1 when all expression sits in one cluster and 1/k when it is
spread evenly over all k clusters. A gene with zero total expression has
no defined score; it is reported in ``undefined_genes`` rather than being
given 0 or NaN.
"""

from dataclasses import dataclass, field
from typing import List, Optional

import numpy as np
import pandas as pd

from ..validation import UndefinedScoreError
from .aggregation import ExpressionProfile

TABLE_COLUMNS = [
    "gene",
    "concentration_score",
    "total_expression",
    "n_expressing_clusters",
    "dominant_cluster",
    "dominant_share",
]


def compute_shares(values: np.ndarray, gene: Optional[str] = None) -> np.ndarray:
    """Normalize a non-negative vector to shares summing to 1.

    Raises
    ------
    UndefinedScoreError
        If the vector sums to 0.
    """
    values = np.asarray(values, dtype=float)
    total = values.sum()
    if total == 0:
        raise UndefinedScoreError(gene)
    return values / total


def compute_concentration_score(values: np.ndarray, gene: Optional[str] = None) -> float:
    """Sum of squared shares (Herfindahl-Hirschman index).

    Parameters
    ----------
    values : np.ndarray
        Per-cluster mean expression (non-negative).
    gene : str, optional
        Gene id used in the error message.

    Returns
    -------
    float
        Score in [1/k, 1].

    Raises
    ------
    UndefinedScoreError
        If total expression is 0.
    """
    shares = compute_shares(values, gene)
    return float(np.sum(shares ** 2))


@dataclass(frozen=True)
class ConcentrationResult:
    """Concentration scores for one expression profile.

    Attributes
    ----------
    scores : pd.Series
        Gene -> HHI, only genes with a defined score.
    shares : pd.DataFrame
        Genes x clusters share matrix, only genes with a defined score.
    table : pd.DataFrame
        Per-gene diagnostics (see TABLE_COLUMNS), defined genes only.
    undefined_genes : List[str]
        Genes whose total expression was 0.
    condition : str, optional
        Condition the profile was computed in.
    """

    scores: pd.Series
    shares: pd.DataFrame
    table: pd.DataFrame
    undefined_genes: List[str] = field(default_factory=list)
    condition: Optional[str] = None

    @property
    def n_scored(self) -> int:
        return len(self.scores)


def score_profile(profile: ExpressionProfile) -> ConcentrationResult:
    """Score every gene of an expression profile.

    Each gene is scored independently. Genes with zero total expression
    are collected in ``undefined_genes``.
    """
    genes = np.asarray(profile.genes, dtype=object)
    clusters = profile.clusters
    values = profile.means.to_numpy(dtype=float)

    totals = values.sum(axis=1)
    defined = totals > 0

    shares = values[defined] / totals[defined, None]
    scores = np.sum(shares ** 2, axis=1)

    defined_genes = genes[defined].tolist()
    index = pd.Index(defined_genes, name="gene")

    if len(defined_genes) and len(clusters):
        dominant_idx = shares.argmax(axis=1)
        dominant_cluster = [clusters[i] for i in dominant_idx]
        dominant_share = shares[np.arange(len(shares)), dominant_idx]
    else:
        dominant_cluster = []
        dominant_share = np.zeros(0)

    table = pd.DataFrame({
        "gene": defined_genes,
        "concentration_score": scores,
        "total_expression": totals[defined],
        "n_expressing_clusters": (values[defined] > 0).sum(axis=1),
        "dominant_cluster": dominant_cluster,
        "dominant_share": dominant_share,
    }, columns=TABLE_COLUMNS)

    return ConcentrationResult(
        scores=pd.Series(scores, index=index, name="concentration_score", dtype=float),
        shares=pd.DataFrame(shares, index=index, columns=profile.means.columns),
        table=table,
        undefined_genes=genes[~defined].tolist(),
        condition=profile.condition,
    )
