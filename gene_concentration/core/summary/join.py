"""Inner join of concentration scores, max-induction records and categories.

A gene reaches the summary table only if it is present in all three
inputs. Genes missing from any one side are dropped and counted per side.
"""

from dataclasses import dataclass, field
from typing import Dict, List, Mapping, Optional, Sequence, Union

import pandas as pd

from ..induction.selection import MaxInductionRecord
from .categories import CategoryAssignment

SUMMARY_COLUMNS = [
    "gene",
    "category",
    "concentration_score",
    "log2_fold_change",
    "cluster_of_max_induction",
    "pct_expressing",
]


@dataclass(frozen=True)
class JoinResult:
    """Joined summary table plus join-miss diagnostics.

    Attributes
    ----------
    table : pd.DataFrame
        One row per gene present in every input (SUMMARY_COLUMNS).
    missing : Dict[str, int]
        Run genes absent from ``score``, ``induction`` or ``category``.
        Run genes are ``gene_order`` if given, else every gene with a score
        or an induction record.
    excluded_genes : List[str]
        Run genes that did not reach the table.
    """

    table: pd.DataFrame
    missing: Dict[str, int] = field(default_factory=dict)
    excluded_genes: List[str] = field(default_factory=list)


def join_summary(
    scores: Union[pd.Series, Mapping[str, float]],
    max_induction: Mapping[str, MaxInductionRecord],
    categories: Union[CategoryAssignment, Mapping[str, str]],
    gene_order: Optional[Sequence[str]] = None,
) -> JoinResult:
    """Build the per-gene summary table.

    Parameters
    ----------
    scores : pd.Series or Mapping
        Gene -> concentration score.
    max_induction : Mapping[str, MaxInductionRecord]
        Gene -> cluster of maximal induction.
    categories : CategoryAssignment or Mapping
        Gene -> category label.
    gene_order : Sequence[str], optional
        Row order of the output. Defaults to the order of ``scores``.

    Returns
    -------
    JoinResult
        Summary table and join-miss counts.
    """
    labels = categories.labels if isinstance(categories, CategoryAssignment) else categories
    scores = pd.Series(scores, dtype=float) if not isinstance(scores, pd.Series) else scores

    score_df = pd.DataFrame({
        "gene": scores.index.astype(str),
        "concentration_score": scores.to_numpy(dtype=float),
    })
    induction_df = pd.DataFrame(
        [
            {
                "gene": str(gene),
                "log2_fold_change": record.log2_fold_change,
                "cluster_of_max_induction": record.cluster,
                "pct_expressing": record.pct_1,
            }
            for gene, record in max_induction.items()
        ],
        columns=["gene", "log2_fold_change", "cluster_of_max_induction", "pct_expressing"],
    )
    category_df = pd.DataFrame(
        {"gene": [str(g) for g in labels], "category": [str(v) for v in labels.values()]},
        columns=["gene", "category"],
    )

    table = (
        score_df
        .merge(induction_df, on="gene", how="inner")
        .merge(category_df, on="gene", how="inner")
    )

    order = [str(g) for g in gene_order] if gene_order is not None else score_df["gene"].tolist()
    position = {g: i for i, g in enumerate(order)}
    table = (
        table.assign(_order=table["gene"].map(position).fillna(len(position)))
        .sort_values("_order", kind="mergesort")
        .drop(columns="_order")
        .reset_index(drop=True)
    )[SUMMARY_COLUMNS]

    sides = {
        "score": set(score_df["gene"]),
        "induction": set(induction_df["gene"]),
        "category": set(category_df["gene"]),
    }
    if gene_order is not None:
        seen = set(order)
    else:
        seen = sides["score"] | sides["induction"]
    joined = set(table["gene"])
    excluded = sorted(seen - joined, key=lambda g: (position.get(g, len(position)), g))

    return JoinResult(
        table=table,
        missing={name: len(seen - genes) for name, genes in sides.items()},
        excluded_genes=excluded,
    )
