"""Selection of each gene's cluster of maximal induction.

A per-cluster record is a candidate when prevalence in the induced
condition and log2 fold-change both strictly exceed their thresholds.
Among a gene's candidates the largest fold-change wins; exact ties go to
the cluster that comes first in the run's cluster order. Genes without
candidates get no record.
"""

from dataclasses import asdict, dataclass
from typing import Callable, Dict, Iterable, List, Optional, Sequence

import pandas as pd

from ...utils.ordering import natural_key
from .de import DifferentialRecord

MAX_INDUCTION_COLUMNS = [
    "gene",
    "cluster",
    "log2_fold_change",
    "pct_1",
    "pct_2",
    "p_value",
    "p_adjusted",
    "n_passing_clusters",
]


@dataclass(frozen=True)
class MaxInductionRecord:
    """The winning per-cluster record for one gene."""

    gene: str
    cluster: str
    log2_fold_change: float
    pct_1: float
    pct_2: float
    p_value: float
    p_adjusted: float
    n_passing_clusters: int

    @classmethod
    def from_record(cls, record: DifferentialRecord, n_passing: int) -> "MaxInductionRecord":
        return cls(
            gene=record.gene,
            cluster=record.cluster,
            log2_fold_change=record.log2_fold_change,
            pct_1=record.pct_1,
            pct_2=record.pct_2,
            p_value=record.p_value,
            p_adjusted=record.p_adjusted,
            n_passing_clusters=n_passing,
        )


def passes_induction_filter(
    record: DifferentialRecord,
    prevalence_threshold: float = 0.05,
    fold_change_threshold: float = 0.25,
) -> bool:
    """True if prevalence and fold-change strictly exceed the thresholds."""
    return (
        record.pct_1 > prevalence_threshold
        and record.log2_fold_change > fold_change_threshold
    )


def _cluster_rank(cluster_order: Optional[Sequence[str]]) -> Callable[[str], tuple]:
    """Sort key for clusters: position in cluster_order, else natural order."""
    if cluster_order is None:
        return natural_key
    positions = {str(c): i for i, c in enumerate(cluster_order)}
    fallback = len(positions)
    return lambda c: (positions.get(c, fallback), natural_key(c))


def select_max_induction(
    records: Iterable[DifferentialRecord],
    prevalence_threshold: float = 0.05,
    fold_change_threshold: float = 0.25,
    cluster_order: Optional[Sequence[str]] = None,
) -> Dict[str, MaxInductionRecord]:
    """Pick the cluster of maximal induction for every gene.

    Parameters
    ----------
    records : Iterable[DifferentialRecord]
        Records for any number of genes and clusters.
    prevalence_threshold : float
        Strict lower bound on ``pct_1``.
    fold_change_threshold : float
        Strict lower bound on ``log2_fold_change``.
    cluster_order : Sequence[str], optional
        Run cluster order used to break exact fold-change ties (earlier
        wins). Defaults to natural sort of cluster ids.

    Returns
    -------
    Dict[str, MaxInductionRecord]
        Gene -> winning record, in order of first appearance. Genes with no
        passing cluster are absent.
    """
    rank = _cluster_rank(cluster_order)
    candidates: Dict[str, List[DifferentialRecord]] = {}

    for record in records:
        passing = candidates.setdefault(record.gene, [])
        if passes_induction_filter(record, prevalence_threshold, fold_change_threshold):
            passing.append(record)

    selected: Dict[str, MaxInductionRecord] = {}
    for gene, passing in candidates.items():
        if not passing:
            continue
        best = min(passing, key=lambda r: (-r.log2_fold_change, rank(r.cluster)))
        selected[gene] = MaxInductionRecord.from_record(best, len(passing))
    return selected


def max_induction_table(selected: Dict[str, MaxInductionRecord]) -> pd.DataFrame:
    """Winning records as one table (MAX_INDUCTION_COLUMNS)."""
    return pd.DataFrame(
        [asdict(r) for r in selected.values()],
        columns=MAX_INDUCTION_COLUMNS,
    )
