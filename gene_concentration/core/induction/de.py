"""Per-cluster differential expression between two conditions.

For each cluster, cells of condition 1 are compared with cells of
condition 2 on a fixed gene set. Every gene gets prevalence in both
conditions, a pseudocounted log2 fold-change of natural-scale means and a
two-sided p-value from the configured test. Clusters are independent and
are tested on a thread pool.
"""

from dataclasses import asdict, dataclass, field
import logging
import time
from concurrent.futures import ThreadPoolExecutor, as_completed
from typing import TYPE_CHECKING, Dict, List, Optional, Sequence, Tuple

import numpy as np
import pandas as pd

from ...utils.stats import (
    adjust_pvalues,
    log2_fold_change,
    prevalence,
    two_sample_pvalues,
)
from .config import InductionConfig

if TYPE_CHECKING:
    from ..store import ExpressionStore

RECORD_COLUMNS = [
    "gene",
    "cluster",
    "log2_fold_change",
    "pct_1",
    "pct_2",
    "p_value",
    "p_adjusted",
    "mean_1",
    "mean_2",
]


@dataclass(frozen=True)
class DifferentialRecord:
    """Condition 1 vs condition 2 statistics for one gene in one cluster.

    ``pct_1``/``pct_2`` are the fractions of cells with non-zero expression
    and ``mean_1``/``mean_2`` the natural-scale means in each condition.
    """

    gene: str
    cluster: str
    log2_fold_change: float
    pct_1: float
    pct_2: float
    p_value: float
    p_adjusted: float
    mean_1: float
    mean_2: float


def compute_cluster_de(
    values_1: np.ndarray,
    values_2: np.ndarray,
    genes: Sequence[str],
    cluster: str,
    pseudocount: float = 1.0,
    method: str = "wilcoxon",
    correction_method: str = "none",
    log_transformed: bool = True,
) -> List[DifferentialRecord]:
    """Compare two conditions within one cluster.

    Parameters
    ----------
    values_1 : np.ndarray
        Cells x genes values (as stored) for condition 1.
    values_2 : np.ndarray
        Cells x genes values (as stored) for condition 2.
    genes : Sequence[str]
        Gene ids of the columns.
    cluster : str
        Cluster id stamped on the records.
    pseudocount : float
        Added to natural-scale means before log2.
    method : str
        Two-sample test ("wilcoxon" or "t-test").
    correction_method : str
        Adjustment applied across genes of this cluster.
    log_transformed : bool
        Whether values are log1p-normalized (de-logged for the means).

    Returns
    -------
    List[DifferentialRecord]
        One record per gene, in ``genes`` order.
    """
    values_1 = np.asarray(values_1, dtype=float)
    values_2 = np.asarray(values_2, dtype=float)

    natural_1 = np.expm1(values_1) if log_transformed else values_1
    natural_2 = np.expm1(values_2) if log_transformed else values_2
    mean_1 = natural_1.mean(axis=0)
    mean_2 = natural_2.mean(axis=0)

    lfc = log2_fold_change(mean_1, mean_2, pseudocount)
    pct_1 = prevalence(values_1)
    pct_2 = prevalence(values_2)
    p_values = two_sample_pvalues(values_1, values_2, method=method)
    p_adjusted = adjust_pvalues(p_values, method=correction_method)

    return [
        DifferentialRecord(
            gene=str(gene),
            cluster=str(cluster),
            log2_fold_change=float(lfc[i]),
            pct_1=float(pct_1[i]),
            pct_2=float(pct_2[i]),
            p_value=float(p_values[i]),
            p_adjusted=float(p_adjusted[i]),
            mean_1=float(mean_1[i]),
            mean_2=float(mean_2[i]),
        )
        for i, gene in enumerate(genes)
    ]


@dataclass
class DEResult:
    """Result from per-cluster differential expression testing.

    Attributes
    ----------
    records : List[DifferentialRecord]
        All records, ordered by cluster (run order) then gene.
    missing_clusters : Dict[str, Tuple[int, int]]
        Clusters without enough cells, mapped to (n_cells_1, n_cells_2).
    condition_1 : str
        Induced condition.
    condition_2 : str
        Reference condition.
    method : str
        Test used for all clusters.
    elapsed_seconds : float
        Time taken for DE computation
    """

    records: List[DifferentialRecord] = field(default_factory=list)
    missing_clusters: Dict[str, Tuple[int, int]] = field(default_factory=dict)
    condition_1: str = ""
    condition_2: str = ""
    method: str = "wilcoxon"
    elapsed_seconds: float = 0.0

    def to_dataframe(self) -> pd.DataFrame:
        """All records as one table (RECORD_COLUMNS)."""
        return pd.DataFrame(
            [asdict(r) for r in self.records],
            columns=RECORD_COLUMNS,
        )


class DERunner:
    """Per-cluster differential expression runner.

    Parameters
    ----------
    config : InductionConfig, optional
        Induction configuration. If None, uses defaults.
    logger : logging.Logger, optional
        Logger instance. If None, creates default logger.

    Example
    -------
    >>> runner = DERunner(InductionConfig(method="wilcoxon", n_workers=8))
    >>> result = runner.run(store, genes, clusters, "treated", "control")
    >>> result.to_dataframe().head()
    """

    def __init__(
        self,
        config: Optional[InductionConfig] = None,
        logger: Optional[logging.Logger] = None,
    ):
        self.config = config or InductionConfig()
        self.logger = logger or logging.getLogger(__name__)

    def run(
        self,
        store: "ExpressionStore",
        genes: Sequence[str],
        clusters: Sequence[str],
        condition_1: str,
        condition_2: str,
    ) -> DEResult:
        """Run condition 1 vs condition 2 within every cluster.

        Parameters
        ----------
        store : ExpressionStore
            Source of per-cell values.
        genes : Sequence[str]
            Genes to test.
        clusters : Sequence[str]
            Clusters to test, in run order.
        condition_1 : str
            Induced condition (numerator of the fold-change).
        condition_2 : str
            Reference condition.

        Returns
        -------
        DEResult
            Records for every cluster with enough cells.
        """
        cfg = self.config
        genes = [str(g) for g in genes]
        clusters = [str(c) for c in clusters]

        self.logger.info(
            "Per-cluster DE (%s vs %s, method=%s, pseudocount=%g, "
            "correction=%s): %d genes, %d clusters, %d workers",
            condition_1,
            condition_2,
            cfg.method,
            cfg.pseudocount,
            cfg.correction_method,
            len(genes),
            len(clusters),
            cfg.n_workers,
        )
        start_time = time.time()

        def process_cluster(
            cluster: str,
        ) -> Tuple[str, Optional[List[DifferentialRecord]], int, int]:
            """Run DE for one cluster."""
            values_1 = store.cell_values(genes, cluster, condition_1)
            values_2 = store.cell_values(genes, cluster, condition_2)
            n_1, n_2 = values_1.shape[0], values_2.shape[0]

            if n_1 < cfg.min_cells_per_condition or n_2 < cfg.min_cells_per_condition:
                return cluster, None, n_1, n_2

            records = compute_cluster_de(
                values_1,
                values_2,
                genes,
                cluster,
                pseudocount=cfg.pseudocount,
                method=cfg.method,
                correction_method=cfg.correction_method,
                log_transformed=store.log_transformed,
            )
            return cluster, records, n_1, n_2

        outcomes: Dict[str, Tuple[Optional[List[DifferentialRecord]], int, int]] = {}

        if cfg.n_workers > 1 and len(clusters) > 1:
            with ThreadPoolExecutor(max_workers=cfg.n_workers) as executor:
                futures = {
                    executor.submit(process_cluster, c): c for c in clusters
                }
                for future in as_completed(futures):
                    cluster, records, n_1, n_2 = future.result()
                    outcomes[cluster] = (records, n_1, n_2)
        else:
            for c in clusters:
                cluster, records, n_1, n_2 = process_cluster(c)
                outcomes[cluster] = (records, n_1, n_2)

        result = DEResult(
            condition_1=str(condition_1),
            condition_2=str(condition_2),
            method=cfg.method,
        )
        for cluster in clusters:
            records, n_1, n_2 = outcomes[cluster]
            if records is None:
                result.missing_clusters[cluster] = (n_1, n_2)
                self.logger.info(
                    "Cluster %s skipped: %d %s cells, %d %s cells (min %d)",
                    cluster,
                    n_1,
                    condition_1,
                    n_2,
                    condition_2,
                    cfg.min_cells_per_condition,
                )
                continue
            result.records.extend(records)
            self.logger.debug(
                "Cluster %s: %d vs %d cells, %d records", cluster, n_1, n_2, len(records)
            )

        result.elapsed_seconds = time.time() - start_time
        self.logger.info(
            "Per-cluster DE completed: %d records from %d of %d clusters in %.1f seconds",
            len(result.records),
            len(clusters) - len(result.missing_clusters),
            len(clusters),
            result.elapsed_seconds,
        )
        return result
