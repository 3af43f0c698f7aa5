"""Summary engine.

This module provides the SummaryEngine class that orchestrates the two
independent pipelines (concentration scoring, induction selection) and
joins their results with the gene categories.
"""

from dataclasses import dataclass, field
from datetime import datetime
import logging
from typing import Any, Dict, List, Optional

import pandas as pd

from ..concentration import ConcentrationEngine, ConcentrationResult
from ..induction import InductionEngine, InductionResult
from ..store import AnnDataExpressionStore, ExpressionStore
from ..validation import ExclusionReason, MalformedInputError
from .categories import CategoryAssignment
from .config import SummaryConfig
from .join import JoinResult, join_summary


@dataclass
class SummaryResult:
    """Result of a scoring-and-join run.

    Attributes
    ----------
    summary : pd.DataFrame
        Final per-gene table (gene, category, concentration_score,
        log2_fold_change, cluster_of_max_induction, pct_expressing)
    concentration : ConcentrationResult
        Concentration scores and diagnostics
    induction : InductionResult
        Per-cluster DE records and max-induction selection
    join : JoinResult
        Join diagnostics
    exclusions : Dict[str, int]
        Count per ExclusionReason value
    config : SummaryConfig
        Configuration used
    provenance : Dict[str, Any]
        Execution provenance
    """

    summary: pd.DataFrame
    concentration: ConcentrationResult
    induction: InductionResult
    join: JoinResult
    exclusions: Dict[str, int] = field(default_factory=dict)
    config: SummaryConfig = field(default_factory=SummaryConfig)
    provenance: Dict[str, Any] = field(default_factory=dict)


class SummaryEngine:
    """Engine for the full scoring-and-join run.

    Parameters
    ----------
    config : SummaryConfig, optional
        Configuration. Uses defaults if not provided.
    logger : logging.Logger, optional
        Logger instance. If None, uses the module logger.

    Example
    -------
    >>> engine = SummaryEngine(SummaryConfig(condition_a="STIM", condition_b="CTRL"))
    >>> result = engine.execute(store, categories)
    >>> print(f"{len(result.summary)} genes in summary")
    """

    def __init__(
        self,
        config: Optional[SummaryConfig] = None,
        logger: Optional[logging.Logger] = None,
    ):
        self.config = config or SummaryConfig()
        self.logger = logger or logging.getLogger(__name__)

    def build_store(self, adata: Any) -> AnnDataExpressionStore:
        """Wrap an AnnData object using the configured keys and layer."""
        cfg = self.config
        return AnnDataExpressionStore(
            adata,
            cluster_key=cfg.cluster_key,
            condition_key=cfg.condition_key,
            layer=cfg.layer,
            log_transformed=cfg.log_transformed,
        )

    def execute_adata(self, adata: Any, categories: CategoryAssignment) -> SummaryResult:
        """Run on an AnnData object."""
        return self.execute(self.build_store(adata), categories)

    def resolve_run(self, store: ExpressionStore) -> tuple:
        """Genes and clusters of the run (config, else everything in the store)."""
        genes: List[str] = list(dict.fromkeys(self.config.genes)) or store.genes
        clusters: List[str] = list(dict.fromkeys(self.config.clusters)) or store.clusters
        return genes, clusters

    def execute(
        self,
        store: ExpressionStore,
        categories: CategoryAssignment,
    ) -> SummaryResult:
        """Execute the run.

        Parameters
        ----------
        store : ExpressionStore
            Expression source.
        categories : CategoryAssignment
            Gene -> category lookup.

        Returns
        -------
        SummaryResult
            Summary table and intermediate results.

        Raises
        ------
        MalformedInputError
            If the store or the category lookup cannot supply the configured
            run. Raised before any computation.
        """
        start_time = datetime.now()
        cfg = self.config
        genes, clusters = self.resolve_run(store)
        condition_a, condition_b = cfg.condition_a, cfg.condition_b
        concentration_condition = cfg.concentration_condition

        store.validate(genes, clusters, [condition_a, condition_b, concentration_condition])
        if len(categories) == 0:
            raise MalformedInputError(
                "Category lookup has no assignments",
                error_code="E006_EMPTY_INPUT",
                expected="at least one gene -> category assignment",
                found=0,
            )

        categorized = [g for g in genes if g in categories]
        if not categorized:
            self.logger.warning(
                "Category lookup shares no genes with the run (%d genes, %d assignments); "
                "the summary table will be empty",
                len(genes),
                len(categories),
            )

        self.logger.info(
            "Run: %d genes, %d clusters, %s vs %s, %d categorized genes",
            len(genes),
            len(clusters),
            condition_a,
            condition_b,
            len(categorized),
        )

        concentration = ConcentrationEngine(cfg.concentration, logger=self.logger).execute(
            store, genes, clusters, concentration_condition
        )
        induction = InductionEngine(cfg.induction, logger=self.logger).execute(
            store, genes, clusters, condition_a, condition_b
        )
        join = join_summary(
            concentration.scores,
            induction.max_induction,
            categories,
            gene_order=genes,
        )

        scored = set(concentration.scores.index)
        no_evidence = [g for g in induction.no_evidence_genes if g in scored]
        scored_and_induced = scored & set(induction.max_induction)
        join_miss = sorted(scored_and_induced - set(join.table["gene"]))
        # One reason per gene: undefined score first, then induction, then category
        exclusions = {
            ExclusionReason.UNDEFINED_SCORE.value: len(concentration.undefined_genes),
            ExclusionReason.MISSING_DIFFERENTIAL_DATA.value: len(induction.de.missing_clusters),
            ExclusionReason.NO_INDUCTION_EVIDENCE.value: len(no_evidence),
            ExclusionReason.JOIN_MISS.value: len(join_miss),
        }
        if join_miss:
            self.logger.info(
                "%d of %d genes excluded for lacking a category assignment",
                len(join_miss),
                len(genes),
            )
            self.logger.debug("Uncategorized genes: %s", join_miss)
        self.logger.info(
            "Summary: %d of %d genes retained", len(join.table), len(genes)
        )

        end_time = datetime.now()
        provenance = {
            "timestamp": start_time.isoformat(),
            "duration_seconds": (end_time - start_time).total_seconds(),
            "n_genes": len(genes),
            "n_clusters": len(clusters),
            "clusters": clusters,
            "n_genes_scored": concentration.n_scored,
            "n_genes_induced": len(induction.max_induction),
            "n_genes_summary": len(join.table),
            "n_de_records": len(induction.de.records),
            "missing_clusters": sorted(induction.de.missing_clusters),
            "exclusions": exclusions,
            "join_missing": dict(join.missing),
            "config": cfg.to_dict(),
        }

        return SummaryResult(
            summary=join.table,
            concentration=concentration,
            induction=induction,
            join=join,
            exclusions=exclusions,
            config=cfg,
            provenance=provenance,
        )
