"""Induction engine: per-cluster DE followed by max-induction selection."""

from dataclasses import dataclass, field
import logging
from typing import TYPE_CHECKING, Dict, List, Optional, Sequence

import pandas as pd

from .config import InductionConfig
from .de import DERunner, DEResult
from .selection import MaxInductionRecord, max_induction_table, select_max_induction

if TYPE_CHECKING:
    from ..store import ExpressionStore


@dataclass
class InductionResult:
    """Result of the induction pipeline.

    Attributes
    ----------
    de : DEResult
        All per-cluster records.
    max_induction : Dict[str, MaxInductionRecord]
        Gene -> cluster of maximal induction.
    no_evidence_genes : List[str]
        Tested genes for which no cluster passed the filter.
    """

    de: DEResult
    max_induction: Dict[str, MaxInductionRecord] = field(default_factory=dict)
    no_evidence_genes: List[str] = field(default_factory=list)

    @property
    def table(self) -> pd.DataFrame:
        return max_induction_table(self.max_induction)


class InductionEngine:
    """Engine combining DERunner and the max-induction selector.

    Parameters
    ----------
    config : InductionConfig, optional
        Configuration. Uses defaults if not provided.
    logger : logging.Logger, optional
        Logger instance. If None, uses the module logger.
    """

    def __init__(
        self,
        config: Optional[InductionConfig] = None,
        logger: Optional[logging.Logger] = None,
    ):
        self.config = config or InductionConfig()
        self.logger = logger or logging.getLogger(__name__)
        self.runner = DERunner(self.config, logger=self.logger)

    def execute(
        self,
        store: "ExpressionStore",
        genes: Sequence[str],
        clusters: Sequence[str],
        condition_1: str,
        condition_2: str,
    ) -> InductionResult:
        """Run DE in every cluster and select each gene's best cluster."""
        cfg = self.config
        de = self.runner.run(store, genes, clusters, condition_1, condition_2)

        selected = select_max_induction(
            de.records,
            prevalence_threshold=cfg.prevalence_threshold,
            fold_change_threshold=cfg.fold_change_threshold,
            cluster_order=[str(c) for c in clusters],
        )
        no_evidence = [str(g) for g in genes if str(g) not in selected]

        if de.missing_clusters:
            self.logger.info(
                "%d of %d clusters contributed no candidates (too few cells): %s",
                len(de.missing_clusters),
                len(clusters),
                sorted(de.missing_clusters),
            )
        self.logger.info(
            "%d of %d genes excluded for lacking induction evidence "
            "(pct_1 > %g and log2FC > %g)",
            len(no_evidence),
            len(genes),
            cfg.prevalence_threshold,
            cfg.fold_change_threshold,
        )
        return InductionResult(
            de=de,
            max_induction=selected,
            no_evidence_genes=no_evidence,
        )
