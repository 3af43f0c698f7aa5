"""Concentration scoring engine.

This module provides the ConcentrationEngine class that aggregates
expression from a store and scores every gene.
"""

import logging
from typing import TYPE_CHECKING, Optional, Sequence

from .config import ConcentrationConfig
from .scoring import ConcentrationResult, score_profile

if TYPE_CHECKING:
    from ..store import ExpressionStore


class ConcentrationEngine:
    """Engine for per-gene concentration scoring.

    Parameters
    ----------
    config : ConcentrationConfig, optional
        Configuration. Uses defaults if not provided.
    logger : logging.Logger, optional
        Logger instance. If None, uses the module logger.

    Example
    -------
    >>> engine = ConcentrationEngine()
    >>> result = engine.execute(store, genes, clusters, condition="treated")
    >>> result.scores.sort_values(ascending=False).head()
    """

    def __init__(
        self,
        config: Optional[ConcentrationConfig] = None,
        logger: Optional[logging.Logger] = None,
    ):
        self.config = config or ConcentrationConfig()
        self.logger = logger or logging.getLogger(__name__)

    def execute(
        self,
        store: "ExpressionStore",
        genes: Sequence[str],
        clusters: Sequence[str],
        condition: Optional[str] = None,
    ) -> ConcentrationResult:
        """Aggregate and score.

        Parameters
        ----------
        store : ExpressionStore
            Source of per-cluster mean expression.
        genes : Sequence[str]
            Genes to score.
        clusters : Sequence[str]
            Cluster set of the run.
        condition : str, optional
            Condition to aggregate in. Falls back to ``config.condition``.

        Returns
        -------
        ConcentrationResult
            Scores for genes with positive total expression.
        """
        condition = condition if condition is not None else self.config.condition
        if condition is None:
            raise ValueError("No condition given for concentration scoring")

        self.logger.info(
            "Aggregating expression: %d genes x %d clusters (condition=%s)",
            len(genes),
            len(clusters),
            condition,
        )
        profile = store.mean_expression(genes, clusters, condition)
        result = score_profile(profile)

        if result.undefined_genes:
            self.logger.info(
                "%d of %d genes excluded with undefined concentration score "
                "(zero expression in condition %s)",
                len(result.undefined_genes),
                len(genes),
                condition,
            )
            self.logger.debug("Undefined-score genes: %s", result.undefined_genes)
        self.logger.info("Scored %d genes", result.n_scored)
        return result
