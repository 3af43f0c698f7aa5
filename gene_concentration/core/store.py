"""Expression store abstraction.

The pipeline reads expression through an ``ExpressionStore``: per-cluster
mean expression for concentration scoring and per-cell values for
differential testing. ``AnnDataExpressionStore`` implements it over an
AnnData object with cluster and condition columns in ``obs``.
"""

from abc import ABC, abstractmethod
import logging
from typing import Any, List, Optional, Sequence

import numpy as np
from scipy import sparse

from ..utils.ordering import order_clusters
from .concentration.aggregation import ExpressionProfile, aggregate_expression
from .validation import MalformedInputError, require_known, suggest_matches

logger = logging.getLogger(__name__)


class ExpressionStore(ABC):
    """Abstract source of expression data for one analysis run.

    Subclass this to read from something other than AnnData.
    """

    log_transformed: bool = True

    @property
    @abstractmethod
    def genes(self) -> List[str]:
        """Gene ids the store can supply."""

    @property
    @abstractmethod
    def clusters(self) -> List[str]:
        """Cluster ids present in the store."""

    @property
    @abstractmethod
    def conditions(self) -> List[str]:
        """Condition labels present in the store."""

    @abstractmethod
    def mean_expression(
        self,
        genes: Sequence[str],
        clusters: Sequence[str],
        condition: str,
    ) -> ExpressionProfile:
        """Natural-scale mean expression per gene and cluster in one condition."""

    @abstractmethod
    def cell_values(
        self,
        genes: Sequence[str],
        cluster: str,
        condition: str,
    ) -> np.ndarray:
        """Cells x genes values (as stored) for one cluster and condition."""

    def validate(
        self,
        genes: Sequence[str],
        clusters: Sequence[str],
        conditions: Sequence[str],
    ) -> None:
        """Check that the store can supply the configured run.

        Raises
        ------
        MalformedInputError
            If a gene, cluster or condition is unknown, or a set is empty.
        """
        for kind, requested in (("gene", genes), ("cluster", clusters)):
            if len(requested) == 0:
                raise MalformedInputError(
                    f"No {kind}s configured for the run",
                    error_code="E006_EMPTY_INPUT",
                    expected=f"at least one {kind}",
                    found=0,
                )
        require_known(genes, self.genes, "gene", "E001_UNKNOWN_GENE")
        require_known(clusters, self.clusters, "cluster", "E002_UNKNOWN_CLUSTER")
        require_known(conditions, self.conditions, "condition", "E003_UNKNOWN_CONDITION")


class AnnDataExpressionStore(ExpressionStore):
    """Expression store backed by an AnnData object.

    Parameters
    ----------
    adata : AnnData
        Cells x genes data with cluster and condition labels in ``obs``.
    cluster_key : str
        Column in ``adata.obs`` with cluster ids.
    condition_key : str
        Column in ``adata.obs`` with condition labels.
    layer : str, optional
        Layer holding log-normalized values. None uses ``adata.X``.
    log_transformed : bool
        Whether stored values are log1p-normalized.

    Example
    -------
    >>> store = AnnDataExpressionStore(adata, "seurat_clusters", "stim")
    >>> profile = store.mean_expression(["ISG15"], store.clusters, "STIM")
    """

    def __init__(
        self,
        adata: Any,  # AnnData
        cluster_key: str = "cluster",
        condition_key: str = "condition",
        layer: Optional[str] = None,
        log_transformed: bool = True,
    ):
        for key in (cluster_key, condition_key):
            if key not in adata.obs.columns:
                available = [str(c) for c in adata.obs.columns]
                raise MalformedInputError(
                    f"Column '{key}' not found in adata.obs",
                    error_code="E004_MISSING_COLUMN",
                    expected=key,
                    found=available,
                    suggestion=suggest_matches([key], available),
                )

        if layer and layer not in adata.layers:
            logger.warning(
                "Layer '%s' not found in adata.layers (available: %s). "
                "Falling back to adata.X",
                layer,
                list(adata.layers.keys()),
            )
            layer = None

        self.adata = adata
        self.cluster_key = cluster_key
        self.condition_key = condition_key
        self.layer = layer
        self.log_transformed = log_transformed

        self._cluster_labels = adata.obs[cluster_key].astype(str).to_numpy()
        self._condition_labels = adata.obs[condition_key].astype(str).to_numpy()
        self._genes = [str(g) for g in adata.var_names]
        self._gene_index = {g: i for i, g in enumerate(self._genes)}

    @property
    def genes(self) -> List[str]:
        return list(self._genes)

    @property
    def clusters(self) -> List[str]:
        return order_clusters(self._cluster_labels)

    @property
    def conditions(self) -> List[str]:
        return sorted(set(self._condition_labels))

    @property
    def _matrix(self) -> Any:
        return self.adata.layers[self.layer] if self.layer else self.adata.X

    def _gene_columns(self, genes: Sequence[str]) -> List[int]:
        require_known(genes, self._genes, "gene", "E001_UNKNOWN_GENE")
        return [self._gene_index[str(g)] for g in genes]

    def _slice(self, rows: np.ndarray, genes: Sequence[str]) -> Any:
        """Rows by boolean mask, columns by gene id; keeps sparse input sparse."""
        matrix = self._matrix
        if sparse.issparse(matrix):
            matrix = sparse.csr_matrix(matrix)
        cols = self._gene_columns(genes)
        return matrix[np.flatnonzero(rows)][:, cols]

    def mean_expression(
        self,
        genes: Sequence[str],
        clusters: Sequence[str],
        condition: str,
    ) -> ExpressionProfile:
        rows = self._condition_labels == str(condition)
        values = self._slice(rows, genes)
        return aggregate_expression(
            values,
            cluster_labels=self._cluster_labels[rows],
            clusters=clusters,
            genes=genes,
            log_transformed=self.log_transformed,
            condition=str(condition),
        )

    def cell_values(
        self,
        genes: Sequence[str],
        cluster: str,
        condition: str,
    ) -> np.ndarray:
        rows = (self._cluster_labels == str(cluster)) & (
            self._condition_labels == str(condition)
        )
        values = self._slice(rows, genes)
        if sparse.issparse(values):
            values = values.toarray()
        return np.asarray(values, dtype=float)

