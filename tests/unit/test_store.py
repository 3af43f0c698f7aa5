"""Unit tests for the expression store."""

import logging

import pytest
import numpy as np

from gene_concentration.core.store import AnnDataExpressionStore
from gene_concentration.core.validation import MalformedInputError
from gene_concentration.utils.ordering import natural_key, order_clusters
from tests.fixtures import create_condition_adata


class TestClusterOrdering:
    """Tests for natural cluster ordering."""

    def test_numeric_order(self):
        assert order_clusters(["10", "2", "1", "2"]) == ["1", "2", "10"]

    def test_mixed_labels(self):
        assert order_clusters(["T_10", "T_9", "B"]) == ["B", "T_9", "T_10"]

    def test_integer_input(self):
        """Integer cluster ids become strings."""
        assert order_clusters([3, 1, 2]) == ["1", "2", "3"]
        assert natural_key(2) < natural_key("10")


class TestAnnDataExpressionStore:
    """Tests for AnnDataExpressionStore."""

    def test_properties(self, store):
        assert store.clusters == ["0", "1", "2"]
        assert store.conditions == ["control", "treated"]
        assert store.genes[:2] == ["SPECIFIC", "BROAD"]

    def test_missing_obs_column(self, condition_adata):
        """A wrong cluster key is reported with a suggestion."""
        with pytest.raises(MalformedInputError) as excinfo:
            AnnDataExpressionStore(condition_adata, cluster_key="clusters")
        assert excinfo.value.error_code == "E004_MISSING_COLUMN"
        assert "cluster" in excinfo.value.suggestion

    def test_missing_layer_falls_back(self, condition_adata, caplog):
        """An unknown layer logs a warning and reads X."""
        with caplog.at_level(logging.WARNING):
            store = AnnDataExpressionStore(condition_adata, layer="lognorm")
        assert store.layer is None
        assert "Falling back to adata.X" in caplog.text

    def test_layer_is_used(self, condition_adata):
        """Values come from the named layer when present."""
        condition_adata.layers["lognorm"] = condition_adata.X * 0.0
        store = AnnDataExpressionStore(condition_adata, layer="lognorm")
        values = store.cell_values(["BROAD"], "0", "treated")
        assert np.all(values == 0.0)

    def test_cell_values_shape(self, store):
        values = store.cell_values(["SPECIFIC", "BROAD", "DOWN"], "1", "treated")
        assert values.shape == (20, 3)
        np.testing.assert_allclose(values[:, 0], np.log1p(9.0))

    def test_cell_values_empty_group(self):
        """A cluster with no cells in a condition gives zero rows."""
        adata = create_condition_adata(control_only_cluster="3")
        store = AnnDataExpressionStore(adata)
        assert store.cell_values(["BROAD"], "3", "treated").shape == (0, 1)

    def test_sparse_cell_values_dense(self, sparse_condition_adata):
        store = AnnDataExpressionStore(sparse_condition_adata)
        values = store.cell_values(["SPECIFIC"], "1", "treated")
        assert isinstance(values, np.ndarray)
        assert values.shape == (20, 1)

    def test_mean_expression(self, store):
        """Means are on the natural scale."""
        profile = store.mean_expression(["SPECIFIC", "BROAD"], store.clusters, "treated")
        assert profile.condition == "treated"
        np.testing.assert_allclose(profile.vector("SPECIFIC"), [0.0, 9.0, 0.0])
        np.testing.assert_allclose(profile.vector("BROAD"), [4.0, 4.0, 4.0])

    def test_unknown_gene(self, store):
        with pytest.raises(MalformedInputError) as excinfo:
            store.cell_values(["NOPE"], "0", "treated")
        assert excinfo.value.error_code == "E001_UNKNOWN_GENE"

    def test_validate_empty_gene_set(self, store):
        with pytest.raises(MalformedInputError) as excinfo:
            store.validate([], store.clusters, ["treated"])
        assert excinfo.value.error_code == "E006_EMPTY_INPUT"

    def test_validate_ok(self, store):
        store.validate(store.genes, store.clusters, ["treated", "control"])
