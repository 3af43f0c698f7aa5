"""Unit tests for concentration module."""

import pytest
import numpy as np
import pandas as pd
from scipy import sparse

from gene_concentration.core.concentration import (
    ConcentrationConfig,
    ConcentrationEngine,
    ExpressionProfile,
    aggregate_expression,
    compute_concentration_score,
    compute_shares,
    score_profile,
)
from gene_concentration.core.validation import MalformedInputError, UndefinedScoreError


class TestComputeShares:
    """Tests for share normalization."""

    def test_shares_sum_to_one(self):
        """Shares of random positive vectors sum to 1."""
        rng = np.random.default_rng(42)
        for k in (1, 2, 3, 7, 25):
            for _ in range(20):
                values = rng.exponential(2.0, size=k)
                values[rng.random(k) < 0.3] = 0.0
                if values.sum() == 0:
                    values[0] = 1.0
                assert compute_shares(values).sum() == pytest.approx(1.0)

    def test_zero_total_raises(self):
        """Zero total expression is an undefined score, not NaN."""
        with pytest.raises(UndefinedScoreError, match="gene 'Z'"):
            compute_shares(np.zeros(3), gene="Z")

    def test_undefined_score_is_arithmetic_error(self):
        """UndefinedScoreError is distinguishable and catchable."""
        with pytest.raises(ArithmeticError):
            compute_concentration_score([0.0, 0.0])


class TestConcentrationScore:
    """Tests for the HHI reduction."""

    def test_single_cluster_is_one(self):
        """Expression in exactly one cluster gives exactly 1."""
        assert compute_concentration_score([10.0, 0.0, 0.0]) == 1.0
        assert compute_concentration_score([0.0, 0.0, 0.0, 0.3]) == 1.0

    def test_uniform_is_one_over_k(self):
        """Equal expression over k clusters gives 1/k."""
        for k in (2, 3, 4, 10):
            assert compute_concentration_score(np.full(k, 5.0)) == pytest.approx(1.0 / k)

    def test_bounds(self):
        """Score lies in [1/k, 1] for positive totals."""
        rng = np.random.default_rng(0)
        for _ in range(200):
            k = int(rng.integers(1, 12))
            values = rng.gamma(0.5, 3.0, size=k)
            if values.sum() == 0:
                continue
            score = compute_concentration_score(values)
            assert 1.0 / k - 1e-12 <= score <= 1.0 + 1e-12

    def test_one_only_when_single_cluster(self):
        """Two non-zero clusters never reach 1."""
        assert compute_concentration_score([1e-6, 10.0, 0.0]) < 1.0

    def test_uniform_only_when_equal(self):
        """Unequal means stay above 1/k."""
        assert compute_concentration_score([5.0, 5.0, 5.1]) > 1.0 / 3

    def test_idempotent(self, three_cluster_means):
        """Scoring the same profile twice is bit-identical."""
        profile = ExpressionProfile(means=three_cluster_means)
        first = score_profile(profile).scores
        second = score_profile(profile).scores
        assert first.to_numpy().tobytes() == second.to_numpy().tobytes()


class TestScoreProfile:
    """Tests for profile-level scoring."""

    def test_three_cluster_scenario(self, three_cluster_means):
        """X [10,0,0] -> 1, Y [5,5,5] -> 1/3, Z [0,0,0] -> undefined."""
        result = score_profile(ExpressionProfile(means=three_cluster_means))

        assert result.scores["X"] == 1.0
        assert result.scores["Y"] == pytest.approx(1.0 / 3)
        assert "Z" not in result.scores.index
        assert result.undefined_genes == ["Z"]
        assert not result.scores.isna().any()

    def test_shares_matrix(self, three_cluster_means):
        """Share rows match value / total."""
        result = score_profile(ExpressionProfile(means=three_cluster_means))
        assert result.shares.loc["X"].tolist() == [1.0, 0.0, 0.0]
        np.testing.assert_allclose(result.shares.loc["Y"], [1 / 3] * 3)
        np.testing.assert_allclose(result.shares.sum(axis=1), 1.0)

    def test_table_diagnostics(self, three_cluster_means):
        """Per-gene table reports dominant cluster and expressing count."""
        table = score_profile(ExpressionProfile(means=three_cluster_means)).table
        row_x = table.set_index("gene").loc["X"]
        assert row_x["dominant_cluster"] == "1"
        assert row_x["dominant_share"] == 1.0
        assert row_x["n_expressing_clusters"] == 1
        assert row_x["total_expression"] == 10.0
        # Ties on the dominant share go to the first cluster
        assert table.set_index("gene").loc["Y", "dominant_cluster"] == "1"

    def test_all_undefined(self):
        """A profile of silent genes yields no scores and no NaN."""
        profile = ExpressionProfile.from_mapping({"A": {}, "B": {"1": 0.0}}, ["1", "2"])
        result = score_profile(profile)
        assert result.n_scored == 0
        assert result.undefined_genes == ["A", "B"]
        assert result.table.empty


class TestExpressionProfile:
    """Tests for the ExpressionProfile value type."""

    def test_from_mapping_fills_zero(self):
        """Clusters absent from a gene's mapping contribute 0."""
        profile = ExpressionProfile.from_mapping(
            {"G": {"a": 2.0}}, clusters=["a", "b", "c"], condition="treated"
        )
        assert profile.clusters == ["a", "b", "c"]
        assert profile.vector("G").tolist() == [2.0, 0.0, 0.0]
        assert profile.condition == "treated"

    def test_negative_means_rejected(self):
        """Negative means are malformed input."""
        means = pd.DataFrame([[1.0, -0.5]], index=["G"], columns=["a", "b"])
        with pytest.raises(MalformedInputError) as excinfo:
            ExpressionProfile(means=means)
        assert excinfo.value.error_code == "E007_NEGATIVE_EXPRESSION"

    @pytest.mark.parametrize("bad", [np.inf, np.nan])
    def test_non_finite_means_rejected(self, bad):
        """Infinite or NaN means never reach scoring."""
        with pytest.raises(MalformedInputError) as excinfo:
            ExpressionProfile.from_mapping({"X": {"0": bad, "1": 1.0}}, ["0", "1"])
        assert excinfo.value.error_code == "E007_NEGATIVE_EXPRESSION"
        assert "X" in str(excinfo.value)

    def test_overflowing_delog_rejected(self):
        """Raw counts mistaken for log values overflow expm1 and are rejected."""
        values = np.array([[800.0], [0.0], [1.0]])
        with np.errstate(over="ignore"):
            with pytest.raises(MalformedInputError):
                aggregate_expression(values, ["0", "1", "2"], ["0", "1", "2"], ["G"])

    def test_from_mapping_keeps_empty_genes(self):
        """A gene with no cluster entries keeps an all-zero row."""
        profile = ExpressionProfile.from_mapping({"Z": {}, "X": {"0": 10.0}}, ["0", "1", "2"])
        assert profile.genes == ["Z", "X"]
        assert profile.vector("Z").tolist() == [0.0, 0.0, 0.0]

        result = score_profile(profile)
        assert result.scores.to_dict() == {"X": 1.0}
        assert result.undefined_genes == ["Z"]

    def test_frozen(self, three_cluster_means):
        """Profiles cannot be reassigned after creation."""
        profile = ExpressionProfile(means=three_cluster_means)
        with pytest.raises(AttributeError):
            profile.condition = "other"


class TestAggregateExpression:
    """Tests for per-cluster mean aggregation."""

    def test_averages_on_natural_scale(self):
        """Means are of expm1(values), not expm1(mean of logs)."""
        values = np.log1p(np.array([[0.0], [99.0]]))
        profile = aggregate_expression(values, ["a", "a"], ["a"], ["G"])
        assert profile.vector("G")[0] == pytest.approx(49.5)
        # Averaging logs first would give 9
        assert profile.vector("G")[0] != pytest.approx(9.0)

    def test_natural_scale_input(self):
        """log_transformed=False averages values as given."""
        values = np.array([[1.0], [3.0]])
        profile = aggregate_expression(values, ["a", "a"], ["a"], ["G"], log_transformed=False)
        assert profile.vector("G")[0] == pytest.approx(2.0)

    def test_empty_cluster_is_zero(self):
        """A cluster without cells gets a 0 column, not a missing one."""
        values = np.log1p(np.array([[4.0, 1.0], [4.0, 1.0]]))
        profile = aggregate_expression(values, ["a", "a"], ["a", "b"], ["G1", "G2"])
        assert profile.clusters == ["a", "b"]
        assert profile.means["b"].tolist() == [0.0, 0.0]
        assert profile.means.loc["G1", "a"] == pytest.approx(4.0)

    def test_sparse_matches_dense(self):
        """CSR input gives the same means as dense input."""
        rng = np.random.default_rng(1)
        dense = np.log1p(rng.poisson(0.7, size=(30, 4)).astype(float))
        labels = rng.choice(["x", "y", "z"], size=30)
        genes = ["A", "B", "C", "D"]
        from_dense = aggregate_expression(dense, labels, ["x", "y", "z"], genes)
        from_sparse = aggregate_expression(sparse.csr_matrix(dense), labels, ["x", "y", "z"], genes)
        np.testing.assert_allclose(from_sparse.means.to_numpy(), from_dense.means.to_numpy())

    def test_label_length_mismatch(self):
        """Labels must cover every cell."""
        with pytest.raises(MalformedInputError, match="Cluster labels"):
            aggregate_expression(np.zeros((3, 1)), ["a", "a"], ["a"], ["G"])


class TestConcentrationEngine:
    """Tests for ConcentrationEngine."""

    def test_default_config(self):
        """Default configuration aggregates condition_a."""
        assert ConcentrationConfig().condition is None

    def test_execute_on_store(self, store):
        """Designed genes get their expected scores in the treated condition."""
        genes = ["SPECIFIC", "BROAD", "SILENT", "DOWN"]
        result = ConcentrationEngine().execute(store, genes, store.clusters, "treated")

        assert result.condition == "treated"
        assert result.scores["SPECIFIC"] == 1.0
        assert result.scores["BROAD"] == pytest.approx(1.0 / 3)
        assert result.scores["DOWN"] == pytest.approx(1.0 / 3)
        assert result.undefined_genes == ["SILENT"]

    def test_condition_from_config(self, store):
        """Config condition is used when none is passed."""
        engine = ConcentrationEngine(ConcentrationConfig(condition="control"))
        result = engine.execute(store, ["SPECIFIC", "BROAD"], store.clusters)
        # SPECIFIC is silent in control
        assert result.undefined_genes == ["SPECIFIC"]
        assert result.condition == "control"

    def test_missing_condition_raises(self, store):
        """No condition anywhere is a usage error."""
        with pytest.raises(ValueError, match="No condition"):
            ConcentrationEngine().execute(store, ["BROAD"], store.clusters)
