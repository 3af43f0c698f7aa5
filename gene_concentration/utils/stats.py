"""Statistical utilities for gene-concentration.

Provides prevalence and fold-change helpers, vectorised two-sample tests
and multiple-testing adjustment.
"""

from __future__ import annotations

import numpy as np
from scipy import stats

SUPPORTED_TESTS = ("wilcoxon", "t-test")
SUPPORTED_CORRECTIONS = ("none", "bonferroni", "fdr_bh", "holm")


def prevalence(values: np.ndarray) -> np.ndarray:
    """Fraction of cells (rows) with a non-zero value, per gene (column).

    Parameters
    ----------
    values : np.ndarray
        Cells x genes matrix.

    Returns
    -------
    np.ndarray
        Per-column fraction in [0, 1]. Zero-row input yields zeros.
    """
    values = np.asarray(values, dtype=float)
    if values.ndim == 1:
        values = values[:, None]
    if values.shape[0] == 0:
        return np.zeros(values.shape[1])
    return (values > 0).mean(axis=0)


def log2_fold_change(
    mean_1: np.ndarray,
    mean_2: np.ndarray,
    pseudocount: float = 1.0,
) -> np.ndarray:
    """log2((mean_1 + pseudocount) / (mean_2 + pseudocount)).

    Means are expected on the natural (not log) scale.
    """
    mean_1 = np.asarray(mean_1, dtype=float)
    mean_2 = np.asarray(mean_2, dtype=float)
    return np.log2(mean_1 + pseudocount) - np.log2(mean_2 + pseudocount)


def two_sample_pvalues(
    values_1: np.ndarray,
    values_2: np.ndarray,
    method: str = "wilcoxon",
) -> np.ndarray:
    """Two-sided p-values per gene comparing two groups of cells.

    Parameters
    ----------
    values_1 : np.ndarray
        Cells x genes matrix for the first group.
    values_2 : np.ndarray
        Cells x genes matrix for the second group (same genes).
    method : str
        "wilcoxon" (Mann-Whitney U, asymptotic with tie and continuity
        correction) or "t-test" (Welch).

    Returns
    -------
    np.ndarray
        One p-value per gene. Tests that are undefined because both groups
        are constant report 1.0.
    """
    values_1 = np.asarray(values_1, dtype=float)
    values_2 = np.asarray(values_2, dtype=float)
    if values_1.shape[0] == 0 or values_2.shape[0] == 0:
        raise ValueError("Both groups need at least one cell")

    with np.errstate(divide="ignore", invalid="ignore"):
        if method == "wilcoxon":
            _, p_values = stats.mannwhitneyu(
                values_1,
                values_2,
                alternative="two-sided",
                use_continuity=True,
                method="asymptotic",
                axis=0,
            )
        elif method == "t-test":
            _, p_values = stats.ttest_ind(
                values_1, values_2, equal_var=False, axis=0
            )
        else:
            raise ValueError(
                f"Unknown test method: {method}. Supported: {SUPPORTED_TESTS}"
            )

    p_values = np.atleast_1d(np.asarray(p_values, dtype=float))
    p_values = np.where(np.isfinite(p_values), p_values, 1.0)
    return np.clip(p_values, 0.0, 1.0)


def adjust_pvalues(p_values: np.ndarray, method: str = "none") -> np.ndarray:
    """Apply multiple testing correction.

    Parameters
    ----------
    p_values : np.ndarray
        Raw p-values. NaNs are kept and excluded from the family size.
    method : str
        Correction method: "bonferroni", "fdr_bh", "holm", or "none"

    Returns
    -------
    np.ndarray
        Adjusted p-values
    """
    p_values = np.asarray(p_values, dtype=float)
    n = len(p_values)

    if method not in SUPPORTED_CORRECTIONS:
        raise ValueError(f"Unknown correction method: {method}")

    if n == 0 or method == "none":
        return p_values.copy()

    valid_mask = ~np.isnan(p_values)
    valid_p = p_values[valid_mask]
    n_valid = len(valid_p)

    if n_valid == 0:
        return p_values.copy()

    if method == "bonferroni":
        adjusted_valid = np.minimum(valid_p * n_valid, 1.0)

    else:
        sorted_idx = np.argsort(valid_p, kind="mergesort")
        sorted_p = valid_p[sorted_idx]
        ranks = np.arange(1, n_valid + 1)

        if method == "fdr_bh":
            # Benjamini-Hochberg: step-up, running minimum from the largest p
            adjusted_sorted = sorted_p * n_valid / ranks
            adjusted_sorted = np.minimum.accumulate(adjusted_sorted[::-1])[::-1]
        else:
            # Holm-Bonferroni: step-down, running maximum from the smallest p
            adjusted_sorted = sorted_p * (n_valid - ranks + 1)
            adjusted_sorted = np.maximum.accumulate(adjusted_sorted)

        adjusted_valid = np.empty(n_valid)
        adjusted_valid[sorted_idx] = np.minimum(adjusted_sorted, 1.0)

    adjusted = np.full(n, np.nan)
    adjusted[valid_mask] = adjusted_valid
    return adjusted
