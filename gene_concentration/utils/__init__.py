"""Utility functions for gene-concentration.

Provides statistical helpers and common utilities used across modules.
"""

from .stats import (
    adjust_pvalues,
    log2_fold_change,
    prevalence,
    two_sample_pvalues,
)
from .ordering import natural_key, order_clusters

__all__ = [
    "adjust_pvalues",
    "log2_fold_change",
    "prevalence",
    "two_sample_pvalues",
    "natural_key",
    "order_clusters",
]
