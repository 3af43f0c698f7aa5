"""Test fixtures for gene-concentration.

Provides mock data generators and test utilities.
"""

from .mock_adata import (
    DESIGNED_GENES,
    RARE_GENE,
    create_category_groups,
    create_category_table,
    create_condition_adata,
)

__all__ = [
    "DESIGNED_GENES",
    "RARE_GENE",
    "create_category_groups",
    "create_category_table",
    "create_condition_adata",
]
