"""Concentration module: per-cluster aggregation and HHI scoring.

Example Usage
-------------
>>> from gene_concentration.core.concentration import (
...     ExpressionProfile, score_profile,
... )
>>> profile = ExpressionProfile.from_mapping(
...     {"X": {"0": 10.0}, "Y": {"0": 5, "1": 5, "2": 5}},
...     clusters=["0", "1", "2"],
... )
>>> score_profile(profile).scores
"""

from .aggregation import ExpressionProfile, aggregate_expression
from .config import ConcentrationConfig
from .engine import ConcentrationEngine
from .scoring import (
    ConcentrationResult,
    compute_concentration_score,
    compute_shares,
    score_profile,
)

__all__ = [
    "ExpressionProfile",
    "aggregate_expression",
    "ConcentrationConfig",
    "ConcentrationEngine",
    "ConcentrationResult",
    "compute_concentration_score",
    "compute_shares",
    "score_profile",
]
