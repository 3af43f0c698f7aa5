"""Configuration for per-cluster differential expression and induction selection."""

from dataclasses import asdict, dataclass
from typing import Any, Dict

from ...utils.stats import SUPPORTED_CORRECTIONS, SUPPORTED_TESTS


@dataclass
class InductionConfig:
    """Configuration for the induction pipeline.

    Attributes
    ----------
    prevalence_threshold : float
        A cluster is a candidate only if the fraction of condition-A cells
        expressing the gene is strictly greater than this.
    fold_change_threshold : float
        A cluster is a candidate only if log2 fold-change is strictly
        greater than this.
    pseudocount : float
        Added to natural-scale means before taking log2.
    method : str
        Two-sample test (wilcoxon, t-test). Same test for all clusters.
    min_cells_per_condition : int
        Clusters with fewer cells than this in either condition produce no
        records.
    correction_method : str
        Multiple testing correction within each cluster (none, bonferroni,
        fdr_bh, holm). p-values are informational and never filter genes.
    n_workers : int
        Clusters tested in parallel.
    """

    prevalence_threshold: float = 0.05
    fold_change_threshold: float = 0.25
    pseudocount: float = 1.0
    method: str = "wilcoxon"
    min_cells_per_condition: int = 3
    correction_method: str = "none"
    n_workers: int = 4

    def __post_init__(self):
        if not 0.0 <= self.prevalence_threshold < 1.0:
            raise ValueError(
                f"prevalence_threshold must be in [0, 1), got {self.prevalence_threshold}"
            )
        if self.fold_change_threshold < 0:
            raise ValueError(
                f"fold_change_threshold must be non-negative, got {self.fold_change_threshold}"
            )
        if self.pseudocount <= 0:
            raise ValueError(f"pseudocount must be positive, got {self.pseudocount}")
        if self.method not in SUPPORTED_TESTS:
            raise ValueError(f"Unknown DE method '{self.method}'. Supported: {SUPPORTED_TESTS}")
        if self.correction_method not in SUPPORTED_CORRECTIONS:
            raise ValueError(
                f"Unknown correction method '{self.correction_method}'. "
                f"Supported: {SUPPORTED_CORRECTIONS}"
            )
        if self.min_cells_per_condition < 1:
            raise ValueError("min_cells_per_condition must be at least 1")
        if self.n_workers < 1:
            raise ValueError("n_workers must be at least 1")

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "InductionConfig":
        """Create from dictionary."""
        return cls(**{k: v for k, v in data.items() if k in cls.__dataclass_fields__})

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)
