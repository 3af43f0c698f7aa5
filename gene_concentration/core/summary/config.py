"""Configuration for the full scoring-and-join run.

All run parameters live in dataclasses that load from YAML, so a run is
reproducible from its config file. YAML may hold the fields at top level
or nested under a ``summary:`` key.
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml

from ..concentration.config import ConcentrationConfig
from ..induction.config import InductionConfig


@dataclass
class SummaryConfig:
    """Master configuration for a run.

    Attributes
    ----------
    condition_a : str
        Induced (treatment) condition; numerator of the fold-change.
    condition_b : str
        Reference (control) condition.
    genes : List[str]
        Genes of the run. Empty means every gene in the store.
    clusters : List[str]
        Clusters of the run. Empty means every cluster in the store, in
        natural sort order. Order decides fold-change ties.
    cluster_key : str
        Column in adata.obs with cluster ids
    condition_key : str
        Column in adata.obs with condition labels
    layer : str, optional
        Layer with log-normalized values. None uses adata.X.
    log_transformed : bool
        Whether stored values are log1p-normalized.
    concentration : ConcentrationConfig
        Concentration scoring settings
    induction : InductionConfig
        DE and selection settings
    category_table : str, optional
        Path of the gene -> category table (CSV/TSV/YAML)
    category_gene_column : str
        Gene column of the category table
    category_column : str
        Category column of the category table
    """

    condition_a: str = "treated"
    condition_b: str = "control"
    genes: List[str] = field(default_factory=list)
    clusters: List[str] = field(default_factory=list)
    cluster_key: str = "cluster"
    condition_key: str = "condition"
    layer: Optional[str] = None
    log_transformed: bool = True
    concentration: ConcentrationConfig = field(default_factory=ConcentrationConfig)
    induction: InductionConfig = field(default_factory=InductionConfig)
    category_table: Optional[str] = None
    category_gene_column: str = "gene"
    category_column: str = "category"

    def __post_init__(self):
        self.condition_a = str(self.condition_a)
        self.condition_b = str(self.condition_b)
        if self.condition_a == self.condition_b:
            raise ValueError(
                f"condition_a and condition_b must differ, both are '{self.condition_a}'"
            )
        self.genes = [str(g) for g in self.genes]
        self.clusters = [str(c) for c in self.clusters]

    @property
    def concentration_condition(self) -> str:
        """Condition aggregated for concentration scoring."""
        if self.concentration.condition is not None:
            return str(self.concentration.condition)
        return self.condition_a

    @classmethod
    def from_yaml(cls, path: Path) -> "SummaryConfig":
        """Load configuration from YAML file.

        Parameters
        ----------
        path : Path
            Path to YAML configuration file

        Returns
        -------
        SummaryConfig
            Configuration instance
        """
        with open(path) as f:
            data = yaml.safe_load(f) or {}
        return cls.from_dict(data.get("summary", data))

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "SummaryConfig":
        """Create from dictionary."""
        kwargs = {
            k: v
            for k, v in data.items()
            if k in cls.__dataclass_fields__ and k not in ("concentration", "induction")
        }
        return cls(
            concentration=ConcentrationConfig.from_dict(data.get("concentration") or {}),
            induction=InductionConfig.from_dict(data.get("induction") or {}),
            **kwargs,
        )

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return {
            "condition_a": self.condition_a,
            "condition_b": self.condition_b,
            "genes": list(self.genes),
            "clusters": list(self.clusters),
            "cluster_key": self.cluster_key,
            "condition_key": self.condition_key,
            "layer": self.layer,
            "log_transformed": self.log_transformed,
            "concentration": self.concentration.to_dict(),
            "induction": self.induction.to_dict(),
            "category_table": self.category_table,
            "category_gene_column": self.category_gene_column,
            "category_column": self.category_column,
        }

    def to_yaml(self, path: Path) -> None:
        """Save configuration to YAML file."""
        with open(path, "w") as f:
            yaml.dump({"summary": self.to_dict()}, f, default_flow_style=False, sort_keys=False)
