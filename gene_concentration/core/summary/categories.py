"""Gene -> category lookup.

Categories are configuration data (a table or YAML groups), not code, so
category sets can be swapped without touching the pipeline. A gene without
an assignment is simply absent from the lookup.
"""

from dataclasses import dataclass, field
from pathlib import Path
from types import MappingProxyType
from typing import Any, Dict, Iterable, List, Mapping, Optional, Tuple, Union

import pandas as pd
import yaml

from ...io.csv import read_table
from ..validation import MalformedInputError, suggest_matches

PathLike = Union[str, Path]


def _merge_pairs(pairs: Iterable[Tuple[Any, Any]]) -> Dict[str, str]:
    """Collect gene/label pairs, rejecting conflicting labels for one gene."""
    labels: Dict[str, str] = {}
    conflicts: Dict[str, List[str]] = {}
    for gene, label in pairs:
        gene, label = str(gene).strip(), str(label).strip()
        if not gene or not label:
            continue
        previous = labels.setdefault(gene, label)
        if previous != label:
            conflicts.setdefault(gene, [previous]).append(label)

    if conflicts:
        example = next(iter(conflicts))
        raise MalformedInputError(
            f"{len(conflicts)} gene(s) assigned to more than one category",
            error_code="E005_CONFLICTING_CATEGORY",
            expected="one category per gene",
            found={g: sorted(set(v)) for g, v in list(conflicts.items())[:5]},
            suggestion=f"Resolve the assignment of '{example}' in the category source.",
        )
    return labels


@dataclass(frozen=True)
class CategoryAssignment:
    """Immutable, possibly partial, mapping of gene -> category label.

    Example
    -------
    >>> categories = CategoryAssignment.from_groups({
    ...     "interferon": ["ISG15", "IFIT1"],
    ...     "chemokine": ["CXCL10"],
    ... })
    >>> categories.get("ISG15")
    'interferon'
    """

    labels: Mapping[str, str] = field(default_factory=dict)

    def __post_init__(self):
        object.__setattr__(
            self,
            "labels",
            MappingProxyType({str(k): str(v) for k, v in dict(self.labels).items()}),
        )

    def get(self, gene: str) -> Optional[str]:
        """Category of gene, or None if unassigned."""
        return self.labels.get(str(gene))

    def __contains__(self, gene: object) -> bool:
        return str(gene) in self.labels

    def __len__(self) -> int:
        return len(self.labels)

    @property
    def genes(self) -> List[str]:
        return list(self.labels)

    @property
    def categories(self) -> List[str]:
        """Distinct labels in first-seen order."""
        return list(dict.fromkeys(self.labels.values()))

    def to_dataframe(self) -> pd.DataFrame:
        return pd.DataFrame(
            {"gene": list(self.labels), "category": list(self.labels.values())}
        )

    @classmethod
    def from_dict(cls, mapping: Mapping[str, str]) -> "CategoryAssignment":
        """Create from ``gene -> label``."""
        return cls(labels=_merge_pairs(mapping.items()))

    @classmethod
    def from_groups(cls, groups: Mapping[str, Iterable[str]]) -> "CategoryAssignment":
        """Create from ``label -> [genes]``."""
        pairs = ((gene, label) for label, genes in groups.items() for gene in genes)
        return cls(labels=_merge_pairs(pairs))

    @classmethod
    def from_dataframe(
        cls,
        df: pd.DataFrame,
        gene_column: str = "gene",
        category_column: str = "category",
    ) -> "CategoryAssignment":
        """Create from a two-column table. Rows with a missing value are skipped."""
        available = [str(c) for c in df.columns]
        for column in (gene_column, category_column):
            if column not in df.columns:
                raise MalformedInputError(
                    f"Category table missing column '{column}'",
                    error_code="E004_MISSING_COLUMN",
                    expected=column,
                    found=available,
                    suggestion=suggest_matches([column], available),
                )
        rows = df[[gene_column, category_column]].dropna()
        return cls(labels=_merge_pairs(zip(rows[gene_column], rows[category_column])))

    @classmethod
    def from_table(
        cls,
        path: PathLike,
        gene_column: str = "gene",
        category_column: str = "category",
    ) -> "CategoryAssignment":
        """Load from a CSV/TSV file.

        Raises
        ------
        MalformedInputError
            If a column is missing, a gene has conflicting labels, or the
            table holds no assignments.
        """
        df = read_table(path, dtype=str)
        categories = cls.from_dataframe(df, gene_column, category_column)
        if len(categories) == 0:
            raise MalformedInputError(
                f"Category table {path} contains no assignments",
                error_code="E006_EMPTY_INPUT",
                expected="at least one gene/category row",
                found=0,
            )
        return categories

    @classmethod
    def from_yaml(cls, path: PathLike) -> "CategoryAssignment":
        """Load ``label: [genes]`` groups, optionally under a ``categories:`` key."""
        with open(path) as f:
            data = yaml.safe_load(f) or {}
        groups = data.get("categories", data)
        if not isinstance(groups, dict) or not groups:
            raise MalformedInputError(
                f"Category file {path} contains no category groups",
                error_code="E006_EMPTY_INPUT",
                expected="mapping of category -> list of genes",
                found=type(groups).__name__,
            )
        return cls.from_groups(groups)

    @classmethod
    def load(cls, path: PathLike, **kwargs) -> "CategoryAssignment":
        """Load from YAML (.yaml/.yml) or a CSV/TSV table."""
        if Path(path).suffix.lower() in {".yaml", ".yml"}:
            return cls.from_yaml(path)
        return cls.from_table(path, **kwargs)
