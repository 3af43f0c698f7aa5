"""Pytest configuration and shared fixtures for gene-concentration tests."""

import sys
from pathlib import Path

import pytest
import numpy as np
import pandas as pd

# Add package to path
PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from tests.fixtures import (
    create_category_groups,
    create_category_table,
    create_condition_adata,
)


# ============================================================================
# AnnData Fixtures
# ============================================================================


@pytest.fixture
def condition_adata():
    """Two-condition AnnData with designed genes, 3 clusters x 20 cells."""
    return create_condition_adata()


@pytest.fixture
def sparse_condition_adata():
    """Same data as condition_adata with a CSR matrix."""
    return create_condition_adata(sparse=True)


@pytest.fixture
def store(condition_adata):
    """Expression store over condition_adata."""
    from gene_concentration.core.store import AnnDataExpressionStore

    return AnnDataExpressionStore(condition_adata, "cluster", "condition")


# ============================================================================
# Category Fixtures
# ============================================================================


@pytest.fixture
def categories():
    """Category lookup covering every designed gene except UNCAT."""
    from gene_concentration.core.summary import CategoryAssignment

    return CategoryAssignment.from_groups(create_category_groups())


@pytest.fixture
def category_table_path(tmp_path) -> Path:
    """Category table written as CSV."""
    path = tmp_path / "categories.csv"
    create_category_table().to_csv(path, index=False)
    return path


# ============================================================================
# Configuration Fixtures
# ============================================================================


@pytest.fixture
def summary_config():
    """Run configuration matching condition_adata, sequential DE."""
    from gene_concentration.core.induction import InductionConfig
    from gene_concentration.core.summary import SummaryConfig

    return SummaryConfig(
        condition_a="treated",
        condition_b="control",
        induction=InductionConfig(n_workers=1),
    )


@pytest.fixture
def sample_config_yaml(tmp_path) -> Path:
    """Create sample run configuration file."""
    import yaml

    config = {
        "summary": {
            "condition_a": "treated",
            "condition_b": "control",
            "cluster_key": "cluster",
            "condition_key": "condition",
            "induction": {
                "prevalence_threshold": 0.1,
                "fold_change_threshold": 0.5,
                "method": "t-test",
                "n_workers": 2,
            },
            "concentration": {"condition": "treated"},
        },
    }

    path = tmp_path / "summary.yaml"
    with open(path, "w") as f:
        yaml.dump(config, f)

    return path


@pytest.fixture
def tmp_output_dir(tmp_path: Path) -> Path:
    """Create a temporary output directory for tests."""
    output_dir = tmp_path / "output"
    output_dir.mkdir(parents=True, exist_ok=True)
    return output_dir


@pytest.fixture
def three_cluster_means() -> pd.DataFrame:
    """Means for genes X [10,0,0], Y [5,5,5], Z [0,0,0] over 3 clusters."""
    return pd.DataFrame(
        np.array([[10.0, 0.0, 0.0], [5.0, 5.0, 5.0], [0.0, 0.0, 0.0]]),
        index=pd.Index(["X", "Y", "Z"], name="gene"),
        columns=pd.Index(["1", "2", "3"], name="cluster"),
    )
