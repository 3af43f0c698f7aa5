"""Mock AnnData generators for testing.

Provides functions to create small two-condition AnnData objects with
hand-designed genes whose concentration scores and induction outcomes
are known exactly.
"""

from typing import Dict, List, Optional

import numpy as np
import pandas as pd

# Designed genes: (condition, cluster) -> raw count for every cell in that group.
# Unlisted groups are 0.
DESIGNED_GENES: Dict[str, Dict[tuple, float]] = {
    # Only treated cluster 1 expresses: HHI 1, induced in cluster 1
    "SPECIFIC": {("treated", "1"): 9.0},
    # Even across clusters, induced equally everywhere: HHI 1/3, tie
    "BROAD": {
        **{("treated", c): 4.0 for c in ("0", "1", "2")},
        **{("control", c): 1.0 for c in ("0", "1", "2")},
    },
    # Never expressed: undefined score, no induction
    "SILENT": {},
    # Repressed by treatment: no induction evidence
    "DOWN": {
        **{("treated", c): 1.0 for c in ("0", "1", "2")},
        **{("control", c): 4.0 for c in ("0", "1", "2")},
    },
    # Induced in cluster 2 but left out of the category table
    "UNCAT": {("treated", "2"): 9.0},
}

# Gene expressed by a single treated cell of cluster 0 (pct 0.05, not > 0.05)
RARE_GENE = "RARE"
RARE_COUNT = 99.0


def create_condition_adata(
    n_cells_per_group: int = 20,
    clusters: Optional[List[str]] = None,
    conditions: Optional[List[str]] = None,
    n_background: int = 0,
    control_only_cluster: Optional[str] = None,
    sparse: bool = False,
    seed: int = 42,
) -> "AnnData":
    """Create a log1p-normalized two-condition AnnData.

    Parameters
    ----------
    n_cells_per_group : int
        Cells per (cluster, condition) group
    clusters : List[str], optional
        Cluster ids (default "0", "1", "2")
    conditions : List[str], optional
        Condition labels (default "control", "treated")
    n_background : int
        Extra random Poisson genes named Gene_<i>
    control_only_cluster : str, optional
        Adds a cluster with control cells only (no treated cells)
    sparse : bool
        Store X as a CSR matrix
    seed : int
        Random seed for reproducibility

    Returns
    -------
    AnnData
        Cells x genes, obs columns "cluster" and "condition"
    """
    import anndata as ad
    from scipy import sparse as sp

    clusters = clusters or ["0", "1", "2"]
    conditions = conditions or ["control", "treated"]
    rng = np.random.default_rng(seed)

    groups = [(cond, c) for c in clusters for cond in conditions]
    if control_only_cluster is not None:
        groups.append((conditions[0], control_only_cluster))

    cell_condition: List[str] = []
    cell_cluster: List[str] = []
    for cond, c in groups:
        cell_condition.extend([cond] * n_cells_per_group)
        cell_cluster.extend([c] * n_cells_per_group)
    n_cells = len(cell_cluster)

    genes = list(DESIGNED_GENES) + [RARE_GENE] + [f"Gene_{i}" for i in range(n_background)]
    counts = np.zeros((n_cells, len(genes)))

    cell_condition_arr = np.asarray(cell_condition)
    cell_cluster_arr = np.asarray(cell_cluster)
    for j, gene in enumerate(DESIGNED_GENES):
        for (cond, c), value in DESIGNED_GENES[gene].items():
            mask = (cell_condition_arr == cond) & (cell_cluster_arr == c)
            counts[mask, j] = value

    rare_col = genes.index(RARE_GENE)
    rare_rows = np.flatnonzero((cell_condition_arr == "treated") & (cell_cluster_arr == "0"))
    if len(rare_rows):
        counts[rare_rows[0], rare_col] = RARE_COUNT

    if n_background:
        start = len(DESIGNED_GENES) + 1
        counts[:, start:] = rng.poisson(1.0, size=(n_cells, n_background))

    X = np.log1p(counts).astype(np.float64)
    if sparse:
        X = sp.csr_matrix(X)

    obs = pd.DataFrame({
        "cluster": pd.Categorical(cell_cluster),
        "condition": pd.Categorical(cell_condition),
    })
    obs.index = pd.Index([f"cell_{i}" for i in range(n_cells)], name="cell_id")
    var = pd.DataFrame(index=pd.Index(genes, name="gene"))

    return ad.AnnData(X=X, obs=obs, var=var)


def create_category_groups() -> Dict[str, List[str]]:
    """Category groups covering every designed gene except UNCAT."""
    return {
        "interferon": ["SPECIFIC", "BROAD"],
        "housekeeping": ["SILENT", "DOWN", RARE_GENE],
    }


def create_category_table() -> pd.DataFrame:
    """Two-column gene/category table matching create_category_groups."""
    rows = [
        {"gene": gene, "category": label}
        for label, genes in create_category_groups().items()
        for gene in genes
    ]
    return pd.DataFrame(rows)
