"""Core computational modules for gene-concentration.

This package contains the analysis engines:
- store: Expression store abstraction over AnnData
- concentration: Per-cluster aggregation and concentration (HHI) scoring
- induction: Per-cluster differential expression and max-induction selection
- summary: Category lookup, joining, export and figures
- validation: Error taxonomy shared by all engines
"""
