"""Command-line interface for gene-concentration.

Example Usage
-------------
    # From command line:
    gene-concentration --help
    gene-concentration run --input data.h5ad --categories categories.csv --out out/
    gene-concentration score --input data.h5ad --condition treated --out out/
"""

from .main import cli, main

__all__ = [
    "cli",
    "main",
]
