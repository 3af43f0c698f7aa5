"""Command-line interface for gene-concentration.

Provides CLI commands for scoring cluster concentration of induced genes.
"""

import logging
from pathlib import Path
from typing import Any, Dict, Optional

import click

from gene_concentration import __version__

LOG_FILENAME = "gene_concentration.log"


def setup_logging(
    log_dir: Path,
    name: str,
    verbose: bool = False,
    debug: bool = False,
) -> logging.Logger:
    """File + console logger for one command."""
    from gene_concentration.io.logging import get_logger

    level = logging.DEBUG if debug else logging.INFO
    console_level = logging.DEBUG if debug else (logging.INFO if verbose else logging.WARNING)
    logger, log_path = get_logger(
        name=name,
        log_path=log_dir / LOG_FILENAME,
        level=level,
        console_level=console_level,
    )
    logger.info("Log file: %s", log_path)
    return logger


def build_config(config_path: Optional[str], overrides: Dict[str, Any]):
    """Load YAML config (or defaults) and apply non-None command-line overrides."""
    from gene_concentration.core.summary import SummaryConfig

    base = SummaryConfig.from_yaml(Path(config_path)).to_dict() if config_path else {}
    induction = dict(base.get("induction") or {})
    for key in (
        "prevalence_threshold",
        "fold_change_threshold",
        "pseudocount",
        "method",
        "correction_method",
        "n_workers",
    ):
        value = overrides.pop(key, None)
        if value is not None:
            induction[key] = value
    base["induction"] = induction
    base.update({k: v for k, v in overrides.items() if v is not None})
    return SummaryConfig.from_dict(base)


def read_adata(path: str, logger: logging.Logger):
    """Read an .h5ad file."""
    import scanpy as sc

    logger.info("Loading AnnData from %s", path)
    adata = sc.read_h5ad(path)
    logger.info("  Loaded %s cells, %d genes", f"{adata.n_obs:,}", adata.n_vars)
    return adata


@click.group()
@click.version_option(version=__version__, prog_name="gene-concentration")
@click.option("-v", "--verbose", is_flag=True, help="Echo INFO logs to the console")
@click.option("--debug", is_flag=True, help="Enable debug output")
@click.pass_context
def cli(ctx: click.Context, verbose: bool, debug: bool) -> None:
    """gene-concentration: cluster concentration of induced genes.

    Scores how concentrated each gene's expression is across clusters
    (HHI), finds the cluster of maximal induction between two
    conditions, and joins both with gene categories.

    Examples:

        # Full run with categories
        gene-concentration run -i data.h5ad -k categories.csv -o out/ \\
            --condition-a STIM --condition-b CTRL

        # Concentration scores only
        gene-concentration score -i data.h5ad --condition STIM -o out/
    """
    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose
    ctx.obj["debug"] = debug


@cli.command()
@click.option("--input", "-i", "input_path", required=True, type=click.Path(exists=True),
              help="Input AnnData file (.h5ad) with log-normalized values")
@click.option("--categories", "-k", "categories_path", type=click.Path(exists=True),
              help="Gene -> category table (CSV/TSV) or YAML groups")
@click.option("--out", "-o", "output_path", required=True, type=click.Path(),
              help="Output directory")
@click.option("--config", "-c", "config_path", type=click.Path(exists=True),
              help="Run configuration file (YAML)")
@click.option("--condition-a", help="Induced (treatment) condition")
@click.option("--condition-b", help="Reference (control) condition")
@click.option("--cluster-key", help="adata.obs column with cluster ids")
@click.option("--condition-key", help="adata.obs column with condition labels")
@click.option("--layer", help="Layer with log-normalized values (default: X)")
@click.option("--genes-file", type=click.Path(exists=True),
              help="Restrict the run to genes listed in this file")
@click.option("--prevalence-threshold", type=float, help="Minimum pct expressing (exclusive)")
@click.option("--fold-change-threshold", type=float, help="Minimum log2 fold-change (exclusive)")
@click.option("--pseudocount", type=float, help="Pseudocount for log2 fold-change")
@click.option("--method", type=click.Choice(["wilcoxon", "t-test"]), help="DE test")
@click.option("--correction", "correction_method",
              type=click.Choice(["none", "bonferroni", "fdr_bh", "holm"]),
              help="Per-cluster multiple testing correction (informational)")
@click.option("--n-workers", type=int, help="Clusters tested in parallel")
@click.option("--skip-viz", is_flag=True, help="Skip the concentration figure")
@click.option("--dpi", type=int, default=200, show_default=True, help="Figure DPI")
@click.pass_context
def run(
    ctx: click.Context,
    input_path: str,
    categories_path: Optional[str],
    output_path: str,
    config_path: Optional[str],
    genes_file: Optional[str],
    skip_viz: bool,
    dpi: int,
    **overrides: Any,
) -> None:
    """Run the full scoring-and-join pipeline."""
    out_dir = Path(output_path)
    out_dir.mkdir(parents=True, exist_ok=True)
    logger = setup_logging(out_dir, "gene_concentration.run", ctx.obj["verbose"], ctx.obj["debug"])

    from gene_concentration.core.summary import (
        CategoryAssignment,
        SummaryEngine,
        export_all,
        plot_concentration_by_category,
    )
    from gene_concentration.core.validation import MalformedInputError
    from gene_concentration.io import load_gene_list, log_yaml, run_record

    if genes_file:
        overrides["genes"] = load_gene_list(genes_file)
    try:
        config = build_config(config_path, overrides)
    except ValueError as e:
        logger.error("Invalid configuration: %s", e)
        raise click.BadParameter(str(e)) from e

    categories_source = categories_path or config.category_table
    if not categories_source:
        raise click.UsageError("No category table: pass --categories or set category_table")

    try:
        categories = CategoryAssignment.load(
            categories_source,
            gene_column=config.category_gene_column,
            category_column=config.category_column,
        )
        adata = read_adata(input_path, logger)
        result = SummaryEngine(config, logger=logger).execute_adata(adata, categories)
    except MalformedInputError as e:
        logger.error("Malformed input, no output written:\n%s", e)
        click.echo(str(e), err=True)
        ctx.exit(1)

    paths = export_all(result, out_dir)
    if not skip_viz:
        figure = plot_concentration_by_category(
            result.summary,
            out_dir / "concentration_by_category.png",
            n_clusters=result.provenance["n_clusters"],
            dpi=dpi,
        )
        if figure is not None:
            paths["figure"] = figure

    log_yaml(
        out_dir / LOG_FILENAME,
        run_record(result.provenance, paths),
        logger=logger,
    )
    click.echo(f"{len(result.summary)} genes in summary -> {paths['summary']}")


@cli.command()
@click.option("--input", "-i", "input_path", required=True, type=click.Path(exists=True),
              help="Input AnnData file (.h5ad) with log-normalized values")
@click.option("--out", "-o", "output_path", required=True, type=click.Path(),
              help="Output directory")
@click.option("--condition", required=True, help="Condition whose cells are aggregated")
@click.option("--cluster-key", default="cluster", show_default=True,
              help="adata.obs column with cluster ids")
@click.option("--condition-key", default="condition", show_default=True,
              help="adata.obs column with condition labels")
@click.option("--layer", default=None, help="Layer with log-normalized values (default: X)")
@click.option("--genes-file", type=click.Path(exists=True),
              help="Restrict scoring to genes listed in this file")
@click.pass_context
def score(
    ctx: click.Context,
    input_path: str,
    output_path: str,
    condition: str,
    cluster_key: str,
    condition_key: str,
    layer: Optional[str],
    genes_file: Optional[str],
) -> None:
    """Compute concentration scores only."""
    out_dir = Path(output_path)
    out_dir.mkdir(parents=True, exist_ok=True)
    logger = setup_logging(out_dir, "gene_concentration.score", ctx.obj["verbose"], ctx.obj["debug"])

    from gene_concentration.core.concentration import ConcentrationEngine
    from gene_concentration.core.store import AnnDataExpressionStore
    from gene_concentration.core.validation import MalformedInputError
    from gene_concentration.io import load_gene_list, write_dataframe

    try:
        adata = read_adata(input_path, logger)
        store = AnnDataExpressionStore(adata, cluster_key, condition_key, layer=layer)
        genes = load_gene_list(genes_file) if genes_file else store.genes
        clusters = store.clusters
        store.validate(genes, clusters, [condition])
        result = ConcentrationEngine(logger=logger).execute(store, genes, clusters, condition)
    except MalformedInputError as e:
        logger.error("Malformed input, no output written:\n%s", e)
        click.echo(str(e), err=True)
        ctx.exit(1)

    path = write_dataframe(result.table, out_dir / "concentration_scores.csv")
    click.echo(f"{result.n_scored} genes scored ({len(result.undefined_genes)} undefined) -> {path}")


def main() -> None:
    """Main entry point."""
    cli(obj={})


if __name__ == "__main__":
    main()
