"""
Command-line interface for loopflow
"""

import sys
import traceback
from pathlib import Path
from typing import Optional

import click
import pandas as pd

from . import __version__, get_info
from .config import COUNT_MODES, Config, get_default_config, load_config, save_config
from .config import validate_config as validate_config_func
from .core import LoopCommunityAnalysis
from .genomics import load_loops, summarize_loops
from .stats import METHOD_ALIASES, adjust_pvalues
from .utils import setup_logging, validate_environment


class CLIContext:
    def __init__(self):
        self.config_file: Optional[Path] = None
        self.config: Optional[Config] = None
        self.verbose: bool = False
        self.quiet: bool = False


def _fail(ctx: click.Context, message: str, error: Exception) -> None:
    click.echo(f"{message}: {error}", err=True)
    if ctx.obj is not None and ctx.obj.verbose:
        traceback.print_exc()
    sys.exit(1)


@click.group()
@click.version_option(__version__)
@click.option(
    "--config", "-c", type=click.Path(exists=True), help="Configuration file path"
)
@click.option("--verbose", "-v", is_flag=True, help="Enable verbose logging")
@click.option("--quiet", "-q", is_flag=True, help="Enable quiet mode (minimal output)")
@click.pass_context
def main(ctx, config, verbose, quiet):
    """
    loopflow: anchor-overlap communities of chromatin loops

    Tag loop anchors with promoter / enhancer overlaps, group loops whose
    anchors overlap into communities and summarise every community.
    """
    cli_ctx = CLIContext()
    cli_ctx.verbose = verbose
    cli_ctx.quiet = quiet

    log_level = "DEBUG" if verbose else "WARNING" if quiet else "INFO"
    setup_logging(level=log_level, use_colors=sys.stdout.isatty())

    if config:
        cli_ctx.config_file = Path(config)
        try:
            cli_ctx.config = load_config(cli_ctx.config_file)
        except (OSError, ValueError, TypeError) as e:
            click.echo(f"Could not load configuration: {e}", err=True)
            sys.exit(1)

    ctx.obj = cli_ctx


@main.command()
def info():
    """Show loopflow package information"""

    info_data = get_info()

    click.echo("=" * 50)
    click.echo(f"loopflow v{info_data['version']}")
    click.echo("=" * 50)
    click.echo(f"Description: {info_data['description']}")
    click.echo(f"Python version: {info_data['python_version']}")
    click.echo()

    click.echo("Available modules:")
    for module in info_data["modules"]:
        click.echo(f"  - {module}")

    click.echo()
    issues = validate_environment()
    if issues:
        click.echo("Environment issues:")
        for issue in issues:
            click.echo(f"  ✗ {issue}")
    else:
        click.echo("✓ All required packages available")


@main.command()
@click.argument("output_file", type=click.Path())
@click.option("--force", is_flag=True, help="Overwrite an existing file")
def init_config(output_file, force):
    """Write a default configuration file (YAML, or JSON for a .json suffix)"""

    output_path = Path(output_file)

    if output_path.exists() and not force:
        if not click.confirm(f"File {output_path} already exists. Overwrite?"):
            click.echo("Configuration initialization cancelled.")
            return

    save_config(get_default_config(), output_path)
    click.echo(f"Configuration file created: {output_path}")


@main.command()
@click.argument("config_file", type=click.Path(exists=True))
@click.pass_context
def validate_config(ctx, config_file):
    """Validate a loopflow configuration file"""

    try:
        config = load_config(config_file)
    except (OSError, ValueError, TypeError) as e:
        _fail(ctx, "Configuration validation failed", e)

    click.echo(f"Configuration loaded successfully: {config_file}")

    issues = validate_config_func(config)
    if not issues:
        click.echo("✓ Configuration is valid")
        return

    click.echo("Configuration issues found:")
    for issue in issues:
        click.echo(f"  ✗ {issue}")
    sys.exit(1)


@main.command()
@click.argument("loops_file", type=click.Path(exists=True))
@click.option("--promoters", type=click.Path(exists=True), help="Promoter BED file")
@click.option(
    "--genes",
    type=click.Path(exists=True),
    help="Gene BED6 file; promoters are built around each TSS instead of --promoters",
)
@click.option("--enhancers", required=True, type=click.Path(exists=True), help="Enhancer BED file")
@click.option("--output", "-o", type=click.Path(), help="Output directory")
@click.option("--distinguished-status", help="Loop status that marks a community")
@click.option(
    "--include-singletons/--exclude-singletons",
    default=None,
    help="Report loops without overlaps as one-loop communities",
)
@click.option("--count-mode", type=click.Choice(COUNT_MODES), help="Anchor counting mode")
@click.pass_context
def run(
    ctx,
    loops_file,
    promoters,
    genes,
    enhancers,
    output,
    distinguished_status,
    include_singletons,
    count_mode,
):
    """Run the loop community analysis on LOOPS_FILE"""

    cli_ctx = ctx.obj
    config = cli_ctx.config or get_default_config()

    if output:
        config.output_dir = str(output)
    if distinguished_status:
        config.communities["distinguished_status"] = distinguished_status
    if include_singletons is not None:
        config.communities["include_singletons"] = include_singletons
    if count_mode:
        config.communities["count_mode"] = count_mode

    if (promoters is None) == (genes is None):
        click.echo("Error: give exactly one of --promoters and --genes", err=True)
        sys.exit(1)

    if not config.output_dir:
        click.echo("Error: no output directory. Use --output or set output_dir", err=True)
        sys.exit(1)

    try:
        analysis = LoopCommunityAnalysis(config)
        result = analysis.run_from_files(
            loops_file, promoters, enhancers, genes_file=genes
        )
    except Exception as e:
        _fail(ctx, "Analysis failed", e)

    summary = result.summary
    click.echo(f"Loops: {len(result.loops)}")
    click.echo(f"Edges: {result.graph.n_edges}")
    click.echo(f"Communities: {len(result.partition)}")
    if len(summary):
        click.echo(
            f"Communities with '{config.communities['distinguished_status']}' loops: "
            f"{int(summary['has_distinguished_status'].sum())}"
        )
        ratio = result.mean_enhancer_to_promoter_ratio
        click.echo(
            "Mean enhancer/promoter ratio: "
            + ("NA" if ratio is None else f"{ratio:.3f}")
        )
    click.echo(f"Results saved to: {config.output_dir}")
    click.echo(f"Total execution time: {result.execution_times.get('total', 0):.2f} seconds")


@main.group()
def utils():
    """Utility commands"""


@utils.command()
@click.argument("bedpe_file", type=click.Path(exists=True))
@click.option("--status-column", default="status", show_default=True)
@click.pass_context
def validate_loops(ctx, bedpe_file, status_column):
    """Validate a BEDPE loops file"""

    try:
        loops = load_loops(bedpe_file, status_column=status_column)
    except Exception as e:
        _fail(ctx, "Validation failed", e)

    click.echo(f"Validating loops file: {bedpe_file}")
    for key, value in summarize_loops(loops).items():
        click.echo(f"  {key}: {value}")


@utils.command()
@click.argument("table_file", type=click.Path(exists=True))
@click.option("--column", default="p_value", show_default=True, help="P-value column")
@click.option(
    "--method",
    default="fdr_bh",
    show_default=True,
    help=f"Correction method (statsmodels name or one of {sorted(METHOD_ALIASES)})",
)
@click.option("--alpha", default=0.05, show_default=True, type=float)
@click.option("--output", "-o", type=click.Path(), help="Output TSV (default: stdout)")
@click.pass_context
def adjust(ctx, table_file, column, method, alpha, output):
    """Add p_adjusted / significant columns to a tab-separated table"""

    try:
        table = pd.read_csv(table_file, sep="\t")
        if column not in table.columns:
            raise KeyError(f"column '{column}' not found")
        reject, adjusted = adjust_pvalues(table[column].to_numpy(), method, alpha)
    except Exception as e:
        _fail(ctx, "Adjustment failed", e)

    table["p_adjusted"] = adjusted
    table["significant"] = reject

    if output:
        table.to_csv(output, sep="\t", index=False)
        click.echo(f"{int(reject.sum())} significant of {len(table)}; written to {output}")
    else:
        click.echo(table.to_csv(sep="\t", index=False), nl=False)


if __name__ == "__main__":
    main()
