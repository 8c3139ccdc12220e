"""
regionstats CLI entrypoint: runs NDVI / EVI / LST region statistics over a
range of years, or just prints the years a run would process.
"""

import sys
from functools import wraps

import click  # type: ignore
from click import echo

from regionstats.core.config import ConfigManager
from regionstats.core.logger import Logger
from regionstats.core.pipeline import RegionStatsPipeline
from regionstats.core.run_config import INDEX_KEYS, YEAR_SOURCES, RunConfig
from regionstats.ingestion.lst import SENSORS

logger = Logger.get_logger(__name__)


def selection_options(func):
    """Options shared by every command that selects a region and a period."""

    options = [
        click.argument("index", type=click.Choice(list(INDEX_KEYS)), required=False),
        click.option(
            "--config",
            "config_path",
            type=click.Path(exists=True),
            default=None,
            help="YAML, TOML or JSON run configuration.",
        ),
        click.option(
            "--roi", "-r", default=None, help="ROI asset id or local vector file."
        ),
        click.option("--start", "-s", default=None, help="Start date (YYYY-MM-DD)."),
        click.option(
            "--end", "-e", default=None, help="End date, exclusive (YYYY-MM-DD)."
        ),
        click.option(
            "--month", "-m", default=None, help="Month 1-12, or 'none' for full year."
        ),
        click.option(
            "--years",
            "-y",
            default=None,
            help="Comma-separated years; omit to auto-detect.",
        ),
        click.option(
            "--year-source",
            type=click.Choice(list(YEAR_SOURCES)),
            default=None,
            help="How years are discovered when none are given.",
        ),
        click.option("--season-start", type=int, default=None, help="LST season start month."),
        click.option("--season-end", type=int, default=None, help="LST season end month."),
        click.option(
            "--sat",
            type=click.Choice(list(SENSORS)),
            default=None,
            help="Landsat token for LST retrieval.",
        ),
        click.option(
            "--use-ndvi/--no-use-ndvi",
            default=None,
            help="NDVI-based emissivity for LST retrieval.",
        ),
        click.option(
            "--collection", "-c", default=None, help="Earth Engine ImageCollection ID."
        ),
    ]
    for option in reversed(options):
        func = option(func)
    return func


def _build_config(config_path, **cli_values) -> RunConfig:
    overrides = {
        "index": cli_values.pop("index"),
        "roi": cli_values.pop("roi"),
        "start_date": cli_values.pop("start"),
        "end_date": cli_values.pop("end"),
        "month": cli_values.pop("month"),
        "years": cli_values.pop("years") or None,
        "year_source": cli_values.pop("year_source"),
        "season_start_month": cli_values.pop("season_start"),
        "season_end_month": cli_values.pop("season_end"),
        "sat": cli_values.pop("sat"),
        "use_ndvi": cli_values.pop("use_ndvi"),
        "collection_id": cli_values.pop("collection"),
    }
    overrides.update(cli_values)
    return RunConfig.from_sources(config_path, **overrides)


def handle_failures(name):
    """Log the traceback, print a one-line error and exit with status 1."""

    def decorator(func):
        @wraps(func)
        def wrapper(*args, **kwargs):
            try:
                return func(*args, **kwargs)
            # pylint: disable=broad-exception-caught
            except Exception as e:
                logger.error("%s command failed", name, exc_info=True)
                echo(f"❌  {name} failed: {e}", err=True)
                sys.exit(1)

        return wrapper

    return decorator


@click.group()
def cli():
    """regionstats: per-year NDVI / EVI / LST statistics on Earth Engine."""
    Logger.setup()


@cli.command()
@selection_options
@click.option("--sites", default=None, help="Optional point asset id or vector file.")
@click.option("--site-buffer", type=float, default=None, help="Site buffer in metres.")
@click.option(
    "--scale-reflectance/--raw-dn",
    default=None,
    help="Apply Collection 2 SR scale factors before index math.",
)
@click.option("--scale", type=int, default=None, help="Reduction scale (meters).")
@click.option("--max-pixels", type=float, default=None, help="Reduction pixel ceiling.")
@click.option("--export/--no-export", default=None, help="Stage Drive export tasks.")
@click.option(
    "--start-exports/--no-start-exports",
    default=None,
    help="Start the staged export tasks.",
)
@click.option("--export-folder", default=None, help="Drive folder for exports.")
@click.option(
    "--out-dir",
    "-o",
    type=click.Path(),
    default=None,
    help="Directory for CSV outputs and the HTML map.",
)
@click.option("--workers", "max_workers", type=int, default=None, help="Parallel years.")
@handle_failures("Run")
def run(config_path, **cli_values):
    """Compute per-year statistics for INDEX (ndvi, evi or lst)."""
    cfg = _build_config(config_path, **cli_values)
    result = RegionStatsPipeline(cfg, logger=logger).run()
    echo(
        f"✅  {result.index}: {len(result.results)} year(s) processed, "
        f"{len(result.skipped)} skipped"
    )
    if result.exports:
        state = "started" if cfg.start_exports else "staged"
        echo(f"   {len(result.exports)} export task(s) {state}")
    if cfg.out_dir:
        echo(f"   Outputs written under {cfg.out_dir}/")


@cli.command()
@selection_options
@handle_failures("Years")
def years(config_path, **cli_values):
    """Print the years a run would process."""
    cfg = _build_config(config_path, **cli_values)
    resolved = RegionStatsPipeline(cfg, logger=logger).resolve_years()
    echo(", ".join(str(y) for y in resolved) if resolved else "(no years)")


@cli.command(name="palettes")
def palettes():
    """Show the display stretch and palette used for each index."""
    manager = ConfigManager()
    for key in INDEX_KEYS:
        vis = manager.vis_params(key)
        echo(f"{key}: min={vis['min']} max={vis['max']} palette={','.join(vis['palette'])}")
