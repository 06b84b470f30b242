"""
Main CLI interface for AWS cost trend reporting.

Collects Cost Explorer data for one or more AWS profiles and prints trend,
service consumption and cross-account reports, with optional JSON, CSV and
chart output.
"""

import asyncio
import json
import logging
import sys
from datetime import date, timedelta
from functools import partial

import click
from pydantic import ValidationError

from .analysis.pipeline import CostTrendPipeline, ReportOptions
from .config.settings import (
    CostTrendConfig,
    build_settings,
    get_config,
    load_profile_account_map,
)
from .export.csv_export import CSVReportExporter, ExportResult
from .export.json_export import render_json
from .providers.aws import create_profile_clients
from .providers.base import ConfigurationError, GroupingOptions, TagFilter, TimeGranularity
from .utils.auth import discover_profiles
from .visualization.charts import save_all_charts
from .visualization.tables import ReportTableRenderer

# Set up logging
logging.basicConfig(
    level=logging.INFO, format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger(__name__)


def setup_logging(verbose: bool = False):
    """Configure logging based on verbosity settings."""
    # Default is quiet (only show results)
    if verbose:
        logging.getLogger().setLevel(logging.DEBUG)
    else:
        logging.getLogger().setLevel(logging.ERROR)

    for logger_name in ["boto3", "botocore", "urllib3", "kaleido", "choreographer"]:
        if verbose:
            logging.getLogger(logger_name).setLevel(logging.INFO)
        else:
            logging.getLogger(logger_name).setLevel(logging.ERROR)


def _split_csv_option(value: str | None) -> list[str]:
    if not value:
        return []
    return [item.strip() for item in value.split(",") if item.strip()]


@click.group()
@click.option("--config", "-c", "config_file", help="Path to an extra YAML configuration file")
@click.option("--verbose", "-v", is_flag=True, help="Enable verbose logging and debug output")
@click.pass_context
def cli(ctx, config_file, verbose):
    """AWS Cost Trend - Month-over-month cost reports across AWS profiles."""
    setup_logging(verbose)

    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose

    try:
        if config_file:
            ctx.obj["config"] = CostTrendConfig(build_settings([config_file]))
        else:
            ctx.obj["config"] = get_config()
    except ConfigurationError as e:
        click.echo(f"Error loading configuration: {e}", err=True)
        sys.exit(1)


def _build_options(
    config: CostTrendConfig,
    start_date,
    end_date,
    granularity: str | None,
    account_id: str | None,
    tag_key: str | None,
    tag_value: str | None,
) -> ReportOptions:
    """Turn raw CLI values into validated report options."""
    if tag_value and not tag_key:
        raise click.UsageError("--tag-value requires --tag-key")

    end = end_date.date() if end_date else date.today()
    start = start_date.date() if start_date else end - timedelta(days=config.recent_window_days)
    account_ids = _split_csv_option(account_id)
    tag_filter = TagFilter(key=tag_key, value=tag_value) if tag_key and tag_value else None

    return ReportOptions(
        start_date=start,
        end_date=end,
        granularity=TimeGranularity(granularity or config.default_granularity),
        account_ids=frozenset(account_ids) if account_ids else None,
        grouping=GroupingOptions.from_tag_options(tag_key, tag_value),
        tag_filter=tag_filter,
        recent_window_days=config.recent_window_days,
    )


def _warn_about_range(options: ReportOptions):
    window_start = options.end_date - timedelta(days=options.recent_window_days)
    if options.start_date < window_start:
        click.echo(
            f"Warning: Start date {options.start_date} is more than "
            f"{options.recent_window_days} days before end date {options.end_date}. "
            f"The unified view and global summary only cover periods from {window_start}.",
            err=True,
        )
    if options.granularity != TimeGranularity.MONTHLY:
        click.echo(
            f"Warning: {options.granularity.value} granularity reports one period per "
            f"{'day' if options.granularity == TimeGranularity.DAILY else 'hour'}; "
            "cost trends read best with monthly granularity.",
            err=True,
        )


def _display_chart_results(report_set, chart_dir, chart_config, err: bool) -> bool:
    """Write charts and report each one; False if any write failed."""
    all_ok = True
    for result in save_all_charts(report_set.accounts, chart_dir, chart_config):
        if result.skipped:
            click.echo(
                f"Warning: No cost trend data available for profile {result.profile} "
                f"account {result.account_id}. Skipping chart generation.",
                err=True,
            )
        elif result.success:
            click.echo(f"Cost trend chart saved to {result.path}", err=err)
        else:
            all_ok = False
            click.echo(
                f"Failed to generate chart for profile {result.profile} "
                f"account {result.account_id}: {result.error_message}",
                err=True,
            )
    return all_ok


def _display_export_result(result: ExportResult, err: bool):
    if result.success:
        click.echo(f"Exported {result.description} to {result.path}", err=err)
    else:
        click.echo(f"Failed to export {result.path}: {result.error_message}", err=True)


@cli.command()
@click.option(
    "--start-date",
    type=click.DateTime(formats=["%Y-%m-%d"]),
    help="Start date for cost data (default: 180 days before the end date)",
)
@click.option(
    "--end-date",
    type=click.DateTime(formats=["%Y-%m-%d"]),
    help="End date for cost data (default: today)",
)
@click.option(
    "--granularity",
    type=click.Choice(["daily", "monthly", "hourly"]),
    help="Data granularity (default: monthly)",
)
@click.option("--account-id", help="Comma separated account IDs to include")
@click.option("--profiles", help="Comma separated AWS profiles (default: every configured profile)")
@click.option(
    "--profile-account-map",
    type=click.Path(dir_okay=False),
    help='JSON file mapping profiles to account IDs, e.g. {"prod": "123456789012"}',
)
@click.option("--tag-key", help="Group by this tag key, or filter on it with --tag-value")
@click.option("--tag-value", help="Only include costs tagged with --tag-key=<value>")
@click.option("--json", "json_output", is_flag=True, help="Print the report as JSON")
@click.option("--chart", is_flag=True, help="Write a PNG cost trend chart per account")
@click.option("--chart-dir", type=click.Path(file_okay=False), help="Directory for chart images")
@click.option("--csv", "csv_path", help="Base path for CSV exports")
@click.pass_context
def report(
    ctx,
    start_date,
    end_date,
    granularity,
    account_id,
    profiles,
    profile_account_map,
    tag_key,
    tag_value,
    json_output,
    chart,
    chart_dir,
    csv_path,
):
    """Retrieve cost data and display trend reports."""
    config = ctx.obj["config"]

    try:
        options = _build_options(
            config, start_date, end_date, granularity, account_id, tag_key, tag_value
        )
    except ValidationError as e:
        click.echo(f"Invalid report options: {e}", err=True)
        sys.exit(1)

    _warn_about_range(options)

    if (
        options.granularity == TimeGranularity.HOURLY
        and options.span_days > config.hourly_max_days
    ):
        click.echo(
            f"Warning: Hourly granularity is limited to {config.hourly_max_days} days. "
            "Please adjust the date range.",
            err=True,
        )
        return

    account_map = {}
    if profile_account_map:
        try:
            account_map = load_profile_account_map(profile_account_map)
        except ConfigurationError as e:
            click.echo(f"Error: {e}", err=True)
            sys.exit(1)

    profile_list = _split_csv_option(profiles) or discover_profiles()
    if not profile_list:
        click.echo("No AWS profiles found in ~/.aws/credentials or ~/.aws/config.", err=True)
        return

    def echo_err(message: str):
        click.echo(message, err=True)

    pipeline = CostTrendPipeline(
        options,
        partial(
            create_profile_clients,
            config=config.aws,
            account_map=account_map,
            reporter=echo_err,
        ),
        reporter=echo_err,
    )
    report_set = asyncio.run(pipeline.run(profile_list))

    if report_set.is_empty:
        click.echo("No cost data retrieved for any accounts across specified profiles.", err=True)
        return

    if json_output:
        click.echo(render_json(report_set))
    else:
        renderer = ReportTableRenderer(
            max_columns=config.max_columns,
            unified_reserved_columns=config.unified_reserved_columns,
            service_reserved_columns=config.service_reserved_columns,
        )
        click.echo(renderer.render(report_set))

    outputs_ok = True
    if chart:
        outputs_ok &= _display_chart_results(
            report_set, chart_dir or config.chart.get("directory", "."), config.chart, json_output
        )

    if csv_path:
        exporter = CSVReportExporter(csv_path, config.csv.get("service_periods", "recent"))
        results = exporter.export(
            report_set, on_result=partial(_display_export_result, err=json_output)
        )
        outputs_ok &= all(result.success for result in results)

    if not outputs_ok:
        sys.exit(1)


@cli.command()
def profiles():
    """List the AWS profiles available for reporting."""
    found = discover_profiles()
    if not found:
        click.echo("No AWS profiles found in ~/.aws/credentials or ~/.aws/config.")
        return
    for profile in found:
        click.echo(profile)


@cli.command()
@click.option("--json", "json_output", is_flag=True, help="Print the configuration as JSON")
@click.pass_context
def config_info(ctx, json_output):
    """Display current configuration information."""
    config = ctx.obj["config"]

    if json_output:
        click.echo(json.dumps(config.as_dict(), indent=2, default=str))
        return

    click.echo("AWS Cost Trend Configuration")
    click.echo("=" * 40)
    for section, values in config.as_dict().items():
        click.echo(f"\n{section.capitalize()}:")
        for key, value in values.items():
            click.echo(f"  {key}: {value}")


@cli.command()
def version():
    """Display version information."""
    from . import __version__

    click.echo(f"AWS Cost Trend v{__version__}")
    click.echo("Month-over-month cost reports across AWS profiles and accounts")


if __name__ == "__main__":
    cli()
