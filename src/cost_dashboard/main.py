"""
Main CLI interface for the cloud cost dashboard.

Provides command-line access to the reconciled dashboard view, live push
updates, range filtering, the cost calculator and cost/usage editing.
"""

import asyncio
import json
import logging
import sys

import click
from pydantic import ValidationError

from .api.client import DashboardAPIClient, DashboardAPIError
from .api.models import EstimateResult, EstimatorInputs, SliceName
from .config.settings import get_config, reload_config
from .dashboard.core import CostDashboard
from .dashboard.edit_buffer import EditBufferController, EditBufferError
from .dashboard.estimator import estimate_monthly_cost, format_cost
from .dashboard.render import OutputFormat, render_slice, render_view
from .dashboard.validation import InvalidDateRangeError
from .utils.http_client import HTTPClient

logging.basicConfig(
    level=logging.INFO, format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger(__name__)


def setup_logging(verbose: bool = False, level: str = "INFO"):
    """Configure logging based on verbosity settings."""
    logging.getLogger().setLevel(logging.DEBUG if verbose else level)

    for logger_name in ["httpx", "httpcore", "websockets"]:
        logging.getLogger(logger_name).setLevel(logging.INFO if verbose else logging.WARNING)


def _echo_notice(level: str, title: str, description: str | None = None):
    text = f"{title}: {description}" if description else title
    click.secho(text, fg="green" if level == "success" else "red", err=level != "success")


@click.group()
@click.option("--config", "-c", "config_file", help="Path to configuration file")
@click.option("--base-url", help="Backend base URL (overrides api.base_url)")
@click.option("--verbose", "-v", is_flag=True, help="Enable verbose logging and debug output")
@click.pass_context
def cli(ctx, config_file, base_url, verbose):
    """Cloud Cost Dashboard - cost trends, usage and resources from the cost backend."""
    ctx.ensure_object(dict)

    try:
        config = reload_config(config_file) if config_file else get_config()
        config.override_from_cli({"base_url": base_url})
    except Exception as e:
        click.echo(f"Error loading configuration: {e}", err=True)
        sys.exit(1)

    setup_logging(verbose, config.log_level)
    ctx.obj["config"] = config
    ctx.obj["verbose"] = verbose


@cli.command()
@click.option(
    "--format",
    "output_format",
    type=click.Choice(["plain", "colored", "json"]),
    default="colored",
    help="Output format",
)
@click.pass_context
def show(ctx, output_format):
    """Load the dashboard once and print it."""

    async def _show():
        async with CostDashboard(ctx.obj["config"], live=False) as dashboard:
            report = await dashboard.wait_until_loaded()
            return dashboard.view, report

    view, report = asyncio.run(_show())
    click.echo(render_view(view, OutputFormat(output_format)))
    if not report.succeeded:
        sys.exit(1)


@cli.command()
@click.option("--duration", type=float, default=None, help="Stop after this many seconds")
@click.option("--no-color", is_flag=True, help="Disable colored output")
@click.pass_context
def watch(ctx, duration, no_color):
    """Load the dashboard and print each update pushed by the backend."""
    use_colors = not no_color

    def _on_change(changed, view):
        if changed is None:
            fmt = OutputFormat.COLORED if use_colors else OutputFormat.PLAIN
            click.echo(render_view(view, fmt))
        else:
            click.echo(render_slice(view, changed, use_colors))
        click.echo("")

    async def _watch():
        async with CostDashboard(ctx.obj["config"]) as dashboard:
            dashboard.subscribe(_on_change)
            report = await dashboard.wait_until_loaded()
            if not report.succeeded:
                return False
            if duration is not None:
                await asyncio.sleep(duration)
            else:
                await asyncio.Event().wait()
        return True

    try:
        ok = asyncio.run(_watch())
    except KeyboardInterrupt:
        click.echo("\nDashboard stopped by user")
        return
    if not ok:
        sys.exit(1)


@cli.command(name="filter")
@click.option("--start", "start_date", type=click.DateTime(formats=["%Y-%m-%d"]), required=True)
@click.option("--end", "end_date", type=click.DateTime(formats=["%Y-%m-%d"]), required=True)
@click.option("--no-color", is_flag=True, help="Disable colored output")
@click.pass_context
def filter_costs(ctx, start_date, end_date, no_color):
    """Reload the monthly cost series for a date range."""

    async def _filter():
        async with CostDashboard(ctx.obj["config"], live=False) as dashboard:
            report = await dashboard.wait_until_loaded()
            if not report.succeeded:
                return dashboard.view, False
            applied = await dashboard.filter(start_date, end_date)
            return dashboard.view, applied

    try:
        view, applied = asyncio.run(_filter())
    except InvalidDateRangeError as e:
        click.echo(f"Invalid date range: {e}", err=True)
        sys.exit(2)

    if view.has_error:
        click.echo(render_view(view), err=True)
        sys.exit(1)
    if not applied:
        click.echo("Range filter failed, showing unfiltered costs", err=True)
    click.echo(render_slice(view, SliceName.CLOUD_COSTS, not no_color))


@cli.command()
@click.option("--instances", type=float, default=1, show_default=True, help="Instance count")
@click.option("--hours", type=float, default=24, show_default=True, help="Hours per day")
@click.option("--days", type=float, default=30, show_default=True, help="Days per month")
@click.option("--cost-per-hour", type=float, default=0.1, show_default=True, help="Cost per hour ($)")
@click.pass_context
def estimate(ctx, instances, hours, days, cost_per_hour):
    """Estimate a monthly cost with the backend calculator."""
    config = ctx.obj["config"]
    inputs = EstimatorInputs(
        instance_count=instances,
        hours_per_day=hours,
        days_per_month=days,
        cost_per_hour=cost_per_hour,
    )

    client = HTTPClient(config.base_url, timeout=config.timeout)
    try:
        result = EstimateResult.model_validate(client.post("/estimate-cost", inputs.to_payload()))
    except ValidationError as e:
        click.echo(f"Error estimating cost: malformed payload ({e.error_count()} errors)", err=True)
        sys.exit(1)
    except DashboardAPIError as e:
        click.echo(f"Error estimating cost: {e}", err=True)
        sys.exit(1)
    finally:
        client.close()

    click.echo(f"Estimated Monthly Cost: ${format_cost(result.estimated_monthly_cost)}")
    local = estimate_monthly_cost(inputs)
    if format_cost(local) != format_cost(result.estimated_monthly_cost):
        click.echo(f"Local formula gives ${format_cost(local)}", err=True)


def _run_edit(config, slice_name: SliceName, source, edits) -> bool:
    async def _edit():
        async with DashboardAPIClient(config.base_url, timeout=config.timeout) as client:
            if source is not None:
                snapshot = json.load(source)
            elif slice_name is SliceName.CLOUD_COSTS:
                snapshot = await client.get_cloud_costs()
            else:
                snapshot = await client.get_service_usage()

            controller = EditBufferController(client, slice_name, notify=_echo_notice)
            controller.begin_edit(snapshot)
            for index, field, value in edits:
                controller.set_field(index, field, value)
            result = await controller.commit()
            return result.success

    try:
        return asyncio.run(_edit())
    except (DashboardAPIError, EditBufferError, ValueError) as e:
        click.echo(f"Error: {e}", err=True)
        return False


_SET_OPTION = click.option(
    "--set",
    "edits",
    type=(int, str, str),
    multiple=True,
    metavar="INDEX FIELD VALUE",
    help="Change one field before committing (repeatable)",
)


@cli.command(name="update-costs")
@click.option("--file", "source", type=click.File("r"), help="JSON list of {month, cost}")
@_SET_OPTION
@click.pass_context
def update_costs(ctx, source, edits):
    """Commit monthly cloud costs (fields: month, cost)."""
    if not _run_edit(ctx.obj["config"], SliceName.CLOUD_COSTS, source, edits):
        sys.exit(1)


@cli.command(name="update-usage")
@click.option("--file", "source", type=click.File("r"), help="JSON {labels, data}")
@_SET_OPTION
@click.pass_context
def update_usage(ctx, source, edits):
    """Commit the service usage breakdown (fields: labels, data)."""
    if not _run_edit(ctx.obj["config"], SliceName.SERVICE_USAGE, source, edits):
        sys.exit(1)


if __name__ == "__main__":
    cli()
