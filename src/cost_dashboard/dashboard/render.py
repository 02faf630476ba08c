"""
Text rendering of the reconciled view model.

Provides the chart-series projections of each slice and console output in
plain, colored and JSON formats for the CLI.
"""

import json
from enum import Enum

from ..api.models import SliceName, ViewModel
from .estimator import format_cost


class OutputFormat(Enum):
    """Supported output formats for the dashboard view."""

    PLAIN = "plain"
    COLORED = "colored"
    JSON = "json"


class Color:
    """ANSI color codes for terminal output."""

    RED = "\033[91m"
    GREEN = "\033[92m"
    CYAN = "\033[96m"
    BOLD = "\033[1m"
    END = "\033[0m"


SECTION_TITLES = {
    SliceName.CLOUD_COSTS: "Monthly Cost Trend",
    SliceName.SERVICE_USAGE: "Service Usage Breakdown",
    SliceName.DAILY_COSTS: "Daily Cost Variation",
    SliceName.RESOURCES: "Cloud Resource Tracker",
}


def cost_trend(view: ViewModel) -> tuple[list[str], list[float]]:
    """Labels and values of the monthly cost line chart."""
    return [sample.month for sample in view.cloud_costs], [sample.cost for sample in view.cloud_costs]


def usage_breakdown_rows(view: ViewModel) -> list[tuple[str, float]]:
    return list(zip(view.service_usage.labels, view.service_usage.data))


def daily_cost_rows(view: ViewModel) -> list[tuple[str, float]]:
    return list(zip(view.daily_costs.labels, view.daily_costs.data))


def resource_rows(view: ViewModel) -> list[tuple[str, str, float]]:
    return [(resource.name, resource.type, resource.cost) for resource in view.resources]


def total_resource_cost(view: ViewModel) -> str:
    """Total of the resource tracker, two decimals."""
    return format_cost(view.total_resource_cost)


def _heading(text: str, use_colors: bool) -> str:
    return f"{Color.BOLD}{Color.CYAN}{text}{Color.END}" if use_colors else text


def _pairs(rows: list[tuple[str, float]]) -> list[str]:
    if not rows:
        return ["  (no data)"]
    width = max(len(label) for label, _ in rows)
    return [f"  {label:<{width}}  {value:>12,.2f}" for label, value in rows]


def render_slice(view: ViewModel, name: SliceName, use_colors: bool = False) -> str:
    """Render one section of the dashboard."""
    name = SliceName(name)
    lines = [_heading(SECTION_TITLES[name], use_colors)]

    if name is SliceName.CLOUD_COSTS:
        labels, values = cost_trend(view)
        lines.extend(_pairs(list(zip(labels, values))))
    elif name is SliceName.SERVICE_USAGE:
        lines.extend(_pairs(usage_breakdown_rows(view)))
    elif name is SliceName.DAILY_COSTS:
        lines.extend(_pairs(daily_cost_rows(view)))
    else:
        rows = resource_rows(view)
        if rows:
            name_width = max(len("Resource Name"), *(len(row[0]) for row in rows))
            type_width = max(len("Type"), *(len(row[1]) for row in rows))
            lines.append(f"  {'Resource Name':<{name_width}}  {'Type':<{type_width}}  {'Cost ($)':>12}")
            for resource_name, resource_type, cost in rows:
                lines.append(f"  {resource_name:<{name_width}}  {resource_type:<{type_width}}  {cost:>12,.2f}")
        else:
            lines.append("  (no data)")
        total = f"Total Cost: ${total_resource_cost(view)}"
        lines.append(f"  {Color.BOLD}{total}{Color.END}" if use_colors else f"  {total}")

    return "\n".join(lines)


def view_to_dict(view: ViewModel) -> dict:
    data = view.model_dump(mode="json")
    data["total_resource_cost"] = round(view.total_resource_cost, 2)
    return data


def render_view(view: ViewModel, fmt: OutputFormat = OutputFormat.PLAIN) -> str:
    """Render the whole dashboard, or its loading/error indicator."""
    fmt = OutputFormat(fmt)
    if fmt is OutputFormat.JSON:
        return json.dumps(view_to_dict(view), indent=2)

    use_colors = fmt is OutputFormat.COLORED
    if view.is_loading:
        return "Loading..."
    if view.has_error:
        message = f"Error: {view.error}"
        return f"{Color.RED}{message}{Color.END}" if use_colors else message

    return "\n\n".join(render_slice(view, name, use_colors) for name in SliceName)
