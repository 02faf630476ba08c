"""
Cost optimization calculator.

The backend's /estimate-cost response is the authoritative figure; the local
formula is what that figure is expected to equal.
"""

import logging
import math

from ..api.client import DashboardAPIClient, DashboardAPIError
from ..api.models import EstimatorInputs

logger = logging.getLogger(__name__)


def estimate_monthly_cost(inputs: EstimatorInputs) -> float:
    """instanceCount x hoursPerDay x daysPerMonth x costPerHour"""
    return inputs.instance_count * inputs.hours_per_day * inputs.days_per_month * inputs.cost_per_hour


def format_cost(value: float) -> str:
    """Round to two decimal places for display."""
    return f"{value:.2f}"


class CostEstimator:
    """Holds the calculator form and the last estimate returned by the backend."""

    def __init__(self, client: DashboardAPIClient, inputs: EstimatorInputs | None = None):
        self.client = client
        self.inputs = inputs or EstimatorInputs()
        self.estimated_cost = 0.0

    @property
    def display(self) -> str:
        return f"${format_cost(self.estimated_cost)}"

    async def estimate(self, inputs: EstimatorInputs | None = None) -> float | None:
        """Ask the backend for the monthly estimate.

        Returns the new estimate, or None when the request failed, in which
        case the previous estimate is kept.
        """
        if inputs is not None:
            self.inputs = inputs

        try:
            result = await self.client.estimate_cost(self.inputs)
        except DashboardAPIError as e:
            logger.error(f"Error estimating cost: {e}")
            return None

        local = estimate_monthly_cost(self.inputs)
        if not math.isclose(result.estimated_monthly_cost, local, rel_tol=1e-6, abs_tol=1e-9):
            logger.warning(
                f"Backend estimate {result.estimated_monthly_cost} differs from local formula {local}"
            )

        self.estimated_cost = result.estimated_monthly_cost
        return self.estimated_cost
