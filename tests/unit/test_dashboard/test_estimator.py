"""
Tests for the cost optimization calculator.
"""

import logging

import pytest

from cost_dashboard.api.models import EstimatorInputs
from cost_dashboard.dashboard.estimator import CostEstimator, estimate_monthly_cost, format_cost


def _inputs(i, h, d, c) -> EstimatorInputs:
    return EstimatorInputs(instance_count=i, hours_per_day=h, days_per_month=d, cost_per_hour=c)


class TestEstimateMonthlyCost:
    """Test cases for the pure formula."""

    def test_reference_example(self):
        assert format_cost(estimate_monthly_cost(_inputs(10, 24, 30, 0.10))) == "720.00"

    @pytest.mark.parametrize(
        "i,h,d,c",
        [
            (1, 24, 30, 0.1),
            (0, 24, 30, 0.1),
            (3, 8, 22, 1.25),
            (250, 12.5, 31, 0.0042),
            (1, 0, 30, 99.0),
        ],
    )
    def test_product_of_inputs(self, i, h, d, c):
        assert estimate_monthly_cost(_inputs(i, h, d, c)) == pytest.approx(i * h * d * c)

    def test_format_rounds_to_cents(self):
        assert format_cost(0) == "0.00"
        assert format_cost(1.005 + 1e-9) == "1.01"
        assert format_cost(12.3) == "12.30"


class TestCostEstimator:
    """Test cases for the backend round-trip."""

    async def test_initial_state(self, api_client):
        estimator = CostEstimator(api_client)

        assert estimator.estimated_cost == 0.0
        assert estimator.display == "$0.00"
        assert estimator.inputs == EstimatorInputs()

    async def test_backend_figure_is_authoritative(self, api_client, backend):
        estimator = CostEstimator(api_client)

        result = await estimator.estimate(_inputs(10, 24, 30, 0.10))

        assert result == 720.0
        assert estimator.display == "$720.00"
        assert backend.json_body("/estimate-cost") == {
            "instanceCount": 10,
            "hoursPerDay": 24,
            "daysPerMonth": 30,
            "costPerHour": 0.1,
        }

    async def test_divergence_is_logged(self, api_client, backend, caplog):
        backend.routes["/estimate-cost"] = {"estimatedMonthlyCost": 700.0}
        estimator = CostEstimator(api_client)

        with caplog.at_level(logging.WARNING, logger="cost_dashboard.dashboard.estimator"):
            result = await estimator.estimate(_inputs(10, 24, 30, 0.10))

        assert result == 700.0
        assert "differs from local formula" in caplog.text

    async def test_failure_keeps_previous_estimate(self, api_client, backend):
        estimator = CostEstimator(api_client)
        await estimator.estimate(_inputs(10, 24, 30, 0.10))

        backend.fail("/estimate-cost")
        result = await estimator.estimate(_inputs(1, 1, 1, 1))

        assert result is None
        assert estimator.estimated_cost == 720.0
        assert estimator.inputs.instance_count == 1
