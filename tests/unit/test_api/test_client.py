"""
Tests for the async dashboard API client.

Covers the mapping of transport failures, non-success statuses and
malformed payloads onto the dashboard error taxonomy.
"""

import httpx
import pytest

from conftest import BASE_URL
from cost_dashboard.api.client import (
    DashboardAPIClient,
    DashboardAPIError,
    ProtocolError,
    TransportError,
)
from cost_dashboard.api.models import CostSample, EstimatorInputs, UsageBreakdown


class TestReads:
    """Test cases for the GET endpoints."""

    async def test_cloud_costs(self, api_client):
        costs = await api_client.get_cloud_costs()
        assert costs[0] == CostSample(month="2024-01", cost=1200.0)

    async def test_breakdowns(self, api_client):
        usage = await api_client.get_service_usage()
        daily = await api_client.get_daily_costs()

        assert usage.labels == ("EC2", "S3", "RDS")
        assert daily.data == (40.0, 42.5, 39.0)

    async def test_resources(self, api_client):
        resources = await api_client.get_resources()
        assert [resource.name for resource in resources] == ["web-1", "assets"]

    async def test_filtered_costs_query(self, api_client, backend):
        await api_client.get_filtered_costs({"start_date": "2024-02-01", "end_date": "2024-02-29"})

        request = backend.requests_for("/filtered-costs")[0]
        assert request.url.params["start_date"] == "2024-02-01"
        assert request.url.params["end_date"] == "2024-02-29"


class TestErrors:
    """Test cases for the error taxonomy."""

    async def test_non_success_status_is_protocol_error(self, api_client, backend):
        backend.fail("/cloud-costs", status=500)

        with pytest.raises(ProtocolError) as exc_info:
            await api_client.get_cloud_costs()

        assert str(exc_info.value) == "Failed to fetch cloud costs (HTTP 500)"
        assert exc_info.value.status_code == 500
        assert exc_info.value.path == "/cloud-costs"

    async def test_malformed_payload_is_protocol_error(self, api_client, backend):
        backend.routes["/service-usage"] = {"labels": ["EC2"], "data": [1, 2]}

        with pytest.raises(ProtocolError, match="malformed payload"):
            await api_client.get_service_usage()

    async def test_invalid_json_is_protocol_error(self):
        transport = httpx.MockTransport(lambda request: httpx.Response(200, text="<html>"))
        async with DashboardAPIClient(BASE_URL, transport=transport) as client:
            with pytest.raises(ProtocolError, match="not valid JSON"):
                await client.get_resources()

    async def test_connection_failure_is_transport_error(self, api_client, backend):
        backend.disconnect("/daily-costs")

        with pytest.raises(TransportError) as exc_info:
            await api_client.get_daily_costs()

        assert isinstance(exc_info.value, DashboardAPIError)
        assert exc_info.value.status_code is None

    async def test_timeout_is_transport_error(self):
        def handler(request):
            raise httpx.ReadTimeout("timed out")

        async with DashboardAPIClient(BASE_URL, transport=httpx.MockTransport(handler)) as client:
            with pytest.raises(TransportError):
                await client.get_cloud_costs()


class TestWrites:
    """Test cases for estimate and update requests."""

    async def test_estimate(self, api_client, backend):
        result = await api_client.estimate_cost(EstimatorInputs(instance_count=10))

        assert result.estimated_monthly_cost == 720.0
        request = backend.requests_for("/estimate-cost")[0]
        assert request.method == "POST"
        assert backend.json_body("/estimate-cost")["instanceCount"] == 10

    async def test_estimate_malformed_response(self, api_client, backend):
        backend.routes["/estimate-cost"] = {"total": 1}

        with pytest.raises(ProtocolError):
            await api_client.estimate_cost(EstimatorInputs())

    async def test_update_cloud_costs_sends_list(self, api_client, backend):
        await api_client.update_cloud_costs([CostSample(month="2024-01", cost=5)])

        request = backend.requests_for("/update-cloud-costs")[0]
        assert request.method == "PUT"
        assert backend.json_body("/update-cloud-costs") == [{"month": "2024-01", "cost": 5.0}]

    async def test_update_service_usage_failure(self, api_client, backend):
        backend.fail("/update-service-usage", status=422)

        with pytest.raises(ProtocolError, match="Failed to update service usage"):
            await api_client.update_service_usage(UsageBreakdown(labels=["a"], data=[1]))

    async def test_close(self, api_client):
        await api_client.aclose()
        assert api_client.is_closed
