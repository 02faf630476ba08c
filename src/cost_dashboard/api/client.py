"""
Async HTTP client for the cost dashboard backend.

Wraps httpx.AsyncClient with one coroutine per backend operation and maps
every failure onto the dashboard error taxonomy: transport errors for
requests that never produced a response, protocol errors for non-success
statuses and malformed payloads.
"""

import json
import logging
from collections.abc import Sequence
from typing import Any

import httpx
from pydantic import ValidationError

from .models import (
    CostSample,
    DailyCostBreakdown,
    EstimateResult,
    EstimatorInputs,
    ResourceRecord,
    SliceName,
    UsageBreakdown,
    parse_slice,
)

logger = logging.getLogger(__name__)


class DashboardAPIError(Exception):
    """Base exception for backend request failures."""

    def __init__(self, message: str, status_code: int | None = None, path: str | None = None):
        super().__init__(message)
        self.status_code = status_code
        self.path = path


class TransportError(DashboardAPIError):
    """Request rejected before a response arrived (unreachable host, timeout)."""

    pass


class ProtocolError(DashboardAPIError):
    """Non-success status code or a payload that does not match its model."""

    pass


class DashboardAPIClient:
    """Client for the dashboard REST endpoints."""

    def __init__(
        self,
        base_url: str,
        timeout: float = 30,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.base_url = base_url.rstrip("/")
        self._client = httpx.AsyncClient(
            base_url=self.base_url,
            timeout=timeout,
            transport=transport,
            headers={"Content-Type": "application/json"},
        )

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.aclose()

    @property
    def is_closed(self) -> bool:
        return self._client.is_closed

    async def aclose(self):
        await self._client.aclose()

    async def _request(
        self,
        method: str,
        path: str,
        failure: str,
        params: dict[str, str] | None = None,
        payload: Any = None,
    ) -> httpx.Response:
        logger.debug(f"{method} {path} params={params}")
        try:
            response = await self._client.request(method, path, params=params, json=payload)
        except httpx.RequestError as e:
            raise TransportError(f"{failure}: {e}", path=path) from e

        if not response.is_success:
            raise ProtocolError(
                f"{failure} (HTTP {response.status_code})",
                status_code=response.status_code,
                path=path,
            )
        return response

    async def _get_json(self, path: str, failure: str, params: dict[str, str] | None = None) -> Any:
        response = await self._request("GET", path, failure, params=params)
        try:
            return response.json()
        except json.JSONDecodeError as e:
            raise ProtocolError(
                f"{failure}: response is not valid JSON",
                status_code=response.status_code,
                path=path,
            ) from e

    async def _get_slice(
        self, name: SliceName, path: str, failure: str, params: dict[str, str] | None = None
    ) -> Any:
        payload = await self._get_json(path, failure, params=params)
        try:
            return parse_slice(name, payload)
        except ValidationError as e:
            raise ProtocolError(f"{failure}: malformed payload ({e.error_count()} errors)", path=path) from e

    async def get_cloud_costs(self) -> tuple[CostSample, ...]:
        """GET /cloud-costs"""
        return await self._get_slice(
            SliceName.CLOUD_COSTS, "/cloud-costs", "Failed to fetch cloud costs"
        )

    async def get_service_usage(self) -> UsageBreakdown:
        """GET /service-usage"""
        return await self._get_slice(
            SliceName.SERVICE_USAGE, "/service-usage", "Failed to fetch service usage"
        )

    async def get_daily_costs(self) -> DailyCostBreakdown:
        """GET /daily-costs"""
        return await self._get_slice(
            SliceName.DAILY_COSTS, "/daily-costs", "Failed to fetch daily costs"
        )

    async def get_resources(self) -> tuple[ResourceRecord, ...]:
        """GET /resources"""
        return await self._get_slice(SliceName.RESOURCES, "/resources", "Failed to fetch resources")

    async def get_filtered_costs(self, params: dict[str, str]) -> tuple[CostSample, ...]:
        """GET /filtered-costs?start_date=...&end_date=..."""
        return await self._get_slice(
            SliceName.CLOUD_COSTS,
            "/filtered-costs",
            "Failed to fetch filtered costs",
            params=params,
        )

    async def estimate_cost(self, inputs: EstimatorInputs) -> EstimateResult:
        """POST /estimate-cost"""
        failure = "Failed to estimate cost"
        response = await self._request(
            "POST", "/estimate-cost", failure, payload=inputs.to_payload()
        )
        try:
            return EstimateResult.model_validate(response.json())
        except (json.JSONDecodeError, ValidationError) as e:
            raise ProtocolError(f"{failure}: malformed payload", path="/estimate-cost") from e

    async def update_cloud_costs(self, samples: Sequence[CostSample]) -> None:
        """PUT /update-cloud-costs with the entire cost series."""
        payload = [sample.model_dump(mode="json") for sample in samples]
        await self._request("PUT", "/update-cloud-costs", "Failed to update cloud costs", payload=payload)

    async def update_service_usage(self, usage: UsageBreakdown) -> None:
        """PUT /update-service-usage with the entire usage breakdown."""
        await self._request(
            "PUT",
            "/update-service-usage",
            "Failed to update service usage",
            payload=usage.model_dump(mode="json"),
        )
