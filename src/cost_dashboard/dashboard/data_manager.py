"""
Cost data management for the dashboard.

Handles the initial concurrent load of every collection and the
range-filtered reloads of the cost series.
"""

import asyncio
import logging
import time
from dataclasses import dataclass, field
from datetime import date, datetime
from enum import Enum

from ..api.client import DashboardAPIClient, DashboardAPIError
from ..api.models import SliceName
from .store import ViewModelStore
from .validation import RangeValidator

logger = logging.getLogger(__name__)


class ResourceOutcome(Enum):
    SUCCEEDED = "succeeded"
    FAILED = "failed"
    CANCELLED = "cancelled"


@dataclass
class LoadReport:
    """Per-collection result of the initial load."""

    outcomes: dict[SliceName, ResourceOutcome] = field(default_factory=dict)
    errors: dict[SliceName, str] = field(default_factory=dict)
    error: str | None = None
    applied: bool = False
    duration: float = 0.0

    @property
    def succeeded(self) -> bool:
        return self.error is None

    @property
    def failed_slices(self) -> list[SliceName]:
        return [name for name, outcome in self.outcomes.items() if outcome is ResourceOutcome.FAILED]


class DataFetcher:
    """Initial all-or-nothing load of the four dashboard collections."""

    def __init__(self, client: DashboardAPIClient, store: ViewModelStore):
        self.client = client
        self.store = store

    def _requests(self):
        return {
            SliceName.CLOUD_COSTS: self.client.get_cloud_costs(),
            SliceName.SERVICE_USAGE: self.client.get_service_usage(),
            SliceName.DAILY_COSTS: self.client.get_daily_costs(),
            SliceName.RESOURCES: self.client.get_resources(),
        }

    async def load(self) -> LoadReport:
        """
        Fetch every collection concurrently and apply them together.

        The first failure fails the whole join: outstanding requests are
        cancelled, no slice is populated and the view enters error status
        with the failing request's message.
        """
        report = LoadReport()
        started = time.time()
        self.store.begin_load()
        generations = {name: self.store.next_generation(name) for name in SliceName}

        tasks = {asyncio.ensure_future(coro): name for name, coro in self._requests().items()}
        try:
            done, pending = await asyncio.wait(tasks, return_when=asyncio.FIRST_EXCEPTION)
        except asyncio.CancelledError:
            for task in tasks:
                task.cancel()
            raise

        for task in pending:
            task.cancel()
            report.outcomes[tasks[task]] = ResourceOutcome.CANCELLED
        if pending:
            await asyncio.gather(*pending, return_exceptions=True)

        results = {}
        for task in done:
            name = tasks[task]
            exc = task.exception()
            if exc is None:
                report.outcomes[name] = ResourceOutcome.SUCCEEDED
                results[name] = task.result()
            else:
                report.outcomes[name] = ResourceOutcome.FAILED
                report.errors[name] = str(exc) or "An unknown error occurred"
                if not isinstance(exc, DashboardAPIError):
                    logger.error(f"Unexpected error loading {name.value}: {exc!r}")

        report.duration = time.time() - started

        if report.errors:
            # Report the first failure in request order
            first = next(name for name in SliceName if name in report.errors)
            report.error = report.errors[first]
            logger.error(f"Initial load failed: {report.error}")
            self.store.fail_load(report.error)
            return report

        report.applied = self.store.complete_load(results, generations)
        logger.info(
            f"Initial load complete in {report.duration:.3f}s: "
            f"{len(results[SliceName.CLOUD_COSTS])} cost samples, "
            f"{len(results[SliceName.RESOURCES])} resources"
        )
        return report


class RangeFilterController:
    """Replaces the cost series with a reload scoped to a date range."""

    def __init__(self, client: DashboardAPIClient, store: ViewModelStore):
        self.client = client
        self.store = store

    async def apply(self, start: date | datetime, end: date | datetime) -> bool:
        """
        Reload the cost series for [start, end].

        Returns:
            True if the cost series was replaced

        Raises:
            InvalidDateRangeError: if start is after end; no request is issued
        """
        date_range = RangeValidator.validate(start, end)
        params = RangeValidator.query_params(date_range)
        generation = self.store.next_generation(SliceName.CLOUD_COSTS)

        logger.info(f"Filtering costs from {params['start_date']} to {params['end_date']}")
        try:
            costs = await self.client.get_filtered_costs(params)
        except DashboardAPIError as e:
            logger.error(f"Error filtering data: {e}")
            return False

        return self.store.set_slice(SliceName.CLOUD_COSTS, costs, generation=generation)
