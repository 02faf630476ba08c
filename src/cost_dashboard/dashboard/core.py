"""
Core dashboard session.

Contains the CostDashboard class, which owns the view model store and the
push channel between mount and unmount and wires the data fetcher, range
filter, estimator and edit sessions to them.
"""

import asyncio
import logging
from collections.abc import Callable
from datetime import date, datetime
from typing import Any

from ..api.client import DashboardAPIClient
from ..api.models import SliceName, ViewModel
from ..config.settings import DashboardConfig, get_config
from .data_manager import DataFetcher, LoadReport, RangeFilterController
from .edit_buffer import EditBufferController, Notifier
from .estimator import CostEstimator
from .push_channel import PushChannel, PushDispatcher
from .store import Listener, ViewModelStore
from .validation import RangeSelection

logger = logging.getLogger(__name__)


class CostDashboard:
    """Main dashboard session class."""

    def __init__(
        self,
        config: DashboardConfig | None = None,
        client: DashboardAPIClient | None = None,
        connect: Callable[[str], Any] | None = None,
        live: bool = True,
    ):
        self.config = config or get_config()
        self.live = live
        self._owns_client = client is None
        self.client = client or DashboardAPIClient(self.config.base_url, timeout=self.config.timeout)

        self.store = ViewModelStore(sequence_updates=self.config.sequence_updates)
        self.fetcher = DataFetcher(self.client, self.store)
        self.range_filter = RangeFilterController(self.client, self.store)
        self.estimator = CostEstimator(self.client)
        self.selection = RangeSelection()

        reconnect = self.config.reconnect
        self.channel = PushChannel(
            self.config.push_url,
            PushDispatcher(self.store),
            connect=connect,
            reconnect=bool(reconnect.get("enabled", False)),
            max_attempts=int(reconnect.get("max_attempts", 5)),
            initial_delay=float(reconnect.get("initial_delay", 1.0)),
            max_delay=float(reconnect.get("max_delay", 30.0)),
        )

        self._load_task: asyncio.Task | None = None
        self.mounted = False

    async def __aenter__(self):
        await self.mount()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.unmount()

    @property
    def view(self) -> ViewModel:
        return self.store.view

    async def mount(self):
        """Initialize the store, open the push channel and start the initial load."""
        if self.mounted:
            return
        logger.info(f"Mounting dashboard against {self.config.base_url}")
        self.store.init()
        self.mounted = True
        if self.live:
            self.channel.open()
        self._load_task = asyncio.ensure_future(self.fetcher.load())

    async def unmount(self):
        """Release the channel and drop any result still in flight."""
        if not self.mounted:
            return
        self.mounted = False
        self.store.dispose()

        if self._load_task is not None and not self._load_task.done():
            self._load_task.cancel()
            try:
                await self._load_task
            except asyncio.CancelledError:
                pass

        await self.channel.close()
        if self._owns_client:
            await self.client.aclose()
        logger.info("Dashboard unmounted")

    async def wait_until_loaded(self) -> LoadReport:
        """Wait for the initial load to settle."""
        if self._load_task is None:
            raise RuntimeError("Dashboard is not mounted")
        return await asyncio.shield(self._load_task)

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        return self.store.subscribe(listener)

    async def filter(
        self, start: date | datetime | None = None, end: date | datetime | None = None
    ) -> bool:
        """Reload the cost series for a range, defaulting to the current selection."""
        self.selection.set_start(start)
        self.selection.set_end(end)
        return await self.range_filter.apply(self.selection.start, self.selection.end)

    def edit(self, slice_name: SliceName, notify: Notifier | None = None) -> EditBufferController:
        """Open an edit session seeded from the current snapshot of the slice."""
        controller = EditBufferController(
            self.client,
            slice_name,
            store=self.store if self.config.sync_on_commit else None,
            notify=notify,
        )
        controller.begin_edit(self.view.get_slice(slice_name))
        return controller
