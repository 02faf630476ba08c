"""
Local edit buffer for cost and usage figures.

An edit session copies one view model slice, lets the operator change fields
in the copy, and commits the whole buffer to the backend. The view model is
only touched after a successful commit, and only when a store is attached.
"""

import asyncio
import logging
from collections.abc import Callable
from dataclasses import dataclass
from enum import Enum
from typing import Any

from ..api.client import DashboardAPIClient, DashboardAPIError
from ..api.models import CostSample, SliceName, UsageBreakdown, parse_slice
from .store import ViewModelStore

logger = logging.getLogger(__name__)

Notifier = Callable[[str, str, str | None], None]


class EditBufferError(Exception):
    """Base exception for edit session errors."""

    pass


class EditIndexError(EditBufferError, IndexError):
    """Row index outside the buffer."""

    pass


class InvalidFieldError(EditBufferError, ValueError):
    """Unknown field name, or a numeric field given non-numeric text."""

    pass


class EditStateError(EditBufferError):
    """Operation not allowed in the current session state."""

    pass


class EditState(Enum):
    CLEAN = "clean"
    EDITING = "editing"
    COMMITTING = "committing"
    COMMITTED = "committed"
    FAILED = "failed"


@dataclass(frozen=True)
class CommitResult:
    success: bool
    title: str
    description: str | None = None


# Per-slice field kinds (True = numeric) and notice texts
_FIELDS: dict[SliceName, dict[str, bool]] = {
    SliceName.CLOUD_COSTS: {"month": False, "cost": True},
    SliceName.SERVICE_USAGE: {"labels": False, "data": True},
}

_MESSAGES = {
    SliceName.CLOUD_COSTS: ("Cloud costs updated successfully", "Failed to update cloud costs"),
    SliceName.SERVICE_USAGE: (
        "Service usage updated successfully",
        "Failed to update service usage",
    ),
}


def log_notice(level: str, title: str, description: str | None = None):
    """Default notifier: send the notice to the log."""
    text = f"{title}: {description}" if description else title
    if level == "error":
        logger.error(text)
    else:
        logger.info(text)


def coerce_number(value: Any) -> float:
    """Parse a numeric field the way a number input submits it."""
    try:
        return float(str(value).strip())
    except ValueError:
        raise InvalidFieldError(f"{value!r} is not a number") from None


class EditBufferController:
    """Owns one edit session over an editable slice."""

    def __init__(
        self,
        client: DashboardAPIClient,
        slice_name: SliceName,
        store: ViewModelStore | None = None,
        notify: Notifier | None = None,
    ):
        slice_name = SliceName(slice_name)
        if slice_name not in _FIELDS:
            raise EditStateError(f"Slice {slice_name.value} is not editable")
        self.client = client
        self.slice_name = slice_name
        self.store = store
        self.notify = notify or log_notice
        self.state = EditState.CLEAN
        self._rows: list[CostSample] | None = None
        self._usage: UsageBreakdown | None = None

    @property
    def buffer(self) -> Any:
        """Current buffer contents as the slice's value type."""
        if self.slice_name is SliceName.CLOUD_COSTS:
            return None if self._rows is None else tuple(self._rows)
        return self._usage

    @property
    def is_dirty(self) -> bool:
        return self.state in (EditState.EDITING, EditState.FAILED)

    def __len__(self) -> int:
        if self.slice_name is SliceName.CLOUD_COSTS:
            return len(self._rows or ())
        return len(self._usage.data) if self._usage is not None else 0

    def begin_edit(self, snapshot: Any):
        """Start a session from a snapshot of the slice."""
        if self.state is EditState.COMMITTING:
            raise EditStateError("Cannot begin a new edit while a commit is in flight")
        value = parse_slice(self.slice_name, snapshot)
        if self.slice_name is SliceName.CLOUD_COSTS:
            self._rows = list(value)
        else:
            self._usage = value
        self.state = EditState.CLEAN

    def set_field(self, index: int, field: str, value: Any):
        """
        Change one field of the buffer.

        Numeric fields are parsed as floats; other fields are stored as text.

        Raises:
            EditIndexError: if index is outside the buffer
            InvalidFieldError: for an unknown field or a non-numeric numeric value
            EditStateError: before begin_edit() or while committing
        """
        if self.buffer is None:
            raise EditStateError("begin_edit() must be called before set_field()")
        if self.state is EditState.COMMITTING:
            raise EditStateError("Cannot edit while a commit is in flight")

        fields = _FIELDS[self.slice_name]
        if field not in fields:
            raise InvalidFieldError(f"Unknown field {field!r} for {self.slice_name.value}")
        if not 0 <= index < len(self):
            raise EditIndexError(f"Row {index} is outside the buffer (size {len(self)})")

        new_value = coerce_number(value) if fields[field] else str(value)

        if self.slice_name is SliceName.CLOUD_COSTS:
            self._rows[index] = self._rows[index].model_copy(update={field: new_value})
        else:
            values = list(getattr(self._usage, field))
            values[index] = new_value
            self._usage = self._usage.model_copy(update={field: tuple(values)})

        self.state = EditState.EDITING

    async def _send(self, payload: Any):
        if self.slice_name is SliceName.CLOUD_COSTS:
            await self.client.update_cloud_costs(payload)
        else:
            await self.client.update_service_usage(payload)

    async def commit(self) -> CommitResult:
        """Send the entire buffer. The buffer is kept as-is whatever the outcome."""
        if self.buffer is None:
            raise EditStateError("Nothing to commit, begin_edit() was never called")
        if self.state is EditState.COMMITTING:
            raise EditStateError("A commit is already in flight")

        payload = self.buffer
        success_title, failure_description = _MESSAGES[self.slice_name]
        self.state = EditState.COMMITTING
        try:
            await self._send(payload)
        except asyncio.CancelledError:
            self.state = EditState.FAILED
            raise
        except DashboardAPIError as e:
            logger.error(f"Commit of {self.slice_name.value} failed: {e}")
            self.state = EditState.FAILED
            result = CommitResult(False, "Error", failure_description)
        else:
            self.state = EditState.COMMITTED
            result = CommitResult(True, success_title)
            if self.store is not None:
                self.store.set_slice(self.slice_name, payload)
        self.notify("success" if result.success else "error", result.title, result.description)
        return result
