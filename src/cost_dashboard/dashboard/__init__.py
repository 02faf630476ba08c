"""
Client-side state reconciliation for the cloud cost dashboard.

This package provides:
- A view model store merging the initial load, push updates and range reloads
- The push channel transport and its message dispatcher
- The cost estimator and the edit buffer with commit
- Text rendering of the reconciled view
"""

from .core import CostDashboard
from .data_manager import DataFetcher, LoadReport, RangeFilterController, ResourceOutcome
from .edit_buffer import (
    CommitResult,
    EditBufferController,
    EditBufferError,
    EditIndexError,
    EditState,
    EditStateError,
    InvalidFieldError,
)
from .estimator import CostEstimator, estimate_monthly_cost, format_cost
from .push_channel import PushChannel, PushDispatcher
from .store import ViewModelStore
from .validation import InvalidDateRangeError, RangeValidator, default_range

__all__ = [
    "CommitResult",
    "CostDashboard",
    "CostEstimator",
    "DataFetcher",
    "EditBufferController",
    "EditBufferError",
    "EditIndexError",
    "EditState",
    "EditStateError",
    "InvalidDateRangeError",
    "InvalidFieldError",
    "LoadReport",
    "PushChannel",
    "PushDispatcher",
    "RangeFilterController",
    "RangeValidator",
    "ResourceOutcome",
    "ViewModelStore",
    "default_range",
    "estimate_monthly_cost",
    "format_cost",
]
