"""Backend API models and client."""

from .client import DashboardAPIClient, DashboardAPIError, ProtocolError, TransportError
from .models import (
    CostSample,
    DailyCostBreakdown,
    DateRange,
    EstimateResult,
    EstimatorInputs,
    LoadStatus,
    PushMessage,
    ResourceRecord,
    SliceName,
    UsageBreakdown,
    ViewModel,
    parse_slice,
)

__all__ = [
    "CostSample",
    "DailyCostBreakdown",
    "DashboardAPIClient",
    "DashboardAPIError",
    "DateRange",
    "EstimateResult",
    "EstimatorInputs",
    "LoadStatus",
    "ProtocolError",
    "PushMessage",
    "ResourceRecord",
    "SliceName",
    "TransportError",
    "UsageBreakdown",
    "ViewModel",
    "parse_slice",
]
