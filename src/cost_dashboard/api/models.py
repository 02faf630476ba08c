"""
API data models for the cloud cost dashboard.

Contains the Pydantic models for every payload exchanged with the backend
and the render-ready view model assembled from them.
"""

from datetime import date
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, model_validator


class SliceName(str, Enum):
    """Named parts of the view model that are replaced as a whole."""

    CLOUD_COSTS = "cloud_costs"
    SERVICE_USAGE = "service_usage"
    DAILY_COSTS = "daily_costs"
    RESOURCES = "resources"


class LoadStatus(Enum):
    """Status of the initial bulk load."""

    LOADING = "loading"
    READY = "ready"
    ERROR = "error"


class CostSample(BaseModel):
    model_config = ConfigDict(frozen=True)

    month: str
    cost: float


class LabelledSeries(BaseModel):
    """Parallel label/value sequences where index i of one matches index i of the other."""

    model_config = ConfigDict(frozen=True)

    labels: tuple[str, ...] = ()
    data: tuple[float, ...] = ()

    @model_validator(mode="after")
    def validate_parallel(self):
        """Labels and data must have the same length."""
        if len(self.labels) != len(self.data):
            raise ValueError(
                f"labels and data must have the same length, got {len(self.labels)} and {len(self.data)}"
            )
        return self


class UsageBreakdown(LabelledSeries):
    pass


class DailyCostBreakdown(LabelledSeries):
    pass


class ResourceRecord(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: str
    type: str
    cost: float


class DateRange(BaseModel):
    """Inclusive date range. Ordering is checked by the range validator, not here."""

    model_config = ConfigDict(frozen=True)

    start: date
    end: date


class EstimatorInputs(BaseModel):
    """Inputs of the cost optimization calculator."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    instance_count: float = Field(1, alias="instanceCount")
    hours_per_day: float = Field(24, alias="hoursPerDay")
    days_per_month: float = Field(30, alias="daysPerMonth")
    cost_per_hour: float = Field(0.1, alias="costPerHour")

    def to_payload(self) -> dict[str, float]:
        """Serialize with the backend's camelCase field names."""
        return self.model_dump(by_alias=True)


class EstimateResult(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    estimated_monthly_cost: float = Field(alias="estimatedMonthlyCost")


class PushMessage(BaseModel):
    """Incremental update delivered over the push channel."""

    type: str
    data: Any = None


class ViewModel(BaseModel):
    """Reconciled, render-ready aggregate of cost, usage and resource data."""

    model_config = ConfigDict(frozen=True)

    cloud_costs: tuple[CostSample, ...] = ()
    service_usage: UsageBreakdown = Field(default_factory=UsageBreakdown)
    daily_costs: DailyCostBreakdown = Field(default_factory=DailyCostBreakdown)
    resources: tuple[ResourceRecord, ...] = ()
    status: LoadStatus = LoadStatus.LOADING
    error: str | None = None

    @property
    def is_loading(self) -> bool:
        return self.status is LoadStatus.LOADING

    @property
    def has_error(self) -> bool:
        return self.status is LoadStatus.ERROR

    @property
    def total_resource_cost(self) -> float:
        """Sum of the cost of every tracked resource."""
        return sum(resource.cost for resource in self.resources)

    def get_slice(self, name: SliceName) -> Any:
        return getattr(self, SliceName(name).value)


_SLICE_ADAPTERS: dict[SliceName, TypeAdapter] = {
    SliceName.CLOUD_COSTS: TypeAdapter(tuple[CostSample, ...]),
    SliceName.SERVICE_USAGE: TypeAdapter(UsageBreakdown),
    SliceName.DAILY_COSTS: TypeAdapter(DailyCostBreakdown),
    SliceName.RESOURCES: TypeAdapter(tuple[ResourceRecord, ...]),
}


def parse_slice(name: SliceName | str, data: Any) -> Any:
    """Validate a raw JSON payload into the value type of the named slice.

    Raises:
        pydantic.ValidationError: if the payload does not match the slice shape
    """
    return _SLICE_ADAPTERS[SliceName(name)].validate_python(data)
