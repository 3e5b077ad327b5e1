from __future__ import annotations

from dataclasses import dataclass
from enum import Enum, IntEnum
from typing import Generic, Mapping, Optional, TypeVar

from meso import config
from meso.errors import SlotTransitionError

T = TypeVar("T")


class HazardKind(Enum):
    # (upstream MapServer layer id, display label)
    CATEGORICAL = (1, "categorical")
    TORNADO = (3, "tornado")
    WIND = (7, "wind")
    HAIL = (5, "hail")

    def __init__(self, layer_id: int, label: str):
        self.layer_id = layer_id
        self.label = label

    @property
    def is_categorical(self) -> bool:
        return self is HazardKind.CATEGORICAL

    def __str__(self) -> str:
        return self.label


class RiskCategory(IntEnum):
    THUNDERSTORMS = 2
    MARGINAL = 3
    SLIGHT = 4
    ENHANCED = 5
    MODERATE = 6
    HIGH = 7

    @property
    def label(self) -> str:
        return self.name


@dataclass(frozen=True)
class RiskValue:
    """Decoded risk for one hazard kind.

    Exactly one of three shapes: a categorical risk level (categorical layer
    only), a raw percentage (probabilistic layers), or no risk at all. Build
    values through the classmethods rather than the constructor.
    """

    tag: str
    category: Optional[RiskCategory] = None
    percent: Optional[int] = None

    CATEGORICAL = "categorical"
    PERCENTAGE = "percentage"
    NONE = "none"

    @classmethod
    def categorical(cls, category: RiskCategory) -> "RiskValue":
        return cls(tag=cls.CATEGORICAL, category=RiskCategory(category))

    @classmethod
    def percentage(cls, percent: int) -> "RiskValue":
        return cls(tag=cls.PERCENTAGE, percent=int(percent))

    @classmethod
    def none(cls) -> "RiskValue":
        return cls(tag=cls.NONE)

    @property
    def label(self) -> str:
        if self.tag == self.CATEGORICAL:
            return self.category.label
        if self.tag == self.PERCENTAGE:
            return f"{self.percent}%"
        return "NONE"

    def css_class(self, kind: HazardKind) -> str:
        if self.tag == self.CATEGORICAL:
            return f"{kind.label}-{int(self.category)}"
        if self.tag == self.PERCENTAGE:
            return f"{kind.label}-{self.percent}"
        return f"{kind.label}-0"


@dataclass(frozen=True)
class TemperatureForecast:
    high: int  # deg F
    low: int   # deg F


@dataclass(frozen=True)
class GeoPoint:
    latitude: float
    longitude: float

    def as_query(self) -> str:
        # ArcGIS point geometry is x,y -> lon,lat
        return f"{self.longitude},{self.latitude}"


DEFAULT_POINT = GeoPoint(latitude=config.LATITUDE, longitude=config.LONGITUDE)


class FetchStatus(str, Enum):
    PENDING = "pending"
    RESOLVED = "resolved"
    FAILED = "failed"


@dataclass
class FetchState(Generic[T]):
    status: FetchStatus = FetchStatus.PENDING
    value: Optional[T] = None
    reason: Optional[BaseException] = None

    @property
    def is_terminal(self) -> bool:
        return self.status is not FetchStatus.PENDING

    def resolve(self, value: T) -> None:
        self._leave_pending()
        self.value = value
        self.status = FetchStatus.RESOLVED

    def fail(self, reason: BaseException) -> None:
        self._leave_pending()
        self.reason = reason
        self.status = FetchStatus.FAILED

    def _leave_pending(self) -> None:
        if self.is_terminal:
            raise SlotTransitionError(f"slot is already {self.status.value}")

    def frozen(self) -> "SlotView[T]":
        return SlotView(status=self.status, value=self.value, reason=self.reason)


@dataclass(frozen=True)
class SlotView(Generic[T]):
    """Read-only copy of a FetchState handed to the presentation layer."""

    status: FetchStatus
    value: Optional[T] = None
    reason: Optional[BaseException] = None

    @property
    def is_terminal(self) -> bool:
        return self.status is not FetchStatus.PENDING


class OutlookVariant(Enum):
    CATEGORICAL_MAP = ("Categorical", "day1otlk.gif")
    TORNADO_MAP = ("Tornado", "day1probotlk_torn.gif")
    WIND_MAP = ("Wind", "day1probotlk_wind.gif")
    HAIL_MAP = ("Hail", "day1probotlk_hail.gif")

    def __init__(self, label: str, image_name: str):
        self.label = label
        self.image_name = image_name

    @property
    def image_url(self) -> str:
        return f"{config.SPC_OUTLOOK_BASE_URL}/{self.image_name}"


DEFAULT_OUTLOOK = OutlookVariant.CATEGORICAL_MAP


@dataclass(frozen=True)
class DashboardSnapshot:
    hazards: Mapping[HazardKind, SlotView[RiskValue]]
    forecast: SlotView[TemperatureForecast]
    outlook: OutlookVariant
    generation: int = 0
    climate_outlook_url: str = config.CLIMATE_OUTLOOK_URL

    @property
    def settled(self) -> bool:
        return self.forecast.is_terminal and all(s.is_terminal for s in self.hazards.values())
