from __future__ import annotations

import asyncio
import logging
from types import MappingProxyType
from typing import Any, Awaitable, Callable, Dict, List, Union

import httpx

from meso import config
from meso.errors import FetchError, NetworkError
from meso.models import (
    DEFAULT_POINT,
    DashboardSnapshot,
    FetchState,
    GeoPoint,
    HazardKind,
    OutlookVariant,
    RiskValue,
    TemperatureForecast,
)
from meso.outlook import OutlookSelection
from meso.providers import ForecastClient, HazardClient

logger = logging.getLogger(__name__)

FORECAST_SLOT = "forecast"

SlotKey = Union[HazardKind, str]
Listener = Callable[[DashboardSnapshot], None]


class DashboardStore:
    """Session state behind the dashboard view.

    One fetch slot per HazardKind plus one for the forecast, and the outlook
    map selection. ``activate()`` starts all five fetches as independent
    tasks; each task only ever writes the slot it was created for, so a slow
    or failing fetch never holds up the others. Listeners get a fresh
    snapshot whenever a slot settles or the selection changes.

    Re-activating (``refresh()``) swaps in brand new pending slots. Tasks from
    the previous activation are left to finish and land in their own, now
    detached, slots.
    """

    def __init__(
        self,
        hazard_client: HazardClient,
        forecast_client: ForecastClient,
        point: GeoPoint = DEFAULT_POINT,
        timeout: float | None = None,
    ):
        self.hazard_client = hazard_client
        self.forecast_client = forecast_client
        self.point = point
        self.timeout = config.FETCH_TIMEOUT_SECONDS if timeout is None else timeout
        self.selection = OutlookSelection(on_change=lambda _variant: self._notify())
        self.generation = 0
        self.hazards: Dict[HazardKind, FetchState[RiskValue]] = {k: FetchState() for k in HazardKind}
        self.forecast: FetchState[TemperatureForecast] = FetchState()
        self.tasks: Dict[SlotKey, asyncio.Task] = {}
        self._listeners: List[Listener] = []

    # ---------- lifecycle ----------
    def activate(self) -> Dict[SlotKey, asyncio.Task]:
        """Launch the five fetches. Must be called with a running event loop."""
        self.generation += 1
        generation = self.generation
        self.hazards = {k: FetchState() for k in HazardKind}
        self.forecast = FetchState()

        tasks: Dict[SlotKey, asyncio.Task] = {}
        for kind, slot in self.hazards.items():
            tasks[kind] = asyncio.create_task(
                self._run(generation, kind.label, slot, self._hazard_call(kind)),
                name=f"meso-{kind.label}-{generation}",
            )
        tasks[FORECAST_SLOT] = asyncio.create_task(
            self._run(generation, FORECAST_SLOT, self.forecast, self.forecast_client.fetch),
            name=f"meso-{FORECAST_SLOT}-{generation}",
        )
        self.tasks = tasks
        logger.info("dashboard activated (generation %d, %d fetches)", generation, len(tasks))
        self._notify()
        return tasks

    def refresh(self) -> Dict[SlotKey, asyncio.Task]:
        return self.activate()

    async def wait(self) -> DashboardSnapshot:
        if self.tasks:
            await asyncio.gather(*self.tasks.values(), return_exceptions=True)
        return self.snapshot()

    def _hazard_call(self, kind: HazardKind) -> Callable[[], Awaitable[RiskValue]]:
        return lambda: self.hazard_client.fetch(kind, self.point)

    async def _run(self, generation: int, name: str, slot: FetchState[Any],
                   call: Callable[[], Awaitable[Any]]) -> None:
        try:
            value = await asyncio.wait_for(call(), timeout=self.timeout)
        except asyncio.TimeoutError:
            slot.fail(NetworkError(f"{name} timed out after {self.timeout:g}s"))
            logger.warning("%s fetch timed out after %gs", name, self.timeout)
        except FetchError as e:
            slot.fail(e)
            logger.warning("%s fetch failed: %s", name, e)
        except Exception as e:
            logger.exception("%s fetch raised unexpectedly", name)
            slot.fail(e)
        else:
            slot.resolve(value)
            logger.info("%s resolved: %s", name, getattr(value, "label", value))

        if generation == self.generation:
            self._notify()

    # ---------- selection ----------
    def select_outlook(self, variant: OutlookVariant) -> None:
        self.selection.select(variant)

    # ---------- read model ----------
    def snapshot(self) -> DashboardSnapshot:
        return DashboardSnapshot(
            hazards=MappingProxyType({k: s.frozen() for k, s in self.hazards.items()}),
            forecast=self.forecast.frozen(),
            outlook=self.selection.current(),
            generation=self.generation,
        )

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _notify(self) -> None:
        if not self._listeners:
            return
        snap = self.snapshot()
        for listener in list(self._listeners):
            try:
                listener(snap)
            except Exception:
                logger.exception("dashboard listener failed")


def default_store(http: httpx.AsyncClient | None = None) -> DashboardStore:
    return DashboardStore(HazardClient(http=http), ForecastClient(http=http))
