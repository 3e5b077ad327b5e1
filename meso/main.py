from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import Callable, List, Optional

import httpx
from fastapi import FastAPI, HTTPException, Request
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel, ConfigDict
from slowapi import Limiter, _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded
from slowapi.middleware import SlowAPIMiddleware
from slowapi.util import get_remote_address

from meso import config
from meso.models import DashboardSnapshot, FetchStatus, HazardKind, OutlookVariant, RiskValue, SlotView
from meso.outlook import parse_variant
from meso.providers import make_http_client
from meso.store import DashboardStore, default_store

logger = logging.getLogger(__name__)

StoreFactory = Callable[[httpx.AsyncClient], DashboardStore]
HttpFactory = Callable[[], httpx.AsyncClient]


# ---------- Models ----------
class HazardOut(BaseModel):
    model_config = ConfigDict(extra="forbid")
    kind: str
    layer_id: int
    status: FetchStatus
    value: Optional[int] = None
    display: Optional[str] = None
    css_class: Optional[str] = None
    reason: Optional[str] = None


class ForecastOut(BaseModel):
    model_config = ConfigDict(extra="forbid")
    status: FetchStatus
    high: Optional[int] = None
    low: Optional[int] = None
    reason: Optional[str] = None


class OutlookOut(BaseModel):
    model_config = ConfigDict(extra="forbid")
    variant: str
    label: str
    image_url: str


class DashboardOut(BaseModel):
    model_config = ConfigDict(extra="forbid")
    generation: int
    hazards: List[HazardOut]
    forecast: ForecastOut
    outlook: OutlookOut
    climate_outlook_url: str


class OutlookSelect(BaseModel):
    model_config = ConfigDict(extra="forbid")
    variant: str


# ---------- Helpers ----------
def _hazard_out(kind: HazardKind, slot: SlotView[RiskValue]) -> HazardOut:
    out = HazardOut(kind=kind.label, layer_id=kind.layer_id, status=slot.status)
    if slot.status is FetchStatus.RESOLVED:
        risk = slot.value
        out.value = int(risk.category) if risk.tag == RiskValue.CATEGORICAL else risk.percent
        out.display = risk.label
        out.css_class = risk.css_class(kind)
    elif slot.status is FetchStatus.FAILED:
        out.reason = str(slot.reason)
    return out


def _outlook_out(variant: OutlookVariant) -> OutlookOut:
    return OutlookOut(variant=variant.name, label=variant.label, image_url=variant.image_url)


def dashboard_out(snap: DashboardSnapshot) -> DashboardOut:
    fc = snap.forecast
    forecast = ForecastOut(status=fc.status)
    if fc.status is FetchStatus.RESOLVED:
        forecast.high = fc.value.high
        forecast.low = fc.value.low
    elif fc.status is FetchStatus.FAILED:
        forecast.reason = str(fc.reason)

    return DashboardOut(
        generation=snap.generation,
        hazards=[_hazard_out(k, s) for k, s in snap.hazards.items()],
        forecast=forecast,
        outlook=_outlook_out(snap.outlook),
        climate_outlook_url=snap.climate_outlook_url,
    )


def _store(request: Request) -> DashboardStore:
    return request.app.state.store


# ---------- App ----------
def create_app(store_factory: StoreFactory | None = None, http_factory: HttpFactory | None = None) -> FastAPI:
    factory = store_factory or default_store
    new_http = http_factory or make_http_client

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        http = new_http()
        store = factory(http)
        app.state.store = store
        logger.info("starting dashboard session for %s", config.STATION_ID)
        store.activate()
        try:
            yield
        finally:
            # in-flight fetches settle (bounded by the store timeout) before the client goes away
            await store.wait()
            await http.aclose()

    app = FastAPI(title=f"{config.APP_NAME} API", version=config.APP_VERSION, lifespan=lifespan)

    limiter = Limiter(key_func=get_remote_address, default_limits=[config.RATE_LIMIT])
    app.state.limiter = limiter
    app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)
    app.add_middleware(SlowAPIMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.cors_origins(),
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.get("/health")
    def health():
        return {"ok": True, "name": config.APP_NAME, "version": app.version}

    @app.get("/v1/dashboard", response_model=DashboardOut)
    async def dashboard(request: Request):
        return dashboard_out(_store(request).snapshot())

    @app.put("/v1/outlook", response_model=OutlookOut)
    async def select_outlook(req: OutlookSelect, request: Request):
        try:
            variant = parse_variant(req.variant)
        except ValueError as e:
            raise HTTPException(status_code=422, detail=str(e))
        _store(request).select_outlook(variant)
        return _outlook_out(variant)

    @app.post("/v1/refresh", response_model=DashboardOut)
    async def refresh(request: Request):
        store = _store(request)
        store.refresh()
        return dashboard_out(store.snapshot())

    return app


logging.basicConfig(level=config.LOG_LEVEL, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
app = create_app()
