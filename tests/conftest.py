from __future__ import annotations

import asyncio
import json
from typing import Any, Dict, List, Optional

import pytest

from meso import cache, config
from meso.models import HazardKind, RiskValue, TemperatureForecast


@pytest.fixture(autouse=True)
def no_redis(monkeypatch):
    monkeypatch.setattr(config, "REDIS_URL", None)
    monkeypatch.setattr(cache, "_client", None)


def arcgis_payload(*dns: Any) -> str:
    return json.dumps({
        "displayFieldName": "label",
        "geometryType": "esriGeometryPolygon",
        "features": [{"attributes": {"dn": dn, "label": str(dn)}} for dn in dns],
    })


NBM_SAMPLE = """\
 KHSV    NBM V4.2 NBS GUIDANCE    10/17/2026  1200 UTC
 DT /OCT  17                /OCT  18                /OCT  19
 UTC  15 18 21 00 03 06 09 12 15 18 21 00 03 06 09 12 15 18 21
 FHR  03 06 09 12 15 18 21 24 27 30 33 36 39 42 45 48 51 54 57
 TXN        58          81          55          79
 XND         2           1           2           2           3
 TMP  66 76 80 77 68 62 60 59 67 75 78 75 66 60 57 56 66 74 76
"""


class FakeHazardClient:
    """Stands in for HazardClient. Optional per-kind gates hold a fetch open."""

    def __init__(self, outcomes: Dict[HazardKind, Any], gates: Optional[Dict[HazardKind, asyncio.Event]] = None):
        self.outcomes = outcomes
        self.gates = gates or {}
        self.calls: List[HazardKind] = []

    async def fetch(self, kind: HazardKind, point=None) -> RiskValue:
        self.calls.append(kind)
        gate = self.gates.get(kind)
        if gate is not None:
            await gate.wait()
        outcome = self.outcomes[kind]
        if isinstance(outcome, BaseException):
            raise outcome
        return outcome


class FakeForecastClient:
    """Stands in for ForecastClient; ``outcomes`` are consumed one per call."""

    def __init__(self, *outcomes: Any, gate: Optional[asyncio.Event] = None):
        self.outcomes = list(outcomes)
        self.gate = gate
        self.calls = 0

    async def fetch(self) -> TemperatureForecast:
        self.calls += 1
        outcome = self.outcomes[min(self.calls, len(self.outcomes)) - 1]
        if self.gate is not None and self.calls == 1:
            await self.gate.wait()
        if isinstance(outcome, BaseException):
            raise outcome
        return outcome
