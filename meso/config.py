from __future__ import annotations

import os

APP_NAME = "Meso"
APP_VERSION = "0.1.0"

# Upstream services
ARCGIS_BASE_URL = "https://mapservices.weather.noaa.gov/vector/rest/services/outlooks/SPC_wx_outlks/MapServer"
NBM_TEXT_URL = "https://blend.mdl.nws.noaa.gov/nbm-text-new"
SPC_OUTLOOK_BASE_URL = "https://www.spc.noaa.gov/products/outlook"
CLIMATE_OUTLOOK_URL = "https://www.cpc.ncep.noaa.gov/products/predictions/610day/610temp.new.gif"

# Single observation point for now: Huntsville, AL
LATITUDE = 34.7382
LONGITUDE = -86.6018
STATION_ID = "KHSV"

FETCH_TIMEOUT_SECONDS = float(os.environ.get("MESO_FETCH_TIMEOUT_SECONDS", "20"))
USER_AGENT = os.environ.get("MESO_USER_AGENT", f"{APP_NAME}/{APP_VERSION} (weather dashboard)")

REDIS_URL = os.environ.get("MESO_REDIS_URL")  # e.g. redis://localhost:6379/0
CACHE_TTL_SECONDS = int(os.environ.get("MESO_CACHE_TTL_SECONDS", "300"))

RATE_LIMIT = os.environ.get("MESO_RATE_LIMIT", "60/minute")
LOG_LEVEL = os.environ.get("MESO_LOG_LEVEL", "INFO")


def cors_origins() -> list[str]:
    cors = os.environ.get("MESO_CORS_ORIGINS")
    return [o.strip() for o in cors.split(",") if o.strip()] if cors else ["*"]
