"""Meso: single-location severe-weather hazard dashboard core."""

from meso.config import APP_VERSION as __version__
