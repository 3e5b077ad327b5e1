from __future__ import annotations

from typing import Callable, Optional

from meso.models import DEFAULT_OUTLOOK, OutlookVariant


class OutlookSelection:
    """Which SPC outlook map is on screen. Knows nothing about fetches."""

    def __init__(self, variant: OutlookVariant = DEFAULT_OUTLOOK,
                 on_change: Optional[Callable[[OutlookVariant], None]] = None):
        self._variant = variant
        self._on_change = on_change

    def current(self) -> OutlookVariant:
        return self._variant

    def select(self, variant: OutlookVariant) -> None:
        self._variant = OutlookVariant(variant)
        if self._on_change is not None:
            self._on_change(self._variant)

    def select_by_name(self, name: str) -> OutlookVariant:
        self.select(parse_variant(name))
        return self._variant


def parse_variant(name: str) -> OutlookVariant:
    """Accept an enum name ("TORNADO_MAP") or a button label ("tornado")."""
    key = (name or "").strip().lower()
    for v in OutlookVariant:
        if key in (v.name.lower(), v.label.lower()):
            return v
    raise ValueError(f"unknown outlook variant: {name!r}")
