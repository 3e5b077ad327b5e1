from __future__ import annotations

from typing import Iterable, Optional, Tuple, Union

from meso.errors import MissingField
from meso.models import TemperatureForecast

# NBM text bulletins carry the max/min temperature row under this marker
TXN_MARKER = "TXN"


def _scan(lines: Iterable[str]) -> Optional[Tuple[int, int]]:
    temps = None
    for line in lines:
        parts = line.strip().split()
        if not parts or parts[0] != TXN_MARKER:
            continue
        # later cycles overwrite earlier ones; a bad last row invalidates the result
        try:
            temps = (int(parts[1]), int(parts[2]))
        except (IndexError, ValueError):
            temps = None
    return temps


def decode_forecast(raw_text: Union[str, bytes]) -> TemperatureForecast:
    """Pull the (high, low) pair out of an NBM text forecast.

    Records look like ``TXN <low> <high> ...``; the last one in the feed wins.
    Raises MissingField("temps") when no usable record is present.
    """
    if isinstance(raw_text, bytes):
        raw_text = raw_text.decode("utf-8", errors="replace")
    temps = _scan((raw_text or "").splitlines())
    if temps is None:
        raise MissingField("temps")
    low, high = temps
    return TemperatureForecast(high=high, low=low)
