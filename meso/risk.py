from __future__ import annotations

import json
import logging
from typing import Any, Dict, Union

from meso.errors import MalformedPayload, UnknownCategory
from meso.models import HazardKind, RiskCategory, RiskValue

logger = logging.getLogger(__name__)

RawPayload = Union[str, bytes, Dict[str, Any]]


def _load(raw: RawPayload) -> Dict[str, Any]:
    if isinstance(raw, dict):
        return raw
    try:
        data = json.loads(raw)
    except (TypeError, ValueError) as e:
        raise MalformedPayload(f"invalid JSON ({e})") from e
    if not isinstance(data, dict):
        raise MalformedPayload("top level is not an object")
    return data


def _first_dn(data: Dict[str, Any]) -> int | None:
    features = data.get("features")
    if not isinstance(features, list):
        raise MalformedPayload("missing 'features' array")
    if not features:
        return None
    # a point query should intersect at most one polygon; first wins otherwise
    feature = features[0]
    attrs = feature.get("attributes") if isinstance(feature, dict) else None
    if not isinstance(attrs, dict):
        raise MalformedPayload("feature has no 'attributes' object")
    dn = attrs.get("dn")
    # bool is an int subclass, reject it explicitly
    if isinstance(dn, bool) or not isinstance(dn, int):
        raise MalformedPayload(f"'dn' is not an integer: {dn!r}")
    return dn


def decode_risk(raw: RawPayload, kind: HazardKind) -> RiskValue:
    """Decode an ArcGIS point-query response into a RiskValue for ``kind``.

    No intersecting feature means no risk: ``RiskValue.none()`` for the
    categorical layer, ``RiskValue.percentage(0)`` for the probabilistic ones.
    Raises MalformedPayload or UnknownCategory.
    """
    dn = _first_dn(_load(raw))

    if kind.is_categorical:
        if dn is None:
            return RiskValue.none()
        try:
            return RiskValue.categorical(RiskCategory(dn))
        except ValueError:
            raise UnknownCategory(dn) from None

    if dn is None:
        return RiskValue.percentage(0)
    if not 0 <= dn <= 100:
        # passed through as-is; upstream has never been seen to send these
        logger.warning("%s risk percentage out of range: %d", kind.label, dn)
    return RiskValue.percentage(dn)
