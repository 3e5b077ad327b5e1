import json

import pytest

from meso.errors import MalformedPayload, UnknownCategory
from meso.models import HazardKind, RiskCategory, RiskValue
from meso.risk import decode_risk
from tests.conftest import arcgis_payload

PROBABILISTIC = [HazardKind.TORNADO, HazardKind.WIND, HazardKind.HAIL]


@pytest.mark.parametrize("dn,category,label", [
    (2, RiskCategory.THUNDERSTORMS, "THUNDERSTORMS"),
    (3, RiskCategory.MARGINAL, "MARGINAL"),
    (4, RiskCategory.SLIGHT, "SLIGHT"),
    (5, RiskCategory.ENHANCED, "ENHANCED"),
    (6, RiskCategory.MODERATE, "MODERATE"),
    (7, RiskCategory.HIGH, "HIGH"),
])
def test_categorical_codes(dn, category, label):
    risk = decode_risk(arcgis_payload(dn), HazardKind.CATEGORICAL)
    assert risk == RiskValue.categorical(category)
    assert risk.tag == RiskValue.CATEGORICAL
    assert risk.label == label


def test_categories_are_ordered_by_severity():
    decoded = [decode_risk(arcgis_payload(dn), HazardKind.CATEGORICAL).category for dn in range(2, 8)]
    assert decoded == sorted(decoded)
    assert {c.label for c in decoded} == {"THUNDERSTORMS", "MARGINAL", "SLIGHT", "ENHANCED", "MODERATE", "HIGH"}


@pytest.mark.parametrize("kind", PROBABILISTIC)
def test_no_features_is_zero_percent(kind):
    assert decode_risk(arcgis_payload(), kind) == RiskValue.percentage(0)


def test_no_features_categorical_is_none():
    risk = decode_risk(arcgis_payload(), HazardKind.CATEGORICAL)
    assert risk == RiskValue.none()
    assert risk.label == "NONE"


@pytest.mark.parametrize("dn", [0, 1, 8, 99, -3])
def test_unknown_category(dn):
    with pytest.raises(UnknownCategory) as exc:
        decode_risk(arcgis_payload(dn), HazardKind.CATEGORICAL)
    assert exc.value.dn == dn


@pytest.mark.parametrize("kind", PROBABILISTIC)
def test_percentage_passthrough(kind):
    risk = decode_risk(arcgis_payload(15), kind)
    assert risk == RiskValue.percentage(15)
    assert risk.label == "15%"
    assert risk.category is None


def test_first_feature_wins():
    assert decode_risk(arcgis_payload(30, 5), HazardKind.WIND).percent == 30
    assert decode_risk(arcgis_payload(6, 4), HazardKind.CATEGORICAL).category is RiskCategory.MODERATE


@pytest.mark.parametrize("dn", [-5, 101, 250])
def test_out_of_range_percentage_is_not_validated(dn, caplog):
    # known gap: values outside 0-100 are passed through, only logged
    risk = decode_risk(arcgis_payload(dn), HazardKind.HAIL)
    assert risk == RiskValue.percentage(dn)
    assert "out of range" in caplog.text


def test_percentage_never_categorical():
    for kind in PROBABILISTIC:
        assert decode_risk(arcgis_payload(4), kind).tag == RiskValue.PERCENTAGE


def test_accepts_bytes_and_dict():
    raw = arcgis_payload(5)
    assert decode_risk(raw.encode(), HazardKind.TORNADO) == RiskValue.percentage(5)
    assert decode_risk(json.loads(raw), HazardKind.TORNADO) == RiskValue.percentage(5)


@pytest.mark.parametrize("raw", [
    "",
    "not json",
    "[]",
    "{}",
    '{"features": null}',
    '{"features": {}}',
    '{"features": [1]}',
    '{"features": [{}]}',
    '{"features": [{"attributes": {}}]}',
    '{"features": [{"attributes": {"dn": "4"}}]}',
    '{"features": [{"attributes": {"dn": 4.5}}]}',
    '{"features": [{"attributes": {"dn": true}}]}',
    '{"error": {"code": 400, "message": "Invalid or missing input parameters."}}',
])
def test_malformed(raw):
    for kind in HazardKind:
        with pytest.raises(MalformedPayload):
            decode_risk(raw, kind)
