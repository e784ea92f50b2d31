# tests/test_forecast_engine.py

import pytest

from services.forecast_engine import DIVIDED, OPPOSES, SUPPORTS, forecast_item, party_friction
from utils.dna_constants import Category
from utils.dna_models import LegislativeItem
from utils.dna_vector import ImpactVector, PositionVector

ITEM = LegislativeItem("b1", Category.ECONOMY, ImpactVector(economic=0.8, security=0.1))


def test_homogeneous_party_has_no_friction(settings):
    members = {"A": [PositionVector(economic=0.5)] * 3}
    forecast = forecast_item(ITEM, members, settings)
    [party] = forecast.parties
    assert party.friction == 0.0
    assert party.alignment == SUPPORTS
    assert forecast.friction_index == 0
    assert forecast.no_data is False
    assert forecast.touched_axes == ["economic"]


def test_split_party_is_divided(settings):
    members = {
        "A": [PositionVector(economic=-0.5)] * 2,
        "B": [PositionVector(economic=1.0), PositionVector(economic=-1.0)],
    }
    forecast = forecast_item(ITEM, members, settings)
    assert forecast.alignment_prediction == {"A": OPPOSES, "B": DIVIDED}
    b = [p for p in forecast.parties if p.party_id == "B"][0]
    assert b.friction == pytest.approx(80.0)
    assert forecast.friction_index == 80


def test_axes_below_threshold_do_not_count():
    members = [PositionVector(security=1.0), PositionVector(security=-1.0)]
    assert party_friction(members, ITEM.impact, 0.2) == 0.0


def test_zero_lean_is_opposes(settings):
    forecast = forecast_item(ITEM, {"A": [PositionVector.neutral()]}, settings)
    assert forecast.parties[0].alignment == OPPOSES


def test_no_parties_is_no_data(settings):
    forecast = forecast_item(ITEM, {"empty": []}, settings)
    assert forecast.no_data is True
    assert forecast.friction_index == 0
    assert forecast.parties == []


def test_friction_index_capped(settings):
    item = LegislativeItem("b2", Category.ECONOMY, ImpactVector.from_dict({a: 1.0 for a in ("economic", "values", "security")}))
    split = [PositionVector(economic=1, values=1, security=1), PositionVector(economic=-1, values=-1, security=-1)]
    forecast = forecast_item(item, {"A": split}, settings)
    assert forecast.friction_index == 100
