# tests/test_dna_contract.py

from datetime import datetime, timezone

import pytest

from etl.dna_contract import (
    action_from_row,
    actor_from_row,
    declared_from_row,
    ingest_item_profile,
    item_from_row,
    snapshot_rpc_params,
    vector_from_json,
    vector_from_row,
    vector_to_row,
)
from utils.dna_constants import ActorKind, Category, VoteChoice
from utils.dna_models import HistoryEntry
from utils.dna_vector import PositionVector


def test_vector_row_columns():
    v = PositionVector(economic=0.1, values=-0.2, security=0.9)
    row = vector_to_row(v)
    assert row["economic_score"] == 0.1
    assert row["liberal_conservative_score"] == -0.2
    assert row["security_score"] == 0.9
    assert vector_from_row(row) == v


def test_out_of_range_row_is_clamped_and_logged(caplog):
    v = vector_from_row({"economic_score": 3.5, "security_score": None})
    assert v.economic == 1.0
    assert v.security == 0.0
    assert "clamped" in caplog.text


def test_vector_from_json_accepts_aliases():
    v = vector_from_json({"economy": 0.4, "urban_rural_score": -0.3, "bogus": 1})
    assert v.economic == 0.4
    assert v.regional == -0.3


def test_actor_from_row_with_history():
    row = {"id": "a1", "kind": "representative", "party_id": 7, "economic_score": 0.2}
    history = [{"recorded_at": "2024-01-01T00:00:00Z", "scores_json": {"economic": 0.2}, "archetype": "X"}]
    actor = actor_from_row(row, history)
    assert actor.kind is ActorKind.REPRESENTATIVE
    assert actor.party_id == "7"
    assert actor.history_length == 1
    assert actor.history[0].vector.economic == 0.2


def test_item_from_row_clamps_impact():
    item = item_from_row({"id": "b", "category": "Turvallisuus", "impact_vector": {"security": 1.4, "economy": -0.2}})
    assert item.category is Category.SECURITY
    assert item.impact.security == 1.0
    assert item.impact.economic == 0.0


def test_declared_and_action_rows():
    assert declared_from_row({"actor_id": "a", "category": "Economy", "response_value": None}) is None
    d = declared_from_row({"actor_id": "a", "category": "Economy", "response_value": 8})
    assert d.response == 5

    a = action_from_row({"actor_id": "a", "item_id": "b", "vote_type": "jaa", "cast_at": "2024-02-02T10:00:00"})
    assert a.choice is VoteChoice.SUPPORT
    assert a.cast_at.tzinfo is not None
    assert action_from_row({"actor_id": "a", "item_id": "b", "choice": "???"}) is None


def test_ingest_item_profile_clamps():
    item = ingest_item_profile(
        "b9",
        {"category": "ympäristö", "impact_vector": {"environment": 2.0, "economic": -1.0}, "relevance_weights": {"env": 0.7}},
        title="Forest act",
    )
    assert item.category is Category.ENVIRONMENT
    assert item.impact.environment == 1.0
    assert item.impact.economic == 0.0
    assert item.relevance_weights == {"environment": 0.7}
    assert item.category_weight() == pytest.approx(0.7)


def test_ingest_item_without_impact_is_zero(caplog):
    item = ingest_item_profile("b10", {"category": "Economy"})
    assert item.impact.as_tuple() == (0.0,) * 6
    assert "no impact vector" in caplog.text


def test_snapshot_rpc_params():
    from utils.dna_models import Actor

    v = PositionVector(economic=0.05)
    entry = HistoryEntry(datetime(2024, 1, 1, tzinfo=timezone.utc), v, "Centrist Pragmatist")
    params = snapshot_rpc_params(Actor("c1", ActorKind.CITIZEN, v, (entry,)), entry, 0)
    assert params["p_expected_history_length"] == 0
    assert params["p_scores"]["economic_score"] == 0.05
    assert list(params["p_scores_json"]) == ["economic", "values", "environment", "regional", "international", "security"]


def test_declared_non_numeric_response_is_skipped(caplog):
    with caplog.at_level("WARNING"):
        d = declared_from_row({"actor_id": "a", "category": "Economy", "response_value": "strongly agree"})
    assert d is None
    assert "no usable response_value" in caplog.text


def test_declared_fractional_response_kept():
    d = declared_from_row({"actor_id": "a", "category": "Economy", "response_value": "2.5"})
    assert d.response == pytest.approx(2.5)


def test_non_numeric_axis_is_neutral_and_logged(caplog):
    with caplog.at_level("WARNING"):
        v = vector_from_json({"economic": "left", "values": 0.4}, source="actor[a].vector")
    assert v.economic == 0.0
    assert v.values == pytest.approx(0.4)
    assert "is not numeric" in caplog.text
