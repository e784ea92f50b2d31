# tests/test_dna_repository.py

from datetime import datetime, timezone
from unittest.mock import MagicMock

import pytest

from services import dna_repository as repo
from utils.dna_constants import ActorKind, Category, Severity
from utils.dna_models import Actor, DiscrepancyAlert, HistoryEntry
from utils.dna_vector import PositionVector


def test_unconfigured_store_raises_store_failure():
    with pytest.raises(repo.StoreFailure):
        repo.get_actor("a1")


def test_get_actor_reads_history(mock_supabase, fake_sb):
    mock_supabase.side_effect = None
    mock_supabase.return_value = fake_sb
    fake_sb.query.execute.side_effect = [
        MagicMock(data=[{"id": "a1", "kind": "citizen", "economic_score": 0.1}]),
        MagicMock(data=[{"seq": 1, "scores_json": {"economic": 0.1}, "archetype": "Centrist Pragmatist"}]),
    ]
    actor = repo.get_actor("a1")
    assert actor.vector.economic == 0.1
    assert actor.history_length == 1
    fake_sb.table.assert_any_call("dna_actor_history")
    fake_sb.query.order.assert_called_with("seq")


def test_query_error_becomes_store_failure(mock_supabase, fake_sb):
    mock_supabase.side_effect = None
    mock_supabase.return_value = fake_sb
    fake_sb.query.execute.side_effect = ConnectionError("reset")
    with pytest.raises(repo.StoreFailure):
        repo.get_item("b1")


def test_commit_snapshot_uses_single_rpc(mock_supabase, fake_sb):
    mock_supabase.side_effect = None
    mock_supabase.return_value = fake_sb
    v = PositionVector(economic=0.05)
    entry = HistoryEntry(datetime(2024, 1, 1, tzinfo=timezone.utc), v, "Centrist Pragmatist")
    repo.commit_snapshot(Actor("c1", ActorKind.CITIZEN, v, (entry,)), entry, expected_history_length=0)

    fake_sb.rpc.assert_called_once()
    name, params = fake_sb.rpc.call_args.args
    assert name == "record_dna_snapshot"
    assert params["p_actor_id"] == "c1"
    assert params["p_expected_history_length"] == 0


def test_commit_snapshot_rejection_is_store_failure(mock_supabase, fake_sb):
    mock_supabase.side_effect = None
    mock_supabase.return_value = fake_sb
    fake_sb.rpc.return_value.execute.side_effect = Exception("stale history for actor c1")
    entry = HistoryEntry(datetime(2024, 1, 1, tzinfo=timezone.utc), PositionVector(), "x")
    with pytest.raises(repo.StoreFailure):
        repo.commit_snapshot(Actor("c1", ActorKind.CITIZEN), entry, expected_history_length=3)


def test_upsert_alerts_never_duplicates_keys():
    alert = DiscrepancyAlert("r1", Category.ECONOMY, "survey", 40, Severity.LOW, "x")
    newer = DiscrepancyAlert("r1", Category.ECONOMY, "survey", 55, Severity.LOW, "y")

    assert repo.upsert_alerts([alert, newer]) == 1

    call = repo.supabase_upsert.call_args
    assert call.kwargs["table"] == "integrity_alerts"
    assert call.kwargs["conflict_col"] == "actor_id,category,item_id"
    assert [r["deviation_score"] for r in call.kwargs["records"]] == [55]


def test_upsert_failure_is_store_failure():
    repo.supabase_upsert.side_effect = RuntimeError("Supabase UPSERT failed [500]")
    alert = DiscrepancyAlert("r1", Category.ECONOMY, "survey", 40, Severity.LOW, "x")
    with pytest.raises(repo.StoreFailure):
        repo.upsert_alerts([alert])


def test_delete_survey_alerts_targets_survey_keys(mock_supabase, fake_sb):
    mock_supabase.side_effect = None
    mock_supabase.return_value = fake_sb

    repo.delete_survey_alerts("r1", [Category.SECURITY, Category.ECONOMY])

    fake_sb.table.assert_called_once_with("integrity_alerts")
    fake_sb.query.delete.assert_called_once_with()
    fake_sb.query.eq.assert_any_call("actor_id", "r1")
    fake_sb.query.eq.assert_any_call("item_id", "survey")
    fake_sb.query.in_.assert_called_once_with("category", ["Economy", "Security"])


def test_delete_survey_alerts_nothing_to_clear(mock_supabase):
    repo.delete_survey_alerts("r1", [])
    mock_supabase.assert_not_called()
