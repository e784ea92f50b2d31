from datetime import datetime, timezone
from unittest.mock import patch

from etl import run_dna_jobs
from services.dna_repository import StoreFailure


def test_party_stats_counts_failures():
    with patch("services.dna_repository.list_party_ids", return_value=["A", "B"]), \
            patch("services.dna_service.compute_party_stats", side_effect=[None, StoreFailure("down")]) as job:
        code = run_dna_jobs.main(["party-stats", "--since", "2024-01-01"])

    assert code == 1
    assert job.call_args_list[0].kwargs["since"] == datetime(2024, 1, 1, tzinfo=timezone.utc)
    assert job.call_args_list[0].kwargs["until"] is None
    assert "window" not in job.call_args_list[0].kwargs


def test_forecast_explicit_items():
    with patch("services.dna_service.forecast_for_item") as job:
        code = run_dna_jobs.main(["forecast", "--item-id", "b1", "--item-id", "b2"])
    assert code == 0
    assert [c.args[0] for c in job.call_args_list] == ["b1", "b2"]
