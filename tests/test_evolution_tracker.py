# tests/test_evolution_tracker.py

from datetime import datetime, timezone

import pytest

from services.evolution_tracker import apply_action, new_citizen, replay, survey_snapshot
from utils.dna_constants import Category, VoteChoice
from utils.dna_models import DeclaredPosition
from utils.profile_describer import CENTRIST_LABEL

NOW = datetime(2024, 5, 1, tzinfo=timezone.utc)


def test_first_support_vote_moves_one_step(settings):
    actor = new_citizen("c1")
    result = apply_action(actor, Category.ECONOMY, VoteChoice.SUPPORT, now=NOW, settings=settings)
    assert result.actor.vector.economic == pytest.approx(0.05)
    assert result.actor.history_length == 1
    assert result.changed_axis == "economic"
    assert result.changed is True
    assert result.entry.recorded_at == NOW
    assert result.entry.label == CENTRIST_LABEL


@pytest.mark.parametrize("n", [1, 7, 20, 25])
def test_n_support_votes(settings, n):
    actor = replay(new_citizen("c1"), [(Category.SECURITY, VoteChoice.SUPPORT)] * n, settings=settings)
    assert actor.vector.security == pytest.approx(min(1.0, 0.05 * n))
    assert actor.vector.security <= 1.0
    assert actor.history_length == n


def test_oppose_moves_down(settings):
    result = apply_action(new_citizen("c1"), Category.VALUES, VoteChoice.OPPOSE, settings=settings)
    assert result.actor.vector.values == pytest.approx(-0.05)


@pytest.mark.parametrize(
    "category, choice",
    [(Category.ECONOMY, VoteChoice.ABSTAIN), (Category.OTHER, VoteChoice.SUPPORT), (None, VoteChoice.SUPPORT)],
)
def test_unchanged_snapshot_still_appends(settings, category, choice):
    actor = new_citizen("c1")
    result = apply_action(actor, category, choice, settings=settings)
    assert result.changed is False
    assert result.changed_axis is None
    assert result.actor.history_length == 1


def test_history_rows_never_change(settings):
    first = apply_action(new_citizen("c1"), Category.ECONOMY, VoteChoice.SUPPORT, settings=settings).actor
    later = replay(first, [(Category.ECONOMY, VoteChoice.OPPOSE)] * 3, settings=settings)
    assert later.history[0] == first.history[0]
    assert later.history_length == 4


def test_survey_snapshot():
    declared = [
        DeclaredPosition("r", Category.ECONOMY, 1),
        DeclaredPosition("r", Category.ECONOMY, 2),
        DeclaredPosition("r", Category.SECURITY, 5),
        DeclaredPosition("r", Category.OTHER, 1),
    ]
    v = survey_snapshot(declared)
    assert v.economic == pytest.approx(0.75)
    assert v.security == -1.0
    assert v.values == 0.0


def test_survey_snapshot_keeps_fractional_answers():
    v = survey_snapshot([DeclaredPosition("r", Category.ECONOMY, 2.5)])
    assert v.economic == pytest.approx(0.25)


def test_survey_snapshot_logs_out_of_range_answer(caplog):
    with caplog.at_level("WARNING"):
        v = survey_snapshot([DeclaredPosition("r", Category.SECURITY, 7)])
    assert v.security == -1.0
    assert "out of range for actor=r" in caplog.text
