# tests/test_group_engine.py

import pytest

from services.group_engine import (
    axis_friction,
    cohesion_index,
    compute_group_stats,
    dominant_categories,
    item_cohesion,
    party_insight,
    polarization,
    topic_ownership,
)
from utils.dna_constants import Category, VoteChoice
from utils.dna_models import LegislativeItem, RevealedAction
from utils.dna_vector import PositionVector

S, O, A = VoteChoice.SUPPORT, VoteChoice.OPPOSE, VoteChoice.ABSTAIN


def _votes(item_id, *choices):
    return [RevealedAction(f"m{i}", item_id, c) for i, c in enumerate(choices)]


def test_unanimous_is_full_cohesion():
    assert cohesion_index(_votes("i1", S, S, S)) == (100, 1)


def test_even_split_is_zero_cohesion():
    assert cohesion_index(_votes("i1", S, S, O, O)) == (0, 1)


def test_two_to_one_split():
    assert item_cohesion(2, 1) == pytest.approx(0.333, abs=1e-3)
    assert cohesion_index(_votes("i1", S, S, O)) == (33, 1)


def test_items_with_fewer_than_two_voters_excluded():
    actions = _votes("i1", S, A, A) + _votes("i2", O, O)
    assert cohesion_index(actions) == (100, 1)
    assert cohesion_index(_votes("i3", S)) == (0, 0)


def test_dominant_categories_ties_by_enum_order():
    items = {
        "e": LegislativeItem("e", Category.ENVIRONMENT),
        "c": LegislativeItem("c", Category.ECONOMY),
        "s": LegislativeItem("s", Category.SECURITY),
        "o": LegislativeItem("o", Category.OTHER),
        "v": LegislativeItem("v", Category.VALUES),
    }
    actions = (
        _votes("o", S, S, S, S, S)
        + _votes("s", S, S, S)
        + _votes("e", S, O)
        + _votes("c", O, O)
        + _votes("v", S)
    )
    assert dominant_categories(actions, items) == [Category.SECURITY, Category.ECONOMY, Category.ENVIRONMENT]


def test_topic_ownership_covers_core_categories():
    out = topic_ownership({Category.ECONOMY: 4}, member_count=2)
    assert out["Economy"] == 2.0
    assert out["Security"] == 0.0
    assert "Other" not in out
    assert len(out) == 6


def test_axis_friction_is_variance_times_100():
    out = axis_friction([PositionVector(economic=1.0), PositionVector(economic=-1.0)])
    assert out["economic"] == pytest.approx(100.0)
    assert out["values"] == 0.0


def test_polarization_against_median():
    score, vec = polarization([PositionVector(economic=1.0)], PositionVector.neutral())
    assert score == 50
    assert vec["economic"] == 1.0
    far, _ = polarization(
        [PositionVector.from_sequence([1, 1, 1, 1, 1, 1])],
        PositionVector.from_sequence([-1, -1, -1, -1, -1, -1]),
    )
    assert far == 100


@pytest.mark.parametrize(
    "pivot, cohesion, expected",
    [(10, 95, "consistent"), (40, 95, "drifting"), (20, 60, "fragmented"), (20, 85, "established"), (None, 85, "established")],
)
def test_party_insight(pivot, cohesion, expected):
    assert party_insight(pivot, cohesion) == expected


def test_empty_party_is_no_data():
    stats = compute_group_stats("P", [], [], {})
    assert stats.no_data is True
    assert stats.member_count == 0
    assert stats.dominant_categories == []


def test_compute_group_stats(settings):
    items = {"i1": LegislativeItem("i1", Category.ECONOMY)}
    members = [PositionVector(economic=0.5), PositionVector(economic=-0.5), PositionVector(economic=0.0)]
    stats = compute_group_stats(
        "P",
        members,
        _votes("i1", S, S, O),
        items,
        parliament_median=PositionVector.neutral(),
        member_pivots=[10, 20],
        settings=settings,
    )
    assert stats.no_data is False
    assert stats.cohesion_index == 33
    assert stats.items_counted == 1
    assert stats.dominant_categories == [Category.ECONOMY]
    assert stats.topic_ownership["Economy"] == pytest.approx(1.0)
    assert stats.pivot_score == 15
    assert stats.pivot_members_counted == 2
    assert stats.polarization_score == 0
    assert stats.insight == "fragmented"


def test_cohesion_exact_half_rounds_up():
    actions = (
        _votes("i1", S, O)
        + _votes("i2", S, O)
        + _votes("i3", S, O)
        + _votes("i4", S, S, S, O)
    )
    assert cohesion_index(actions) == (13, 4)
