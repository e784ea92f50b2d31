# tests/test_dna_vector.py

import pytest

from utils.dna_constants import AXES, Category, VoteChoice, axis_for
from utils.dna_vector import (
    ImpactVector,
    PositionVector,
    axis_variance,
    clamp,
    mean_vector,
    median_vector,
    normalize_for_display,
    normalize_likert,
    offset,
    round_half_up,
)


def test_axis_order_is_fixed():
    assert AXES == ("economic", "values", "environment", "regional", "international", "security")
    v = PositionVector.from_sequence([0.1, 0.2, 0.3, 0.4, 0.5, 0.6])
    assert list(v.as_dict()) == list(AXES)
    assert v.as_tuple() == (0.1, 0.2, 0.3, 0.4, 0.5, 0.6)


def test_from_sequence_rejects_wrong_length():
    with pytest.raises(ValueError):
        PositionVector.from_sequence([0.0] * 5)


@pytest.mark.parametrize(
    "raw",
    [
        (2.0, -3.0, 0.5, 1.0, -1.0, 0.0),
        (0.0, 0.0, 0.0, 0.0, 0.0, 0.0),
        (-1.5, 1.5, -0.2, 7.0, -0.99, 1.01),
    ],
)
def test_clamp_is_idempotent(raw):
    v = PositionVector.from_sequence(raw)
    once = clamp(v)
    assert clamp(once) == once
    assert once.is_clamped()


def test_clamp_values():
    v = clamp(PositionVector(economic=2.0, values=-3.0, environment=0.5))
    assert v.economic == 1.0
    assert v.values == -1.0
    assert v.environment == 0.5


def test_normalize_for_display():
    v = PositionVector(economic=-1.0, values=1.0)
    display = normalize_for_display(v)
    assert display[0] == 0.0
    assert display[1] == 100.0
    assert display[2] == 50.0


def test_normalize_likert():
    assert normalize_likert(1) == 1.0
    assert normalize_likert(3) == 0.0
    assert normalize_likert(5) == -1.0


def test_impact_vector_rejects_negative():
    with pytest.raises(ValueError):
        ImpactVector(economic=-0.1)


def test_impact_axes_above():
    impact = ImpactVector(economic=0.5, security=0.25, values=0.2)
    assert impact.axes_above(0.2) == ["economic", "security"]


def test_mean_median_variance():
    vs = [PositionVector(economic=x) for x in (-1.0, 0.0, 0.5)]
    assert mean_vector(vs).economic == pytest.approx(-0.5 / 3)
    assert median_vector(vs).economic == 0.0
    assert axis_variance([PositionVector(economic=1.0), PositionVector(economic=-1.0)], "economic") == 1.0
    assert axis_variance([], "economic") == 0.0
    assert mean_vector([]) == PositionVector.neutral()


def test_offset_is_signed_difference():
    d = offset(PositionVector(economic=1.0), PositionVector(economic=-1.0))
    assert d["economic"] == 2.0
    assert d["security"] == 0.0


def test_category_mapping_and_aliases():
    assert axis_for(Category.ECONOMY) == "economic"
    assert axis_for(Category.OTHER) is None
    assert Category.parse("Talous") is Category.ECONOMY
    assert Category.parse("ympäristö") is Category.ENVIRONMENT
    assert Category.parse("something else") is Category.OTHER
    assert Category.parse(None) is Category.OTHER


def test_vote_choice_parse():
    assert VoteChoice.parse("jaa") is VoteChoice.SUPPORT
    assert VoteChoice.parse("against") is VoteChoice.OPPOSE
    assert VoteChoice.parse("poissa").polarity == 0
    with pytest.raises(ValueError):
        VoteChoice.parse("maybe")


@pytest.mark.parametrize("x, expected", [(12.5, 13), (62.5, 63), (0.5, 1), (12.49, 12), (99.5, 100), (0.0, 0)])
def test_round_half_up(x, expected):
    assert round_half_up(x) == expected
