from utils.dna_vector import PositionVector
from utils.profile_describer import CENTRIST_LABEL, describe, significant_axes


def test_neutral_is_centrist():
    label, narrative = describe(PositionVector.neutral())
    assert label == CENTRIST_LABEL
    assert narrative


def test_small_values_stay_centrist():
    label, _ = describe(PositionVector(economic=0.05, security=-0.1))
    assert label == CENTRIST_LABEL


def test_two_strongest_axes_build_label():
    v = PositionVector(economic=0.8, values=0.4, security=-0.2, regional=0.16)
    label, narrative = describe(v)
    assert label == "Conservative market-driven"
    # three strongest axes only
    assert narrative.count("They ") == 3
    assert narrative.startswith("They value free markets")


def test_single_axis_label():
    label, _ = describe(PositionVector(environment=-0.5))
    assert label == "Industry-minded"


def test_significant_axes_threshold():
    v = PositionVector(economic=0.2, values=-0.9)
    assert [a for a, _ in significant_axes(v, 0.5)] == ["values"]
    assert describe(v, threshold=0.95)[0] == CENTRIST_LABEL
