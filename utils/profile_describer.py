# utils/profile_describer.py

"""
Profile describer: turns a PositionVector into a short archetype label and a
narrative sentence list. Presentation helper; pure.
"""

from __future__ import annotations

from typing import Dict, List, Optional, Tuple

from utils.dna_vector import PositionVector

DEFAULT_THRESHOLD = 0.15

CENTRIST_LABEL = "Centrist Pragmatist"
CENTRIST_NARRATIVE = (
    "Balanced and pragmatic voting behaviour. Not firmly committed to either "
    "end of any axis; weighs issues case by case."
)

# axis -> (negative label, positive label, negative description, positive description)
AXIS_LABELS: Dict[str, Tuple[str, str, str, str]] = {
    "economic": (
        "Left-leaning",
        "Market-driven",
        "emphasise a strong public sector and social justice",
        "value free markets, individual responsibility and growth",
    ),
    "values": (
        "Liberal",
        "Conservative",
        "defend individual freedoms and new values",
        "want to preserve traditions and social stability",
    ),
    "environment": (
        "Industry-minded",
        "Nature defender",
        "prioritise use of natural resources and economic realism",
        "put biodiversity and climate action first",
    ),
    "regional": (
        "Urbanist",
        "Regionalist",
        "see developing growth centres and efficiency as key",
        "want the whole country inhabited and services decentralised",
    ),
    "international": (
        "Nationalist",
        "Globalist",
        "stress national interest and independent decision-making",
        "believe in international cooperation and EU integration",
    ),
    "security": (
        "Soft-liner",
        "Security hawk",
        "emphasise diplomacy, peace and soft power",
        "back strong defence and military readiness",
    ),
}


def _label(axis: str, value: float) -> str:
    neg, pos, _, _ = AXIS_LABELS[axis]
    return pos if value > 0 else neg


def _sentence(axis: str, value: float) -> str:
    _, _, neg_desc, pos_desc = AXIS_LABELS[axis]
    return f"They {pos_desc if value > 0 else neg_desc}."


def significant_axes(v: PositionVector, threshold: float = DEFAULT_THRESHOLD) -> List[Tuple[str, float]]:
    """Axes with |value| > threshold, strongest first (ties keep axis order)."""
    picked = [(axis, value) for axis, value in v.as_dict().items() if abs(value) > threshold]
    return sorted(picked, key=lambda item: abs(item[1]), reverse=True)


def describe(v: PositionVector, threshold: Optional[float] = None) -> Tuple[str, str]:
    """
    Returns (label, narrative).

    The label is built from the one or two strongest axes, e.g.
    "Conservative market-driven"; the narrative has one sentence for each of
    the three strongest axes.
    """
    axes = significant_axes(v, DEFAULT_THRESHOLD if threshold is None else threshold)
    if not axes:
        return CENTRIST_LABEL, CENTRIST_NARRATIVE

    primary_axis, primary_val = axes[0]
    primary = _label(primary_axis, primary_val)

    if len(axes) > 1:
        secondary_axis, secondary_val = axes[1]
        label = f"{_label(secondary_axis, secondary_val)} {primary.lower()}"
    else:
        label = primary

    narrative = " ".join(_sentence(axis, value) for axis, value in axes[:3])
    return label, narrative
