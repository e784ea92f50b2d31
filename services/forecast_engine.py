# services/forecast_engine.py

"""
Conflict Forecast Engine ("weather forecast" for a bill)

Friction is about internal spread, not about polarity: a homogeneous party
faces low friction whichever way it leans, a party split on the axes an item
touches faces high friction.

    party friction = Σ_{axis: impact > 0.2} variance(axis) × impact × 100
    friction index = min(100, round(2 × mean(party friction)))
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, List, Mapping, Optional, Sequence

from config.dna_settings import DnaSettings, get_settings
from utils.dna_constants import AXES
from utils.dna_models import LegislativeItem
from utils.dna_vector import ImpactVector, PositionVector, axis_variance, mean_vector, round_half_up

SUPPORTS = "supports"
OPPOSES = "opposes"
DIVIDED = "internally divided"


@dataclass(frozen=True)
class PartyForecast:
    party_id: str
    member_count: int
    friction: float
    lean: float
    alignment: str


@dataclass
class ItemForecast:
    item_id: str
    friction_index: int = 0
    parties: List[PartyForecast] = field(default_factory=list)
    touched_axes: List[str] = field(default_factory=list)
    no_data: bool = True

    @property
    def alignment_prediction(self) -> Dict[str, str]:
        return {p.party_id: p.alignment for p in self.parties}


def party_friction(
    vectors: Sequence[PositionVector],
    impact: ImpactVector,
    threshold: float,
) -> float:
    friction = 0.0
    for axis in impact.axes_above(threshold):
        friction += axis_variance(vectors, axis) * impact.get(axis) * 100.0
    return friction


def party_lean(vectors: Sequence[PositionVector], impact: ImpactVector) -> float:
    """
    Impact-weighted mean position of the party on the axes the item touches.
    """
    centroid = mean_vector(vectors)
    total_weight = sum(impact.as_tuple())
    if total_weight <= 0:
        return 0.0
    return sum(centroid.get(axis) * impact.get(axis) for axis in AXES) / total_weight


def forecast_item(
    item: LegislativeItem,
    party_members: Mapping[str, Sequence[PositionVector]],
    settings: Optional[DnaSettings] = None,
) -> ItemForecast:
    s = settings or get_settings()
    forecast = ItemForecast(
        item_id=item.item_id,
        touched_axes=item.impact.axes_above(s.forecast_impact_threshold),
    )

    for party_id in sorted(party_members):
        vectors = list(party_members[party_id])
        if not vectors:
            continue

        friction = party_friction(vectors, item.impact, s.forecast_impact_threshold)
        lean = party_lean(vectors, item.impact)

        if friction > s.divided_friction_threshold:
            alignment = DIVIDED
        elif lean > 0:
            alignment = SUPPORTS
        else:
            alignment = OPPOSES

        forecast.parties.append(
            PartyForecast(
                party_id=party_id,
                member_count=len(vectors),
                friction=friction,
                lean=lean,
                alignment=alignment,
            )
        )

    if forecast.parties:
        mean_friction = sum(p.friction for p in forecast.parties) / len(forecast.parties)
        forecast.friction_index = min(100, round_half_up(2 * mean_friction))
        forecast.no_data = False

    return forecast
