# services/group_engine.py

"""
Group Aggregation Engine

Party-level statistics from member vectors and category-tagged votes:
- cohesion index (Rice index, 0–100)
- per-axis friction (member variance × 100)
- dominant categories (top-N by vote count, Other excluded)
- topic ownership, polarization vs the parliament median, party pivot
"""

from __future__ import annotations

from collections import Counter, defaultdict
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Mapping, Optional, Sequence, Tuple

from config.dna_settings import DnaSettings, get_settings
from services.compatibility import distance
from utils.dna_constants import AXES, CORE_CATEGORIES, Category, VoteChoice
from utils.dna_models import LegislativeItem, RevealedAction
from utils.dna_vector import PositionVector, axis_variance, mean_vector, offset, round_half_up

ALL_TIME_WINDOW = "all"


@dataclass
class GroupStats:
    party_id: str
    window: str = ALL_TIME_WINDOW
    member_count: int = 0
    cohesion_index: int = 0
    items_counted: int = 0
    axis_friction: Dict[str, float] = field(default_factory=dict)
    dominant_categories: List[Category] = field(default_factory=list)
    topic_ownership: Dict[str, float] = field(default_factory=dict)
    centroid: PositionVector = field(default_factory=PositionVector.neutral)
    polarization_score: Optional[int] = None
    polarization_vector: Dict[str, float] = field(default_factory=dict)
    pivot_score: Optional[int] = None
    pivot_members_counted: int = 0
    insight: str = ""
    # No qualifying vote data at all
    no_data: bool = True


# ============================================================
# COHESION
# ============================================================

def item_cohesion(support: int, oppose: int) -> float:
    """|s - o| / (s + o); 0.0 when nobody voted either way."""
    total = support + oppose
    if total <= 0:
        return 0.0
    return abs(support - oppose) / total


def tally_by_item(actions: Iterable[RevealedAction]) -> Dict[str, Tuple[int, int]]:
    counts: Dict[str, List[int]] = defaultdict(lambda: [0, 0])
    for a in actions:
        if a.choice is VoteChoice.SUPPORT:
            counts[a.item_id][0] += 1
        elif a.choice is VoteChoice.OPPOSE:
            counts[a.item_id][1] += 1
    return {item_id: (c[0], c[1]) for item_id, c in counts.items()}


def cohesion_index(actions: Iterable[RevealedAction]) -> Tuple[int, int]:
    """
    Returns (index 0–100, qualifying item count).
    Items with fewer than two support/oppose voters are excluded.
    """
    values = [
        item_cohesion(s, o)
        for s, o in tally_by_item(actions).values()
        if s + o >= 2
    ]
    if not values:
        return 0, 0
    return round_half_up(sum(values) / len(values) * 100), len(values)


# ============================================================
# TOPICS
# ============================================================

def category_counts(
    actions: Iterable[RevealedAction],
    items: Mapping[str, LegislativeItem],
) -> Counter:
    counts: Counter = Counter()
    for a in actions:
        item = items.get(a.item_id)
        if item is None or item.category is Category.OTHER:
            continue
        counts[item.category] += 1
    return counts


def dominant_categories(
    actions: Iterable[RevealedAction],
    items: Mapping[str, LegislativeItem],
    limit: int = 3,
) -> List[Category]:
    counts = category_counts(actions, items)
    order = {c: i for i, c in enumerate(Category)}
    ranked = sorted(counts.items(), key=lambda kv: (-kv[1], order[kv[0]]))
    return [c for c, _ in ranked[:limit]]


def topic_ownership(counts: Mapping[Category, int], member_count: int) -> Dict[str, float]:
    """Votes per member in each core category (all six always present)."""
    if member_count <= 0:
        return {c.value: 0.0 for c in CORE_CATEGORIES}
    return {c.value: counts.get(c, 0) / member_count for c in CORE_CATEGORIES}


# ============================================================
# VECTOR SPREAD
# ============================================================

def axis_friction(vectors: Sequence[PositionVector]) -> Dict[str, float]:
    return {axis: axis_variance(vectors, axis) * 100.0 for axis in AXES}


def polarization(
    vectors: Sequence[PositionVector],
    parliament_median: PositionVector,
) -> Tuple[int, Dict[str, float]]:
    """
    Distance of the party centroid from the parliament median.
    Score = round(distance * 50), capped at 100.
    """
    centroid = mean_vector(vectors)
    d = distance(centroid, parliament_median)
    return min(100, round_half_up(d * 50)), offset(centroid, parliament_median)


def party_insight(pivot: Optional[int], cohesion: int) -> str:
    p = pivot or 0
    if p < 15 and cohesion > 90:
        return "consistent"
    if p > 30:
        return "drifting"
    if cohesion < 80:
        return "fragmented"
    return "established"


# ============================================================
# AGGREGATE
# ============================================================

def compute_group_stats(
    party_id: str,
    member_vectors: Sequence[PositionVector],
    actions: Sequence[RevealedAction],
    items: Mapping[str, LegislativeItem],
    *,
    window: str = ALL_TIME_WINDOW,
    parliament_median: Optional[PositionVector] = None,
    member_pivots: Optional[Sequence[int]] = None,
    settings: Optional[DnaSettings] = None,
) -> GroupStats:
    """
    member_pivots: pivot scores of members that have comparable data
    (already sampled by the caller).
    """
    s = settings or get_settings()
    stats = GroupStats(party_id=party_id, window=window, member_count=len(member_vectors))

    if not member_vectors and not actions:
        return stats

    cohesion, counted = cohesion_index(actions)
    counts = category_counts(actions, items)

    stats.cohesion_index = cohesion
    stats.items_counted = counted
    stats.no_data = counted == 0
    if not stats.no_data:
        stats.dominant_categories = dominant_categories(actions, items, s.dominant_category_limit)
    stats.topic_ownership = topic_ownership(counts, len(member_vectors))

    if member_vectors:
        stats.axis_friction = axis_friction(member_vectors)
        stats.centroid = mean_vector(member_vectors)
        if parliament_median is not None:
            stats.polarization_score, stats.polarization_vector = polarization(
                member_vectors, parliament_median
            )

    if member_pivots:
        stats.pivot_score = round_half_up(sum(member_pivots) / len(member_pivots))
        stats.pivot_members_counted = len(member_pivots)

    stats.insight = party_insight(stats.pivot_score, stats.cohesion_index) if not stats.no_data else ""
    return stats
