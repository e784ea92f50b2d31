# services/compatibility.py

"""
Distance & Compatibility Calculator

One metric for every matching use case: citizen ↔ representative,
citizen ↔ citizen, actor ↔ party ("tribe" matching).

    distance      = sqrt(Σ (a_i - b_i)^2)              range [0, √24]
    compatibility = max(0, round(100 * (1 - d / √24)))  int   [0, 100]
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Mapping, Optional, Sequence, Tuple

from utils.dna_constants import AXES, AXIS_MAX, AXIS_MIN, VoteChoice
from utils.dna_vector import PositionVector, round_half_up

# sqrt(6 * 2^2)
MAX_DISTANCE: float = math.sqrt(len(AXES) * (AXIS_MAX - AXIS_MIN) ** 2)


# ============================================================
# CORE METRIC
# ============================================================

def distance(a: PositionVector, b: PositionVector) -> float:
    return math.sqrt(sum((x - y) ** 2 for x, y in zip(a.as_tuple(), b.as_tuple())))


def compatibility_from_distance(d: float) -> int:
    return max(0, min(100, round_half_up(100.0 * (1.0 - d / MAX_DISTANCE))))


def compatibility(a: PositionVector, b: PositionVector) -> int:
    return compatibility_from_distance(distance(a, b))


def provocation_tier(d: float) -> str:
    """Debate temperature between two positions."""
    if d > 2.5:
        return "high"
    if d > 1.5:
        return "medium"
    return "low"


# ============================================================
# RANKED MATCHING
# ============================================================

@dataclass(frozen=True)
class MatchCandidate:
    actor_id: str
    vector: PositionVector
    group: Optional[str] = None
    name: str = ""


@dataclass(frozen=True)
class MatchResult:
    actor_id: str
    name: str
    group: Optional[str]
    distance: float
    compatibility: int


def rank_matches(
    target: PositionVector,
    candidates: Iterable[MatchCandidate],
    *,
    exclude_id: Optional[str] = None,
) -> List[MatchResult]:
    """
    Scores every candidate against target, best match first.
    Ties are broken by actor_id so the ordering is deterministic.
    """
    results: List[MatchResult] = []
    for c in candidates:
        if exclude_id is not None and c.actor_id == exclude_id:
            continue
        d = distance(target, c.vector)
        results.append(
            MatchResult(
                actor_id=c.actor_id,
                name=c.name,
                group=c.group,
                distance=d,
                compatibility=compatibility_from_distance(d),
            )
        )
    results.sort(key=lambda r: (-r.compatibility, r.distance, r.actor_id))
    return results


def top_and_bottom(matches: Sequence[MatchResult], limit: int = 3) -> Tuple[List[MatchResult], List[MatchResult]]:
    top = list(matches[:limit])
    bottom = list(reversed(matches[-limit:])) if matches else []
    return top, bottom


def group_closeness(matches: Iterable[MatchResult]) -> List[Tuple[str, int]]:
    """
    Mean compatibility per group (party), closest group first.
    Matches without a group are ignored.
    """
    totals: Dict[str, List[int]] = {}
    for m in matches:
        if not m.group:
            continue
        totals.setdefault(m.group, []).append(m.compatibility)

    out = [(g, round_half_up(sum(v) / len(v))) for g, v in totals.items() if v]
    out.sort(key=lambda x: (-x[1], x[0]))
    return out


# ============================================================
# VOTE ALIGNMENT (citizen votes vs party stances)
# ============================================================

def stance_agreement(user_choice: VoteChoice, party_choice: VoteChoice) -> float:
    """1.0 same stance, 0.0 direct opposition, 0.5 when either side abstains."""
    if user_choice is party_choice:
        return 1.0
    if user_choice.polarity * party_choice.polarity < 0:
        return 0.0
    return 0.5


@dataclass
class VoteAlignment:
    group: str
    score: int = 0
    total_items: int = 0
    agreements: int = 0
    disagreements: int = 0
    neutral_matches: int = 0
    agreement_items: List[str] = field(default_factory=list)
    clash_items: List[str] = field(default_factory=list)


def vote_alignment(
    user_votes: Mapping[str, VoteChoice],
    group_stances: Mapping[str, Mapping[str, VoteChoice]],
) -> List[VoteAlignment]:
    """
    user_votes:    item_id -> choice
    group_stances: group -> {item_id -> choice}

    Only items both sides voted on count. Highest alignment first.
    """
    results: List[VoteAlignment] = []

    for group, stances in group_stances.items():
        res = VoteAlignment(group=group)
        total = 0.0
        for item_id, stance in stances.items():
            user_choice = user_votes.get(item_id)
            if user_choice is None:
                continue
            s = stance_agreement(user_choice, stance)
            total += s
            res.total_items += 1
            if s == 1.0:
                res.agreements += 1
                res.agreement_items.append(item_id)
            elif s == 0.0:
                res.disagreements += 1
                res.clash_items.append(item_id)
            else:
                res.neutral_matches += 1

        if res.total_items == 0:
            continue
        res.score = round_half_up(total / res.total_items * 100)
        results.append(res)

    results.sort(key=lambda r: (-r.score, r.group))
    return results
