# services/pivot_engine.py

"""
Discrepancy Detector ("pivot" / "flip" scoring)

Two heuristics:

1) Pivot Score (declared vs revealed), per actor:
   - survey answer r (1–5) -> (3 - r) / 2
   - vote polarity (+1 / -1 / 0) × the item's relevance weight for the
     category axis, averaged per category
   - deviation = |avg_declared - avg_vote| / 2 * 100
   - pivot score = mean deviation over categories that have both sides

2) Decision flip, per vote: a single vote compared against the actor's
   *current* vector on every axis the item touches strongly.

Results are indicators, not findings.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Mapping, Optional, Sequence

from config.dna_settings import DnaSettings, get_settings
from utils.dna_constants import (
    AXES,
    CATEGORY_TO_AXIS,
    SURVEY_ITEM_KEY,
    Category,
    Severity,
    VoteChoice,
)
from utils.dna_models import (
    Actor,
    DeclaredPosition,
    DiscrepancyAlert,
    LegislativeItem,
    RevealedAction,
)
from utils.dna_vector import normalize_likert, round_half_up

logger = logging.getLogger(__name__)

LIKERT_MIN = 1
LIKERT_MAX = 5


# ============================================================
# RESULT TYPES
# ============================================================

@dataclass(frozen=True)
class CategoryDeviation:
    category: Category
    avg_declared: float
    avg_vote: float
    deviation: int
    declared_count: int
    vote_count: int


@dataclass
class PivotResult:
    actor_id: str
    score: int = 0
    categories: List[CategoryDeviation] = field(default_factory=list)
    insufficient_data: bool = True
    # True when some actions had to be skipped (missing item / weight)
    partial: bool = False
    skipped_item_ids: List[str] = field(default_factory=list)

    @property
    def comparable_categories(self) -> int:
        return len(self.categories)


@dataclass(frozen=True)
class FlipCheck:
    axis: str
    actor_value: float
    alignment: float
    inconsistency: float


# ============================================================
# HELPERS
# ============================================================

def clamp_likert(value: float, actor_id: str) -> float:
    """Clamp a survey response into 1–5 (logging the violation)."""
    v = float(value)
    if v < LIKERT_MIN or v > LIKERT_MAX:
        logger.warning(
            "Declared response %s out of range for actor=%s; clamped to [%s, %s]",
            value, actor_id, LIKERT_MIN, LIKERT_MAX,
        )
        v = max(LIKERT_MIN, min(v, LIKERT_MAX))
    return v


def severity_for(magnitude: float, settings: Optional[DnaSettings] = None) -> Severity:
    """
    Severity tier for a discrepancy on the [0, 2] combined scale.
    """
    s = settings or get_settings()
    if magnitude >= s.severity_high_boundary:
        return Severity.HIGH
    if magnitude >= s.severity_medium_boundary:
        return Severity.MEDIUM
    return Severity.LOW


def _deviation_score(diff: float) -> int:
    return max(0, min(100, round_half_up(diff / 2.0 * 100.0)))


# ============================================================
# 1) PIVOT SCORE
# ============================================================

def average_declared(declared: Iterable[DeclaredPosition]) -> Dict[Category, List[float]]:
    grouped: Dict[Category, List[float]] = {}
    for d in declared:
        if d.category not in CATEGORY_TO_AXIS:
            continue
        grouped.setdefault(d.category, []).append(normalize_likert(clamp_likert(d.response, d.actor_id)))
    return grouped


def compute_pivot(
    actor_id: str,
    declared: Sequence[DeclaredPosition],
    actions: Sequence[RevealedAction],
    items: Mapping[str, LegislativeItem],
) -> PivotResult:
    """
    Pivot Score for one actor. Categories missing either declared or revealed
    data are excluded, not zeroed.
    """
    result = PivotResult(actor_id=actor_id)

    declared_by_cat = average_declared(d for d in declared if d.actor_id == actor_id)

    votes_by_cat: Dict[Category, List[float]] = {}
    for a in actions:
        if a.actor_id != actor_id:
            continue
        item = items.get(a.item_id)
        if item is None:
            result.partial = True
            result.skipped_item_ids.append(a.item_id)
            continue
        if item.category not in CATEGORY_TO_AXIS:
            continue
        weight = item.category_weight()
        if weight is None:
            result.partial = True
            result.skipped_item_ids.append(a.item_id)
            continue
        votes_by_cat.setdefault(item.category, []).append(a.choice.polarity * weight)

    total = 0.0
    for category in CATEGORY_TO_AXIS:
        decl = declared_by_cat.get(category)
        votes = votes_by_cat.get(category)
        if not decl or not votes:
            continue

        avg_declared = sum(decl) / len(decl)
        avg_vote = sum(votes) / len(votes)
        diff = abs(avg_declared - avg_vote)
        total += diff / 2.0 * 100.0

        result.categories.append(
            CategoryDeviation(
                category=category,
                avg_declared=avg_declared,
                avg_vote=avg_vote,
                deviation=_deviation_score(diff),
                declared_count=len(decl),
                vote_count=len(votes),
            )
        )

    if result.categories:
        result.insufficient_data = False
        result.score = max(0, min(100, round_half_up(total / len(result.categories))))

    return result


def pivot_alerts(result: PivotResult, settings: Optional[DnaSettings] = None) -> List[DiscrepancyAlert]:
    """
    One alert per comparable category, keyed (actor, category, "survey").
    Re-running on the same inputs produces the same keys and values.
    """
    alerts: List[DiscrepancyAlert] = []
    for c in result.categories:
        magnitude = abs(c.avg_declared - c.avg_vote)
        alerts.append(
            DiscrepancyAlert(
                actor_id=result.actor_id,
                category=c.category,
                item_id=SURVEY_ITEM_KEY,
                deviation=c.deviation,
                severity=severity_for(magnitude, settings),
                rationale=(
                    f"{c.category.value}: declared {c.avg_declared:+.2f} "
                    f"({c.declared_count} answers) vs revealed {c.avg_vote:+.2f} "
                    f"({c.vote_count} votes)"
                ),
            )
        )
    return alerts


def group_pivot_score(results: Iterable[PivotResult]) -> Optional[int]:
    """Mean pivot score over results with comparable data; None if none have."""
    scores = [r.score for r in results if not r.insufficient_data]
    if not scores:
        return None
    return round_half_up(sum(scores) / len(scores))


# ============================================================
# 2) PER-DECISION FLIP
# ============================================================

def flip_checks(
    actor: Actor,
    item: LegislativeItem,
    choice: VoteChoice,
    settings: Optional[DnaSettings] = None,
) -> List[FlipCheck]:
    """
    Axis-level comparison of one vote against the actor's current vector.
    Only axes the item touches above the impact threshold are considered;
    an abstention is never inconsistent.
    """
    s = settings or get_settings()
    if choice.polarity == 0:
        return []

    checks: List[FlipCheck] = []
    for axis in AXES:
        impact = item.impact.get(axis)
        if impact <= s.flip_impact_threshold:
            continue
        actor_value = actor.vector.get(axis)
        alignment = impact * choice.polarity
        inconsistency = abs(actor_value - alignment) if actor_value * alignment < 0 else 0.0
        checks.append(FlipCheck(axis, actor_value, alignment, inconsistency))
    return checks


def detect_decision_flip(
    actor: Actor,
    item: LegislativeItem,
    choice: VoteChoice,
    settings: Optional[DnaSettings] = None,
) -> Optional[DiscrepancyAlert]:
    s = settings or get_settings()
    checks = flip_checks(actor, item, choice, s)
    if not checks:
        return None

    worst = max(checks, key=lambda c: c.inconsistency)
    if worst.inconsistency <= s.flip_threshold:
        return None

    rationale = (
        f"Voted {choice.value} on '{item.title or item.item_id}' although the "
        f"{worst.axis} position is {worst.actor_value:+.2f} "
        f"(item impact {abs(worst.alignment):.2f}, inconsistency {worst.inconsistency:.2f})"
    )

    return DiscrepancyAlert(
        actor_id=actor.actor_id,
        category=item.category,
        item_id=item.item_id,
        deviation=max(0, min(100, round_half_up(worst.inconsistency * 50))),
        severity=severity_for(worst.inconsistency, s),
        rationale=rationale,
    )


def detect_flips_for_item(
    item: LegislativeItem,
    actors: Mapping[str, Actor],
    actions: Iterable[RevealedAction],
    settings: Optional[DnaSettings] = None,
) -> List[DiscrepancyAlert]:
    """All flip alerts raised by one item. Votes by unknown actors are skipped."""
    alerts: List[DiscrepancyAlert] = []
    for a in actions:
        if a.item_id != item.item_id:
            continue
        actor = actors.get(a.actor_id)
        if actor is None:
            logger.info("Flip check skipped: actor=%s not found", a.actor_id)
            continue
        alert = detect_decision_flip(actor, item, a.choice, settings)
        if alert is not None:
            alerts.append(alert)
    return alerts
