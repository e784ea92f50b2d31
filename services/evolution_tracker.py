# services/evolution_tracker.py

"""
Profile Evolution Tracker

Every observed action nudges one axis by a fixed step and appends exactly one
history row:

    axis' = clamp(axis + step × polarity)     (support +1, oppose -1)

Abstentions and items whose category has no axis still append an unchanged
snapshot. The step is a constant, not learned.

Computation only: the caller persists (vector, history row) in one store call.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import datetime, timezone
from typing import Dict, Iterable, List, Optional

from config.dna_settings import DnaSettings, get_settings
from services.pivot_engine import clamp_likert
from utils.dna_constants import ActorKind, Category, VoteChoice, axis_for
from utils.dna_models import Actor, DeclaredPosition, HistoryEntry
from utils.dna_vector import PositionVector, clamp, clamp_axis, normalize_likert
from utils.profile_describer import describe


@dataclass(frozen=True)
class EvolutionResult:
    actor: Actor
    entry: HistoryEntry
    changed_axis: Optional[str]
    previous_vector: PositionVector

    @property
    def changed(self) -> bool:
        return self.actor.vector != self.previous_vector


def _now() -> datetime:
    return datetime.now(timezone.utc)


def new_citizen(actor_id: str) -> Actor:
    """Neutral citizen created at first interaction (empty history)."""
    return Actor(actor_id=actor_id, kind=ActorKind.CITIZEN)


def snapshot(actor: Actor, vector: PositionVector, *, now: Optional[datetime] = None,
             settings: Optional[DnaSettings] = None) -> EvolutionResult:
    """Append a history row for `vector` and make it current."""
    s = settings or get_settings()
    label, _ = describe(vector, s.describe_threshold)
    entry = HistoryEntry(recorded_at=now or _now(), vector=vector, label=label)
    updated = replace(actor, vector=vector, history=actor.history + (entry,))
    return EvolutionResult(
        actor=updated,
        entry=entry,
        changed_axis=None,
        previous_vector=actor.vector,
    )


def apply_action(
    actor: Actor,
    category: Optional[Category],
    choice: VoteChoice,
    *,
    now: Optional[datetime] = None,
    settings: Optional[DnaSettings] = None,
) -> EvolutionResult:
    s = settings or get_settings()
    axis = axis_for(category) if category is not None else None

    if axis is None or choice.polarity == 0:
        return snapshot(actor, actor.vector, now=now, settings=s)

    current = clamp(actor.vector)
    new_value = clamp_axis(current.get(axis) + s.evolution_step * choice.polarity)
    result = snapshot(actor, current.with_axis(axis, new_value), now=now, settings=s)
    return replace(result, changed_axis=axis)


def replay(
    actor: Actor,
    actions: Iterable[tuple],
    *,
    settings: Optional[DnaSettings] = None,
) -> Actor:
    """
    Applies (category, choice) pairs in order; returns the final actor.
    Used to rebuild a profile from its action log.
    """
    for category, choice in actions:
        actor = apply_action(actor, category, choice, settings=settings).actor
    return actor


def survey_snapshot(declared: Iterable[DeclaredPosition]) -> PositionVector:
    """
    Initial vector of a representative / party from survey answers: each
    mapped axis is the mean normalized answer of its category. Axes with no
    answers stay neutral.
    """
    grouped: Dict[str, List[float]] = {}
    for d in declared:
        axis = axis_for(d.category)
        if axis is None:
            continue
        response = clamp_likert(d.response, d.actor_id)
        grouped.setdefault(axis, []).append(normalize_likert(response))

    vector = PositionVector.neutral()
    for axis, values in grouped.items():
        vector = vector.with_axis(axis, clamp_axis(sum(values) / len(values)))
    return vector
