# utils/dna_models.py

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Dict, Optional, Tuple

from utils.dna_constants import (
    ActorKind,
    Category,
    ItemKind,
    Severity,
    VoteChoice,
    axis_for,
)
from utils.dna_vector import ImpactVector, PositionVector


@dataclass(frozen=True)
class HistoryEntry:
    recorded_at: datetime
    vector: PositionVector
    label: str


@dataclass(frozen=True)
class Actor:
    actor_id: str
    kind: ActorKind
    vector: PositionVector = field(default_factory=PositionVector.neutral)
    history: Tuple[HistoryEntry, ...] = ()
    party_id: Optional[str] = None
    name: str = ""

    @property
    def history_length(self) -> int:
        return len(self.history)


@dataclass(frozen=True)
class LegislativeItem:
    item_id: str
    category: Category
    impact: ImpactVector = field(default_factory=ImpactVector)
    kind: ItemKind = ItemKind.BILL
    title: str = ""
    # Optional per-axis weights from the text-analysis collaborator
    relevance_weights: Optional[Dict[str, float]] = None

    def category_weight(self) -> Optional[float]:
        """
        Relevance of this item for its own category's axis.
        Explicit relevance weight wins; otherwise the impact magnitude.
        None when the category has no axis.
        """
        axis = axis_for(self.category)
        if axis is None:
            return None
        if self.relevance_weights and axis in self.relevance_weights:
            return float(self.relevance_weights[axis])
        return self.impact.get(axis)


@dataclass(frozen=True)
class DeclaredPosition:
    actor_id: str
    category: Category
    response: float  # 1–5 Likert
    cycle: str = ""


@dataclass(frozen=True)
class RevealedAction:
    actor_id: str
    item_id: str
    choice: VoteChoice
    cast_at: Optional[datetime] = None


@dataclass(frozen=True)
class DiscrepancyAlert:
    actor_id: str
    category: Category
    item_id: str
    deviation: int
    severity: Severity
    rationale: str

    @property
    def key(self) -> Tuple[str, str, str]:
        return (self.actor_id, self.category.value, self.item_id)
