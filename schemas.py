from pydantic import BaseModel, Field
from typing import Dict, List, Optional

from utils.dna_constants import AXES


# ============================================================
# VECTORS
# ============================================================
class VectorIn(BaseModel):
    economic: float = 0.0
    values: float = 0.0
    environment: float = 0.0
    regional: float = 0.0
    international: float = 0.0
    security: float = 0.0

    def as_dict(self) -> Dict[str, float]:
        return {axis: getattr(self, axis) for axis in AXES}


class VectorOut(VectorIn):
    pass


# ============================================================
# COMPATIBILITY
# ============================================================
class CompatibilityRequest(BaseModel):
    a: VectorIn
    b: VectorIn


class CompatibilityResponse(BaseModel):
    distance: float
    compatibility: int = Field(ge=0, le=100)
    provocation_tier: str


class MatchOut(BaseModel):
    actor_id: str
    name: str = ""
    party_id: Optional[str] = None
    distance: float
    compatibility: int


class GroupClosenessOut(BaseModel):
    party_id: str
    compatibility: int


class MatchesResponse(BaseModel):
    actor_id: str
    top: List[MatchOut]
    bottom: List[MatchOut]
    groups: List[GroupClosenessOut]
    total: int


class VoteAlignmentOut(BaseModel):
    party_id: str
    score: int
    total_items: int
    agreements: int
    disagreements: int
    neutral_matches: int
    clash_items: List[str] = []


# ============================================================
# DESCRIBE
# ============================================================
class DescribeResponse(BaseModel):
    label: str
    narrative: str
    display: List[float]


# ============================================================
# EVOLUTION
# ============================================================
class RecordActionRequest(BaseModel):
    actor_id: str
    item_id: str
    choice: str


class RecordActionResponse(BaseModel):
    actor_id: str
    vector: VectorOut
    label: str
    changed_axis: Optional[str] = None
    history_length: int
    created: bool
    partial: bool


class ItemProfileRequest(BaseModel):
    item_id: str
    title: str = ""
    kind: str = "bill"
    category: Optional[str] = None
    impact_vector: Dict[str, float] = {}
    relevance_weights: Optional[Dict[str, float]] = None


# ============================================================
# DISCREPANCIES
# ============================================================
class AlertOut(BaseModel):
    actor_id: str
    category: str
    item_id: str
    deviation: int
    severity: str
    rationale: str


class CategoryDeviationOut(BaseModel):
    category: str
    avg_declared: float
    avg_vote: float
    deviation: int


class PivotResponse(BaseModel):
    actor_id: str
    score: int
    insufficient_data: bool
    partial: bool
    skipped_item_ids: List[str] = []
    categories: List[CategoryDeviationOut] = []
    alerts: List[AlertOut] = []


# ============================================================
# GROUPS / FORECAST
# ============================================================
class GroupStatsResponse(BaseModel):
    party_id: str
    window: str
    member_count: int
    cohesion_index: int
    items_counted: int
    axis_friction: Dict[str, float]
    dominant_categories: List[str]
    topic_ownership: Dict[str, float]
    centroid: VectorOut
    polarization_score: Optional[int] = None
    pivot_score: Optional[int] = None
    insight: str = ""
    no_data: bool


class PartyForecastOut(BaseModel):
    party_id: str
    member_count: int
    friction: float
    alignment: str


class ForecastResponse(BaseModel):
    item_id: str
    friction_index: int
    touched_axes: List[str]
    parties: List[PartyForecastOut]
    no_data: bool
