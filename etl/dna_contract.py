# etl/dna_contract.py
"""
DNA Contract (Single Source of Truth)

This module is the only place where store / collaborator naming translations
are allowed. Everything entering the engines passes through here:
- DB row -> PositionVector / Actor / LegislativeItem / DeclaredPosition / RevealedAction
- engine output -> DB row
- text-analysis collaborator payload -> LegislativeItem (clamped)

Upstream scalars are only partially trusted: anything outside its contract
is clamped and logged, never raised.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from utils.dna_constants import (
    AXES,
    ActorKind,
    Category,
    ItemKind,
    VoteChoice,
)
from utils.dna_models import (
    Actor,
    DeclaredPosition,
    DiscrepancyAlert,
    HistoryEntry,
    LegislativeItem,
    RevealedAction,
)
from utils.dna_vector import ImpactVector, PositionVector

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------
# A) Axis -> DB columns (profiles / mp_profiles / dna_actors)
# ---------------------------------------------------------------------
AXIS_TO_DB_COLUMN: Dict[str, str] = {
    "economic": "economic_score",
    "values": "liberal_conservative_score",
    "environment": "environmental_score",
    "regional": "urban_rural_score",
    "international": "international_national_score",
    "security": "security_score",
}

DB_COLUMN_TO_AXIS: Dict[str, str] = {col: axis for axis, col in AXIS_TO_DB_COLUMN.items()}

# The bill tagger historically used "economy" for the economic axis.
_IMPACT_KEY_ALIASES: Dict[str, str] = {
    "economy": "economic",
    "liberal": "values",
    "env": "environment",
    "urban": "regional",
    "global": "international",
}


# ---------------------------------------------------------------------
# B) Type / range helpers
# ---------------------------------------------------------------------
def _as_float(x: Any) -> Optional[float]:
    """float(x), or None when x is not numeric."""
    try:
        return float(x)
    except (TypeError, ValueError):
        return None


def _clamp_logged(value: Any, lo: float, hi: float, *, what: str) -> float:
    v = _as_float(value)
    if v is None:
        logger.warning("%s=%r is not numeric; using 0.0", what, value)
        return 0.0
    if v != v:  # NaN
        logger.warning("%s is NaN; using 0.0", what)
        return 0.0
    if v < lo or v > hi:
        logger.warning("%s=%s outside [%s, %s]; clamped", what, value, lo, hi)
        return max(lo, min(v, hi))
    return v


def _parse_ts(value: Any) -> Optional[datetime]:
    if isinstance(value, datetime):
        return value
    if not value:
        return None
    try:
        dt = datetime.fromisoformat(str(value).replace("Z", "+00:00"))
    except ValueError:
        return None
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt


def _canonical_axis_key(key: str) -> str:
    k = str(key).strip().lower()
    return _IMPACT_KEY_ALIASES.get(k, k)


# ---------------------------------------------------------------------
# C) Vectors
# ---------------------------------------------------------------------
def vector_from_row(row: Dict[str, Any], *, source: str = "row") -> PositionVector:
    """
    Reads the six *_score columns; missing columns are neutral (0.0),
    out-of-range values are clamped and logged.
    """
    values = {
        axis: _clamp_logged(row.get(col) or 0.0, -1.0, 1.0, what=f"{source}.{col}")
        for axis, col in AXIS_TO_DB_COLUMN.items()
    }
    return PositionVector(**values)


def vector_to_row(v: PositionVector) -> Dict[str, float]:
    return {AXIS_TO_DB_COLUMN[axis]: v.get(axis) for axis in AXES}


def vector_from_json(data: Any, *, source: str = "json") -> PositionVector:
    """Named-field JSON (axis names or DB column names)."""
    if not isinstance(data, dict):
        return PositionVector.neutral()
    named: Dict[str, Any] = {}
    for key, value in data.items():
        axis = DB_COLUMN_TO_AXIS.get(key) or _canonical_axis_key(key)
        if axis in AXES:
            named[axis] = value
    return PositionVector(
        **{axis: _clamp_logged(named.get(axis, 0.0), -1.0, 1.0, what=f"{source}.{axis}") for axis in AXES}
    )


def vector_to_json(v: PositionVector) -> Dict[str, float]:
    # dicts preserve insertion order -> axis order
    return v.as_dict()


def impact_from_json(data: Any, *, source: str = "impact") -> ImpactVector:
    if not isinstance(data, dict):
        return ImpactVector()
    named = {_canonical_axis_key(k): v for k, v in data.items()}
    unknown = [k for k in named if k not in AXES]
    if unknown:
        logger.warning("%s has unknown axes %s; ignored", source, unknown)
    return ImpactVector(
        **{axis: _clamp_logged(named.get(axis, 0.0), 0.0, 1.0, what=f"{source}.{axis}") for axis in AXES}
    )


def weights_from_json(data: Any, *, source: str = "relevance_weights") -> Optional[Dict[str, float]]:
    if not isinstance(data, dict) or not data:
        return None
    out: Dict[str, float] = {}
    for key, value in data.items():
        axis = _canonical_axis_key(key)
        if axis not in AXES:
            logger.warning("%s has unknown axis %r; ignored", source, key)
            continue
        out[axis] = _clamp_logged(value, 0.0, 1.0, what=f"{source}.{axis}")
    return out or None


# ---------------------------------------------------------------------
# D) Records
# ---------------------------------------------------------------------
def history_from_row(row: Dict[str, Any]) -> HistoryEntry:
    return HistoryEntry(
        recorded_at=_parse_ts(row.get("recorded_at") or row.get("created_at")) or datetime.now(timezone.utc),
        vector=vector_from_json(row.get("scores_json"), source="history"),
        label=str(row.get("archetype") or ""),
    )


def actor_from_row(row: Dict[str, Any], history_rows: Optional[List[Dict[str, Any]]] = None) -> Actor:
    try:
        kind = ActorKind(str(row.get("kind") or "citizen").lower())
    except ValueError:
        logger.warning("Unknown actor kind %r for actor=%s; treating as citizen", row.get("kind"), row.get("id"))
        kind = ActorKind.CITIZEN

    history = tuple(history_from_row(r) for r in (history_rows or []))
    return Actor(
        actor_id=str(row["id"]),
        kind=kind,
        vector=vector_from_row(row, source=f"actor[{row.get('id')}]"),
        history=history,
        party_id=str(row["party_id"]) if row.get("party_id") is not None else None,
        name=str(row.get("name") or ""),
    )


def item_from_row(row: Dict[str, Any]) -> LegislativeItem:
    try:
        kind = ItemKind(str(row.get("kind") or "bill").lower())
    except ValueError:
        kind = ItemKind.BILL
    item_id = str(row["id"])
    return LegislativeItem(
        item_id=item_id,
        kind=kind,
        title=str(row.get("title") or ""),
        category=Category.parse(row.get("category")),
        impact=impact_from_json(row.get("impact_vector"), source=f"item[{item_id}].impact"),
        relevance_weights=weights_from_json(row.get("relevance_weights"), source=f"item[{item_id}].weights"),
    )


def declared_from_row(row: Dict[str, Any]) -> Optional[DeclaredPosition]:
    actor_id = str(row["actor_id"])
    raw = row.get("response_value")
    parsed = _as_float(raw)
    if parsed is None or parsed != parsed:
        logger.warning("declared[%s] category=%r has no usable response_value (%r); skipped",
                       actor_id, row.get("category"), raw)
        return None
    response = _clamp_logged(parsed, 1, 5, what=f"declared[{actor_id}].response_value")
    return DeclaredPosition(
        actor_id=actor_id,
        category=Category.parse(row.get("category")),
        response=response,
        cycle=str(row.get("cycle") or ""),
    )


def action_from_row(row: Dict[str, Any]) -> Optional[RevealedAction]:
    try:
        choice = VoteChoice.parse(row.get("choice") or row.get("vote_type"))
    except ValueError:
        logger.warning("Unknown vote choice %r (actor=%s item=%s); skipped",
                       row.get("choice"), row.get("actor_id"), row.get("item_id"))
        return None
    return RevealedAction(
        actor_id=str(row["actor_id"]),
        item_id=str(row["item_id"]),
        choice=choice,
        cast_at=_parse_ts(row.get("cast_at")),
    )


def alert_to_row(alert: DiscrepancyAlert, computed_at: str) -> Dict[str, Any]:
    return {
        "actor_id": alert.actor_id,
        "category": alert.category.value,
        "item_id": alert.item_id,
        "deviation_score": int(alert.deviation),
        "severity": alert.severity.value,
        "rationale": alert.rationale,
        "computed_at": computed_at,
    }


# ---------------------------------------------------------------------
# E) Text-analysis collaborator boundary
# ---------------------------------------------------------------------
def ingest_item_profile(item_id: str, payload: Dict[str, Any], *, title: str = "",
                        kind: ItemKind = ItemKind.BILL) -> LegislativeItem:
    """
    Converts the collaborator's {category, impact_vector, relevance_weights?}
    answer into a LegislativeItem. Every scalar is clamped here, before any
    engine sees it.
    """
    payload = payload or {}
    raw_category = payload.get("category")
    category = Category.parse(raw_category)
    if raw_category and category is Category.OTHER and str(raw_category).strip().lower() not in ("other", "muu"):
        logger.warning("item[%s] unknown category %r; using Other", item_id, raw_category)

    impact_raw = payload.get("impact_vector") or payload.get("dna_impact_vector") or payload.get("dna_impact")
    if impact_raw is None:
        logger.warning("item[%s] has no impact vector; all axes set to 0", item_id)

    return LegislativeItem(
        item_id=str(item_id),
        kind=kind,
        title=title or str(payload.get("title") or ""),
        category=category,
        impact=impact_from_json(impact_raw, source=f"item[{item_id}].impact"),
        relevance_weights=weights_from_json(payload.get("relevance_weights"), source=f"item[{item_id}].weights"),
    )


def item_to_row(item: LegislativeItem) -> Dict[str, Any]:
    return {
        "id": item.item_id,
        "kind": item.kind.value,
        "title": item.title,
        "category": item.category.value,
        "impact_vector": item.impact.as_dict(),
        "relevance_weights": item.relevance_weights,
    }


# ---------------------------------------------------------------------
# F) Aggregates -> DB rows
# ---------------------------------------------------------------------
def group_stats_to_row(stats: Any, computed_at: str) -> Dict[str, Any]:
    """services.group_engine.GroupStats -> group_stats row."""
    return {
        "party_id": stats.party_id,
        "window": stats.window,
        "member_count": int(stats.member_count),
        "cohesion_index": int(stats.cohesion_index),
        "items_counted": int(stats.items_counted),
        "axis_friction": {axis: round(stats.axis_friction.get(axis, 0.0), 4) for axis in AXES},
        "dominant_categories": [c.value for c in stats.dominant_categories],
        "topic_ownership": stats.topic_ownership,
        "centroid": vector_to_json(stats.centroid),
        "polarization_score": stats.polarization_score,
        "polarization_vector": stats.polarization_vector or None,
        "pivot_score": stats.pivot_score,
        "pivot_members_counted": int(stats.pivot_members_counted),
        "insight": stats.insight,
        "no_data": bool(stats.no_data),
        "computed_at": computed_at,
    }


def forecast_to_row(forecast: Any, computed_at: str) -> Dict[str, Any]:
    """services.forecast_engine.ItemForecast -> item_forecasts row."""
    return {
        "item_id": forecast.item_id,
        "friction_index": int(forecast.friction_index),
        "party_alignment_prediction": forecast.alignment_prediction,
        "party_friction": {p.party_id: round(p.friction, 4) for p in forecast.parties},
        "touched_axes": list(forecast.touched_axes),
        "no_data": bool(forecast.no_data),
        "computed_at": computed_at,
    }


def snapshot_rpc_params(actor: Actor, entry: HistoryEntry, expected_history_length: int) -> Dict[str, Any]:
    """Arguments of the record_dna_snapshot() database function."""
    return {
        "p_actor_id": actor.actor_id,
        "p_kind": actor.kind.value,
        "p_party_id": actor.party_id,
        "p_scores": vector_to_row(actor.vector),
        "p_scores_json": vector_to_json(entry.vector),
        "p_archetype": entry.label,
        "p_recorded_at": entry.recorded_at.isoformat(),
        "p_expected_history_length": int(expected_history_length),
    }
