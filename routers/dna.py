"""
routers/dna.py

Political DNA API
────────────────────────────────────────
- Compatibility between two vectors
- Actor matches (representatives ranked by compatibility)
- Record action (profile evolution)
- Pivot score + survey alerts
- Decision flips per item
- Party statistics
- Item conflict forecast

Errors:
- StoreFailure -> 503 (store unreachable, nothing written)
- ValueError   -> 404 (actor / item / party unknown)
"""

from __future__ import annotations

from typing import List, Optional

from fastapi import APIRouter, HTTPException, Query

from schemas import (
    AlertOut,
    CategoryDeviationOut,
    CompatibilityRequest,
    CompatibilityResponse,
    DescribeResponse,
    ForecastResponse,
    GroupClosenessOut,
    GroupStatsResponse,
    ItemProfileRequest,
    MatchOut,
    MatchesResponse,
    PartyForecastOut,
    PivotResponse,
    RecordActionRequest,
    RecordActionResponse,
    VectorIn,
    VectorOut,
    VoteAlignmentOut,
)
from services import dna_service
from services.compatibility import compatibility_from_distance, distance, provocation_tier
from services.dna_repository import StoreFailure
from utils.dna_constants import ItemKind, VoteChoice
from utils.dna_models import DiscrepancyAlert
from utils.dna_vector import PositionVector, clamp, normalize_for_display
from utils.profile_describer import describe

router = APIRouter(
    prefix="/api/dna",
    tags=["Political DNA"],
)


# ============================================================
# Helpers
# ============================================================

def _vector(v: VectorIn) -> PositionVector:
    return clamp(PositionVector(**v.as_dict()))


def _alert_out(a: DiscrepancyAlert) -> AlertOut:
    return AlertOut(
        actor_id=a.actor_id,
        category=a.category.value,
        item_id=a.item_id,
        deviation=a.deviation,
        severity=a.severity.value,
        rationale=a.rationale,
    )


def _store_unavailable(e: StoreFailure) -> HTTPException:
    return HTTPException(status_code=503, detail=f"Store unavailable: {e}")


# ============================================================
# Pure computations
# ============================================================

@router.post("/compatibility", response_model=CompatibilityResponse)
def compare_vectors(body: CompatibilityRequest):
    d = distance(_vector(body.a), _vector(body.b))
    return CompatibilityResponse(
        distance=round(d, 4),
        compatibility=compatibility_from_distance(d),
        provocation_tier=provocation_tier(d),
    )


@router.post("/describe", response_model=DescribeResponse)
def describe_vector(body: VectorIn):
    v = _vector(body)
    label, narrative = describe(v)
    return DescribeResponse(label=label, narrative=narrative, display=list(normalize_for_display(v)))


# ============================================================
# Actors
# ============================================================

@router.get("/actors/{actor_id}/matches", response_model=MatchesResponse)
def actor_matches(actor_id: str, limit: int = Query(default=3, ge=1, le=50)):
    try:
        out = dna_service.match_actor(actor_id, limit=limit)
    except ValueError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except StoreFailure as e:
        raise _store_unavailable(e)

    def _m(r) -> MatchOut:
        return MatchOut(
            actor_id=r.actor_id,
            name=r.name,
            party_id=r.group,
            distance=round(r.distance, 4),
            compatibility=r.compatibility,
        )

    return MatchesResponse(
        actor_id=actor_id,
        top=[_m(r) for r in out["top"]],
        bottom=[_m(r) for r in out["bottom"]],
        groups=[GroupClosenessOut(party_id=g, compatibility=c) for g, c in out["groups"]],
        total=len(out["matches"]),
    )


@router.get("/actors/{actor_id}/alignment", response_model=List[VoteAlignmentOut])
def actor_alignment(actor_id: str):
    try:
        results = dna_service.actor_vote_alignment(actor_id)
    except StoreFailure as e:
        raise _store_unavailable(e)
    return [
        VoteAlignmentOut(
            party_id=r.group,
            score=r.score,
            total_items=r.total_items,
            agreements=r.agreements,
            disagreements=r.disagreements,
            neutral_matches=r.neutral_matches,
            clash_items=r.clash_items,
        )
        for r in results
    ]


@router.post("/actions", response_model=RecordActionResponse)
def record_action(body: RecordActionRequest):
    try:
        choice = VoteChoice.parse(body.choice)
    except ValueError as e:
        raise HTTPException(status_code=422, detail=str(e))

    try:
        out = dna_service.record_action(body.actor_id, body.item_id, choice)
    except StoreFailure as e:
        raise _store_unavailable(e)

    actor = out.evolution.actor
    return RecordActionResponse(
        actor_id=actor.actor_id,
        vector=VectorOut(**actor.vector.as_dict()),
        label=out.evolution.entry.label,
        changed_axis=out.evolution.changed_axis,
        history_length=actor.history_length,
        created=out.created,
        partial=out.partial,
    )


@router.get("/actors/{actor_id}/pivot", response_model=PivotResponse)
def actor_pivot(actor_id: str, persist: bool = Query(default=True)):
    try:
        result, alerts = dna_service.compute_actor_pivot(actor_id, persist=persist)
    except ValueError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except StoreFailure as e:
        raise _store_unavailable(e)

    return PivotResponse(
        actor_id=actor_id,
        score=result.score,
        insufficient_data=result.insufficient_data,
        partial=result.partial,
        skipped_item_ids=result.skipped_item_ids,
        categories=[
            CategoryDeviationOut(
                category=c.category.value,
                avg_declared=round(c.avg_declared, 4),
                avg_vote=round(c.avg_vote, 4),
                deviation=c.deviation,
            )
            for c in result.categories
        ],
        alerts=[_alert_out(a) for a in alerts],
    )


# ============================================================
# Items
# ============================================================

@router.post("/items")
def ingest_item(body: ItemProfileRequest):
    try:
        kind = ItemKind(body.kind.lower())
    except ValueError:
        raise HTTPException(status_code=422, detail=f"Unknown item kind: {body.kind}")

    payload = {
        "category": body.category,
        "impact_vector": body.impact_vector,
        "relevance_weights": body.relevance_weights,
    }
    try:
        item = dna_service.ingest_item(body.item_id, payload, title=body.title, kind=kind)
    except StoreFailure as e:
        raise _store_unavailable(e)
    return {"item_id": item.item_id, "category": item.category.value, "impact": item.impact.as_dict()}


@router.get("/items/{item_id}/flips", response_model=List[AlertOut])
def item_flips(item_id: str, persist: bool = Query(default=True)):
    try:
        alerts = dna_service.detect_item_flips(item_id, persist=persist)
    except ValueError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except StoreFailure as e:
        raise _store_unavailable(e)
    return [_alert_out(a) for a in alerts]


@router.get("/items/{item_id}/forecast", response_model=ForecastResponse)
def item_forecast(item_id: str, persist: bool = Query(default=True)):
    try:
        forecast = dna_service.forecast_for_item(item_id, persist=persist)
    except ValueError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except StoreFailure as e:
        raise _store_unavailable(e)

    return ForecastResponse(
        item_id=forecast.item_id,
        friction_index=forecast.friction_index,
        touched_axes=forecast.touched_axes,
        parties=[
            PartyForecastOut(
                party_id=p.party_id,
                member_count=p.member_count,
                friction=round(p.friction, 4),
                alignment=p.alignment,
            )
            for p in forecast.parties
        ],
        no_data=forecast.no_data,
    )


# ============================================================
# Parties
# ============================================================

@router.get("/parties/{party_id}/stats", response_model=GroupStatsResponse)
def party_stats(
    party_id: str,
    persist: bool = Query(default=True),
    since: Optional[str] = Query(default=None, description="Window start, ISO date (inclusive)"),
    until: Optional[str] = Query(default=None, description="Window end, ISO date (exclusive)"),
):
    try:
        since_dt = dna_service.parse_window_date(since)
        until_dt = dna_service.parse_window_date(until)
    except ValueError as e:
        raise HTTPException(status_code=422, detail=f"Invalid window date: {e}")
    if since_dt and until_dt and since_dt >= until_dt:
        raise HTTPException(status_code=422, detail="since must be before until")

    try:
        stats = dna_service.compute_party_stats(party_id, since=since_dt, until=until_dt, persist=persist)
    except ValueError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except StoreFailure as e:
        raise _store_unavailable(e)

    return GroupStatsResponse(
        party_id=stats.party_id,
        window=stats.window,
        member_count=stats.member_count,
        cohesion_index=stats.cohesion_index,
        items_counted=stats.items_counted,
        axis_friction={k: round(v, 4) for k, v in stats.axis_friction.items()},
        dominant_categories=[c.value for c in stats.dominant_categories],
        topic_ownership=stats.topic_ownership,
        centroid=VectorOut(**stats.centroid.as_dict()),
        polarization_score=stats.polarization_score,
        pivot_score=stats.pivot_score,
        insight=stats.insight,
        no_data=stats.no_data,
    )
