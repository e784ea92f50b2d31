# services/dna_service.py

"""
Read -> compute -> write orchestration for the DNA engines.

Every function reads everything it needs first; a StoreFailure during the
reads aborts before anything is written.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Dict, List, Mapping, Optional, Sequence, Tuple

from config.dna_settings import DnaSettings, get_settings
from etl.dna_contract import ingest_item_profile
from services import dna_repository as repo
from services.compatibility import (
    MatchCandidate,
    MatchResult,
    VoteAlignment,
    group_closeness,
    rank_matches,
    top_and_bottom,
    vote_alignment,
)
from services.evolution_tracker import (
    EvolutionResult,
    apply_action,
    new_citizen,
    snapshot,
    survey_snapshot,
)
from services.forecast_engine import ItemForecast, forecast_item
from services.group_engine import ALL_TIME_WINDOW, GroupStats, compute_group_stats, tally_by_item
from services.pivot_engine import PivotResult, compute_pivot, detect_flips_for_item, pivot_alerts
from utils.dna_constants import CORE_CATEGORIES, ActorKind, ItemKind, VoteChoice
from utils.dna_models import Actor, DiscrepancyAlert, LegislativeItem, RevealedAction
from utils.dna_vector import PositionVector, median_vector

logger = logging.getLogger(__name__)

PARLIAMENT_KINDS = (ActorKind.REPRESENTATIVE, ActorKind.COUNCILOR)


@dataclass(frozen=True)
class RecordedAction:
    evolution: EvolutionResult
    created: bool
    # Item unknown to the store: unchanged snapshot appended
    partial: bool = False


# ============================================================
# EVOLUTION
# ============================================================

def record_action(
    actor_id: str,
    item_id: str,
    choice: VoteChoice,
    *,
    now: Optional[datetime] = None,
    settings: Optional[DnaSettings] = None,
) -> RecordedAction:
    """
    Applies one observed action to an actor and commits vector + history row
    in a single store call. First interaction creates a neutral citizen.
    """
    s = settings or get_settings()

    actor = repo.get_actor(actor_id)
    item = repo.get_item(item_id)

    created = actor is None
    if actor is None:
        actor = new_citizen(actor_id)
        logger.info("First interaction for actor=%s; created neutral citizen", actor_id)

    if item is None:
        logger.warning("record_action: item=%s not found; appending unchanged snapshot for actor=%s",
                       item_id, actor_id)
        result = snapshot(actor, actor.vector, now=now, settings=s)
    else:
        result = apply_action(actor, item.category, choice, now=now, settings=s)

    repo.commit_snapshot(result.actor, result.entry, expected_history_length=actor.history_length)
    logger.info("actor=%s item=%s choice=%s axis=%s history=%d",
                actor_id, item_id, choice.value, result.changed_axis, result.actor.history_length)
    return RecordedAction(evolution=result, created=created, partial=item is None)


def initialize_from_survey(actor_id: str, *, settings: Optional[DnaSettings] = None) -> EvolutionResult:
    """Sets a representative's starting vector from their survey answers."""
    actor = repo.get_actor(actor_id)
    if actor is None:
        raise ValueError(f"Actor not found: {actor_id}")

    declared = repo.list_declared([actor_id])
    if not declared:
        raise ValueError(f"No survey answers for actor: {actor_id}")

    result = snapshot(actor, survey_snapshot(declared), settings=settings)
    repo.commit_snapshot(result.actor, result.entry, expected_history_length=actor.history_length)
    return result


def ingest_item(item_id: str, payload: Dict, *, title: str = "", kind: ItemKind = ItemKind.BILL) -> LegislativeItem:
    item = ingest_item_profile(item_id, payload, title=title, kind=kind)
    repo.save_item(item)
    return item


# ============================================================
# DISCREPANCIES
# ============================================================

def _actions_with_items(actor_ids: Sequence[str]) -> Tuple[List[RevealedAction], Dict[str, LegislativeItem]]:
    actions = repo.list_actions(actor_ids=actor_ids)
    items = repo.get_items(a.item_id for a in actions)
    return actions, items


def compute_actor_pivot(
    actor_id: str,
    *,
    persist: bool = True,
    settings: Optional[DnaSettings] = None,
) -> Tuple[PivotResult, List[DiscrepancyAlert]]:
    actor = repo.get_actor(actor_id, with_history=False)
    if actor is None:
        raise ValueError(f"Actor not found: {actor_id}")

    declared = repo.list_declared([actor_id])
    actions, items = _actions_with_items([actor_id])

    result = compute_pivot(actor_id, declared, actions, items)
    if result.partial:
        logger.warning("Pivot for actor=%s is partial; missing items %s", actor_id, result.skipped_item_ids)

    alerts = pivot_alerts(result, settings)
    if persist:
        comparable = {c.category for c in result.categories}
        stale = [c for c in CORE_CATEGORIES if c not in comparable]
        repo.delete_survey_alerts(actor_id, stale)
        if alerts:
            repo.upsert_alerts(alerts)
    return result, alerts


def detect_item_flips(
    item_id: str,
    *,
    persist: bool = True,
    settings: Optional[DnaSettings] = None,
) -> List[DiscrepancyAlert]:
    item = repo.get_item(item_id)
    if item is None:
        raise ValueError(f"Item not found: {item_id}")

    actions = repo.list_actions(item_id=item_id)
    actors = repo.get_actors(a.actor_id for a in actions)

    alerts = detect_flips_for_item(item, actors, actions, settings)
    if persist and alerts:
        repo.upsert_alerts(alerts)
    logger.info("item=%s votes=%d flips=%d", item_id, len(actions), len(alerts))
    return alerts


# ============================================================
# GROUPS
# ============================================================

def _sample_members(members: Sequence[Actor], limit: Optional[int]) -> List[Actor]:
    ordered = sorted(members, key=lambda m: m.actor_id)
    return ordered if limit is None else ordered[:limit]


def parliament_median() -> Optional[PositionVector]:
    vectors = [a.vector for a in repo.list_actors(kinds=PARLIAMENT_KINDS)]
    return median_vector(vectors) if vectors else None


def parse_window_date(value: Optional[str]) -> Optional[datetime]:
    """ISO date or datetime -> aware datetime (naive values are UTC)."""
    if not value:
        return None
    dt = datetime.fromisoformat(value)
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt


def window_label(since: Optional[datetime], until: Optional[datetime]) -> str:
    """
    Key of a group_stats row: "all", or "<since>..<until>" by date with an
    open side left empty ("2024-01-01..").
    """
    if since is None and until is None:
        return ALL_TIME_WINDOW
    left = since.date().isoformat() if since else ""
    right = until.date().isoformat() if until else ""
    return f"{left}..{right}"


def _party_exists(party_id: str) -> bool:
    party = repo.get_actor(party_id, with_history=False)
    return party is not None and party.kind is ActorKind.PARTY


def compute_party_stats(
    party_id: str,
    *,
    since: Optional[datetime] = None,
    until: Optional[datetime] = None,
    persist: bool = True,
    settings: Optional[DnaSettings] = None,
) -> GroupStats:
    """
    Aggregate statistics for one party over [since, until). A known party
    with no members yields no_data stats.
    """
    s = settings or get_settings()
    window = window_label(since, until)

    members = repo.list_party_members(party_id)
    if not members and not _party_exists(party_id):
        raise ValueError(f"Party not found: {party_id}")

    member_ids = [m.actor_id for m in members]
    actions = repo.list_actions(actor_ids=member_ids, since=since, until=until)
    items = repo.get_items(a.item_id for a in actions)
    median = parliament_median()

    sampled = _sample_members(members, s.pivot_sample_limit)
    declared = repo.list_declared(m.actor_id for m in sampled)
    pivots = [compute_pivot(m.actor_id, declared, actions, items) for m in sampled]
    member_pivots = [p.score for p in pivots if not p.insufficient_data]

    stats = compute_group_stats(
        party_id,
        [m.vector for m in members],
        actions,
        items,
        window=window,
        parliament_median=median,
        member_pivots=member_pivots,
        settings=s,
    )
    if persist:
        repo.upsert_group_stats(stats)
    logger.info("party=%s window=%s members=%d cohesion=%d items=%d",
                party_id, window, stats.member_count, stats.cohesion_index, stats.items_counted)
    return stats


def party_members_by_party() -> Dict[str, List[PositionVector]]:
    grouped: Dict[str, List[PositionVector]] = {}
    for actor in repo.list_actors(kinds=PARLIAMENT_KINDS):
        if actor.party_id is None:
            continue
        grouped.setdefault(actor.party_id, []).append(actor.vector)
    return grouped


def forecast_for_item(
    item_id: str,
    *,
    persist: bool = True,
    settings: Optional[DnaSettings] = None,
) -> ItemForecast:
    item = repo.get_item(item_id)
    if item is None:
        raise ValueError(f"Item not found: {item_id}")

    forecast = forecast_item(item, party_members_by_party(), settings)
    if persist:
        repo.save_forecast(forecast)
    return forecast


# ============================================================
# MATCHING
# ============================================================

def match_actor(actor_id: str, *, limit: int = 3) -> Dict:
    """
    Ranks every representative against the actor.
    Returns the full ranking, top / bottom matches and per-party closeness.
    """
    actor = repo.get_actor(actor_id, with_history=False)
    if actor is None:
        raise ValueError(f"Actor not found: {actor_id}")

    candidates = [
        MatchCandidate(actor_id=a.actor_id, vector=a.vector, group=a.party_id, name=a.name)
        for a in repo.list_actors(kinds=PARLIAMENT_KINDS)
    ]
    ranked: List[MatchResult] = rank_matches(actor.vector, candidates, exclude_id=actor_id)
    top, bottom = top_and_bottom(ranked, limit)
    return {
        "actor": actor,
        "matches": ranked,
        "top": top,
        "bottom": bottom,
        "groups": group_closeness(ranked),
    }


def _party_stances(actions: Sequence[RevealedAction], party_of: Mapping[str, str]) -> Dict[str, Dict[str, VoteChoice]]:
    """Majority stance of each party per item; ties count as abstain."""
    by_party: Dict[str, List[RevealedAction]] = {}
    for a in actions:
        party = party_of.get(a.actor_id)
        if party is not None:
            by_party.setdefault(party, []).append(a)

    stances: Dict[str, Dict[str, VoteChoice]] = {}
    for party, party_actions in by_party.items():
        out: Dict[str, VoteChoice] = {}
        for item_id, (support, oppose) in tally_by_item(party_actions).items():
            if support > oppose:
                out[item_id] = VoteChoice.SUPPORT
            elif oppose > support:
                out[item_id] = VoteChoice.OPPOSE
            else:
                out[item_id] = VoteChoice.ABSTAIN
        stances[party] = out
    return stances


def actor_vote_alignment(actor_id: str) -> List[VoteAlignment]:
    """How often the actor's votes matched each party's majority stance."""
    own_actions = repo.list_actions(actor_ids=[actor_id])
    if not own_actions:
        return []
    user_votes = {a.item_id: a.choice for a in own_actions}

    members = [m for m in repo.list_actors(kinds=PARLIAMENT_KINDS) if m.party_id and m.actor_id != actor_id]
    party_of = {m.actor_id: m.party_id for m in members}
    member_actions = [
        a for a in repo.list_actions(actor_ids=list(party_of)) if a.item_id in user_votes
    ]
    return vote_alignment(user_votes, _party_stances(member_actions, party_of))
