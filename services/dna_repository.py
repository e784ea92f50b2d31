from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any, Dict, Iterable, List, Optional, Sequence

from etl.dna_contract import (
    action_from_row,
    actor_from_row,
    alert_to_row,
    declared_from_row,
    forecast_to_row,
    group_stats_to_row,
    item_from_row,
    item_to_row,
    snapshot_rpc_params,
)
from utils.dna_constants import SURVEY_ITEM_KEY, ActorKind, Category
from utils.dna_models import (
    Actor,
    DeclaredPosition,
    DiscrepancyAlert,
    HistoryEntry,
    LegislativeItem,
    RevealedAction,
)
from utils.supabase_client import supabase_upsert

logger = logging.getLogger(__name__)

ACTORS_TABLE = "dna_actors"
HISTORY_TABLE = "dna_actor_history"
ITEMS_TABLE = "legislative_items"
DECLARED_TABLE = "declared_positions"
ACTIONS_TABLE = "revealed_actions"
ALERTS_TABLE = "integrity_alerts"
GROUP_STATS_TABLE = "group_stats"
FORECASTS_TABLE = "item_forecasts"

SNAPSHOT_RPC = "record_dna_snapshot"


class StoreFailure(RuntimeError):
    """A read or write against the relational store failed."""


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


# ============================================================
# SUPABASE ADMIN CLIENT
# ============================================================
def db():
    """
    Returns a Supabase client initialized with service-role permissions.
    This must ONLY be used server-side.
    """
    from services.supabase_admin import get_supabase_admin  # local import prevents startup failures

    try:
        return get_supabase_admin()
    except RuntimeError as e:
        raise StoreFailure(str(e)) from e


def _execute(query: Any, what: str) -> List[Dict[str, Any]]:
    try:
        res = query.execute()
    except Exception as e:
        logger.error("Store query failed (%s): %s", what, e)
        raise StoreFailure(f"{what} failed: {e}") from e
    data = getattr(res, "data", None) or []
    return data if isinstance(data, list) else [data]


def _upsert(table: str, rows: List[Dict[str, Any]], conflict_cols: str) -> Any:
    if not rows:
        return []
    try:
        return supabase_upsert(table=table, records=rows, conflict_col=conflict_cols)
    except Exception as e:
        logger.error("Store upsert failed (%s, %d rows): %s", table, len(rows), e)
        raise StoreFailure(f"upsert {table} failed: {e}") from e


# ============================================================
# ACTORS
# ============================================================
def get_actor(actor_id: str, *, with_history: bool = True) -> Optional[Actor]:
    sb = db()
    rows = _execute(
        sb.table(ACTORS_TABLE).select("*").eq("id", actor_id).limit(1),
        f"get_actor({actor_id})",
    )
    if not rows:
        return None

    history_rows: List[Dict[str, Any]] = []
    if with_history:
        history_rows = _execute(
            sb.table(HISTORY_TABLE).select("*").eq("actor_id", actor_id).order("seq"),
            f"get_actor_history({actor_id})",
        )
    return actor_from_row(rows[0], history_rows)


def list_actors(
    *,
    kind: Optional[ActorKind] = None,
    party_id: Optional[str] = None,
    kinds: Optional[Sequence[ActorKind]] = None,
) -> List[Actor]:
    """Actors without history (vector reads only)."""
    q = db().table(ACTORS_TABLE).select("*")
    if kind is not None:
        q = q.eq("kind", kind.value)
    if kinds:
        q = q.in_("kind", [k.value for k in kinds])
    if party_id is not None:
        q = q.eq("party_id", party_id)
    return [actor_from_row(r) for r in _execute(q, "list_actors")]


def get_actors(actor_ids: Iterable[str]) -> Dict[str, Actor]:
    ids = sorted({str(i) for i in actor_ids})
    if not ids:
        return {}
    rows = _execute(db().table(ACTORS_TABLE).select("*").in_("id", ids), "get_actors")
    actors = [actor_from_row(r) for r in rows]
    return {a.actor_id: a for a in actors}


def list_party_members(party_id: str) -> List[Actor]:
    return list_actors(
        party_id=party_id,
        kinds=[ActorKind.REPRESENTATIVE, ActorKind.COUNCILOR],
    )


def list_party_ids() -> List[str]:
    rows = _execute(
        db()
        .table(ACTORS_TABLE)
        .select("party_id")
        .in_("kind", [ActorKind.REPRESENTATIVE.value, ActorKind.COUNCILOR.value])
        .not_.is_("party_id", "null"),
        "list_party_ids",
    )
    return sorted({str(r["party_id"]) for r in rows if r.get("party_id") is not None})


def commit_snapshot(actor: Actor, entry: HistoryEntry, *, expected_history_length: int) -> None:
    """
    Writes the new current vector and appends one history row in a single
    database call. The function rejects the write when the stored history
    length differs from expected_history_length, so a stale
    read-modify-append cannot land.
    """
    params = snapshot_rpc_params(actor, entry, expected_history_length)
    try:
        db().rpc(SNAPSHOT_RPC, params).execute()
    except StoreFailure:
        raise
    except Exception as e:
        logger.error("Snapshot commit failed for actor=%s: %s", actor.actor_id, e)
        raise StoreFailure(f"commit_snapshot({actor.actor_id}) failed: {e}") from e


# ============================================================
# LEGISLATIVE ITEMS
# ============================================================
def get_item(item_id: str) -> Optional[LegislativeItem]:
    rows = _execute(
        db().table(ITEMS_TABLE).select("*").eq("id", item_id).limit(1),
        f"get_item({item_id})",
    )
    return item_from_row(rows[0]) if rows else None


def get_items(item_ids: Iterable[str]) -> Dict[str, LegislativeItem]:
    ids = sorted({str(i) for i in item_ids})
    if not ids:
        return {}
    rows = _execute(db().table(ITEMS_TABLE).select("*").in_("id", ids), "get_items")
    items = [item_from_row(r) for r in rows]
    return {i.item_id: i for i in items}


def list_item_ids(*, limit: int = 500, offset: int = 0) -> List[str]:
    rows = _execute(
        db().table(ITEMS_TABLE).select("id").order("id").range(offset, offset + limit - 1),
        "list_item_ids",
    )
    return [str(r["id"]) for r in rows]


def save_item(item: LegislativeItem) -> None:
    _upsert(ITEMS_TABLE, [item_to_row(item)], "id")


# ============================================================
# DECLARED / REVEALED
# ============================================================
def list_declared(actor_ids: Iterable[str]) -> List[DeclaredPosition]:
    ids = sorted({str(i) for i in actor_ids})
    if not ids:
        return []
    rows = _execute(db().table(DECLARED_TABLE).select("*").in_("actor_id", ids), "list_declared")
    return [d for d in (declared_from_row(r) for r in rows) if d is not None]


def list_actions(
    *,
    actor_ids: Optional[Iterable[str]] = None,
    item_id: Optional[str] = None,
    since: Optional[datetime] = None,
    until: Optional[datetime] = None,
) -> List[RevealedAction]:
    ids: Optional[List[str]] = None
    if actor_ids is not None:
        ids = sorted({str(i) for i in actor_ids})
        if not ids:
            return []

    q = db().table(ACTIONS_TABLE).select("*")
    if ids is not None:
        q = q.in_("actor_id", ids)
    if item_id is not None:
        q = q.eq("item_id", item_id)
    if since is not None:
        q = q.gte("cast_at", since.isoformat())
    if until is not None:
        q = q.lt("cast_at", until.isoformat())
    return [a for a in (action_from_row(r) for r in _execute(q, "list_actions")) if a is not None]


# ============================================================
# OUTPUTS (idempotent upserts)
# ============================================================
def upsert_alerts(alerts: Sequence[DiscrepancyAlert]) -> int:
    """Overwrites by (actor_id, category, item_id); never duplicates."""
    computed_at = _now_iso()
    # last write wins inside one batch too
    rows = {a.key: alert_to_row(a, computed_at) for a in alerts}
    _upsert(ALERTS_TABLE, list(rows.values()), "actor_id,category,item_id")
    return len(rows)


def delete_survey_alerts(actor_id: str, categories: Iterable[Category]) -> None:
    """Removes the (actor, category, "survey") alerts of categories that are no longer comparable."""
    values = sorted({c.value for c in categories})
    if not values:
        return
    _execute(
        db()
        .table(ALERTS_TABLE)
        .delete()
        .eq("actor_id", actor_id)
        .eq("item_id", SURVEY_ITEM_KEY)
        .in_("category", values),
        f"delete_survey_alerts({actor_id})",
    )


def upsert_group_stats(stats: Any) -> None:
    _upsert(GROUP_STATS_TABLE, [group_stats_to_row(stats, _now_iso())], "party_id,window")


def save_forecast(forecast: Any) -> None:
    _upsert(FORECASTS_TABLE, [forecast_to_row(forecast, _now_iso())], "item_id")
