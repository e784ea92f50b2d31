"""
Supabase credentials + REST write helpers.

Reads go through the service-role client in services/supabase_admin.py.
Batch writes go through PostgREST directly:
  - supabase_upsert  (ON CONFLICT merge, composite keys allowed; falls back
                      to PATCH-then-INSERT when the table has no matching
                      unique constraint)
  - supabase_insert  (used by the fallback)
"""

from __future__ import annotations

import os
from typing import Any, Dict, List, Optional, Tuple

import requests

# ----------------------------------------------------
# Load environment variables (local dev only)
# ----------------------------------------------------
try:
    from dotenv import load_dotenv  # type: ignore

    load_dotenv()
except Exception:
    pass

SUPABASE_URL: str = (os.getenv("SUPABASE_URL") or os.getenv("SUPABASE_PROJECT_URL") or "").strip()
SUPABASE_SERVICE_ROLE_KEY: str = (os.getenv("SUPABASE_SERVICE_ROLE_KEY") or "").strip()
SUPABASE_ANON_KEY: str = (os.getenv("SUPABASE_ANON_KEY") or "").strip()

# Writes need the service role; the anon key only works against open tables
SUPABASE_KEY: str = SUPABASE_SERVICE_ROLE_KEY or SUPABASE_ANON_KEY
SUPABASE_ADMIN_KEY: str = SUPABASE_SERVICE_ROLE_KEY

REST_TIMEOUT_SECONDS = int(os.getenv("SUPABASE_REST_TIMEOUT", "20"))

# 42P10: no unique or exclusion constraint matching the ON CONFLICT columns
NO_MATCHING_CONSTRAINT = "42P10"

_session = requests.Session()


def is_supabase_configured() -> bool:
    return bool(SUPABASE_URL and SUPABASE_KEY)


def key_in_use() -> str:
    if SUPABASE_SERVICE_ROLE_KEY:
        return "service_role"
    if SUPABASE_ANON_KEY:
        return "anon"
    return "none"


def _table_url(table: str) -> str:
    if not SUPABASE_URL:
        raise RuntimeError("SUPABASE_URL is missing. Set it in .env (local) or the service environment.")
    if not SUPABASE_KEY:
        raise RuntimeError("No Supabase API key found. Set SUPABASE_SERVICE_ROLE_KEY.")
    return f"{SUPABASE_URL.rstrip('/')}/rest/v1/{table}"


def _headers(prefer: str) -> Dict[str, str]:
    return {
        "apikey": SUPABASE_KEY,
        "Authorization": f"Bearer {SUPABASE_KEY}",
        "Content-Type": "application/json",
        "Prefer": prefer,
    }


def _error_code(resp: requests.Response) -> Optional[str]:
    try:
        body = resp.json()
    except ValueError:
        return None
    return body.get("code") if isinstance(body, dict) else None


def _send(
    method: str,
    table: str,
    *,
    prefer: str,
    json: Any,
    params: Optional[Dict[str, str]] = None,
) -> Tuple[requests.Response, List[Dict[str, Any]]]:
    """
    One PostgREST call. Returns (response, rows); rows is empty when the
    body is not a JSON list/object. 401 always raises; other error statuses
    are left to the caller.
    """
    resp = _session.request(
        method,
        _table_url(table),
        headers=_headers(prefer),
        params=params,
        json=json,
        timeout=REST_TIMEOUT_SECONDS,
    )
    if resp.status_code == 401:
        raise RuntimeError("Unauthorized: SUPABASE_SERVICE_ROLE_KEY invalid or missing.")
    if resp.status_code >= 400:
        return resp, []

    try:
        body = resp.json()
    except ValueError:
        return resp, []
    if isinstance(body, list):
        return resp, body
    return resp, [body] if isinstance(body, dict) else []


def _raise_for(resp: requests.Response, what: str) -> None:
    if resp.status_code >= 400:
        raise RuntimeError(f"Supabase {what} failed [{resp.status_code}]: {resp.text}")


def supabase_insert(table: str, records: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
    if not isinstance(records, list) or not records:
        raise ValueError("supabase_insert: 'records' must be a non-empty list")

    resp, rows = _send("POST", table, prefer="return=representation", json=records)
    _raise_for(resp, f"INSERT {table}")
    return rows


def _update_where(table: str, key_cols: List[str], record: Dict[str, Any]) -> List[Dict[str, Any]]:
    missing = [c for c in key_cols if c not in record]
    if missing:
        raise RuntimeError(f"supabase_upsert fallback: record missing conflict columns {missing}")

    where = {c: f"eq.{record[c]}" for c in key_cols}
    resp, rows = _send("PATCH", table, prefer="return=representation", json=record, params=where)
    _raise_for(resp, f"PATCH {table}")
    return rows


def supabase_upsert(table: str, records: List[Dict[str, Any]], conflict_col: str) -> List[Dict[str, Any]]:
    """
    Insert-or-update records keyed by conflict_col, a single column or a
    comma-separated composite key ("actor_id,category,item_id").

    When Postgres rejects the ON CONFLICT target (42P10), each record is
    PATCHed by its key columns and INSERTed if no row matched.
    """
    if not isinstance(records, list) or not records:
        raise ValueError("supabase_upsert: 'records' must be a non-empty list")

    resp, rows = _send(
        "POST",
        table,
        prefer="resolution=merge-duplicates,return=representation",
        json=records,
        params={"on_conflict": conflict_col},
    )
    if resp.status_code < 400:
        return rows

    if resp.status_code != 400 or _error_code(resp) != NO_MATCHING_CONSTRAINT:
        _raise_for(resp, f"UPSERT {table}")

    key_cols = [c.strip() for c in conflict_col.split(",") if c.strip()]
    out: List[Dict[str, Any]] = []
    for rec in records:
        out.extend(_update_where(table, key_cols, rec) or supabase_insert(table, [rec]))
    return out
