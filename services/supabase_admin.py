from __future__ import annotations

from typing import Any, Dict, Optional, TYPE_CHECKING

# Type-only import to avoid runtime issues when supabase isn't installed
if TYPE_CHECKING:  # pragma: no cover
    from supabase import Client as SupabaseClient  # type: ignore
else:  # pragma: no cover
    SupabaseClient = object  # type: ignore

# Singleton cache (Cloud Run friendly)
_supabase_admin: Optional["SupabaseClient"] = None
_init_error: Optional[str] = None


def get_supabase_admin() -> "SupabaseClient":
    """
    Returns the service-role Supabase client used by the DNA repository.

    - never raises at import time
    - raises RuntimeError only when called without configuration
    - one client per process
    """
    global _supabase_admin, _init_error

    if _supabase_admin is not None:
        return _supabase_admin

    from utils.supabase_client import SUPABASE_ADMIN_KEY, SUPABASE_URL

    if not SUPABASE_URL or not SUPABASE_ADMIN_KEY:
        raise RuntimeError("Missing SUPABASE_URL or SUPABASE_SERVICE_ROLE_KEY")

    try:
        from supabase import create_client  # type: ignore
    except Exception as e:
        _init_error = f"supabase-py failed to import: {e}"
        raise RuntimeError(_init_error) from e

    try:
        _supabase_admin = create_client(SUPABASE_URL, SUPABASE_ADMIN_KEY)
    except Exception as e:
        _init_error = str(e)
        raise RuntimeError(f"Failed to create Supabase admin client: {e}") from e
    _init_error = None
    return _supabase_admin


def supabase_status() -> Dict[str, Any]:
    """Credentials present + state of the admin client (created lazily on first store call)."""
    from utils.supabase_client import SUPABASE_URL, is_supabase_configured, key_in_use

    return {
        "configured": is_supabase_configured(),
        "url_set": bool(SUPABASE_URL),
        "key_in_use": key_in_use(),
        "admin_client_created": _supabase_admin is not None,
        "admin_client_init_error": _init_error,
    }
