"""
Thin wrapper around the Supabase client: table select/insert/update/delete
plus the current-user lookup. Exceptions from the client are left to the
caller, which decides how to log and surface them.
"""

import logging
from typing import Any, Dict, List, Optional

from supabase import create_client, Client

logger = logging.getLogger(__name__)


class DataServiceUnavailable(RuntimeError):
    """Raised when Supabase credentials are missing or the client cannot be built."""


def create_supabase_client(url: Optional[str], key: Optional[str]) -> Client:
    if not (url and key):
        raise DataServiceUnavailable("SUPABASE_URL and SUPABASE_KEY must both be set")
    try:
        client = create_client(url, key)
    except Exception as e:
        raise DataServiceUnavailable(f"Supabase init failed: {e}") from e
    logger.debug("✅ Supabase client initialized.")
    return client


def _first(rows):
    if not rows:
        raise LookupError("Supabase returned no rows")
    return rows[0]


class SupabaseDataService:
    def __init__(self, client: Client):
        self.client = client

    def select(self, table: str, order_by: str, ascending: bool = True) -> List[Dict[str, Any]]:
        res = self.client.table(table).select("*").order(order_by, desc=not ascending).execute()
        return res.data or []

    def insert(self, table: str, row: Dict[str, Any]) -> Dict[str, Any]:
        res = self.client.table(table).insert(row).execute()
        return _first(res.data)

    def update(self, table: str, record_id: str, fields: Dict[str, Any]) -> Dict[str, Any]:
        res = self.client.table(table).update(fields).eq("id", record_id).execute()
        return _first(res.data)

    def delete(self, table: str, record_id: str) -> None:
        self.client.table(table).delete().eq("id", record_id).execute()

    def get_user(self) -> Optional[Dict[str, Any]]:
        response = self.client.auth.get_user()
        user = getattr(response, "user", None) if response else None
        if user is None:
            return None
        return {"id": user.id, "email": getattr(user, "email", None)}
