"""Key-value store backed by the ``kv_store`` table.

Holds provider API key records and small configuration blobs.
"""

from __future__ import annotations

import json
from functools import lru_cache
from typing import Any

import structlog

from brand_forge.db.client import SupabaseClient, get_supabase_client

logger = structlog.get_logger()

KV_TABLE = "kv_store"


class KeyValueStore:
    """String values addressed by string keys."""

    def __init__(self, db: SupabaseClient) -> None:
        self.db = db

    def get(self, key: str) -> str | None:
        row = self.db.select_one(KV_TABLE, {"key": key})
        return row["value"] if row else None

    def get_json(self, key: str) -> Any:
        """Decode a JSON value; None when absent or malformed."""
        raw = self.get(key)
        if raw is None:
            return None
        try:
            return json.loads(raw)
        except json.JSONDecodeError:
            logger.warning("kv.malformed_json", key=key)
            return None

    def put(self, key: str, value: str) -> None:
        row = self.db.select_one(KV_TABLE, {"key": key})
        if row:
            self.db.update(KV_TABLE, row["id"], {"value": value})
        else:
            self.db.insert(KV_TABLE, {"key": key, "value": value})

    def put_json(self, key: str, value: Any) -> None:
        self.put(key, json.dumps(value))

    def delete(self, key: str) -> bool:
        row = self.db.select_one(KV_TABLE, {"key": key})
        if not row:
            return False
        self.db.delete(KV_TABLE, row["id"])
        return True


@lru_cache
def get_kv_store() -> KeyValueStore:
    """Get cached key-value store instance."""
    return KeyValueStore(get_supabase_client())
