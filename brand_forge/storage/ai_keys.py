"""Provider API key records held in the key-value store.

``ai_keys_list`` holds a JSON list of key IDs; each ``ai_key:<id>`` holds
one :class:`AIKeyRecord` as JSON.
"""

from __future__ import annotations

from uuid import uuid4

import structlog
from pydantic import ValidationError

from brand_forge.config import Settings
from brand_forge.db.models import AIKeyRecord
from brand_forge.storage.kv import KeyValueStore

logger = structlog.get_logger()

KEYS_LIST = "ai_keys_list"


def _key_name(key_id: str) -> str:
    return f"ai_key:{key_id}"


def list_ai_keys(kv: KeyValueStore) -> list[AIKeyRecord]:
    """Every readable key record, in list order. Malformed records are skipped."""
    ids = kv.get_json(KEYS_LIST) or []
    records = []
    for key_id in ids:
        raw = kv.get_json(_key_name(key_id))
        if not raw:
            continue
        try:
            records.append(AIKeyRecord.model_validate(raw))
        except ValidationError:
            logger.warning("ai_keys.malformed_record", key_id=key_id)
    return records


def add_ai_key(
    kv: KeyValueStore,
    provider: str,
    api_key: str,
    name: str = "",
    enabled: bool = True,
    video_enabled: bool = False,
    video_models: list[str] | None = None,
) -> AIKeyRecord:
    record = AIKeyRecord(
        id=str(uuid4()),
        name=name or provider,
        provider=provider,
        api_key=api_key,
        enabled=enabled,
        video_enabled=video_enabled,
        video_models=video_models or [],
    )
    kv.put_json(_key_name(record.id), record.model_dump(by_alias=True))
    ids = kv.get_json(KEYS_LIST) or []
    kv.put_json(KEYS_LIST, [*ids, record.id])
    logger.info("ai_keys.added", key_id=record.id, provider=provider)
    return record


def remove_ai_key(kv: KeyValueStore, key_id: str) -> bool:
    ids = kv.get_json(KEYS_LIST) or []
    if key_id not in ids:
        return False
    kv.put_json(KEYS_LIST, [i for i in ids if i != key_id])
    kv.delete(_key_name(key_id))
    logger.info("ai_keys.removed", key_id=key_id)
    return True


def get_enabled_openai_key(kv: KeyValueStore, settings: Settings | None = None) -> str | None:
    """API key for chat and image/audio calls.

    The first enabled ``openai`` record wins; the configured fallback key
    is used when the store holds none.
    """
    for record in list_ai_keys(kv):
        if record.provider == "openai" and record.enabled:
            return record.api_key
    if settings and settings.openai_api_key:
        return settings.openai_api_key
    return None


def get_all_enabled_video_keys(kv: KeyValueStore) -> list[AIKeyRecord]:
    return [r for r in list_ai_keys(kv) if r.enabled and r.video_enabled]


def get_enabled_video_key(
    kv: KeyValueStore, preferred_provider: str | None = None
) -> AIKeyRecord | None:
    """First video-enabled key, restricted to ``preferred_provider`` when given."""
    for record in get_all_enabled_video_keys(kv):
        if preferred_provider and record.provider != preferred_provider:
            continue
        return record
    return None
