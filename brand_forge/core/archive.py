"""File archive: every file exchanged with the AI, filed into virtual folders."""

from __future__ import annotations

import json
from collections import Counter
from datetime import datetime, timezone
from functools import lru_cache
from typing import Any

import structlog

from brand_forge.db.client import SupabaseClient, get_supabase_client
from brand_forge.db.models import FileContext, FileSource, FileType

logger = structlog.get_logger()

ARCHIVE_TABLE = "file_archive"
DEFAULT_PAGE_SIZE = 50

# Entry fields callers may change after upload
_EDITABLE = {
    "fileName": "file_name",
    "description": "description",
    "folder": "folder",
    "tags": "tags",
}


def determine_folder(
    context: FileContext | str,
    file_type: FileType | str,
    source: FileSource | str,
    onboarding_step: str | None = None,
) -> str:
    """Virtual folder for a file from where it came from and what it is."""
    context = FileContext(context)
    file_type = FileType(file_type).value
    if context == FileContext.ONBOARDING:
        step = f"/{onboarding_step.replace('_', '-')}" if onboarding_step else ""
        return f"/onboarding{step}/{file_type}s"
    if context == FileContext.BRAND_ASSETS:
        return f"/brand-assets/{file_type}s"
    if FileSource(source) == FileSource.AI_GENERATED:
        return f"/ai-generated/{file_type}s"
    return f"/uploads/{file_type}s"


def _parse_tags(raw: Any) -> list[str]:
    if isinstance(raw, list):
        return raw
    try:
        tags = json.loads(raw or "[]")
    except (TypeError, json.JSONDecodeError):
        return []
    return tags if isinstance(tags, list) else []


def map_row_to_entry(row: dict[str, Any]) -> dict[str, Any]:
    return {
        "id": row["id"],
        "brandProfileId": row["brand_profile_id"],
        "userId": row["user_id"],
        "fileName": row["file_name"],
        "mimeType": row["mime_type"],
        "fileSize": row.get("file_size") or 0,
        "r2Key": row["r2_key"],
        "fileType": row["file_type"],
        "source": row["source"],
        "context": row.get("context") or FileContext.CHAT.value,
        "conversationId": row.get("conversation_id"),
        "messageId": row.get("message_id"),
        "onboardingStep": row.get("onboarding_step"),
        "aiPrompt": row.get("ai_prompt"),
        "aiModel": row.get("ai_model"),
        "aiGenerationId": row.get("ai_generation_id"),
        "folder": row.get("folder") or "/",
        "tags": _parse_tags(row.get("tags")),
        "description": row.get("description"),
        "isStarred": bool(row.get("is_starred")),
        "createdAt": row.get("created_at"),
        "updatedAt": row.get("updated_at"),
    }


class FileArchive:
    """Archive entries for a brand. Entries point at objects; they never own them."""

    def __init__(self, db: SupabaseClient) -> None:
        self.db = db

    def create_entry(
        self,
        brand_profile_id: str,
        user_id: str,
        file_name: str,
        mime_type: str,
        r2_key: str,
        file_type: FileType | str,
        source: FileSource | str,
        file_size: int = 0,
        context: FileContext | str | None = None,
        conversation_id: str | None = None,
        message_id: str | None = None,
        onboarding_step: str | None = None,
        ai_prompt: str | None = None,
        ai_model: str | None = None,
        ai_generation_id: str | None = None,
        folder: str | None = None,
        tags: list[str] | None = None,
        description: str | None = None,
    ) -> dict[str, Any]:
        context = FileContext(context or FileContext.CHAT)
        row = self.db.insert(
            ARCHIVE_TABLE,
            {
                "brand_profile_id": brand_profile_id,
                "user_id": user_id,
                "file_name": file_name,
                "mime_type": mime_type,
                "file_size": file_size,
                "r2_key": r2_key,
                "file_type": FileType(file_type).value,
                "source": FileSource(source).value,
                "context": context.value,
                "conversation_id": conversation_id,
                "message_id": message_id,
                "onboarding_step": onboarding_step,
                "ai_prompt": ai_prompt,
                "ai_model": ai_model,
                "ai_generation_id": ai_generation_id,
                "folder": folder or determine_folder(context, file_type, source, onboarding_step),
                "tags": json.dumps(tags or []),
                "description": description,
                "is_starred": False,
            },
        )
        logger.info("archive.entry_created", entry_id=row["id"], folder=row["folder"])
        return map_row_to_entry(row)

    def get_entry(self, entry_id: str) -> dict[str, Any] | None:
        row = self.db.select_one(ARCHIVE_TABLE, {"id": entry_id})
        return map_row_to_entry(row) if row else None

    def list_entries(
        self,
        brand_profile_id: str,
        file_type: str | None = None,
        source: str | None = None,
        context: str | None = None,
        folder: str | None = None,
        is_starred: bool | None = None,
        search: str | None = None,
        limit: int = DEFAULT_PAGE_SIZE,
        offset: int = 0,
    ) -> dict[str, Any]:
        """One page of entries, newest first, plus the unpaged match count.

        ``folder`` matches by prefix; ``search`` is a case-insensitive
        substring match over name, description and tags.
        """
        filters: dict[str, Any] = {"brand_profile_id": brand_profile_id}
        if file_type:
            filters["file_type"] = file_type
        if source:
            filters["source"] = source
        if context:
            filters["context"] = context
        rows = self.db.select(ARCHIVE_TABLE, filters=filters, order_by="created_at", ascending=False)

        if folder:
            rows = [r for r in rows if (r.get("folder") or "").startswith(folder)]
        if is_starred is not None:
            rows = [r for r in rows if bool(r.get("is_starred")) == is_starred]
        if search:
            needle = search.lower()
            rows = [
                r
                for r in rows
                if any(needle in str(r.get(col) or "").lower() for col in ("file_name", "description", "tags"))
            ]

        page = rows[offset : offset + (limit or DEFAULT_PAGE_SIZE)]
        return {"files": [map_row_to_entry(r) for r in page], "total": len(rows)}

    def get_folders(self, brand_profile_id: str) -> list[dict[str, Any]]:
        rows = self.db.select(ARCHIVE_TABLE, filters={"brand_profile_id": brand_profile_id})
        counts = Counter(r.get("folder") or "/" for r in rows)
        folders = []
        for path in sorted(counts):
            parts = [p for p in path.split("/") if p]
            folders.append({"path": path, "name": parts[-1] if parts else "Root", "fileCount": counts[path]})
        return folders

    def toggle_star(self, entry_id: str) -> bool:
        """Flip the star; returns the new state. Raises ValueError for unknown entries."""
        row = self.db.select_one(ARCHIVE_TABLE, {"id": entry_id})
        if not row:
            raise ValueError(f"Archive entry '{entry_id}' not found")
        starred = not bool(row.get("is_starred"))
        self.db.update(ARCHIVE_TABLE, entry_id, {"is_starred": starred, "updated_at": _now()})
        return starred

    def update_entry(self, entry_id: str, updates: dict[str, Any]) -> dict[str, Any] | None:
        if not self.db.select_one(ARCHIVE_TABLE, {"id": entry_id}):
            return None
        data: dict[str, Any] = {"updated_at": _now()}
        for key, column in _EDITABLE.items():
            if key in updates and updates[key] is not None:
                value = updates[key]
                data[column] = json.dumps(value) if key == "tags" else value
        return map_row_to_entry(self.db.update(ARCHIVE_TABLE, entry_id, data))

    def delete_entry(self, entry_id: str) -> bool:
        """Remove the entry only; the stored object is the caller's to delete."""
        if not self.db.select_one(ARCHIVE_TABLE, {"id": entry_id}):
            return False
        self.db.delete(ARCHIVE_TABLE, entry_id)
        logger.info("archive.entry_deleted", entry_id=entry_id)
        return True

    def get_stats(self, brand_profile_id: str) -> dict[str, Any]:
        rows = self.db.select(ARCHIVE_TABLE, filters={"brand_profile_id": brand_profile_id})
        return {
            "totalFiles": len(rows),
            "totalSize": sum(r.get("file_size") or 0 for r in rows),
            "byType": dict(Counter(r["file_type"] for r in rows)),
            "bySource": dict(Counter(r["source"] for r in rows)),
            "byContext": dict(Counter(r.get("context") or FileContext.CHAT.value for r in rows)),
        }


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


@lru_cache
def get_file_archive() -> FileArchive:
    """Get cached file archive instance."""
    return FileArchive(get_supabase_client())
