"""Append-only version history for brand fields."""

from __future__ import annotations

from functools import lru_cache
from typing import Any

import structlog

from brand_forge.core.fields import column_for, serialize_field_value, serialize_version_value
from brand_forge.db.client import SupabaseClient, get_supabase_client
from brand_forge.db.models import ChangeSource

logger = structlog.get_logger()

VERSIONS_TABLE = "brand_field_versions"


def map_row_to_version(row: dict[str, Any]) -> dict[str, Any]:
    return {
        "id": row["id"],
        "brandProfileId": row["brand_profile_id"],
        "userId": row.get("user_id"),
        "fieldName": row["field_name"],
        "oldValue": row.get("old_value") or None,
        "newValue": row.get("new_value") or None,
        "changeSource": row["change_source"],
        "changeReason": row.get("change_reason") or None,
        "versionNumber": row["version_number"],
        "createdAt": row.get("created_at"),
    }


class FieldVersionControl:
    """Git-like history for individual brand profile fields.

    ``update_field`` is the single mutation path for brand fields: every
    write appends a version row, and revert re-applies an old value as a new
    version instead of rewriting history.
    """

    def __init__(self, db: SupabaseClient) -> None:
        self.db = db

    def _next_version_number(self, profile_id: str, field_name: str) -> int:
        # Read-then-write; concurrent writers to the same field can collide
        head = self.db.select(
            VERSIONS_TABLE,
            filters={"brand_profile_id": profile_id, "field_name": field_name},
            order_by="version_number",
            ascending=False,
            limit=1,
        )
        return head[0]["version_number"] + 1 if head else 1

    def add_version(
        self,
        profile_id: str,
        user_id: str,
        field_name: str,
        old_value: Any,
        new_value: Any,
        change_source: ChangeSource | str = ChangeSource.MANUAL,
        change_reason: str | None = None,
    ) -> dict[str, Any]:
        """Append a version record for a field change."""
        version_number = self._next_version_number(profile_id, field_name)
        row = self.db.insert(
            VERSIONS_TABLE,
            {
                "brand_profile_id": profile_id,
                "user_id": user_id,
                "field_name": field_name,
                "old_value": serialize_version_value(old_value),
                "new_value": serialize_version_value(new_value),
                "change_source": ChangeSource(change_source).value,
                "change_reason": change_reason or None,
                "version_number": version_number,
            },
        )
        logger.info(
            "brand.field_versioned",
            profile_id=profile_id,
            field=field_name,
            version=version_number,
            source=ChangeSource(change_source).value,
        )
        return map_row_to_version(row)

    def history(self, profile_id: str, field_name: str) -> list[dict[str, Any]]:
        """Version history for one field, oldest first."""
        rows = self.db.select(
            VERSIONS_TABLE,
            filters={"brand_profile_id": profile_id, "field_name": field_name},
            order_by="version_number",
            ascending=True,
        )
        return [map_row_to_version(r) for r in rows]

    def all_history(self, profile_id: str) -> list[dict[str, Any]]:
        """Version history across every field of a profile, newest first."""
        rows = self.db.select(
            VERSIONS_TABLE,
            filters={"brand_profile_id": profile_id},
            order_by="created_at",
            ascending=False,
        )
        return [map_row_to_version(r) for r in rows]

    def get_field_value(self, profile_id: str, field_name: str) -> str | None:
        """Raw stored value of one field. Raises ValueError for unknown fields."""
        column = column_for(field_name)
        row = self.db.select_one("brand_profiles", {"id": profile_id})
        if not row:
            return None
        return row.get(column)

    def update_field(
        self,
        profile_id: str,
        user_id: str,
        field_name: str,
        new_value: Any,
        change_source: ChangeSource | str = ChangeSource.MANUAL,
        change_reason: str | None = None,
    ) -> dict[str, Any]:
        """Write a field value and append the matching version record.

        Returns the new version. Raises ValueError for unknown fields or a
        missing profile.
        """
        column = column_for(field_name)
        row = self.db.select_one("brand_profiles", {"id": profile_id})
        if not row:
            raise ValueError(f"Brand profile '{profile_id}' not found")
        old_value = row.get(column)

        data: dict[str, Any] = {column: serialize_field_value(field_name, new_value)}
        if field_name == "brandName":
            # Keeps heuristic renaming from overwriting a chosen name
            data["brand_name_confirmed"] = True
        self.db.update("brand_profiles", profile_id, data)

        return self.add_version(
            profile_id=profile_id,
            user_id=user_id,
            field_name=field_name,
            old_value=old_value,
            new_value=new_value,
            change_source=change_source,
            change_reason=change_reason,
        )

    def revert(self, profile_id: str, user_id: str, field_name: str, version_id: str) -> dict[str, Any]:
        """Re-apply a historical value as a new version."""
        target = self.db.select_one(
            VERSIONS_TABLE, {"id": version_id, "brand_profile_id": profile_id}
        )
        if not target:
            raise ValueError("Version not found")
        if target["field_name"] != field_name:
            raise ValueError(f"Version belongs to field '{target['field_name']}', not '{field_name}'")

        return self.update_field(
            profile_id=profile_id,
            user_id=user_id,
            field_name=field_name,
            new_value=target.get("new_value"),
            change_source=ChangeSource.MANUAL,
            change_reason=f"Reverted to version {target['version_number']}",
        )

    def apply_extracted_fields(
        self,
        profile_id: str,
        user_id: str,
        step: str,
        extracted: dict[str, Any],
    ) -> list[dict[str, Any]]:
        """Merge fields pulled from an onboarding conversation, one version each."""
        versions = []
        for field_name, value in extracted.items():
            versions.append(
                self.update_field(
                    profile_id=profile_id,
                    user_id=user_id,
                    field_name=field_name,
                    new_value=value,
                    change_source=ChangeSource.AI,
                    change_reason=f"Extracted from onboarding chat ({step} step)",
                )
            )
        return versions


@lru_cache
def get_field_versions() -> FieldVersionControl:
    """Get cached field version control instance."""
    return FieldVersionControl(get_supabase_client())
