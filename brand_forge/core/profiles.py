"""Brand profile registry."""

from __future__ import annotations

import random
from functools import lru_cache
from typing import Any

import structlog

from brand_forge.core.fields import (
    BRAND_FIELD_LABELS,
    FIELD_TO_COLUMN,
    JSON_FIELDS,
    map_row_to_profile,
    serialize_field_value,
)
from brand_forge.db.client import SupabaseClient, get_supabase_client
from brand_forge.db.models import ProfileStatus

logger = structlog.get_logger()

PLACEHOLDER_ADJECTIVES = [
    "Amber", "Azure", "Bold", "Bright", "Cedar", "Cobalt", "Coral", "Crimson",
    "Crystal", "Dusk", "Ember", "Fern", "Frost", "Golden", "Harbor", "Indigo",
    "Iron", "Ivory", "Jade", "Lunar", "Maple", "Midnight", "Noble", "Opal",
    "Pearl", "Pine", "Prism", "Quartz", "Radiant", "Raven", "Rustic", "Sable",
    "Sage", "Scarlet", "Shadow", "Silver", "Solar", "Sterling", "Stone", "Summit",
    "Swift", "Velvet", "Verdant", "Vivid", "Wild", "Zenith",
]

PLACEHOLDER_NOUNS = [
    "Anchor", "Arrow", "Atlas", "Aurora", "Beacon", "Bloom", "Bridge", "Canyon",
    "Crest", "Crown", "Dawn", "Echo", "Edge", "Ember", "Falcon", "Fable",
    "Forge", "Fox", "Grove", "Harbor", "Haven", "Horizon", "Iris", "Lark",
    "Lotus", "Lynx", "Mesa", "Moss", "Nexus", "Nova", "Orbit", "Osprey",
    "Peak", "Phoenix", "Plume", "Pulse", "Reef", "Ridge", "River", "Root",
    "Sequoia", "Spark", "Spire", "Tide", "Vale", "Vortex", "Wave", "Wren",
]

ACTIVE_STATUSES = (ProfileStatus.IN_PROGRESS.value, ProfileStatus.COMPLETED.value)

# Non-brand columns that update_profile accepts alongside the brand fields
_META_COLUMNS = {
    "onboardingStep": "onboarding_step",
    "conversationId": "conversation_id",
    "status": "status",
}

SUMMARY_SECTIONS: list[dict[str, Any]] = [
    {
        "id": "identity",
        "title": "Brand Identity",
        "fields": [
            ("brandName", "text"),
            ("tagline", "text"),
            ("missionStatement", "text"),
            ("visionStatement", "text"),
            ("elevatorPitch", "text"),
        ],
    },
    {
        "id": "personality",
        "title": "Brand Personality",
        "fields": [
            ("brandArchetype", "archetype"),
            ("brandPersonalityTraits", "list"),
            ("toneOfVoice", "text"),
            ("communicationStyle", "text"),
        ],
    },
    {
        "id": "audience",
        "title": "Target Audience",
        "fields": [
            ("targetAudience", "object"),
            ("customerPainPoints", "list"),
            ("valueProposition", "text"),
        ],
    },
    {
        "id": "visual",
        "title": "Visual Identity",
        "fields": [
            ("primaryColor", "color"),
            ("secondaryColor", "color"),
            ("accentColor", "color"),
            ("colorPalette", "list"),
            ("typographyHeading", "text"),
            ("typographyBody", "text"),
            ("logoConcept", "text"),
        ],
    },
    {
        "id": "market",
        "title": "Market Position",
        "fields": [
            ("industry", "text"),
            ("competitors", "list"),
            ("uniqueSellingPoints", "list"),
            ("marketPosition", "text"),
        ],
    },
    {
        "id": "story",
        "title": "Brand Story",
        "fields": [
            ("originStory", "text"),
            ("brandValues", "list"),
            ("brandPromise", "text"),
        ],
    },
]


def generate_placeholder_brand_name() -> str:
    """Pick a name like "Cobalt Phoenix" until the user chooses a real one."""
    return f"{random.choice(PLACEHOLDER_ADJECTIVES)} {random.choice(PLACEHOLDER_NOUNS)}"


def _sort_by_updated(rows: list[dict[str, Any]]) -> list[dict[str, Any]]:
    return sorted(rows, key=lambda r: r.get("updated_at") or "", reverse=True)


class BrandProfileRegistry:
    """Manages the brand profile lifecycle."""

    def __init__(self, db: SupabaseClient) -> None:
        self.db = db

    def create_profile(self, user_id: str) -> dict[str, Any]:
        """Create a new in-progress profile with a placeholder name."""
        row = self.db.insert(
            "brand_profiles",
            {
                "user_id": user_id,
                "brand_name": generate_placeholder_brand_name(),
                "brand_name_confirmed": False,
                "status": ProfileStatus.IN_PROGRESS.value,
                "onboarding_step": "welcome",
            },
        )
        logger.info("brand.profile_created", profile_id=row["id"], user_id=user_id)
        return map_row_to_profile(row)

    def get_row(self, profile_id: str) -> dict[str, Any] | None:
        return self.db.select_one("brand_profiles", {"id": profile_id})

    def get_profile(self, profile_id: str) -> dict[str, Any] | None:
        """Get a profile by ID regardless of owner."""
        row = self.get_row(profile_id)
        return map_row_to_profile(row) if row else None

    def get_profile_for_user(self, profile_id: str, user_id: str) -> dict[str, Any] | None:
        """Get a profile only if it belongs to the given user."""
        row = self.db.select_one("brand_profiles", {"id": profile_id, "user_id": user_id})
        return map_row_to_profile(row) if row else None

    def list_profiles_by_user(self, user_id: str) -> list[dict[str, Any]]:
        """All non-archived profiles for a user, most recently updated first."""
        rows = self.db.select("brand_profiles", filters={"user_id": user_id})
        rows = [r for r in rows if r.get("status") in ACTIVE_STATUSES]
        return [map_row_to_profile(r) for r in _sort_by_updated(rows)]

    def get_profile_by_user(self, user_id: str) -> dict[str, Any] | None:
        """The user's active profile (most recently updated), or None."""
        profiles = self.list_profiles_by_user(user_id)
        return profiles[0] if profiles else None

    def update_profile(self, profile_id: str, updates: dict[str, Any]) -> dict[str, Any] | None:
        """Apply a partial camelCase update. Unknown keys are ignored.

        Setting ``brandName`` without an explicit ``brandNameConfirmed``
        marks the name as confirmed.
        """
        data: dict[str, Any] = {}
        for key, value in updates.items():
            if key in FIELD_TO_COLUMN:
                if key in JSON_FIELDS:
                    # Empty arrays and objects are stored as NULL
                    value = value or None
                data[FIELD_TO_COLUMN[key]] = serialize_field_value(key, value)
            elif key in _META_COLUMNS:
                data[_META_COLUMNS[key]] = value
            elif key == "brandNameConfirmed":
                data["brand_name_confirmed"] = bool(value)

        if "brandName" in updates and "brandNameConfirmed" not in updates:
            data["brand_name_confirmed"] = True

        if not data:
            return self.get_profile(profile_id)

        row = self.db.update("brand_profiles", profile_id, data)
        logger.info("brand.profile_updated", profile_id=profile_id, columns=sorted(data))
        return map_row_to_profile(row)

    def archive_profile(self, profile_id: str) -> bool:
        """Soft-delete a profile by setting status=archived."""
        if not self.get_row(profile_id):
            return False
        self.db.update("brand_profiles", profile_id, {"status": ProfileStatus.ARCHIVED.value})
        logger.info("brand.profile_archived", profile_id=profile_id)
        return True

    def duplicate_profile(self, source_id: str, user_id: str) -> dict[str, Any]:
        """Copy all brand data into a new in-progress profile named "<name> (Copy)"."""
        source = self.db.select_one("brand_profiles", {"id": source_id, "user_id": user_id})
        if not source:
            raise ValueError("Source profile not found")

        data = {column: source.get(column) for column in FIELD_TO_COLUMN.values()}
        data.update(
            {
                "user_id": user_id,
                "brand_name": f"{source.get('brand_name') or 'Untitled'} (Copy)",
                "brand_name_confirmed": bool(source.get("brand_name_confirmed")),
                "status": ProfileStatus.IN_PROGRESS.value,
                "onboarding_step": source.get("onboarding_step") or "welcome",
            }
        )
        row = self.db.insert("brand_profiles", data)
        logger.info("brand.profile_duplicated", source_id=source_id, profile_id=row["id"])
        return map_row_to_profile(row)


def get_brand_fields_summary(profile: dict[str, Any]) -> list[dict[str, Any]]:
    """Group profile fields into display sections."""
    return [
        {
            "id": section["id"],
            "title": section["title"],
            "fields": [
                {
                    "key": key,
                    "label": BRAND_FIELD_LABELS[key],
                    "value": profile.get(key),
                    "type": kind,
                }
                for key, kind in section["fields"]
            ],
        }
        for section in SUMMARY_SECTIONS
    ]


@lru_cache
def get_profile_registry() -> BrandProfileRegistry:
    """Get cached profile registry instance."""
    return BrandProfileRegistry(get_supabase_client())
