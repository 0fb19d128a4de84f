"""Brand field names, columns and storage shapes."""

from __future__ import annotations

import json
from typing import Any

ONBOARDING_STEP_IDS = (
    "welcome",
    "brand_assessment",
    "brand_identity",
    "target_audience",
    "brand_personality",
    "visual_identity",
    "market_positioning",
    "brand_story",
    "style_guide",
    "complete",
)

BRAND_ARCHETYPES = (
    "innocent",
    "sage",
    "explorer",
    "outlaw",
    "magician",
    "hero",
    "lover",
    "jester",
    "everyman",
    "caregiver",
    "ruler",
    "creator",
)

MARKET_POSITIONS = ("budget", "mid-range", "premium", "luxury")

BRAND_FIELD_LABELS: dict[str, str] = {
    "brandName": "Brand Name",
    "tagline": "Tagline",
    "missionStatement": "Mission Statement",
    "visionStatement": "Vision Statement",
    "elevatorPitch": "Elevator Pitch",
    "brandArchetype": "Brand Archetype",
    "brandPersonalityTraits": "Personality Traits",
    "toneOfVoice": "Tone of Voice",
    "communicationStyle": "Communication Style",
    "targetAudience": "Target Audience",
    "customerPainPoints": "Customer Pain Points",
    "valueProposition": "Value Proposition",
    "primaryColor": "Primary Color",
    "secondaryColor": "Secondary Color",
    "accentColor": "Accent Color",
    "colorPalette": "Color Palette",
    "typographyHeading": "Heading Font",
    "typographyBody": "Body Font",
    "logoConcept": "Logo Concept",
    "logoUrl": "Logo URL",
    "industry": "Industry",
    "competitors": "Competitors",
    "uniqueSellingPoints": "Unique Selling Points",
    "marketPosition": "Market Position",
    "originStory": "Origin Story",
    "brandValues": "Brand Values",
    "brandPromise": "Brand Promise",
    "styleGuide": "Style Guide",
}

FIELD_TO_COLUMN: dict[str, str] = {
    "brandName": "brand_name",
    "tagline": "tagline",
    "missionStatement": "mission_statement",
    "visionStatement": "vision_statement",
    "elevatorPitch": "elevator_pitch",
    "brandArchetype": "brand_archetype",
    "brandPersonalityTraits": "brand_personality_traits",
    "toneOfVoice": "tone_of_voice",
    "communicationStyle": "communication_style",
    "targetAudience": "target_audience",
    "customerPainPoints": "customer_pain_points",
    "valueProposition": "value_proposition",
    "primaryColor": "primary_color",
    "secondaryColor": "secondary_color",
    "accentColor": "accent_color",
    "colorPalette": "color_palette",
    "typographyHeading": "typography_heading",
    "typographyBody": "typography_body",
    "logoConcept": "logo_concept",
    "logoUrl": "logo_url",
    "industry": "industry",
    "competitors": "competitors",
    "uniqueSellingPoints": "unique_selling_points",
    "marketPosition": "market_position",
    "originStory": "origin_story",
    "brandValues": "brand_values",
    "brandPromise": "brand_promise",
    "styleGuide": "style_guide",
}

JSON_ARRAY_FIELDS = frozenset(
    {
        "brandPersonalityTraits",
        "colorPalette",
        "brandValues",
        "competitors",
        "uniqueSellingPoints",
        "customerPainPoints",
    }
)

JSON_OBJECT_FIELDS = frozenset({"targetAudience", "styleGuide"})

JSON_FIELDS = JSON_ARRAY_FIELDS | JSON_OBJECT_FIELDS

# Fields the extraction pass may fill in from conversation
KNOWN_EXTRACTION_FIELDS = frozenset(BRAND_FIELD_LABELS) - {"logoUrl", "styleGuide"}

# Profile field -> brand text asset category and keys that can populate it
FIELD_TO_TEXT_MAPPING: dict[str, dict[str, Any]] = {
    "brandName": {"category": "names", "keys": ["brand_name", "primary_name", "company_name"]},
    "tagline": {"category": "messaging", "keys": ["tagline", "slogan"]},
    "missionStatement": {"category": "messaging", "keys": ["mission", "mission_statement"]},
    "visionStatement": {"category": "messaging", "keys": ["vision", "vision_statement"]},
    "elevatorPitch": {"category": "messaging", "keys": ["elevator_pitch", "pitch"]},
    "valueProposition": {"category": "messaging", "keys": ["value_proposition"]},
    "brandPromise": {"category": "messaging", "keys": ["brand_promise", "promise"]},
    "toneOfVoice": {"category": "voice", "keys": ["tone", "tone_of_voice", "tone_guidelines"]},
    "communicationStyle": {
        "category": "voice",
        "keys": ["communication_style", "style_guidelines"],
    },
    "originStory": {"category": "descriptions", "keys": ["origin_story", "about_us", "long_bio"]},
    "marketPosition": {"category": "descriptions", "keys": ["market_position", "positioning"]},
    "industry": {"category": "descriptions", "keys": ["industry"]},
    "logoConcept": {"category": "descriptions", "keys": ["logo_concept", "logo_description"]},
}


def is_known_field(field_name: str) -> bool:
    return field_name in FIELD_TO_COLUMN


def column_for(field_name: str) -> str:
    """Column name for a brand field. Raises ValueError for unknown fields."""
    column = FIELD_TO_COLUMN.get(field_name)
    if column is None:
        raise ValueError(f"Unknown field: {field_name}")
    return column


def serialize_field_value(field_name: str, value: Any) -> str | None:
    """Convert a field value to its column representation.

    JSON-typed fields are stored as JSON text. A string that already parses
    as JSON passes through unchanged; any other string is encoded.
    """
    if value is None:
        return None
    if field_name in JSON_FIELDS:
        if isinstance(value, str):
            try:
                json.loads(value)
            except json.JSONDecodeError:
                return json.dumps(value)
            return value
        return json.dumps(value)
    return str(value)


def serialize_version_value(value: Any) -> str | None:
    """Convert an old/new value for the version log."""
    if value is None:
        return None
    return value if isinstance(value, str) else json.dumps(value)


def _parse_json(raw: Any) -> Any:
    if not raw:
        return None
    if isinstance(raw, str):
        try:
            return json.loads(raw)
        except json.JSONDecodeError:
            # Rows written before values were always encoded
            return raw
    # Some drivers hand back jsonb columns already decoded
    return raw


def map_row_to_profile(row: dict[str, Any]) -> dict[str, Any]:
    """Map a ``brand_profiles`` row to a camelCase profile dict."""
    profile: dict[str, Any] = {
        "id": row["id"],
        "userId": row.get("user_id"),
        "status": row.get("status"),
        "brandNameConfirmed": bool(row.get("brand_name_confirmed")),
        "onboardingStep": row.get("onboarding_step"),
        "conversationId": row.get("conversation_id") or None,
        "createdAt": row.get("created_at"),
        "updatedAt": row.get("updated_at"),
    }
    for field_name, column in FIELD_TO_COLUMN.items():
        raw = row.get(column)
        if field_name in JSON_FIELDS:
            profile[field_name] = _parse_json(raw)
        else:
            profile[field_name] = raw or None
    return profile


def get_matching_profile_field(category: str, key: str) -> dict[str, str] | None:
    """Find the profile field a brand text asset (category, key) maps onto."""
    for field_name, mapping in FIELD_TO_TEXT_MAPPING.items():
        if mapping["category"] == category and key in mapping["keys"]:
            return {
                "fieldName": field_name,
                "fieldLabel": BRAND_FIELD_LABELS.get(field_name, field_name),
            }
    return None
