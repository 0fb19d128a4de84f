"""Structured brand data extraction from onboarding conversation."""

from __future__ import annotations

import json
import re
from typing import Any

from brand_forge.core.fields import JSON_ARRAY_FIELDS, KNOWN_EXTRACTION_FIELDS
from brand_forge.onboarding.steps import get_step_config

_CODE_FENCE = re.compile(r"^```(?:json)?\s*\n?([\s\S]*?)\n?\s*```$")


def build_extraction_prompt(step_id: str, messages: list[dict[str, Any]]) -> str:
    """Prompt asking a small model to pull brand fields out of recent messages.

    Returns an empty string for the complete step, meaning "skip extraction".
    """
    if step_id == "complete":
        return ""

    fields = ["brandName"]
    step = get_step_config(step_id)
    if step:
        fields.extend(f for f in step.extraction_fields if f not in fields)

    transcript = "\n".join(
        f"{m['role'].upper()}: "
        f"{m['content'] if isinstance(m['content'], str) else json.dumps(m['content'])}"
        for m in messages
    )
    field_list = "\n".join(f"- {f}" for f in fields)
    array_fields = ", ".join(sorted(JSON_ARRAY_FIELDS))

    return f"""You are a data extraction assistant. Analyze the following brand onboarding \
conversation and extract brand information that the user explicitly stated or clearly agreed to.

CONVERSATION:
{transcript}

FIELDS TO EXTRACT (only fields that were clearly stated or confirmed):
{field_list}

RULES:
- Return a JSON object with ONLY the fields that have definitive values from the conversation
- Do NOT guess or infer values that weren't discussed
- If the user explicitly stated a brand name, include it as "brandName"
- Preserve exact spelling, capitalization and special characters (e.g. "*Space" not "Space")
- For array fields ({array_fields}), return JSON arrays
- Omit fields with no clear value
- Return ONLY valid JSON, no markdown, no explanation
- If nothing was clearly established, return an empty object {{}}"""


def parse_extraction_response(response: str | None) -> dict[str, Any] | None:
    """Parse the extraction model's reply into known brand fields.

    Returns None for empty or non-JSON input, for anything other than a JSON
    object, and when no known field with a usable value remains. Unknown
    keys, nulls and blank strings are dropped.
    """
    if not response or not response.strip():
        return None

    text = response.strip()
    fenced = _CODE_FENCE.match(text)
    if fenced:
        text = fenced.group(1).strip()

    try:
        parsed = json.loads(text)
    except json.JSONDecodeError:
        return None

    if not isinstance(parsed, dict):
        return None

    result = {}
    for key, value in parsed.items():
        if key not in KNOWN_EXTRACTION_FIELDS or value is None:
            continue
        if isinstance(value, str) and not value.strip():
            continue
        result[key] = value

    return result or None
