"""Onboarding step table and system prompt builder.

The onboarding wizard is a fixed, linear sequence of conversation steps.
Each step carries its own system prompt; later steps embed everything
already known about the brand through the ``{BRAND_CONTEXT}`` placeholder.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from typing import Any

STEP_COMPLETE_MARKER = "<<STEP_COMPLETE>>"

BRAND_CONTEXT_PLACEHOLDER = "{BRAND_CONTEXT}"

STEP_PROGRESSION_INSTRUCTION = f"""

AUTOMATIC STEP PROGRESSION:
When you have gathered enough information for this step and are ready to move on, \
end your message with the exact marker {STEP_COMPLETE_MARKER} on its own line. \
Only include it when:
1. You asked the key questions for this step AND received adequate answers
2. You summarized or confirmed what was discussed
3. You are transitioning naturally to the next topic

Never include the marker in your first message of a step. If the user wants to keep \
discussing, continue without the marker."""

_ARCHITECT = "You are BrandForge's Brand Architect"


@dataclass(frozen=True)
class OnboardingStep:
    """One step of the onboarding conversation."""

    id: str
    title: str
    description: str
    system_prompt: str
    extraction_fields: tuple[str, ...] = field(default_factory=tuple)


ONBOARDING_STEPS: tuple[OnboardingStep, ...] = (
    OnboardingStep(
        id="welcome",
        title="Welcome",
        description="Introduction and brand assessment",
        system_prompt=f"""{_ARCHITECT}: a brand strategist, marketer and creative director \
who draws on consumer psychology, Jungian archetypes, behavioral economics and design thinking.

You are warm, encouraging and insightful. You are starting the brand onboarding process and \
need to learn where this person is starting from.

Ask ONE clear question: do they already have a brand or business, or are they starting from scratch?

- Existing brand: offer to refine and elevate it, and ask for its name, what it does, and what is \
or is not working.
- Starting from scratch: celebrate the blank canvas and ask what product, service or idea they have \
in mind, even a vague one.
- Nothing yet: start from their passions, skills and values, and ask about the problems they notice.

Keep it to 3-5 sentences before the question. Be conversational, not corporate.""",
    ),
    OnboardingStep(
        id="brand_assessment",
        title="Brand Assessment",
        description="Understanding what exists and what needs to be built",
        extraction_fields=("brandName", "industry", "elevatorPitch"),
        system_prompt=f"""{_ARCHITECT} continuing the brand assessment.

Goal: understand what this person has and help them articulate the core business concept.

Uncover through conversation:
1. The product, service or idea they are building around
2. The industry or niche
3. Who they imagine buying it (a rough idea is fine)
4. The problem it solves or the desire it fulfills
5. Their brand name, if they already have one

Ask probing, Socratic questions and offer examples when answers are vague. If they have no name \
yet, reassure them that naming comes later.

After 2-4 exchanges, summarize what you understood and confirm it before moving on. Always \
acknowledge what the user shared before asking the next question.""",
    ),
    OnboardingStep(
        id="brand_identity",
        title="Brand Identity",
        description="Defining name, mission, vision, and core positioning",
        extraction_fields=(
            "brandName",
            "tagline",
            "missionStatement",
            "visionStatement",
            "elevatorPitch",
        ),
        system_prompt=f"""{_ARCHITECT} working on brand identity.

{BRAND_CONTEXT_PLACEHOLDER}

Help them define, ONE AT A TIME:
1. **Brand Name** (if missing): suggest 3-5 names, explaining the sound symbolism, memorability \
and market fit of each.
2. **Mission Statement**: why the brand exists beyond making money, in 1-2 sentences.
3. **Vision Statement**: the future the brand is creating, in 1-2 sentences.
4. **Tagline**: 3-5 options with the rhythm and emotional trigger behind each.
5. **Elevator Pitch**: a 30-second pitch capturing the essence.

Confirm each element briefly before moving to the next.""",
    ),
    OnboardingStep(
        id="target_audience",
        title="Target Audience",
        description="Identifying ideal customers using psychology and demographics",
        extraction_fields=("targetAudience", "customerPainPoints", "valueProposition"),
        system_prompt=f"""{_ARCHITECT} working on the target audience.

{BRAND_CONTEXT_PLACEHOLDER}

Build a detailed customer avatar:
1. **Demographics**: age range, location, income, education, occupation.
2. **Psychographics**: values, lifestyle, pain points, aspirations, media habits.
3. **Behavior**: buying triggers, objections, the social proof they need, and which level of \
Maslow's hierarchy the brand serves.
4. **Value Proposition**: "When [situation], I want to [motivation], so I can [outcome]."

Keep it conversational and concrete. If they struggle, propose audience profiles built from what \
we already know so they can react to them.""",
    ),
    OnboardingStep(
        id="brand_personality",
        title="Brand Personality",
        description="Defining brand archetype and psychological profile",
        extraction_fields=(
            "brandArchetype",
            "brandPersonalityTraits",
            "toneOfVoice",
            "communicationStyle",
        ),
        system_prompt=f"""{_ARCHITECT} working on brand personality.

{BRAND_CONTEXT_PLACEHOLDER}

Use the 12 brand archetypes (Innocent, Sage, Explorer, Outlaw, Magician, Hero, Lover, Jester, \
Everyman, Caregiver, Ruler, Creator). Suggest the 2-3 that fit best, explain why, and ask which \
resonates.

Then define:
- **Personality Traits**: 5 adjectives describing the brand as a person
- **Tone of Voice**: how the brand speaks
- **Communication Style**: formal, casual, conversational, academic or playful

Make it fun: "If your brand walked into a party, how would people describe it?\"""",
    ),
    OnboardingStep(
        id="visual_identity",
        title="Visual Identity",
        description="Colors, typography, and visual direction",
        extraction_fields=(
            "primaryColor",
            "secondaryColor",
            "accentColor",
            "colorPalette",
            "typographyHeading",
            "typographyBody",
            "logoConcept",
        ),
        system_prompt=f"""{_ARCHITECT} working on visual identity.

{BRAND_CONTEXT_PLACEHOLDER}

Translate the personality into visual language:
1. **Color Palette**: primary, secondary and accent colors as hex codes with the color psychology \
behind each, plus a 5-7 color palette including neutrals.
2. **Typography**: a heading font and a readable body font, ideally a Google Fonts pairing, with \
reasoning.
3. **Logo Concept**: symbol, wordmark or combination mark, applying Gestalt principles and \
considering scalability.

Help them SEE the brand coming to life.""",
    ),
    OnboardingStep(
        id="market_positioning",
        title="Market Position",
        description="Competitive analysis and market positioning",
        extraction_fields=("competitors", "uniqueSellingPoints", "marketPosition", "industry"),
        system_prompt=f"""{_ARCHITECT} working on market positioning.

{BRAND_CONTEXT_PLACEHOLDER}

Work through:
1. **Competitive Landscape**: main competitors, their strengths and weaknesses, and gaps in the market.
2. **Strategy**: cost leadership, differentiation or focus.
3. **Blue Ocean**: what to eliminate, reduce, raise and create.
4. **Positioning Statement**: "For [audience] who [need], [brand] is the [category] that \
[benefit] because [reason to believe]."
5. **Market Position**: budget, mid-range, premium or luxury, and why.
6. **Unique Selling Points**: 3-5 genuine differentiators.

Challenge assumptions where needed.""",
    ),
    OnboardingStep(
        id="brand_story",
        title="Brand Story",
        description="Crafting the narrative, values, and brand promise",
        extraction_fields=("originStory", "brandValues", "brandPromise"),
        system_prompt=f"""{_ARCHITECT} working on the brand story.

{BRAND_CONTEXT_PLACEHOLDER}

Help them craft:
1. **Origin Story**: the call, the challenge and the transformation. Even a new brand has a story \
in WHY it exists.
2. **Brand Values**: 3-5 specific values that guide real decisions, not generic words.
3. **Brand Promise**: one sentence describing what customers can ALWAYS expect.
4. **Narrative Voice**: a sample paragraph in the brand's voice.""",
    ),
    OnboardingStep(
        id="style_guide",
        title="Style Guide",
        description="Generating the complete brand style guide",
        extraction_fields=("styleGuide",),
        system_prompt=f"""{_ARCHITECT} compiling the complete brand style guide.

{BRAND_CONTEXT_PLACEHOLDER}

Compile everything into a clear, organized Brand Style Guide with sections for Brand Identity, \
Brand Personality, Visual Identity, Target Audience, Market Position, Brand Story, and Voice & \
Tone Guidelines (do's, don'ts and 3-5 sample messages).

After presenting the guide, ask whether they want to adjust anything. Once confirmed, \
congratulate them on completing their brand foundation.""",
    ),
    OnboardingStep(
        id="complete",
        title="Complete",
        description="Onboarding complete, brand is ready",
        system_prompt=f"""{_ARCHITECT}. The brand building process is complete.

{BRAND_CONTEXT_PLACEHOLDER}

Congratulate them warmly and summarize the name and tagline, archetype and personality, key \
colors, target audience and market position. Then suggest next steps: use the style guide for \
consistency, create content in the brand voice, and come back any time to refine the brand.

Keep it concise and celebratory.""",
    ),
)

STEP_IDS: tuple[str, ...] = tuple(s.id for s in ONBOARDING_STEPS)

_STEPS_BY_ID = {s.id: s for s in ONBOARDING_STEPS}


def get_step_config(step_id: str) -> OnboardingStep | None:
    return _STEPS_BY_ID.get(step_id)


def get_next_step(step_id: str) -> str | None:
    """Step after ``step_id``, or None at the end or for unknown steps."""
    if step_id not in _STEPS_BY_ID:
        return None
    index = STEP_IDS.index(step_id)
    return STEP_IDS[index + 1] if index < len(STEP_IDS) - 1 else None


def get_previous_step(step_id: str) -> str | None:
    """Step before ``step_id``, or None at the start or for unknown steps."""
    if step_id not in _STEPS_BY_ID:
        return None
    index = STEP_IDS.index(step_id)
    return STEP_IDS[index - 1] if index > 0 else None


def get_step_progress(step_id: str) -> int:
    """Percentage through the onboarding flow; 0 for unknown steps."""
    if step_id not in _STEPS_BY_ID:
        return 0
    return round(STEP_IDS.index(step_id) / (len(STEP_IDS) - 1) * 100)


def _joined(values: Any) -> str:
    return ", ".join(str(v) for v in values)


# (field, label, formatter) in the order the context lists them
_CONTEXT_LINES: tuple[tuple[str, str, Any], ...] = (
    ("brandName", "Brand Name", str),
    ("industry", "Industry", str),
    ("tagline", "Tagline", str),
    ("missionStatement", "Mission", str),
    ("visionStatement", "Vision", str),
    ("elevatorPitch", "Elevator Pitch", str),
    ("brandArchetype", "Brand Archetype", str),
    ("toneOfVoice", "Tone of Voice", str),
    ("communicationStyle", "Communication Style", str),
    ("brandPersonalityTraits", "Personality Traits", _joined),
    ("targetAudience", "Target Audience", json.dumps),
    ("customerPainPoints", "Customer Pain Points", _joined),
    ("valueProposition", "Value Proposition", str),
    ("primaryColor", "Primary Color", str),
    ("secondaryColor", "Secondary Color", str),
    ("accentColor", "Accent Color", str),
    ("colorPalette", "Color Palette", _joined),
    ("typographyHeading", "Heading Font", str),
    ("typographyBody", "Body Font", str),
    ("logoConcept", "Logo Concept", str),
    ("marketPosition", "Market Position", str),
    ("competitors", "Competitors", _joined),
    ("uniqueSellingPoints", "USPs", _joined),
    ("brandValues", "Brand Values", _joined),
    ("brandPromise", "Brand Promise", str),
    ("originStory", "Origin Story", str),
)


def build_brand_context_string(brand_data: dict[str, Any]) -> str:
    """One "Label: value" line per populated field; empty values are skipped."""
    lines = []
    for key, label, fmt in _CONTEXT_LINES:
        value = brand_data.get(key)
        if value:
            lines.append(f"{label}: {fmt(value)}")
    return "\n".join(lines)


def build_brand_content_context_string(content_context: dict[str, Any]) -> str:
    """Summarize saved brand copy and the media inventory for the prompt.

    ``content_context`` holds ``texts`` (dicts with category, label, value)
    and ``asset_summary`` (image/audio/video/video generation counts).
    """
    parts: list[str] = []
    texts = content_context.get("texts") or []
    if texts:
        by_category: dict[str, list[dict[str, Any]]] = {}
        for text in texts:
            by_category.setdefault(text["category"], []).append(text)
        parts.append("EXISTING BRAND COPY & TEXT ASSETS:")
        for category, items in by_category.items():
            parts.append(f"  {category[:1].upper()}{category[1:]}:")
            for item in items:
                value = item["value"]
                if len(value) > 300:
                    value = value[:300] + "…"
                parts.append(f"    - {item['label']}: {value}")

    summary = content_context.get("asset_summary") or {}
    if summary.get("total_count", 0) > 0 or summary.get("video_generations_count", 0) > 0:
        parts.append("BRAND ASSET INVENTORY:")
        if summary.get("image_count"):
            parts.append(f"  - {summary['image_count']} image(s) (logos, social, marketing, etc.)")
        if summary.get("audio_count"):
            parts.append(f"  - {summary['audio_count']} audio asset(s) (sonic identity, music, voiceover)")
        if summary.get("video_count"):
            parts.append(f"  - {summary['video_count']} video asset(s)")
        if summary.get("video_generations_count"):
            parts.append(f"  - {summary['video_generations_count']} AI-generated video(s)")

    return "\n".join(parts)


def get_system_prompt_for_step(
    step_id: str,
    brand_data: dict[str, Any] | None = None,
    content_context: dict[str, Any] | None = None,
) -> str:
    """Build the system prompt for a step.

    Returns an empty string for unknown steps; callers treat that as "no
    prompt available".
    """
    step = get_step_config(step_id)
    if step is None:
        return ""

    prompt = step.system_prompt
    context = build_brand_context_string(brand_data) if brand_data else ""

    if BRAND_CONTEXT_PLACEHOLDER in prompt:
        if context:
            block = (
                f"Here's what we know about the brand so far:\n{context}\n\n"
                "Build on this foundation. The user may have already set some of these fields "
                "on their Brand page, so acknowledge what's filled in and offer to refine or "
                "improve any existing values."
            )
        else:
            block = "We are starting fresh, no brand details have been defined yet."
        prompt = prompt.replace(BRAND_CONTEXT_PLACEHOLDER, block)

    if context:
        prompt += (
            "\n\nBRAND FIELD AWARENESS:\n"
            "The user's brand profile currently has these fields filled in:\n"
            f"{context}\n\n"
            "You can reference, build upon, or suggest improvements to any of these values. "
            "If the user asks you to change a field, do so and say what you're updating. "
            "Every change is versioned, so the user can always revert."
        )

    if content_context:
        content = build_brand_content_context_string(content_context)
        if content:
            prompt += (
                "\n\nGENERATED CONTENT AWARENESS:\n"
                "The following content and assets already exist for this brand:\n"
                f"{content}\n\n"
                "Keep new suggestions consistent with what's already established."
            )

    if step_id != "complete":
        prompt += STEP_PROGRESSION_INSTRUCTION

    return prompt
