"""Onboarding wizard endpoints: profile, message log and the streamed chat."""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Depends, HTTPException
from fastapi.responses import StreamingResponse

from brand_forge.api.deps import get_current_user, require_owned_profile
from brand_forge.api.models import ChatRequest, ProfileUpdateRequest
from brand_forge.config import Settings, get_settings
from brand_forge.core.profiles import BrandProfileRegistry, get_profile_registry
from brand_forge.onboarding.conversation import OnboardingConversation, get_conversation
from brand_forge.onboarding.steps import STEP_IDS
from brand_forge.storage.ai_keys import get_enabled_openai_key
from brand_forge.storage.kv import KeyValueStore, get_kv_store
from brand_forge.utils.sse import SSE_HEADERS, SSE_MEDIA_TYPE

router = APIRouter()


@router.get("/profile")
async def get_profile(
    id: str | None = None,
    user: dict[str, Any] = Depends(get_current_user),
    registry: BrandProfileRegistry = Depends(get_profile_registry),
) -> dict[str, Any]:
    """A specific profile by ``id``, else the user's most recently updated one."""
    if id:
        return {"profile": require_owned_profile(registry, id, user)}
    return {"profile": registry.get_profile_by_user(user["id"])}


@router.post("/profile")
async def create_profile(
    user: dict[str, Any] = Depends(get_current_user),
    registry: BrandProfileRegistry = Depends(get_profile_registry),
) -> dict[str, Any]:
    return {"profile": registry.create_profile(user["id"])}


@router.patch("/profile")
async def update_profile(
    data: ProfileUpdateRequest,
    user: dict[str, Any] = Depends(get_current_user),
    registry: BrandProfileRegistry = Depends(get_profile_registry),
) -> dict[str, Any]:
    """Partial update; setting brandName also confirms it."""
    require_owned_profile(registry, data.profile_id, user)
    return {"profile": registry.update_profile(data.profile_id, data.updates)}


@router.post("/start")
async def start_onboarding(
    user: dict[str, Any] = Depends(get_current_user),
    conversation: OnboardingConversation = Depends(get_conversation),
    kv: KeyValueStore = Depends(get_kv_store),
    settings: Settings = Depends(get_settings),
) -> dict[str, Any]:
    """Create a profile and greet the user.

    A missing key or a failed greeting still returns the new profile.
    """
    return await conversation.start(user["id"], get_enabled_openai_key(kv, settings))


@router.get("/messages/{profile_id}")
async def get_messages(
    profile_id: str,
    step: str | None = None,
    user: dict[str, Any] = Depends(get_current_user),
    registry: BrandProfileRegistry = Depends(get_profile_registry),
    conversation: OnboardingConversation = Depends(get_conversation),
) -> dict[str, Any]:
    require_owned_profile(registry, profile_id, user)
    return {"messages": conversation.get_messages(profile_id, step)}


@router.post("/chat")
async def chat(
    data: ChatRequest,
    user: dict[str, Any] = Depends(get_current_user),
    registry: BrandProfileRegistry = Depends(get_profile_registry),
    conversation: OnboardingConversation = Depends(get_conversation),
    kv: KeyValueStore = Depends(get_kv_store),
    settings: Settings = Depends(get_settings),
) -> StreamingResponse:
    """Send one message and stream the reply as server-sent events."""
    if data.step not in STEP_IDS:
        raise HTTPException(status_code=400, detail=f"Unknown onboarding step: {data.step}")
    profile = registry.get_profile(data.profile_id)
    if not profile:
        raise HTTPException(status_code=404, detail="Brand profile not found")
    if profile["userId"] != user["id"]:
        raise HTTPException(status_code=403, detail="Forbidden")

    api_key = get_enabled_openai_key(kv, settings)
    if not api_key:
        raise HTTPException(
            status_code=503,
            detail="No AI provider configured. Please configure an OpenAI API key.",
        )

    attachments = [a.model_dump(by_alias=True, exclude_none=True) for a in data.attachments]
    return StreamingResponse(
        conversation.chat_turn(
            profile, user["id"], data.message, data.step, api_key, attachments or None
        ),
        media_type=SSE_MEDIA_TYPE,
        headers=SSE_HEADERS,
    )
