"""Video generation endpoints: model catalog, job start, SSE progress and cached files."""

from __future__ import annotations

from typing import Any

import structlog
from fastapi import APIRouter, Depends, HTTPException, Request, Response
from fastapi.responses import StreamingResponse

from brand_forge.api.deps import get_current_user, require_owned_profile
from brand_forge.api.models import VideoGenerateRequest
from brand_forge.core.archive import FileArchive, get_file_archive
from brand_forge.core.profiles import BrandProfileRegistry, get_profile_registry
from brand_forge.db.models import GenerationStatus, GenerationType
from brand_forge.media.generation import DEFAULT_VIDEO_MODEL, MediaGenerationService, get_media_service
from brand_forge.media.providers.registry import get_models_for_key, get_video_provider
from brand_forge.media.relay import VideoPollRelay, terminal_event
from brand_forge.storage.ai_keys import get_all_enabled_video_keys, get_enabled_video_key
from brand_forge.storage.kv import KeyValueStore, get_kv_store
from brand_forge.storage.objects import ObjectStorage, get_object_storage
from brand_forge.utils.security import validate_prompt
from brand_forge.utils.sse import SSE_HEADERS, SSE_MEDIA_TYPE, format_sse

logger = structlog.get_logger()

router = APIRouter()


@router.get("/models")
async def list_models(
    user: dict[str, Any] = Depends(get_current_user),
    kv: KeyValueStore = Depends(get_kv_store),
) -> dict[str, Any]:
    """Models usable with the enabled video keys, first key wins on duplicates."""
    seen: set[str] = set()
    models = []
    for key in get_all_enabled_video_keys(kv):
        for model in get_models_for_key(key):
            if model.id in seen:
                continue
            seen.add(model.id)
            models.append(model.to_dict())
    return {"models": models}


@router.post("/generate")
async def generate_video(
    data: VideoGenerateRequest,
    user: dict[str, Any] = Depends(get_current_user),
    registry: BrandProfileRegistry = Depends(get_profile_registry),
    service: MediaGenerationService = Depends(get_media_service),
    kv: KeyValueStore = Depends(get_kv_store),
) -> dict[str, Any]:
    """Submit a video job. Progress is followed on ``/video/{id}/stream``."""
    try:
        prompt = validate_prompt(data.prompt)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))

    if data.brand_profile_id:
        require_owned_profile(registry, data.brand_profile_id, user)

    video_key = get_enabled_video_key(kv, data.provider)
    if not video_key:
        raise HTTPException(status_code=503, detail="No video generation provider is currently available")
    provider = get_video_provider(video_key.provider)
    if not provider:
        raise HTTPException(
            status_code=503, detail=f'Video provider "{video_key.provider}" is not supported'
        )

    available = provider.get_available_models()
    model = data.model or (available[0].id if available else DEFAULT_VIDEO_MODEL)

    generation = service.request_video_generation(
        prompt=prompt,
        brand_profile_id=data.brand_profile_id,
        user_id=user["id"],
        provider=video_key.provider,
        model=model,
        aspect_ratio=data.aspect_ratio,
        duration=data.duration,
        resolution=data.resolution,
    )
    generation = await service.start_video_generation(generation, provider, video_key.api_key)
    if generation["status"] == GenerationStatus.FAILED.value:
        raise HTTPException(status_code=502, detail=generation["errorMessage"] or "Video generation failed")

    return {
        "id": generation["id"],
        "status": generation["status"],
        "providerJobId": generation["providerJobId"],
        "videoUrl": generation["resultUrl"],
    }


async def _single_event(event: dict[str, Any]):
    yield format_sse(event)


@router.get("/{generation_id}/stream")
async def stream_video_progress(
    generation_id: str,
    request: Request,
    user: dict[str, Any] = Depends(get_current_user),
    service: MediaGenerationService = Depends(get_media_service),
    archive: FileArchive = Depends(get_file_archive),
    storage: ObjectStorage | None = Depends(get_object_storage),
    kv: KeyValueStore = Depends(get_kv_store),
) -> StreamingResponse:
    """Server-sent progress events until the job settles or the client leaves."""
    generation = service.get_generation(generation_id)
    if (
        not generation
        or generation["userId"] != user["id"]
        or generation["generationType"] != GenerationType.VIDEO.value
    ):
        raise HTTPException(status_code=404, detail="Video generation not found")

    if GenerationStatus(generation["status"]).is_terminal:
        return StreamingResponse(
            _single_event(terminal_event(generation)), media_type=SSE_MEDIA_TYPE, headers=SSE_HEADERS
        )

    video_key = get_enabled_video_key(kv, generation["provider"])
    if not video_key:
        raise HTTPException(status_code=503, detail="Video provider no longer available")
    provider = get_video_provider(video_key.provider)
    if not provider:
        raise HTTPException(status_code=503, detail="Video provider not supported")

    relay = VideoPollRelay(
        service,
        generation,
        provider,
        video_key.api_key,
        storage=storage,
        archive=archive,
        is_disconnected=request.is_disconnected,
    )
    return StreamingResponse(relay.stream(), media_type=SSE_MEDIA_TYPE, headers=SSE_HEADERS)


@router.get("/file/{key:path}")
async def get_video_file(
    key: str,
    user: dict[str, Any] = Depends(get_current_user),
    storage: ObjectStorage | None = Depends(get_object_storage),
) -> Response:
    """Serve a cached video. Users can only read under their own prefix."""
    if storage is None:
        raise HTTPException(status_code=500, detail="Object storage not configured")
    if not key.startswith(f"videos/{user['id']}/"):
        raise HTTPException(status_code=404, detail="File not found")

    found = await storage.get(key)
    if found is None:
        raise HTTPException(status_code=404, detail="File not found")
    body, content_type = found
    return Response(
        content=body,
        media_type=content_type or "video/mp4",
        headers={"Cache-Control": "private, max-age=31536000, immutable"},
    )
