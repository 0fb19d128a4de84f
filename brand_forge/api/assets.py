"""Brand asset generation endpoints (image, audio, video records)."""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Depends, HTTPException
from fastapi.responses import JSONResponse

from brand_forge.api.deps import get_current_user, require_owned_profile
from brand_forge.api.models import GenerateAssetRequest
from brand_forge.config import Settings, get_settings
from brand_forge.core.archive import FileArchive, get_file_archive
from brand_forge.core.profiles import BrandProfileRegistry, get_profile_registry
from brand_forge.db.models import FileContext, FileSource, FileType, GenerationStatus
from brand_forge.media.generation import (
    AI_AUDIO_MODELS,
    AI_IMAGE_MODELS,
    AUDIO_MIME_TYPES,
    MediaGenerationService,
    get_media_service,
)
from brand_forge.storage.ai_keys import get_enabled_openai_key
from brand_forge.storage.kv import KeyValueStore, get_kv_store
from brand_forge.storage.objects import ObjectStorage, get_object_storage

router = APIRouter()


def _archive_result(
    archive: FileArchive, generation: dict[str, Any], user_id: str, file_type: FileType, mime_type: str
) -> dict[str, Any]:
    name = (generation.get("parameters") or {}).get("name")
    extension = generation["r2Key"].rsplit(".", 1)[-1]
    return archive.create_entry(
        brand_profile_id=generation["brandProfileId"],
        user_id=user_id,
        file_name=f"{name or generation['id']}.{extension}",
        mime_type=mime_type,
        r2_key=generation["r2Key"],
        file_type=file_type,
        source=FileSource.AI_GENERATED,
        context=FileContext.BRAND_ASSETS,
        ai_prompt=generation["prompt"],
        ai_model=generation["model"],
        ai_generation_id=generation["id"],
    )


@router.get("/generations")
async def get_generations(
    id: str | None = None,
    brandProfileId: str | None = None,
    type: str | None = None,
    user: dict[str, Any] = Depends(get_current_user),
    registry: BrandProfileRegistry = Depends(get_profile_registry),
    service: MediaGenerationService = Depends(get_media_service),
) -> dict[str, Any]:
    """One generation by ``id``, or a brand's generations filtered by ``type``."""
    if id:
        generation = service.get_generation(id)
        if not generation or generation["userId"] != user["id"]:
            raise HTTPException(status_code=404, detail="Generation not found")
        return {"generation": generation}

    if not brandProfileId:
        raise HTTPException(status_code=400, detail="brandProfileId required")
    require_owned_profile(registry, brandProfileId, user)
    try:
        generations = service.list_generations(brandProfileId, type)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return {"generations": generations}


@router.post("/generate")
async def generate_asset(
    data: GenerateAssetRequest,
    user: dict[str, Any] = Depends(get_current_user),
    registry: BrandProfileRegistry = Depends(get_profile_registry),
    service: MediaGenerationService = Depends(get_media_service),
    archive: FileArchive = Depends(get_file_archive),
    storage: ObjectStorage | None = Depends(get_object_storage),
    kv: KeyValueStore = Depends(get_kv_store),
    settings: Settings = Depends(get_settings),
):
    """Generate an image or audio clip now, or record a video request.

    Completed image and audio jobs answer 201 and are filed in the archive;
    a vendor failure answers 200 with the failed generation.
    """
    require_owned_profile(registry, data.brand_profile_id, user)

    if data.type == "video":
        generation = service.request_video_generation(
            prompt=data.prompt,
            brand_profile_id=data.brand_profile_id,
            user_id=user["id"],
            provider=data.provider,
            model=data.model,
            aspect_ratio=data.aspect_ratio,
            duration=data.duration,
            resolution=data.resolution,
            category=data.category or "brand",
            name=data.name or "AI Generated Video",
        )
        return JSONResponse({"generation": generation}, status_code=201)

    if storage is None:
        raise HTTPException(status_code=500, detail="Object storage not configured")
    api_key = get_enabled_openai_key(kv, settings)
    if not api_key:
        raise HTTPException(status_code=400, detail="No AI API key configured. Add one in Settings.")

    if data.type == "image":
        generation = service.generate_image(
            brand_profile_id=data.brand_profile_id,
            prompt=data.prompt,
            user_id=user["id"],
            negative_prompt=data.negative_prompt,
            model=data.model,
            size=data.size,
            style=data.style,
            quality=data.quality,
            category=data.category or "brand",
            name=data.name or "AI Generated Image",
        )
        generation = await service.run_image_generation(
            generation, api_key, size=data.size, style=data.style, quality=data.quality
        )
        file_type, mime_type = FileType.IMAGE, "image/png"
    else:
        generation = service.generate_audio(
            brand_profile_id=data.brand_profile_id,
            prompt=data.prompt,
            user_id=user["id"],
            model=data.model,
            voice=data.voice,
            speed=data.speed,
            response_format=data.response_format,
            category=data.category or "brand",
            name=data.name or "AI Generated Audio",
        )
        generation = await service.run_audio_generation(
            generation, api_key, voice=data.voice, speed=data.speed, response_format=data.response_format
        )
        file_type = FileType.AUDIO
        mime_type = AUDIO_MIME_TYPES.get(data.response_format or "mp3", "audio/wav")

    if generation["status"] != GenerationStatus.COMPLETE.value:
        return {"generation": generation}

    entry = _archive_result(archive, generation, user["id"], file_type, mime_type)
    return JSONResponse({"generation": generation, "archiveEntry": entry}, status_code=201)


@router.put("/generate")
async def generation_models(user: dict[str, Any] = Depends(get_current_user)) -> dict[str, Any]:
    """Image and audio model catalogs."""
    return {"imageModels": AI_IMAGE_MODELS, "audioModels": AI_AUDIO_MODELS}
