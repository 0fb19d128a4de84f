"""AI media generation: job records, OpenAI image/audio calls and video dispatch.

Every generation is a row in ``ai_generations`` that starts ``pending`` and
moves through :class:`GenerationStatus`. :meth:`MediaGenerationService.update_generation_status`
is the only writer of status columns.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, fields
from datetime import datetime, timezone
from functools import lru_cache
from typing import Any

import httpx
import structlog

from brand_forge.db.client import SupabaseClient, get_supabase_client
from brand_forge.db.models import GenerationStatus, GenerationType
from brand_forge.llm.openai_chat import OPENAI_API_BASE
from brand_forge.media.providers.base import (
    VideoGenerationRequest,
    VideoProvider,
    VideoStatus,
    error_message,
    exception_message,
)
from brand_forge.storage.objects import ObjectStorage, get_object_storage
from brand_forge.utils.cost import calculate_video_cost_from_pricing

logger = structlog.get_logger()

GENERATIONS_TABLE = "ai_generations"

VALID_VIDEO_DURATIONS = (4, 8, 12)
DEFAULT_IMAGE_MODEL = "dall-e-3"
DEFAULT_AUDIO_MODEL = "tts-1"
DEFAULT_VOICE = "alloy"
DEFAULT_VIDEO_PROVIDER = "openai"
DEFAULT_VIDEO_MODEL = "sora-2"

AI_IMAGE_MODELS: list[dict[str, Any]] = [
    {
        "id": "dall-e-3",
        "displayName": "DALL·E 3",
        "provider": "openai",
        "type": "image",
        "description": "High-quality image generation with strong prompt adherence",
        "supportedSizes": ["1024x1024", "1792x1024", "1024x1792"],
        "pricing": {"estimatedCostPerGeneration": 0.04, "currency": "USD"},
    },
    {
        "id": "dall-e-2",
        "displayName": "DALL·E 2",
        "provider": "openai",
        "type": "image",
        "description": "Fast image generation for quick iterations",
        "supportedSizes": ["256x256", "512x512", "1024x1024"],
        "pricing": {"estimatedCostPerGeneration": 0.02, "currency": "USD"},
    },
]

AI_AUDIO_MODELS: list[dict[str, Any]] = [
    {
        "id": "tts-1",
        "displayName": "TTS-1",
        "provider": "openai",
        "type": "audio",
        "description": "Fast text-to-speech",
        "pricing": {"estimatedCostPerGeneration": 0.015, "currency": "USD"},
    },
    {
        "id": "tts-1-hd",
        "displayName": "TTS-1 HD",
        "provider": "openai",
        "type": "audio",
        "description": "High-definition text-to-speech",
        "pricing": {"estimatedCostPerGeneration": 0.03, "currency": "USD"},
    },
]

AUDIO_MIME_TYPES = {
    "mp3": "audio/mpeg",
    "opus": "audio/opus",
    "aac": "audio/aac",
    "flac": "audio/flac",
}

# Provider lattice -> stored status for a freshly started video
VIDEO_START_STATUS = {
    VideoStatus.QUEUED: GenerationStatus.PENDING,
    VideoStatus.PROCESSING: GenerationStatus.PROCESSING,
    VideoStatus.COMPLETE: GenerationStatus.COMPLETE,
}


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


def map_row_to_generation(row: dict[str, Any]) -> dict[str, Any]:
    params = row.get("parameters")
    if isinstance(params, str):
        params = json.loads(params)
    return {
        "id": row["id"],
        "brandProfileId": row.get("brand_profile_id"),
        "userId": row.get("user_id"),
        "generationType": row["generation_type"],
        "provider": row["provider"],
        "model": row["model"],
        "prompt": row["prompt"],
        "negativePrompt": row.get("negative_prompt") or None,
        "status": row["status"],
        "providerJobId": row.get("provider_job_id") or None,
        "resultUrl": row.get("result_url") or None,
        "r2Key": row.get("r2_key") or None,
        # A stored cost of 0 reads back as absent
        "cost": row.get("cost") or None,
        "errorMessage": row.get("error_message") or None,
        "parameters": params or None,
        "progress": row.get("progress") or 0,
        "createdAt": row.get("created_at"),
        "completedAt": row.get("completed_at") or None,
    }


def normalize_video_duration(duration: Any) -> int | None:
    return duration if duration in VALID_VIDEO_DURATIONS else None


def _compact(**values: Any) -> dict[str, Any] | None:
    params = {k: v for k, v in values.items() if v}
    return params or None


@dataclass
class StatusUpdate:
    """A partial update to a generation; None fields are left untouched."""

    status: GenerationStatus | str
    provider_job_id: str | None = None
    result_url: str | None = None
    r2_key: str | None = None
    cost: float | None = None
    error_message: str | None = None
    progress: int | None = None

    def to_columns(self) -> dict[str, Any]:
        columns: dict[str, Any] = {"status": GenerationStatus(self.status).value}
        for f in fields(self):
            if f.name == "status":
                continue
            value = getattr(self, f.name)
            if value is not None:
                columns[f.name] = value
        return columns


class MediaGenerationService:
    """Creates generation jobs and drives them against the vendor APIs."""

    def __init__(
        self,
        db: SupabaseClient,
        storage: ObjectStorage | None = None,
        openai_base_url: str = OPENAI_API_BASE,
        timeout: float = 120.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.db = db
        self.storage = storage
        self.openai_base_url = openai_base_url.rstrip("/")
        self.timeout = timeout
        self._transport = transport

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(timeout=self.timeout, transport=self._transport)

    # --- Job records ---

    def _create(
        self,
        generation_type: GenerationType,
        brand_profile_id: str | None,
        user_id: str | None,
        provider: str,
        model: str,
        prompt: str,
        parameters: dict[str, Any] | None,
        negative_prompt: str | None = None,
    ) -> dict[str, Any]:
        row = self.db.insert(
            GENERATIONS_TABLE,
            {
                "brand_profile_id": brand_profile_id,
                "user_id": user_id,
                "generation_type": generation_type.value,
                "provider": provider,
                "model": model,
                "prompt": prompt,
                "negative_prompt": negative_prompt,
                "status": GenerationStatus.PENDING.value,
                "parameters": json.dumps(parameters) if parameters else None,
                "progress": 0,
            },
        )
        logger.info(
            "media.generation_created",
            generation_id=row["id"],
            type=generation_type.value,
            provider=provider,
            model=model,
        )
        return map_row_to_generation(row)

    def generate_image(
        self,
        brand_profile_id: str,
        prompt: str,
        user_id: str | None = None,
        negative_prompt: str | None = None,
        model: str | None = None,
        size: str | None = None,
        style: str | None = None,
        quality: str | None = None,
        category: str | None = None,
        name: str | None = None,
    ) -> dict[str, Any]:
        """Record a pending image job."""
        return self._create(
            GenerationType.IMAGE,
            brand_profile_id,
            user_id,
            "openai",
            model or DEFAULT_IMAGE_MODEL,
            prompt,
            _compact(size=size, style=style, quality=quality, category=category, name=name),
            negative_prompt=negative_prompt,
        )

    def generate_audio(
        self,
        brand_profile_id: str,
        prompt: str,
        user_id: str | None = None,
        model: str | None = None,
        voice: str | None = None,
        speed: float | None = None,
        response_format: str | None = None,
        category: str | None = None,
        name: str | None = None,
    ) -> dict[str, Any]:
        """Record a pending text-to-speech job. The voice always has a value."""
        return self._create(
            GenerationType.AUDIO,
            brand_profile_id,
            user_id,
            "openai",
            model or DEFAULT_AUDIO_MODEL,
            prompt,
            _compact(
                voice=voice or DEFAULT_VOICE,
                speed=speed,
                responseFormat=response_format,
                category=category,
                name=name,
            ),
        )

    def request_video_generation(
        self,
        prompt: str,
        brand_profile_id: str | None = None,
        user_id: str | None = None,
        provider: str | None = None,
        model: str | None = None,
        aspect_ratio: str | None = None,
        duration: int | None = None,
        resolution: str | None = None,
        category: str | None = None,
        name: str | None = None,
    ) -> dict[str, Any]:
        """Record a pending video job."""
        return self._create(
            GenerationType.VIDEO,
            brand_profile_id,
            user_id,
            provider or DEFAULT_VIDEO_PROVIDER,
            model or DEFAULT_VIDEO_MODEL,
            prompt,
            _compact(
                aspectRatio=aspect_ratio,
                duration=duration,
                resolution=resolution,
                category=category,
                name=name,
            ),
        )

    def get_generation(self, generation_id: str) -> dict[str, Any] | None:
        row = self.db.select_one(GENERATIONS_TABLE, {"id": generation_id})
        return map_row_to_generation(row) if row else None

    def list_generations(
        self, brand_profile_id: str, generation_type: GenerationType | str | None = None
    ) -> list[dict[str, Any]]:
        """Generations for a brand, newest first."""
        filters: dict[str, Any] = {"brand_profile_id": brand_profile_id}
        if generation_type:
            filters["generation_type"] = GenerationType(generation_type).value
        rows = self.db.select(GENERATIONS_TABLE, filters=filters, order_by="created_at", ascending=False)
        return [map_row_to_generation(r) for r in rows]

    def update_generation_status(self, generation_id: str, update: StatusUpdate) -> dict[str, Any]:
        """Apply a partial update.

        ``completed_at`` is stamped when the status becomes complete or failed,
        never otherwise, and an existing stamp is kept on repeated terminal
        updates. Raises ValueError for unknown generations.
        """
        row = self.db.select_one(GENERATIONS_TABLE, {"id": generation_id})
        if not row:
            raise ValueError(f"Generation '{generation_id}' not found")

        columns = update.to_columns()
        if GenerationStatus(update.status).is_terminal and not row.get("completed_at"):
            columns["completed_at"] = _now()

        updated = self.db.update(GENERATIONS_TABLE, generation_id, columns)
        logger.info(
            "media.status_updated",
            generation_id=generation_id,
            status=columns["status"],
        )
        return map_row_to_generation(updated)

    def _fail(self, generation_id: str, message: str) -> dict[str, Any]:
        logger.warning("media.generation_failed", generation_id=generation_id, error=message)
        return self.update_generation_status(
            generation_id, StatusUpdate(status=GenerationStatus.FAILED, error_message=message)
        )

    # --- Image / audio ---

    async def run_image_generation(
        self,
        generation: dict[str, Any],
        api_key: str,
        size: str | None = None,
        style: str | None = None,
        quality: str | None = None,
    ) -> dict[str, Any]:
        """Call the images API, store the result and settle the generation.

        Vendor failures end the job as failed; they are not raised.
        """
        generation_id = generation["id"]
        model = generation["model"]
        try:
            async with self._client() as client:
                resp = await client.post(
                    f"{self.openai_base_url}/images/generations",
                    headers={"Authorization": f"Bearer {api_key}"},
                    json={
                        "model": model,
                        "prompt": generation["prompt"],
                        "n": 1,
                        "size": size or "1024x1024",
                        "style": style or "vivid",
                        "quality": quality or "standard",
                        "response_format": "url",
                    },
                )
                if resp.status_code >= 400:
                    return self._fail(generation_id, error_message(resp, f"API error: {resp.status_code}"))

                items = resp.json().get("data") or []
                image_url = items[0].get("url") if items else None
                if not image_url:
                    return self._fail(generation_id, "No image URL in response")

                image = await client.get(image_url, follow_redirects=True)
                image.raise_for_status()

            r2_key = f"brands/{generation['brandProfileId']}/image/{generation_id}.png"
            await self.storage.put(r2_key, image.content, content_type="image/png")
        except Exception as e:
            return self._fail(generation_id, exception_message(e, "Unknown error"))

        if model == "dall-e-3":
            cost = 0.08 if quality == "hd" else 0.04
        else:
            cost = 0.02

        return self.update_generation_status(
            generation_id,
            StatusUpdate(
                status=GenerationStatus.COMPLETE,
                result_url=image_url,
                r2_key=r2_key,
                cost=cost,
                progress=100,
            ),
        )

    async def run_audio_generation(
        self,
        generation: dict[str, Any],
        api_key: str,
        voice: str | None = None,
        speed: float | None = None,
        response_format: str | None = None,
    ) -> dict[str, Any]:
        """Call the speech API, store the audio and settle the generation."""
        generation_id = generation["id"]
        model = generation["model"]
        fmt = response_format or "mp3"
        try:
            async with self._client() as client:
                resp = await client.post(
                    f"{self.openai_base_url}/audio/speech",
                    headers={"Authorization": f"Bearer {api_key}"},
                    json={
                        "model": model,
                        "input": generation["prompt"],
                        "voice": voice or DEFAULT_VOICE,
                        "speed": speed or 1.0,
                        "response_format": fmt,
                    },
                )
            if resp.status_code >= 400:
                return self._fail(generation_id, error_message(resp, f"API error: {resp.status_code}"))

            r2_key = f"brands/{generation['brandProfileId']}/audio/{generation_id}.{fmt}"
            await self.storage.put(r2_key, resp.content, content_type=AUDIO_MIME_TYPES.get(fmt, "audio/wav"))
        except Exception as e:
            return self._fail(generation_id, exception_message(e, "Unknown error"))

        # USD per 1M characters
        rate = 30 if model == "tts-1-hd" else 15
        cost = len(generation["prompt"]) / 1_000_000 * rate

        return self.update_generation_status(
            generation_id,
            StatusUpdate(status=GenerationStatus.COMPLETE, r2_key=r2_key, cost=cost, progress=100),
        )

    # --- Video ---

    async def start_video_generation(
        self,
        generation: dict[str, Any],
        provider: VideoProvider,
        api_key: str,
    ) -> dict[str, Any]:
        """Submit a pending video job to its provider and record the outcome.

        An adapter error ends the job as failed; callers check the returned
        status.
        """
        params = generation.get("parameters") or {}
        duration = normalize_video_duration(params.get("duration"))
        resolution = params.get("resolution")

        result = await provider.generate_video(
            api_key,
            VideoGenerationRequest(
                prompt=generation["prompt"],
                model=generation["model"],
                aspect_ratio=params.get("aspectRatio") or "16:9",
                duration=duration,
                resolution=resolution,
            ),
        )

        if result.status == VideoStatus.ERROR:
            return self._fail(generation["id"], result.error or "Unknown error")

        status = VIDEO_START_STATUS[result.status]
        update = StatusUpdate(
            status=status,
            provider_job_id=result.provider_job_id or None,
            result_url=result.video_url,
            progress=result.progress,
        )
        if status == GenerationStatus.COMPLETE:
            model = provider.get_model(generation["model"])
            update.cost = calculate_video_cost_from_pricing(
                model.pricing if model else None, result.duration or duration, resolution
            )
            update.progress = 100
        return self.update_generation_status(generation["id"], update)


@lru_cache
def get_media_service() -> MediaGenerationService:
    """Get cached media generation service instance."""
    return MediaGenerationService(get_supabase_client(), get_object_storage())
